"""Terminal front end for NeuroHelp chat."""
from __future__ import annotations

import asyncio
import logging
import sys
import threading
from dataclasses import replace
from datetime import datetime

import click

from neurohelp_chat.application.dto.profile import ViewerProfile
from neurohelp_chat.application.dto.session import Session
from neurohelp_chat.application.exceptions import AppError, UnauthorizedError
from neurohelp_chat.application.policies.reconnect import ReconnectPolicy
from neurohelp_chat.config import settings
from neurohelp_chat.domain.entities.conversation import Conversation
from neurohelp_chat.domain.entities.message import Message
from neurohelp_chat.domain.value_objects.enums import ConnectionState
from neurohelp_chat.infrastructure.auth.claims import session_from_token
from neurohelp_chat.infrastructure.auth.token_store import FileCredentialStore
from neurohelp_chat.infrastructure.http.client import HttpChatApi
from neurohelp_chat.infrastructure.ws.transport import WebsocketsTransport
from neurohelp_chat.services import conversation_service
from neurohelp_chat.services.chat_session import ChatSession
from neurohelp_chat.services.unread_poller import UnreadCountPoller

logger = logging.getLogger(__name__)


def _store() -> FileCredentialStore:
    return FileCredentialStore(settings.credentials_path, settings.CREDENTIALS_KEY)


def _require_session(store: FileCredentialStore) -> Session:
    session = session_from_token(store.load())
    if not session.is_authenticated:
        raise click.ClickException("Not logged in. Run: neurohelp-chat login")
    return session


async def _viewer(api: HttpChatApi) -> ViewerProfile | None:
    try:
        return await api.get_profile()
    except UnauthorizedError:
        raise
    except AppError as exc:
        logger.debug("Profile lookup failed: %s", exc.detail)
        return None


def format_time(ts: datetime | None, now: datetime | None = None) -> str:
    """HH:MM for today, DD.MM otherwise."""
    if ts is None:
        return ""
    now = now or datetime.now(ts.tzinfo)
    if ts.date() == now.date():
        return ts.strftime("%H:%M")
    return ts.strftime("%d.%m")


def _conversation_line(conv: Conversation, session: Session) -> str:
    other = conv.interlocutor(session.role)
    name = other.display_name if other else f"Conversation {conv.id}"
    badge = conversation_service.badge_label(conv.unread_count)
    line = f"#{conv.id:<5} {name:<30} {format_time(conv.last_message_at):>5}"
    return f"{line}  [{badge}]" if badge else line


def _stdin_lines(loop: asyncio.AbstractEventLoop) -> asyncio.Queue[str | None]:
    """Feed stdin lines into a queue from a daemon thread; None marks EOF.

    A daemon thread is not joined on shutdown, so Ctrl-C does not wait for
    a pending readline.
    """
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    stdin = sys.stdin

    def _put(item: str | None) -> bool:
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # loop already closed
            return False
        return True

    def _read() -> None:
        for line in iter(stdin.readline, ""):
            if not _put(line):
                return
        _put(None)

    threading.Thread(target=_read, name="stdin-reader", daemon=True).start()
    return queue


def _message_line(msg: Message, viewer_id: int | None, other_name: str) -> str:
    if msg.is_from(viewer_id):
        who = "me"
    elif msg.sender is not None:
        who = msg.sender.display_name
    else:
        who = other_name
    return f"[{format_time(msg.created_at)}] {who}: {msg.content}"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def cli(verbose: bool) -> None:
    """NeuroHelp chat from the terminal."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--token", prompt=True, hide_input=True, help="Access token issued at login")
def login(token: str) -> None:
    """Store an access token and check it against the server."""
    store = _store()
    store.save(token.strip())
    session = session_from_token(store.load())

    async def _check() -> ViewerProfile:
        async with HttpChatApi(session, credentials=store) as api:
            return await api.get_profile()

    try:
        profile = asyncio.run(_check())
    except UnauthorizedError:
        raise click.ClickException("Token rejected by the server")
    except AppError as exc:
        raise click.ClickException(f"Could not verify token: {exc.detail}")
    name = f"{profile.first_name} {profile.last_name}".strip() or profile.email
    click.echo(f"Logged in as {name}")


@cli.command()
def logout() -> None:
    """Forget the stored access token."""
    _store().clear()
    click.echo("Logged out")


@cli.command()
def conversations() -> None:
    """List your conversations."""
    store = _store()
    session = _require_session(store)

    async def _load() -> list[Conversation]:
        async with HttpChatApi(session, credentials=store) as api:
            return await conversation_service.list_conversations(api)

    try:
        items = asyncio.run(_load())
    except AppError as exc:
        raise click.ClickException(exc.detail or "Could not load conversations")

    total = conversation_service.badge_label(conversation_service.total_unread(items))
    click.echo(click.style("Messages", bold=True) + (f"  [{total}]" if total else ""))
    if not items:
        click.echo("No conversations yet. Find a specialist and write to them.")
        return
    for conv in items:
        click.echo(_conversation_line(conv, session))


@cli.command()
@click.option("--watch", is_flag=True, help="Keep polling and print changes")
def unread(watch: bool) -> None:
    """Show the total number of unread messages."""
    store = _store()
    session = _require_session(store)

    async def _once() -> int:
        async with HttpChatApi(session, credentials=store) as api:
            return await UnreadCountPoller(api, session).refresh()

    async def _watch() -> None:
        async with HttpChatApi(session, credentials=store) as api:
            poller = UnreadCountPoller(api, session, on_change=lambda n: click.echo(f"Unread: {n}"))
            async with poller:
                await asyncio.Event().wait()

    if not watch:
        click.echo(asyncio.run(_once()))
        return
    click.echo("Unread: 0")
    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        pass


@cli.command()
@click.argument("psychologist_id", type=int)
def start(psychologist_id: int) -> None:
    """Start (or reopen) a conversation with a psychologist."""
    store = _store()
    session = _require_session(store)

    async def _start() -> Conversation:
        async with HttpChatApi(session, credentials=store) as api:
            return await conversation_service.start_conversation(api, psychologist_id)

    try:
        conv = asyncio.run(_start())
    except AppError as exc:
        raise click.ClickException(exc.detail or "Could not start the conversation")
    click.echo(f"Conversation #{conv.id}")


@cli.command()
@click.argument("conversation_id", type=int)
def chat(conversation_id: int) -> None:
    """Open a conversation: history, live messages, and stdin lines as input."""
    store = _store()
    session = _require_session(store)
    try:
        asyncio.run(_chat_room(conversation_id, session, store))
    except KeyboardInterrupt:
        pass
    except AppError as exc:
        raise click.ClickException(exc.detail)


async def _chat_room(conversation_id: int, session: Session, store: FileCredentialStore) -> None:
    async with HttpChatApi(session, credentials=store) as api:
        viewer = await _viewer(api)
        if viewer is not None:
            session = replace(session, user_id=viewer.id, role=session.role or viewer.role)
        viewer_id = viewer.id if viewer else None

        try:
            conv = await conversation_service.find_conversation(api, conversation_id)
        except AppError as exc:
            logger.debug("Conversation lookup failed: %s", exc.detail)
            conv = None
        other = conv.interlocutor(session.role) if conv else None
        other_name = other.display_name if other else "Loading..."
        click.echo(click.style(other_name, bold=True))

        printed: set[int] = set()
        last_state: ConnectionState | None = None

        def _render(room: ChatSession) -> None:
            nonlocal last_state
            if room.state != last_state:
                last_state = room.state
                click.echo("-- online --" if room.connected else "-- not connected --", err=True)
            if room.loading_history:
                return
            for msg in room.messages:
                if msg.id not in printed:
                    printed.add(msg.id)
                    click.echo(_message_line(msg, viewer_id, other_name))

        room = ChatSession(
            conversation_id,
            session,
            api,
            WebsocketsTransport(),
            reconnect=ReconnectPolicy.from_settings(),
            on_change=_render,
        )
        async with room:
            await room.wait_history()
            if not room.messages:
                click.echo("Start the conversation: write the first message.")
            lines = _stdin_lines(asyncio.get_running_loop())
            while True:
                line = await lines.get()
                if line is None:
                    break
                text = line.strip()
                if not text:
                    continue
                if not await room.send(text):
                    click.echo("-- not connected, message not sent --", err=True)
