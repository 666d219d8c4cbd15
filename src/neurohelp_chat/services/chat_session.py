"""Per-conversation chat controller: history backfill plus the live channel."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from pydantic import ValidationError as FrameValidationError

from neurohelp_chat.application.dto.session import Session
from neurohelp_chat.application.exceptions import AppError, TransportError, ValidationError
from neurohelp_chat.application.policies.reconnect import ReconnectPolicy
from neurohelp_chat.application.ports.api import ChatApi
from neurohelp_chat.application.ports.transport import LiveConnection, LiveTransport
from neurohelp_chat.application.reconcile import (
    merge_history,
    merge_message,
    normalize_live_push,
    order_by_created_at,
)
from neurohelp_chat.config import settings
from neurohelp_chat.domain.entities.message import Message
from neurohelp_chat.domain.value_objects.enums import ConnectionState
from neurohelp_chat.infrastructure.ws.protocol import LivePushFrame, OutboundFrame
from neurohelp_chat.infrastructure.ws.urls import build_live_url

logger = logging.getLogger(__name__)

OnChange = Callable[["ChatSession"], None]


def _check_conversation_id(conversation_id: int) -> int:
    if isinstance(conversation_id, bool) or not isinstance(conversation_id, int) or conversation_id <= 0:
        raise ValidationError(f"conversation id must be a positive integer, got {conversation_id!r}")
    return conversation_id


class ChatSession:
    """Owns one conversation's message list and live connection.

    History is fetched once over REST while the live channel is opened
    concurrently. Both sources are merged by message id, so a message is
    never listed twice. Use as an async context manager to guarantee
    teardown::

        async with ChatSession(42, session, api, transport) as chat:
            await chat.wait_history()
            await chat.send("hello")
    """

    def __init__(
        self,
        conversation_id: int,
        session: Session,
        api: ChatApi,
        transport: LiveTransport,
        *,
        ws_base_url: str | None = None,
        history_limit: int | None = None,
        reconnect: ReconnectPolicy | None = None,
        sort_by_created_at: bool | None = None,
        on_change: OnChange | None = None,
    ) -> None:
        self._conversation_id = _check_conversation_id(conversation_id)
        self._session = session
        self._api = api
        self._transport = transport
        self._ws_base_url = ws_base_url or settings.ws_base_url
        self._history_limit = history_limit or settings.HISTORY_PAGE_SIZE
        self._reconnect = reconnect or ReconnectPolicy()
        self._sort = (
            settings.SORT_MESSAGES_BY_CREATED_AT if sort_by_created_at is None else sort_by_created_at
        )
        self._on_change = on_change

        self._messages: list[Message] = []
        self._state = ConnectionState.DISCONNECTED
        self._loading_history = False
        self._active = False
        self._connection: LiveConnection | None = None
        self._history_task: asyncio.Task[None] | None = None
        self._live_task: asyncio.Task[None] | None = None

    async def __aenter__(self) -> ChatSession:
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def conversation_id(self) -> int:
        return self._conversation_id

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def loading_history(self) -> bool:
        return self._loading_history

    @property
    def active(self) -> bool:
        return self._active

    async def start(self) -> None:
        """Kick off the history load and, given a credential, the live channel."""
        if self._active:
            return
        self._active = True
        self._loading_history = True
        self._notify()

        cid = self._conversation_id
        self._history_task = asyncio.create_task(self._load_history(), name=f"chat-history-{cid}")

        if not self._session.token:
            logger.debug("No credential, live channel for conversation %d not opened", cid)
            return
        self._live_task = asyncio.create_task(self._run_live(), name=f"chat-live-{cid}")

    async def close(self) -> None:
        """Tear down: drop the live connection and abandon the history request."""
        self._active = False

        connection, self._connection = self._connection, None
        if connection is not None:
            try:
                await connection.close()
            except Exception:
                logger.debug("Error closing live connection", exc_info=True)

        tasks = [t for t in (self._history_task, self._live_task) if t is not None]
        self._history_task = self._live_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        self._loading_history = False
        self._set_state(ConnectionState.DISCONNECTED)

    async def switch(self, conversation_id: int) -> None:
        """Move this controller to another conversation, tearing down the old one first."""
        conversation_id = _check_conversation_id(conversation_id)
        await self.close()
        self._conversation_id = conversation_id
        self._messages = []
        self._notify()
        await self.start()

    async def wait_history(self) -> None:
        """Return once the history request has finished (or was abandoned)."""
        task = self._history_task
        if task is not None:
            await asyncio.wait({task})

    def receive(self, raw: str | bytes) -> Message | None:
        """Merge one inbound live frame. Returns the appended message, if any."""
        try:
            frame = LivePushFrame.model_validate_json(raw)
        except FrameValidationError:
            logger.debug("Dropping malformed live frame for conversation %d", self._conversation_id)
            return None
        if frame.conversation_id != self._conversation_id:
            logger.debug(
                "Dropping frame for conversation %d on conversation %d",
                frame.conversation_id,
                self._conversation_id,
            )
            return None

        message = normalize_live_push(frame.to_entity())
        merged, appended = merge_message(self._messages, message)
        if not appended:
            return None
        self._messages = self._ordered(merged)
        self._notify()
        return message

    async def send(self, content: str) -> bool:
        """Write ``content`` to the live channel.

        Nothing is sent for blank content or while disconnected. The message
        shows up in the list once the server echoes it back.
        """
        if not content.strip():
            return False
        connection = self._connection
        if self._state != ConnectionState.CONNECTED or connection is None:
            return False
        try:
            await connection.send(OutboundFrame(content=content).model_dump_json())
        except TransportError as exc:
            logger.warning("Send failed on conversation %d: %s", self._conversation_id, exc.detail)
            return False
        return True

    async def _load_history(self) -> None:
        cid = self._conversation_id
        history: list[Message] | None = None
        try:
            history = await self._api.list_messages(cid, limit=self._history_limit, offset=0)
        except AppError as exc:
            logger.warning("History load failed for conversation %d: %s", cid, exc.detail)
        except Exception:
            logger.exception("History load failed for conversation %d", cid)

        if not self._active:
            return
        if history is not None:
            self._messages = self._ordered(merge_history(self._messages, history))
        self._loading_history = False
        self._notify()

    async def _run_live(self) -> None:
        cid = self._conversation_id
        token = self._session.token or ""
        url = build_live_url(self._ws_base_url, cid, token)
        attempt = 0
        try:
            while self._active:
                try:
                    connection = await self._transport.connect(url)
                except TransportError as exc:
                    logger.warning("Live channel for conversation %d failed to open: %s", cid, exc.detail)
                else:
                    if not self._active:
                        await connection.close()
                        break
                    attempt = 0
                    await self._pump(connection)

                if not self._active:
                    break
                delay = self._reconnect.next_delay(attempt)
                if delay is None:
                    logger.info("Live channel for conversation %d closed", cid)
                    break
                attempt += 1
                logger.info(
                    "Reconnecting live channel for conversation %d in %.1fs (attempt %d)",
                    cid, delay, attempt,
                )
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Live channel error for conversation %d", cid)

    async def _pump(self, connection: LiveConnection) -> None:
        self._connection = connection
        self._set_state(ConnectionState.CONNECTED)
        logger.info("Live channel for conversation %d open", self._conversation_id)
        try:
            async for raw in connection:
                self.receive(raw)
        finally:
            if self._connection is connection:
                self._connection = None
            self._set_state(ConnectionState.DISCONNECTED)

    def _ordered(self, messages: list[Message]) -> list[Message]:
        return order_by_created_at(messages) if self._sort else messages

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        self._state = state
        self._notify()

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self)
        except Exception:
            logger.exception("on_change callback failed")
