"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Callable

import jwt
import pytest

from neurohelp_chat.application.dto.profile import ViewerProfile
from neurohelp_chat.application.dto.session import Session
from neurohelp_chat.application.exceptions import AppError, TransportError
from neurohelp_chat.domain.entities.conversation import Conversation
from neurohelp_chat.domain.entities.message import Message
from neurohelp_chat.domain.entities.user import ChatUser
from neurohelp_chat.domain.value_objects.enums import UserRole

WS_BASE = "ws://testserver"
BASE_TS = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def client_session() -> Session:
    return Session(token="client-token", user_id=42, role=UserRole.CLIENT)


@pytest.fixture
def anonymous_session() -> Session:
    return Session.anonymous()


def make_token(*, role: str = "client", username: str = "olena@example.com", exp: datetime | None = None) -> str:
    claims: dict[str, Any] = {"username": username, "role": role}
    if exp is not None:
        claims["exp"] = int(exp.timestamp())
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def make_user(user_id: int = 7, first: str = "Andrii", last: str = "Petrenko", *photos: str) -> ChatUser:
    return ChatUser(id=user_id, first_name=first, last_name=last, photo_urls=tuple(photos))


def make_message(
    message_id: int,
    *,
    conversation_id: int = 42,
    sender_id: int = 7,
    content: str | None = None,
    is_read: bool = True,
    created_at: datetime | None = None,
) -> Message:
    return Message(
        id=message_id,
        conversation_id=conversation_id,
        sender_id=sender_id,
        sender=make_user(sender_id),
        content=content or f"message {message_id}",
        is_read=is_read,
        created_at=created_at or BASE_TS + timedelta(minutes=message_id),
    )


def make_conversation(
    conversation_id: int = 42,
    *,
    client_id: int = 42,
    psychologist_id: int = 7,
    unread_count: int = 0,
    last_message_at: datetime | None = None,
) -> Conversation:
    return Conversation(
        id=conversation_id,
        client_id=client_id,
        psychologist_id=psychologist_id,
        client=make_user(client_id, "Olena", "Koval"),
        psychologist=make_user(psychologist_id),
        last_message_at=last_message_at,
        created_at=BASE_TS,
        updated_at=BASE_TS,
        unread_count=unread_count,
    )


def live_frame(
    message_id: int,
    *,
    conversation_id: int = 42,
    sender_id: int = 7,
    sender_name: str = "A",
    content: str = "hi",
    created_at: datetime | None = None,
) -> str:
    ts = created_at or BASE_TS + timedelta(minutes=message_id)
    return json.dumps({
        "id": message_id,
        "conversationId": conversation_id,
        "senderId": sender_id,
        "senderName": sender_name,
        "content": content,
        "createdAt": ts.isoformat(),
    })


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@dataclass
class FakeChatApi:
    """In-memory ChatApi for unit tests."""
    conversations: list[Conversation] = field(default_factory=list)
    messages: dict[int, list[Message]] = field(default_factory=dict)
    unread: int = 0
    profile: ViewerProfile | None = None
    fail_with: AppError | None = None
    history_gate: asyncio.Event | None = None
    calls: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    async def list_conversations(self) -> list[Conversation]:
        self.calls.append(("list_conversations", ()))
        self._maybe_fail()
        return list(self.conversations)

    async def unread_count(self) -> int:
        self.calls.append(("unread_count", ()))
        self._maybe_fail()
        return self.unread

    async def list_messages(self, conversation_id: int, *, limit: int = 50, offset: int = 0) -> list[Message]:
        self.calls.append(("list_messages", (conversation_id, limit, offset)))
        if self.history_gate is not None:
            await self.history_gate.wait()
        self._maybe_fail()
        return list(self.messages.get(conversation_id, []))[offset:offset + limit]

    async def start_conversation(self, psychologist_id: int) -> Conversation:
        self.calls.append(("start_conversation", (psychologist_id,)))
        self._maybe_fail()
        for c in self.conversations:
            if c.psychologist_id == psychologist_id:
                return c
        conv = make_conversation(len(self.conversations) + 100, psychologist_id=psychologist_id)
        self.conversations.append(conv)
        return conv

    async def get_profile(self) -> ViewerProfile:
        self.calls.append(("get_profile", ()))
        self._maybe_fail()
        assert self.profile is not None
        return self.profile


class FakeConnection:
    """LiveConnection double: frames are pushed by the test, writes recorded."""

    def __init__(self) -> None:
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()
        self.sent: list[str] = []
        self.closed = False

    def push(self, raw: str | bytes) -> None:
        self._inbox.put_nowait(raw)  # type: ignore[arg-type]

    def drop(self) -> None:
        """Server-side close."""
        self._inbox.put_nowait(None)

    async def send(self, text: str) -> None:
        if self.closed:
            raise TransportError("connection closed")
        self.sent.append(text)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            raw = await self._inbox.get()
            if raw is None:
                return
            yield raw


@dataclass
class FakeTransport:
    connections: list[FakeConnection] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)
    failures: int = 0
    # queued on every new connection before it is handed out
    frames: list[str] = field(default_factory=list)

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]

    async def connect(self, url: str) -> FakeConnection:
        self.urls.append(url)
        if self.failures > 0:
            self.failures -= 1
            raise TransportError("connection refused")
        conn = FakeConnection()
        for raw in self.frames:
            conn.push(raw)
        self.connections.append(conn)
        return conn
