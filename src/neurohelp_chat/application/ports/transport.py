from __future__ import annotations

from typing import AsyncIterator, Protocol


class LiveConnection(Protocol):
    """One open live channel. Iteration yields inbound text frames until close."""

    async def send(self, text: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str]: ...


class LiveTransport(Protocol):
    async def connect(self, url: str) -> LiveConnection: ...
