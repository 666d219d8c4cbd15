"""Live channel transport on top of the ``websockets`` asyncio client."""
from __future__ import annotations

import logging
from typing import AsyncIterator

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from neurohelp_chat.application.exceptions import TransportError

logger = logging.getLogger(__name__)


class WebsocketsConnection:
    """Implements application.ports.transport.LiveConnection."""

    def __init__(self, ws: ClientConnection) -> None:
        self._ws = ws

    async def send(self, text: str) -> None:
        try:
            await self._ws.send(text)
        except ConnectionClosed as exc:
            raise TransportError(f"connection closed: {exc}") from exc

    async def close(self) -> None:
        await self._ws.close()

    async def __aiter__(self) -> AsyncIterator[str]:
        try:
            async for raw in self._ws:
                if isinstance(raw, bytes):
                    raw = raw.decode("utf-8", errors="replace")
                yield raw
        except ConnectionClosed as exc:
            logger.debug("Live connection dropped: %s", exc)


class WebsocketsTransport:
    """Implements application.ports.transport.LiveTransport."""

    def __init__(self, *, open_timeout: float | None = 10.0) -> None:
        self._open_timeout = open_timeout

    async def connect(self, url: str) -> WebsocketsConnection:
        try:
            ws = await connect(url, open_timeout=self._open_timeout)
        except (OSError, TimeoutError, WebSocketException) as exc:
            raise TransportError(f"cannot open live channel: {exc}") from exc
        return WebsocketsConnection(ws)
