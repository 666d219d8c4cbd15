"""Unread-message badge kept fresh by polling."""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from neurohelp_chat.application.dto.session import Session
from neurohelp_chat.application.exceptions import AppError
from neurohelp_chat.application.ports.api import ChatApi
from neurohelp_chat.config import settings

logger = logging.getLogger(__name__)

OnCountChange = Callable[[int], None]


class UnreadCountPoller:
    """Exposes the viewer's total unread count, refreshed every ``interval`` seconds.

    Polling runs only while the session is authenticated; otherwise the
    count is 0 and no request is made. A failed refresh keeps the last value.
    """

    def __init__(
        self,
        api: ChatApi,
        session: Session,
        *,
        interval: float | None = None,
        on_change: OnCountChange | None = None,
    ) -> None:
        self._api = api
        self._session = session
        self._interval = interval if interval is not None else settings.UNREAD_POLL_INTERVAL
        self._on_change = on_change
        self._count = 0
        self._task: asyncio.Task[None] | None = None

    async def __aenter__(self) -> UnreadCountPoller:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def count(self) -> int:
        return self._count

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if not self._session.is_authenticated:
            self._set_count(0)
            return
        if not self.running:
            self._task = asyncio.create_task(self._run(), name="unread-poller")
            logger.debug("Unread poller started (interval=%.1fs)", self._interval)

    async def set_session(self, session: Session) -> None:
        self._session = session
        if session.is_authenticated:
            await self.start()
            return
        self._set_count(0)
        await self._cancel()

    async def refresh(self) -> int:
        """Fetch the count once. Errors are swallowed and the previous value kept."""
        if not self._session.is_authenticated:
            self._set_count(0)
            return 0
        try:
            count = await self._api.unread_count()
        except AppError as exc:
            logger.debug("Unread count refresh failed, keeping %d: %s", self._count, exc.detail)
            return self._count
        if not self._session.is_authenticated:
            return self._count
        self._set_count(count)
        return count

    async def close(self) -> None:
        await self._cancel()

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Unread poller loop error")
            await asyncio.sleep(self._interval)

    async def _cancel(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Unread poller stopped")

    def _set_count(self, count: int) -> None:
        if count == self._count:
            return
        self._count = count
        if self._on_change is None:
            return
        try:
            self._on_change(count)
        except Exception:
            logger.exception("on_change callback failed")
