from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class ValidationError(AppError):
    pass


class TransportError(AppError):
    """The network path to the server failed (connect, read or write)."""


class ChatApiError(AppError):
    """The REST API answered with a non-2xx status or an unusable body."""

    def __init__(self, detail: str = "", *, status_code: int | None = None, code: str = "") -> None:
        self.status_code = status_code
        self.code = code
        super().__init__(detail)


class UnauthorizedError(ChatApiError):
    pass
