"""REST client for the conversation endpoints."""
from __future__ import annotations

import logging
import time
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PayloadValidationError

from neurohelp_chat.application.dto.profile import ViewerProfile
from neurohelp_chat.application.dto.session import Session
from neurohelp_chat.application.exceptions import (
    ChatApiError,
    TransportError,
    UnauthorizedError,
)
from neurohelp_chat.application.ports.auth import CredentialStore
from neurohelp_chat.config import settings
from neurohelp_chat.domain.entities.conversation import Conversation
from neurohelp_chat.domain.entities.message import Message
from neurohelp_chat.infrastructure.http.correlation import attach_correlation_id
from neurohelp_chat.infrastructure.http.mappers import (
    conversation_to_entity,
    message_to_entity,
    profile_to_dto,
)
from neurohelp_chat.infrastructure.http.schemas import (
    ConversationPayload,
    ErrorPayload,
    MessagePayload,
    ProfilePayload,
    StartConversationRequest,
    UnreadCountPayload,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_conversations = TypeAdapter(list[ConversationPayload])
_messages = TypeAdapter(list[MessagePayload])
_conversation = TypeAdapter(ConversationPayload)
_unread = TypeAdapter(UnreadCountPayload)
_profile = TypeAdapter(ProfilePayload)


class HttpChatApi:
    """Implements application.ports.api.ChatApi over httpx."""

    def __init__(
        self,
        session: Session,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        credentials: CredentialStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.session = session
        self._credentials = credentials
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT,
            transport=transport,
            event_hooks={"request": [attach_correlation_id]},
        )

    async def __aenter__(self) -> HttpChatApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_conversations(self) -> list[Conversation]:
        data = await self._request("GET", "/api/conversations")
        payloads = self._validate(_conversations, data)
        return [conversation_to_entity(p) for p in payloads]

    async def unread_count(self) -> int:
        data = await self._request("GET", "/api/conversations/unread")
        payload = self._validate(_unread, data)
        return payload.count or 0

    async def list_messages(
        self, conversation_id: int, *, limit: int = 50, offset: int = 0,
    ) -> list[Message]:
        data = await self._request(
            "GET",
            f"/api/conversations/{conversation_id}/messages",
            params={"limit": limit, "offset": offset},
        )
        payloads = self._validate(_messages, data)
        return [message_to_entity(p) for p in payloads]

    async def start_conversation(self, psychologist_id: int) -> Conversation:
        body = StartConversationRequest(psychologist_id=psychologist_id)
        data = await self._request(
            "POST", "/api/conversations", json=body.model_dump(by_alias=True),
        )
        return conversation_to_entity(self._validate(_conversation, data))

    async def get_profile(self) -> ViewerProfile:
        data = await self._request("GET", "/api/users/self")
        return profile_to_dto(self._validate(_profile, data))

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"Content-Type": "application/json", **self.session.authorization_header()}
        start = time.perf_counter()
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {path}: {exc}") from exc
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s %s %s %.1fms", method, path, response.status_code, elapsed_ms)

        if response.status_code in (401, 403):
            if self._credentials is not None:
                self._credentials.clear()
                logger.info("Stored credential cleared after %s", response.status_code)
            code, detail = _error_details(response)
            raise UnauthorizedError(detail, status_code=response.status_code, code=code)

        if response.is_error:
            code, detail = _error_details(response)
            raise ChatApiError(detail, status_code=response.status_code, code=code)

        try:
            return response.json()
        except ValueError as exc:
            raise ChatApiError(
                f"{method} {path}: response is not JSON",
                status_code=response.status_code,
                code="invalid_payload",
            ) from exc

    @staticmethod
    def _validate(adapter: TypeAdapter[T], data: Any) -> T:
        try:
            return adapter.validate_python(data)
        except PayloadValidationError as exc:
            raise ChatApiError(str(exc), code="invalid_payload") from exc


def _error_details(response: httpx.Response) -> tuple[str, str]:
    try:
        payload = ErrorPayload.model_validate(response.json())
    except (ValueError, PayloadValidationError):
        return "", response.text.strip() or response.reason_phrase
    return payload.code, payload.message or response.reason_phrase
