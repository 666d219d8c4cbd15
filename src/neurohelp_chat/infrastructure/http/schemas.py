"""REST payload models (server field names)."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PhotoPayload(_Payload):
    url: str | None = None


class PortfolioPayload(_Payload):
    photos: list[PhotoPayload] | None = Field(None, alias="Photos")


class ChatUserPayload(_Payload):
    # Users are serialized without json tags on the server, hence PascalCase.
    id: int = Field(alias="ID")
    first_name: str = Field("", alias="FirstName")
    last_name: str = Field("", alias="LastName")
    portfolio: PortfolioPayload | None = Field(None, alias="Portfolio")


class ConversationPayload(_Payload):
    id: int
    client_id: int = Field(alias="clientId")
    psychologist_id: int = Field(alias="psychologistId")
    client: ChatUserPayload | None = None
    psychologist: ChatUserPayload | None = None
    last_message_at: datetime | None = Field(None, alias="lastMessageAt")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    unread_count: int = Field(0, alias="unreadCount")


class MessagePayload(_Payload):
    id: int
    conversation_id: int = Field(alias="conversationId")
    sender_id: int | None = Field(None, alias="senderId")
    sender: ChatUserPayload | None = None
    content: str
    is_read: bool = Field(False, alias="isRead")
    created_at: datetime = Field(alias="createdAt")


class UnreadCountPayload(_Payload):
    count: int | None = None


class ProfilePayload(_Payload):
    id: int
    email: str = ""
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    role: str | None = None


class StartConversationRequest(BaseModel):
    psychologist_id: int = Field(serialization_alias="psychologistId")


class ErrorPayload(_Payload):
    code: str = ""
    message: str = ""
