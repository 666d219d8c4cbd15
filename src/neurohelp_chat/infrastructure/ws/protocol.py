"""Live channel frame models."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from neurohelp_chat.domain.entities.live_push import LivePush


class LivePushFrame(BaseModel):
    """Server → Client."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    conversation_id: int = Field(alias="conversationId")
    sender_id: int = Field(alias="senderId")
    sender_name: str = Field("", alias="senderName")
    content: str
    created_at: datetime = Field(alias="createdAt")

    def to_entity(self) -> LivePush:
        return LivePush(
            id=self.id,
            conversation_id=self.conversation_id,
            sender_id=self.sender_id,
            sender_name=self.sender_name,
            content=self.content,
            created_at=self.created_at,
        )


class OutboundFrame(BaseModel):
    """Client → Server."""

    content: str
