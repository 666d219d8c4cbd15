from __future__ import annotations

from neurohelp_chat.application.exceptions import ValidationError
from neurohelp_chat.application.ports.api import ChatApi
from neurohelp_chat.domain.entities.conversation import Conversation

BADGE_CAP = 99


async def list_conversations(api: ChatApi) -> list[Conversation]:
    """Fetch every conversation of the viewer. No caching: callers re-fetch."""
    return await api.list_conversations()


async def find_conversation(api: ChatApi, conversation_id: int) -> Conversation | None:
    conversations = await api.list_conversations()
    return next((c for c in conversations if c.id == conversation_id), None)


async def start_conversation(api: ChatApi, psychologist_id: int) -> Conversation:
    """Open (or return the existing) conversation with a psychologist."""
    if psychologist_id <= 0:
        raise ValidationError("psychologistId is required")
    return await api.start_conversation(psychologist_id)


def total_unread(conversations: list[Conversation]) -> int:
    return sum(c.unread_count for c in conversations)


def badge_label(count: int) -> str:
    if count <= 0:
        return ""
    if count > BADGE_CAP:
        return f"{BADGE_CAP}+"
    return str(count)
