from __future__ import annotations

from neurohelp_chat.application.dto.profile import ViewerProfile
from neurohelp_chat.domain.entities.conversation import Conversation
from neurohelp_chat.domain.entities.message import Message
from neurohelp_chat.domain.entities.user import ChatUser
from neurohelp_chat.domain.value_objects.enums import UserRole
from neurohelp_chat.infrastructure.http.schemas import (
    ChatUserPayload,
    ConversationPayload,
    MessagePayload,
    ProfilePayload,
)


def user_to_entity(payload: ChatUserPayload | None) -> ChatUser | None:
    if payload is None:
        return None
    photos = payload.portfolio.photos if payload.portfolio and payload.portfolio.photos else []
    return ChatUser(
        id=payload.id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        photo_urls=tuple(p.url for p in photos if p.url),
    )


def conversation_to_entity(payload: ConversationPayload) -> Conversation:
    return Conversation(
        id=payload.id,
        client_id=payload.client_id,
        psychologist_id=payload.psychologist_id,
        client=user_to_entity(payload.client),
        psychologist=user_to_entity(payload.psychologist),
        last_message_at=payload.last_message_at,
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        unread_count=payload.unread_count,
    )


def message_to_entity(payload: MessagePayload) -> Message:
    return Message(
        id=payload.id,
        conversation_id=payload.conversation_id,
        sender_id=payload.sender_id,
        sender=user_to_entity(payload.sender),
        content=payload.content,
        is_read=payload.is_read,
        created_at=payload.created_at,
    )


def profile_to_dto(payload: ProfilePayload) -> ViewerProfile:
    role = UserRole(payload.role) if payload.role in UserRole.__members__.values() else None
    return ViewerProfile(
        id=payload.id,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=role,
    )
