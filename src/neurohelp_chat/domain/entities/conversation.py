from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from neurohelp_chat.domain.entities.user import ChatUser
from neurohelp_chat.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class Conversation:
    id: int
    client_id: int
    psychologist_id: int
    client: ChatUser | None
    psychologist: ChatUser | None
    last_message_at: datetime | None
    created_at: datetime
    updated_at: datetime
    unread_count: int = 0

    def interlocutor(self, viewer_role: UserRole | str | None) -> ChatUser | None:
        """The other side of the conversation as seen by ``viewer_role``."""
        if viewer_role == UserRole.CLIENT:
            return self.psychologist
        return self.client

    def involves(self, user_id: int) -> bool:
        return user_id in (self.client_id, self.psychologist_id)

    @property
    def last_activity_at(self) -> datetime:
        return self.last_message_at or self.created_at
