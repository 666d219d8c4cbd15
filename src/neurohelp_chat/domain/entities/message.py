from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from neurohelp_chat.domain.entities.user import ChatUser


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    conversation_id: int
    sender_id: int | None
    sender: ChatUser | None
    content: str
    is_read: bool
    created_at: datetime

    def is_from(self, user_id: int | None) -> bool:
        return user_id is not None and self.sender_id == user_id
