from __future__ import annotations

from typing import Protocol

from neurohelp_chat.application.dto.profile import ViewerProfile
from neurohelp_chat.domain.entities.conversation import Conversation
from neurohelp_chat.domain.entities.message import Message


class ChatApi(Protocol):
    async def list_conversations(self) -> list[Conversation]: ...

    async def unread_count(self) -> int: ...

    async def list_messages(
        self, conversation_id: int, *, limit: int = 50, offset: int = 0,
    ) -> list[Message]: ...

    async def start_conversation(self, psychologist_id: int) -> Conversation: ...

    async def get_profile(self) -> ViewerProfile: ...
