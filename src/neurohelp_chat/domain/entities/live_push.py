from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class LivePush:
    """A message as delivered over the live channel (no read flag)."""

    id: int
    conversation_id: int
    sender_id: int
    sender_name: str
    content: str
    created_at: datetime
