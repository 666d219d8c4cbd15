"""Merging of history batches and live pushes into one message list."""
from __future__ import annotations

from typing import Sequence

from neurohelp_chat.domain.entities.live_push import LivePush
from neurohelp_chat.domain.entities.message import Message


def normalize_live_push(push: LivePush) -> Message:
    return Message(
        id=push.id,
        conversation_id=push.conversation_id,
        sender_id=push.sender_id,
        sender=None,
        content=push.content,
        is_read=False,
        created_at=push.created_at,
    )


def merge_message(messages: Sequence[Message], incoming: Message) -> tuple[list[Message], bool]:
    """Append ``incoming`` unless its id is already present.

    Returns (messages, appended).
    """
    if any(m.id == incoming.id for m in messages):
        return list(messages), False
    return [*messages, incoming], True


def merge_history(current: Sequence[Message], history: Sequence[Message]) -> list[Message]:
    """Replace the list with ``history``.

    Live messages that arrived before the batch and are not part of it are
    kept after it.
    """
    merged: list[Message] = []
    seen: set[int] = set()
    for m in [*history, *current]:
        if m.id in seen:
            continue
        seen.add(m.id)
        merged.append(m)
    return merged


def order_by_created_at(messages: Sequence[Message]) -> list[Message]:
    return sorted(messages, key=lambda m: m.created_at)
