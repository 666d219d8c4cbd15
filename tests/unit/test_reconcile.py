from __future__ import annotations

from datetime import timedelta

from neurohelp_chat.application.reconcile import (
    merge_history,
    merge_message,
    normalize_live_push,
    order_by_created_at,
)
from neurohelp_chat.domain.entities.live_push import LivePush
from tests.conftest import BASE_TS, make_message


def _push(message_id: int, **overrides) -> LivePush:
    fields = dict(
        id=message_id,
        conversation_id=42,
        sender_id=7,
        sender_name="A",
        content="hi",
        created_at=BASE_TS,
    )
    fields.update(overrides)
    return LivePush(**fields)


def test_normalize_defaults_read_flag_to_false():
    msg = normalize_live_push(_push(3))

    assert msg.id == 3
    assert msg.conversation_id == 42
    assert msg.sender_id == 7
    assert msg.content == "hi"
    assert msg.created_at == BASE_TS
    assert msg.is_read is False
    assert msg.sender is None


def test_merge_appends_unseen_id():
    history = [make_message(1), make_message(2)]
    incoming = normalize_live_push(_push(3))

    merged, appended = merge_message(history, incoming)

    assert appended is True
    assert [m.id for m in merged] == [1, 2, 3]
    assert [m.id for m in history] == [1, 2]


def test_merge_discards_known_id():
    history = [make_message(1), make_message(2)]

    merged, appended = merge_message(history, normalize_live_push(_push(2, content="changed")))

    assert appended is False
    assert merged == history
    assert merged[1].content == "message 2"


def test_merge_any_order_keeps_ids_unique():
    messages: list = []
    for message_id in [5, 1, 5, 3, 1, 1, 4, 3]:
        messages, _ = merge_message(messages, normalize_live_push(_push(message_id)))

    assert [m.id for m in messages] == [5, 1, 3, 4]


def test_merge_history_replaces_and_keeps_early_live_messages():
    live = [normalize_live_push(_push(2)), normalize_live_push(_push(7))]
    history = [make_message(1), make_message(2)]

    merged = merge_history(live, history)

    assert [m.id for m in merged] == [1, 2, 7]
    assert merged[1] is history[1]


def test_merge_history_on_empty_list_is_the_batch():
    history = [make_message(1), make_message(2)]
    assert merge_history([], history) == history


def test_order_by_created_at_is_stable():
    a = make_message(1, created_at=BASE_TS)
    b = make_message(2, created_at=BASE_TS - timedelta(minutes=1))
    c = make_message(3, created_at=BASE_TS)

    assert [m.id for m in order_by_created_at([a, b, c])] == [2, 1, 3]
