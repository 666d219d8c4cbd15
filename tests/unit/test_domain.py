from __future__ import annotations

import pytest

from neurohelp_chat.application.policies.reconnect import ReconnectPolicy
from neurohelp_chat.domain.value_objects.enums import UserRole
from neurohelp_chat.infrastructure.ws.urls import build_live_url, build_ws_base
from tests.conftest import BASE_TS, make_conversation, make_message, make_user


@pytest.mark.parametrize(
    ("photo", "expected"),
    [
        ("/uploads/a.jpg", "/api/uploads/a.jpg"),
        ("/api/uploads/a.jpg", "/api/uploads/a.jpg"),
        ("https://cdn.example.com/a.jpg", "https://cdn.example.com/a.jpg"),
        ("relative/a.jpg", ""),
    ],
)
def test_avatar_url(photo, expected):
    assert make_user(7, "Andrii", "P", photo).avatar_url() == expected


def test_user_without_photos():
    user = make_user(7, "", "")
    assert user.avatar_url() == ""
    assert user.initial == "?"
    assert user.display_name == ""


def test_display_name_and_initial():
    user = make_user(7, "andrii", "Petrenko")
    assert user.display_name == "andrii Petrenko"
    assert user.initial == "A"


def test_interlocutor_depends_on_viewer_role():
    conv = make_conversation(1, client_id=42, psychologist_id=7)

    assert conv.interlocutor(UserRole.CLIENT).id == 7
    assert conv.interlocutor(UserRole.PSYCHOLOGIST).id == 42
    assert conv.interlocutor(None).id == 42
    assert conv.involves(42) and conv.involves(7) and not conv.involves(1)


def test_last_activity_falls_back_to_creation():
    assert make_conversation(1).last_activity_at == BASE_TS


def test_message_is_from():
    msg = make_message(1, sender_id=7)
    assert msg.is_from(7)
    assert not msg.is_from(42)
    assert not msg.is_from(None)


@pytest.mark.parametrize(
    ("api", "ws"),
    [
        ("http://localhost:8080", "ws://localhost:8080"),
        ("https://neurohelp.example/", "wss://neurohelp.example"),
    ],
)
def test_build_ws_base(api, ws):
    assert build_ws_base(api) == ws


def test_live_url_encodes_token():
    assert build_live_url("ws://h/", 42, "a b/c") == "ws://h/api/ws/42?token=a%20b%2Fc"


def test_reconnect_disabled_by_default():
    assert ReconnectPolicy().next_delay(0) is None


def test_reconnect_backoff_is_capped():
    policy = ReconnectPolicy(enabled=True, base_delay=1.0, max_delay=5.0, max_attempts=4)

    assert [policy.next_delay(n) for n in range(5)] == [1.0, 2.0, 4.0, 5.0, None]
