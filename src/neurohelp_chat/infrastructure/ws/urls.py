from __future__ import annotations

from urllib.parse import quote, urlsplit, urlunsplit


def build_ws_base(api_base_url: str) -> str:
    """Map an http(s) API base URL onto the matching ws(s) base URL."""
    parts = urlsplit(api_base_url)
    scheme = {"https": "wss", "http": "ws"}.get(parts.scheme, parts.scheme)
    return urlunsplit((scheme, parts.netloc, parts.path.rstrip("/"), "", ""))


def build_live_url(ws_base_url: str, conversation_id: int, token: str) -> str:
    # The token travels in the query string: the handshake carries no auth header.
    return f"{ws_base_url.rstrip('/')}/api/ws/{conversation_id}?token={quote(token, safe='')}"
