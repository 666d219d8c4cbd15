from __future__ import annotations

import logging
from datetime import datetime, timezone

import jwt

from neurohelp_chat.application.dto.session import Session
from neurohelp_chat.domain.value_objects.enums import UserRole

logger = logging.getLogger(__name__)


def session_from_token(token: str | None, *, user_id: int | None = None) -> Session:
    """Build a Session from an access token's claims.

    The signature is not checked: the server owns the secret and rejects bad
    tokens itself. Undecodable tokens still produce a session carrying the token.
    """
    if not token:
        return Session.anonymous()
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        logger.debug("Access token claims are unreadable", exc_info=True)
        return Session(token=token, user_id=user_id)

    role_raw = claims.get("role")
    role = UserRole(role_raw) if role_raw in UserRole.__members__.values() else None
    exp = claims.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if isinstance(exp, (int, float)) else None
    return Session(
        token=token,
        user_id=user_id,
        role=role,
        username=claims.get("username"),
        expires_at=expires_at,
    )
