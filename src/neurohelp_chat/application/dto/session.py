from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from neurohelp_chat.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class Session:
    """Credential and viewer identity handed to every controller."""

    token: str | None = None
    user_id: int | None = None
    role: UserRole | None = None
    username: str | None = None
    expires_at: datetime | None = None

    @classmethod
    def anonymous(cls) -> Session:
        return cls()

    @property
    def is_authenticated(self) -> bool:
        if not self.token:
            return False
        if self.expires_at is not None and self.expires_at <= datetime.now(timezone.utc):
            return False
        return True

    def authorization_header(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
