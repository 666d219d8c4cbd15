from __future__ import annotations

from dataclasses import dataclass

from neurohelp_chat.config import Settings, settings as default_settings


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    """When (and whether) a dropped live connection is re-opened.

    The default never reconnects: a closed channel stays closed until the
    view opens a new session.
    """

    enabled: bool = False
    base_delay: float = 1.0
    max_delay: float = 30.0
    max_attempts: int | None = None

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> ReconnectPolicy:
        s = s or default_settings
        return cls(
            enabled=s.RECONNECT_ENABLED,
            base_delay=s.RECONNECT_BASE_DELAY,
            max_delay=s.RECONNECT_MAX_DELAY,
            max_attempts=s.RECONNECT_MAX_ATTEMPTS,
        )

    def next_delay(self, attempt: int) -> float | None:
        """Seconds to wait before reconnect ``attempt`` (0-based), None to give up."""
        if not self.enabled:
            return None
        if self.max_attempts is not None and attempt >= self.max_attempts:
            return None
        return min(self.base_delay * (2 ** attempt), self.max_delay)
