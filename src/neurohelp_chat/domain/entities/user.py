from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ChatUser:
    """Participant snippet embedded in conversations and messages."""

    id: int
    first_name: str = ""
    last_name: str = ""
    photo_urls: tuple[str, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def initial(self) -> str:
        return self.first_name[:1].upper() or "?"

    def avatar_url(self, api_prefix: str = "/api") -> str:
        """Resolve the first portfolio photo to a URL the API serves."""
        if not self.photo_urls:
            return ""
        url = self.photo_urls[0]
        if url.startswith("/uploads"):
            return f"{api_prefix}{url}"
        if url.startswith(f"{api_prefix}/uploads") or url.startswith("http"):
            return url
        return ""
