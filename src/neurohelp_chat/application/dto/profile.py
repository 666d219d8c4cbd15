from __future__ import annotations

from dataclasses import dataclass

from neurohelp_chat.domain.value_objects.enums import UserRole


@dataclass(frozen=True, slots=True)
class ViewerProfile:
    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole | None
