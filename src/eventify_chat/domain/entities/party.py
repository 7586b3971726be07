from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from eventify_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class PartyProfile:
    """Public profile of a user or organizer, owned by the platform's CRUD side."""

    id: UUID
    role: Role
    name: str
    email: str | None
    profile_image: str | None
