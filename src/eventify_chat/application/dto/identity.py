from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from eventify_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller identity extracted from the connection token."""

    id: str
    role: Role
    email: str | None = None
    session_id: str | None = None

    @property
    def is_organizer(self) -> bool:
        return self.role == Role.ORGANIZER

    def matches(self, party_id: UUID | str) -> bool:
        """True if ``party_id`` refers to this identity, tolerating non-canonical UUID text."""
        if str(party_id) == self.id:
            return True
        try:
            return UUID(str(party_id)) == UUID(self.id)
        except ValueError:
            return False

    def to_session(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "role": self.role.value,
            "email": self.email,
            "session_id": self.session_id,
        }

    @classmethod
    def from_session(cls, data: dict[str, str | None]) -> Identity:
        return cls(
            id=str(data["id"]),
            role=Role(data["role"]),
            email=data.get("email"),
            session_id=data.get("session_id"),
        )
