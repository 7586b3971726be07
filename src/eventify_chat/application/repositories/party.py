from __future__ import annotations

from typing import Protocol
from uuid import UUID

from eventify_chat.domain.entities.party import PartyProfile


class PartyDirectory(Protocol):
    """Read-only access to user and organizer public profiles."""

    async def get_organizer(self, organizer_id: UUID) -> PartyProfile | None: ...

    async def get_many(self, ids: set[UUID]) -> dict[UUID, PartyProfile]:
        """Bulk lookup over both tables, keyed by id. Missing ids are absent."""
        ...
