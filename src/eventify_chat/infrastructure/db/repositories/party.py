from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventify_chat.domain.entities.party import PartyProfile
from eventify_chat.infrastructure.db.mappers import party as mapper
from eventify_chat.infrastructure.db.models.party import OrganizerModel, UserModel


class PartyDirectoryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_organizer(self, organizer_id: UUID) -> PartyProfile | None:
        model = await self._session.get(OrganizerModel, organizer_id)
        return mapper.organizer_to_entity(model) if model else None

    async def get_many(self, ids: set[UUID]) -> dict[UUID, PartyProfile]:
        if not ids:
            return {}
        profiles: dict[UUID, PartyProfile] = {}
        users = await self._session.execute(select(UserModel).where(UserModel.id.in_(ids)))
        for model in users.scalars().all():
            profiles[model.id] = mapper.user_to_entity(model)
        organizers = await self._session.execute(
            select(OrganizerModel).where(OrganizerModel.id.in_(ids))
        )
        for model in organizers.scalars().all():
            profiles[model.id] = mapper.organizer_to_entity(model)
        return profiles
