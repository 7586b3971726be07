"""Seed development data: one user, one organizer and a chat between them.

Creates missing tables, then prints HS256 tokens for both parties so a local
client can connect straight away.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from eventify_chat.application.dto.identity import Identity
from eventify_chat.config import settings
from eventify_chat.domain.value_objects.enums import Role
from eventify_chat.infrastructure.db.base import Base
from eventify_chat.infrastructure.db.models import OrganizerModel, UserModel
from eventify_chat.infrastructure.db.session import AsyncSessionLocal, engine, new_uow
from eventify_chat.services import chat_service

logger = logging.getLogger(__name__)

USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000123")
ORGANIZER_ID = uuid.UUID("00000000-0000-4000-8000-000000000456")


def _dev_token(party_id: uuid.UUID, role: Role, email: str) -> str:
    payload = {
        "user": {"id": str(party_id), "email": email},
        "role": role.value,
        "sessionId": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(days=7),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        await session.merge(UserModel(id=USER_ID, user_name="Dev User", email="user@example.com"))
        await session.merge(
            OrganizerModel(id=ORGANIZER_ID, organizer_name="Dev Events", email="events@example.com")
        )
        await session.commit()

    user = Identity(id=str(USER_ID), role=Role.USER, email="user@example.com")
    organizer = Identity(id=str(ORGANIZER_ID), role=Role.ORGANIZER, email="events@example.com")

    async with new_uow() as uow:
        started = await chat_service.start_chat(
            user, str(USER_ID), str(ORGANIZER_ID), "Hi! Are there seats left for Saturday?", uow,
        )
    chat_id = str(started.details.conversation.id)

    replies = [
        (organizer, "Hello! Yes, about forty."),
        (user, "Great, I'll book two."),
    ]
    for sender, text in replies:
        async with new_uow() as uow:
            await chat_service.send_message(sender, chat_id, text, None, uow)

    logger.info("Seeded chat %s (new=%s)", chat_id, started.is_new)
    logger.info("User token: %s", _dev_token(USER_ID, Role.USER, "user@example.com"))
    logger.info("Organizer token: %s", _dev_token(ORGANIZER_ID, Role.ORGANIZER, "events@example.com"))
    await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
