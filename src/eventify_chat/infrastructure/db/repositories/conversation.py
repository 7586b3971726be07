from __future__ import annotations

import dataclasses
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eventify_chat.application.exceptions import ConflictError, NotFoundError
from eventify_chat.application.policies.ids import parse_id
from eventify_chat.domain.entities.conversation import Conversation
from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.value_objects.enums import Role
from eventify_chat.infrastructure.db.mappers import conversation as mapper
from eventify_chat.infrastructure.db.mappers import message as message_mapper
from eventify_chat.infrastructure.db.models.conversation import ConversationModel
from eventify_chat.infrastructure.db.models.message import MessageModel

_ACTIVE_PAIR_CONFLICT = "An active chat already exists for this user and organizer"


class ConversationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _select(self):
        # populate_existing: rows updated through Core statements must not come
        # back stale from the identity map.
        return (
            select(ConversationModel)
            .options(selectinload(ConversationModel.messages))
            .execution_options(populate_existing=True)
        )

    async def _load(self, conversation_id: UUID) -> ConversationModel | None:
        result = await self._session.execute(
            self._select().where(ConversationModel.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def get(self, conversation_id: UUID | str) -> Conversation | None:
        model = await self._load(parse_id(conversation_id))
        return mapper.model_to_entity(model) if model else None

    async def find_active(
        self,
        user_id: UUID | str,
        organizer_id: UUID | str,
    ) -> Conversation | None:
        stmt = (
            self._select()
            .where(
                ConversationModel.user_id == parse_id(user_id),
                ConversationModel.organizer_id == parse_id(organizer_id),
                ConversationModel.is_active.is_(True),
            )
            .order_by(ConversationModel.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def create(self, conversation: Conversation) -> Conversation:
        try:
            async with self._session.begin_nested():
                self._session.add(mapper.entity_to_model(conversation))
                await self._session.flush()
                for message in conversation.messages:
                    await self._session.execute(
                        pg_insert(MessageModel).values(**message_mapper.entity_to_values(message))
                    )
        except IntegrityError as exc:
            raise ConflictError(_ACTIVE_PAIR_CONFLICT) from exc

        model = await self._load(conversation.id)
        assert model is not None
        return mapper.model_to_entity(model)

    async def append_message(
        self,
        conversation_id: UUID | str,
        message: Message,
    ) -> Conversation:
        cid = parse_id(conversation_id)
        try:
            async with self._session.begin_nested():
                # Row update first: it locks the conversation, so appends to the
                # same conversation are serialized and the sent_at floor below holds.
                result = await self._session.execute(
                    update(ConversationModel)
                    .where(ConversationModel.id == cid)
                    .values(
                        last_activity=func.greatest(ConversationModel.last_activity, message.sent_at),
                        is_active=True,
                        updated_at=func.now(),
                    )
                    .returning(ConversationModel.id)
                )
                if result.scalar_one_or_none() is None:
                    raise NotFoundError("Chat not found")

                latest = await self._session.scalar(
                    select(func.max(MessageModel.sent_at)).where(MessageModel.conversation_id == cid)
                )
                if latest is not None and message.sent_at < latest:
                    message = dataclasses.replace(message, sent_at=latest)

                await self._session.execute(
                    pg_insert(MessageModel)
                    .values(**message_mapper.entity_to_values(message))
                    .on_conflict_do_nothing(constraint="uq_chat_message_idempotency")
                )
        except IntegrityError as exc:
            # Reactivating a soft-deleted chat while the pair has a newer active one.
            raise ConflictError(_ACTIVE_PAIR_CONFLICT) from exc

        model = await self._load(cid)
        assert model is not None
        return mapper.model_to_entity(model)

    async def find_message(
        self,
        conversation_id: UUID | str,
        sender: Role,
        client_msg_id: UUID,
    ) -> Message | None:
        stmt = select(MessageModel).where(
            MessageModel.conversation_id == parse_id(conversation_id),
            MessageModel.sender == sender.value,
            MessageModel.client_msg_id == client_msg_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return message_mapper.model_to_entity(model) if model else None

    async def list_active_for_organizer(
        self,
        organizer_id: UUID | str,
    ) -> list[Conversation]:
        stmt = (
            self._select()
            .where(
                ConversationModel.organizer_id == parse_id(organizer_id),
                ConversationModel.is_active.is_(True),
            )
            .order_by(
                ConversationModel.last_activity.desc(),
                ConversationModel.updated_at.desc(),
            )
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def soft_delete(
        self,
        conversation_id: UUID | str,
        at: datetime,
    ) -> Conversation:
        cid = parse_id(conversation_id)
        result = await self._session.execute(
            update(ConversationModel)
            .where(ConversationModel.id == cid)
            .values(is_active=False, last_activity=at, updated_at=func.now())
            .returning(ConversationModel.id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Chat not found")

        model = await self._load(cid)
        assert model is not None
        return mapper.model_to_entity(model)
