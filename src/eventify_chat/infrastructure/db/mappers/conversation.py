from __future__ import annotations

from eventify_chat.domain.entities.conversation import Conversation
from eventify_chat.infrastructure.db.mappers import message as message_mapper
from eventify_chat.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        user_id=model.user_id,
        organizer_id=model.organizer_id,
        is_active=model.is_active,
        last_activity=model.last_activity,
        created_at=model.created_at,
        updated_at=model.updated_at,
        messages=tuple(message_mapper.model_to_entity(m) for m in model.messages),
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    """Conversation row only; messages are inserted separately to get their ``seq``."""
    return ConversationModel(
        id=entity.id,
        user_id=entity.user_id,
        organizer_id=entity.organizer_id,
        is_active=entity.is_active,
        last_activity=entity.last_activity,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
