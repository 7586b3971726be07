from __future__ import annotations

from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.value_objects.enums import Role
from eventify_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender=Role(model.sender),
        text=model.text,
        client_msg_id=model.client_msg_id,
        sent_at=model.sent_at,
    )


def entity_to_values(entity: Message) -> dict[str, object]:
    """Column values for an INSERT; ``seq`` is assigned by the database."""
    return {
        "id": entity.id,
        "conversation_id": entity.conversation_id,
        "sender": entity.sender.value,
        "text": entity.text,
        "client_msg_id": entity.client_msg_id,
        "sent_at": entity.sent_at,
    }
