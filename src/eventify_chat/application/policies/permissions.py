from __future__ import annotations

from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import ForbiddenError, NotFoundError
from eventify_chat.domain.entities.conversation import Conversation
from eventify_chat.domain.value_objects.enums import Role


def assert_found(conversation: Conversation | None) -> Conversation:
    if conversation is None:
        raise NotFoundError("Chat not found")
    return conversation


def assert_can_send(identity: Identity, conversation: Conversation) -> None:
    """The caller must be the stored party for the role it connected with."""
    if not identity.matches(conversation.party_id(identity.role)):
        raise ForbiddenError("Unauthorized to send message in this chat")


def assert_can_view(identity: Identity, conversation: Conversation) -> None:
    if not (
        identity.matches(conversation.user_id)
        or identity.matches(conversation.organizer_id)
    ):
        raise ForbiddenError("Unauthorized to view this chat")


def assert_owner_organizer(identity: Identity, conversation: Conversation) -> None:
    if not identity.is_organizer or not identity.matches(conversation.organizer_id):
        raise ForbiddenError("Only the organizer of this chat can delete it")


def assert_role(identity: Identity, role: Role, detail: str) -> None:
    if identity.role != role:
        raise ForbiddenError(detail)
