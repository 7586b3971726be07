"""Chat operations between users and organizers.

Each function validates its raw input, enforces authorization for the calling
identity and talks to the store through the unit of work. Broadcasting is left
to the caller.
"""
from __future__ import annotations

import logging
import uuid

from eventify_chat.application.dto.chat import (
    ChatDetails,
    DeleteChatResult,
    SendMessageResult,
    StartChatResult,
)
from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from eventify_chat.application.policies.ids import parse_id
from eventify_chat.application.policies.permissions import (
    assert_can_send,
    assert_can_view,
    assert_found,
    assert_owner_organizer,
    assert_role,
)
from eventify_chat.application.ports.clock import Clock, SystemClock
from eventify_chat.application.uow import UnitOfWork
from eventify_chat.domain.entities.conversation import Conversation
from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.value_objects.enums import Role

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_MESSAGE = "Hello! I'd like to inquire about your events."

_system_clock = SystemClock()


async def start_chat(
    identity: Identity,
    user_id: str | None,
    organizer_id: str | None,
    initial_message: str | None,
    uow: UnitOfWork,
    *,
    default_message: str = DEFAULT_INITIAL_MESSAGE,
    clock: Clock = _system_clock,
) -> StartChatResult:
    """Return the active chat for (user, organizer), creating it if needed."""
    if not user_id or not organizer_id:
        raise ValidationError("User ID and Organizer ID are required")
    if not identity.matches(user_id):
        raise ForbiddenError("You can only start chats for your own account")
    assert_role(identity, Role.USER, "Only regular users can start chats with organizers")

    user_uuid = parse_id(user_id, "Invalid user or organizer ID format")
    organizer_uuid = parse_id(organizer_id, "Invalid user or organizer ID format")

    organizer = await uow.parties.get_organizer(organizer_uuid)
    if organizer is None:
        raise NotFoundError("Organizer not found")

    existing = await uow.conversations.find_active(user_uuid, organizer_uuid)
    if existing is not None:
        return StartChatResult(await _details(existing, uow), is_new=False)

    now = clock.now()
    conversation_id = uuid.uuid4()
    text = (initial_message or "").strip() or default_message
    conversation = Conversation(
        id=conversation_id,
        user_id=user_uuid,
        organizer_id=organizer_uuid,
        is_active=True,
        last_activity=now,
        created_at=now,
        updated_at=now,
        messages=(
            Message(
                id=uuid.uuid4(),
                conversation_id=conversation_id,
                sender=Role.USER,
                text=text,
                client_msg_id=uuid.uuid4(),
                sent_at=now,
            ),
        ),
    )

    try:
        conversation = await uow.conversations.create(conversation)
    except ConflictError:
        # Lost a create race for the same pair; the winner is the active chat.
        winner = await uow.conversations.find_active(user_uuid, organizer_uuid)
        if winner is None:
            raise
        logger.info("start_chat race for %s/%s resolved to %s", user_uuid, organizer_uuid, winner.id)
        return StartChatResult(await _details(winner, uow), is_new=False)

    await uow.commit()
    logger.info("Chat %s started by user %s with organizer %s", conversation.id, user_uuid, organizer_uuid)
    return StartChatResult(await _details(conversation, uow), is_new=True)


async def send_message(
    identity: Identity,
    chat_id: str | None,
    text: str | None,
    client_msg_id: str | None,
    uow: UnitOfWork,
    *,
    clock: Clock = _system_clock,
) -> SendMessageResult:
    """Append a message as the caller's role.

    Sending into a soft-deleted chat makes it active again. A repeated
    ``client_msg_id`` returns the stored message with ``created=False``.
    """
    body = (text or "").strip() if isinstance(text, str) else ""
    if not chat_id or not body:
        raise ValidationError("Chat ID and message text are required")

    conversation_id = parse_id(chat_id, "Invalid chat ID format")
    client_key = (
        parse_id(client_msg_id, "Invalid client message ID format")
        if client_msg_id
        else uuid.uuid4()
    )

    conversation = assert_found(await uow.conversations.get(conversation_id))
    assert_can_send(identity, conversation)

    duplicate = await uow.conversations.find_message(conversation_id, identity.role, client_key)
    if duplicate is not None:
        return SendMessageResult(conversation, duplicate, created=False)

    message = Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender=identity.role,
        text=body,
        client_msg_id=client_key,
        sent_at=clock.now(),
    )
    conversation = await uow.conversations.append_message(conversation_id, message)
    await uow.commit()

    stored = next(
        (
            m for m in reversed(conversation.messages)
            if m.client_msg_id == client_key and m.sender == identity.role
        ),
        message,
    )
    return SendMessageResult(conversation, stored, created=stored.id == message.id)


async def get_chat_history(
    identity: Identity,
    chat_id: str | None,
    uow: UnitOfWork,
) -> ChatDetails:
    if not chat_id:
        raise ValidationError("Valid chat ID is required")
    conversation_id = parse_id(chat_id, "Valid chat ID is required")

    conversation = assert_found(await uow.conversations.get(conversation_id))
    assert_can_view(identity, conversation)
    return await _details(conversation, uow)


async def list_chats(identity: Identity, uow: UnitOfWork) -> list[ChatDetails]:
    """Active chats of the calling organizer, most recent activity first."""
    assert_role(identity, Role.ORGANIZER, "Only organizers can view all chats")
    organizer_id = parse_id(identity.id, "Invalid organizer ID format")

    conversations = await uow.conversations.list_active_for_organizer(organizer_id)
    party_ids = {c.user_id for c in conversations} | {organizer_id}
    profiles = await uow.parties.get_many(party_ids)
    return [
        ChatDetails(c, profiles.get(c.user_id), profiles.get(c.organizer_id))
        for c in conversations
    ]


async def delete_chat(
    identity: Identity,
    chat_id: str | None,
    uow: UnitOfWork,
    *,
    clock: Clock = _system_clock,
) -> DeleteChatResult:
    """Soft-delete a chat. Only its organizer may do this."""
    if not chat_id:
        raise ValidationError("Valid chat ID is required")
    conversation_id = parse_id(chat_id, "Valid chat ID is required")

    conversation = assert_found(await uow.conversations.get(conversation_id))
    assert_owner_organizer(identity, conversation)

    deleted_at = clock.now()
    conversation = await uow.conversations.soft_delete(conversation_id, deleted_at)
    await uow.commit()
    logger.info("Chat %s deleted by organizer %s", conversation_id, identity.id)
    return DeleteChatResult(conversation, deleted_at)


async def _details(conversation: Conversation, uow: UnitOfWork) -> ChatDetails:
    profiles = await uow.parties.get_many({conversation.user_id, conversation.organizer_id})
    return ChatDetails(
        conversation=conversation,
        user=profiles.get(conversation.user_id),
        organizer=profiles.get(conversation.organizer_id),
    )
