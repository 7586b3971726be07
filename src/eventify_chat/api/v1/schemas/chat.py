"""Wire schemas for chat events. Field names are camelCase on the wire."""
from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from eventify_chat.application.dto.chat import ChatDetails
from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.entities.party import PartyProfile
from eventify_chat.domain.value_objects.enums import Role


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# -- client -> server ---------------------------------------------------------

class StartChatRequest(_Wire):
    user_id: str | None = None
    organizer_id: str | None = None
    initial_message: str | None = None


class SendMessageRequest(_Wire):
    chat_id: str | None = None
    text: str | None = None
    client_msg_id: str | None = None


class ChatIdRequest(_Wire):
    chat_id: str | None = None


# -- server -> client ---------------------------------------------------------

class MessageView(_Wire):
    id: UUID
    sender: Role
    text: str
    sent_at: datetime
    client_msg_id: UUID


class UserSummary(_Wire):
    id: UUID
    user_name: str | None = None
    email: str | None = None
    profile_image: str | None = None


class OrganizerSummary(_Wire):
    id: UUID
    organizer_name: str | None = None
    email: str | None = None
    profile_image: str | None = None


class ChatView(_Wire):
    id: UUID
    user: UserSummary
    organizer: OrganizerSummary
    messages: list[MessageView]
    is_active: bool
    last_activity: datetime
    created_at: datetime
    updated_at: datetime


def message_view(message: Message) -> MessageView:
    return MessageView(
        id=message.id,
        sender=message.sender,
        text=message.text,
        sent_at=message.sent_at,
        client_msg_id=message.client_msg_id,
    )


def user_summary(user_id: UUID, profile: PartyProfile | None) -> UserSummary:
    if profile is None:
        return UserSummary(id=user_id)
    return UserSummary(
        id=user_id,
        user_name=profile.name,
        email=profile.email,
        profile_image=profile.profile_image,
    )


def organizer_summary(organizer_id: UUID, profile: PartyProfile | None) -> OrganizerSummary:
    if profile is None:
        return OrganizerSummary(id=organizer_id)
    return OrganizerSummary(
        id=organizer_id,
        organizer_name=profile.name,
        email=profile.email,
        profile_image=profile.profile_image,
    )


def chat_view(details: ChatDetails) -> ChatView:
    conv = details.conversation
    return ChatView(
        id=conv.id,
        user=user_summary(conv.user_id, details.user),
        organizer=organizer_summary(conv.organizer_id, details.organizer),
        messages=[message_view(m) for m in conv.messages],
        is_active=conv.is_active,
        last_activity=conv.last_activity,
        created_at=conv.created_at,
        updated_at=conv.updated_at,
    )
