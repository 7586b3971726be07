from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from eventify_chat.domain.entities.conversation import Conversation
from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.entities.party import PartyProfile


@dataclass(frozen=True, slots=True)
class ChatDetails:
    """A conversation together with the public profiles of both parties."""

    conversation: Conversation
    user: PartyProfile | None
    organizer: PartyProfile | None


@dataclass(frozen=True, slots=True)
class StartChatResult:
    details: ChatDetails
    is_new: bool


@dataclass(frozen=True, slots=True)
class SendMessageResult:
    conversation: Conversation
    message: Message
    created: bool


@dataclass(frozen=True, slots=True)
class DeleteChatResult:
    conversation: Conversation
    deleted_at: datetime
