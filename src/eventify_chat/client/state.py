"""Client-side view state for chat screens."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from eventify_chat.api.v1.schemas.chat import ChatView, MessageView, OrganizerSummary, UserSummary
from eventify_chat.domain.value_objects.enums import Role


class MessageStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass(slots=True)
class LocalMessage:
    """A message as shown on screen; optimistic until the server confirms it."""

    local_id: str
    client_msg_id: str
    sender: Role
    text: str
    sent_at: datetime
    status: MessageStatus = MessageStatus.PENDING
    server_id: UUID | None = None

    @classmethod
    def from_view(cls, view: MessageView) -> LocalMessage:
        return cls(
            local_id=str(view.id),
            client_msg_id=str(view.client_msg_id),
            sender=view.sender,
            text=view.text,
            sent_at=view.sent_at,
            status=MessageStatus.SENT,
            server_id=view.id,
        )

    def confirm(self, view: MessageView) -> None:
        self.server_id = view.id
        self.sent_at = view.sent_at
        self.text = view.text
        self.status = MessageStatus.SENT


@dataclass(slots=True)
class ChatRow:
    """One entry of the organizer chat list."""

    chat_id: str
    user: UserSummary
    organizer: OrganizerSummary
    last_message: MessageView | None
    last_activity: datetime
    is_active: bool = True
    unread: int = 0

    @classmethod
    def from_view(cls, view: ChatView, unread: int = 0) -> ChatRow:
        return cls(
            chat_id=str(view.id),
            user=view.user,
            organizer=view.organizer,
            last_message=view.messages[-1] if view.messages else None,
            last_activity=view.last_activity,
            is_active=view.is_active,
            unread=unread,
        )
