from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from eventify_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    conversation_id: UUID
    sender: Role
    text: str
    client_msg_id: UUID
    sent_at: datetime
