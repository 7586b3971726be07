from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    user_id: UUID
    organizer_id: UUID
    is_active: bool
    last_activity: datetime
    created_at: datetime
    updated_at: datetime
    messages: tuple[Message, ...] = field(default=())

    def party_id(self, role: Role) -> UUID:
        return self.user_id if role == Role.USER else self.organizer_id

    def counterpart_id(self, role: Role) -> UUID:
        return self.organizer_id if role == Role.USER else self.user_id
