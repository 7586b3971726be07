from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from eventify_chat.domain.entities.conversation import Conversation
from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.value_objects.enums import Role


class ConversationRepository(Protocol):
    """Durable conversation store.

    Every method that takes an id accepts its raw external form and raises
    ``InvalidIdError`` for malformed input before touching storage.
    """

    async def get(self, conversation_id: UUID | str) -> Conversation | None: ...

    async def find_active(
        self, user_id: UUID | str, organizer_id: UUID | str,
    ) -> Conversation | None: ...

    async def create(self, conversation: Conversation) -> Conversation:
        """Insert a new active conversation seeded with its first message.

        ``ConflictError`` if the pair already has an active conversation.
        """
        ...

    async def append_message(
        self, conversation_id: UUID | str, message: Message,
    ) -> Conversation:
        """Append, bump last_activity and mark active. Idempotent on client_msg_id.

        The stored sent_at is never earlier than the newest message already in
        the conversation.
        """
        ...

    async def find_message(
        self,
        conversation_id: UUID | str,
        sender: Role,
        client_msg_id: UUID,
    ) -> Message | None: ...

    async def list_active_for_organizer(
        self, organizer_id: UUID | str,
    ) -> list[Conversation]:
        """Active conversations, newest activity first (ties: newest update first)."""
        ...

    async def soft_delete(
        self, conversation_id: UUID | str, at: datetime,
    ) -> Conversation: ...
