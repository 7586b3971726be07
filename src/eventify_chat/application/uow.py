from __future__ import annotations

from typing import Protocol, Self

from eventify_chat.application.repositories.conversation import ConversationRepository
from eventify_chat.application.repositories.party import PartyDirectory


class UnitOfWork(Protocol):
    conversations: ConversationRepository
    parties: PartyDirectory

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...

    async def __aenter__(self) -> Self: ...
    async def __aexit__(self, *exc_info: object) -> None: ...
