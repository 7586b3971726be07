"""Shared test fixtures."""
from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import jwt
import pytest

from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import ConflictError, NotFoundError
from eventify_chat.application.policies.ids import parse_id
from eventify_chat.domain.entities.conversation import Conversation
from eventify_chat.domain.entities.message import Message
from eventify_chat.domain.entities.party import PartyProfile
from eventify_chat.domain.value_objects.enums import Role

USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000123")
OTHER_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000124")
ORGANIZER_ID = uuid.UUID("00000000-0000-4000-8000-000000000456")
OTHER_ORGANIZER_ID = uuid.UUID("00000000-0000-4000-8000-000000000457")

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user_identity() -> Identity:
    return Identity(id=str(USER_ID), role=Role.USER, email="user@example.com")


@pytest.fixture
def other_user_identity() -> Identity:
    return Identity(id=str(OTHER_USER_ID), role=Role.USER)


@pytest.fixture
def organizer_identity() -> Identity:
    return Identity(id=str(ORGANIZER_ID), role=Role.ORGANIZER, email="events@example.com")


@pytest.fixture
def other_organizer_identity() -> Identity:
    return Identity(id=str(OTHER_ORGANIZER_ID), role=Role.ORGANIZER)


def make_token(
    party_id: UUID | str = USER_ID,
    role: str = "USER",
    *,
    secret: str = TEST_SECRET,
    expires_in: timedelta = timedelta(hours=1),
    **extra: Any,
) -> str:
    payload: dict[str, Any] = {
        "user": {"id": str(party_id), "email": "someone@example.com"},
        "role": role,
        "sessionId": "sess-1",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    payload.update(extra)
    return jwt.encode(payload, secret, algorithm="HS256")


def make_message(
    *,
    conversation_id: UUID,
    sender: Role = Role.USER,
    text: str = "hello",
    sent_at: datetime = T0,
    client_msg_id: UUID | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender=sender,
        text=text,
        client_msg_id=client_msg_id or uuid.uuid4(),
        sent_at=sent_at,
    )


def make_conversation(
    *,
    conversation_id: UUID | None = None,
    user_id: UUID = USER_ID,
    organizer_id: UUID = ORGANIZER_ID,
    is_active: bool = True,
    last_activity: datetime = T0,
    updated_at: datetime = T0,
    texts: tuple[str, ...] = ("Hello! I'd like to inquire about your events.",),
) -> Conversation:
    cid = conversation_id or uuid.uuid4()
    return Conversation(
        id=cid,
        user_id=user_id,
        organizer_id=organizer_id,
        is_active=is_active,
        last_activity=last_activity,
        created_at=T0,
        updated_at=updated_at,
        messages=tuple(
            make_message(conversation_id=cid, text=t, sent_at=T0) for t in texts
        ),
    )


class FixedClock:
    def __init__(self, at: datetime = T0) -> None:
        self.at = at

    def now(self) -> datetime:
        return self.at

    def advance(self, seconds: float = 1) -> None:
        self.at += timedelta(seconds=seconds)


@dataclass
class FakeConversationRepo:
    """In-memory store with the same invariants as the SQL one."""

    _store: dict[UUID, Conversation] = field(default_factory=dict)
    fail_next_create: bool = False

    def add(self, conversation: Conversation) -> Conversation:
        self._store[conversation.id] = conversation
        return conversation

    def _active_for_pair(self, user_id: UUID, organizer_id: UUID, *, exclude: UUID | None = None) -> bool:
        return any(
            c.is_active and c.user_id == user_id and c.organizer_id == organizer_id and c.id != exclude
            for c in self._store.values()
        )

    async def get(self, conversation_id: UUID | str) -> Conversation | None:
        return self._store.get(parse_id(conversation_id))

    async def find_active(self, user_id: UUID | str, organizer_id: UUID | str) -> Conversation | None:
        uid, oid = parse_id(user_id), parse_id(organizer_id)
        candidates = [
            c for c in self._store.values()
            if c.is_active and c.user_id == uid and c.organizer_id == oid
        ]
        return max(candidates, key=lambda c: c.created_at, default=None)

    async def create(self, conversation: Conversation) -> Conversation:
        if self.fail_next_create:
            self.fail_next_create = False
            raise ConflictError("An active chat already exists for this user and organizer")
        if self._active_for_pair(conversation.user_id, conversation.organizer_id):
            raise ConflictError("An active chat already exists for this user and organizer")
        return self.add(conversation)

    async def append_message(self, conversation_id: UUID | str, message: Message) -> Conversation:
        cid = parse_id(conversation_id)
        conv = self._store.get(cid)
        if conv is None:
            raise NotFoundError("Chat not found")
        if not conv.is_active and self._active_for_pair(conv.user_id, conv.organizer_id, exclude=cid):
            raise ConflictError("An active chat already exists for this user and organizer")
        duplicate = any(
            m.sender == message.sender and m.client_msg_id == message.client_msg_id
            for m in conv.messages
        )
        if conv.messages and message.sent_at < conv.messages[-1].sent_at:
            message = dataclasses.replace(message, sent_at=conv.messages[-1].sent_at)
        updated = dataclasses.replace(
            conv,
            is_active=True,
            last_activity=max(conv.last_activity, message.sent_at),
            messages=conv.messages if duplicate else conv.messages + (message,),
        )
        return self.add(updated)

    async def find_message(self, conversation_id: UUID | str, sender: Role, client_msg_id: UUID) -> Message | None:
        conv = self._store.get(parse_id(conversation_id))
        if conv is None:
            return None
        return next(
            (m for m in conv.messages if m.sender == sender and m.client_msg_id == client_msg_id),
            None,
        )

    async def list_active_for_organizer(self, organizer_id: UUID | str) -> list[Conversation]:
        oid = parse_id(organizer_id)
        active = [c for c in self._store.values() if c.is_active and c.organizer_id == oid]
        return sorted(active, key=lambda c: (c.last_activity, c.updated_at), reverse=True)

    async def soft_delete(self, conversation_id: UUID | str, at: datetime) -> Conversation:
        cid = parse_id(conversation_id)
        conv = self._store.get(cid)
        if conv is None:
            raise NotFoundError("Chat not found")
        return self.add(dataclasses.replace(conv, is_active=False, last_activity=at))


@dataclass
class FakePartyDirectory:
    _profiles: dict[UUID, PartyProfile] = field(default_factory=dict)

    def add(self, party_id: UUID, role: Role, name: str) -> PartyProfile:
        profile = PartyProfile(
            id=party_id, role=role, name=name, email=f"{name.lower()}@example.com", profile_image=None,
        )
        self._profiles[party_id] = profile
        return profile

    async def get_organizer(self, organizer_id: UUID) -> PartyProfile | None:
        profile = self._profiles.get(organizer_id)
        return profile if profile and profile.role == Role.ORGANIZER else None

    async def get_many(self, ids: set[UUID]) -> dict[UUID, PartyProfile]:
        return {i: self._profiles[i] for i in ids if i in self._profiles}


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""

    conversations: FakeConversationRepo = field(default_factory=FakeConversationRepo)
    parties: FakePartyDirectory = field(default_factory=FakePartyDirectory)
    _committed: bool = False
    _rolled_back: bool = False

    def __post_init__(self) -> None:
        self.parties.add(USER_ID, Role.USER, "Alice")
        self.parties.add(OTHER_USER_ID, Role.USER, "Bob")
        self.parties.add(ORGANIZER_ID, Role.ORGANIZER, "Festivals")
        self.parties.add(OTHER_ORGANIZER_ID, Role.ORGANIZER, "Concerts")

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._rolled_back = True

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type: Any, *rest: Any) -> None:
        if exc_type is not None:
            await self.rollback()


@dataclass
class FakeHub:
    """Records room joins and emits; delivers per connection like Socket.IO does."""

    rooms: dict[str, set[str]] = field(default_factory=dict)
    emitted: list[tuple[str, dict[str, Any], str | list[str]]] = field(default_factory=list)

    async def enter_room(self, sid: str, room: str) -> None:
        self.rooms.setdefault(room, set()).add(sid)

    async def emit(self, event: str, data: dict[str, Any], *, to: str | list[str]) -> None:
        self.emitted.append((event, data, to))

    def recipients(self, to: str | list[str]) -> set[str]:
        targets = [to] if isinstance(to, str) else to
        sids: set[str] = set()
        for target in targets:
            if target in self.rooms:
                sids |= self.rooms[target]
            elif not target.startswith(("party_", "role_", "chat_")):
                # A bare sid is its own room, as in Socket.IO.
                sids.add(target)
        return sids

    def received(self, sid: str, event: str) -> list[dict[str, Any]]:
        """Payloads of ``event`` delivered to ``sid``, one per emit."""
        return [data for ev, data, to in self.emitted if ev == event and sid in self.recipients(to)]


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


@pytest.fixture
def hub() -> FakeHub:
    return FakeHub()
