"""Broadcast group naming and membership for chat connections."""
from __future__ import annotations

import logging
from uuid import UUID

from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.ports.realtime import RealtimeHub
from eventify_chat.domain.value_objects.enums import Role

logger = logging.getLogger(__name__)


def _canonical(party_id: UUID | str) -> str:
    try:
        return str(UUID(str(party_id)))
    except ValueError:
        return str(party_id)


def room_for_party(party_id: UUID | str) -> str:
    """Personal room: every connection of one identity."""
    return f"party_{_canonical(party_id)}"


def room_for_role(role: Role) -> str:
    return f"role_{role.value.lower()}"


def room_for_chat(conversation_id: UUID | str) -> str:
    return f"chat_{_canonical(conversation_id)}"


class RoomRouter:
    """Joins connections to personal, role and conversation rooms."""

    def __init__(self, hub: RealtimeHub) -> None:
        self._hub = hub

    async def join_identity_rooms(self, sid: str, identity: Identity) -> None:
        await self._hub.enter_room(sid, room_for_party(identity.id))
        await self._hub.enter_room(sid, room_for_role(identity.role))
        logger.debug("Connection %s joined rooms of %s (%s)", sid, identity.id, identity.role)

    async def join_conversation(self, sid: str, conversation_id: UUID) -> None:
        await self._hub.enter_room(sid, room_for_chat(conversation_id))
        logger.debug("Connection %s joined %s", sid, room_for_chat(conversation_id))
