from __future__ import annotations

from datetime import timedelta
from typing import Any

import pytest
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from eventify_chat.api.v1.chat_socket import ChatSocketGateway
from eventify_chat.api.v1.handlers.chat import ChatProtocolHandler
from eventify_chat.domain.value_objects.enums import Role
from eventify_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from eventify_chat.infrastructure.ws.rooms import RoomRouter, room_for_party, room_for_role
from tests.conftest import ORGANIZER_ID, TEST_SECRET, USER_ID, make_token


class FakeSio:
    def __init__(self) -> None:
        self.handlers: dict[str, Any] = {}
        self.sessions: dict[str, dict[str, Any]] = {}

    def on(self, event: str, handler: Any = None, namespace: str | None = None) -> None:
        self.handlers[event] = handler

    async def save_session(self, sid: str, session: dict[str, Any]) -> None:
        self.sessions[sid] = session

    async def get_session(self, sid: str) -> dict[str, Any]:
        return self.sessions[sid]


@pytest.fixture
def sio() -> FakeSio:
    return FakeSio()


@pytest.fixture
def gateway(sio, hub, uow) -> ChatSocketGateway:
    rooms = RoomRouter(hub)
    handler = ChatProtocolHandler(hub, rooms, lambda: uow)
    gateway = ChatSocketGateway(sio, handler, rooms, lambda: HS256Verifier(TEST_SECRET))
    gateway.register()
    return gateway


def test_register_binds_every_client_event(sio, gateway):
    assert set(sio.handlers) == {
        "connect",
        "disconnect",
        "start_chat",
        "send_message",
        "get_chat_history",
        "get_all_chats",
        "delete_chat",
        "ping",
    }


@pytest.mark.asyncio
async def test_connect_stores_identity_and_joins_rooms(sio, hub, gateway):
    await gateway.connect("s1", {}, {"token": make_token(ORGANIZER_ID, "ORGANIZER")})

    assert sio.sessions["s1"]["id"] == str(ORGANIZER_ID)
    assert sio.sessions["s1"]["role"] == "ORGANIZER"
    assert "s1" in hub.rooms[room_for_party(ORGANIZER_ID)]
    assert "s1" in hub.rooms[room_for_role(Role.ORGANIZER)]


@pytest.mark.asyncio
async def test_connect_without_token_is_refused(sio, hub, gateway):
    with pytest.raises(SocketConnectionRefused) as exc_info:
        await gateway.connect("s1", {}, None)

    assert exc_info.value.error_args == {"message": "no token provided"}
    assert sio.sessions == {}
    assert hub.rooms == {}


@pytest.mark.asyncio
async def test_connect_with_expired_token_is_refused(gateway):
    with pytest.raises(SocketConnectionRefused):
        await gateway.connect("s1", {}, {"token": make_token(expires_in=timedelta(seconds=-1))})


@pytest.mark.asyncio
async def test_events_run_as_the_connected_identity(sio, hub, gateway):
    await gateway.connect("u1", {}, {"token": make_token(USER_ID, "USER")})

    ack = await sio.handlers["start_chat"](
        "u1", {"userId": str(USER_ID), "organizerId": str(ORGANIZER_ID)},
    )

    assert ack["success"] is True
    assert ack["data"]["isNew"] is True


@pytest.mark.asyncio
async def test_event_without_payload(sio, gateway):
    await gateway.connect("u1", {}, {"token": make_token(USER_ID, "USER")})

    ack = await sio.handlers["get_all_chats"]("u1")

    assert ack["success"] is False
    assert ack["message"] == "Only organizers can view all chats"


class BrokenVerifier:
    async def verify(self, token: str):
        raise RuntimeError("key server unreachable")


@pytest.mark.asyncio
async def test_connect_refused_when_verifier_fails_unexpectedly(sio, hub, uow):
    rooms = RoomRouter(hub)
    gateway = ChatSocketGateway(sio, ChatProtocolHandler(hub, rooms, lambda: uow), rooms, BrokenVerifier)

    with pytest.raises(SocketConnectionRefused) as exc_info:
        await gateway.connect("s1", {}, {"token": make_token()})

    assert exc_info.value.error_args == {"message": "invalid token"}
    assert sio.sessions == {}
