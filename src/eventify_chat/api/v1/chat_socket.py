"""Socket.IO server wiring for the chat protocol."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from eventify_chat.api.v1.handlers.chat import ChatProtocolHandler
from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import AuthenticationError
from eventify_chat.application.ports.auth import TokenVerifier
from eventify_chat.config import settings
from eventify_chat.infrastructure.auth.claims import INVALID_TOKEN
from eventify_chat.infrastructure.ws.authenticator import authenticate
from eventify_chat.infrastructure.ws.protocol import ChatEvent
from eventify_chat.infrastructure.ws.rooms import RoomRouter

logger = logging.getLogger(__name__)

EventMethod = Callable[[str, Identity, Any], Awaitable[dict[str, Any]]]


def create_sio() -> socketio.AsyncServer:
    client_manager = None
    if settings.SOCKETIO_REDIS_FANOUT:
        client_manager = socketio.AsyncRedisManager(
            settings.REDIS_URL, channel=settings.SOCKETIO_REDIS_CHANNEL,
        )
        logger.info("Socket.IO fan-out through Redis channel %s", settings.SOCKETIO_REDIS_CHANNEL)

    origins: str | list[str] = "*" if "*" in settings.CORS_ORIGINS else settings.CORS_ORIGINS
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=origins,
        ping_interval=settings.SOCKETIO_PING_INTERVAL,
        ping_timeout=settings.SOCKETIO_PING_TIMEOUT,
        client_manager=client_manager,
    )


class ChatSocketGateway:
    """Authenticates connections and routes socket events to the protocol handler."""

    def __init__(
        self,
        sio: socketio.AsyncServer,
        handler: ChatProtocolHandler,
        rooms: RoomRouter,
        verifier: Callable[[], TokenVerifier],
    ) -> None:
        self._sio = sio
        self._handler = handler
        self._rooms = rooms
        self._verifier = verifier

    def register(self) -> None:
        self._sio.on("connect", handler=self.connect)
        self._sio.on("disconnect", handler=self.disconnect)
        routes: dict[ChatEvent, EventMethod] = {
            ChatEvent.START_CHAT: self._handler.start_chat,
            ChatEvent.SEND_MESSAGE: self._handler.send_message,
            ChatEvent.GET_CHAT_HISTORY: self._handler.get_chat_history,
            ChatEvent.GET_ALL_CHATS: self._handler.get_all_chats,
            ChatEvent.DELETE_CHAT: self._handler.delete_chat,
            ChatEvent.PING: self._handler.ping,
        }
        for event, method in routes.items():
            self._sio.on(event.value, handler=self._bind(method))

    async def connect(self, sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        try:
            identity = await authenticate(environ, auth, self._verifier())
        except AuthenticationError as exc:
            logger.info("Connection %s rejected: %s", sid, exc.reason)
            raise SocketConnectionRefused(exc.reason) from exc
        except Exception as exc:
            logger.exception("Connection %s failed during authentication", sid)
            raise SocketConnectionRefused(INVALID_TOKEN) from exc

        await self._sio.save_session(sid, identity.to_session())
        await self._rooms.join_identity_rooms(sid, identity)
        logger.info("User connected: %s (%s) sid=%s", identity.id, identity.role, sid)

    async def disconnect(self, sid: str, reason: Any = None) -> None:
        logger.info("Connection %s closed: %s", sid, reason or "client disconnect")

    def _bind(self, method: EventMethod) -> Callable[..., Awaitable[dict[str, Any]]]:
        async def _on_event(sid: str, data: Any = None) -> dict[str, Any]:
            session = await self._sio.get_session(sid)
            return await method(sid, Identity.from_session(session), data)

        return _on_event
