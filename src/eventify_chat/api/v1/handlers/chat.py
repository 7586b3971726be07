"""Chat protocol handler: one method per inbound socket event.

Each call sends exactly one acknowledgment to the caller (``chat_success`` or
``chat_error``) and returns the same envelope, so Socket.IO clients that pass
an ack callback receive it too. Broadcasts follow a successful operation.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

import pydantic

from eventify_chat.api.v1.schemas.chat import (
    ChatIdRequest,
    SendMessageRequest,
    StartChatRequest,
    chat_view,
    message_view,
    organizer_summary,
    user_summary,
)
from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import AppError
from eventify_chat.application.ports.clock import Clock, MonotonicClock
from eventify_chat.application.ports.realtime import RealtimeHub
from eventify_chat.application.uow import UnitOfWork
from eventify_chat.infrastructure.ws.protocol import ChatAck, ChatEvent, error_ack, success_ack
from eventify_chat.infrastructure.ws.rooms import RoomRouter, room_for_chat, room_for_party
from eventify_chat.services import chat_service

logger = logging.getLogger(__name__)

UowFactory = Callable[[], UnitOfWork]

_FAILURE_MESSAGES: dict[ChatEvent, str] = {
    ChatEvent.START_CHAT: "Failed to start chat",
    ChatEvent.SEND_MESSAGE: "Failed to send message",
    ChatEvent.GET_CHAT_HISTORY: "Failed to get chat history",
    ChatEvent.GET_ALL_CHATS: "Failed to fetch chats",
    ChatEvent.DELETE_CHAT: "Failed to delete chat",
}


class ChatProtocolHandler:
    def __init__(
        self,
        hub: RealtimeHub,
        rooms: RoomRouter,
        uow_factory: UowFactory,
        *,
        clock: Clock | None = None,
        default_initial_message: str = chat_service.DEFAULT_INITIAL_MESSAGE,
    ) -> None:
        self._hub = hub
        self._rooms = rooms
        self._uow_factory = uow_factory
        self._clock = clock or MonotonicClock()
        self._default_initial_message = default_initial_message

    # -- events ---------------------------------------------------------------

    async def start_chat(self, sid: str, identity: Identity, payload: Any) -> dict[str, Any]:
        async def op() -> ChatAck:
            req = StartChatRequest.model_validate(payload)
            async with self._uow_factory() as uow:
                result = await chat_service.start_chat(
                    identity,
                    req.user_id,
                    req.organizer_id,
                    req.initial_message,
                    uow,
                    default_message=self._default_initial_message,
                    clock=self._clock,
                )
            conv = result.details.conversation
            await self._rooms.join_conversation(sid, conv.id)

            view = chat_view(result.details)
            data = {
                "chatId": str(conv.id),
                "messages": [m.to_wire() for m in view.messages],
                "participants": {
                    "user": view.user.to_wire(),
                    "organizer": view.organizer.to_wire(),
                },
                "isNew": result.is_new,
            }
            if not result.is_new:
                return await self._succeed(sid, ChatEvent.START_CHAT, "Existing chat found", data)

            ack = await self._succeed(sid, ChatEvent.START_CHAT, "Chat started successfully", data)
            await self._hub.emit(
                ChatEvent.NEW_CHAT,
                {
                    "chatId": str(conv.id),
                    "user": view.user.to_wire(),
                    "initialMessage": view.messages[0].to_wire(),
                    "timestamp": self._now_iso(),
                },
                to=room_for_party(conv.organizer_id),
            )
            return ack

        return await self._run(sid, ChatEvent.START_CHAT, identity, op)

    async def send_message(self, sid: str, identity: Identity, payload: Any) -> dict[str, Any]:
        async def op() -> ChatAck:
            req = SendMessageRequest.model_validate(payload)
            async with self._uow_factory() as uow:
                result = await chat_service.send_message(
                    identity, req.chat_id, req.text, req.client_msg_id, uow, clock=self._clock,
                )
            conv = result.conversation
            message = message_view(result.message).to_wire()
            ack = await self._succeed(
                sid,
                ChatEvent.SEND_MESSAGE,
                "Message sent successfully",
                {"chatId": str(conv.id), "message": message},
            )
            if not result.created:
                return ack

            # One emit over both rooms: a connection in both receives it once.
            await self._hub.emit(
                ChatEvent.NEW_MESSAGE,
                {
                    "chatId": str(conv.id),
                    "message": message,
                    "senderInfo": {"id": identity.id, "role": identity.role.value},
                },
                to=[
                    room_for_chat(conv.id),
                    room_for_party(conv.counterpart_id(identity.role)),
                ],
            )
            return ack

        raw_client_id = payload.get("clientMsgId") if isinstance(payload, dict) else None
        return await self._run(
            sid,
            ChatEvent.SEND_MESSAGE,
            identity,
            op,
            client_msg_id=raw_client_id if isinstance(raw_client_id, str) else None,
        )

    async def get_chat_history(self, sid: str, identity: Identity, payload: Any) -> dict[str, Any]:
        async def op() -> ChatAck:
            req = ChatIdRequest.model_validate(payload)
            async with self._uow_factory() as uow:
                details = await chat_service.get_chat_history(identity, req.chat_id, uow)
            conv = details.conversation
            await self._rooms.join_conversation(sid, conv.id)

            data = {
                "chatId": str(conv.id),
                "user": user_summary(conv.user_id, details.user).to_wire(),
                "organizer": organizer_summary(conv.organizer_id, details.organizer).to_wire(),
                "messages": [message_view(m).to_wire() for m in conv.messages],
                "isActive": conv.is_active,
                "lastActivity": conv.last_activity.isoformat(),
            }
            await self._hub.emit(ChatEvent.CHAT_HISTORY, {"success": True, **data}, to=sid)
            return await self._succeed(sid, ChatEvent.GET_CHAT_HISTORY, "Chat history loaded", data)

        return await self._run(sid, ChatEvent.GET_CHAT_HISTORY, identity, op)

    async def get_all_chats(self, sid: str, identity: Identity, payload: Any = None) -> dict[str, Any]:
        async def op() -> ChatAck:
            async with self._uow_factory() as uow:
                chats = await chat_service.list_chats(identity, uow)
            data = {"chats": [chat_view(c).to_wire() for c in chats], "total": len(chats)}
            await self._hub.emit(ChatEvent.ALL_CHATS_LIST, {"success": True, **data}, to=sid)
            logger.info("Sent %d chats to organizer %s", len(chats), identity.id)
            return await self._succeed(sid, ChatEvent.GET_ALL_CHATS, "Chats fetched", data)

        return await self._run(sid, ChatEvent.GET_ALL_CHATS, identity, op)

    async def delete_chat(self, sid: str, identity: Identity, payload: Any) -> dict[str, Any]:
        async def op() -> ChatAck:
            req = ChatIdRequest.model_validate(payload)
            async with self._uow_factory() as uow:
                result = await chat_service.delete_chat(identity, req.chat_id, uow, clock=self._clock)
            conv = result.conversation
            notice = {"chatId": str(conv.id), "deletedAt": result.deleted_at.isoformat()}
            ack = await self._succeed(sid, ChatEvent.DELETE_CHAT, "Chat deleted successfully", notice)
            await self._hub.emit(
                ChatEvent.CHAT_DELETED,
                notice,
                to=[room_for_party(conv.user_id), room_for_party(conv.organizer_id)],
            )
            return ack

        return await self._run(sid, ChatEvent.DELETE_CHAT, identity, op)

    async def ping(self, sid: str, identity: Identity, payload: Any = None) -> dict[str, Any]:
        logger.info("Ping received from %s", identity.id)
        data = {
            "message": "Server is responsive",
            "timestamp": self._now_iso(),
            "user": {"id": identity.id, "role": identity.role.value, "email": identity.email},
        }
        await self._hub.emit(ChatEvent.PONG, data, to=sid)
        return data

    # -- plumbing -------------------------------------------------------------

    async def _run(
        self,
        sid: str,
        event: ChatEvent,
        identity: Identity,
        op: Callable[[], Awaitable[ChatAck]],
        *,
        client_msg_id: str | None = None,
    ) -> dict[str, Any]:
        """Run one operation; every failure becomes an error acknowledgment.

        ``client_msg_id`` is echoed on the error so the sender can match it to
        its pending message.
        """
        try:
            ack = await op()
        except AppError as exc:
            ack = await self._fail(sid, event, exc.detail, client_msg_id=client_msg_id)
        except pydantic.ValidationError as exc:
            ack = await self._fail(
                sid, event, "Invalid payload", exc.errors(include_url=False, include_context=False),
                client_msg_id=client_msg_id,
            )
        except Exception as exc:
            logger.exception("%s failed for %s", event, identity.id)
            ack = await self._fail(
                sid, event, _FAILURE_MESSAGES[event], str(exc), client_msg_id=client_msg_id,
            )
        return ack.to_wire()

    async def _succeed(
        self, sid: str, event: ChatEvent, message: str, data: dict[str, Any],
    ) -> ChatAck:
        ack = success_ack(event, message, data)
        await self._hub.emit(ack.channel, ack.to_wire(), to=sid)
        return ack

    async def _fail(
        self,
        sid: str,
        event: ChatEvent,
        message: str,
        details: Any = None,
        *,
        client_msg_id: str | None = None,
    ) -> ChatAck:
        logger.warning("Chat error [%s] for %s: %s %s", event, sid, message, details or "")
        ack = error_ack(event, message, details, client_msg_id=client_msg_id)
        await self._hub.emit(ack.channel, ack.to_wire(), to=sid)
        return ack

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()
