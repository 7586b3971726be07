"""Chat socket event names and acknowledgment envelope."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ChatEvent(StrEnum):
    # client -> server
    START_CHAT = "start_chat"
    SEND_MESSAGE = "send_message"
    GET_CHAT_HISTORY = "get_chat_history"
    GET_ALL_CHATS = "get_all_chats"
    DELETE_CHAT = "delete_chat"
    PING = "ping"

    # server -> client
    NEW_CHAT = "new_chat"
    NEW_MESSAGE = "new_message"
    CHAT_HISTORY = "chat_history"
    ALL_CHATS_LIST = "all_chats_list"
    CHAT_DELETED = "chat_deleted"
    ERROR = "chat_error"
    SUCCESS = "chat_success"
    PONG = "pong"


class ChatAck(BaseModel):
    """Uniform acknowledgment; sent on ``chat_success`` or ``chat_error``, tagged by ``event``."""

    event: str
    success: bool
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | None = None
    details: Any | None = None
    # Set on send_message errors so the sender can tell which message failed.
    client_msg_id: str | None = Field(default=None, serialization_alias="clientMsgId")

    @property
    def channel(self) -> ChatEvent:
        return ChatEvent.SUCCESS if self.success else ChatEvent.ERROR

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def success_ack(event: ChatEvent, message: str, data: dict[str, Any] | None = None) -> ChatAck:
    return ChatAck(event=str(event), success=True, message=message, data=data)


def error_ack(
    event: ChatEvent,
    message: str,
    details: Any | None = None,
    *,
    client_msg_id: str | None = None,
) -> ChatAck:
    return ChatAck(
        event=str(event), success=False, message=message, details=details, client_msg_id=client_msg_id,
    )
