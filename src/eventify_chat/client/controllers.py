"""Screen controllers that keep local chat state in step with the server."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from socketio.exceptions import SocketIOError

from eventify_chat.api.v1.schemas.chat import ChatView, MessageView, OrganizerSummary, UserSummary
from eventify_chat.client.session import ChatSession
from eventify_chat.client.state import ChatRow, LocalMessage, MessageStatus
from eventify_chat.domain.value_objects.enums import Role
from eventify_chat.infrastructure.ws.protocol import ChatEvent

logger = logging.getLogger(__name__)


class ConversationController:
    """State of one open conversation screen.

    Pass ``chat_id`` to reopen a known chat; otherwise ``user_id`` and
    ``organizer_id`` start (or find) the chat for the pair.
    """

    def __init__(
        self,
        session: ChatSession,
        role: Role,
        *,
        chat_id: str | None = None,
        user_id: str | None = None,
        organizer_id: str | None = None,
        initial_message: str | None = None,
    ) -> None:
        self._session = session
        self.role = role
        self.chat_id = chat_id
        self._user_id = user_id
        self._organizer_id = organizer_id
        self._initial_message = initial_message

        self.messages: list[LocalMessage] = []
        self.user: UserSummary | None = None
        self.organizer: OrganizerSummary | None = None
        self.is_active = True
        self.error: str | None = None
        self._mounted = False
        self._resyncing = False

    async def mount(self) -> None:
        self._session.on(ChatEvent.SUCCESS, self._on_success)
        self._session.on(ChatEvent.ERROR, self._on_error)
        self._session.on(ChatEvent.NEW_MESSAGE, self._on_new_message)
        self._session.on(ChatEvent.CHAT_HISTORY, self._on_history)
        self._session.on(ChatEvent.CHAT_DELETED, self._on_deleted)
        self._session.on_reconnect(self._on_reconnect)
        self._mounted = True

        if self.chat_id:
            await self.refresh()
        else:
            await self._session.emit(
                ChatEvent.START_CHAT,
                {
                    "userId": self._user_id,
                    "organizerId": self._organizer_id,
                    "initialMessage": self._initial_message,
                },
            )

    def unmount(self) -> None:
        self._session.off(ChatEvent.SUCCESS, self._on_success)
        self._session.off(ChatEvent.ERROR, self._on_error)
        self._session.off(ChatEvent.NEW_MESSAGE, self._on_new_message)
        self._session.off(ChatEvent.CHAT_HISTORY, self._on_history)
        self._session.off(ChatEvent.CHAT_DELETED, self._on_deleted)
        self._session.off_reconnect(self._on_reconnect)
        self._mounted = False

    async def refresh(self) -> None:
        if self.chat_id:
            await self._session.emit(ChatEvent.GET_CHAT_HISTORY, {"chatId": self.chat_id})

    async def send(self, text: str) -> LocalMessage | None:
        """Show ``text`` immediately as pending and send it. Blank text or no chat yet: nothing."""
        text = text.strip()
        if not text or not self.chat_id or not self.is_active:
            return None
        local = LocalMessage(
            local_id=f"tmp-{uuid.uuid4().hex}",
            client_msg_id=str(uuid.uuid4()),
            sender=self.role,
            text=text,
            sent_at=datetime.now(timezone.utc),
        )
        self.messages.append(local)
        self._sort()
        await self._emit_send(local)
        return local

    async def retry(self, local_id: str) -> bool:
        local = next((m for m in self.messages if m.local_id == local_id), None)
        if local is None or local.status != MessageStatus.FAILED:
            return False
        local.status = MessageStatus.PENDING
        await self._emit_send(local)
        return True

    # -- listeners ------------------------------------------------------------

    async def _on_success(self, ack: dict[str, Any]) -> None:
        event = ack.get("event")
        data = ack.get("data") or {}
        if event == ChatEvent.START_CHAT and self.chat_id is None:
            self.chat_id = data.get("chatId")
            participants = data.get("participants") or {}
            if participants:
                self.user = UserSummary.model_validate(participants["user"])
                self.organizer = OrganizerSummary.model_validate(participants["organizer"])
            self._replace(MessageView.model_validate(m) for m in data.get("messages", ()))
            self.error = None
        elif event == ChatEvent.SEND_MESSAGE and data.get("chatId") == self.chat_id:
            self._accept(MessageView.model_validate(data["message"]))

    async def _on_error(self, ack: dict[str, Any]) -> None:
        if ack.get("event") == ChatEvent.SEND_MESSAGE:
            pending = self._pending_for(ack.get("clientMsgId"))
            if pending is not None:
                pending.status = MessageStatus.FAILED
                return
        self.error = ack.get("message")
        logger.warning("Chat error on %s: %s", ack.get("event"), self.error)

    async def _on_new_message(self, data: dict[str, Any]) -> None:
        if data.get("chatId") != self.chat_id:
            return
        self._accept(MessageView.model_validate(data["message"]))

    async def _on_history(self, data: dict[str, Any]) -> None:
        if data.get("chatId") != self.chat_id:
            return
        self.user = UserSummary.model_validate(data["user"])
        self.organizer = OrganizerSummary.model_validate(data["organizer"])
        self.is_active = bool(data.get("isActive", True))
        self._replace(MessageView.model_validate(m) for m in data.get("messages", ()))
        if self._resyncing:
            # Anything the server still lacks after a reconnect was lost in transit.
            self._resyncing = False
            for local in self.messages:
                if local.status == MessageStatus.PENDING:
                    local.status = MessageStatus.FAILED
        self.error = None

    async def _on_deleted(self, data: dict[str, Any]) -> None:
        if data.get("chatId") == self.chat_id:
            self.is_active = False

    # -- state ----------------------------------------------------------------

    async def _on_reconnect(self) -> None:
        self._resyncing = bool(self.chat_id)
        await self.refresh()

    async def _emit_send(self, local: LocalMessage) -> None:
        try:
            await self._session.emit(
                ChatEvent.SEND_MESSAGE,
                {"chatId": self.chat_id, "text": local.text, "clientMsgId": local.client_msg_id},
            )
        except SocketIOError:
            logger.warning("Could not send message %s", local.client_msg_id, exc_info=True)
            local.status = MessageStatus.FAILED

    def _pending_for(self, client_msg_id: Any) -> LocalMessage | None:
        """The pending message an error refers to; the oldest one when the error names none."""
        pending = [m for m in self.messages if m.status == MessageStatus.PENDING]
        if isinstance(client_msg_id, str):
            return next((m for m in pending if m.client_msg_id == client_msg_id), None)
        return pending[0] if pending else None

    def _accept(self, view: MessageView) -> None:
        """Apply a server message once; later copies with the same client id are dropped."""
        client_msg_id = str(view.client_msg_id)
        for local in self.messages:
            if local.client_msg_id == client_msg_id:
                if local.status != MessageStatus.SENT:
                    local.confirm(view)
                    self._sort()
                return
        self.messages.append(LocalMessage.from_view(view))
        self._sort()

    def _replace(self, views: Any) -> None:
        confirmed = [LocalMessage.from_view(v) for v in views]
        known = {m.client_msg_id for m in confirmed}
        unsent = [
            m for m in self.messages
            if m.status != MessageStatus.SENT and m.client_msg_id not in known
        ]
        self.messages = confirmed + unsent
        self._sort()

    def _sort(self) -> None:
        self.messages.sort(key=lambda m: m.sent_at)


class ChatListController:
    """Organizer chat list with last message and unread counters."""

    def __init__(self, session: ChatSession, role: Role = Role.ORGANIZER) -> None:
        self._session = session
        self.role = role
        self._rows: dict[str, ChatRow] = {}
        self.open_chat_id: str | None = None
        self.error: str | None = None

    @property
    def chats(self) -> list[ChatRow]:
        return sorted(self._rows.values(), key=lambda r: r.last_activity, reverse=True)

    def row(self, chat_id: str) -> ChatRow | None:
        return self._rows.get(chat_id)

    async def mount(self) -> None:
        self._session.on(ChatEvent.ALL_CHATS_LIST, self._on_list)
        self._session.on(ChatEvent.NEW_CHAT, self._on_new_chat)
        self._session.on(ChatEvent.NEW_MESSAGE, self._on_new_message)
        self._session.on(ChatEvent.CHAT_DELETED, self._on_deleted)
        self._session.on(ChatEvent.ERROR, self._on_error)
        self._session.on_reconnect(self.refresh)
        await self.refresh()

    def unmount(self) -> None:
        self._session.off(ChatEvent.ALL_CHATS_LIST, self._on_list)
        self._session.off(ChatEvent.NEW_CHAT, self._on_new_chat)
        self._session.off(ChatEvent.NEW_MESSAGE, self._on_new_message)
        self._session.off(ChatEvent.CHAT_DELETED, self._on_deleted)
        self._session.off(ChatEvent.ERROR, self._on_error)
        self._session.off_reconnect(self.refresh)

    async def refresh(self) -> None:
        await self._session.emit(ChatEvent.GET_ALL_CHATS)

    def open(self, chat_id: str) -> None:
        self.open_chat_id = chat_id
        self.mark_read(chat_id)

    def close(self) -> None:
        self.open_chat_id = None

    def mark_read(self, chat_id: str) -> None:
        row = self._rows.get(chat_id)
        if row is not None:
            row.unread = 0

    async def _on_list(self, data: dict[str, Any]) -> None:
        rows: dict[str, ChatRow] = {}
        for raw in data.get("chats", ()):
            view = ChatView.model_validate(raw)
            previous = self._rows.get(str(view.id))
            rows[str(view.id)] = ChatRow.from_view(view, unread=previous.unread if previous else 0)
        self._rows = rows
        self.error = None

    async def _on_new_chat(self, data: dict[str, Any]) -> None:
        await self.refresh()

    async def _on_new_message(self, data: dict[str, Any]) -> None:
        chat_id = data.get("chatId")
        row = self._rows.get(chat_id) if chat_id else None
        if row is None:
            await self.refresh()
            return
        message = MessageView.model_validate(data["message"])
        if row.last_message is not None and row.last_message.client_msg_id == message.client_msg_id:
            return
        row.last_message = message
        row.last_activity = max(row.last_activity, message.sent_at)
        if chat_id != self.open_chat_id and message.sender != self.role:
            row.unread += 1

    async def _on_deleted(self, data: dict[str, Any]) -> None:
        chat_id = data.get("chatId")
        self._rows.pop(chat_id, None)
        if chat_id == self.open_chat_id:
            self.open_chat_id = None

    async def _on_error(self, ack: dict[str, Any]) -> None:
        if ack.get("event") == ChatEvent.GET_ALL_CHATS:
            self.error = ack.get("message")
