"""Realtime session: one Socket.IO client connection per signed-in identity."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable

import socketio

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Awaitable[None]]
ReconnectListener = Callable[[], Awaitable[None]]


class ChatSession:
    """Wraps ``socketio.AsyncClient`` with removable per-event listeners.

    The client keeps a single handler per event, so the session registers one
    dispatcher per event and fans out to its own listener lists. Listeners are
    called in registration order.
    """

    def __init__(self, identity_id: str, client: socketio.AsyncClient | None = None) -> None:
        self.identity_id = identity_id
        self._client = client or socketio.AsyncClient(reconnection=True)
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._dispatching: set[str] = set()
        self._reconnect_listeners: list[ReconnectListener] = []
        self._connected_once = False

        self._client.on("connect", handler=self._on_connect)
        self._client.on("disconnect", handler=self._on_disconnect)
        self._client.on("connect_error", handler=self._on_connect_error)

    @property
    def connected(self) -> bool:
        return bool(self._client.connected)

    async def connect(self, url: str, token: str, *, socketio_path: str = "socket.io") -> None:
        await self._client.connect(
            url,
            auth={"token": token},
            socketio_path=socketio_path,
        )

    async def close(self) -> None:
        self.clear()
        await self._client.disconnect()

    async def emit(self, event: str, data: dict[str, Any] | None = None) -> None:
        await self._client.emit(event, data)

    def on(self, event: str, listener: Listener) -> None:
        if event not in self._dispatching:
            self._client.on(event, handler=self._dispatcher(event))
            self._dispatching.add(event)
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def on_reconnect(self, listener: ReconnectListener) -> None:
        self._reconnect_listeners.append(listener)

    def off_reconnect(self, listener: ReconnectListener) -> None:
        if listener in self._reconnect_listeners:
            self._reconnect_listeners.remove(listener)

    def clear(self) -> None:
        self._listeners.clear()
        self._reconnect_listeners.clear()

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def _dispatcher(self, event: str) -> Callable[..., Awaitable[None]]:
        async def _dispatch(data: Any = None) -> None:
            for listener in list(self._listeners.get(event, ())):
                await listener(data)

        return _dispatch

    async def _on_connect(self) -> None:
        if not self._connected_once:
            self._connected_once = True
            logger.info("Chat session connected for %s", self.identity_id)
            return
        logger.info("Chat session reconnected for %s", self.identity_id)
        for listener in list(self._reconnect_listeners):
            await listener()

    async def _on_disconnect(self, reason: Any = None) -> None:
        logger.info("Chat session disconnected for %s: %s", self.identity_id, reason)

    async def _on_connect_error(self, data: Any = None) -> None:
        logger.warning("Chat session connect error for %s: %s", self.identity_id, data)


class SessionManager:
    """Holds the current realtime session; injected where a session is needed."""

    def __init__(
        self,
        url: str,
        *,
        socketio_path: str = "socket.io",
        client_factory: Callable[[], socketio.AsyncClient] | None = None,
    ) -> None:
        self._url = url
        self._socketio_path = socketio_path
        self._client_factory = client_factory or (lambda: socketio.AsyncClient(reconnection=True))
        self._current: ChatSession | None = None

    @property
    def current(self) -> ChatSession | None:
        return self._current

    async def open(self, identity_id: str, token: str) -> ChatSession:
        """Return the session for ``identity_id``, replacing one held for another identity."""
        if self._current is not None:
            if self._current.identity_id == identity_id:
                return self._current
            await self.close()

        session = ChatSession(identity_id, self._client_factory())
        await session.connect(self._url, token, socketio_path=self._socketio_path)
        self._current = session
        return session

    async def close(self) -> None:
        if self._current is None:
            return
        session, self._current = self._current, None
        await session.close()
