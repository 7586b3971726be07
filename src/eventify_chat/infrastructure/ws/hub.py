from __future__ import annotations

from typing import Any

import socketio


class SocketIOHub:
    """Implements application.ports.realtime.RealtimeHub over a Socket.IO server."""

    def __init__(self, sio: socketio.AsyncServer) -> None:
        self._sio = sio

    async def enter_room(self, sid: str, room: str) -> None:
        await self._sio.enter_room(sid, room)

    async def emit(self, event: str, data: dict[str, Any], *, to: str | list[str]) -> None:
        await self._sio.emit(event, data, to=to)
