from __future__ import annotations

from typing import Any, Protocol


class RealtimeHub(Protocol):
    """Room-addressed push channel (Socket.IO server in production)."""

    async def enter_room(self, sid: str, room: str) -> None: ...

    async def emit(self, event: str, data: dict[str, Any], *, to: str | list[str]) -> None:
        """Send to every connection in ``to``. A list of rooms is delivered once per connection."""
        ...
