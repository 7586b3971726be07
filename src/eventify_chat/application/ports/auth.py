from __future__ import annotations

from typing import Protocol

from eventify_chat.application.dto.identity import Identity


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Identity:
        """Return the identity or raise ``AuthenticationError`` with a client-facing reason."""
        ...
