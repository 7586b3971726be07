from __future__ import annotations

from eventify_chat.application.dto.identity import Identity
from eventify_chat.infrastructure.auth.claims import decode_or_reject, identity_from_claims


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Identity:
        payload = decode_or_reject(token, self._secret, [self._algorithm])
        return identity_from_claims(payload)
