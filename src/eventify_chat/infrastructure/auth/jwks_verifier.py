from __future__ import annotations

import asyncio
import logging

import jwt
from jwt import PyJWKClient

from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import AuthenticationError
from eventify_chat.infrastructure.auth.claims import (
    INVALID_TOKEN,
    decode_or_reject,
    identity_from_claims,
)

logger = logging.getLogger(__name__)


class JWKSVerifier:
    """Verify JWTs using a remote JWKS endpoint."""

    def __init__(self, jwks_url: str) -> None:
        self._jwks_url = jwks_url
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> Identity:
        try:
            # PyJWKClient fetches over blocking HTTP.
            signing_key = await asyncio.to_thread(self._jwk_client.get_signing_key_from_jwt, token)
        except jwt.PyJWTError as exc:
            logger.debug("No signing key for token from %s", self._jwks_url, exc_info=True)
            raise AuthenticationError(INVALID_TOKEN) from exc
        payload = decode_or_reject(token, signing_key.key, ["RS256", "ES256"])
        return identity_from_claims(payload)
