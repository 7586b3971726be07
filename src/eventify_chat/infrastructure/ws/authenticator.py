"""Connection-time authentication for the chat socket."""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qs

from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import AuthenticationError
from eventify_chat.application.ports.auth import TokenVerifier
from eventify_chat.infrastructure.auth.claims import NO_TOKEN

logger = logging.getLogger(__name__)


def _scope(environ: dict[str, Any]) -> dict[str, Any]:
    inner = environ.get("asgi.scope") if isinstance(environ, dict) else None
    return inner if isinstance(inner, dict) else environ


def _query_token(environ: dict[str, Any]) -> str | None:
    scope = _scope(environ)
    query_string: str | bytes = scope.get("query_string") or environ.get("QUERY_STRING") or ""
    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")
    token = parse_qs(str(query_string)).get("token", [None])[0]
    return token or None


def _header_token(environ: dict[str, Any]) -> str | None:
    header = environ.get("HTTP_AUTHORIZATION")
    if not header:
        for name, value in _scope(environ).get("headers") or ():
            if name.lower() == b"authorization":
                header = value.decode(errors="ignore")
                break
    if not header:
        return None
    token = header[7:] if header[:7].lower() == "bearer " else header
    return token.strip() or None


def extract_token(environ: dict[str, Any], auth: Any | None) -> str | None:
    """Find the bearer token: auth payload, then ``?token=``, then Authorization header."""
    if isinstance(auth, dict):
        auth_token = auth.get("token")
        if isinstance(auth_token, str) and auth_token:
            return auth_token
    return _query_token(environ) or _header_token(environ)


async def authenticate(
    environ: dict[str, Any],
    auth: Any | None,
    verifier: TokenVerifier,
) -> Identity:
    token = extract_token(environ, auth)
    if not token:
        raise AuthenticationError(NO_TOKEN)
    return await verifier.verify(token)
