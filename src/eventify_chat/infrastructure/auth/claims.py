from __future__ import annotations

from typing import Any

import jwt

from eventify_chat.application.dto.identity import Identity
from eventify_chat.application.exceptions import AuthenticationError
from eventify_chat.domain.value_objects.enums import Role

NO_TOKEN = "no token provided"
TOKEN_EXPIRED = "token expired"
INVALID_TOKEN = "invalid token"
INVALID_STRUCTURE = "invalid token structure"


def identity_from_claims(payload: dict[str, Any]) -> Identity:
    """Build an identity from ``{user: {id, email}, role, sessionId}`` claims.

    A flat ``sub`` claim is accepted when ``user.id`` is absent.
    """
    user = payload.get("user")
    user = user if isinstance(user, dict) else {}
    party_id = user.get("id") or payload.get("sub")
    role_raw = payload.get("role")
    if not party_id or not role_raw:
        raise AuthenticationError(INVALID_STRUCTURE)
    try:
        role = Role(str(role_raw).upper())
    except ValueError as exc:
        raise AuthenticationError(INVALID_STRUCTURE) from exc

    return Identity(
        id=str(party_id),
        role=role,
        email=user.get("email") or payload.get("email"),
        session_id=payload.get("sessionId"),
    )


def decode_or_reject(token: str, key: Any, algorithms: list[str]) -> dict[str, Any]:
    """``jwt.decode`` with failures mapped to connection rejection reasons."""
    try:
        return jwt.decode(token, key, algorithms=algorithms)
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError(TOKEN_EXPIRED) from exc
    except jwt.PyJWTError as exc:
        raise AuthenticationError(INVALID_TOKEN) from exc
