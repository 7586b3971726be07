from __future__ import annotations

from uuid import UUID

from eventify_chat.application.exceptions import InvalidIdError


def parse_id(raw: object, detail: str = "Invalid id format") -> UUID:
    """Parse an externally supplied identifier, rejecting garbage before any lookup."""
    if isinstance(raw, UUID):
        return raw
    if not isinstance(raw, str):
        raise InvalidIdError(detail)
    try:
        return UUID(raw.strip())
    except ValueError as exc:
        raise InvalidIdError(detail) from exc
