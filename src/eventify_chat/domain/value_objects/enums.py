from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Party role. Doubles as the sender tag of a message."""

    USER = "USER"
    ORGANIZER = "ORGANIZER"
