"""Token kinds and their signing-key separation."""

from __future__ import annotations

from enum import StrEnum


class TokenKind(StrEnum):
    """Kinds of signed tokens; each kind is signed with its own key."""

    ACCESS = "access"
    REFRESH = "refresh"
