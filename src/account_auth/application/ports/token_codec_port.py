"""Port for signed, expiring token encoding and inspection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from account_auth.domain.auth.token_kind import TokenKind


@dataclass(frozen=True)
class TokenClaims:
    """Claims carried by one token; no subject is embedded."""

    expires_at: datetime
    nonce: str | None = None


class TokenCodecPort(Protocol):
    """Token codec contract.

    Signature and expiry are exposed as independent predicates so callers can
    tell a tampered token from a stale one.
    """

    def issue(self, *, expires_at: datetime, kind: TokenKind) -> str:
        """Sign a new token expiring at `expires_at` with the key for `kind`."""

    def decode(self, token: str) -> TokenClaims:
        """Parse claims without verifying the signature."""

    def verify_signature(self, token: str, *, kind: TokenKind) -> bool:
        """Return whether the token was signed with the key for `kind`."""

    def is_expired(self, claims: TokenClaims) -> bool:
        """Return whether the current time is at or past the expiry claim."""
