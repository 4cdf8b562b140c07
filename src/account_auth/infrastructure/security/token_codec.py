"""HS256 JWT adapter for signed, expiring access and refresh tokens."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import assert_never

import jwt

from account_auth.application.ports.token_codec_port import TokenClaims, TokenCodecPort
from account_auth.domain.auth.errors import MalformedTokenError
from account_auth.domain.auth.token_kind import TokenKind

_ALGORITHM = "HS256"
_NONCE_BYTES = 16


@dataclass(frozen=True)
class TokenSigningKeys:
    """Symmetric signing keys, one per token kind."""

    access: str
    refresh: str

    def __post_init__(self) -> None:
        if not self.access or not self.refresh:
            raise ValueError("token signing keys cannot be blank")
        if self.access == self.refresh:
            raise ValueError("access and refresh signing keys must differ")

    def for_kind(self, kind: TokenKind) -> str:
        """Return the signing key used for one token kind."""

        match kind:
            case TokenKind.ACCESS:
                return self.access
            case TokenKind.REFRESH:
                return self.refresh
            case _:
                assert_never(kind)


class JwtTokenCodec(TokenCodecPort):
    """Encode and inspect tokens carrying only an expiry claim and a random nonce.

    The nonce keeps every minted string unique, since the token value itself is
    the account lookup key. Expiry has one-second precision.
    """

    def __init__(
        self,
        *,
        signing_keys: TokenSigningKeys,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._signing_keys = signing_keys
        self._now = now or (lambda: datetime.now(tz=UTC))

    def issue(self, *, expires_at: datetime, kind: TokenKind) -> str:
        return self.issue_with_key(
            expires_at=expires_at,
            signing_key=self._signing_keys.for_kind(kind),
        )

    def issue_with_key(self, *, expires_at: datetime, signing_key: str) -> str:
        """Sign a token with an explicit key."""

        payload = {
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_urlsafe(_NONCE_BYTES),
        }
        return jwt.encode(payload, signing_key, algorithm=_ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError("malformed token") from exc

        raw_exp = payload.get("exp")
        if isinstance(raw_exp, bool) or not isinstance(raw_exp, int | float):
            raise MalformedTokenError("token has no numeric expiry claim")
        try:
            expires_at = datetime.fromtimestamp(raw_exp, tz=UTC)
        except (OverflowError, OSError, ValueError) as exc:
            raise MalformedTokenError("token expiry claim out of range") from exc

        raw_nonce = payload.get("jti")
        return TokenClaims(
            expires_at=expires_at,
            nonce=raw_nonce if isinstance(raw_nonce, str) else None,
        )

    def verify_signature(self, token: str, *, kind: TokenKind) -> bool:
        return self.verify_signature_with_key(
            token,
            signing_key=self._signing_keys.for_kind(kind),
        )

    def verify_signature_with_key(self, token: str, *, signing_key: str) -> bool:
        """Return whether the token signature verifies under an explicit key.

        Expiry is ignored here; PyJWT compares signatures in constant time.
        """

        try:
            jwt.decode(
                token,
                signing_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except jwt.InvalidTokenError:
            return False
        return True

    def is_expired(self, claims: TokenClaims) -> bool:
        return self._now() >= claims.expires_at
