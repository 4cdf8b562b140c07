"""Authentication engine: registration, login, token rotation, and validation.

The engine is stateless; every mutable value lives in the account store.
Rotation is a read-modify-write on the store and concurrent rotations for one
account race with last-writer-wins semantics: two concurrent refreshes can each
hand out a well-formed pair, but only the pair that was written last stays
resolvable by token value. Token strings carry no subject, so the stored value
is the only thing tying a token to an account and overwriting it revokes it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Never, NoReturn

from account_auth.application.ports.account_repository_port import (
    AccountConflictError,
    AccountCreateInput,
    AccountRecord,
    AccountRepositoryPort,
)
from account_auth.application.ports.password_hasher_port import PasswordHasherPort
from account_auth.application.ports.token_codec_port import TokenCodecPort
from account_auth.domain.auth.credentials import (
    AccountIdentifier,
    BearerToken,
    Credentials,
    UsernamePassword,
    normalize_password,
    normalize_username,
)
from account_auth.domain.auth.errors import (
    AccountTakenError,
    ExpiredTokenError,
    IncorrectCredentialsError,
    InvalidSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    UnsupportedCredentialsError,
)
from account_auth.domain.auth.token_kind import TokenKind

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_TOKEN_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TOKEN_TTL = timedelta(days=30)
_TIMING_DUMMY_PASSWORD = "account-auth-timing-dummy"


class AccessTokenState(StrEnum):
    """Outcome of checking one stored access token."""

    VALID = "valid"
    MISSING = "missing"
    MALFORMED = "malformed"
    TAMPERED = "tampered"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh pair handed to callers."""

    access_token: str
    refresh_token: str
    expires_in_seconds: int


class AuthService:
    """Orchestrate credential checks and own the token-rotation policy."""

    def __init__(
        self,
        *,
        accounts: AccountRepositoryPort,
        password_hasher: PasswordHasherPort,
        token_codec: TokenCodecPort,
        access_token_ttl: timedelta = DEFAULT_ACCESS_TOKEN_TTL,
        refresh_token_ttl: timedelta = DEFAULT_REFRESH_TOKEN_TTL,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        if access_token_ttl <= timedelta(0) or refresh_token_ttl <= timedelta(0):
            raise ValueError("token lifetimes must be positive")
        self._accounts = accounts
        self._password_hasher = password_hasher
        self._token_codec = token_codec
        self._access_token_ttl = access_token_ttl
        self._refresh_token_ttl = refresh_token_ttl
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._dummy_password_hash: str | None = None

    async def register(self, credentials: Credentials) -> AccountRecord:
        """Create one account from primary credentials and issue its first pair."""

        match credentials:
            case UsernamePassword(username=raw_username, password=raw_password):
                username = normalize_username(username=raw_username)
                password = normalize_password(password=raw_password)
            case BearerToken() | AccountIdentifier():
                raise UnsupportedCredentialsError(credentials)
            case _:
                _reject_unknown_credentials(credentials)

        if await self._accounts.get_by_username(username=username) is not None:
            logger.info("auth_register_rejected reason=account_taken")
            raise AccountTakenError(username=username)

        access_token, refresh_token = self._mint_pair()
        try:
            account = await self._accounts.create_account(
                AccountCreateInput(
                    username=username,
                    password_hash=self._password_hasher.hash_password(password),
                    access_token=access_token,
                    refresh_token=refresh_token,
                )
            )
        except AccountConflictError as exc:
            logger.info("auth_register_rejected reason=account_taken_at_insert")
            raise AccountTakenError(username=username) from exc

        logger.info("auth_register_succeeded account_id=%s", account.account_id)
        return account

    async def authenticate(self, credentials: Credentials) -> AccountRecord:
        """Resolve credentials to an account, re-issuing a stale pair on the way.

        Raises IncorrectCredentialsError with the same message for every
        failure cause. A bearer token whose signature fails is rejected; on
        the password path identity is already proven and the pair self-heals.
        An account identifier is a plain lookup and never mints tokens.
        """

        match credentials:
            case UsernamePassword(username=username, password=password):
                account = await self._authenticate_password(
                    username=username,
                    password=password,
                )
                method = "password"
            case AccountIdentifier(account_id=account_id):
                account = await self._accounts.get_by_id(account_id=account_id)
                if account is None:
                    logger.info("auth_login_failed method=identifier reason=unknown_account")
                    raise IncorrectCredentialsError()
                # Lookup only: a logged-out account stays logged out here.
                logger.info("auth_login_succeeded method=identifier account_id=%s", account_id)
                return account
            case BearerToken(value=value):
                account = await self._accounts.get_by_access_token(access_token=value)
                if account is None:
                    logger.info("auth_login_failed method=bearer reason=unknown_token")
                    raise IncorrectCredentialsError()
                state = self.check_access_token(value)
                if state in (AccessTokenState.MALFORMED, AccessTokenState.TAMPERED):
                    logger.warning(
                        "auth_login_failed method=bearer reason=%s account_id=%s",
                        state.value,
                        account.account_id,
                    )
                    raise IncorrectCredentialsError()
                method = "bearer"
            case _:
                _reject_unknown_credentials(credentials)

        account = await self._ensure_current_pair(account)
        logger.info(
            "auth_login_succeeded method=%s account_id=%s",
            method,
            account.account_id,
        )
        return account

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate the pair held by the account owning a valid refresh token.

        Unlike `authenticate`, nothing is tolerated here: malformed, unknown,
        forged and expired refresh tokens all fail.
        """

        try:
            claims = self._token_codec.decode(refresh_token)
        except MalformedTokenError:
            logger.info("auth_refresh_rejected reason=malformed")
            raise

        account = await self._accounts.get_by_refresh_token(refresh_token=refresh_token)
        if account is None:
            logger.info("auth_refresh_rejected reason=invalid_token")
            raise InvalidTokenError()

        if not self._token_codec.verify_signature(refresh_token, kind=TokenKind.REFRESH):
            logger.warning(
                "auth_refresh_rejected reason=invalid_signature account_id=%s",
                account.account_id,
            )
            raise InvalidSignatureError()

        if self._token_codec.is_expired(claims):
            logger.info(
                "auth_refresh_rejected reason=expired account_id=%s",
                account.account_id,
            )
            raise ExpiredTokenError()

        rotated = await self._rotate(account)
        logger.info("auth_refresh_succeeded account_id=%s", rotated.account_id)
        return self.token_pair_for(rotated)

    async def logout(self, account: AccountRecord) -> AccountRecord:
        """Clear both tokens; already-cleared accounts are left untouched."""

        if account.access_token is None and account.refresh_token is None:
            logger.info("auth_logout_noop account_id=%s", account.account_id)
            return account

        cleared = replace(
            account,
            access_token=None,
            refresh_token=None,
            updated_at=self._now(),
        )
        await self._accounts.save_account(cleared)
        logger.info("auth_logout_succeeded account_id=%s", account.account_id)
        return cleared

    def validate(self, access_token: str) -> bool:
        """Return whether an access token is well-formed, authentic and unexpired.

        Stateless: the store is not consulted. Never raises.
        """

        return self.check_access_token(access_token) is AccessTokenState.VALID

    async def is_current_access_token(self, access_token: str) -> bool:
        """Return whether the token validates and is still stored on its account."""

        if not self.validate(access_token):
            return False
        account = await self._accounts.get_by_access_token(access_token=access_token)
        return account is not None

    def check_access_token(self, access_token: str | None) -> AccessTokenState:
        """Classify one access token against the access signing key."""

        if not access_token:
            return AccessTokenState.MISSING
        try:
            claims = self._token_codec.decode(access_token)
        except MalformedTokenError:
            return AccessTokenState.MALFORMED
        if not self._token_codec.verify_signature(access_token, kind=TokenKind.ACCESS):
            return AccessTokenState.TAMPERED
        if self._token_codec.is_expired(claims):
            return AccessTokenState.EXPIRED
        return AccessTokenState.VALID

    def token_pair_for(self, account: AccountRecord) -> TokenPair:
        """Build the caller-facing pair from the account's stored tokens."""

        if account.access_token is None or account.refresh_token is None:
            raise ValueError(f"account has no issued token pair: {account.account_id}")

        claims = self._token_codec.decode(account.access_token)
        remaining = claims.expires_at - self._now()
        return TokenPair(
            access_token=account.access_token,
            refresh_token=account.refresh_token,
            expires_in_seconds=max(0, int(remaining.total_seconds())),
        )

    async def _authenticate_password(self, *, username: str, password: str) -> AccountRecord:
        """Verify primary credentials, always running one hash comparison."""

        account: AccountRecord | None
        try:
            normalized = normalize_username(username=username)
        except ValueError:
            account = None
        else:
            account = await self._accounts.get_by_username(username=normalized)
        if account is None:
            self._password_hasher.verify_password(
                password=password,
                password_hash=self._timing_dummy_hash(),
            )
            logger.info("auth_login_failed method=password reason=unknown_username")
            raise IncorrectCredentialsError()

        if not self._password_hasher.verify_password(
            password=password,
            password_hash=account.password_hash,
        ):
            logger.info(
                "auth_login_failed method=password reason=wrong_password account_id=%s",
                account.account_id,
            )
            raise IncorrectCredentialsError()
        return account

    async def _ensure_current_pair(self, account: AccountRecord) -> AccountRecord:
        """Rotate the pair unless the stored access token is valid."""

        state = self.check_access_token(account.access_token)
        if state is AccessTokenState.VALID:
            return account
        if state in (AccessTokenState.MALFORMED, AccessTokenState.TAMPERED):
            logger.warning(
                "auth_access_token_reissued reason=%s account_id=%s",
                state.value,
                account.account_id,
            )
        else:
            logger.info(
                "auth_access_token_reissued reason=%s account_id=%s",
                state.value,
                account.account_id,
            )
        return await self._rotate(account)

    async def _rotate(self, account: AccountRecord) -> AccountRecord:
        access_token, refresh_token = self._mint_pair()
        rotated = replace(
            account,
            access_token=access_token,
            refresh_token=refresh_token,
            updated_at=self._now(),
        )
        await self._accounts.save_account(rotated)
        return rotated

    def _mint_pair(self) -> tuple[str, str]:
        issued_at = self._now()
        access_token = self._token_codec.issue(
            expires_at=issued_at + self._access_token_ttl,
            kind=TokenKind.ACCESS,
        )
        refresh_token = self._token_codec.issue(
            expires_at=issued_at + self._refresh_token_ttl,
            kind=TokenKind.REFRESH,
        )
        return access_token, refresh_token

    def _timing_dummy_hash(self) -> str:
        if self._dummy_password_hash is None:
            self._dummy_password_hash = self._password_hasher.hash_password(
                _TIMING_DUMMY_PASSWORD
            )
        return self._dummy_password_hash


def _reject_unknown_credentials(credentials: Never) -> NoReturn:
    """Fail closed on credential types outside the supported union."""

    raise UnsupportedCredentialsError(credentials)
