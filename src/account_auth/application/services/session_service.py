"""Caller-facing session operations mapped onto the authentication engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from account_auth.application.ports.account_repository_port import (
    AccountRecord,
    AccountRepositoryPort,
)
from account_auth.application.services.auth_service import AuthService, TokenPair
from account_auth.domain.auth.credentials import BearerToken, UsernamePassword
from account_auth.domain.auth.errors import IncorrectCredentialsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """Authenticated account together with its current token pair."""

    account: AccountRecord
    token_pair: TokenPair


class SessionService:
    """Expose register/login/refresh/logout/validate use-cases."""

    def __init__(self, *, auth_service: AuthService, accounts: AccountRepositoryPort) -> None:
        self._auth_service = auth_service
        self._accounts = accounts

    async def register(self, *, username: str, password: str) -> AuthSession:
        """Register one account and return it with its first token pair."""

        account = await self._auth_service.register(
            UsernamePassword(username=username, password=password)
        )
        return self._session_for(account)

    async def login(self, *, username: str, password: str) -> AuthSession:
        """Authenticate primary credentials and return the current token pair."""

        account = await self._auth_service.authenticate(
            UsernamePassword(username=username, password=password)
        )
        return self._session_for(account)

    async def refresh_session(self, *, refresh_token: str) -> TokenPair:
        """Rotate the token pair for a valid refresh token."""

        return await self._auth_service.refresh(refresh_token)

    async def logout(self, *, account_id: UUID) -> None:
        """Clear the account's tokens; unknown accounts are a no-op."""

        account = await self._accounts.get_by_id(account_id=account_id)
        if account is None:
            logger.info("session_logout_noop reason=unknown_account account_id=%s", account_id)
            return
        await self._auth_service.logout(account)

    async def validate_access_token(self, *, access_token: str) -> bool:
        """Return whether the token is valid and still current for its account."""

        return await self._auth_service.is_current_access_token(access_token)

    async def current_account(self, *, access_token: str) -> AccountRecord:
        """Resolve a bearer token to its account without re-issuing stale tokens."""

        if not self._auth_service.validate(access_token):
            raise IncorrectCredentialsError()
        return await self._auth_service.authenticate(BearerToken(value=access_token))

    async def list_accounts(self) -> list[AccountRecord]:
        """Return all registered accounts."""

        return await self._accounts.list_accounts()

    async def get_account(self, *, account_id: UUID) -> AccountRecord | None:
        """Return one account by id without touching its tokens."""

        return await self._accounts.get_by_id(account_id=account_id)

    def _session_for(self, account: AccountRecord) -> AuthSession:
        return AuthSession(
            account=account,
            token_pair=self._auth_service.token_pair_for(account),
        )
