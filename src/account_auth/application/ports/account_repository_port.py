"""Port for account persistence and lookup operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


class AccountConflictError(ValueError):
    """Raised when an insert violates the username unique constraint."""


@dataclass(frozen=True)
class AccountCreateInput:
    """Input payload for inserting one account row."""

    username: str
    password_hash: str
    access_token: str | None
    refresh_token: str | None


@dataclass(frozen=True)
class AccountRecord:
    """Account persistence model."""

    account_id: UUID
    username: str
    password_hash: str
    access_token: str | None
    refresh_token: str | None
    created_at: datetime
    updated_at: datetime


class AccountRepositoryPort(Protocol):
    """Account repository contract.

    Lookups by token value are exact string matches against the currently
    stored pair, so overwriting the pair revokes the previous strings.
    """

    async def get_by_id(self, *, account_id: UUID) -> AccountRecord | None:
        """Return account by id or None."""

    async def get_by_username(self, *, username: str) -> AccountRecord | None:
        """Return account by exact (case-sensitive) username or None."""

    async def get_by_access_token(self, *, access_token: str) -> AccountRecord | None:
        """Return the account whose stored access token equals the value."""

    async def get_by_refresh_token(self, *, refresh_token: str) -> AccountRecord | None:
        """Return the account whose stored refresh token equals the value."""

    async def list_accounts(self) -> list[AccountRecord]:
        """Return every account ordered by creation time, then username."""

    async def create_account(self, payload: AccountCreateInput) -> AccountRecord:
        """Insert one account, raising AccountConflictError on duplicate username."""

    async def save_account(self, account: AccountRecord) -> None:
        """Persist mutable account fields (password hash and token pair)."""
