"""SQLAlchemy adapter for account persistence and token-value lookups."""

from __future__ import annotations

from datetime import datetime
from typing import cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from account_auth.application.ports.account_repository_port import (
    AccountConflictError,
    AccountCreateInput,
    AccountRecord,
    AccountRepositoryPort,
)
from account_auth.infrastructure.db.metadata import accounts

_ACCOUNT_COLUMNS = (
    accounts.c.id,
    accounts.c.username,
    accounts.c.password_hash,
    accounts.c.access_token,
    accounts.c.refresh_token,
    accounts.c.created_at,
    accounts.c.updated_at,
)


def _is_duplicate_username_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "username" in message


class SqlAlchemyAccountRepository(AccountRepositoryPort):
    """Account repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, *, account_id: UUID) -> AccountRecord | None:
        return await self._fetch_one(accounts.c.id == account_id)

    async def get_by_username(self, *, username: str) -> AccountRecord | None:
        return await self._fetch_one(accounts.c.username == username)

    async def get_by_access_token(self, *, access_token: str) -> AccountRecord | None:
        return await self._fetch_one(accounts.c.access_token == access_token)

    async def get_by_refresh_token(self, *, refresh_token: str) -> AccountRecord | None:
        return await self._fetch_one(accounts.c.refresh_token == refresh_token)

    async def list_accounts(self) -> list[AccountRecord]:
        statement = sa.select(*_ACCOUNT_COLUMNS).order_by(
            accounts.c.created_at.asc(),
            accounts.c.username.asc(),
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [_to_account_record(row) for row in result.mappings().all()]

    async def create_account(self, payload: AccountCreateInput) -> AccountRecord:
        """Insert one account row; the username unique constraint decides conflicts."""

        statement = (
            sa.insert(accounts)
            .values(
                id=uuid4(),
                username=payload.username,
                password_hash=payload.password_hash,
                access_token=payload.access_token,
                refresh_token=payload.refresh_token,
            )
            .returning(*_ACCOUNT_COLUMNS)
        )

        async with self._session_factory() as session:
            try:
                result = await session.execute(statement)
                row = result.mappings().one()
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_username_error(error):
                    raise AccountConflictError("duplicate username") from error
                raise

        return _to_account_record(row)

    async def save_account(self, account: AccountRecord) -> None:
        """Overwrite the password hash and token pair of one account."""

        statement = (
            sa.update(accounts)
            .where(accounts.c.id == account.account_id)
            .values(
                password_hash=account.password_hash,
                access_token=account.access_token,
                refresh_token=account.refresh_token,
                updated_at=account.updated_at,
            )
        )

        async with self._session_factory() as session:
            await session.execute(statement)
            await session.commit()

    async def _fetch_one(self, condition: sa.ColumnElement[bool]) -> AccountRecord | None:
        statement = sa.select(*_ACCOUNT_COLUMNS).where(condition).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_account_record(row)


def _to_account_record(row: sa.RowMapping) -> AccountRecord:
    raw_account_id = row["id"]
    account_id = raw_account_id if isinstance(raw_account_id, UUID) else UUID(str(raw_account_id))
    return AccountRecord(
        account_id=account_id,
        username=cast(str, row["username"]),
        password_hash=cast(str, row["password_hash"]),
        access_token=cast(str | None, row["access_token"]),
        refresh_token=cast(str | None, row["refresh_token"]),
        created_at=cast(datetime, row["created_at"]),
        updated_at=cast(datetime, row["updated_at"]),
    )
