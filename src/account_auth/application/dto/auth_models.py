"""Pydantic models for auth HTTP request and response payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from account_auth.application.ports.account_repository_port import AccountRecord
from account_auth.application.services.auth_service import TokenPair
from account_auth.domain.auth.credentials import MAX_PASSWORD_BYTES


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class CredentialsRequest(StrictModel):
    """Username/password payload for register and login."""

    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)


class RefreshRequest(StrictModel):
    """Refresh-token payload for session refresh."""

    refresh_token: str = Field(min_length=1)


class ValidateRequest(StrictModel):
    """Access-token payload for lightweight validation."""

    access_token: str = Field(min_length=1)


class TokenPairResponse(StrictModel):
    """Token pair exposed to clients."""

    access_token: str
    refresh_token: str
    expires_in_seconds: int

    @classmethod
    def from_pair(cls, pair: TokenPair) -> TokenPairResponse:
        return cls(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_in_seconds=pair.expires_in_seconds,
        )


class AccountPublicView(StrictModel):
    """Account fields safe to return to clients; never includes secrets."""

    id: UUID
    username: str
    created_at: datetime

    @classmethod
    def from_record(cls, account: AccountRecord) -> AccountPublicView:
        return cls(
            id=account.account_id,
            username=account.username,
            created_at=account.created_at,
        )


class AuthSessionResponse(StrictModel):
    """Register/login response with public account view and token pair."""

    user: AccountPublicView
    token: TokenPairResponse


class ValidateResponse(StrictModel):
    """Lightweight access-token validation result."""

    valid: bool


class OkResponse(StrictModel):
    """Generic acknowledgement response."""

    ok: bool
