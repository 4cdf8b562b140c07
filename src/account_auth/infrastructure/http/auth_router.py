"""FastAPI router for account sessions and the bearer-protected users resource."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Header, HTTPException

from account_auth.application.dto.auth_models import (
    AccountPublicView,
    AuthSessionResponse,
    CredentialsRequest,
    OkResponse,
    RefreshRequest,
    TokenPairResponse,
    ValidateRequest,
    ValidateResponse,
)
from account_auth.application.ports.account_repository_port import AccountRecord
from account_auth.application.services.session_service import AuthSession, SessionService
from account_auth.domain.auth.errors import (
    AccountTakenError,
    IncorrectCredentialsError,
    MalformedTokenError,
    UnauthorizedTokenError,
)
from account_auth.infrastructure.http.auth_guard import (
    BearerAuthGuard,
    InvalidAuthTokenError,
    MissingAuthTokenError,
)

logger = logging.getLogger(__name__)


def build_auth_router(
    *,
    session_service: SessionService,
    auth_guard: BearerAuthGuard,
) -> APIRouter:
    """Build router exposing the account session endpoints under `/api`."""

    router = APIRouter(prefix="/api", tags=["auth"])

    @router.get("")
    async def welcome() -> list[str]:
        return ["Welcome to API"]

    @router.get("/v1")
    async def version() -> dict[str, str]:
        return {"version": "1"}

    @router.post("/v1/register", response_model=AuthSessionResponse)
    async def register(payload: CredentialsRequest) -> AuthSessionResponse:
        try:
            session = await session_service.register(
                username=payload.username,
                password=payload.password,
            )
        except AccountTakenError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _to_session_response(session)

    @router.post("/v1/login", response_model=AuthSessionResponse)
    async def login(payload: CredentialsRequest) -> AuthSessionResponse:
        try:
            session = await session_service.login(
                username=payload.username,
                password=payload.password,
            )
        except IncorrectCredentialsError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        return _to_session_response(session)

    @router.post("/v1/refresh", response_model=TokenPairResponse)
    async def refresh(payload: RefreshRequest) -> TokenPairResponse:
        try:
            pair = await session_service.refresh_session(refresh_token=payload.refresh_token)
        except MalformedTokenError as exc:
            raise HTTPException(status_code=400, detail="malformed refresh token") from exc
        except UnauthorizedTokenError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        return TokenPairResponse.from_pair(pair)

    @router.post("/v1/logout", response_model=OkResponse)
    async def logout(
        authorization: Annotated[str | None, Header()] = None,
    ) -> OkResponse:
        account = await _require_account(auth_guard=auth_guard, authorization_header=authorization)
        await session_service.logout(account_id=account.account_id)
        return OkResponse(ok=True)

    @router.get("/v1/users/me", response_model=AccountPublicView)
    async def current_user(
        authorization: Annotated[str | None, Header()] = None,
    ) -> AccountPublicView:
        account = await _require_account(auth_guard=auth_guard, authorization_header=authorization)
        return AccountPublicView.from_record(account)

    @router.get("/v1/users", response_model=list[AccountPublicView])
    async def list_users(
        authorization: Annotated[str | None, Header()] = None,
    ) -> list[AccountPublicView]:
        await _require_account(auth_guard=auth_guard, authorization_header=authorization)
        return [
            AccountPublicView.from_record(account)
            for account in await session_service.list_accounts()
        ]

    @router.get("/v1/users/{account_id}", response_model=AccountPublicView)
    async def get_user(
        account_id: UUID,
        authorization: Annotated[str | None, Header()] = None,
    ) -> AccountPublicView:
        await _require_account(auth_guard=auth_guard, authorization_header=authorization)
        account = await session_service.get_account(account_id=account_id)
        if account is None:
            raise HTTPException(status_code=404, detail="user not found")
        return AccountPublicView.from_record(account)

    @router.post("/v1/validate", response_model=ValidateResponse)
    async def validate(payload: ValidateRequest) -> ValidateResponse:
        is_valid = await session_service.validate_access_token(access_token=payload.access_token)
        return ValidateResponse(valid=is_valid)

    return router


def _to_session_response(session: AuthSession) -> AuthSessionResponse:
    return AuthSessionResponse(
        user=AccountPublicView.from_record(session.account),
        token=TokenPairResponse.from_pair(session.token_pair),
    )


async def _require_account(
    *,
    auth_guard: BearerAuthGuard,
    authorization_header: str | None,
) -> AccountRecord:
    """Resolve the bearer caller or raise 401."""

    try:
        return await auth_guard.require_account(authorization_header=authorization_header)
    except MissingAuthTokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except InvalidAuthTokenError as exc:
        logger.info("http_bearer_rejected reason=%s", exc)
        raise HTTPException(status_code=401, detail=str(exc)) from exc
