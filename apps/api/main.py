"""account-auth API entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from datetime import timedelta

import uvicorn
from fastapi import FastAPI

from account_auth.application.services.auth_service import AuthService
from account_auth.application.services.session_service import SessionService
from account_auth.config.settings import Settings, load_settings
from account_auth.infrastructure.db.account_repository import SqlAlchemyAccountRepository
from account_auth.infrastructure.db.session import create_session_factory
from account_auth.infrastructure.http.auth_guard import BearerAuthGuard
from account_auth.infrastructure.http.auth_router import build_auth_router
from account_auth.infrastructure.logging import configure_logging
from account_auth.infrastructure.security.password_hasher import BcryptPasswordHasher
from account_auth.infrastructure.security.token_codec import JwtTokenCodec, TokenSigningKeys

API_HOST = "0.0.0.0"
API_PORT = 8000
logger = logging.getLogger(__name__)


def build_session_service(settings: Settings) -> SessionService:
    """Build session service with SQLAlchemy-backed account store and JWT codec."""

    session_factory = create_session_factory(settings.database_url)
    accounts = SqlAlchemyAccountRepository(session_factory)
    token_codec = JwtTokenCodec(
        signing_keys=TokenSigningKeys(
            access=settings.access_token_signing_key,
            refresh=settings.refresh_token_signing_key,
        )
    )
    auth_service = AuthService(
        accounts=accounts,
        password_hasher=BcryptPasswordHasher(rounds=settings.bcrypt_rounds),
        token_codec=token_codec,
        access_token_ttl=timedelta(seconds=settings.access_token_ttl_seconds),
        refresh_token_ttl=timedelta(seconds=settings.refresh_token_ttl_seconds),
    )
    return SessionService(auth_service=auth_service, accounts=accounts)


def create_app(*, session_service: SessionService | None = None) -> FastAPI:
    """Create FastAPI app exposing the account session routes."""

    if session_service is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
        session_service = build_session_service(settings)
        logger.info(
            "api_configured access_ttl_seconds=%s refresh_ttl_seconds=%s",
            settings.access_token_ttl_seconds,
            settings.refresh_token_ttl_seconds,
        )

    app = FastAPI()
    app.include_router(
        build_auth_router(
            session_service=session_service,
            auth_guard=BearerAuthGuard(session_service=session_service),
        )
    )
    return app


def run_asgi_server(*, host: str = API_HOST, port: int = API_PORT) -> None:
    """Run the API as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run account-auth API process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
