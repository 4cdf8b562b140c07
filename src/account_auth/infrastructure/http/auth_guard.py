"""Bearer header parsing and account resolution for protected endpoints."""

from __future__ import annotations

from account_auth.application.ports.account_repository_port import AccountRecord
from account_auth.application.services.session_service import SessionService
from account_auth.domain.auth.errors import IncorrectCredentialsError


class MissingAuthTokenError(PermissionError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthTokenError(PermissionError):
    """Raised when the bearer header or the access token it carries is invalid."""


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract access token from standard `Authorization: Bearer <token>` header."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("missing bearer token")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidAuthTokenError("invalid bearer token header")

    return parts[1]


class BearerAuthGuard:
    """Resolve the calling account from a bearer access token."""

    def __init__(self, *, session_service: SessionService) -> None:
        self._session_service = session_service

    async def require_account(self, *, authorization_header: str | None) -> AccountRecord:
        """Return the account holding the presented, currently valid access token."""

        token = extract_bearer_token(authorization_header)
        try:
            return await self._session_service.current_account(access_token=token)
        except IncorrectCredentialsError as exc:
            raise InvalidAuthTokenError("invalid or expired access token") from exc
