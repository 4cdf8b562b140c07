"""Authentication error taxonomy shared by the engine and its callers."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for terminal authentication failures."""


class UnsupportedCredentialsError(AuthError, TypeError):
    """Raised when a credential variant the engine cannot process is presented."""

    def __init__(self, credentials: object) -> None:
        super().__init__(f"unsupported credentials: {type(credentials).__name__}")


class IncorrectCredentialsError(AuthError, PermissionError):
    """Raised for every failed authentication, whatever the underlying cause."""

    def __init__(self) -> None:
        super().__init__("invalid username or password")


class AccountTakenError(AuthError, ValueError):
    """Raised when registration targets an existing username."""

    def __init__(self, *, username: str) -> None:
        super().__init__("username already taken")
        self.username = username


class MalformedTokenError(AuthError, ValueError):
    """Raised when a token string cannot be parsed."""


class UnauthorizedTokenError(AuthError, PermissionError):
    """Base class for refresh-token rejections."""


class InvalidTokenError(UnauthorizedTokenError):
    """Raised when no account currently holds the presented refresh token."""

    def __init__(self) -> None:
        super().__init__("invalid refresh token")


class InvalidSignatureError(UnauthorizedTokenError):
    """Raised when the refresh token signature does not verify."""

    def __init__(self) -> None:
        super().__init__("refresh token signature is invalid")


class ExpiredTokenError(UnauthorizedTokenError):
    """Raised when the refresh token has expired."""

    def __init__(self) -> None:
        super().__init__("refresh token expired")
