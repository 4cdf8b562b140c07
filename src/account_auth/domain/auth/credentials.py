"""Credential variants accepted by the authentication engine."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class UsernamePassword:
    """Primary credentials used for registration and login."""

    username: str
    password: str


@dataclass(frozen=True)
class BearerToken:
    """Access-token credentials used for re-authentication."""

    value: str


@dataclass(frozen=True)
class AccountIdentifier:
    """Internal lookup-by-id credentials used after authentication."""

    account_id: UUID


Credentials = UsernamePassword | BearerToken | AccountIdentifier


def normalize_username(*, username: str) -> str:
    """Strip surrounding whitespace from one username and reject blank values.

    Usernames stay case-sensitive.
    """

    normalized = username.strip()
    if not normalized:
        raise ValueError("username cannot be blank")
    return normalized


def normalize_password(*, password: str) -> str:
    """Reject blank plaintext passwords and ones bcrypt would truncate."""

    if not password.strip():
        raise ValueError("password cannot be blank")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password cannot exceed {MAX_PASSWORD_BYTES} bytes")
    return password
