"""Credential verifier port: salted one-way hashing of account passwords."""

from __future__ import annotations

from typing import Protocol


class PasswordHasherPort(Protocol):
    """Hash passwords for storage and check candidates against stored hashes."""

    def hash_password(self, password: str) -> str:
        """Hash plaintext password with a fresh random salt.

        Hashing the same password twice yields different strings.
        """

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        """Return whether password matches hash.

        Empty or unparseable hashes never match and never raise.
        """
