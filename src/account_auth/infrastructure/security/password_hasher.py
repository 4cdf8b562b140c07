"""Bcrypt adapter for the credential verifier port."""

from __future__ import annotations

import bcrypt

from account_auth.application.ports.password_hasher_port import PasswordHasherPort

MIN_BCRYPT_ROUNDS = 4
MAX_BCRYPT_ROUNDS = 31
DEFAULT_BCRYPT_ROUNDS = 12


class BcryptPasswordHasher(PasswordHasherPort):
    """Salted one-way password hashing with a configurable bcrypt cost."""

    def __init__(self, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        if not MIN_BCRYPT_ROUNDS <= rounds <= MAX_BCRYPT_ROUNDS:
            raise ValueError(
                f"bcrypt rounds must be between {MIN_BCRYPT_ROUNDS} and {MAX_BCRYPT_ROUNDS}"
            )
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")

    def verify_password(self, *, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
        except ValueError:
            # Stored value is not a bcrypt hash.
            return False
