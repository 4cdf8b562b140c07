"""Runtime settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
PositiveInt = Annotated[int, Field(gt=0)]
SigningKey = Annotated[str, Field(min_length=32)]
BcryptRounds = Annotated[int, Field(ge=4, le=31)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    access_token_signing_key: SigningKey = Field(validation_alias="ACCESS_TOKEN_SIGNING_KEY")
    refresh_token_signing_key: SigningKey = Field(validation_alias="REFRESH_TOKEN_SIGNING_KEY")
    access_token_ttl_seconds: PositiveInt = Field(
        default=15 * 60,
        validation_alias="ACCESS_TOKEN_TTL_SECONDS",
    )
    refresh_token_ttl_seconds: PositiveInt = Field(
        default=30 * 24 * 60 * 60,
        validation_alias="REFRESH_TOKEN_TTL_SECONDS",
    )
    bcrypt_rounds: BcryptRounds = Field(default=12, validation_alias="BCRYPT_ROUNDS")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def _validate_distinct_signing_keys(self) -> Settings:
        if self.access_token_signing_key == self.refresh_token_signing_key:
            raise ValueError("ACCESS_TOKEN_SIGNING_KEY and REFRESH_TOKEN_SIGNING_KEY must differ")
        return self


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
