"""Configuration for the shared MongoDB connection.

Values default to environment variables (a ``.env`` file is picked up when
present). Applications either rely on the module level ``settings`` or build
their own ``MongoSettings`` and hand it to ``create_connection_from_settings``.
"""

from __future__ import annotations

import os
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

load_dotenv(find_dotenv(usecwd=True))


def _env_collections() -> Tuple[str, ...]:
    raw = os.getenv("MONGO_COLLECTIONS", "")
    return tuple(name.strip() for name in raw.split(",") if name.strip())


def _env_password() -> Optional[SecretStr]:
    value = os.getenv("MONGO_PASSWORD")
    return SecretStr(value) if value else None


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


class MongoSettings(BaseModel):
    """Connection parameters for one MongoDB database."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(
        default_factory=lambda: os.getenv("MONGO_URI", "mongodb://localhost:27017")
    )
    db_name: str = Field(default_factory=lambda: os.getenv("MONGO_DB_NAME", "app"))
    collections: Tuple[str, ...] = Field(
        default_factory=_env_collections, validate_default=True
    )
    username: Optional[str] = Field(default_factory=lambda: os.getenv("MONGO_USERNAME") or None)
    password: Optional[SecretStr] = Field(default_factory=_env_password)
    # False keeps the process alive and surfaces the failure via wait_ready().
    exit_on_failure: bool = Field(
        default_factory=lambda: _env_flag("MONGO_EXIT_ON_FAILURE", True)
    )

    @field_validator("collections", mode="before")
    @classmethod
    def _dedupe_collections(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        seen: set[str] = set()
        result = []
        for name in value:
            if name in seen:
                continue
            seen.add(name)
            result.append(name)
        return tuple(result)

    @property
    def has_credentials(self) -> bool:
        """True only when both username and password are set."""

        return bool(self.username) and self.password is not None

    def client_kwargs(self) -> dict:
        """Keyword arguments for the Motor client constructor."""

        if not self.has_credentials:
            return {}
        return {
            "username": self.username,
            "password": self.password.get_secret_value(),
        }


def _default_settings() -> "MongoSettings":
    """Build the process default from the ``MONGO_*`` environment variables."""

    return MongoSettings()


settings: MongoSettings = _default_settings()
logger.debug(
    "MongoSettings initialized with uri={uri} db_name={db_name}",
    uri=settings.uri,
    db_name=settings.db_name,
)
