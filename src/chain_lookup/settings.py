"""Environment-backed settings for :mod:`chain_lookup`."""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .schemas import CURRENT_ENVELOPE_VERSION

__all__ = ["ChainLookupSettings", "get_settings"]


class ChainLookupSettings(BaseSettings):
    """Expose environment-derived configuration for the query engine.

    All environment access goes through this class. Every attribute maps to
    one documented environment variable.

    Attributes:
        signing_key: Hex-encoded 32-byte Ed25519 seed used to sign responses.
        signing_key_file: File holding the hex seed; used when ``signing_key``
            is unset.
        ledger_path: NDJSON ledger served by :class:`NdjsonChainStore`.
        database_url: SQLAlchemy URL served by :class:`SqlChainStore`. Takes
            precedence over ``ledger_path``.
        log_level: Logging level name or number.
        envelope_version: Version string stamped on every envelope.
    """

    signing_key: str | None = Field(default=None, alias="CHAIN_LOOKUP_SIGNING_KEY")
    signing_key_file: str | None = Field(
        default=None, alias="CHAIN_LOOKUP_SIGNING_KEY_FILE"
    )
    ledger_path: str | None = Field(default=None, alias="CHAIN_LOOKUP_LEDGER_PATH")
    database_url: str | None = Field(default=None, alias="CHAIN_LOOKUP_DATABASE_URL")
    log_level: int = Field(default=logging.INFO, alias="CHAIN_LOOKUP_LOG_LEVEL")
    envelope_version: str = Field(
        default=CURRENT_ENVELOPE_VERSION, alias="CHAIN_LOOKUP_ENVELOPE_VERSION"
    )

    model_config = SettingsConfigDict(
        env_file=None, extra="ignore", populate_by_name=True
    )

    @field_validator(
        "signing_key", "signing_key_file", "ledger_path", "database_url", mode="before"
    )
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: object) -> int:
        """Accept level names (``"debug"``) or numbers, defaulting to INFO.

        Args:
            value: Raw environment value.

        Returns:
            Numeric logging level.
        """

        if isinstance(value, int):
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return int(text)
            level = logging.getLevelName(text.upper())
            if isinstance(level, int):
                return level
        return logging.INFO


def get_settings() -> ChainLookupSettings:
    """Return a :class:`ChainLookupSettings` instance parsed from the environment."""

    return ChainLookupSettings()
