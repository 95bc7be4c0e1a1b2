"""Assemble a :class:`ChainQueryService` from settings."""

from __future__ import annotations

import logging

from .envelope import ResponseSigner
from .errors import SigningFailure
from .service import ChainQueryService
from .settings import ChainLookupSettings, get_settings
from .store.base import ChainStore
from .store.ndjson import NdjsonChainStore
from .tools.verify import Signer

__all__ = ["build_service", "load_signer", "open_store"]

LOGGER = logging.getLogger(__name__)


def load_signer(settings: ChainLookupSettings) -> Signer:
    """Load the process-wide response signing key.

    Raises:
        SigningFailure: If no key is configured or the key material is invalid.
    """

    if settings.signing_key:
        return Signer.from_hex(settings.signing_key)
    if settings.signing_key_file:
        return Signer.from_file(settings.signing_key_file)
    raise SigningFailure(
        "No response signing key configured. Set CHAIN_LOOKUP_SIGNING_KEY or "
        "CHAIN_LOOKUP_SIGNING_KEY_FILE."
    )


def open_store(settings: ChainLookupSettings) -> ChainStore:
    """Open the configured chain store.

    Raises:
        ValueError: If neither a database URL nor a ledger path is configured.
    """

    if settings.database_url:
        from .store.sql import SqlChainStore

        LOGGER.debug("Using SQL chain store")
        return SqlChainStore(settings.database_url)
    if settings.ledger_path:
        LOGGER.debug(
            "Using NDJSON chain store", extra={"ledger_path": settings.ledger_path}
        )
        return NdjsonChainStore(settings.ledger_path)
    raise ValueError(
        "No chain store configured. Set CHAIN_LOOKUP_DATABASE_URL or "
        "CHAIN_LOOKUP_LEDGER_PATH."
    )


def build_service(settings: ChainLookupSettings | None = None) -> ChainQueryService:
    """Return a query service wired to the configured store and signing key."""

    effective = settings or get_settings()
    signer = load_signer(effective)
    store = open_store(effective)
    return ChainQueryService(
        store, ResponseSigner(signer, version=effective.envelope_version)
    )
