"""Dispatch of chain queries to the store and into signed envelopes."""

from __future__ import annotations

import logging
from enum import StrEnum

from .envelope import ResponseSigner, SignedResponse
from .errors import ChainQueryError, UnknownOperation, ValidationError
from .schemas import STATUS_ERROR, STATUS_OK
from .store.base import ChainStore
from .types import ExportRow, LastHash, LookupRow

__all__ = ["ChainQueryService", "QueryKind"]

LOGGER = logging.getLogger(__name__)


class QueryKind(StrEnum):
    """Whitelisted query kinds."""

    EXPORT = "export"
    LASTHASH = "lasthash"
    HASH = "hash"
    SINCE = "since"

    @property
    def requires_hash(self) -> bool:
        return self in (QueryKind.HASH, QueryKind.SINCE)


class ChainQueryService:
    """Map query kinds onto :class:`ChainStore` reads and sign the outcome.

    Args:
        store: Read-only chain store.
        response_signer: Signer that wraps every result, including errors.

    :meth:`handle` is the only place failures are converted into signed
    error envelopes. :class:`~chain_lookup.errors.SigningFailure` is never
    converted and propagates to the caller.
    """

    def __init__(self, store: ChainStore, response_signer: ResponseSigner) -> None:
        self.store = store
        self.response_signer = response_signer

    def handle(self, kind: str, hash_: str | None = None) -> SignedResponse:
        """Run one query and return its signed envelope.

        Args:
            kind: One of ``export``, ``lasthash``, ``hash`` or ``since``.
            hash_: Entry or summary hash; required by ``hash`` and ``since``.

        Returns:
            A signed ``OK`` envelope holding the shaped results, or a signed
            ``ERROR`` envelope holding the failure message.
        """

        try:
            results = self._dispatch(kind, hash_)
        except ChainQueryError as exc:
            LOGGER.info(
                "Chain query rejected",
                extra={
                    "query": kind,
                    "status": STATUS_ERROR,
                    "error": type(exc).__name__,
                },
            )
            return self.response_signer.sign(STATUS_ERROR, exc.message)

        LOGGER.info(
            "Chain query served",
            extra={
                "query": kind,
                "status": STATUS_OK,
                "result_count": len(results) if isinstance(results, list) else 1,
            },
        )
        return self.response_signer.sign(STATUS_OK, results)

    def export(self) -> SignedResponse:
        return self.handle(QueryKind.EXPORT)

    def lasthash(self) -> SignedResponse:
        return self.handle(QueryKind.LASTHASH)

    def lookup(self, hash_: str | None) -> SignedResponse:
        return self.handle(QueryKind.HASH, hash_)

    def since(self, hash_: str | None) -> SignedResponse:
        return self.handle(QueryKind.SINCE, hash_)

    def _dispatch(
        self, kind: str, hash_: str | None
    ) -> list[ExportRow] | list[LookupRow] | LookupRow | LastHash:
        try:
            query = QueryKind(kind)
        except ValueError:
            raise UnknownOperation(str(kind)) from None

        if query.requires_hash and not hash_:
            raise ValidationError(
                f"Query '{query.value}' requires a non-empty hash argument."
            )

        if query is QueryKind.EXPORT:
            return [entry.to_export_row() for entry in self.store.all_entries()]
        if query is QueryKind.LASTHASH:
            current, summary = self.store.last_entry()
            return {"current-hash": current, "summary-hash": summary}
        if query is QueryKind.HASH:
            return self.store.entry_by_hash(hash_).to_lookup_row()
        return [entry.to_lookup_row() for entry in self.store.entries_after(hash_)]
