"""
Chain store backed by an NDJSON ledger file.

Each non-empty line holds one entry. Lines may use the export field names
(``prev``, ``hash``, ``summary``), the lookup field names (``prevhash``,
``currhash``, ``summaryhash``) or the model field names. When a line carries
no ``sequence`` its 1-based position among non-empty lines is used.

Writers are expected to hold an exclusive ``portalocker`` lock on the
sibling ``<ledger>.lock`` file while they append or rewrite the ledger.
Readers take a shared lock on the same file, so every query observes a
complete ledger and never a half-written line.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

import portalocker
from pydantic import ValidationError as PydanticValidationError

from ..errors import StoreError
from ..schemas import ChainEntry
from .base import ChainStore
from .memory import InMemoryChainStore

logger = logging.getLogger(__name__)

_SnapshotKey = tuple[int, int, int]


@contextmanager
def _shared_ledger_lock(ledger_path: Path) -> Iterator[IO[bytes]]:
    """Hold a shared advisory lock on the ledger's sibling lock file."""
    lock_path = ledger_path.with_suffix(ledger_path.suffix + ".lock")
    with lock_path.open("a+b") as lock_fp:
        portalocker.lock(lock_fp, portalocker.LOCK_SH)
        try:
            yield lock_fp
        finally:
            portalocker.unlock(lock_fp)


def _parse_line(line: bytes, position: int, line_number: int) -> ChainEntry:
    """Parse one ledger line into a :class:`ChainEntry`."""
    try:
        record = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StoreError(f"Malformed ledger entry on line {line_number}") from exc
    if not isinstance(record, dict):
        raise StoreError(f"Malformed ledger entry on line {line_number}")
    if "sequence" not in record and "id" not in record:
        record["sequence"] = position
    try:
        return ChainEntry.model_validate(record)
    except PydanticValidationError as exc:
        raise StoreError(
            f"Malformed ledger entry on line {line_number}: "
            f"{exc.error_count()} validation error(s)"
        ) from exc


class NdjsonChainStore(ChainStore):
    """Answer chain queries from an NDJSON ledger file.

    Args:
        ledger_path: Path of the ledger. A missing file is an empty chain.
        cache: When ``True`` the parsed snapshot is reused until the file's
            inode, modification time or size changes.
    """

    def __init__(self, ledger_path: str | Path, *, cache: bool = True) -> None:
        self.ledger_path = Path(ledger_path)
        self._cache_enabled = cache
        self._cached: tuple[_SnapshotKey, InMemoryChainStore] | None = None
        self._cache_hits = 0
        self._cache_misses = 0

    def get_cache_stats(self) -> dict[str, int]:
        """Return snapshot cache hit/miss counters."""

        return {"hits": self._cache_hits, "misses": self._cache_misses}

    def _snapshot(self) -> InMemoryChainStore:
        """Return an immutable view of the ledger as of this call."""
        if not self.ledger_path.exists():
            return InMemoryChainStore()
        try:
            with _shared_ledger_lock(self.ledger_path):
                with self.ledger_path.open("rb") as src:
                    stat = os.fstat(src.fileno())
                    key: _SnapshotKey = (stat.st_ino, stat.st_mtime_ns, stat.st_size)
                    cached = self._cached
                    if self._cache_enabled and cached is not None and cached[0] == key:
                        self._cache_hits += 1
                        return cached[1]
                    self._cache_misses += 1
                    snapshot = self._read(src)
        except (OSError, portalocker.LockException) as exc:
            raise StoreError(
                f"Unable to read ledger at {self.ledger_path}: {exc}"
            ) from exc

        if self._cache_enabled:
            self._cached = (key, snapshot)
        logger.debug(
            "Ledger snapshot loaded",
            extra={"ledger_path": str(self.ledger_path), "entries": len(snapshot)},
        )
        return snapshot

    def _read(self, src: IO[bytes]) -> InMemoryChainStore:
        entries: list[ChainEntry] = []
        position = 0
        for line_number, raw in enumerate(src, start=1):
            line = raw.strip()
            if not line:
                continue
            position += 1
            entries.append(_parse_line(line, position, line_number))
        try:
            return InMemoryChainStore(entries)
        except ValueError as exc:
            raise StoreError(f"Inconsistent ledger: {exc}") from exc

    def entry_by_hash(self, hash_: str) -> ChainEntry:
        return self._snapshot().entry_by_hash(hash_)

    def last_entry(self) -> tuple[str, str | None]:
        return self._snapshot().last_entry()

    def entries_after(self, hash_: str) -> list[ChainEntry]:
        return self._snapshot().entries_after(hash_)

    def all_entries(self) -> list[ChainEntry]:
        return self._snapshot().all_entries()
