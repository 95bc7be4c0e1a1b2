"""Immutable in-memory chain store with a unified hash index."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..errors import EmptyChain, NotFound
from ..schemas import ChainEntry
from .base import ChainStore


class InMemoryChainStore(ChainStore):
    """Serve queries from a fixed, sequence-ordered tuple of entries.

    Every issued hash (``curr_hash`` and ``summary_hash``) is mapped to its
    owning entry in a single index, so a lookup never has to guess which
    role a hash was issued for. The store never changes after construction,
    which makes it safe to share between threads and gives every call the
    same snapshot.

    Raises:
        ValueError: If two entries share a ``sequence`` or if one hash string
            is claimed by two different entries.
    """

    def __init__(self, entries: Iterable[ChainEntry] = ()) -> None:
        ordered = tuple(sorted(entries, key=lambda entry: entry.sequence))
        positions: dict[int, int] = {}
        index: dict[str, ChainEntry] = {}
        for position, entry in enumerate(ordered):
            if entry.sequence in positions:
                raise ValueError(f"Duplicate sequence {entry.sequence} in chain")
            positions[entry.sequence] = position
            for key in entry.hashes():
                owner = index.get(key)
                if owner is not None and owner.sequence != entry.sequence:
                    raise ValueError(
                        f"Hash {key!r} is claimed by entries {owner.sequence} "
                        f"and {entry.sequence}"
                    )
                index[key] = entry
        self._entries = ordered
        self._positions = positions
        self._index = index

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ChainEntry]:
        return iter(self._entries)

    def entry_by_hash(self, hash_: str) -> ChainEntry:
        entry = self._index.get(hash_)
        if entry is None:
            raise NotFound()
        return entry

    def last_entry(self) -> tuple[str, str | None]:
        if not self._entries:
            raise EmptyChain()
        newest = self._entries[-1]
        return newest.curr_hash, newest.summary_hash

    def entries_after(self, hash_: str) -> list[ChainEntry]:
        anchor = self.entry_by_hash(hash_)
        start = self._positions[anchor.sequence] + 1
        return list(self._entries[start:])

    def all_entries(self) -> list[ChainEntry]:
        return list(self._entries)
