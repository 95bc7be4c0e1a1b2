"""Read-only store contract for the chain."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..schemas import ChainEntry


class ChainStore(ABC):
    """Abstract read-only accessor over the ordered chain.

    Implementations answer each call from one consistent snapshot: no entry
    may appear twice and no gap may appear inside the range actually covered.
    Concurrent calls need not observe the same snapshot.
    """

    @abstractmethod
    def entry_by_hash(self, hash_: str) -> ChainEntry:
        """Return the entry whose ``curr_hash`` or ``summary_hash`` equals ``hash_``.

        Raises:
            NotFound: If no entry matches either field.
        """

    @abstractmethod
    def last_entry(self) -> tuple[str, str | None]:
        """Return ``(curr_hash, summary_hash)`` of the newest entry.

        Raises:
            EmptyChain: If the store holds no entries.
        """

    @abstractmethod
    def entries_after(self, hash_: str) -> list[ChainEntry]:
        """Return every entry newer than the one ``hash_`` resolves to.

        The anchor entry itself is excluded; an empty list means the anchor is
        the newest entry.

        Raises:
            NotFound: If ``hash_`` does not resolve.
        """

    @abstractmethod
    def all_entries(self) -> list[ChainEntry]:
        """Return the whole chain in ascending ``sequence`` order."""
