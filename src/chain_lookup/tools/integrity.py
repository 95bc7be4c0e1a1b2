"""Offline integrity checks over an ordered sequence of chain entries.

Linkage is the only property observable without the ingestion path: every
entry after the first must name its predecessor's ``curr_hash`` as its
``prev_hash``. Writer signatures can additionally be checked against the
public key recorded on each entry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from ..schemas import ChainEntry
from .verify import verify_signature

logger = logging.getLogger(__name__)


def verify_chain(entries: Iterable[ChainEntry]) -> tuple[bool, int]:
    """
    Validate ordering and hash linkage of ``entries``.

    Returns ``(ok, first_bad_sequence)``. When the chain is intact the second
    element is ``-1``; otherwise it is the ``sequence`` of the first entry that
    breaks ordering or linkage.
    """

    previous: ChainEntry | None = None
    for entry in entries:
        if previous is None:
            if entry.prev_hash is not None:
                logger.debug(
                    "Genesis entry carries a previous hash",
                    extra={"sequence": entry.sequence},
                )
                return False, entry.sequence
        else:
            if entry.sequence <= previous.sequence:
                return False, entry.sequence
            if entry.prev_hash != previous.curr_hash:
                logger.debug(
                    "Chain linkage broken",
                    extra={
                        "sequence": entry.sequence,
                        "expected": previous.curr_hash,
                        "found": entry.prev_hash,
                    },
                )
                return False, entry.sequence
        previous = entry
    return True, -1


def verify_entry_signature(entry: ChainEntry) -> bool:
    """Return ``True`` when the writer's signature over ``contents`` is valid."""

    if not entry.public_key or not entry.signature:
        return False
    return verify_signature(
        entry.contents.encode("utf-8"), entry.signature, entry.public_key
    )


def find_invalid_signatures(entries: Iterable[ChainEntry]) -> list[int]:
    """Return the sequences of entries whose writer signature does not verify."""

    return [entry.sequence for entry in entries if not verify_entry_signature(entry)]
