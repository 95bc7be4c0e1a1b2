"""Wire shapes for query results."""

from __future__ import annotations

from typing import TypedDict


class ExportRow(TypedDict):
    """One entry as returned by the ``export`` query."""

    contents: str
    prev: str | None
    hash: str
    summary: str | None
    created: str
    publickey: str
    signature: str


class LookupRow(TypedDict):
    """One entry as returned by the ``hash`` and ``since`` queries."""

    contents: str
    prevhash: str | None
    currhash: str
    summaryhash: str | None
    created: str
    publickey: str
    signature: str


# Hyphenated keys are part of the wire format.
LastHash = TypedDict(
    "LastHash",
    {"current-hash": str, "summary-hash": str | None},
)
