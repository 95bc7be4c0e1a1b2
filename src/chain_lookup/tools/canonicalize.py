"""Deterministic JSON canonicalization helpers."""

from __future__ import annotations

import json


def canonicalize(obj: object) -> str:
    """
    Return a deterministic JSON serialization for `obj`.

    Uses sort_keys and compact separators so that structurally equal values
    always produce identical bytes. Only basic JSON types are accepted; any
    other value raises ``TypeError``.
    """

    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
