"""Read-only chain store backends."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

from .base import ChainStore
from .memory import InMemoryChainStore
from .ndjson import NdjsonChainStore

__all__ = [
    "ChainStore",
    "InMemoryChainStore",
    "NdjsonChainStore",
    "SqlChainStore",
    "create_schema",
]

if TYPE_CHECKING:
    from .sql import SqlChainStore, create_schema


def __getattr__(name: str) -> Any:
    """Import the SQL backend only when it is asked for."""

    if name in ("SqlChainStore", "create_schema"):
        module = import_module(".sql", __name__)
        return getattr(module, name)
    raise AttributeError(name)
