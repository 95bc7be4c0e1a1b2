"""Chain Lookup - signed read access to an append-only hash chain."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "ChainClient",
    "ChainEntry",
    "ChainQueryService",
    "ChainStore",
    "InMemoryChainStore",
    "NdjsonChainStore",
    "QueryKind",
    "ResponseSigner",
    "SignedEnvelope",
    "SignedResponse",
    "Signer",
    "SqlChainStore",
    "build_service",
    "verify_response",
]

if TYPE_CHECKING:
    from .client import ChainClient
    from .envelope import ResponseSigner, SignedResponse, verify_response
    from .factory import build_service
    from .schemas import ChainEntry, SignedEnvelope
    from .service import ChainQueryService, QueryKind
    from .store import ChainStore, InMemoryChainStore, NdjsonChainStore
    from .store.sql import SqlChainStore
    from .tools.verify import Signer


def __getattr__(name: str) -> Any:
    """Lazily import modules so the HTTP and database stacks load on demand."""

    module_map = {
        "ChainClient": "client",
        "ChainEntry": "schemas",
        "ChainQueryService": "service",
        "ChainStore": "store",
        "InMemoryChainStore": "store",
        "NdjsonChainStore": "store",
        "QueryKind": "service",
        "ResponseSigner": "envelope",
        "SignedEnvelope": "schemas",
        "SignedResponse": "envelope",
        "Signer": "tools.verify",
        "SqlChainStore": "store.sql",
        "build_service": "factory",
        "verify_response": "envelope",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
