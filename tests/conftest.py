"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys

import pytest

# Ensure src/ is on sys.path so tests run against the src layout
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from chain_builders import FIXED_NOW, SpyStore, scenario_entries  # noqa: E402

from chain_lookup.envelope import ResponseSigner  # noqa: E402
from chain_lookup.service import ChainQueryService  # noqa: E402
from chain_lookup.store.memory import InMemoryChainStore  # noqa: E402
from chain_lookup.tools.verify import Signer  # noqa: E402


@pytest.fixture
def signer() -> Signer:
    """Deterministic response signer for reproducible signatures."""
    return Signer(bytes(range(32)))


@pytest.fixture
def response_signer(signer: Signer) -> ResponseSigner:
    return ResponseSigner(signer, clock=lambda: FIXED_NOW)


@pytest.fixture
def scenario_store() -> InMemoryChainStore:
    return InMemoryChainStore(scenario_entries())


@pytest.fixture
def spy_store(scenario_store: InMemoryChainStore) -> SpyStore:
    return SpyStore(scenario_store)


@pytest.fixture
def service(spy_store: SpyStore, response_signer: ResponseSigner) -> ChainQueryService:
    return ChainQueryService(spy_store, response_signer)
