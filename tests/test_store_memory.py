"""Tests for the in-memory chain store and its chain properties."""

from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from chain_builders import build_chain, scenario_entries
from chain_lookup.errors import EmptyChain, NotFound
from chain_lookup.schemas import ChainEntry
from chain_lookup.store.memory import InMemoryChainStore


@st.composite
def chains(draw: st.DrawFn) -> list[ChainEntry]:
    length = draw(st.integers(min_value=0, max_value=25))
    summaries = draw(st.sets(st.integers(min_value=1, max_value=max(length, 1))))
    return build_chain(length, summaries)


def test_lookup_by_current_and_summary_hash(scenario_store):
    assert scenario_store.entry_by_hash("b").sequence == 2
    assert scenario_store.entry_by_hash("chk1").sequence == 2
    assert scenario_store.entry_by_hash("chk1") == scenario_store.entry_by_hash("b")


def test_lookup_unknown_hash_raises_not_found(scenario_store):
    with pytest.raises(NotFound, match="No record found matching this hash."):
        scenario_store.entry_by_hash("zzz")


def test_entries_after_excludes_anchor(scenario_store):
    assert [e.curr_hash for e in scenario_store.entries_after("a")] == ["b", "c"]
    assert [e.curr_hash for e in scenario_store.entries_after("chk1")] == ["c"]
    assert scenario_store.entries_after("c") == []


def test_entries_after_unknown_hash(scenario_store):
    with pytest.raises(NotFound):
        scenario_store.entries_after("missing")


def test_last_entry_returns_newest_hash_pair(scenario_store):
    assert scenario_store.last_entry() == ("c", None)


def test_last_entry_on_empty_store():
    with pytest.raises(EmptyChain):
        InMemoryChainStore().last_entry()


def test_entries_are_ordered_by_sequence_not_input_order():
    store = InMemoryChainStore(list(reversed(scenario_entries())))
    assert [e.sequence for e in store.all_entries()] == [1, 2, 3]


def test_duplicate_sequence_is_rejected():
    first, second, _ = scenario_entries()
    clash = second.model_copy(update={"sequence": 1})
    with pytest.raises(ValueError, match="Duplicate sequence"):
        InMemoryChainStore([first, clash])


def test_hash_claimed_by_two_entries_is_rejected():
    first, second, _ = scenario_entries()
    clash = second.model_copy(update={"summary_hash": "a"})
    with pytest.raises(ValueError, match="claimed by entries"):
        InMemoryChainStore([first, clash])


def test_entry_may_reuse_its_own_hash_as_summary():
    entry = scenario_entries()[0].model_copy(update={"summary_hash": "a"})
    store = InMemoryChainStore([entry])
    assert store.entry_by_hash("a") == entry


def test_all_entries_returns_a_copy(scenario_store):
    snapshot = scenario_store.all_entries()
    snapshot.clear()
    assert len(scenario_store.all_entries()) == 3


@given(chains())
def test_generated_chains_are_linked(entries):
    ordered = InMemoryChainStore(entries).all_entries()
    for previous, current in zip(ordered, ordered[1:]):
        assert current.prev_hash == previous.curr_hash
    if ordered:
        assert ordered[0].prev_hash is None


@given(chains())
def test_entry_by_hash_resolves_every_issued_hash(entries):
    store = InMemoryChainStore(entries)
    for entry in entries:
        for key in entry.hashes():
            assert store.entry_by_hash(key) == entry


@given(chains(), st.text(min_size=1, max_size=8))
def test_unissued_hash_is_not_found(entries, candidate):
    issued = {key for entry in entries for key in entry.hashes()}
    store = InMemoryChainStore(entries)
    if candidate in issued:
        return
    with pytest.raises(NotFound):
        store.entry_by_hash(candidate)


@given(chains())
def test_entries_after_is_strictly_newer_and_ascending(entries):
    store = InMemoryChainStore(entries)
    if not entries:
        return
    newest = max(entry.sequence for entry in entries)
    for entry in entries:
        after = store.entries_after(entry.curr_hash)
        sequences = [e.sequence for e in after]
        assert sequences == sorted(sequences)
        assert all(seq > entry.sequence for seq in sequences)
        assert len(after) == sum(1 for e in entries if e.sequence > entry.sequence)
        assert (after == []) == (entry.sequence == newest)


@given(chains())
def test_all_entries_matches_individual_lookups(entries):
    store = InMemoryChainStore(entries)
    looked_up = [store.entry_by_hash(entry.curr_hash) for entry in entries]
    assert store.all_entries() == looked_up
