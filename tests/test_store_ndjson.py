"""Tests for the NDJSON ledger store."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path

import pytest

from chain_builders import build_chain, scenario_entries, write_ledger
from chain_lookup.errors import EmptyChain, NotFound, StoreError
from chain_lookup.store.ndjson import NdjsonChainStore


def test_scenario_queries_against_ledger_file(tmp_path: Path) -> None:
    ledger = write_ledger(tmp_path / "chain.ndjson", scenario_entries())
    store = NdjsonChainStore(ledger)

    assert store.entry_by_hash("chk1").curr_hash == "b"
    assert [e.curr_hash for e in store.entries_after("a")] == ["b", "c"]
    assert store.entries_after("c") == []
    assert store.last_entry() == ("c", None)
    assert store.all_entries() == scenario_entries()


def test_missing_ledger_is_an_empty_chain(tmp_path: Path) -> None:
    store = NdjsonChainStore(tmp_path / "absent.ndjson")
    assert store.all_entries() == []
    with pytest.raises(EmptyChain):
        store.last_entry()
    with pytest.raises(NotFound):
        store.entry_by_hash("a")


def test_lookup_field_names_and_implicit_sequence(tmp_path: Path) -> None:
    ledger = tmp_path / "lookup-shape.ndjson"
    rows = [entry.to_lookup_row() for entry in scenario_entries()]
    ledger.write_text(
        "\n\n".join(json.dumps(row) for row in rows) + "\n", encoding="utf-8"
    )

    entries = NdjsonChainStore(ledger).all_entries()
    assert [e.sequence for e in entries] == [1, 2, 3]
    assert entries[1].summary_hash == "chk1"


def test_malformed_line_reports_line_number(tmp_path: Path) -> None:
    ledger = write_ledger(tmp_path / "broken.ndjson", scenario_entries())
    with ledger.open("a", encoding="utf-8") as fh:
        fh.write("{not json\n")

    with pytest.raises(StoreError, match="line 4"):
        NdjsonChainStore(ledger).all_entries()


def test_record_missing_hash_is_rejected(tmp_path: Path) -> None:
    ledger = tmp_path / "nohash.ndjson"
    ledger.write_text(json.dumps({"contents": "x"}) + "\n", encoding="utf-8")

    with pytest.raises(StoreError, match="line 1"):
        NdjsonChainStore(ledger).all_entries()


def test_duplicate_hash_in_ledger_is_a_store_error(tmp_path: Path) -> None:
    first, second, _ = scenario_entries()
    ledger = write_ledger(
        tmp_path / "dup.ndjson", [first, second.model_copy(update={"curr_hash": "a"})]
    )

    with pytest.raises(StoreError, match="Inconsistent ledger"):
        NdjsonChainStore(ledger).all_entries()


def test_snapshot_cache_reloads_after_append(tmp_path: Path) -> None:
    entries = build_chain(4)
    ledger = write_ledger(tmp_path / "grow.ndjson", entries[:3])
    store = NdjsonChainStore(ledger)

    assert len(store.all_entries()) == 3
    assert len(store.all_entries()) == 3
    assert store.get_cache_stats() == {"hits": 1, "misses": 1}

    with ledger.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(entries[3].to_export_row()) + "\n")
    stat = ledger.stat()
    os.utime(ledger, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000))

    assert store.last_entry()[0] == entries[3].curr_hash
    assert store.get_cache_stats()["misses"] == 2


def test_concurrent_readers_see_complete_snapshots(tmp_path: Path) -> None:
    entries = build_chain(20, summary_positions=(5, 10, 15))
    ledger = write_ledger(tmp_path / "shared.ndjson", entries)
    store = NdjsonChainStore(ledger, cache=False)
    results: list[int] = []
    errors: list[BaseException] = []

    def reader() -> None:
        try:
            for _ in range(5):
                snapshot = store.all_entries()
                sequences = [e.sequence for e in snapshot]
                assert sequences == list(range(1, len(snapshot) + 1))
                results.append(len(snapshot))
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    assert results == [20] * 20
