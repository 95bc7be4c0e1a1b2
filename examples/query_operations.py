#!/usr/bin/env python3
"""
Chain Query Example

This example demonstrates:
- Serving a small NDJSON ledger through the query service
- Resolving entries by current hash and by summary hash
- Verifying signed responses offline with the server's public key
- Checking chain linkage
"""

import json
import tempfile
from pathlib import Path

from chain_lookup.envelope import ResponseSigner, verify_response
from chain_lookup.service import ChainQueryService
from chain_lookup.store.ndjson import NdjsonChainStore
from chain_lookup.tools.integrity import verify_chain
from chain_lookup.tools.verify import Signer


def write_sample_ledger(path):
    """Write a three-entry chain with a checkpoint on the second entry."""
    rows = [
        {"contents": "genesis", "prev": None, "hash": "a", "summary": None},
        {"contents": "second", "prev": "a", "hash": "b", "summary": "chk1"},
        {"contents": "third", "prev": "b", "hash": "c", "summary": None},
    ]
    path.write_text("\n".join(json.dumps(row) for row in rows) + "\n")


def demonstrate_queries():
    """Run every query kind and verify the responses."""
    print("Chain Query Example")
    print("=" * 40)

    with tempfile.TemporaryDirectory() as tmp_dir:
        ledger_path = Path(tmp_dir) / "chain.ndjson"
        write_sample_ledger(ledger_path)

        store = NdjsonChainStore(ledger_path)
        server_key = Signer(bytes(range(32)))
        service = ChainQueryService(store, ResponseSigner(server_key))

        ok, bad = verify_chain(store.all_entries())
        print(f"Chain linkage intact: {ok} (first bad sequence: {bad})")

        for kind, hash_ in [
            ("lasthash", None),
            ("hash", "chk1"),
            ("since", "a"),
            ("since", "missing"),
            ("hash", None),
        ]:
            response = service.handle(kind, hash_)
            envelope = verify_response(
                response.body, response.signature, server_key.signing_key
            )
            print(f"\n{kind}({hash_!r}) -> {envelope.status}")
            print(json.dumps(envelope.results, indent=2))


if __name__ == "__main__":
    demonstrate_queries()
