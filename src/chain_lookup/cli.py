"""Command-line utilities for chain_lookup."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .errors import ChainQueryError, ResponseVerificationError, SigningFailure
from .envelope import verify_response
from .factory import build_service
from .logging_pipeline import configure_structured_logging, shutdown_listeners
from .service import QueryKind
from .settings import get_settings
from .store.ndjson import NdjsonChainStore
from .tools.integrity import find_invalid_signatures, verify_chain


def _read_stdin() -> str | None:
    """Read a payload from stdin if one is piped in."""
    try:
        if sys.stdin and not sys.stdin.isatty():
            return sys.stdin.read()
    except IOError as e:
        print(f"Error reading stdin: {e}", file=sys.stderr)
    return None


def _load_json(path: str | None, stdin_payload: str | None) -> dict[str, object]:
    """Load a JSON object from a file or stdin."""
    if path:
        text = Path(path).read_text(encoding="utf-8")
    elif stdin_payload:
        text = stdin_payload
    else:
        raise ValueError("No input provided. Use --input or pipe JSON via stdin.")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Input JSON must be an object at the top level.")
    return {str(key): value for key, value in data.items()}


def _emit(payload: dict[str, object], quiet: bool) -> None:
    if not quiet:
        print(json.dumps(payload, separators=(",", ":")))


def _cmd_query(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.ledger:
        overrides["ledger_path"] = args.ledger
        overrides["database_url"] = None
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.key_file:
        overrides["signing_key_file"] = args.key_file
        overrides["signing_key"] = None
    settings = get_settings().model_copy(update=overrides)

    listener = None
    if args.log_json:
        listener = configure_structured_logging(
            logging.getLogger("chain_lookup"), level=settings.log_level
        )
    try:
        service = build_service(settings)
        response = service.handle(args.kind, args.hash)
    finally:
        if listener is not None:
            shutdown_listeners([listener])

    _emit(response.to_dict(), args.quiet)
    return 0 if response.ok else 1


def _cmd_verify(args: argparse.Namespace) -> int:
    stdin_payload = None if args.input else _read_stdin()
    data = _load_json(args.input, stdin_payload)
    public_key = args.public_key
    if not public_key:
        candidate = data.get("signing_key")
        if isinstance(candidate, str):
            public_key = candidate
    if not public_key:
        raise ValueError("Missing --public-key and no 'signing_key' in payload.")

    body = data.get("body")
    signature = data.get("signature")
    if not isinstance(body, str):
        raise ValueError("Input has no 'body' string.")
    try:
        envelope = verify_response(
            body, signature if isinstance(signature, str) else None, public_key
        )
    except ResponseVerificationError as exc:
        _emit({"valid": False, "envelope": None, "error": str(exc)}, args.quiet)
        return 1

    _emit({"valid": True, "envelope": envelope.model_dump_json_ready()}, args.quiet)
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    entries = NdjsonChainStore(args.ledger, cache=False).all_entries()
    ok, bad_sequence = verify_chain(entries)
    report: dict[str, object] = {
        "valid": ok,
        "entries": len(entries),
        "first_bad_sequence": bad_sequence,
    }
    if args.signatures:
        invalid = find_invalid_signatures(entries)
        report["invalid_signatures"] = invalid
        ok = ok and not invalid
        report["valid"] = ok
    _emit(report, args.quiet)
    return 0 if ok else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chain-lookup",
        description="Query, verify and check a signed hash chain.",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Quiet mode: suppress output, just return exit code.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser("query", help="Run one query and print the signed response.")
    query.add_argument("kind", help=f"Query kind ({', '.join(k.value for k in QueryKind)}).")
    query.add_argument("hash", nargs="?", default=None, help="Entry or summary hash.")
    query.add_argument("--ledger", help="NDJSON ledger path (overrides settings).")
    query.add_argument("--database-url", help="SQLAlchemy URL (overrides settings).")
    query.add_argument("--key-file", help="File holding the hex signing seed.")
    query.add_argument(
        "--log-json", action="store_true", help="Emit structured JSON logs on stderr."
    )
    query.set_defaults(handler=_cmd_query)

    verify = commands.add_parser("verify", help="Verify a saved signed response.")
    verify.add_argument(
        "--input", "-i", help="Path to the saved response. If omitted, reads stdin."
    )
    verify.add_argument(
        "--public-key",
        "-k",
        help="Server public key. If omitted, uses 'signing_key' embedded in the input.",
    )
    verify.set_defaults(handler=_cmd_verify)

    check = commands.add_parser("check", help="Check hash linkage of an NDJSON ledger.")
    check.add_argument("--ledger", required=True, help="NDJSON ledger path.")
    check.add_argument(
        "--signatures", action="store_true", help="Also verify writer signatures."
    )
    check.set_defaults(handler=_cmd_check)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``chain-lookup`` command."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    try:
        return int(args.handler(args))
    except SigningFailure as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 2
    except (ChainQueryError, ValueError, OSError) as exc:
        if not args.quiet:
            print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
