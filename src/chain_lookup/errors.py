"""Exception types raised by the chain query engine and its clients."""

from __future__ import annotations

__all__ = [
    "ChainClientError",
    "ChainQueryError",
    "EmptyChain",
    "NotFound",
    "ResponseVerificationError",
    "SigningFailure",
    "StoreError",
    "UnknownOperation",
    "ValidationError",
]


class ChainQueryError(Exception):
    """Base class for failures that are reported inside a signed envelope."""

    default_message = "Chain query failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ChainQueryError):
    """Raised when a hash matches neither ``curr_hash`` nor ``summary_hash``."""

    default_message = "No record found matching this hash."


class EmptyChain(ChainQueryError):
    """Raised when the newest entry is requested from an empty store."""

    default_message = "The chain is empty."


class ValidationError(ChainQueryError):
    """Raised when a query is rejected before it reaches the store."""

    default_message = "Invalid query arguments."


class UnknownOperation(ChainQueryError):
    """Raised for query kinds outside the supported whitelist."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Unknown method: {kind}")


class StoreError(ChainQueryError):
    """Raised when the backing store cannot be read."""

    default_message = "The chain store is unavailable."


class SigningFailure(RuntimeError):
    """Raised when no signed response can be produced.

    This is a configuration fault for the whole process and is never folded
    into an error envelope.
    """


class ResponseVerificationError(ValueError):
    """Raised when a signed response fails verification."""


class ChainClientError(RuntimeError):
    """Raised when a remote chain server cannot be reached."""
