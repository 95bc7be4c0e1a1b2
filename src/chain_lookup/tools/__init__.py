"""
Small helpers for canonical serialization, signing and chain integrity.
"""

from .canonicalize import canonicalize
from .integrity import verify_chain, verify_entry_signature
from .verify import Signer, verify_signature

__all__ = [
    "Signer",
    "canonicalize",
    "verify_chain",
    "verify_entry_signature",
    "verify_signature",
]
