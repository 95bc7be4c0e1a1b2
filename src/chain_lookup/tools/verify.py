"""
Ed25519 signing and detached-signature verification.

Provides:
- Signer(private_key): holds the service's response signing key
- encode_signature / decode_signature: base64url helpers for header values
- verify_signature(data, signature, public_key_hex): detached verification
"""

from __future__ import annotations

import base64
import binascii
import os
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from ..errors import SigningFailure

SIGNATURE_ALGORITHM = "ed25519"


def encode_signature(signature: bytes) -> str:
    """Return unpadded base64url text for ``signature``."""

    return base64.urlsafe_b64encode(signature).rstrip(b"=").decode("ascii")


def decode_signature(text: str) -> bytes:
    """Decode base64url (padded or not) or hex signature text.

    Raises:
        ValueError: If ``text`` is in neither encoding.
    """

    candidate = text.strip()
    # A 64-byte Ed25519 signature is 128 hex characters.
    if len(candidate) == 128:
        try:
            return bytes.fromhex(candidate)
        except ValueError:
            pass
    padded = candidate + "=" * (-len(candidate) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError("Signature is neither base64url nor hex encoded") from exc


def load_public_key(public_key: str) -> Ed25519PublicKey:
    """Parse a raw Ed25519 public key given as hex or base64url text.

    Raises:
        ValueError: If the key is not 32 bytes in either encoding.
    """

    pk = public_key.strip()
    if pk.startswith(("0x", "0X")):
        pk = pk[2:]
    raw: bytes | None = None
    if len(pk) == 64:
        try:
            raw = bytes.fromhex(pk)
        except ValueError:
            raw = None
    if raw is None:
        try:
            raw = base64.urlsafe_b64decode(pk + "=" * (-len(pk) % 4))
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise ValueError("Public key is neither hex nor base64url") from exc
    if len(raw) != 32:
        raise ValueError("Ed25519 public keys must be exactly 32 bytes")
    return Ed25519PublicKey.from_public_bytes(raw)


def verify_signature(data: bytes, signature: str, public_key: str) -> bool:
    """Return ``True`` when ``signature`` is valid for ``data``."""

    try:
        pub = load_public_key(public_key)
        pub.verify(decode_signature(signature), data)
    except (InvalidSignature, ValueError):
        return False
    return True


class Signer:
    """
    Signing abstraction using Ed25519.

    Args:
    ----
        private_key: Optional bytes. Must be a 32-byte Ed25519 seed. When
            ``None``, a random seed is generated if ``ephemeral=True``;
            otherwise :class:`SigningFailure` is raised.
        ephemeral: If ``True``, allows generating an ephemeral key for testing.

    Attributes:
    ----------
        algorithm: Always ``"ed25519"``.
        signing_key: Hex encoding of the Ed25519 public key.

    """

    def __init__(
        self, private_key: bytes | None = None, ephemeral: bool = False
    ) -> None:
        self.algorithm = SIGNATURE_ALGORITHM

        if private_key is None:
            if not ephemeral:
                raise SigningFailure(
                    "A response signing key is required. Configure "
                    "CHAIN_LOOKUP_SIGNING_KEY or CHAIN_LOOKUP_SIGNING_KEY_FILE, "
                    "or set ephemeral=True for testing."
                )
            private_key = os.urandom(32)
        if len(private_key) != 32:
            raise SigningFailure("private_key must be exactly 32 bytes for Ed25519")

        self._priv = Ed25519PrivateKey.from_private_bytes(bytes(private_key))
        pub_bytes = self._priv.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        self.signing_key = pub_bytes.hex()

    @classmethod
    def from_hex(cls, seed_hex: str) -> Signer:
        """Build a signer from a hex-encoded 32-byte seed."""

        seed = seed_hex.strip()
        if seed.startswith(("0x", "0X")):
            seed = seed[2:]
        try:
            raw = bytes.fromhex(seed)
        except ValueError as exc:
            raise SigningFailure("Signing key is not valid hex") from exc
        return cls(raw)

    @classmethod
    def from_file(cls, path: str | Path) -> Signer:
        """Build a signer from a file holding the hex-encoded seed."""

        key_path = Path(path)
        try:
            text = key_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SigningFailure(
                f"Unable to read signing key from {key_path}: {exc}"
            ) from exc
        return cls.from_hex(text)

    def sign_bytes(self, data: bytes) -> bytes:
        """Return the raw Ed25519 signature over ``data``."""

        return self._priv.sign(data)
