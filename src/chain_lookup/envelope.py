"""Construction and verification of signed response envelopes."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from pydantic import ValidationError as PydanticValidationError

from .errors import ResponseVerificationError, SigningFailure
from .schemas import CURRENT_ENVELOPE_VERSION, SignedEnvelope, StatusLiteral
from .tools.canonicalize import canonicalize
from .tools.verify import Signer, encode_signature, verify_signature

__all__ = [
    "SIGNATURE_HEADER",
    "ResponseSigner",
    "SignedResponse",
    "format_timestamp",
    "verify_response",
]

LOGGER = logging.getLogger(__name__)

SIGNATURE_HEADER = "Body-Signature-Ed25519"


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ISO-8601 with seconds precision and an offset."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat(timespec="seconds")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class SignedResponse:
    """A serialized envelope together with its detached signature.

    Attributes:
        envelope: Parsed envelope that ``body`` encodes.
        body: Exact canonical JSON text that was signed.
        signature: Unpadded base64url Ed25519 signature over ``body``.
        signing_key: Hex public key that verifies ``signature``.
    """

    envelope: SignedEnvelope
    body: str
    signature: str
    signing_key: str

    @property
    def ok(self) -> bool:
        return self.envelope.ok

    def headers(self) -> dict[str, str]:
        """Return the HTTP headers a transport layer should attach."""

        return {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: self.signature,
        }

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready mapping suitable for storage or transfer."""

        return {
            "body": self.body,
            "signature": self.signature,
            "signing_key": self.signing_key,
        }


class ResponseSigner:
    """Wrap results in a versioned envelope and sign its canonical form.

    Args:
        signer: Ed25519 signer holding the service's private key.
        version: Envelope version string.
        clock: Callable returning the current time; defaults to UTC now.

    The signer only reads its key, so one instance may be shared by any
    number of concurrent requests.
    """

    def __init__(
        self,
        signer: Signer,
        *,
        version: str = CURRENT_ENVELOPE_VERSION,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._signer = signer
        self.version = version
        self._clock = clock or _utc_now

    @property
    def signing_key(self) -> str:
        return self._signer.signing_key

    def sign(self, status: StatusLiteral, results: object) -> SignedResponse:
        """Build the envelope for ``results`` and sign its canonical JSON.

        Raises:
            SigningFailure: If the envelope cannot be serialized or signed.
        """

        try:
            envelope = SignedEnvelope(
                version=self.version,
                datetime=format_timestamp(self._clock()),
                status=status,
                results=results,
            )
            body = canonicalize(envelope.model_dump_json_ready())
            signature = self._signer.sign_bytes(body.encode("utf-8"))
        except Exception as exc:
            LOGGER.critical("Unable to sign response envelope", exc_info=exc)
            raise SigningFailure(f"Unable to sign response: {exc}") from exc

        return SignedResponse(
            envelope=envelope,
            body=body,
            signature=encode_signature(signature),
            signing_key=self._signer.signing_key,
        )


def verify_response(
    body: str | bytes, signature: str | None, public_key: str
) -> SignedEnvelope:
    """Verify a detached response signature and parse the envelope.

    Args:
        body: Response body exactly as received.
        signature: Value of the ``Body-Signature-Ed25519`` header.
        public_key: Pinned server public key (hex or base64url).

    Returns:
        The verified :class:`SignedEnvelope`.

    Raises:
        ResponseVerificationError: If the signature is missing or invalid or
            the body is not an envelope.
    """

    if not signature:
        raise ResponseVerificationError("Response carries no signature")
    data = body.encode("utf-8") if isinstance(body, str) else body
    if not verify_signature(data, signature, public_key):
        raise ResponseVerificationError("Response signature is invalid")
    try:
        return SignedEnvelope.model_validate(json.loads(data.decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError, PydanticValidationError) as exc:
        raise ResponseVerificationError("Signed body is not a valid envelope") from exc
