"""HTTP client that fetches chain responses and verifies their signatures."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from .envelope import SIGNATURE_HEADER, verify_response
from .errors import ChainClientError
from .schemas import SignedEnvelope

__all__ = ["ChainClient"]

LOGGER = logging.getLogger(__name__)

_DEFAULT_PREFIX = "/chronicle"


class ChainClient:
    """Read the chain from a remote server, trusting only a pinned key.

    Args:
        base_url: Server root, for example ``https://ledger.example.org``.
        public_key: Server Ed25519 public key (hex or base64url).
        timeout: Request timeout in seconds.
        prefix: Path prefix under which the query routes are mounted.

    Every method returns the verified envelope; an ``ERROR`` envelope is still
    returned rather than raised, since it is an authentic server answer.
    """

    def __init__(
        self,
        base_url: str,
        public_key: str,
        *,
        timeout: float = 5.0,
        prefix: str = _DEFAULT_PREFIX,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.public_key = public_key
        self.timeout = timeout
        self.prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""

    def export(self) -> SignedEnvelope:
        return self._get("export")

    def lasthash(self) -> SignedEnvelope:
        return self._get("lasthash")

    def lookup(self, hash_: str) -> SignedEnvelope:
        return self._get(f"lookup/{quote(hash_, safe='')}")

    def since(self, hash_: str) -> SignedEnvelope:
        return self._get(f"since/{quote(hash_, safe='')}")

    def _get(self, path: str) -> SignedEnvelope:
        url = f"{self.base_url}{self.prefix}/{path}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(url)
        except httpx.HTTPError as exc:
            raise ChainClientError(f"Request to {url} failed: {exc}") from exc

        LOGGER.debug(
            "Chain server responded",
            extra={"url": url, "status_code": response.status_code},
        )
        return verify_response(
            response.content,
            response.headers.get(SIGNATURE_HEADER),
            self.public_key,
        )
