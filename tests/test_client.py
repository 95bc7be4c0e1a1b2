"""Tests for the verifying HTTP client using mocks to avoid network calls."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from chain_lookup.client import ChainClient
from chain_lookup.envelope import SIGNATURE_HEADER
from chain_lookup.errors import ChainClientError, ResponseVerificationError
from chain_lookup.service import ChainQueryService


def _mock_http(mock_client_class, response) -> MagicMock:
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.content = response.body.encode("utf-8")
    mock_response.headers = response.headers()
    mock_client.get.return_value = mock_response
    return mock_client


@patch("httpx.Client")
def test_lookup_verifies_signed_body(mock_client_class, service: ChainQueryService):
    mock_client = _mock_http(mock_client_class, service.lookup("chk1"))
    client = ChainClient(
        "https://ledger.example.org/", service.response_signer.signing_key
    )

    envelope = client.lookup("chk1")

    assert envelope.ok
    assert envelope.results["currhash"] == "b"
    mock_client.get.assert_called_once_with(
        "https://ledger.example.org/chronicle/lookup/chk1"
    )


@patch("httpx.Client")
def test_error_envelopes_are_returned(mock_client_class, service: ChainQueryService):
    _mock_http(mock_client_class, service.since("unknown"))
    client = ChainClient("https://ledger.example.org", service.response_signer.signing_key)

    envelope = client.since("unknown")

    assert envelope.status == "ERROR"
    assert envelope.results == "No record found matching this hash."


@patch("httpx.Client")
def test_routes_and_prefix(mock_client_class, service: ChainQueryService):
    mock_client = _mock_http(mock_client_class, service.export())
    client = ChainClient(
        "http://localhost:8080",
        service.response_signer.signing_key,
        prefix="",
    )

    client.export()
    mock_client.get.assert_called_with("http://localhost:8080/export")

    _mock_http(mock_client_class, service.lasthash())
    client.lasthash()


@patch("httpx.Client")
def test_hash_is_url_quoted(mock_client_class, service: ChainQueryService):
    mock_client = _mock_http(mock_client_class, service.lookup("a/b"))
    client = ChainClient("https://ledger.example.org", service.response_signer.signing_key)

    client.lookup("a/b")

    mock_client.get.assert_called_once_with(
        "https://ledger.example.org/chronicle/lookup/a%2Fb"
    )


@patch("httpx.Client")
def test_unsigned_or_forged_responses_are_rejected(
    mock_client_class, service: ChainQueryService
):
    mock_client = _mock_http(mock_client_class, service.lasthash())
    client = ChainClient("https://ledger.example.org", service.response_signer.signing_key)

    mock_client.get.return_value.headers = {}
    with pytest.raises(ResponseVerificationError, match="no signature"):
        client.lasthash()

    forged = service.export()
    mock_client.get.return_value.headers = {SIGNATURE_HEADER: forged.signature}
    with pytest.raises(ResponseVerificationError, match="invalid"):
        client.lasthash()


@patch("httpx.Client")
def test_transport_errors_are_wrapped(mock_client_class):
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_client.get.side_effect = httpx.ConnectError("connection refused")

    client = ChainClient("https://ledger.example.org", "00" * 32)
    with pytest.raises(ChainClientError, match="connection refused"):
        client.export()
