"""Tests for the JSON-RPC custodian using mocks to avoid a real node."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx
import pytest

from debtkit.custodian import (
    JsonRpcCustodian,
    JsonRpcError,
    KeyFailure,
    SigningKeyUnavailableError,
    classify_key_failure,
)
from debtkit.settings import DebtKitSettings

ADDRESS = "0x" + "ab" * 20
DIGEST = bytes(range(32))
SIGNATURE = "0x" + "11" * 32 + "22" * 32 + "1b"


def _mock_client(mock_client_class: MagicMock, body: object) -> MagicMock:
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = body
    mock_client.post.return_value = mock_response
    return mock_client


@patch("httpx.Client")
def test_sign_posts_eth_sign_request(mock_client_class: MagicMock) -> None:
    """eth_sign is posted with the address and hex digest."""
    mock_client = _mock_client(
        mock_client_class, {"jsonrpc": "2.0", "id": 1, "result": SIGNATURE}
    )
    custodian = JsonRpcCustodian("http://node:8545", timeout_seconds=3.0)

    assert custodian.sign(ADDRESS, DIGEST) == SIGNATURE

    mock_client_class.assert_called_once_with(timeout=3.0)
    url = mock_client.post.call_args.args[0]
    request = mock_client.post.call_args.kwargs["json"]
    assert url == "http://node:8545"
    assert request["method"] == "eth_sign"
    assert request["params"] == [ADDRESS, "0x" + DIGEST.hex()]


@patch("httpx.Client")
def test_endpoint_and_timeout_come_from_settings(mock_client_class: MagicMock) -> None:
    """Without explicit arguments the endpoint and timeout come from settings."""
    mock_client = _mock_client(mock_client_class, {"result": SIGNATURE})
    settings = DebtKitSettings(DEBTKIT_RPC_URL="http://custodian:9000", DEBTKIT_RPC_TIMEOUT="2.5")

    JsonRpcCustodian(settings=settings).sign(ADDRESS, DIGEST)

    mock_client_class.assert_called_once_with(timeout=2.5)
    assert mock_client.post.call_args.args[0] == "http://custodian:9000"


@pytest.mark.parametrize(
    ("message", "reason"),
    [
        ("invalid address", KeyFailure.INVALID_ADDRESS),
        ("account not found", KeyFailure.ACCOUNT_NOT_FOUND),
        ("unknown account", KeyFailure.ACCOUNT_NOT_FOUND),
        ("cannot sign data; no private key", KeyFailure.NO_PRIVATE_KEY),
        ("authentication needed: password or unlock", KeyFailure.NO_PRIVATE_KEY),
    ],
)
@patch("httpx.Client")
def test_node_key_errors_are_classified(
    mock_client_class: MagicMock, message: str, reason: KeyFailure
) -> None:
    """Node key errors become structured key failures."""
    _mock_client(
        mock_client_class,
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": message}},
    )

    with pytest.raises(SigningKeyUnavailableError) as excinfo:
        JsonRpcCustodian("http://node:8545").sign(ADDRESS, DIGEST)

    assert excinfo.value.reason is reason
    assert excinfo.value.address == ADDRESS


@patch("httpx.Client")
def test_other_node_errors_raise_json_rpc_error(mock_client_class: MagicMock) -> None:
    """Unrelated node errors keep their code and are not key failures."""
    _mock_client(
        mock_client_class,
        {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "method not found"}},
    )

    with pytest.raises(JsonRpcError) as excinfo:
        JsonRpcCustodian("http://node:8545").sign(ADDRESS, DIGEST)

    assert excinfo.value.code == -32601
    assert not isinstance(excinfo.value, SigningKeyUnavailableError)


@pytest.mark.parametrize("body", [{"jsonrpc": "2.0", "id": 1}, ["not", "an", "object"]])
@patch("httpx.Client")
def test_malformed_responses_raise_json_rpc_error(
    mock_client_class: MagicMock, body: object
) -> None:
    """Bodies without a result or not shaped as objects are rejected."""
    _mock_client(mock_client_class, body)

    with pytest.raises(JsonRpcError):
        JsonRpcCustodian("http://node:8545").sign(ADDRESS, DIGEST)


def test_transport_errors_propagate() -> None:
    """Connection failures surface as httpx exceptions."""
    with patch("httpx.Client") as mock_client_class:
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(httpx.ConnectError):
            JsonRpcCustodian("http://node:8545").sign(ADDRESS, DIGEST)


@patch("httpx.Client")
def test_malformed_address_fails_without_request(mock_client_class: MagicMock) -> None:
    """A malformed address is rejected before any HTTP call."""
    with pytest.raises(SigningKeyUnavailableError) as excinfo:
        JsonRpcCustodian("http://node:8545").sign("0x1234", DIGEST)

    assert excinfo.value.reason is KeyFailure.INVALID_ADDRESS
    mock_client_class.assert_not_called()


def test_classify_key_failure_ignores_unrelated_messages() -> None:
    """Only known key failure messages are classified."""
    assert classify_key_failure("execution reverted") is None
    assert classify_key_failure("Invalid Address") is KeyFailure.INVALID_ADDRESS


def _http_response(status_code: int, **kwargs: object) -> httpx.Response:
    return httpx.Response(
        status_code, request=httpx.Request("POST", "http://node:8545"), **kwargs
    )


@pytest.mark.parametrize("status_code", [400, 500])
@patch("httpx.Client")
def test_key_error_inside_http_error_status_is_classified(
    mock_client_class: MagicMock, status_code: int
) -> None:
    """A key failure body wins over the HTTP error status it arrives with."""
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_client.post.return_value = _http_response(
        status_code,
        json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "unknown account"}},
    )

    with pytest.raises(SigningKeyUnavailableError) as excinfo:
        JsonRpcCustodian("http://node:8545").sign(ADDRESS, DIGEST)

    assert excinfo.value.reason is KeyFailure.ACCOUNT_NOT_FOUND


@patch("httpx.Client")
def test_http_error_without_json_body_raises_status_error(
    mock_client_class: MagicMock,
) -> None:
    """A 5xx with a non-JSON body propagates as an httpx status error."""
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_client.post.return_value = _http_response(502, text="Bad Gateway")

    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        JsonRpcCustodian("http://node:8545").sign(ADDRESS, DIGEST)

    assert excinfo.value.response.status_code == 502


@patch("httpx.Client")
def test_http_error_with_result_body_raises_status_error(
    mock_client_class: MagicMock,
) -> None:
    """An error status is not masked by a body that looks successful."""
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    mock_client.post.return_value = _http_response(503, json={"result": SIGNATURE})

    with pytest.raises(httpx.HTTPStatusError):
        JsonRpcCustodian("http://node:8545").sign(ADDRESS, DIGEST)
