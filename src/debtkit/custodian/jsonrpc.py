"""Key custodian backed by an Ethereum node's ``eth_sign`` JSON-RPC method."""

from __future__ import annotations

import itertools
import logging

import httpx
from eth_utils import encode_hex, is_hex_address

from debtkit.custodian.base import (
    CustodianError,
    KeyCustodian,
    KeyFailure,
    SigningKeyUnavailableError,
    classify_key_failure,
)
from debtkit.settings import DebtKitSettings, get_settings

__all__ = ["JsonRpcCustodian", "JsonRpcError"]

LOGGER = logging.getLogger(__name__)


class JsonRpcError(CustodianError):
    """Raised for JSON-RPC errors that are not signing key failures."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message if code is None else f"[{code}] {message}")
        self.code = code


class JsonRpcCustodian(KeyCustodian):
    """Ask a node (Geth, Parity, Ganache, ...) to sign with an unlocked account."""

    def __init__(
        self,
        rpc_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        settings: DebtKitSettings | None = None,
    ) -> None:
        self._explicit_url = rpc_url
        self._explicit_timeout = timeout_seconds
        self._settings = settings
        self._ids = itertools.count(1)

    def sign(self, address: str, payload: bytes) -> str:
        """Call ``eth_sign`` for ``address`` and return the raw signature.

        Raises:
            SigningKeyUnavailableError: If the address is malformed or the node
                reports the account as unknown or locked.
            JsonRpcError: For any other JSON-RPC error or a malformed body.
            httpx.HTTPError: For transport failures, and for HTTP error
                statuses whose body carries no JSON-RPC error object.
        """

        if not isinstance(address, str) or not is_hex_address(address):
            raise SigningKeyUnavailableError(str(address), KeyFailure.INVALID_ADDRESS)

        url = self._resolve_url()
        request = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_sign",
            "params": [address, encode_hex(payload)],
        }
        LOGGER.debug(
            "Requesting eth_sign",
            extra={"custodian": type(self).__name__, "address": address, "url": url},
        )
        with httpx.Client(timeout=self._resolve_timeout()) as client:
            response = client.post(url, json=request)
            try:
                body = response.json()
            except ValueError as exc:
                response.raise_for_status()
                raise JsonRpcError(f"Response from {url} is not JSON") from exc

        # Some nodes report key failures with a non-2xx status.
        if isinstance(body, dict) and body.get("error") is not None:
            self._raise_for_error(address, body["error"])
        response.raise_for_status()

        if not isinstance(body, dict):
            raise JsonRpcError(f"Response from {url} is not a JSON-RPC object")

        result = body.get("result")
        if not isinstance(result, str):
            raise JsonRpcError(f"eth_sign response from {url} has no signature")
        return result

    @staticmethod
    def _raise_for_error(address: str, error: object) -> None:
        if isinstance(error, dict):
            message = str(error.get("message", ""))
            code = error.get("code")
        else:
            message = str(error)
            code = None

        reason = classify_key_failure(message)
        if reason is not None:
            LOGGER.warning(
                "Node cannot sign for account",
                extra={"address": address, "reason": reason.value},
            )
            raise SigningKeyUnavailableError(address, reason, message)
        raise JsonRpcError(message, code if isinstance(code, int) else None)

    def _resolve_url(self) -> str:
        if self._explicit_url:
            return self._explicit_url
        settings_obj = self._settings or get_settings()
        return settings_obj.rpc_url

    def _resolve_timeout(self) -> float:
        if self._explicit_timeout is not None:
            return self._explicit_timeout
        settings_obj = self._settings or get_settings()
        return settings_obj.rpc_timeout
