"""Key custodians able to sign debt order commitments."""

from __future__ import annotations

from debtkit.custodian.base import (
    CustodianError,
    KeyCustodian,
    KeyFailure,
    SigningKeyUnavailableError,
    classify_key_failure,
)
from debtkit.custodian.jsonrpc import JsonRpcCustodian, JsonRpcError
from debtkit.custodian.local import LocalKeyCustodian

__all__ = [
    "CustodianError",
    "JsonRpcCustodian",
    "JsonRpcError",
    "KeyCustodian",
    "KeyFailure",
    "LocalKeyCustodian",
    "SigningKeyUnavailableError",
    "classify_key_failure",
]
