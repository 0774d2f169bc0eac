"""Key custodian capability and its failure classification."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import Final

__all__ = [
    "CustodianError",
    "KEY_FAILURE_MESSAGES",
    "KeyCustodian",
    "KeyFailure",
    "SigningKeyUnavailableError",
    "classify_key_failure",
]


class KeyFailure(str, enum.Enum):
    """Reasons a custodian cannot sign on behalf of an address."""

    INVALID_ADDRESS = "invalid_address"
    ACCOUNT_NOT_FOUND = "account_not_found"
    NO_PRIVATE_KEY = "no_private_key"


# Lowercase fragments of node error messages, per failure reason.
KEY_FAILURE_MESSAGES: Final[dict[KeyFailure, tuple[str, ...]]] = {
    KeyFailure.INVALID_ADDRESS: ("invalid address",),
    KeyFailure.ACCOUNT_NOT_FOUND: ("account not found", "unknown account"),
    KeyFailure.NO_PRIVATE_KEY: (
        "cannot sign data; no private key",
        "authentication needed",
    ),
}


def classify_key_failure(message: str) -> KeyFailure | None:
    """Map a custodian error message to a :class:`KeyFailure`, if it is one."""

    lowered = message.lower()
    for reason, fragments in KEY_FAILURE_MESSAGES.items():
        if any(fragment in lowered for fragment in fragments):
            return reason
    return None


class CustodianError(RuntimeError):
    """Base class for failures reported by a key custodian."""


class SigningKeyUnavailableError(CustodianError):
    """Raised when the custodian holds no usable key for ``address``."""

    def __init__(
        self, address: str, reason: KeyFailure, detail: str | None = None
    ) -> None:
        message = f"{reason.value}: {address}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.address = address
        self.reason = reason


class KeyCustodian(ABC):
    """Something that holds private keys and signs payloads on request.

    Implementations must raise :class:`SigningKeyUnavailableError` when the
    address is malformed, unknown, or its key is locked. Any other failure
    may surface as whatever exception the transport raises.
    """

    @abstractmethod
    def sign(self, address: str, payload: bytes) -> str:
        """Sign ``payload`` as ``address`` and return the raw signature hex.

        The payload is signed the way ``eth_sign`` does it, under the
        ``"\\x19Ethereum Signed Message:\\n"`` prefix.
        """
