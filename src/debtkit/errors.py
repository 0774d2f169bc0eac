"""Domain errors raised while hashing and signing debt orders."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "DebtOrderError",
    "DebtOrderSchemaError",
    "InvalidSigningKeyError",
    "invalid_signing_key_message",
]


def invalid_signing_key_message(address: str | None) -> str:
    """Return the user-facing message for an unusable signing key."""

    return (
        "Unable to sign debt order because private key associated with "
        f"{address} is invalid or unavailable"
    )


class DebtOrderError(Exception):
    """Base class for debtkit domain errors."""


class DebtOrderSchemaError(DebtOrderError, ValueError):
    """Raised when a debt order is missing fields or carries malformed values."""

    def __init__(self, message: str, *, missing: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.missing: tuple[str, ...] = tuple(missing)


class InvalidSigningKeyError(DebtOrderError):
    """Raised when the custodian cannot sign on behalf of ``address``.

    Covers an unrecognised address, an unregistered account and an account
    whose private key is locked or not held.
    """

    def __init__(self, address: str | None) -> None:
        super().__init__(invalid_signing_key_message(address))
        self.address = address
