"""In-process key custodian holding raw private keys."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import encode_hex, is_hex_address, to_checksum_address

from debtkit.custodian.base import KeyCustodian, KeyFailure, SigningKeyUnavailableError

__all__ = ["LocalKeyCustodian"]

LOGGER = logging.getLogger(__name__)


class LocalKeyCustodian(KeyCustodian):
    """Sign with keys kept in memory, mimicking a node's unlocked accounts.

    Args:
        private_keys: Initial private keys (hex strings or 32-byte values).
            They start unlocked.
    """

    def __init__(self, private_keys: Iterable[str | bytes] = ()) -> None:
        self._keys: dict[str, bytes] = {}
        self._locked: set[str] = set()
        for key in private_keys:
            self.add_key(key)

    @property
    def addresses(self) -> tuple[str, ...]:
        return tuple(self._keys)

    def add_key(self, private_key: str | bytes) -> str:
        """Register ``private_key`` and return its checksum address."""

        account = Account.from_key(private_key)
        address = to_checksum_address(account.address)
        self._keys[address] = bytes(account.key)
        self._locked.discard(address)
        return address

    def lock(self, address: str) -> None:
        """Keep the account registered but refuse to sign with it."""

        self._locked.add(self._known_address(address))

    def unlock(self, address: str) -> None:
        self._locked.discard(self._known_address(address))

    def sign(self, address: str, payload: bytes) -> str:
        checksum = self._known_address(address)
        if checksum in self._locked:
            raise SigningKeyUnavailableError(checksum, KeyFailure.NO_PRIVATE_KEY)

        signed = Account.sign_message(
            encode_defunct(primitive=payload), private_key=self._keys[checksum]
        )
        LOGGER.debug("Signed payload locally", extra={"address": checksum})
        return encode_hex(bytes(signed.signature))

    def _known_address(self, address: str) -> str:
        if not isinstance(address, str) or not is_hex_address(address):
            raise SigningKeyUnavailableError(str(address), KeyFailure.INVALID_ADDRESS)
        checksum = to_checksum_address(address)
        if checksum not in self._keys:
            raise SigningKeyUnavailableError(checksum, KeyFailure.ACCOUNT_NOT_FOUND)
        return checksum
