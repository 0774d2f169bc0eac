"""Collect debtor, creditor and underwriter signatures for debt orders."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from debtkit.custodian.base import KeyCustodian, SigningKeyUnavailableError
from debtkit.errors import InvalidSigningKeyError
from debtkit.hashing import DebtOrderHasher
from debtkit.models import DebtOrder, ECDSASignature, is_null_address
from debtkit.signatures import parse_signature_hex_as_rsv
from debtkit.validation import SigningRole, assert_signable, coerce_debt_order

__all__ = ["SignerService", "commitment_hash_for"]

LOGGER = logging.getLogger(__name__)


def commitment_hash_for(order: DebtOrder, role: SigningRole) -> bytes:
    """Return the digest ``role`` signs for ``order``."""

    hasher = DebtOrderHasher(order)
    if role is SigningRole.UNDERWRITER:
        return hasher.underwriter_commitment_hash()
    if role is SigningRole.CREDITOR:
        return hasher.creditor_commitment_hash()
    return hasher.debtor_commitment_hash()


class SignerService:
    """Produce role-specific ECDSA signatures through a key custodian.

    The service keeps no state besides the custodian, so calls for different
    roles or orders may run concurrently. Nothing is retried: a locked or
    missing key surfaces immediately as :class:`InvalidSigningKeyError`.
    """

    def __init__(self, custodian: KeyCustodian) -> None:
        self._custodian = custodian

    def sign_as_debtor(self, order: DebtOrder | Mapping[str, object]) -> ECDSASignature:
        """Sign the debtor commitment hash with the debtor's key.

        Args:
            order: The debt order, as a model or its camelCase mapping.

        Returns:
            Signature over the order hash.

        Raises:
            DebtOrderSchemaError: If the order lacks fields the debtor commits to.
            InvalidSigningKeyError: If the custodian cannot sign as the debtor.
        """

        return self._sign(order, SigningRole.DEBTOR)

    def sign_as_creditor(
        self, order: DebtOrder | Mapping[str, object]
    ) -> ECDSASignature:
        """Sign the creditor commitment hash with the creditor's key.

        The creditor signs the same order hash as the debtor, so the order must
        be complete and name a creditor.
        """

        return self._sign(order, SigningRole.CREDITOR)

    def sign_as_underwriter(
        self, order: DebtOrder | Mapping[str, object]
    ) -> ECDSASignature:
        """Sign the underwriter commitment hash with the underwriter's key."""

        return self._sign(order, SigningRole.UNDERWRITER)

    def _sign(
        self, order: DebtOrder | Mapping[str, object], role: SigningRole
    ) -> ECDSASignature:
        debt_order = coerce_debt_order(order)
        assert_signable(debt_order, role)
        digest = commitment_hash_for(debt_order, role)
        LOGGER.debug(
            "Signing debt order commitment",
            extra={"role": role.value, "digest": digest},
        )
        return self._sign_payload_with_address(digest, role.signing_address(debt_order))

    def _sign_payload_with_address(
        self, payload: bytes, address: str | None
    ) -> ECDSASignature:
        if address is None or is_null_address(address):
            raise InvalidSigningKeyError(address)

        try:
            raw_signature = self._custodian.sign(address, payload)
        except SigningKeyUnavailableError as exc:
            LOGGER.warning(
                "Custodian has no usable key",
                extra={"address": address, "reason": exc.reason.value},
            )
            raise InvalidSigningKeyError(address) from exc

        return parse_signature_hex_as_rsv(raw_signature)
