"""Commitment hashes for debt orders.

Every digest here is ``keccak256(abi.encodePacked(...))`` over an ordered list
of typed values, which is what the debt kernel contract recomputes when it
verifies signatures. All derivations go through :func:`solidity_sha3` so field
packing stays identical between them.

Three parties sign a debt order:

* the debtor and the creditor sign the order hash, which covers every term;
* the underwriter signs a narrower hash covering the issuance commitment,
  principal, underwriter fee and expiration only.

The agreement id used on chain is the order hash read as a big-endian integer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final, Literal

from eth_abi.packed import encode_packed
from eth_utils import decode_hex, keccak

from debtkit.models import DebtOrder, IssuanceCommitment
from debtkit.validation import ISSUANCE_COMMITMENT_FIELDS, assert_fields_present

__all__ = [
    "DebtOrderHasher",
    "ISSUANCE_COMMITMENT_LAYOUT",
    "ORDER_HASH_LAYOUT",
    "SolidityType",
    "TypedValue",
    "UNDERWRITER_HASH_LAYOUT",
    "solidity_sha3",
]

SolidityType = Literal["address", "bytes32", "uint256"]

# Placeholder in a layout for the nested issuance commitment hash.
ISSUANCE_COMMITMENT_HASH: Final[str] = "issuance_commitment_hash"

ISSUANCE_COMMITMENT_LAYOUT: Final[tuple[tuple[SolidityType, str], ...]] = (
    ("address", "issuance_version"),
    ("address", "debtor"),
    ("address", "underwriter"),
    ("uint256", "underwriter_risk_rating"),
    ("address", "terms_contract"),
    ("bytes32", "terms_contract_parameters"),
    ("uint256", "salt"),
)

ORDER_HASH_LAYOUT: Final[tuple[tuple[SolidityType, str], ...]] = (
    ("address", "kernel_version"),
    ("bytes32", ISSUANCE_COMMITMENT_HASH),
    ("uint256", "principal_amount"),
    ("address", "principal_token"),
    ("uint256", "debtor_fee"),
    ("uint256", "creditor_fee"),
    ("address", "relayer"),
    ("uint256", "relayer_fee"),
    ("uint256", "underwriter_fee"),
    ("uint256", "expiration_timestamp_in_sec"),
)

# Debtor and creditor fees and the relayer are left out: the underwriter only
# vouches for principal, its own fee and expiry.
UNDERWRITER_HASH_LAYOUT: Final[tuple[tuple[SolidityType, str], ...]] = (
    ("address", "kernel_version"),
    ("bytes32", ISSUANCE_COMMITMENT_HASH),
    ("uint256", "principal_amount"),
    ("address", "principal_token"),
    ("uint256", "underwriter_fee"),
    ("uint256", "expiration_timestamp_in_sec"),
)


@dataclass(frozen=True, slots=True)
class TypedValue:
    """A value tagged with the Solidity type it is packed as."""

    abi_type: SolidityType
    value: str | bytes | int


def _packable(item: TypedValue) -> str | bytes | int:
    if item.abi_type == "bytes32" and isinstance(item.value, str):
        return decode_hex(item.value)
    return item.value


def solidity_sha3(values: Sequence[TypedValue]) -> bytes:
    """Return the keccak-256 digest of ``values`` packed Solidity-style.

    Args:
        values: Ordered typed values. Addresses may be hex strings, ``bytes32``
            values hex strings or raw bytes, ``uint256`` values Python ints.

    Returns:
        The 32-byte digest.
    """

    types = [item.abi_type for item in values]
    packed = encode_packed(types, [_packable(item) for item in values])
    return keccak(packed)


class DebtOrderHasher:
    """Derive the commitment hashes of a single debt order.

    Nothing is cached: each call recomputes from the order's current fields.
    A missing field raises :class:`~debtkit.errors.DebtOrderSchemaError`
    naming it.
    """

    def __init__(self, order: DebtOrder) -> None:
        self._order = order

    def issuance_commitment(self) -> IssuanceCommitment:
        assert_fields_present(self._order, ISSUANCE_COMMITMENT_FIELDS)
        return IssuanceCommitment(
            **{name: getattr(self._order, name) for name in ISSUANCE_COMMITMENT_FIELDS}
        )

    def issuance_commitment_hash(self) -> bytes:
        commitment = self.issuance_commitment()
        return solidity_sha3(
            [
                TypedValue(abi_type, getattr(commitment, name))
                for abi_type, name in ISSUANCE_COMMITMENT_LAYOUT
            ]
        )

    def order_hash(self) -> bytes:
        """Return the hash of the whole order, signed by debtor and creditor."""

        return self._hash_layout(ORDER_HASH_LAYOUT)

    def agreement_id(self) -> int:
        """Return the order hash interpreted as an unsigned integer."""

        return int.from_bytes(self.order_hash(), "big")

    def debtor_commitment_hash(self) -> bytes:
        return self.order_hash()

    def creditor_commitment_hash(self) -> bytes:
        return self.order_hash()

    def underwriter_commitment_hash(self) -> bytes:
        return self._hash_layout(UNDERWRITER_HASH_LAYOUT)

    def _hash_layout(self, layout: Sequence[tuple[SolidityType, str]]) -> bytes:
        own_fields = [name for _, name in layout if name != ISSUANCE_COMMITMENT_HASH]
        assert_fields_present(self._order, ISSUANCE_COMMITMENT_FIELDS + tuple(own_fields))

        values: list[TypedValue] = []
        for abi_type, name in layout:
            if name == ISSUANCE_COMMITMENT_HASH:
                values.append(TypedValue(abi_type, self.issuance_commitment_hash()))
            else:
                values.append(TypedValue(abi_type, getattr(self._order, name)))
        return solidity_sha3(values)
