"""Pydantic models describing debt orders and their signatures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

from eth_utils import decode_hex, encode_hex, is_hex, is_hex_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "ADDRESS_FIELDS",
    "DebtOrder",
    "ECDSASignature",
    "IssuanceCommitment",
    "MAX_UINT256",
    "NULL_ADDRESS",
    "UINT_FIELDS",
    "is_null_address",
]

MAX_UINT256: Final[int] = 2**256 - 1
NULL_ADDRESS: Final[str] = "0x" + "0" * 40

ADDRESS_FIELDS: Final[tuple[str, ...]] = (
    "issuance_version",
    "kernel_version",
    "debtor",
    "creditor",
    "underwriter",
    "terms_contract",
    "principal_token",
    "relayer",
)
UINT_FIELDS: Final[tuple[str, ...]] = (
    "underwriter_risk_rating",
    "salt",
    "principal_amount",
    "debtor_fee",
    "creditor_fee",
    "relayer_fee",
    "underwriter_fee",
    "expiration_timestamp_in_sec",
)


def is_null_address(address: str | None) -> bool:
    """Return ``True`` for a missing or all-zero address."""

    if not address:
        return True
    return int(address, 16) == 0


def _parse_uint(value: object) -> int:
    if isinstance(value, bool):
        raise ValueError("booleans are not valid unsigned integers")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                parsed = int(text, 16)
            else:
                parsed = int(text, 10)
        except ValueError as exc:
            raise ValueError(f"{value!r} is not an unsigned integer") from exc
    else:
        raise ValueError(f"{type(value).__name__} is not an unsigned integer")
    if parsed < 0 or parsed > MAX_UINT256:
        raise ValueError(f"{parsed} is outside the uint256 range")
    return parsed


class DebtOrder(BaseModel):
    """Negotiated terms of a lending agreement awaiting signatures.

    Every field is optional so a partially negotiated order can be carried
    around; completeness for a given signing role is checked by
    :mod:`debtkit.validation`. Field aliases follow the camelCase wire form
    used by the protocol's JSON relayers.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    kernel_version: str | None = Field(
        default=None, description="Address of the debt kernel contract."
    )
    issuance_version: str | None = Field(
        default=None, description="Address of the repayment router contract."
    )
    principal_amount: int | None = Field(
        default=None, description="Principal in token base units."
    )
    principal_token: str | None = Field(
        default=None, description="ERC20 token the principal is denominated in."
    )
    debtor: str | None = None
    debtor_fee: int | None = None
    creditor: str | None = None
    creditor_fee: int | None = None
    relayer: str | None = None
    relayer_fee: int | None = None
    underwriter: str | None = None
    underwriter_fee: int | None = None
    underwriter_risk_rating: int | None = None
    terms_contract: str | None = None
    terms_contract_parameters: str | None = Field(
        default=None, description="32-byte parameter blob for the terms contract."
    )
    expiration_timestamp_in_sec: int | None = Field(
        default=None, description="Unix time after which the order is void."
    )
    salt: int | None = Field(
        default=None, description="Uniqueness nonce for otherwise identical orders."
    )

    @field_validator(*ADDRESS_FIELDS, mode="before")
    @classmethod
    def _normalise_address(cls, value: object) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str) or not is_hex_address(value):
            raise ValueError(f"{value!r} is not a 20-byte hex address")
        return to_checksum_address(value)

    @field_validator(*UINT_FIELDS, mode="before")
    @classmethod
    def _normalise_uint(cls, value: object) -> int | None:
        if value is None:
            return None
        return _parse_uint(value)

    @field_validator("terms_contract_parameters", mode="before")
    @classmethod
    def _normalise_bytes32(cls, value: object) -> str | None:
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str) and is_hex(value):
            raw = decode_hex(value)
        else:
            raise ValueError(f"{value!r} is not a hex string")
        if len(raw) != 32:
            raise ValueError(f"expected 32 bytes, got {len(raw)}")
        return encode_hex(raw)

    def to_wire(self) -> dict[str, object]:
        """Return the camelCase JSON form with unset fields removed."""

        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True, slots=True)
class IssuanceCommitment:
    """The subset of a debt order identifying which instrument is issued."""

    issuance_version: str
    debtor: str
    underwriter: str
    underwriter_risk_rating: int
    terms_contract: str
    terms_contract_parameters: str
    salt: int


class ECDSASignature(BaseModel):
    """Recoverable secp256k1 signature split into its components."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    r: str = Field(..., description="0x-prefixed 32-byte R component.")
    s: str = Field(..., description="0x-prefixed 32-byte S component.")
    v: Literal[27, 28] = Field(..., description="Recovery identifier.")

    @field_validator("r", "s", mode="before")
    @classmethod
    def _normalise_component(cls, value: object) -> str:
        if isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str) and is_hex(value):
            raw = decode_hex(value)
        else:
            raise ValueError(f"{value!r} is not a hex string")
        if len(raw) != 32:
            raise ValueError(f"expected 32 bytes, got {len(raw)}")
        return encode_hex(raw)
