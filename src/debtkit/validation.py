"""Structural checks applied to debt orders before hashing or signing."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from typing import Final

from pydantic import ValidationError

from debtkit.errors import DebtOrderSchemaError
from debtkit.models import DebtOrder

__all__ = [
    "DEBTOR_SIGNING_FIELDS",
    "FULL_SIGNING_FIELDS",
    "ISSUANCE_COMMITMENT_FIELDS",
    "SigningRole",
    "assert_fields_present",
    "assert_signable",
    "coerce_debt_order",
    "missing_fields",
]

ISSUANCE_COMMITMENT_FIELDS: Final[tuple[str, ...]] = (
    "issuance_version",
    "debtor",
    "underwriter",
    "underwriter_risk_rating",
    "terms_contract",
    "terms_contract_parameters",
    "salt",
)

DEBTOR_SIGNING_FIELDS: Final[tuple[str, ...]] = ISSUANCE_COMMITMENT_FIELDS + (
    "kernel_version",
    "principal_amount",
    "principal_token",
    "debtor_fee",
    "creditor_fee",
    "relayer",
    "relayer_fee",
    "underwriter_fee",
    "expiration_timestamp_in_sec",
)

FULL_SIGNING_FIELDS: Final[tuple[str, ...]] = DEBTOR_SIGNING_FIELDS + ("creditor",)


class SigningRole(str, enum.Enum):
    """Parties whose consent a debt order collects."""

    DEBTOR = "debtor"
    CREDITOR = "creditor"
    UNDERWRITER = "underwriter"

    @property
    def required_fields(self) -> tuple[str, ...]:
        """Fields that must be set before this role can sign."""

        if self is SigningRole.CREDITOR:
            return FULL_SIGNING_FIELDS
        return DEBTOR_SIGNING_FIELDS

    def signing_address(self, order: DebtOrder) -> str | None:
        """Return the account expected to sign as this role."""

        return getattr(order, self.value)


def coerce_debt_order(order: DebtOrder | Mapping[str, object]) -> DebtOrder:
    """Return ``order`` as a :class:`DebtOrder`, validating raw mappings.

    Raises:
        DebtOrderSchemaError: If a mapping carries unknown or malformed fields.
    """

    if isinstance(order, DebtOrder):
        return order
    if not isinstance(order, Mapping):
        raise DebtOrderSchemaError(
            f"Expected a debt order, got {type(order).__name__}"
        )
    try:
        return DebtOrder.model_validate(dict(order))
    except ValidationError as exc:
        raise DebtOrderSchemaError(f"Malformed debt order: {exc}") from exc


def missing_fields(order: DebtOrder, fields: Iterable[str]) -> list[str]:
    """Return the names in ``fields`` that are unset on ``order``."""

    return [name for name in fields if getattr(order, name) is None]


def assert_fields_present(order: DebtOrder, fields: Iterable[str]) -> None:
    """Raise :class:`DebtOrderSchemaError` unless every field is set."""

    missing = missing_fields(order, fields)
    if missing:
        wire_names = ", ".join(
            DebtOrder.model_fields[name].alias or name for name in missing
        )
        raise DebtOrderSchemaError(
            f"Debt order is missing required fields: {wire_names}",
            missing=missing,
        )


def assert_signable(order: DebtOrder, role: SigningRole) -> None:
    """Check that ``order`` carries every field ``role`` must commit to."""

    assert_fields_present(order, role.required_fields)
