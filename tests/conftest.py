"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from debtkit.custodian import KeyCustodian, LocalKeyCustodian  # noqa: E402
from debtkit.models import DebtOrder  # noqa: E402

# Deterministic test keys; never use outside tests.
DEBTOR_KEY = "0x" + "11" * 32
CREDITOR_KEY = "0x" + "22" * 32
UNDERWRITER_KEY = "0x" + "33" * 32


class RecordingCustodian(KeyCustodian):
    """Custodian stub that records requests and replays a scripted outcome."""

    def __init__(self, outcome: str | Exception) -> None:
        self.outcome = outcome
        self.calls: list[tuple[str, bytes]] = []

    def sign(self, address: str, payload: bytes) -> str:
        self.calls.append((address, payload))
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def custodian() -> LocalKeyCustodian:
    return LocalKeyCustodian([DEBTOR_KEY, CREDITOR_KEY, UNDERWRITER_KEY])


@pytest.fixture
def parties(custodian: LocalKeyCustodian) -> dict[str, str]:
    debtor, creditor, underwriter = custodian.addresses
    return {"debtor": debtor, "creditor": creditor, "underwriter": underwriter}


@pytest.fixture
def order_fields(parties: dict[str, str]) -> dict[str, object]:
    """Wire-form fields of a fully specified debt order."""

    return {
        "kernelVersion": "0x" + "a1" * 20,
        "issuanceVersion": "0x" + "a2" * 20,
        "principalAmount": 1000,
        "principalToken": "0x" + "a3" * 20,
        "debtor": parties["debtor"],
        "debtorFee": 5,
        "creditor": parties["creditor"],
        "creditorFee": 7,
        "relayer": "0x" + "a4" * 20,
        "relayerFee": 3,
        "underwriter": parties["underwriter"],
        "underwriterFee": 11,
        "underwriterRiskRating": 250,
        "termsContract": "0x" + "a5" * 20,
        "termsContractParameters": "0x" + "0f" * 32,
        "expirationTimestampInSec": 1_700_000_000,
        "salt": 1,
    }


@pytest.fixture
def debt_order(order_fields: dict[str, object]) -> DebtOrder:
    return DebtOrder.model_validate(order_fields)


@pytest.fixture
def recording_custodian() -> type[RecordingCustodian]:
    return RecordingCustodian
