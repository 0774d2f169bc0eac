#!/usr/bin/env python3
"""
Three-Party Signing Example

This example demonstrates:
- Building a debt order from its wire form
- Deriving the commitment hashes and agreement id
- Collecting debtor, creditor and underwriter signatures
- Handling an account whose key is unavailable
"""

from eth_utils import encode_hex

from debtkit import DebtOrder, DebtOrderHasher, InvalidSigningKeyError, SignerService
from debtkit.custodian import LocalKeyCustodian
from debtkit.signatures import is_valid_signature

# Throwaway keys for the demo only.
DEBTOR_KEY = "0x" + "11" * 32
CREDITOR_KEY = "0x" + "22" * 32
UNDERWRITER_KEY = "0x" + "33" * 32


def build_order(debtor, creditor, underwriter):
    """Return a fully specified order between the three parties."""
    return DebtOrder.model_validate(
        {
            "kernelVersion": "0x" + "a1" * 20,
            "issuanceVersion": "0x" + "a2" * 20,
            "principalAmount": "1000000000000000000",
            "principalToken": "0x" + "a3" * 20,
            "debtor": debtor,
            "debtorFee": 0,
            "creditor": creditor,
            "creditorFee": 0,
            "relayer": "0x" + "00" * 20,
            "relayerFee": 0,
            "underwriter": underwriter,
            "underwriterFee": "10000000000000000",
            "underwriterRiskRating": 1350,
            "termsContract": "0x" + "a5" * 20,
            "termsContractParameters": "0x" + "00" * 31 + "01",
            "expirationTimestampInSec": 1_900_000_000,
            "salt": 42,
        }
    )


def main():
    custodian = LocalKeyCustodian([DEBTOR_KEY, CREDITOR_KEY, UNDERWRITER_KEY])
    debtor, creditor, underwriter = custodian.addresses
    order = build_order(debtor, creditor, underwriter)

    hasher = DebtOrderHasher(order)
    print("Order hash:       ", encode_hex(hasher.order_hash()))
    print("Underwriter hash: ", encode_hex(hasher.underwriter_commitment_hash()))
    print("Agreement id:     ", hasher.agreement_id())

    service = SignerService(custodian)
    signatures = {
        "debtor": (service.sign_as_debtor(order), hasher.order_hash(), debtor),
        "creditor": (service.sign_as_creditor(order), hasher.order_hash(), creditor),
        "underwriter": (
            service.sign_as_underwriter(order),
            hasher.underwriter_commitment_hash(),
            underwriter,
        ),
    }
    for role, (signature, digest, address) in signatures.items():
        valid = is_valid_signature(digest, signature, address)
        print(f"{role:<12} v={signature.v} valid={valid}")

    custodian.lock(creditor)
    try:
        service.sign_as_creditor(order)
    except InvalidSigningKeyError as exc:
        print("Locked creditor:", exc)


if __name__ == "__main__":
    main()
