"""Command-line utilities for debtkit."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from eth_utils import encode_hex

from .custodian import JsonRpcCustodian
from .hashing import DebtOrderHasher
from .logging_pipeline import (
    configure_structured_logging,
    detach_structured_logging,
    shutdown_listeners,
)
from .models import ECDSASignature
from .settings import get_settings
from .signatures import is_valid_signature, parse_signature_hex_as_rsv
from .signer import SignerService, commitment_hash_for
from .validation import SigningRole, assert_signable, coerce_debt_order

_ROLES = [role.value for role in SigningRole]


def _read_stdin() -> str | None:
    """Read a JSON order from stdin if available."""
    try:
        if sys.stdin and not sys.stdin.isatty():
            return sys.stdin.read()
    except IOError as e:
        print(f"Error reading stdin: {e}", file=sys.stderr)
    return None


def _load_json(path: str | None, stdin_payload: str | None) -> dict[str, object]:
    """Load the debt order from file or stdin."""
    if path:
        text = Path(path).read_text(encoding="utf-8")
        return _parse_json_dict(text)
    if stdin_payload:
        return _parse_json_dict(stdin_payload)
    raise ValueError("No input provided. Use --input or pipe JSON via stdin.")


def _parse_json_dict(payload: str) -> dict[str, object]:
    """Parse a JSON string and ensure the result is a dictionary."""

    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("Input JSON must be an object at the top level.")
    return {str(key): value for key, value in data.items()}


def _parse_signature(text: str) -> ECDSASignature:
    """Accept either ``{"r", "s", "v"}`` JSON or raw signature hex."""

    stripped = text.strip()
    if stripped.startswith("{"):
        return ECDSASignature.model_validate(json.loads(stripped))
    return parse_signature_hex_as_rsv(stripped)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="debtkit",
        description="Hash, sign and verify debt order commitments.",
    )
    parser.add_argument(
        "--input",
        "-i",
        help="Path to a debt order JSON file. If omitted, reads from stdin.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit structured JSON logs on stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("hash", help="Print the normalised order and its commitment hashes.")

    sign = commands.add_parser("sign", help="Sign the order through a node.")
    sign.add_argument("--role", "-r", choices=_ROLES, required=True)
    sign.add_argument(
        "--rpc-url",
        help="JSON-RPC endpoint of the signing node (default: DEBTKIT_RPC_URL).",
    )

    verify = commands.add_parser("verify", help="Check a signature for a role.")
    verify.add_argument("--role", "-r", choices=_ROLES, required=True)
    verify.add_argument(
        "--signature",
        "-s",
        required=True,
        help='Signature as {"r","s","v"} JSON or 65-byte hex.',
    )
    return parser


def _hash_command(order_data: dict[str, object]) -> dict[str, object]:
    order = coerce_debt_order(order_data)
    hasher = DebtOrderHasher(order)
    return {
        "order": order.to_wire(),
        "issuanceCommitmentHash": encode_hex(hasher.issuance_commitment_hash()),
        "orderHash": encode_hex(hasher.order_hash()),
        "underwriterCommitmentHash": encode_hex(hasher.underwriter_commitment_hash()),
        "agreementId": str(hasher.agreement_id()),
    }


def _sign_command(
    order_data: dict[str, object], role: SigningRole, rpc_url: str | None
) -> dict[str, object]:
    service = SignerService(JsonRpcCustodian(rpc_url))
    signers = {
        SigningRole.DEBTOR: service.sign_as_debtor,
        SigningRole.CREDITOR: service.sign_as_creditor,
        SigningRole.UNDERWRITER: service.sign_as_underwriter,
    }
    return signers[role](order_data).model_dump()


def _verify_command(
    order_data: dict[str, object], role: SigningRole, signature_text: str
) -> tuple[bool, dict[str, object]]:
    order = coerce_debt_order(order_data)
    assert_signable(order, role)
    signer_address = role.signing_address(order)
    digest = commitment_hash_for(order, role)
    valid = is_valid_signature(digest, _parse_signature(signature_text), str(signer_address))
    return valid, {"valid": valid, "role": role.value, "signer": signer_address}


def main(argv: list[str] | None = None) -> int:
    """Run the debtkit command line."""
    parser = _build_parser()

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    package_logger = logging.getLogger("debtkit")
    previous_level = package_logger.level
    listeners = []
    if args.log_json:
        settings = get_settings()
        listeners.append(
            configure_structured_logging(
                package_logger, level=settings.log_level_number
            )
        )

    try:
        order_data = _load_json(args.input, None if args.input else _read_stdin())
        ok = True
        if args.command == "hash":
            result = _hash_command(order_data)
        elif args.command == "sign":
            result = _sign_command(order_data, SigningRole(args.role), args.rpc_url)
        else:
            ok, result = _verify_command(
                order_data, SigningRole(args.role), args.signature
            )

        print(json.dumps(result, separators=(",", ":")))
        return 0 if ok else 1

    except Exception as exc:
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        shutdown_listeners(listeners)
        detach_structured_logging(package_logger, listeners)
        package_logger.setLevel(previous_level)


if __name__ == "__main__":
    raise SystemExit(main())
