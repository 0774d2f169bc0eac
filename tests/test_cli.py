"""Tests for CLI functionality."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from unittest.mock import patch

from eth_utils import to_checksum_address

from debtkit.cli import main
from debtkit.custodian import LocalKeyCustodian
from debtkit.hashing import DebtOrderHasher
from debtkit.models import DebtOrder
from debtkit.signatures import signature_to_hex
from debtkit.signer import SignerService


def _write_order(tmp_path: Path, fields: dict[str, object]) -> str:
    path = tmp_path / "order.json"
    path.write_text(json.dumps(fields), encoding="utf-8")
    return str(path)


def test_cli_main_no_args(capsys):
    """A command is required."""
    result = main([])
    assert result == 1


def test_cli_main_help(capsys):
    """Test CLI help output."""
    result = main(["--help"])
    assert result == 0

    captured = capsys.readouterr()
    assert "usage:" in captured.out.lower()
    assert "debt order" in captured.out.lower()


def test_cli_hash_without_input(capsys):
    """Hashing without a file or piped input fails."""
    result = main(["hash"])
    assert result == 1

    captured = capsys.readouterr()
    assert "No input provided" in captured.err


def test_cli_hash_prints_commitment_hashes(tmp_path, capsys, order_fields):
    """The hash command prints every commitment hash and the agreement id."""
    result = main(["--input", _write_order(tmp_path, order_fields), "hash"])
    assert result == 0

    output = json.loads(capsys.readouterr().out)
    hasher = DebtOrderHasher(DebtOrder.model_validate(order_fields))
    assert output["orderHash"] == "0x" + hasher.order_hash().hex()
    assert output["underwriterCommitmentHash"] == "0x" + hasher.underwriter_commitment_hash().hex()
    assert output["issuanceCommitmentHash"] == "0x" + hasher.issuance_commitment_hash().hex()
    assert int(output["agreementId"]) == hasher.agreement_id()
    assert output["order"]["debtor"] == to_checksum_address(order_fields["debtor"])
    assert output["order"]["principalAmount"] == 1000


def test_cli_hash_reports_missing_fields(tmp_path, capsys, order_fields):
    """Missing fields are named on stderr."""
    order_fields.pop("salt")

    result = main(["-i", _write_order(tmp_path, order_fields), "hash"])

    assert result == 1
    assert "salt" in capsys.readouterr().err


def test_cli_sign_uses_json_rpc_custodian(
    tmp_path, capsys, order_fields, custodian: LocalKeyCustodian
):
    """Signing goes through the JSON-RPC custodian at the given endpoint."""
    with patch("debtkit.cli.JsonRpcCustodian", return_value=custodian) as factory:
        result = main(
            [
                "-i",
                _write_order(tmp_path, order_fields),
                "sign",
                "--role",
                "underwriter",
                "--rpc-url",
                "http://node:8545",
            ]
        )

    assert result == 0
    factory.assert_called_once_with("http://node:8545")
    output = json.loads(capsys.readouterr().out)
    assert set(output) == {"r", "s", "v"}
    assert output["v"] in (27, 28)


def test_cli_verify_round_trip(tmp_path, capsys, order_fields, custodian: LocalKeyCustodian):
    """A signature verifies for its own role only."""
    signature = SignerService(custodian).sign_as_creditor(order_fields)
    order_path = _write_order(tmp_path, order_fields)

    ok = main(
        ["-i", order_path, "verify", "--role", "creditor", "--signature", signature.model_dump_json()]
    )
    assert ok == 0
    assert json.loads(capsys.readouterr().out)["valid"] is True

    wrong_role = main(
        ["-i", order_path, "verify", "-r", "debtor", "-s", signature_to_hex(signature)]
    )
    assert wrong_role == 1
    assert json.loads(capsys.readouterr().out)["valid"] is False


def test_cli_reads_order_from_stdin(monkeypatch, capsys, order_fields):
    """Piped JSON is used when no input file is given."""
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(order_fields)))

    result = main(["hash"])

    assert result == 0
    output = json.loads(capsys.readouterr().out)
    hasher = DebtOrderHasher(DebtOrder.model_validate(order_fields))
    assert output["orderHash"] == "0x" + hasher.order_hash().hex()


def test_cli_log_json_leaves_package_logger_untouched(tmp_path, capsys, order_fields):
    """Repeated --log-json runs do not accumulate handlers or change the level."""
    package_logger = logging.getLogger("debtkit")
    handlers_before = list(package_logger.handlers)
    level_before = package_logger.level
    order_path = _write_order(tmp_path, order_fields)

    for _ in range(3):
        assert main(["--log-json", "-i", order_path, "hash"]) == 0

    assert package_logger.handlers == handlers_before
    assert package_logger.level == level_before
