"""Parsing and verification of raw ECDSA signatures returned by custodians."""

from __future__ import annotations

import logging
from typing import Final

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_utils import decode_hex, encode_hex, is_hex, to_checksum_address

from debtkit.models import ECDSASignature

__all__ = [
    "SignatureFormatError",
    "is_valid_signature",
    "parse_signature_hex_as_rsv",
    "recover_signer",
    "signature_to_hex",
]

LOGGER = logging.getLogger(__name__)

_SIGNATURE_LENGTH: Final[int] = 65
_V_OFFSET: Final[int] = 27


class SignatureFormatError(ValueError):
    """Raised when a raw signature cannot be split into ``r``, ``s`` and ``v``."""


def parse_signature_hex_as_rsv(raw_signature: str) -> ECDSASignature:
    """Split a 65-byte ``r || s || v`` hex signature into its components.

    Custodians disagree on the recovery id convention; ``v`` values of 0 or 1
    are shifted to 27 or 28.

    Args:
        raw_signature: Hex string, with or without ``0x`` prefix.

    Returns:
        The parsed :class:`ECDSASignature`.

    Raises:
        SignatureFormatError: If the input is not hex, has the wrong length
            or carries an unknown recovery id.
    """

    if not isinstance(raw_signature, str) or not is_hex(raw_signature):
        raise SignatureFormatError(f"Signature is not a hex string: {raw_signature!r}")
    try:
        raw = decode_hex(raw_signature)
    except ValueError as exc:
        raise SignatureFormatError(f"Signature is not valid hex: {exc}") from exc
    if len(raw) != _SIGNATURE_LENGTH:
        raise SignatureFormatError(
            f"Signature must be {_SIGNATURE_LENGTH} bytes, got {len(raw)}"
        )

    v = raw[64]
    if v < _V_OFFSET:
        v += _V_OFFSET
    if v not in (27, 28):
        raise SignatureFormatError(f"Unsupported recovery id: {raw[64]}")

    return ECDSASignature(r=encode_hex(raw[:32]), s=encode_hex(raw[32:64]), v=v)


def signature_to_hex(signature: ECDSASignature) -> str:
    """Pack a signature back into ``0x`` prefixed ``r || s || v`` hex."""

    raw = decode_hex(signature.r) + decode_hex(signature.s) + bytes([signature.v])
    return encode_hex(raw)


def recover_signer(digest: bytes, signature: ECDSASignature) -> str:
    """Return the checksum address that produced ``signature`` over ``digest``.

    The digest is treated the way ``eth_sign`` treats its payload: prefixed
    with ``"\\x19Ethereum Signed Message:\\n32"`` before hashing.
    """

    message = encode_defunct(primitive=digest)
    vrs = (signature.v, int(signature.r, 16), int(signature.s, 16))
    return to_checksum_address(Account.recover_message(message, vrs=vrs))


def is_valid_signature(
    digest: bytes, signature: ECDSASignature, signer_address: str
) -> bool:
    """Return ``True`` when ``signature`` over ``digest`` was made by ``signer_address``."""

    try:
        recovered = recover_signer(digest, signature)
    except (BadSignature, ValueError) as exc:
        LOGGER.debug(
            "Signature recovery failed",
            extra={"signer": signer_address, "error_type": type(exc).__name__},
        )
        return False
    return recovered.lower() == signer_address.lower()
