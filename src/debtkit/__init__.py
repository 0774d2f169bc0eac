"""debtkit - commitment hashing and signing for lending protocol debt orders."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "DebtOrder",
    "DebtOrderHasher",
    "DebtOrderSchemaError",
    "ECDSASignature",
    "InvalidSigningKeyError",
    "JsonRpcCustodian",
    "KeyCustodian",
    "LocalKeyCustodian",
    "SignerService",
]

if TYPE_CHECKING:
    from .custodian import JsonRpcCustodian, KeyCustodian, LocalKeyCustodian
    from .errors import DebtOrderSchemaError, InvalidSigningKeyError
    from .hashing import DebtOrderHasher
    from .models import DebtOrder, ECDSASignature
    from .signer import SignerService


def __getattr__(name: str) -> Any:
    """Lazily import submodules so the eth stack loads only when used."""

    module_map = {
        "DebtOrder": "models",
        "ECDSASignature": "models",
        "DebtOrderHasher": "hashing",
        "DebtOrderSchemaError": "errors",
        "InvalidSigningKeyError": "errors",
        "JsonRpcCustodian": "custodian",
        "KeyCustodian": "custodian",
        "LocalKeyCustodian": "custodian",
        "SignerService": "signer",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
