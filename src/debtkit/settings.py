"""Environment-backed settings primitives for :mod:`debtkit`."""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["DEFAULT_RPC_TIMEOUT", "DEFAULT_RPC_URL", "DebtKitSettings", "get_settings"]

DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_RPC_TIMEOUT = 10.0


class DebtKitSettings(BaseSettings):
    """Expose environment-derived configuration knobs for debtkit.

    Attributes:
        rpc_url: JSON-RPC endpoint of the node used as key custodian.
        rpc_timeout: Timeout in seconds for custodian requests.
        log_level: Level name applied by the CLI when configuring logging.
    """

    rpc_url: str = Field(default=DEFAULT_RPC_URL, alias="DEBTKIT_RPC_URL")
    rpc_timeout: float = Field(default=DEFAULT_RPC_TIMEOUT, alias="DEBTKIT_RPC_TIMEOUT")
    log_level: str = Field(default="INFO", alias="DEBTKIT_LOG_LEVEL")

    model_config = SettingsConfigDict(env_file=None, extra="ignore", populate_by_name=True)

    @field_validator("rpc_url", mode="before")
    @classmethod
    def _parse_rpc_url(cls, value: object) -> str:
        """Fall back to the default endpoint when the variable is blank."""

        if value is None:
            return DEFAULT_RPC_URL
        text = str(value).strip()
        return text or DEFAULT_RPC_URL

    @field_validator("rpc_timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: object) -> float:
        """Parse the timeout while tolerating malformed input.

        Args:
            value: Raw environment value.

        Returns:
            Parsed positive float, otherwise the default timeout.
        """

        if isinstance(value, bool):
            return DEFAULT_RPC_TIMEOUT
        if isinstance(value, (int, float)):
            parsed = float(value)
        elif isinstance(value, str):
            try:
                parsed = float(value.strip())
            except ValueError:
                return DEFAULT_RPC_TIMEOUT
        else:
            return DEFAULT_RPC_TIMEOUT
        return parsed if parsed > 0 else DEFAULT_RPC_TIMEOUT

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: object) -> str:
        if not isinstance(value, str):
            return "INFO"
        name = value.strip().upper()
        if isinstance(logging.getLevelName(name), int):
            return name
        return "INFO"

    @property
    def log_level_number(self) -> int:
        """Return :attr:`log_level` as a :mod:`logging` level number."""

        return logging.getLevelName(self.log_level)


def get_settings() -> DebtKitSettings:
    """Return a :class:`DebtKitSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return DebtKitSettings()
