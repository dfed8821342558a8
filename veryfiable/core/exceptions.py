"""veryfiable.core.exceptions

Errors are part of the interface.

Every message is meant to be read by an operator at a terminal: say what failed
and what to do next.
"""

from __future__ import annotations

from collections.abc import Sequence


class VeryfiableError(Exception):
    """Base exception for veryfiable."""


class ConfigError(VeryfiableError):
    """Configuration is missing, invalid, or inconsistent."""


class MissingSettingsError(ConfigError):
    """One or more required settings are absent."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Missing required settings: {', '.join(self.missing)}\n"
            "Set them in the environment (or a .env file) or in config/user.yaml."
        )


class InvalidSettingError(ConfigError):
    """A required setting is present but malformed."""

    def __init__(self, setting: str, expected: str) -> None:
        self.setting = setting
        self.expected = expected
        super().__init__(f"Invalid {setting} format. Must be {expected}.")


class ConnectivityError(VeryfiableError):
    """The network endpoint could not be reached."""


class RegistrationError(VeryfiableError):
    """Schema registration failed."""


class InsufficientFundsError(RegistrationError):
    """The signing account cannot pay for gas."""


class NonceConflictError(RegistrationError):
    """The transaction nonce is stale or already used by a pending transaction."""


class SchemaExistsError(RegistrationError):
    """The schema is already registered. Re-running will not help."""


class RpcError(VeryfiableError):
    """A JSON-RPC call was answered with an error."""

    def __init__(self, message: str, *, code: str = "SERVER_ERROR", data: object = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class RpcTransportError(RpcError):
    """The JSON-RPC request never got an answer (timeout, refused, unresolvable)."""


class DatabaseError(VeryfiableError):
    """Database unreachable or a statement failed."""
