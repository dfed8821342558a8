from __future__ import annotations

from veryfiable.core.exceptions import (
    ConfigError,
    ConnectivityError,
    DatabaseError,
    InsufficientFundsError,
    InvalidSettingError,
    MissingSettingsError,
    NonceConflictError,
    RegistrationError,
    RpcError,
    RpcTransportError,
    SchemaExistsError,
    VeryfiableError,
)


def test_exception_hierarchy_is_structural() -> None:
    for cls in (ConfigError, ConnectivityError, RegistrationError, RpcError, DatabaseError):
        assert issubclass(cls, VeryfiableError)
    assert issubclass(MissingSettingsError, ConfigError)
    assert issubclass(InvalidSettingError, ConfigError)
    assert issubclass(InsufficientFundsError, RegistrationError)
    assert issubclass(NonceConflictError, RegistrationError)
    assert issubclass(SchemaExistsError, RegistrationError)
    assert issubclass(RpcTransportError, RpcError)


def test_missing_settings_message_lists_all() -> None:
    e = MissingSettingsError(["A", "B", "C"])
    assert "A, B, C" in str(e)
    assert e.missing == ["A", "B", "C"]


def test_invalid_setting_names_field_and_shape() -> None:
    e = InvalidSettingError("VERYFIABLE_EAS__PRIVATE_KEY", "64 hex characters")
    assert str(e) == "Invalid VERYFIABLE_EAS__PRIVATE_KEY format. Must be 64 hex characters."
