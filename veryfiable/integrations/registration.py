"""veryfiable.integrations.registration

One-time registration of the Public Review schema on EAS.

The workflow is linear and never retries:

    start -> config_validated -> connected -> submitted -> succeeded | failed

Every failure is raised with an operator-facing message; the CLI turns it into
exit status 1.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from veryfiable.core.config import EASConfig, env_name
from veryfiable.core.exceptions import (
    ConnectivityError,
    InsufficientFundsError,
    InvalidSettingError,
    MissingSettingsError,
    NonceConflictError,
    RegistrationError,
    RpcTransportError,
    SchemaExistsError,
)
from veryfiable.integrations.eas import (
    NetworkInfo,
    RpcErrorCode,
    SchemaRegistry,
    SchemaRegistryClient,
    format_ether,
)
from veryfiable.integrations.eas_schema import PUBLIC_REVIEW, SchemaDescriptor, compute_schema_uid

logger = logging.getLogger(__name__)

PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

FAUCET_URL = "https://www.coinbase.com/faucets/base-ethereum-sepolia-faucet"

REQUIRED_SETTINGS = ("rpc_url", "private_key", "schema_registry_address")


@dataclass(frozen=True, slots=True)
class RegistrationConfig:
    rpc_url: str
    private_key: str  # always 0x-prefixed
    schema_registry_address: str
    request_timeout_s: float = 30.0
    confirmation_timeout_s: float = 180.0
    poll_interval_s: float = 2.0

    def __repr__(self) -> str:
        return (
            f"RegistrationConfig(rpc_url={self.rpc_url!r}, private_key='***', "
            f"schema_registry_address={self.schema_registry_address!r})"
        )


@dataclass(frozen=True, slots=True)
class Connection:
    registry: SchemaRegistry
    network: NetworkInfo
    address: str
    balance_wei: int


def validate_config(eas: EASConfig) -> RegistrationConfig:
    """Check the three registration settings. Reports every missing one at once."""

    logger.info("Validating registration settings")

    missing = [env_name("eas", name) for name in REQUIRED_SETTINGS if not str(getattr(eas, name) or "").strip()]
    if missing:
        raise MissingSettingsError(missing)

    private_key = eas.private_key.strip()
    if not PRIVATE_KEY_RE.match(private_key):
        raise InvalidSettingError(
            env_name("eas", "private_key"),
            "a 64-character hexadecimal string (with or without 0x prefix)",
        )

    registry_address = eas.schema_registry_address.strip()
    if not ADDRESS_RE.match(registry_address):
        raise InvalidSettingError(
            env_name("eas", "schema_registry_address"),
            "a valid Ethereum address (0x followed by 40 hex characters)",
        )

    logger.info("Registration settings validated")
    return RegistrationConfig(
        rpc_url=eas.rpc_url.strip(),
        private_key=private_key if private_key.startswith("0x") else f"0x{private_key}",
        schema_registry_address=registry_address,
        request_timeout_s=eas.request_timeout_s,
        confirmation_timeout_s=eas.confirmation_timeout_s,
        poll_interval_s=eas.poll_interval_s,
    )


def default_registry(config: RegistrationConfig) -> SchemaRegistry:
    return SchemaRegistryClient(
        rpc_url=config.rpc_url,
        schema_registry_address=config.schema_registry_address,
        private_key=config.private_key,
        timeout_s=config.request_timeout_s,
        poll_interval_s=config.poll_interval_s,
        confirmation_timeout_s=config.confirmation_timeout_s,
    )


def _close_registry(registry: SchemaRegistry) -> None:
    close = getattr(registry, "close", None)
    if callable(close):
        close()


def connect(
    config: RegistrationConfig,
    *,
    registry_factory: Callable[[RegistrationConfig], SchemaRegistry] = default_registry,
) -> Connection:
    logger.info("Connecting to %s", config.rpc_url)

    registry = registry_factory(config)
    try:
        network = registry.get_network()
        logger.info("Connected to network: %s (chain id %d)", network.name, network.chain_id)

        address = registry.address
        logger.info("Wallet address: %s", address)

        balance = registry.get_balance(address)
    except RpcTransportError as e:
        _close_registry(registry)
        raise ConnectivityError(
            f"Network connection failed: {e}\n"
            f"Please check {env_name('eas', 'rpc_url')} and your internet connection."
        ) from e
    except Exception:
        _close_registry(registry)
        raise

    logger.info("Wallet balance: %s ETH", format_ether(balance))
    if balance == 0:
        logger.warning(
            "Wallet has zero balance. Registration needs testnet ETH for gas. Faucet: %s",
            FAUCET_URL,
        )

    return Connection(registry=registry, network=network, address=address, balance_wei=balance)


def _registration_failure(exc: Exception) -> RegistrationError:
    # Substring match on the upstream text: the registry only reports this as
    # a custom revert, so there is no structured field to check.
    if "already exists" in str(exc):
        return SchemaExistsError(
            "Schema already exists. This schema may have been registered previously.\n"
            "Check your transaction history or use the existing schema UID."
        )

    code = getattr(exc, "code", None)
    if code == RpcErrorCode.INSUFFICIENT_FUNDS:
        return InsufficientFundsError(f"Insufficient funds to pay for gas.\nGet testnet ETH from: {FAUCET_URL}")
    if code in (RpcErrorCode.NONCE_EXPIRED, RpcErrorCode.REPLACEMENT_UNDERPRICED):
        return NonceConflictError("Transaction nonce issue. Please try again in a few moments.")

    return RegistrationError(f"Schema registration failed: {exc}")


def submit_schema(registry: SchemaRegistry, descriptor: SchemaDescriptor = PUBLIC_REVIEW) -> str:
    """Register ``descriptor`` and return its schema UID."""

    expected_uid = compute_schema_uid(descriptor)
    logger.info(
        "Registering schema %r (resolver %s, revocable %s)",
        descriptor.schema,
        descriptor.resolver,
        descriptor.revocable,
    )
    logger.info("Expected schema UID: %s", expected_uid)

    try:
        response = registry.register(descriptor)
    except Exception as e:
        raise _registration_failure(e) from e

    if response.kind == "settled":
        return response.uid

    transaction = response.transaction
    if transaction is None:
        raise RegistrationError(
            "Schema registration failed: registry returned a pending response without a transaction"
        )

    logger.info("Transaction hash: %s", transaction.hash)
    logger.info("Waiting for transaction confirmation...")
    try:
        receipt = transaction.wait()
    except Exception as e:
        raise _registration_failure(e) from e

    # Registered(bytes32 indexed uid, address indexed registerer, ...)
    if receipt.logs and len(receipt.logs[0].topics) > 1:
        return receipt.logs[0].topics[1]

    logger.warning(
        "Could not extract schema UID from event logs, using transaction hash (expected UID %s)",
        expected_uid,
    )
    return receipt.transaction_hash or transaction.hash


def register_public_review_schema(
    eas: EASConfig,
    *,
    registry_factory: Callable[[RegistrationConfig], SchemaRegistry] = default_registry,
    descriptor: SchemaDescriptor = PUBLIC_REVIEW,
) -> str:
    config = validate_config(eas)
    connection = connect(config, registry_factory=registry_factory)
    try:
        uid = submit_schema(connection.registry, descriptor)
    finally:
        _close_registry(connection.registry)
    logger.info("Schema registered successfully: %s", uid)
    return uid
