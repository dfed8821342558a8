"""veryfiable.integrations.eas

Ethereum Attestation Service (EAS) SchemaRegistry client.

Design goals:
- Lightweight: raw JSON-RPC over httpx, no web3 dependency.
- eth-account signs, eth-abi encodes calldata. Nothing else touches keys.
- Node errors are classified into stable codes so callers can branch on them.

Only what schema registration needs is implemented.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal, Protocol

import httpx
from eth_abi import encode as abi_encode
from eth_account import Account
from eth_utils import from_wei, keccak, to_checksum_address

from veryfiable.core.exceptions import RpcError, RpcTransportError
from veryfiable.integrations.eas_schema import SchemaDescriptor

logger = logging.getLogger(__name__)

REGISTER_SELECTOR = keccak(text="register(string,address,bool)")[:4]
ALREADY_EXISTS_SELECTOR = "0x" + keccak(text="AlreadyExists()")[:4].hex()

KNOWN_NETWORKS: dict[int, str] = {
    1: "mainnet",
    10: "optimism",
    8453: "base",
    42161: "arbitrum",
    84532: "base-sepolia",
    11155111: "sepolia",
    11155420: "optimism-sepolia",
}


class RpcErrorCode(StrEnum):
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    NONCE_EXPIRED = "NONCE_EXPIRED"
    REPLACEMENT_UNDERPRICED = "REPLACEMENT_UNDERPRICED"
    CALL_EXCEPTION = "CALL_EXCEPTION"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"


_MESSAGE_CODES: tuple[tuple[str, RpcErrorCode], ...] = (
    ("insufficient funds", RpcErrorCode.INSUFFICIENT_FUNDS),
    ("nonce too low", RpcErrorCode.NONCE_EXPIRED),
    ("nonce has already been used", RpcErrorCode.NONCE_EXPIRED),
    ("replacement transaction underpriced", RpcErrorCode.REPLACEMENT_UNDERPRICED),
    ("replacement fee too low", RpcErrorCode.REPLACEMENT_UNDERPRICED),
    ("execution reverted", RpcErrorCode.CALL_EXCEPTION),
)


def classify_rpc_error(message: str) -> RpcErrorCode:
    lowered = message.lower()
    for needle, code in _MESSAGE_CODES:
        if needle in lowered:
            return code
    return RpcErrorCode.SERVER_ERROR


def _describe_revert(message: str, data: object) -> str:
    if isinstance(data, str) and data.lower().startswith(ALREADY_EXISTS_SELECTOR):
        return f"{message}: AlreadyExists() - schema already exists"
    return message


def _to_int(v: object) -> int:
    if isinstance(v, int):
        return v
    return int(str(v), 16)


@dataclass(frozen=True, slots=True)
class NetworkInfo:
    chain_id: int
    name: str


@dataclass(frozen=True, slots=True)
class ReceiptLog:
    address: str
    topics: list[str]
    data: str = "0x"


@dataclass(frozen=True, slots=True)
class TransactionReceipt:
    transaction_hash: str
    status: int
    block_number: int
    logs: list[ReceiptLog] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> TransactionReceipt:
        return cls(
            transaction_hash=str(raw.get("transactionHash") or ""),
            status=_to_int("0x1" if raw.get("status") is None else raw["status"]),
            block_number=_to_int(raw.get("blockNumber") or 0),
            logs=[
                ReceiptLog(
                    address=str(log.get("address") or ""),
                    topics=[str(t) for t in log.get("topics") or []],
                    data=str(log.get("data") or "0x"),
                )
                for log in raw.get("logs") or []
            ],
        )


class PendingTransaction:
    """A submitted transaction that has not been mined yet."""

    def __init__(
        self,
        client: SchemaRegistryClient,
        tx_hash: str,
        *,
        poll_interval_s: float = 2.0,
        timeout_s: float = 180.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self.hash = tx_hash
        self._poll_interval_s = poll_interval_s
        self._timeout_s = timeout_s
        self._sleep = sleep

    def wait(self) -> TransactionReceipt:
        deadline = time.monotonic() + self._timeout_s
        while True:
            raw = self._client.rpc_call("eth_getTransactionReceipt", [self.hash])
            if raw:
                receipt = TransactionReceipt.from_rpc(raw)
                if receipt.status != 1:
                    raise RpcError(
                        f"transaction {self.hash} reverted in block {receipt.block_number}",
                        code=RpcErrorCode.CALL_EXCEPTION,
                    )
                return receipt
            if time.monotonic() >= deadline:
                raise RpcTransportError(
                    f"transaction {self.hash} not mined after {self._timeout_s:.0f}s",
                    code=RpcErrorCode.TIMEOUT,
                )
            self._sleep(self._poll_interval_s)


@dataclass(frozen=True, slots=True)
class RegistrationResponse:
    """Either a schema UID (``settled``) or a transaction to wait on (``pending``)."""

    kind: Literal["settled", "pending"]
    uid: str = ""
    transaction: PendingTransaction | None = None

    @classmethod
    def settled(cls, uid: str) -> RegistrationResponse:
        return cls(kind="settled", uid=uid)

    @classmethod
    def pending(cls, transaction: PendingTransaction) -> RegistrationResponse:
        return cls(kind="pending", transaction=transaction)


class SchemaRegistry(Protocol):
    @property
    def address(self) -> str: ...

    def get_network(self) -> NetworkInfo: ...

    def get_balance(self, address: str) -> int: ...

    def register(self, descriptor: SchemaDescriptor) -> RegistrationResponse: ...


class SchemaRegistryClient:
    """SchemaRegistry access over raw JSON-RPC."""

    def __init__(
        self,
        *,
        rpc_url: str,
        schema_registry_address: str,
        private_key: str,
        timeout_s: float = 30.0,
        poll_interval_s: float = 2.0,
        confirmation_timeout_s: float = 180.0,
    ) -> None:
        self._rpc_url = str(rpc_url)
        self._schema_registry = to_checksum_address(schema_registry_address)
        self._account = Account.from_key(private_key)
        self._poll_interval_s = float(poll_interval_s)
        self._confirmation_timeout_s = float(confirmation_timeout_s)
        self._http = httpx.Client(timeout=timeout_s)
        self._request_id = 0

    @property
    def address(self) -> str:
        return str(self._account.address)

    def close(self) -> None:
        self._http.close()

    def rpc_call(self, method: str, params: list[object]) -> Any:
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": str(method), "params": list(params)}
        try:
            r = self._http.post(self._rpc_url, json=payload)
            r.raise_for_status()
        except httpx.TimeoutException as e:
            raise RpcTransportError(f"{method} timed out: {e}", code=RpcErrorCode.TIMEOUT) from e
        except httpx.HTTPStatusError as e:
            raise RpcError(f"{method} failed with HTTP {e.response.status_code}", code=RpcErrorCode.SERVER_ERROR) from e
        except httpx.TransportError as e:
            raise RpcTransportError(f"{method} could not reach {self._rpc_url}: {e}", code=RpcErrorCode.NETWORK_ERROR) from e

        out = r.json()
        if "error" in out:
            err = out["error"] or {}
            message = str(err.get("message") or err)
            data = err.get("data")
            raise RpcError(_describe_revert(message, data), code=classify_rpc_error(message), data=data)
        return out.get("result")

    def get_network(self) -> NetworkInfo:
        chain_id = _to_int(self.rpc_call("eth_chainId", []))
        return NetworkInfo(chain_id=chain_id, name=KNOWN_NETWORKS.get(chain_id, "unknown"))

    def get_balance(self, address: str) -> int:
        return _to_int(self.rpc_call("eth_getBalance", [address, "latest"]))

    def encode_register_call(self, descriptor: SchemaDescriptor) -> str:
        args = abi_encode(
            ["string", "address", "bool"],
            [descriptor.schema, to_checksum_address(descriptor.resolver), bool(descriptor.revocable)],
        )
        return "0x" + (REGISTER_SELECTOR + args).hex()

    def _fees(self) -> tuple[int, int]:
        block = self.rpc_call("eth_getBlockByNumber", ["latest", False]) or {}
        base_fee = _to_int(block.get("baseFeePerGas") or 0)
        priority = _to_int(self.rpc_call("eth_maxPriorityFeePerGas", []))
        return base_fee * 2 + priority, priority

    def register(self, descriptor: SchemaDescriptor) -> RegistrationResponse:
        data = self.encode_register_call(descriptor)
        call = {"from": self.address, "to": self._schema_registry, "data": data}

        # estimateGas surfaces reverts (e.g. AlreadyExists) before anything is signed.
        gas = _to_int(self.rpc_call("eth_estimateGas", [call]))
        nonce = _to_int(self.rpc_call("eth_getTransactionCount", [self.address, "pending"]))
        chain_id = self.get_network().chain_id
        max_fee, max_priority = self._fees()

        tx = {
            "type": 2,
            "chainId": chain_id,
            "nonce": nonce,
            "to": self._schema_registry,
            "value": 0,
            "data": data,
            "gas": gas + gas // 5,
            "maxFeePerGas": max_fee,
            "maxPriorityFeePerGas": max_priority,
            "accessList": [],
        }
        signed = self._account.sign_transaction(tx)
        tx_hash = self.rpc_call("eth_sendRawTransaction", ["0x" + bytes(signed.raw_transaction).hex()])
        logger.info("Submitted register transaction %s (nonce %d, gas %d)", tx_hash, nonce, tx["gas"])

        return RegistrationResponse.pending(
            PendingTransaction(
                self,
                str(tx_hash),
                poll_interval_s=self._poll_interval_s,
                timeout_s=self._confirmation_timeout_s,
            )
        )


def format_ether(wei: int) -> str:
    return f"{from_wei(wei, 'ether'):f}"
