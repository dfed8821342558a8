"""veryfiable.integrations.eas_schema

EAS schema definition for verified public reviews.

Schema string (Solidity-style):

    string platformId,string itemId,string reviewText,uint8 rating

Registered once per network with `veryfiable register-schema`, which calls

    SchemaRegistry.register(string schema, address resolver, bool revocable)

with no resolver and revocable = true. Store the resulting UID in config as
`eas.schema_uid`.

The registry derives the UID as keccak256(abi.encodePacked(schema, resolver,
revocable)), so it is known before the transaction is mined. We compute it
locally to tell the operator what to expect.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import keccak, to_bytes

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

PUBLIC_REVIEW_SCHEMA = "string platformId,string itemId,string reviewText,uint8 rating"
PUBLIC_REVIEW_SCHEMA_NAME = "Public Review"


@dataclass(frozen=True, slots=True)
class SchemaDescriptor:
    schema: str
    resolver: str = ZERO_ADDRESS
    revocable: bool = True
    name: str = ""


def compute_schema_uid(descriptor: SchemaDescriptor) -> str:
    """UID the SchemaRegistry will assign to ``descriptor``."""

    packed = (
        descriptor.schema.encode("utf-8")
        + to_bytes(hexstr=descriptor.resolver)
        + (b"\x01" if descriptor.revocable else b"\x00")
    )
    return "0x" + keccak(packed).hex()


PUBLIC_REVIEW = SchemaDescriptor(
    schema=PUBLIC_REVIEW_SCHEMA,
    resolver=ZERO_ADDRESS,
    revocable=True,
    name=PUBLIC_REVIEW_SCHEMA_NAME,
)
