"""
EIP-712 typed-data hashing for Seaport orders.

The encoder is driven by a types table in the same shape eth_account uses
(``{"Struct": [{"name": ..., "type": ...}, ...]}``), so the same table can be
handed to external wallets through :func:`typed_data`.

All functions here are pure and hold no shared mutable state.
"""
import re
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from eth_abi import encode
from eth_utils import keccak

from .domain import DomainDescriptor
from .models import OrderComponents

EIP712_DOMAIN_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
}

# Seaport enums are encoded as uint8
SEAPORT_TYPES = {
    "OrderComponents": [
        {"name": "offerer", "type": "address"},
        {"name": "zone", "type": "address"},
        {"name": "offer", "type": "OfferItem[]"},
        {"name": "consideration", "type": "ConsiderationItem[]"},
        {"name": "orderType", "type": "uint8"},
        {"name": "startTime", "type": "uint256"},
        {"name": "endTime", "type": "uint256"},
        {"name": "zoneHash", "type": "bytes32"},
        {"name": "salt", "type": "uint256"},
        {"name": "conduitKey", "type": "bytes32"},
        {"name": "counter", "type": "uint256"},
    ],
    "OfferItem": [
        {"name": "itemType", "type": "uint8"},
        {"name": "token", "type": "address"},
        {"name": "identifierOrCriteria", "type": "uint256"},
        {"name": "startAmount", "type": "uint256"},
        {"name": "endAmount", "type": "uint256"},
    ],
    "ConsiderationItem": [
        {"name": "itemType", "type": "uint8"},
        {"name": "token", "type": "address"},
        {"name": "identifierOrCriteria", "type": "uint256"},
        {"name": "startAmount", "type": "uint256"},
        {"name": "endAmount", "type": "uint256"},
        {"name": "recipient", "type": "address"},
    ],
}

PRIMARY_TYPE = "OrderComponents"

_ARRAY_SUFFIX = re.compile(r"\[\d*\]$")

Types = Mapping[str, Sequence[Mapping[str, str]]]


class Digest(bytes):
    """
    A 32-byte EIP-712 signing hash.

    Signers only accept this type for digest signing, which keeps typed-data
    hashes out of the personal-message signing path.
    """

    def __new__(cls, value: bytes) -> "Digest":
        if len(value) != 32:
            raise ValueError(f"Digest must be exactly 32 bytes, got: {len(value)}")
        return super().__new__(cls, value)

    def to_hex(self) -> str:
        return "0x" + self.hex()

    def __repr__(self) -> str:
        return f"Digest({self.to_hex()})"


def _base_type(type_name: str) -> str:
    while _ARRAY_SUFFIX.search(type_name):
        type_name = _ARRAY_SUFFIX.sub("", type_name)
    return type_name


def _freeze(types: Types) -> Tuple[Tuple[str, Tuple[Tuple[str, str], ...]], ...]:
    return tuple(
        (struct, tuple((field["name"], field["type"]) for field in fields))
        for struct, fields in types.items()
    )


def _find_dependencies(primary_type: str, types: Types, found: List[str]) -> List[str]:
    if primary_type in found or primary_type not in types:
        return found
    found.append(primary_type)
    for field in types[primary_type]:
        _find_dependencies(_base_type(field["type"]), types, found)
    return found


@lru_cache(maxsize=64)
def _encode_type_cached(primary_type: str, frozen_types) -> str:
    types = {struct: [{"name": n, "type": t} for n, t in fields] for struct, fields in frozen_types}
    deps = _find_dependencies(primary_type, types, [])
    deps.remove(primary_type)
    parts = []
    for struct in [primary_type] + sorted(deps):
        members = ",".join(f"{field['type']} {field['name']}" for field in types[struct])
        parts.append(f"{struct}({members})")
    return "".join(parts)


def encode_type(primary_type: str, types: Types) -> str:
    """
    Build the canonical type string for ``primary_type``.

    The primary struct comes first, followed by every referenced struct
    sorted by name.
    """
    if primary_type not in types:
        raise ValueError(f"Unknown struct type: {primary_type}")
    return _encode_type_cached(primary_type, _freeze(types))


def type_hash(primary_type: str, types: Types) -> bytes:
    return keccak(text=encode_type(primary_type, types))


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value[2:] if value[:2].lower() == "0x" else value)
    raise TypeError(f"Expected bytes or hex string, got {type(value).__name__}")


def _encode_field(type_name: str, value: Any, types: Types) -> bytes:
    if type_name in types:
        return hash_struct(type_name, value, types)

    if _ARRAY_SUFFIX.search(type_name):
        element_type = _ARRAY_SUFFIX.sub("", type_name)
        return keccak(b"".join(_encode_field(element_type, item, types) for item in value))

    if type_name == "string":
        return keccak(text=value)

    if type_name == "bytes":
        return keccak(_to_bytes(value))

    if type_name.startswith("bytes"):
        return encode([type_name], [_to_bytes(value)])

    # address, bool, uintN, intN are single ABI words
    return encode([type_name], [value])


def encode_data(primary_type: str, data: Mapping[str, Any], types: Types) -> bytes:
    """
    Encode a struct value as ``typeHash || enc(field_1) || ... || enc(field_n)``.

    Raises:
        ValueError: If a field declared by the type is missing from ``data``
    """
    encoded = [type_hash(primary_type, types)]
    for field in types[primary_type]:
        name = field["name"]
        if name not in data:
            raise ValueError(f"Missing field '{name}' for struct {primary_type}")
        encoded.append(_encode_field(field["type"], data[name], types))
    return b"".join(encoded)


def hash_struct(primary_type: str, data: Mapping[str, Any], types: Types) -> bytes:
    return keccak(encode_data(primary_type, data, types))


def domain_separator(domain: DomainDescriptor) -> bytes:
    """Struct hash of the EIP-712 domain."""
    return hash_struct("EIP712Domain", domain.as_dict(), EIP712_DOMAIN_TYPES)


def order_struct_hash(order: OrderComponents) -> bytes:
    """
    Struct hash of an order.

    This is the value Seaport reports as the order hash.
    """
    return hash_struct(PRIMARY_TYPE, order.to_message(), SEAPORT_TYPES)


def digest(order: OrderComponents, domain: DomainDescriptor) -> Digest:
    """
    Compute the EIP-712 signing hash of an order under a domain.

    Returns:
        ``keccak256(0x1901 || domainSeparator || hashStruct(order))``
    """
    return Digest(keccak(b"\x19\x01" + domain_separator(domain) + order_struct_hash(order)))


def typed_data(order: OrderComponents, domain: DomainDescriptor) -> Dict[str, Any]:
    """
    Build the full EIP-712 document for an order.

    Suitable for wallets that sign typed data themselves
    (``eth_signTypedData_v4``).
    """
    return {
        "types": {**EIP712_DOMAIN_TYPES, **SEAPORT_TYPES},
        "primaryType": PRIMARY_TYPE,
        "domain": domain.as_dict(),
        "message": order.to_message(),
    }
