"""
Data models for the Aori SDK.

Seaport order values as pydantic models. Two renderings are provided:
``to_message()`` produces the EIP-712 message (native integers) used by the
digest engine, ``to_wire()`` produces the JSON shape the Aori API expects
(integers as decimal strings, enums as small integers).
"""
import secrets
from enum import IntEnum
from typing import Annotated, Any, Dict, Tuple, Union

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import UINT128_MAX, UINT256_MAX, ZERO_ADDRESS, ZERO_BYTES32

Uint256 = Annotated[int, Field(ge=0, le=UINT256_MAX)]
# Amounts are narrowed to uint128 by the exchange, so anything wider is rejected up front
Amount = Annotated[int, Field(ge=0, le=UINT128_MAX)]


class ItemType(IntEnum):
    NATIVE = 0
    ERC20 = 1
    ERC721 = 2
    ERC1155 = 3
    ERC721_WITH_CRITERIA = 4
    ERC1155_WITH_CRITERIA = 5


class OrderType(IntEnum):
    FULL_OPEN = 0
    PARTIAL_OPEN = 1
    FULL_RESTRICTED = 2
    PARTIAL_RESTRICTED = 3
    CONTRACT = 4


def checksum_address(value: Any) -> str:
    """
    Validate an address and return its EIP-55 checksum form.

    Raises:
        ValueError: If the value is not a 20-byte hex address
    """
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return to_checksum_address(value)


def normalize_bytes32(value: Union[str, bytes, bytearray]) -> str:
    """
    Normalize a 32-byte value to a lowercase 0x-prefixed hex string.

    Raises:
        ValueError: If the value is not exactly 32 bytes
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        hex_part = value[2:] if value[:2].lower() == "0x" else value
        try:
            raw = bytes.fromhex(hex_part)
        except ValueError:
            raise ValueError(f"bytes32 value must be hex encoded, got: {value!r}")
    else:
        raise ValueError(f"bytes32 value must be str or bytes, got {type(value).__name__}")

    if len(raw) != 32:
        raise ValueError(f"bytes32 value must be exactly 32 bytes, got: {len(raw)}")
    return "0x" + raw.hex()


def random_salt() -> int:
    """Return a fresh 256-bit salt."""
    return secrets.randbits(256)


class _Item(BaseModel):
    """Fields shared by offer and consideration items."""
    item_type: ItemType
    token: str
    identifier_or_criteria: Uint256 = 0
    start_amount: Amount
    end_amount: Amount

    class Config:
        frozen = True

    @field_validator("token", mode="before")
    @classmethod
    def validate_token(cls, value: Any) -> str:
        return checksum_address(value)

    def to_message(self) -> Dict[str, Any]:
        return {
            "itemType": int(self.item_type),
            "token": self.token,
            "identifierOrCriteria": self.identifier_or_criteria,
            "startAmount": self.start_amount,
            "endAmount": self.end_amount,
        }

    def to_wire(self) -> Dict[str, Any]:
        return {
            "itemType": int(self.item_type),
            "token": self.token,
            "identifierOrCriteria": str(self.identifier_or_criteria),
            "startAmount": str(self.start_amount),
            "endAmount": str(self.end_amount),
        }


class OfferItem(_Item):
    """An item the offerer gives up when the order is fulfilled."""

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "OfferItem":
        return cls(
            item_type=int(data["itemType"]),
            token=data["token"],
            identifier_or_criteria=int(data.get("identifierOrCriteria", 0)),
            start_amount=int(data["startAmount"]),
            end_amount=int(data["endAmount"]),
        )


class ConsiderationItem(_Item):
    """An item the offerer expects to receive, paid to ``recipient``."""
    recipient: str

    @field_validator("recipient", mode="before")
    @classmethod
    def validate_recipient(cls, value: Any) -> str:
        return checksum_address(value)

    def to_message(self) -> Dict[str, Any]:
        message = super().to_message()
        message["recipient"] = self.recipient
        return message

    def to_wire(self) -> Dict[str, Any]:
        wire = super().to_wire()
        wire["recipient"] = self.recipient
        return wire

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "ConsiderationItem":
        return cls(
            item_type=int(data["itemType"]),
            token=data["token"],
            identifier_or_criteria=int(data.get("identifierOrCriteria", 0)),
            start_amount=int(data["startAmount"]),
            end_amount=int(data["endAmount"]),
            recipient=data["recipient"],
        )


class OrderComponents(BaseModel):
    """
    Canonical Seaport order, the form that is hashed and signed.

    The order of ``offer`` and ``consideration`` is part of the order's
    identity: reordering items yields a different digest.
    """
    offerer: str
    zone: str = ZERO_ADDRESS
    offer: Tuple[OfferItem, ...]
    consideration: Tuple[ConsiderationItem, ...]
    order_type: OrderType = OrderType.FULL_OPEN
    start_time: Uint256
    end_time: Uint256
    zone_hash: str = ZERO_BYTES32
    salt: Uint256
    conduit_key: str = ZERO_BYTES32
    counter: Uint256 = 0

    class Config:
        frozen = True

    @field_validator("offerer", "zone", mode="before")
    @classmethod
    def validate_addresses(cls, value: Any) -> str:
        return checksum_address(value)

    @field_validator("zone_hash", "conduit_key", mode="before")
    @classmethod
    def validate_bytes32(cls, value: Any) -> str:
        return normalize_bytes32(value)

    @model_validator(mode="after")
    def validate_window(self) -> "OrderComponents":
        if self.end_time < self.start_time:
            raise ValueError(
                f"end_time ({self.end_time}) must not be before start_time ({self.start_time})"
            )
        return self

    @property
    def total_original_consideration_items(self) -> int:
        return len(self.consideration)

    def to_message(self) -> Dict[str, Any]:
        """Render the order as an EIP-712 ``OrderComponents`` message."""
        return {
            "offerer": self.offerer,
            "zone": self.zone,
            "offer": [item.to_message() for item in self.offer],
            "consideration": [item.to_message() for item in self.consideration],
            "orderType": int(self.order_type),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "zoneHash": self.zone_hash,
            "salt": self.salt,
            "conduitKey": self.conduit_key,
            "counter": self.counter,
        }

    def to_wire(self) -> Dict[str, Any]:
        """Render the order as the ``parameters`` object of ``aori_makeOrder``."""
        return {
            "offerer": self.offerer,
            "zone": self.zone,
            "zoneHash": self.zone_hash,
            "startTime": str(self.start_time),
            "endTime": str(self.end_time),
            "orderType": int(self.order_type),
            "offer": [item.to_wire() for item in self.offer],
            "consideration": [item.to_wire() for item in self.consideration],
            "totalOriginalConsiderationItems": self.total_original_consideration_items,
            "salt": str(self.salt),
            "conduitKey": self.conduit_key,
            "counter": str(self.counter),
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "OrderComponents":
        """Parse the ``parameters`` object of an order received from the API."""
        return cls(
            offerer=data["offerer"],
            zone=data.get("zone", ZERO_ADDRESS),
            offer=[OfferItem.from_wire(item) for item in data.get("offer", [])],
            consideration=[ConsiderationItem.from_wire(item) for item in data.get("consideration", [])],
            order_type=int(data.get("orderType", OrderType.FULL_OPEN)),
            start_time=int(data["startTime"]),
            end_time=int(data["endTime"]),
            zone_hash=data.get("zoneHash", ZERO_BYTES32),
            salt=int(data["salt"]),
            conduit_key=data.get("conduitKey", ZERO_BYTES32),
            counter=int(data.get("counter", 0)),
        )
