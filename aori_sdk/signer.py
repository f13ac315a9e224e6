"""
Signing capability for the Aori SDK.

Two signing modes exist and they are not interchangeable:

* ``sign_digest`` signs a precomputed EIP-712 :class:`~aori_sdk.digest.Digest`
  as-is. Orders are signed this way.
* ``sign_plaintext`` hashes arbitrary bytes under the EIP-191 personal-message
  prefix before signing. Only the wallet-ownership proof uses it.
"""
import logging
from dataclasses import dataclass
from typing import Protocol, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from eth_keys.datatypes import Signature as KeySignature

from .digest import Digest
from .exceptions import SigningError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Signature:
    """
    A recoverable secp256k1 signature.

    Attributes:
        r: First 32-byte scalar
        s: Second 32-byte scalar
        v: Recovery byte (27 or 28)
    """
    r: int
    s: int
    v: int

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Signature":
        """
        Raises:
            ValueError: If ``raw`` is not 65 bytes
        """
        if len(raw) != 65:
            raise ValueError(f"Signature must be 65 bytes, got: {len(raw)}")
        return cls(
            r=int.from_bytes(raw[:32], "big"),
            s=int.from_bytes(raw[32:64], "big"),
            v=raw[64],
        )

    @classmethod
    def from_hex(cls, value: str) -> "Signature":
        return cls.from_bytes(bytes.fromhex(value[2:] if value.startswith("0x") else value))

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    def __str__(self) -> str:
        return self.to_hex()


class Signer(Protocol):
    """Protocol for signers usable by an Aori session"""
    address: str

    def sign_digest(self, digest: Digest) -> Signature:
        """Sign a typed-data digest directly"""
        ...

    def sign_plaintext(self, message: Union[str, bytes]) -> Signature:
        """Sign a message under the personal-message prefix"""
        ...


class LocalSigner:
    """Signer backed by a private key held in process memory."""

    def __init__(self, private_key: str):
        """
        Args:
            private_key: Hex encoded secp256k1 key, with or without 0x prefix

        Raises:
            SigningError: If the key is missing or not a valid secp256k1 key
        """
        if not private_key:
            raise SigningError("No private key provided")
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except Exception as e:
            raise SigningError(f"Invalid private key: {e}") from e

    @property
    def address(self) -> str:
        return self._account.address

    def sign_digest(self, digest: Digest) -> Signature:
        """
        Sign a precomputed EIP-712 digest.

        Raises:
            SigningError: If ``digest`` is not a :class:`Digest` or signing fails
        """
        if not isinstance(digest, Digest):
            raise SigningError(
                f"sign_digest requires a Digest, got {type(digest).__name__}; "
                "use sign_plaintext for arbitrary messages"
            )
        try:
            signed = self._account.unsafe_sign_hash(bytes(digest))
        except Exception as e:
            logger.error(f"Digest signing failed: {e}")
            raise SigningError(f"Failed to sign digest: {e}") from e
        return Signature(r=signed.r, s=signed.s, v=signed.v)

    def sign_plaintext(self, message: Union[str, bytes]) -> Signature:
        """
        Sign a message with the EIP-191 personal-message prefix.

        Raises:
            SigningError: If ``message`` is a :class:`Digest` or signing fails
        """
        if isinstance(message, Digest):
            raise SigningError(
                "Refusing to sign a typed-data digest as a personal message; use sign_digest"
            )
        try:
            if isinstance(message, str):
                signable = encode_defunct(text=message)
            else:
                signable = encode_defunct(primitive=bytes(message))
            signed = self._account.sign_message(signable)
        except Exception as e:
            logger.error(f"Message signing failed: {e}")
            raise SigningError(f"Failed to sign message: {e}") from e
        return Signature(r=signed.r, s=signed.s, v=signed.v)


def recover_digest_signer(digest: Digest, signature: Signature) -> str:
    """Recover the address that produced ``signature`` over a typed-data digest."""
    # eth_keys expects a 0/1 recovery id
    recovery_id = signature.v - 27 if signature.v >= 27 else signature.v
    key_signature = KeySignature(vrs=(recovery_id, signature.r, signature.s))
    return key_signature.recover_public_key_from_msg_hash(bytes(digest)).to_checksum_address()


def recover_plaintext_signer(message: Union[str, bytes], signature: Signature) -> str:
    """Recover the address that produced ``signature`` over a personal message."""
    if isinstance(message, str):
        signable = encode_defunct(text=message)
    else:
        signable = encode_defunct(primitive=bytes(message))
    return Account.recover_message(signable, signature=signature.to_bytes())
