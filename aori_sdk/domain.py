"""
EIP-712 signing domain for the Seaport deployment Aori settles on.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

from .constants import SEAPORT_ADDRESS, SEAPORT_NAME, SEAPORT_VERSION
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class DomainDescriptor:
    """
    EIP-712 domain separator fields.

    Attributes:
        name: Protocol name
        version: Protocol version
        chain_id: Chain the verifying contract lives on
        verifying_contract: Address of the Seaport contract
    """
    name: str
    version: str
    chain_id: int
    verifying_contract: str

    def as_dict(self) -> Dict[str, Any]:
        """Return the domain in the EIP-712 JSON shape."""
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


@lru_cache(maxsize=None)
def resolve_domain(chain_id: int) -> DomainDescriptor:
    """
    Get the Seaport domain for a chain.

    Descriptors are built once per chain id and shared for the life of the
    process.

    Args:
        chain_id: Chain id resolved from the connected node

    Returns:
        DomainDescriptor for Seaport on that chain
    """
    return DomainDescriptor(
        name=SEAPORT_NAME,
        version=SEAPORT_VERSION,
        chain_id=int(chain_id),
        verifying_contract=SEAPORT_ADDRESS,
    )


def ensure_domain_matches(domain: DomainDescriptor, chain_id: int) -> None:
    """
    Raises:
        ConfigurationError: If the domain was built for a different chain
    """
    if domain.chain_id != chain_id:
        raise ConfigurationError(
            f"Chain ID mismatch: signing domain is for chain {domain.chain_id}, "
            f"session is connected to chain {chain_id}"
        )
