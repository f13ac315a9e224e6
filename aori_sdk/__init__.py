"""
Aori SDK - Seaport order signing and JSON-RPC sessions for the Aori orderbook.
"""
from .config import AoriSettings
from .digest import Digest, digest, domain_separator, order_struct_hash, typed_data
from .domain import DomainDescriptor, resolve_domain
from .exceptions import (
    AoriConnectionError,
    AoriError,
    ConfigurationError,
    ProtocolError,
    SendError,
    SessionStateError,
    SigningError,
)
from .models import ConsiderationItem, ItemType, OfferItem, OrderComponents, OrderType, random_salt
from .responses import authenticate, extract_auth_token, wait_for_response
from .session import AoriSession, AuthenticatedSession, RequestSequencer, SessionPhase
from .signer import LocalSigner, Signature, Signer
from .version import __version__

__all__ = [
    "AoriSession",
    "AuthenticatedSession",
    "AoriSettings",
    "RequestSequencer",
    "SessionPhase",
    "OrderComponents",
    "OfferItem",
    "ConsiderationItem",
    "ItemType",
    "OrderType",
    "random_salt",
    "DomainDescriptor",
    "resolve_domain",
    "Digest",
    "digest",
    "domain_separator",
    "order_struct_hash",
    "typed_data",
    "LocalSigner",
    "Signature",
    "Signer",
    "authenticate",
    "extract_auth_token",
    "wait_for_response",
    "AoriError",
    "ConfigurationError",
    "AoriConnectionError",
    "SigningError",
    "SendError",
    "ProtocolError",
    "SessionStateError",
    "__version__",
]
