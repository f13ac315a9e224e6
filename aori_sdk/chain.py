"""
Chain id resolution through a node connection.
"""
import logging
import urllib.parse

from web3 import Web3

from .exceptions import AoriConnectionError, ConfigurationError

logger = logging.getLogger(__name__)


def _make_provider(node_url: str):
    scheme = urllib.parse.urlparse(node_url).scheme
    if scheme in ("http", "https"):
        return Web3.HTTPProvider(node_url)
    if scheme in ("ws", "wss"):
        return Web3.LegacyWebSocketProvider(node_url)
    raise ConfigurationError(f"Unsupported node URL scheme: {scheme}://")


def resolve_chain_id(node_url: str) -> int:
    """
    Ask the node which chain it serves.

    Args:
        node_url: ``http(s)://`` or ``ws(s)://`` node endpoint

    Returns:
        Chain id reported by ``eth_chainId``

    Raises:
        ConfigurationError: If the URL scheme is not supported
        AoriConnectionError: If the node cannot be reached or answers badly
    """
    w3 = Web3(_make_provider(node_url))
    try:
        chain_id = int(w3.eth.chain_id)
    except Exception as e:
        logger.error(f"Failed to resolve chain ID from node: {e}")
        raise AoriConnectionError(f"Failed to resolve chain ID: {e}") from e

    logger.debug(f"Node reports chain ID {chain_id}")
    return chain_id
