"""
Configuration for Aori sessions.

Settings come from the environment by default:

* ``PRIVATE_KEY`` - hex key of the trading wallet (required)
* ``WALLET_ADDRESS`` - address of the trading wallet (required)
* ``NODE_URL`` - chain node used to resolve the chain id (required)
* ``AORI_REQUEST_URL`` / ``AORI_MARKET_FEED_URL`` - endpoint overrides
* ``AORI_INSECURE_WS=1`` - allow plain ``ws://`` endpoints outside localhost
"""
import os
import urllib.parse
from dataclasses import dataclass
from typing import Mapping, Optional

from eth_account import Account
from eth_utils import is_address, to_checksum_address

from .constants import MARKET_FEED_URL, REQUEST_URL
from .exceptions import ConfigurationError

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")
_NODE_SCHEMES = ("http", "https", "ws", "wss")


@dataclass
class AoriSettings:
    """Credentials and endpoints consumed by an Aori session."""
    private_key: str
    wallet_address: str
    node_url: str
    request_url: str = REQUEST_URL
    feed_url: str = MARKET_FEED_URL
    allow_insecure: bool = False

    def __repr__(self) -> str:
        # Never print the key
        return (
            f"AoriSettings(wallet_address={self.wallet_address!r}, node_url={self.node_url!r}, "
            f"request_url={self.request_url!r}, feed_url={self.feed_url!r})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AoriSettings":
        """
        Load settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Raises:
            ConfigurationError: If a required variable is missing
        """
        env = os.environ if environ is None else environ
        missing = [name for name in ("PRIVATE_KEY", "WALLET_ADDRESS", "NODE_URL") if not env.get(name)]
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        return cls(
            private_key=env["PRIVATE_KEY"],
            wallet_address=env["WALLET_ADDRESS"],
            node_url=env["NODE_URL"],
            request_url=env.get("AORI_REQUEST_URL") or REQUEST_URL,
            feed_url=env.get("AORI_MARKET_FEED_URL") or MARKET_FEED_URL,
            allow_insecure=env.get("AORI_INSECURE_WS") == "1",
        )

    def validate(self) -> None:
        """
        Check the settings before any network activity.

        Raises:
            ConfigurationError: If a credential or endpoint is missing or malformed
        """
        if not self.private_key:
            raise ConfigurationError("private_key must be provided")
        if not self.wallet_address:
            raise ConfigurationError("wallet_address must be provided")
        if not self.node_url:
            raise ConfigurationError("node_url must be provided")

        if not is_address(self.wallet_address):
            raise ConfigurationError(f"Invalid wallet_address: {self.wallet_address}")

        try:
            key_address = Account.from_key(self.private_key).address
        except Exception as e:
            raise ConfigurationError(f"Invalid private_key: {e}") from e
        if key_address != to_checksum_address(self.wallet_address):
            raise ConfigurationError(
                f"private_key controls {key_address}, not wallet_address {self.wallet_address}"
            )

        parsed = urllib.parse.urlparse(self.node_url)
        if parsed.scheme not in _NODE_SCHEMES or not parsed.netloc:
            raise ConfigurationError(f"Invalid node_url: {self.node_url}")

        for url_name, url in [("request_url", self.request_url), ("feed_url", self.feed_url)]:
            self._validate_channel_url(url_name, url)

    def _validate_channel_url(self, url_name: str, url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in ("ws", "wss") or not parsed.netloc:
            raise ConfigurationError(f"{url_name} must be a ws:// or wss:// URL (got: {url})")
        is_local = (parsed.hostname or "") in _LOCAL_HOSTS
        if parsed.scheme != "wss" and not is_local and not self.allow_insecure:
            raise ConfigurationError(
                f"{url_name} must use wss:// for security (got: {parsed.scheme}://). "
                "Set AORI_INSECURE_WS=1 to allow ws:// for development."
            )
