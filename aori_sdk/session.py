"""
AoriSession - JSON-RPC session against the Aori orderbook.
"""
import json
import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .chain import resolve_chain_id
from .config import AoriSettings
from .constants import (
    JSONRPC_VERSION,
    METHOD_AUTH_WALLET,
    METHOD_CHECK_AUTH,
    METHOD_MAKE_ORDER,
    METHOD_PING,
    METHOD_SUBSCRIBE_ORDERBOOK,
    METHOD_VIEW_ORDERBOOK,
)
from .digest import digest
from .domain import DomainDescriptor, ensure_domain_matches, resolve_domain
from .exceptions import AoriConnectionError, SendError, SessionStateError
from .models import OrderComponents
from .signer import LocalSigner, Signature, Signer
from .transport import Channel, connect_channel

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    AUTHENTICATING = "AUTHENTICATING"
    AUTHENTICATED = "AUTHENTICATED"


class RequestSequencer:
    """
    Monotonic request id source.

    Ids start at 1 and are never reused. The sequencer is not thread-safe on
    its own; AoriSession only calls it while holding its send lock.
    """

    def __init__(self) -> None:
        self._last_id = 0

    @property
    def last_id(self) -> int:
        return self._last_id

    def next_id(self) -> int:
        self._last_id += 1
        return self._last_id


def build_envelope(request_id: int, method: str, params: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "id": request_id,
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "params": params,
    }


def normalize_auth_token(token: str) -> str:
    """
    Strip one pair of surrounding double quotes from an auth token.

    Raises:
        ValueError: If the token is empty
    """
    if not isinstance(token, str):
        raise ValueError(f"Auth token must be a string, got {type(token).__name__}")
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] == '"':
        token = token[1:-1]
    if not token:
        raise ValueError("Auth token must not be empty")
    return token


def _sanitize_params(params: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Redact signatures and tokens from params for logging."""
    result = []
    for param in params:
        safe = dict(param)
        for key in ("signature", "auth"):
            if key in safe:
                safe[key] = f"[REDACTED - {len(str(safe[key]))} chars]"
        if isinstance(safe.get("order"), dict) and "signature" in safe["order"]:
            order = dict(safe["order"])
            order["signature"] = f"[REDACTED - {len(str(order['signature']))} chars]"
            safe["order"] = order
        result.append(safe)
    return result


class AoriSession:
    """
    A single session with the Aori orderbook.

    The session owns two channels: the request channel carries every call
    except orderbook subscription, which goes on the market feed channel.
    Each call allocates the next request id and writes its envelope under
    one lock, so ids on the wire are strictly increasing in send order even
    with several calling threads.

    Sending never waits for a response; every send method returns the
    request id so the caller can correlate the response
    (see :mod:`aori_sdk.responses`).
    """

    def __init__(
        self,
        request_channel: Channel,
        feed_channel: Channel,
        signer: Signer,
        chain_id: int,
        wallet_address: Optional[str] = None,
        domain: Optional[DomainDescriptor] = None,
    ):
        """
        Initialize the session over already connected channels.

        Args:
            request_channel: Channel for requests
            feed_channel: Channel for market feed subscriptions
            signer: Signer holding the wallet key
            chain_id: Chain id resolved from the node
            wallet_address: Address to authenticate as (defaults to the signer's)
            domain: Signing domain (defaults to Seaport on ``chain_id``)

        Raises:
            ConfigurationError: If ``domain`` is for a different chain
            SigningError: If the wallet-ownership signature cannot be produced
        """
        self.chain_id = int(chain_id)
        self.domain = domain or resolve_domain(self.chain_id)
        ensure_domain_matches(self.domain, self.chain_id)

        self.signer = signer
        self.wallet_address = wallet_address or signer.address
        self.wallet_signature: Signature = signer.sign_plaintext(self.wallet_address)
        self.auth_token: Optional[str] = None

        self._request_channel = request_channel
        self._feed_channel = feed_channel
        self._sequencer = RequestSequencer()
        self._lock = threading.Lock()
        self._phase = SessionPhase.CONNECTED
        self._broken = False

        logger.debug(f"Session ready for {self.wallet_address} on chain {self.chain_id}")

    @classmethod
    def connect(
        cls,
        settings: AoriSettings,
        signer: Optional[Signer] = None,
        connector: Callable[[str], Channel] = connect_channel,
        chain_resolver: Callable[[str], int] = resolve_chain_id,
    ) -> "AoriSession":
        """
        Validate settings, resolve the chain, and open both channels.

        Args:
            settings: Credentials and endpoints
            signer: Signer to use instead of a LocalSigner over ``settings.private_key``
            connector: Opens a channel for a URL
            chain_resolver: Resolves the chain id for a node URL

        Returns:
            Connected AoriSession

        Raises:
            ConfigurationError: If settings are missing or malformed
            AoriConnectionError: If the node or either channel is unreachable
            SigningError: If the wallet-ownership proof cannot be signed
        """
        settings.validate()

        chain_id = chain_resolver(settings.node_url)
        signer = signer or LocalSigner(settings.private_key)

        request_channel = connector(settings.request_url)
        try:
            feed_channel = connector(settings.feed_url)
        except Exception:
            request_channel.close()
            raise

        try:
            session = cls(
                request_channel,
                feed_channel,
                signer,
                chain_id,
                wallet_address=settings.wallet_address,
            )
        except Exception:
            request_channel.close()
            feed_channel.close()
            raise

        logger.info(f"Connected to Aori as {session.wallet_address} on chain {chain_id}")
        return session

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AoriSession":
        """Connect using settings from environment variables."""
        return cls.connect(AoriSettings.from_env(), **kwargs)

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def last_id(self) -> int:
        return self._sequencer.last_id

    @property
    def request_channel(self) -> Channel:
        return self._request_channel

    @property
    def feed_channel(self) -> Channel:
        return self._feed_channel

    def _send(
        self,
        method: str,
        params: List[Dict[str, Any]],
        channel: Channel,
        on_sent: Optional[Callable[[], None]] = None,
    ) -> int:
        """
        Allocate the next id and write the envelope, atomically.

        Args:
            on_sent: Called under the lock after a successful write, so state
                changes tied to the send cannot interleave with ``close``

        Returns:
            The request id carried by the envelope

        Raises:
            SessionStateError: If the session is closed or a previous send failed
            SendError: If the channel write fails
        """
        with self._lock:
            if self._phase == SessionPhase.DISCONNECTED:
                raise SessionStateError("Session is closed")
            if self._broken:
                raise SessionStateError("Session is unusable after a failed send")

            request_id = self._sequencer.next_id()
            text = json.dumps(build_envelope(request_id, method, params))
            try:
                channel.send_text(text)
            except Exception as e:
                self._broken = True
                logger.error(f"Failed to send {method} (id {request_id}): {e}")
                raise SendError(
                    f"Failed to send {method} (id {request_id}): {e}",
                    method=method,
                    request_id=request_id,
                ) from e
            if on_sent is not None:
                on_sent()

        logger.debug(f"Sent {method} id={request_id} params={_sanitize_params(params)}")
        return request_id

    def ping(self) -> int:
        return self._send(METHOD_PING, [], self._request_channel)

    def auth_wallet(self) -> int:
        """
        Send the wallet-ownership proof.

        The response's ``result.auth`` holds the token to pass to
        :meth:`check_auth`.
        """
        def mark_authenticating():
            if self._phase == SessionPhase.CONNECTED:
                self._phase = SessionPhase.AUTHENTICATING

        return self._send(
            METHOD_AUTH_WALLET,
            [{"address": self.wallet_address, "signature": self.wallet_signature.to_hex()}],
            self._request_channel,
            on_sent=mark_authenticating,
        )

    def check_auth(self, token: str) -> int:
        """
        Send an auth token for validation and remember it for privileged calls.

        Args:
            token: Token from the ``auth_wallet`` response; surrounding quotes are stripped
        """
        token = normalize_auth_token(token)

        def mark_authenticated():
            self.auth_token = token
            self._phase = SessionPhase.AUTHENTICATED

        return self._send(METHOD_CHECK_AUTH, [{"auth": token}], self._request_channel, on_sent=mark_authenticated)

    def view_orderbook(self, base: str, quote: str) -> int:
        """Request the orderbook for a base/quote token pair."""
        params = [{"chainId": self.chain_id, "query": {"base": base, "quote": quote}}]
        return self._send(METHOD_VIEW_ORDERBOOK, params, self._request_channel)

    def subscribe_orderbook(self) -> int:
        """Subscribe to orderbook events on the market feed channel."""
        return self._send(METHOD_SUBSCRIBE_ORDERBOOK, [], self._feed_channel)

    def authenticated(self) -> "AuthenticatedSession":
        """
        Get the privileged view of this session.

        Raises:
            SessionStateError: If no auth token has been checked yet
        """
        if self._phase != SessionPhase.AUTHENTICATED or not self.auth_token:
            raise SessionStateError(
                f"Session is {self._phase.value}; call check_auth with a token first"
            )
        return AuthenticatedSession(self)

    def close(self) -> None:
        """Close both channels. Errors from either channel are raised after both are attempted."""
        with self._lock:
            if self._phase == SessionPhase.DISCONNECTED:
                return
            self._phase = SessionPhase.DISCONNECTED

        errors = []
        for channel in (self._request_channel, self._feed_channel):
            try:
                channel.close()
            except Exception as e:
                errors.append(e)
        logger.info(f"Closed Aori session for {self.wallet_address}")
        if errors:
            raise AoriConnectionError(f"Failed to close channel cleanly: {errors[0]}") from errors[0]

    def __enter__(self) -> "AoriSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AuthenticatedSession:
    """
    Privileged operations of an AoriSession.

    Only obtainable from :meth:`AoriSession.authenticated`, so order
    placement cannot be reached before an auth token has been checked.
    Shares the owning session's id sequence and channels.
    """

    def __init__(self, session: AoriSession):
        self._session = session

    @property
    def session(self) -> AoriSession:
        return self._session

    @property
    def auth_token(self) -> str:
        return self._session.auth_token

    def make_order(self, order: OrderComponents, is_public: bool = True) -> int:
        """
        Sign an order and submit it to the orderbook.

        The order's EIP-712 digest under the session's domain is signed in
        digest mode.

        Returns:
            The request id of the ``aori_makeOrder`` envelope

        Raises:
            SigningError: If the order cannot be signed
            SendError: If the envelope cannot be written
        """
        session = self._session
        signature = session.signer.sign_digest(digest(order, session.domain))
        params = [{
            "order": {
                "signature": signature.to_hex(),
                "parameters": order.to_wire(),
            },
            "isPublic": is_public,
            "chainId": session.chain_id,
        }]
        return session._send(METHOD_MAKE_ORDER, params, session.request_channel)
