"""
Tests for AoriSession and AuthenticatedSession.
"""
import threading
from unittest.mock import MagicMock, patch

import pytest

from aori_sdk.digest import digest
from aori_sdk.domain import DomainDescriptor, resolve_domain
from aori_sdk.exceptions import (
    AoriConnectionError,
    ConfigurationError,
    SendError,
    SessionStateError,
    SigningError,
)
from aori_sdk.session import AoriSession, SessionPhase, build_envelope, normalize_auth_token
from aori_sdk.signer import Signature, recover_digest_signer, recover_plaintext_signer
from aori_sdk.transport import MemoryChannel
from tests.test_helpers import (
    TEST_CHAIN_ID,
    TEST_FEED_URL,
    TEST_NODE_URL,
    TEST_PRIV_KEY,
    TEST_REQUEST_URL,
    TOKEN_A,
    TOKEN_B,
    create_test_session,
    make_test_settings,
)


class FailingChannel(MemoryChannel):
    """Channel whose writes always fail."""

    def send_text(self, text: str) -> None:
        raise SendError(f"Failed to send on {self.url}: broken pipe")


class TestEnvelope:
    def test_build_envelope(self):
        assert build_envelope(7, "aori_ping", []) == {
            "id": 7,
            "jsonrpc": "2.0",
            "method": "aori_ping",
            "params": [],
        }

    @pytest.mark.parametrize("raw, expected", [
        ("abc", "abc"),
        ('"abc"', "abc"),
        ('  "abc"  ', "abc"),
        ('""abc""', '"abc"'),
    ])
    def test_normalize_auth_token(self, raw, expected):
        assert normalize_auth_token(raw) == expected

    @pytest.mark.parametrize("raw", ["", '""', "   ", None])
    def test_normalize_auth_token_rejects_empty(self, raw):
        with pytest.raises(ValueError):
            normalize_auth_token(raw)


class TestHandshakeScenario:
    """ping, auth_wallet, check_auth and make_order on a fresh session"""

    def test_ping_is_first_request(self, session, request_channel):
        assert session.ping() == 1
        assert request_channel.sent_json() == [
            {"id": 1, "jsonrpc": "2.0", "method": "aori_ping", "params": []}
        ]

    def test_auth_wallet_carries_ownership_proof(self, session, request_channel, signer):
        session.ping()
        assert session.auth_wallet() == 2

        envelope = request_channel.sent_json()[1]
        assert envelope["method"] == "aori_authWallet"
        params = envelope["params"][0]
        assert params["address"] == signer.address
        assert params["signature"].startswith("0x")
        assert len(params["signature"]) == 132

        signature = Signature.from_hex(params["signature"])
        assert recover_plaintext_signer(signer.address, signature) == signer.address
        assert session.phase == SessionPhase.AUTHENTICATING

    def test_check_auth_strips_quotes(self, session, request_channel):
        session.ping()
        session.auth_wallet()
        assert session.check_auth('"tok123"') == 3

        envelope = request_channel.sent_json()[2]
        assert envelope == {
            "id": 3,
            "jsonrpc": "2.0",
            "method": "aori_checkAuth",
            "params": [{"auth": "tok123"}],
        }
        assert session.auth_token == "tok123"
        assert session.phase == SessionPhase.AUTHENTICATED

    def test_make_order_envelope(self, session, request_channel, order, signer):
        session.ping()
        session.auth_wallet()
        session.check_auth("tok123")

        request_id = session.authenticated().make_order(order)

        assert request_id == 4
        envelope = request_channel.sent_json()[3]
        assert envelope["id"] == 4
        assert envelope["method"] == "aori_makeOrder"

        params = envelope["params"][0]
        assert params["isPublic"] is True
        assert params["chainId"] == TEST_CHAIN_ID
        parameters = params["order"]["parameters"]
        assert parameters["offerer"] == signer.address
        assert parameters["offer"][0]["startAmount"] == "1000"
        assert parameters["consideration"][0]["startAmount"] == "1500"
        assert parameters == order.to_wire()

        signature = Signature.from_hex(params["order"]["signature"])
        order_digest = digest(order, resolve_domain(TEST_CHAIN_ID))
        assert recover_digest_signer(order_digest, signature) == signer.address

    def test_make_order_private(self, session, request_channel, order):
        session.check_auth("tok")
        session.authenticated().make_order(order, is_public=False)

        assert request_channel.sent_json()[-1]["params"][0]["isPublic"] is False


class TestRequests:
    def test_ids_increase_by_one(self, session, request_channel):
        ids = [session.ping(), session.ping(), session.view_orderbook(TOKEN_A, TOKEN_B), session.ping()]

        assert ids == [1, 2, 3, 4]
        assert [e["id"] for e in request_channel.sent_json()] == ids
        assert session.last_id == 4

    def test_view_orderbook_params(self, session, request_channel):
        session.view_orderbook(TOKEN_A, TOKEN_B)

        assert request_channel.sent_json()[0]["params"] == [
            {"chainId": TEST_CHAIN_ID, "query": {"base": TOKEN_A, "quote": TOKEN_B}}
        ]

    def test_subscription_goes_to_feed_channel(self, session, request_channel, feed_channel):
        session.ping()
        sub_id = session.subscribe_orderbook()
        session.ping()

        assert sub_id == 2
        assert [e["id"] for e in request_channel.sent_json()] == [1, 3]
        assert feed_channel.sent_json() == [
            {"id": 2, "jsonrpc": "2.0", "method": "aori_subscribeOrderbook", "params": []}
        ]

    def test_make_order_requires_authentication(self, session):
        with pytest.raises(SessionStateError, match="check_auth"):
            session.authenticated()

        session.auth_wallet()
        with pytest.raises(SessionStateError):
            session.authenticated()

    def test_empty_token_rejected_without_sending(self, session, request_channel):
        with pytest.raises(ValueError):
            session.check_auth('""')

        assert request_channel.sent == []
        assert session.last_id == 0
        assert session.phase == SessionPhase.CONNECTED

    def test_signing_failure_consumes_no_id(self, session, request_channel, order):
        session.check_auth("tok")
        authed = session.authenticated()
        session.signer = MagicMock(wraps=session.signer)
        session.signer.sign_digest.side_effect = SigningError("hardware wallet unplugged")

        with pytest.raises(SigningError):
            authed.make_order(order)

        assert session.last_id == 1
        assert session.ping() == 2

    def test_send_failure_makes_session_unusable(self, signer, feed_channel):
        session = create_test_session(FailingChannel("memory://broken"), feed_channel, signer=signer)

        with pytest.raises(SendError) as exc_info:
            session.ping()

        assert exc_info.value.method == "aori_ping"
        assert exc_info.value.request_id == 1
        with pytest.raises(SessionStateError, match="failed send"):
            session.subscribe_orderbook()
        assert feed_channel.sent == []

    def test_concurrent_sends_are_ordered(self, session, request_channel):
        barrier = threading.Barrier(8)
        returned = []
        returned_lock = threading.Lock()

        def worker():
            barrier.wait()
            for _ in range(25):
                request_id = session.ping()
                with returned_lock:
                    returned.append(request_id)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        wire_ids = [e["id"] for e in request_channel.sent_json()]
        assert wire_ids == list(range(1, 201))
        assert sorted(returned) == wire_ids

    def test_wallet_address_override(self, request_channel, feed_channel, signer, test_account):
        session = AoriSession(request_channel, feed_channel, signer, TEST_CHAIN_ID,
                              wallet_address=test_account.address)
        session.auth_wallet()

        assert request_channel.sent_json()[0]["params"][0]["address"] == test_account.address

    def test_domain_chain_mismatch(self, request_channel, feed_channel, signer):
        wrong = resolve_domain(1)

        with pytest.raises(ConfigurationError, match="Chain ID mismatch"):
            AoriSession(request_channel, feed_channel, signer, TEST_CHAIN_ID, domain=wrong)

    def test_custom_domain(self, request_channel, feed_channel, signer, order):
        custom = DomainDescriptor("Seaport", "1.6", TEST_CHAIN_ID, TOKEN_A)
        session = AoriSession(request_channel, feed_channel, signer, TEST_CHAIN_ID, domain=custom)
        session.check_auth("tok")
        session.authenticated().make_order(order)

        signature = Signature.from_hex(request_channel.sent_json()[-1]["params"][0]["order"]["signature"])
        assert recover_digest_signer(digest(order, custom), signature) == signer.address


class TestLifecycle:
    def test_close_closes_both_channels(self, session, request_channel, feed_channel):
        session.close()

        assert request_channel.closed and feed_channel.closed
        assert session.phase == SessionPhase.DISCONNECTED
        with pytest.raises(SessionStateError, match="closed"):
            session.ping()

    def test_close_is_idempotent(self, session, request_channel):
        session.close()
        session.close()

        assert request_channel.closed

    def test_close_error_is_raised_after_both_attempted(self, signer, feed_channel):
        bad = MagicMock()
        bad.close.side_effect = OSError("reset")
        session = create_test_session(bad, feed_channel, signer=signer)

        with pytest.raises(AoriConnectionError, match="reset"):
            session.close()
        assert feed_channel.closed

    @pytest.mark.parametrize("send", [
        lambda session: session.check_auth("tok"),
        lambda session: session.auth_wallet(),
    ])
    def test_close_right_after_send_is_not_undone(self, session, request_channel, send):
        """A close that lands between the send and its return keeps the session closed"""
        with patch('aori_sdk.session.logger.debug', side_effect=lambda *args, **kwargs: session.close()):
            send(session)

        assert request_channel.closed
        assert session.phase == SessionPhase.DISCONNECTED
        with pytest.raises(SessionStateError, match="check_auth"):
            session.authenticated()
        with pytest.raises(SessionStateError, match="Session is closed"):
            session.ping()

    def test_phase_changes_with_send_under_lock(self, session):
        phases = []

        def record(text):
            # The lock is still held while the channel write runs
            assert session._lock.locked()
            phases.append(session.phase)

        session.request_channel.send_text = record
        session.auth_wallet()
        session.check_auth("tok")

        assert phases == [SessionPhase.CONNECTED, SessionPhase.AUTHENTICATING]
        assert session.phase == SessionPhase.AUTHENTICATED

    def test_failed_check_auth_leaves_phase(self, signer, feed_channel):
        session = create_test_session(FailingChannel("memory://broken"), feed_channel, signer=signer)

        with pytest.raises(SendError):
            session.check_auth("tok")

        assert session.auth_token is None
        assert session.phase == SessionPhase.CONNECTED

    def test_context_manager(self, request_channel, feed_channel, signer):
        with create_test_session(request_channel, feed_channel, signer=signer) as session:
            session.ping()

        assert request_channel.closed and feed_channel.closed


class TestConnect:
    """AoriSession.connect with injected connector and chain resolver"""

    def _connector(self, opened, fail_on=None):
        def connector(url):
            if url == fail_on:
                raise AoriConnectionError(f"Failed to connect to {url}: refused")
            channel = MemoryChannel(url)
            opened.append(channel)
            return channel
        return connector

    def test_connect(self, signer):
        opened = []
        resolver = MagicMock(return_value=TEST_CHAIN_ID)

        session = AoriSession.connect(make_test_settings(), connector=self._connector(opened), chain_resolver=resolver)

        resolver.assert_called_once_with(TEST_NODE_URL)
        assert [c.url for c in opened] == [TEST_REQUEST_URL, TEST_FEED_URL]
        assert session.chain_id == TEST_CHAIN_ID
        assert session.wallet_address == signer.address
        assert session.request_channel is opened[0]
        assert session.feed_channel is opened[1]

    def test_connect_uses_default_resolver(self):
        """The autouse HTTP provider stub reports chain 5"""
        session = AoriSession.connect(make_test_settings(), connector=self._connector([]))
        assert session.chain_id == TEST_CHAIN_ID

    def test_invalid_settings_open_nothing(self):
        opened = []
        resolver = MagicMock()

        with pytest.raises(ConfigurationError):
            AoriSession.connect(make_test_settings(wallet_address="0x1234"),
                                connector=self._connector(opened), chain_resolver=resolver)

        resolver.assert_not_called()
        assert opened == []

    def test_resolver_failure_opens_nothing(self):
        opened = []
        resolver = MagicMock(side_effect=AoriConnectionError("Failed to resolve chain ID: timeout"))

        with pytest.raises(AoriConnectionError, match="resolve chain ID"):
            AoriSession.connect(make_test_settings(), connector=self._connector(opened), chain_resolver=resolver)

        assert opened == []

    def test_feed_failure_closes_request_channel(self):
        opened = []
        connector = self._connector(opened, fail_on=TEST_FEED_URL)

        with pytest.raises(AoriConnectionError, match="Failed to connect"):
            AoriSession.connect(make_test_settings(), connector=connector,
                                chain_resolver=MagicMock(return_value=TEST_CHAIN_ID))

        assert len(opened) == 1
        assert opened[0].closed

    def test_signing_failure_closes_channels(self):
        opened = []
        signer = MagicMock()
        signer.address = "0x0000000000000000000000000000000000000001"
        signer.sign_plaintext.side_effect = SigningError("device locked")

        with pytest.raises(SigningError):
            AoriSession.connect(make_test_settings(), signer=signer, connector=self._connector(opened),
                                chain_resolver=MagicMock(return_value=TEST_CHAIN_ID))

        assert len(opened) == 2
        assert all(c.closed for c in opened)

    def test_from_env(self, monkeypatch, signer):
        monkeypatch.setenv("PRIVATE_KEY", TEST_PRIV_KEY)
        monkeypatch.setenv("WALLET_ADDRESS", signer.address)
        monkeypatch.setenv("NODE_URL", TEST_NODE_URL)
        monkeypatch.setenv("AORI_REQUEST_URL", TEST_REQUEST_URL)
        monkeypatch.setenv("AORI_MARKET_FEED_URL", TEST_FEED_URL)

        session = AoriSession.from_env(connector=self._connector([]),
                                       chain_resolver=MagicMock(return_value=TEST_CHAIN_ID))

        assert session.wallet_address == signer.address
        assert session.request_channel.url == TEST_REQUEST_URL

    def test_from_env_missing(self, monkeypatch):
        for name in ("PRIVATE_KEY", "WALLET_ADDRESS", "NODE_URL"):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ConfigurationError, match="Missing required environment variables"):
            AoriSession.from_env()
