"""
Pytest fixtures for the Aori SDK tests.
"""
import pytest
from eth_account import Account
from web3.providers.rpc import HTTPProvider

from aori_sdk._rate_limited_log import reset_rate_limits
from aori_sdk.signer import LocalSigner
from aori_sdk.transport import MemoryChannel
from tests.test_helpers import (
    TEST_CHAIN_ID,
    TEST_PRIV_KEY,
    create_test_session,
    make_test_order,
)


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch):
    """
    Stub every Web3 HTTP call so no DNS / network traffic is triggered.
    """
    def _dummy(self, method, params=None, _=None):
        if method == "eth_chainId":
            return {"jsonrpc": "2.0", "id": 1, "result": hex(TEST_CHAIN_ID)}
        return {"jsonrpc": "2.0", "id": 1, "result": "0x0"}

    monkeypatch.setattr(HTTPProvider, "make_request", _dummy, raising=True)


@pytest.fixture(autouse=True)
def _fresh_rate_limits():
    """Rate-limited log state must not leak between tests."""
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def test_account():
    """Create a deterministic test account"""
    return Account.from_key(TEST_PRIV_KEY)


@pytest.fixture
def signer():
    return LocalSigner(TEST_PRIV_KEY)


@pytest.fixture
def request_channel():
    return MemoryChannel("memory://request", receive_timeout=1)


@pytest.fixture
def feed_channel():
    return MemoryChannel("memory://feed", receive_timeout=1)


@pytest.fixture
def session(request_channel, feed_channel, signer):
    """A connected session on chain 5 over in-memory channels"""
    return create_test_session(request_channel, feed_channel, signer=signer)


@pytest.fixture
def order(test_account):
    """One ERC20 offer of 1000 for one ERC20 consideration of 1500 paid to the offerer"""
    return make_test_order(test_account.address)
