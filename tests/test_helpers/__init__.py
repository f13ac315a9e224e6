"""
Helpers shared across the test suite.
"""
from .session_creator import (
    TEST_CHAIN_ID,
    TEST_FEED_URL,
    TEST_NODE_URL,
    TEST_PRIV_KEY,
    TEST_REQUEST_URL,
    TOKEN_A,
    TOKEN_B,
    create_test_session,
    make_test_order,
    make_test_settings,
)

__all__ = [
    "TEST_CHAIN_ID",
    "TEST_FEED_URL",
    "TEST_NODE_URL",
    "TEST_PRIV_KEY",
    "TEST_REQUEST_URL",
    "TOKEN_A",
    "TOKEN_B",
    "create_test_session",
    "make_test_order",
    "make_test_settings",
]
