"""
Constants for the Aori orderbook and the Seaport deployment it settles on.
"""

# Aori websocket endpoints
REQUEST_URL = "wss://api.beta.order.aori.io"
MARKET_FEED_URL = "wss://beta.feed.aori.io"

# Seaport EIP-712 domain
SEAPORT_NAME = "Seaport"
SEAPORT_VERSION = "1.5"
SEAPORT_ADDRESS = "0x00000000000000ADc04C56Bf30aC9d3c0aAF14dC"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = "0x" + "00" * 32

UINT256_MAX = 2**256 - 1
UINT128_MAX = 2**128 - 1

JSONRPC_VERSION = "2.0"

# JSON-RPC method names
METHOD_PING = "aori_ping"
METHOD_AUTH_WALLET = "aori_authWallet"
METHOD_CHECK_AUTH = "aori_checkAuth"
METHOD_VIEW_ORDERBOOK = "aori_viewOrderbook"
METHOD_MAKE_ORDER = "aori_makeOrder"
METHOD_SUBSCRIBE_ORDERBOOK = "aori_subscribeOrderbook"
