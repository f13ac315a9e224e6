#!/usr/bin/env python3
"""
Example: authenticate with Aori and place a Seaport order.

Requires PRIVATE_KEY, WALLET_ADDRESS and NODE_URL in the environment.
BASE_TOKEN and QUOTE_TOKEN select the pair to trade.
"""
import logging
import os
import time

from aori_sdk import (
    AoriError,
    AoriSession,
    ConsiderationItem,
    ItemType,
    OfferItem,
    OrderComponents,
    authenticate,
    random_salt,
    wait_for_response,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_order(offerer: str, base: str, quote: str) -> OrderComponents:
    """Offer 1 base token for 1500 quote tokens, valid for one day."""
    now = int(time.time())
    return OrderComponents(
        offerer=offerer,
        offer=[
            OfferItem(item_type=ItemType.ERC20, token=base, start_amount=10**18, end_amount=10**18),
        ],
        consideration=[
            ConsiderationItem(
                item_type=ItemType.ERC20,
                token=quote,
                start_amount=1500 * 10**6,
                end_amount=1500 * 10**6,
                recipient=offerer,
            ),
        ],
        start_time=now,
        end_time=now + 86400,
        salt=random_salt(),
    )


def main():
    base = os.environ.get("BASE_TOKEN", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
    quote = os.environ.get("QUOTE_TOKEN", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")

    print("\n=== Aori SDK Make Order Example ===\n")

    try:
        with AoriSession.from_env() as session:
            print(f"Connected as {session.wallet_address} on chain {session.chain_id}")

            ping_id = session.ping()
            print(f"Ping result: {wait_for_response(session.request_channel, ping_id)}")

            authed = authenticate(session)
            print("Authenticated")

            book_id = session.view_orderbook(base, quote)
            print(f"Orderbook: {wait_for_response(session.request_channel, book_id)}")

            order = build_order(session.wallet_address, base, quote)
            order_id = authed.make_order(order)
            print(f"Order accepted: {wait_for_response(session.request_channel, order_id)}")
    except AoriError as e:
        logger.error(f"Example failed: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
