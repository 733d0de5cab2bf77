#!/usr/bin/env python3
"""
Example: Dutch-auction fill, then a hashlocked payout

Runs against a live xswap server (python -m xswap.server):

1. Mint test balances (maker: XLM, taker: USDC)
2. Maker signs a Dutch-auction order: 1000 XLM for 5000 -> 2000 USDC
3. Half way through the auction the taker fills at the decayed price
4. Maker locks part of the USDC proceeds in an escrow for a third party
5. Third party withdraws by revealing the secret

Usage:
    XSWAP_URL=http://localhost:8080 python dutch_auction_swap.py
    XSWAP_LOG_LEVEL=DEBUG python dutch_auction_swap.py
"""

import logging
import os

from xswap import IS_DUTCH_AUCTION, Order, generate_secret
from xswap.client import XSwapClient
from xswap.config import ServerConfig

logging.basicConfig(
    level=ServerConfig.from_env().level,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
log = logging.getLogger(__name__)

MAKER = "alice"
TAKER = "bob"
PAYEE = "carol"


def main():
    api = XSwapClient(os.environ.get("XSWAP_URL", "http://localhost:8080"))

    # =================================================================
    # 1. Status and test balances
    # =================================================================
    status = api.status()
    now = status["timestamp"]
    log.info(f"Connected to xswap {status['version']}, ledger time {now}")
    log.info(f"  Order protocol: {status['contracts']['order_protocol']}")
    log.info(f"  Escrow factory: {status['contracts']['escrow_factory']}")

    api.mint("XLM", MAKER, 1_000)
    api.mint("USDC", TAKER, 10_000)

    # =================================================================
    # 2. Maker's auction order
    # =================================================================
    order = Order(
        salt=now,
        maker=MAKER,
        receiver="",
        maker_asset="XLM",
        taker_asset="USDC",
        making_amount=1_000,
        taking_amount=5_000,
        maker_traits=IS_DUTCH_AUCTION,
        auction_start_time=now,
        auction_end_time=now + 100,
        taking_amount_start=5_000,
        taking_amount_end=2_000,
    )
    log.info(f"Order {api.order_hash(order)[:16]}... price now: {api.order_price(order)} USDC")

    # =================================================================
    # 3. Fill half way through
    # =================================================================
    api.set_time(advance=50)
    log.info(f"Price at t+50: {api.order_price(order)} USDC")

    fill = api.fill_order(order, taker=TAKER, signers=[MAKER, TAKER])
    log.info(f"Filled: {fill['making_amount']} XLM -> {fill['receiver']}, "
             f"{fill['taking_amount']} USDC -> {MAKER}")

    # =================================================================
    # 4. Maker escrows part of the proceeds
    # =================================================================
    secret, hashlock = generate_secret()
    escrow = api.create_escrow(hashlock, maker=MAKER, taker=PAYEE, token="USDC", amount=500)
    address = escrow["address"]
    api.transfer("USDC", MAKER, address, 500)
    log.info(f"Escrow {address} funded, cancellable after "
             f"{escrow['immutables']['cancellation_timestamp']}")

    # =================================================================
    # 5. Payee withdraws with the secret
    # =================================================================
    result = api.withdraw(address, secret, signers=[PAYEE])
    log.info(f"Escrow state: {result['state']}")

    for asset, holder in (("XLM", TAKER), ("USDC", MAKER), ("USDC", TAKER), ("USDC", PAYEE)):
        log.info(f"  {holder:6s} {asset:5s} {api.balance(asset, holder)}")

    api.close()


if __name__ == "__main__":
    main()
