"""
Limit order protocol.

Fills are dual-authorized (maker and taker both sign the invocation) and
all-or-nothing: the maker-side and taker-side transfers either both land
together with the FILLED mark, or the ledger rolls back all of them.

Per-order state:
    ACTIVE (no entry) -> FILLED | CANCELLED
"""

import logging
from typing import Optional

from .. import auction
from ..chains.base import HostContext
from ..core import OrderState
from ..errors import (
    AlreadyInitialized,
    InvalidOrder,
    NotInitialized,
    OrderAlreadyFilled,
    OrderCancelled,
)
from .types import DutchAuctionPrice, Order

log = logging.getLogger(__name__)

KEY_ADMIN = "admin"
KEY_DUTCH_AUCTION = "dutch_auction"


def _state_key(order_hash: bytes):
    return ("order_state", order_hash)


class OrderProtocol:
    """
    Order book-less limit order protocol.

    Auction prices come from a DutchAuction contract when one was set at
    initialize(); otherwise from the in-process pricing functions. Both
    give identical results.
    """

    def initialize(self, ctx: HostContext, admin: str,
                   dutch_auction_contract: Optional[str] = None) -> None:
        if ctx.has(KEY_ADMIN):
            raise AlreadyInitialized()
        ctx.set(KEY_ADMIN, admin)
        if dutch_auction_contract:
            ctx.set(KEY_DUTCH_AUCTION, dutch_auction_contract)
        log.info(f"Order protocol {ctx.contract} initialized "
                 f"(admin={admin}, auction={dutch_auction_contract or 'builtin'})")

    def fill_order(self, ctx: HostContext, order: Order, taker: str) -> None:
        """
        Fill an order at its current price.

        Raises:
            NotAuthorized: maker or taker did not sign
            OrderAlreadyFilled / OrderCancelled: order is terminal
            InvalidOrder: computed amounts not positive
            InvalidTimeRange / InvalidAmountRange / ArithmeticOverflow: bad auction
            InsufficientBalance / TransferFailed: a transfer was rejected
        """
        ctx.require_auth(taker)

        order_hash = order.order_hash
        self._require_active(ctx, order_hash)

        ctx.require_auth(order.maker)

        making_amount = order.making_amount
        taking_amount = self._current_price(ctx, order)
        if making_amount <= 0 or taking_amount <= 0:
            raise InvalidOrder(
                f"amounts must be positive: making={making_amount} taking={taking_amount}"
            )

        receiver = self._receiver(ctx, order, taker)

        ctx.transfer(order.maker_asset, order.maker, receiver, making_amount)
        ctx.transfer(order.taker_asset, taker, order.maker, taking_amount)

        ctx.set(_state_key(order_hash), OrderState.FILLED)
        ctx.emit("order_filled", (order_hash, making_amount, taking_amount, receiver))

        log.info(f"Order {order_hash.hex()[:16]}... filled by {taker}: "
                 f"{making_amount} {order.maker_asset} -> {receiver}, "
                 f"{taking_amount} {order.taker_asset} -> {order.maker}")

    def cancel_order(self, ctx: HostContext, order: Order) -> None:
        ctx.require_auth(order.maker)

        order_hash = order.order_hash
        self._require_active(ctx, order_hash)

        ctx.set(_state_key(order_hash), OrderState.CANCELLED)
        ctx.emit("order_cancelled", order_hash)

        log.info(f"Order {order_hash.hex()[:16]}... cancelled by {order.maker}")

    def get_order_state(self, ctx: HostContext, order: Order) -> OrderState:
        return ctx.get(_state_key(order.order_hash), OrderState.ACTIVE)

    def get_current_price(self, ctx: HostContext, order: Order) -> int:
        """Taking amount a fill would charge right now."""
        return self._current_price(ctx, order)

    def get_admin(self, ctx: HostContext) -> str:
        admin = ctx.get(KEY_ADMIN)
        if admin is None:
            raise NotInitialized()
        return admin

    def get_dutch_auction_contract(self, ctx: HostContext) -> str:
        address = ctx.get(KEY_DUTCH_AUCTION)
        if address is None:
            raise NotInitialized()
        return address

    def _require_active(self, ctx: HostContext, order_hash: bytes) -> None:
        state = ctx.get(_state_key(order_hash), OrderState.ACTIVE)
        if state == OrderState.FILLED:
            raise OrderAlreadyFilled(f"order {order_hash.hex()[:16]}... already filled")
        if state == OrderState.CANCELLED:
            raise OrderCancelled(f"order {order_hash.hex()[:16]}... cancelled")

    def _current_price(self, ctx: HostContext, order: Order) -> int:
        pricing = order.pricing
        if not isinstance(pricing, DutchAuctionPrice):
            return pricing.taking_amount

        auction_contract = ctx.get(KEY_DUTCH_AUCTION)
        if auction_contract:
            return ctx.invoke(
                auction_contract, "calculate_taking_amount",
                order.making_amount, pricing.amount_start, pricing.amount_end,
                pricing.start_time, pricing.end_time,
            )
        return auction.calculate_taking_amount(
            order.making_amount, pricing.amount_start, pricing.amount_end,
            pricing.start_time, pricing.end_time, ctx.now(),
        )

    def _receiver(self, ctx: HostContext, order: Order, taker: str) -> str:
        if not order.receiver or order.receiver == ctx.contract:
            return taker
        return order.receiver
