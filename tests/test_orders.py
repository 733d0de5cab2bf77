#!/usr/bin/env python3
"""
Limit Order Protocol Tests

1. Fixed-price and Dutch-auction fills move both legs
2. Fills are all-or-nothing (rollback on a failed transfer)
3. Terminal states: filled / cancelled orders cannot be re-entered
4. Order hash covers salt, amounts and traits only

Usage:
    python -m pytest tests/test_orders.py
"""

import hashlib
import os
import sys
import threading
import unittest
from dataclasses import FrozenInstanceError, replace
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from xswap.chains import InMemoryLedger
from xswap.config import LedgerConfig
from xswap.core import IS_DUTCH_AUCTION, OrderState
from xswap.errors import (
    InsufficientBalance,
    InvalidAmountRange,
    InvalidOrder,
    NotAuthorized,
    OrderAlreadyFilled,
    OrderCancelled,
)
from xswap.orders import DutchAuctionPrice, FixedPrice, Order, OrderProtocol

MAKER = "maker"
TAKER = "taker"
ADMIN = "admin"


def fixed_order(**overrides) -> Order:
    fields = dict(
        salt=1, maker=MAKER, receiver="", maker_asset="AAA", taker_asset="BBB",
        making_amount=1000, taking_amount=2000,
    )
    fields.update(overrides)
    return Order(**fields)


def auction_order(**overrides) -> Order:
    fields = dict(
        salt=2, maker=MAKER, receiver="", maker_asset="AAA", taker_asset="BBB",
        making_amount=1000, taking_amount=0, maker_traits=IS_DUTCH_AUCTION,
        auction_start_time=1000, auction_end_time=2000,
        taking_amount_start=3000, taking_amount_end=1500,
    )
    fields.update(overrides)
    return Order(**fields)


class OrderTestCase(unittest.TestCase):

    def setUp(self):
        self.ledger = InMemoryLedger(LedgerConfig(start_timestamp=1000))
        self.protocol = self.ledger.register(OrderProtocol())
        self.ledger.call(self.protocol, "initialize", ADMIN)
        self.ledger.mint("AAA", MAKER, 1000)
        self.ledger.mint("BBB", TAKER, 3000)

    def fill(self, order, signers=(MAKER, TAKER)):
        return self.ledger.call(self.protocol, "fill_order", order, TAKER, signers=signers)

    def order_state(self, order) -> OrderState:
        return self.ledger.view(self.protocol, "get_order_state", order)


class TestFill(OrderTestCase):

    def test_fixed_price_fill(self):
        order = fixed_order()
        self.fill(order)

        self.assertEqual(self.ledger.balance("AAA", TAKER), 1000)
        self.assertEqual(self.ledger.balance("AAA", MAKER), 0)
        self.assertEqual(self.ledger.balance("BBB", MAKER), 2000)
        self.assertEqual(self.ledger.balance("BBB", TAKER), 1000)
        self.assertEqual(self.order_state(order), OrderState.FILLED)

        (event,) = self.ledger.events("order_filled")
        self.assertEqual(event.data, (order.order_hash, 1000, 2000, TAKER))

    def test_auction_fill_midway(self):
        self.ledger.set_timestamp(1500)
        order = auction_order()
        self.assertEqual(self.ledger.view(self.protocol, "get_current_price", order), 2250)

        self.fill(order)
        self.assertEqual(self.ledger.balance("BBB", TAKER), 750)
        self.assertEqual(self.ledger.balance("BBB", MAKER), 2250)
        self.assertEqual(self.ledger.balance("AAA", TAKER), 1000)

    def test_auction_price_progression(self):
        order = auction_order(taking_amount_start=2000, taking_amount_end=1000)
        for now, price in ((1000, 2000), (1250, 1750), (1500, 1500), (1750, 1250),
                           (2000, 1000), (2500, 1000)):
            self.ledger.set_timestamp(now)
            self.assertEqual(self.ledger.view(self.protocol, "get_current_price", order), price)

    def test_fixed_price_ignores_auction_fields(self):
        order = fixed_order(auction_start_time=5, auction_end_time=1, taking_amount_start=-7)
        self.assertIsInstance(order.pricing, FixedPrice)
        self.assertEqual(self.ledger.view(self.protocol, "get_current_price", order), 2000)

    def test_receiver_gets_maker_asset(self):
        self.fill(fixed_order(receiver="carol"))
        self.assertEqual(self.ledger.balance("AAA", "carol"), 1000)
        self.assertEqual(self.ledger.balance("AAA", TAKER), 0)
        (event,) = self.ledger.events("order_filled")
        self.assertEqual(event.data[3], "carol")

    def test_protocol_address_receiver_pays_taker(self):
        self.fill(fixed_order(receiver=self.protocol))
        self.assertEqual(self.ledger.balance("AAA", TAKER), 1000)
        self.assertEqual(self.ledger.balance("AAA", self.protocol), 0)
        (event,) = self.ledger.events("order_filled")
        self.assertEqual(event.data[3], TAKER)


class TestFillAtomicity(OrderTestCase):

    def test_taker_short_rolls_back_maker_leg(self):
        order = fixed_order(taking_amount=5000)
        with self.assertRaises(InsufficientBalance):
            self.fill(order)

        self.assertEqual(self.ledger.balance("AAA", MAKER), 1000)
        self.assertEqual(self.ledger.balance("AAA", TAKER), 0)
        self.assertEqual(self.ledger.balance("BBB", TAKER), 3000)
        self.assertEqual(self.order_state(order), OrderState.ACTIVE)
        self.assertEqual(self.ledger.events("order_filled"), [])

    def test_invalid_auction_leaves_order_active(self):
        self.ledger.set_timestamp(1500)
        order = auction_order(taking_amount_start=1000, taking_amount_end=3000)
        with self.assertRaises(InvalidAmountRange):
            self.fill(order)
        self.assertEqual(self.order_state(order), OrderState.ACTIVE)

    def test_non_positive_amounts(self):
        with self.assertRaises(InvalidOrder):
            self.fill(fixed_order(taking_amount=0))
        with self.assertRaises(InvalidOrder):
            self.fill(fixed_order(making_amount=-5))


class TestAuthorization(OrderTestCase):

    def test_maker_signature_required(self):
        with self.assertRaises(NotAuthorized):
            self.fill(fixed_order(), signers=[TAKER])
        self.assertEqual(self.ledger.balance("AAA", MAKER), 1000)

    def test_taker_signature_required(self):
        with self.assertRaises(NotAuthorized):
            self.fill(fixed_order(), signers=[MAKER])

    def test_taker_auth_checked_before_state(self):
        order = fixed_order()
        self.fill(order)
        with self.assertRaises(NotAuthorized):
            self.fill(order, signers=[MAKER])

    def test_state_checked_before_maker_auth(self):
        order = fixed_order()
        self.fill(order)
        with self.assertRaises(OrderAlreadyFilled):
            self.fill(order, signers=[TAKER])

    def test_cancel_requires_maker(self):
        with self.assertRaises(NotAuthorized):
            self.ledger.call(self.protocol, "cancel_order", fixed_order(), signers=[TAKER])


class TestTerminalStates(OrderTestCase):

    def test_double_fill(self):
        order = fixed_order(taking_amount=1000)
        self.fill(order)
        with self.assertRaises(OrderAlreadyFilled):
            self.fill(order)
        self.assertEqual(self.ledger.balance("BBB", MAKER), 1000)

    def test_cancel_then_fill(self):
        order = fixed_order()
        self.ledger.call(self.protocol, "cancel_order", order, signers=[MAKER])
        self.assertEqual(self.order_state(order), OrderState.CANCELLED)
        with self.assertRaises(OrderCancelled):
            self.fill(order)
        self.assertEqual(self.ledger.balance("AAA", MAKER), 1000)

    def test_cancel_twice(self):
        order = fixed_order()
        self.ledger.call(self.protocol, "cancel_order", order, signers=[MAKER])
        with self.assertRaises(OrderCancelled):
            self.ledger.call(self.protocol, "cancel_order", order, signers=[MAKER])

    def test_cancel_after_fill(self):
        order = fixed_order()
        self.fill(order)
        with self.assertRaises(OrderAlreadyFilled):
            self.ledger.call(self.protocol, "cancel_order", order, signers=[MAKER])


class TestConcurrentFills(OrderTestCase):

    def test_same_order_filled_once(self):
        self.ledger.mint("AAA", MAKER, 19 * 1000)
        self.ledger.mint("BBB", TAKER, 19 * 1000)

        for salt in range(100, 120):
            order = fixed_order(salt=salt, taking_amount=1000)
            barrier = threading.Barrier(2)
            outcomes = []

            def attempt():
                barrier.wait()
                try:
                    self.fill(order)
                    outcomes.append("filled")
                except OrderAlreadyFilled:
                    outcomes.append("rejected")

            threads = [threading.Thread(target=attempt) for _ in range(2)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            self.assertEqual(sorted(outcomes), ["filled", "rejected"])
            self.assertEqual(self.order_state(order), OrderState.FILLED)

        self.assertEqual(len(self.ledger.events("order_filled")), 20)
        self.assertEqual(self.ledger.balance("AAA", TAKER), 20 * 1000)
        self.assertEqual(self.ledger.balance("AAA", MAKER), 0)
        self.assertEqual(self.ledger.balance("BBB", MAKER), 20 * 1000)
        self.assertEqual(self.ledger.balance("BBB", TAKER), 3000 - 1000)


class TestOrderHash(unittest.TestCase):

    def test_hash_layout(self):
        order = fixed_order(salt=7, making_amount=1000, taking_amount=-2, maker_traits=4)
        expected = hashlib.sha256(
            (7).to_bytes(8, "big")
            + (1000).to_bytes(16, "big", signed=True)
            + (-2).to_bytes(16, "big", signed=True)
            + (4).to_bytes(8, "big")
        ).digest()
        self.assertEqual(order.order_hash, expected)

    def test_auction_fields_not_hashed(self):
        a = auction_order()
        b = auction_order(auction_end_time=9999, taking_amount_start=10 ** 6, receiver="x")
        self.assertEqual(a.order_hash, b.order_hash)
        self.assertNotEqual(a.order_hash, replace(a, salt=3).order_hash)

    def test_aliased_orders_share_state(self):
        ledger = InMemoryLedger(LedgerConfig(start_timestamp=1500))
        protocol = ledger.register(OrderProtocol())
        ledger.call(protocol, "initialize", ADMIN)
        ledger.mint("AAA", MAKER, 1000)
        ledger.mint("BBB", TAKER, 3000)

        first = auction_order()
        alias = auction_order(taking_amount_start=2500)
        ledger.call(protocol, "fill_order", first, TAKER, signers=[MAKER, TAKER])
        self.assertEqual(ledger.view(protocol, "get_order_state", alias), OrderState.FILLED)


class TestOrderParsing(unittest.TestCase):

    def test_auction_pricing_variant(self):
        pricing = auction_order().pricing
        self.assertEqual(pricing, DutchAuctionPrice(1000, 2000, 3000, 1500))

    def test_from_dict_string_amounts(self):
        order = Order.from_dict({
            "salt": 1, "maker": MAKER, "maker_asset": "AAA", "taker_asset": "BBB",
            "making_amount": "1000", "taking_amount": "2000",
        })
        self.assertEqual(order, fixed_order())
        self.assertEqual(Order.from_dict(order.to_dict()), order)

    def test_from_dict_missing_field(self):
        with self.assertRaises(InvalidOrder):
            Order.from_dict({"salt": 1, "maker": MAKER})

    def test_out_of_range_fields(self):
        with self.assertRaises(InvalidOrder):
            fixed_order(salt=-1)
        with self.assertRaises(InvalidOrder):
            fixed_order(making_amount=2 ** 127)
        with self.assertRaises(InvalidOrder):
            auction_order(auction_end_time=2 ** 64)

    def test_missing_parties(self):
        with self.assertRaises(InvalidOrder):
            fixed_order(maker="")

    def test_order_is_immutable(self):
        order = fixed_order()
        with self.assertRaises(FrozenInstanceError):
            order.maker_traits = IS_DUTCH_AUCTION
        self.assertIsInstance(order.pricing, FixedPrice)

    def test_replace_recomputes_pricing(self):
        order = replace(fixed_order(), maker_traits=IS_DUTCH_AUCTION,
                        auction_start_time=1000, auction_end_time=2000,
                        taking_amount_start=3000, taking_amount_end=1500)
        self.assertEqual(order.pricing, DutchAuctionPrice(1000, 2000, 3000, 1500))


class TestProtocolWithMockHost(unittest.TestCase):

    def test_external_auction_contract_is_invoked(self):
        ctx = MagicMock()
        ctx.contract = "CPROTOCOL"
        ctx.get.side_effect = lambda key, default=None: "CAUCTION" if key == "dutch_auction" else default
        ctx.invoke.return_value = 2250

        price = OrderProtocol().get_current_price(ctx, auction_order())

        self.assertEqual(price, 2250)
        ctx.invoke.assert_called_once_with(
            "CAUCTION", "calculate_taking_amount", 1000, 3000, 1500, 1000, 2000,
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)
