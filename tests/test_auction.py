#!/usr/bin/env python3
"""
Dutch Auction Pricing Tests

Covers the pure pricing functions and the ledger-deployed DutchAuction:
1. Window boundaries return the bounds exactly
2. Linear decay / growth inside the window, truncating toward the start
3. Monotonicity over the whole window
4. Range and overflow errors

Usage:
    python -m pytest tests/test_auction.py
"""

import os
import sys
import unittest
from unittest.mock import MagicMock

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from xswap.auction import DutchAuction, calculate_making_amount, calculate_taking_amount, interpolate
from xswap.chains import InMemoryLedger
from xswap.config import LedgerConfig
from xswap.core import I128_MAX, I128_MIN, U64_MAX
from xswap.errors import ArithmeticOverflow, InvalidAmountRange, InvalidTimeRange


class TestTakingAmount(unittest.TestCase):
    """Decaying price: taking_amount_start > taking_amount_end."""

    def test_halfway_price(self):
        """1000 making, 5000 -> 2000 over [0, 100], queried at t=50."""
        self.assertEqual(calculate_taking_amount(1000, 5000, 2000, 0, 100, 50), 3500)

    def test_halfway_price_offset_window(self):
        self.assertEqual(calculate_taking_amount(100, 1000, 500, 1000, 2000, 1500), 750)

    def test_progression(self):
        expected = {1000: 2000, 1250: 1750, 1500: 1500, 1750: 1250, 2000: 1000, 2500: 1000}
        for now, price in expected.items():
            with self.subTest(now=now):
                self.assertEqual(calculate_taking_amount(1000, 2000, 1000, 1000, 2000, now), price)

    def test_before_start_returns_start(self):
        self.assertEqual(calculate_taking_amount(100, 1000, 500, 1000, 2000, 0), 1000)
        self.assertEqual(calculate_taking_amount(100, 1000, 500, 1000, 2000, 1000), 1000)

    def test_after_end_returns_end(self):
        self.assertEqual(calculate_taking_amount(100, 1000, 500, 1000, 2000, 2000), 500)
        self.assertEqual(calculate_taking_amount(100, 1000, 500, 1000, 2000, U64_MAX), 500)

    def test_rounds_toward_start(self):
        # 10 - (10 * 1 / 3) = 6.67 -> 7
        self.assertEqual(calculate_taking_amount(1, 10, 0, 0, 3, 1), 7)
        self.assertEqual(calculate_taking_amount(1, 10, 0, 0, 3, 2), 4)

    def test_monotonic_non_increasing(self):
        prices = [calculate_taking_amount(1, 997, 13, 100, 171, t) for t in range(90, 185)]
        for earlier, later in zip(prices, prices[1:]):
            self.assertGreaterEqual(earlier, later)
        self.assertEqual(prices[0], 997)
        self.assertEqual(prices[-1], 13)

    def test_making_amount_does_not_scale_price(self):
        self.assertEqual(
            calculate_taking_amount(1, 5000, 2000, 0, 100, 50),
            calculate_taking_amount(10 ** 9, 5000, 2000, 0, 100, 50),
        )

    def test_negative_bounds(self):
        self.assertEqual(calculate_taking_amount(1, -100, -300, 0, 100, 50), -200)

    def test_end_not_after_start(self):
        with self.assertRaises(InvalidTimeRange):
            calculate_taking_amount(100, 1000, 500, 2000, 2000, 1500)
        with self.assertRaises(InvalidTimeRange):
            calculate_taking_amount(100, 1000, 500, 2000, 1000, 1500)

    def test_time_range_checked_before_amount_range(self):
        with self.assertRaises(InvalidTimeRange):
            calculate_taking_amount(100, 500, 1000, 2000, 1000, 1500)

    def test_increasing_bounds_rejected(self):
        with self.assertRaises(InvalidAmountRange):
            calculate_taking_amount(100, 500, 1000, 1000, 2000, 1500)
        with self.assertRaises(InvalidAmountRange):
            calculate_taking_amount(100, 500, 500, 1000, 2000, 1500)


class TestMakingAmount(unittest.TestCase):
    """Increasing amount: making_amount_start < making_amount_end."""

    def test_halfway(self):
        self.assertEqual(calculate_making_amount(750, 100, 200, 1000, 2000, 1500), 150)

    def test_boundaries(self):
        self.assertEqual(calculate_making_amount(750, 100, 200, 1000, 2000, 999), 100)
        self.assertEqual(calculate_making_amount(750, 100, 200, 1000, 2000, 2001), 200)

    def test_rounds_toward_start(self):
        self.assertEqual(calculate_making_amount(1, 0, 10, 0, 3, 1), 3)

    def test_monotonic_non_decreasing(self):
        amounts = [calculate_making_amount(1, 3, 1000, 0, 77, t) for t in range(0, 80)]
        for earlier, later in zip(amounts, amounts[1:]):
            self.assertLessEqual(earlier, later)

    def test_decreasing_bounds_rejected(self):
        with self.assertRaises(InvalidAmountRange):
            calculate_making_amount(750, 200, 100, 1000, 2000, 1500)

    def test_invalid_time_range(self):
        with self.assertRaises(InvalidTimeRange):
            calculate_making_amount(750, 100, 200, 1000, 999, 1500)


class TestInterpolateOverflow(unittest.TestCase):

    def test_full_i128_span(self):
        span = I128_MAX - I128_MIN
        self.assertEqual(
            calculate_taking_amount(1, I128_MAX, I128_MIN, 0, 100, 50),
            I128_MAX - span * 50 // 100,
        )
        self.assertEqual(
            calculate_making_amount(1, I128_MIN, I128_MAX, 0, 100, 50),
            I128_MIN + span * 50 // 100,
        )
        self.assertEqual(calculate_taking_amount(1, I128_MAX, I128_MIN, 0, 100, 99),
                         I128_MAX - span * 99 // 100)

    def test_bounds_outside_i128_overflow(self):
        with self.assertRaises(ArithmeticOverflow):
            calculate_taking_amount(1, I128_MAX + 1, 0, 0, 100, 50)
        with self.assertRaises(ArithmeticOverflow):
            calculate_making_amount(1, I128_MIN - 1, 0, 0, 100, 50)

    def test_large_values_within_width(self):
        # delta * elapsed stays far below 2**255
        amount = interpolate(I128_MAX, 0, 0, U64_MAX, U64_MAX // 2)
        self.assertGreater(amount, 0)
        self.assertLess(amount, I128_MAX)

    def test_amount_outside_i128(self):
        with self.assertRaises(ArithmeticOverflow):
            interpolate(I128_MAX + 1, 0, 0, 100, 50)

    def test_time_outside_u64(self):
        with self.assertRaises(ArithmeticOverflow):
            interpolate(100, 0, 0, 100, U64_MAX + 1)
        with self.assertRaises(ArithmeticOverflow):
            interpolate(100, 0, -1, 100, 50)

    def test_boundaries_skip_arithmetic(self):
        self.assertEqual(interpolate(7, 3, 10, 20, 5), 7)
        self.assertEqual(interpolate(7, 3, 10, 20, 25), 3)


class TestDutchAuctionContract(unittest.TestCase):
    """The deployable wrapper reads time from the host context."""

    def test_uses_context_time(self):
        ctx = MagicMock()
        ctx.now.return_value = 50
        auction = DutchAuction()
        self.assertEqual(auction.calculate_taking_amount(ctx, 1000, 5000, 2000, 0, 100), 3500)
        self.assertEqual(auction.calculate_making_amount(ctx, 1000, 2000, 5000, 0, 100), 3500)
        ctx.set.assert_not_called()
        ctx.transfer.assert_not_called()

    def test_deployed_on_ledger(self):
        ledger = InMemoryLedger(LedgerConfig(start_timestamp=1500))
        address = ledger.register(DutchAuction())
        self.assertEqual(ledger.view(address, "calculate_taking_amount", 100, 1000, 500, 1000, 2000), 750)
        self.assertEqual(ledger.storage(address), {})


if __name__ == "__main__":
    unittest.main(verbosity=2)
