"""
Dutch auction pricing for xswap.

Linear integer interpolation between two amounts over a time window,
clamped at the window edges. Pure: no storage, no I/O, same inputs give
the same output.

Two quoting directions:
- taking amount: price DECREASES over the window (start > end)
- making amount: amount INCREASES over the window (start < end)

Rounding happens once, in the final division, and always toward the start
amount (the maker's side of the quote).
"""

import logging

from .core import I128_MIN, I128_MAX, I256_MIN, I256_MAX, in_i128, in_u64
from .errors import ArithmeticOverflow, InvalidAmountRange, InvalidTimeRange

log = logging.getLogger(__name__)


def _checked(value: int, low: int, high: int) -> int:
    if not low <= value <= high:
        raise ArithmeticOverflow(f"intermediate {value} outside [{low}, {high}]")
    return value


def _validate_window(window_start: int, window_end: int, now: int) -> None:
    for name, ts in (("window_start", window_start), ("window_end", window_end), ("now", now)):
        if not in_u64(ts):
            raise ArithmeticOverflow(f"{name} out of u64 range: {ts}")
    if window_end <= window_start:
        raise InvalidTimeRange(f"window end {window_end} <= start {window_start}")


def interpolate(amount_at_start: int, amount_at_end: int,
                window_start: int, window_end: int, now: int) -> int:
    """
    Amount at `now` on the line from (window_start, amount_at_start) to
    (window_end, amount_at_end).

    Args:
        amount_at_start: Value returned at or before window_start
        amount_at_end: Value returned at or after window_end
        window_start: Unix timestamp
        window_end: Unix timestamp, must be > window_start
        now: Unix timestamp to evaluate at

    Returns:
        Interpolated amount (int)
    """
    _validate_window(window_start, window_end, now)
    for name, amount in (("amount_at_start", amount_at_start), ("amount_at_end", amount_at_end)):
        if not in_i128(amount):
            raise ArithmeticOverflow(f"{name} out of i128 range: {amount}")

    if now <= window_start:
        return amount_at_start
    if now >= window_end:
        return amount_at_end

    elapsed = now - window_start
    duration = window_end - window_start
    delta = _checked(abs(amount_at_start - amount_at_end), 0, I256_MAX)

    # multiply before divide; operands are non-negative so // truncates
    step = _checked(delta * elapsed, I256_MIN, I256_MAX) // duration

    if amount_at_start >= amount_at_end:
        result = amount_at_start - step
    else:
        result = amount_at_start + step
    return _checked(result, I128_MIN, I128_MAX)


def calculate_taking_amount(making_amount: int, taking_amount_start: int,
                            taking_amount_end: int, auction_start_time: int,
                            auction_end_time: int, now: int) -> int:
    """
    Current taking amount (price) of a decaying auction.

    `making_amount` is carried for quote symmetry and does not scale the
    price: the bounds are already totals for the whole making amount.
    """
    if auction_end_time <= auction_start_time:
        raise InvalidTimeRange(
            f"auction end {auction_end_time} <= start {auction_start_time}"
        )
    if taking_amount_start <= taking_amount_end:
        raise InvalidAmountRange(
            f"taking amount must decrease: start={taking_amount_start} end={taking_amount_end}"
        )

    amount = interpolate(taking_amount_start, taking_amount_end,
                         auction_start_time, auction_end_time, now)
    log.debug(f"Taking amount at t={now}: {amount} "
              f"(making={making_amount}, {taking_amount_start}->{taking_amount_end})")
    return amount


def calculate_making_amount(taking_amount: int, making_amount_start: int,
                            making_amount_end: int, auction_start_time: int,
                            auction_end_time: int, now: int) -> int:
    """Current making amount for the inverse quote; increases over the window."""
    if auction_end_time <= auction_start_time:
        raise InvalidTimeRange(
            f"auction end {auction_end_time} <= start {auction_start_time}"
        )
    if making_amount_start >= making_amount_end:
        raise InvalidAmountRange(
            f"making amount must increase: start={making_amount_start} end={making_amount_end}"
        )

    amount = interpolate(making_amount_start, making_amount_end,
                         auction_start_time, auction_end_time, now)
    log.debug(f"Making amount at t={now}: {amount} (taking={taking_amount})")
    return amount


class DutchAuction:
    """
    Pricing collaborator deployable on a ledger.

    Same math as the module functions; time comes from the host context.
    """

    def calculate_taking_amount(self, ctx, making_amount: int, taking_amount_start: int,
                                taking_amount_end: int, auction_start_time: int,
                                auction_end_time: int) -> int:
        return calculate_taking_amount(making_amount, taking_amount_start, taking_amount_end,
                                       auction_start_time, auction_end_time, ctx.now())

    def calculate_making_amount(self, ctx, taking_amount: int, making_amount_start: int,
                                making_amount_end: int, auction_start_time: int,
                                auction_end_time: int) -> int:
        return calculate_making_amount(taking_amount, making_amount_start, making_amount_end,
                                       auction_start_time, auction_end_time, ctx.now())
