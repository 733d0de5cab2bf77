"""
Limit order types.

An order is an off-ledger trade intent. Its only on-ledger footprint is a
state entry keyed by the order hash, which covers
(salt, making_amount, taking_amount, maker_traits) and deliberately leaves
out the auction window and price bounds.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from ..core import IS_DUTCH_AUCTION, in_i128, in_u64, parse_amount
from ..errors import InvalidOrder


@dataclass(frozen=True)
class FixedPrice:
    """Constant-price order: the taker pays taking_amount."""
    taking_amount: int


@dataclass(frozen=True)
class DutchAuctionPrice:
    """Auction-priced order: price decays from amount_start to amount_end."""
    start_time: int
    end_time: int
    amount_start: int
    amount_end: int


Pricing = Union[FixedPrice, DutchAuctionPrice]


@dataclass(frozen=True)
class Order:
    """Limit order, optionally priced by a Dutch auction."""
    salt: int
    maker: str
    receiver: str           # "" or the protocol address = pay the taker
    maker_asset: str
    taker_asset: str
    making_amount: int
    taking_amount: int      # fixed price; ignored for auctions
    maker_traits: int = 0

    # Only read when IS_DUTCH_AUCTION is set
    auction_start_time: int = 0
    auction_end_time: int = 0
    taking_amount_start: int = 0
    taking_amount_end: int = 0

    pricing: Pricing = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not in_u64(self.salt):
            raise InvalidOrder(f"salt out of u64 range: {self.salt}")
        if not in_u64(self.maker_traits):
            raise InvalidOrder(f"maker_traits out of u64 range: {self.maker_traits}")
        for name in ("making_amount", "taking_amount"):
            if not in_i128(getattr(self, name)):
                raise InvalidOrder(f"{name} out of i128 range: {getattr(self, name)}")
        if not self.maker or not self.maker_asset or not self.taker_asset:
            raise InvalidOrder("maker, maker_asset and taker_asset are required")

        if self.is_dutch_auction:
            for name in ("auction_start_time", "auction_end_time"):
                if not in_u64(getattr(self, name)):
                    raise InvalidOrder(f"{name} out of u64 range: {getattr(self, name)}")
            for name in ("taking_amount_start", "taking_amount_end"):
                if not in_i128(getattr(self, name)):
                    raise InvalidOrder(f"{name} out of i128 range: {getattr(self, name)}")
            pricing = DutchAuctionPrice(
                start_time=self.auction_start_time,
                end_time=self.auction_end_time,
                amount_start=self.taking_amount_start,
                amount_end=self.taking_amount_end,
            )
        else:
            pricing = FixedPrice(self.taking_amount)
        # frozen: pricing is derived once from the fields above
        object.__setattr__(self, "pricing", pricing)

    @property
    def is_dutch_auction(self) -> bool:
        return bool(self.maker_traits & IS_DUTCH_AUCTION)

    @property
    def order_hash(self) -> bytes:
        """SHA256(salt:u64 || making:i128 || taking:i128 || traits:u64), big-endian."""
        data = (
            self.salt.to_bytes(8, "big")
            + self.making_amount.to_bytes(16, "big", signed=True)
            + self.taking_amount.to_bytes(16, "big", signed=True)
            + self.maker_traits.to_bytes(8, "big")
        )
        return hashlib.sha256(data).digest()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "salt": self.salt,
            "maker": self.maker,
            "receiver": self.receiver,
            "maker_asset": self.maker_asset,
            "taker_asset": self.taker_asset,
            "making_amount": str(self.making_amount),
            "taking_amount": str(self.taking_amount),
            "maker_traits": self.maker_traits,
            "auction_start_time": self.auction_start_time,
            "auction_end_time": self.auction_end_time,
            "taking_amount_start": str(self.taking_amount_start),
            "taking_amount_end": str(self.taking_amount_end),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Order":
        """
        Parse an order JSON object. Amounts may be ints or decimal strings;
        auction fields may be omitted for fixed-price orders.
        """
        try:
            return cls(
                salt=int(data["salt"]),
                maker=data["maker"],
                receiver=data.get("receiver") or "",
                maker_asset=data["maker_asset"],
                taker_asset=data["taker_asset"],
                making_amount=parse_amount(data["making_amount"]),
                taking_amount=parse_amount(data.get("taking_amount", 0)),
                maker_traits=int(data.get("maker_traits", 0)),
                auction_start_time=int(data.get("auction_start_time", 0)),
                auction_end_time=int(data.get("auction_end_time", 0)),
                taking_amount_start=parse_amount(data.get("taking_amount_start", 0)),
                taking_amount_end=parse_amount(data.get("taking_amount_end", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidOrder(f"cannot parse order: {e}")
