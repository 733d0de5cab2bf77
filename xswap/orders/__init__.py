"""
Limit orders for xswap: fixed-price or Dutch-auction priced.
"""

from .types import DutchAuctionPrice, FixedPrice, Order, Pricing
from .protocol import OrderProtocol
from .factory import OrderProtocolFactory

__all__ = [
    "Order",
    "Pricing",
    "FixedPrice",
    "DutchAuctionPrice",
    "OrderProtocol",
    "OrderProtocolFactory",
]
