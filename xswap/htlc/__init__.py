"""
HTLC (Hash Time-Locked Contract) escrow for xswap.

An escrow guarantees:
1. Funds can only be withdrawn by the taker with the secret (preimage)
2. Funds can be reclaimed by the maker after the cancellation timestamp
3. Exactly one of the two happens
"""

from .escrow import Escrow, Immutables
from .factory import EscrowFactory

__all__ = [
    "Escrow",
    "Immutables",
    "EscrowFactory",
]
