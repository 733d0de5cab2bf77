"""
xswap - Hashlocked Escrows and Dutch-Auction Limit Orders

Contract logic for trustless swaps on a host ledger:
- Escrow / EscrowFactory: hash time-locked conditional transfers
- DutchAuction: linearly decaying prices over a time window
- OrderProtocol / OrderProtocolFactory: dual-signed, all-or-nothing fills

Usage:
    from xswap import InMemoryLedger, LedgerConfig, Escrow, Immutables
    from xswap import generate_secret

    ledger = InMemoryLedger(LedgerConfig(start_timestamp=1_000))
    escrow = ledger.register(Escrow())

    secret_hex, hashlock_hex = generate_secret()
    ledger.call(escrow, "initialize", Immutables(
        hashlock=bytes.fromhex(hashlock_hex), maker="alice", taker="bob",
        token="USDC", amount=100, cancellation_timestamp=2_000,
    ))
    ledger.transfer("USDC", "alice", escrow, 100)
    ledger.call(escrow, "withdraw", bytes.fromhex(secret_hex), signers=["bob"])

The HTTP API lives in xswap.server, its client in xswap.client.
"""

__version__ = "0.1.0"

from .core import (
    EscrowState,
    OrderState,
    IS_DUTCH_AUCTION,
    generate_secret,
    verify_preimage,
)
from .errors import ContractError, ErrorCode

from .config import LedgerConfig, ServerConfig

from .auction import DutchAuction, calculate_making_amount, calculate_taking_amount

from .chains import HostContext, InMemoryLedger

from .htlc import Escrow, EscrowFactory, Immutables

from .orders import Order, OrderProtocol, OrderProtocolFactory

__all__ = [
    # Core types
    "EscrowState",
    "OrderState",
    "IS_DUTCH_AUCTION",
    "ContractError",
    "ErrorCode",
    # Utilities
    "generate_secret",
    "verify_preimage",
    # Config
    "LedgerConfig",
    "ServerConfig",
    # Pricing
    "DutchAuction",
    "calculate_taking_amount",
    "calculate_making_amount",
    # Host
    "HostContext",
    "InMemoryLedger",
    # HTLC
    "Escrow",
    "EscrowFactory",
    "Immutables",
    # Orders
    "Order",
    "OrderProtocol",
    "OrderProtocolFactory",
]
