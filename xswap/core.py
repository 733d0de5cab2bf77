"""
Core types and helpers for xswap.
"""

import hashlib
import hmac
import secrets
from enum import Enum
from typing import Tuple


# =============================================================================
# Integer widths (ledger value types)
# =============================================================================

I128_MIN = -(1 << 127)
I128_MAX = (1 << 127) - 1
U64_MAX = (1 << 64) - 1

# Widest intermediate allowed in price math (amount * duration headroom)
I256_MIN = -(1 << 255)
I256_MAX = (1 << 255) - 1

HASH_SIZE = 32  # bytes, SHA256 digest / hashlock / secret


def in_i128(value: int) -> bool:
    return isinstance(value, int) and I128_MIN <= value <= I128_MAX


def in_u64(value: int) -> bool:
    return isinstance(value, int) and 0 <= value <= U64_MAX


# =============================================================================
# Maker traits (bit flags)
# =============================================================================

IS_DUTCH_AUCTION = 1 << 0
UNWRAP_WRAPPED_NATIVE = 1 << 1   # reserved, no-op
ALLOW_PARTIAL_FILLS = 1 << 2     # reserved, no-op


# =============================================================================
# Lifecycle states
# =============================================================================

class EscrowState(Enum):
    """Escrow lifecycle states."""
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"           # Immutables set, funds claimable
    WITHDRAWN = "withdrawn"     # Taker revealed secret (terminal)
    CANCELLED = "cancelled"     # Maker reclaimed after deadline (terminal)

    @property
    def is_terminal(self) -> bool:
        return self in (EscrowState.WITHDRAWN, EscrowState.CANCELLED)


class OrderState(Enum):
    """Order lifecycle states. No stored entry means ACTIVE."""
    ACTIVE = "active"
    FILLED = "filled"
    CANCELLED = "cancelled"


# =============================================================================
# HTLC Utilities
# =============================================================================

def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def generate_secret() -> Tuple[str, str]:
    """
    Generate a random secret and its SHA256 hashlock.

    Returns:
        (secret_hex, hashlock_hex)
    """
    secret = secrets.token_bytes(HASH_SIZE)
    return secret.hex(), sha256(secret).hex()


def verify_preimage(preimage_hex: str, hashlock_hex: str) -> bool:
    """
    Verify that SHA256(preimage) == hashlock.

    Args:
        preimage_hex: 32-byte preimage as hex string
        hashlock_hex: Expected SHA256 hash as hex string

    Returns:
        True if valid
    """
    try:
        preimage = bytes.fromhex(preimage_hex)
        expected = bytes.fromhex(hashlock_hex)
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(sha256(preimage), expected)


def to_bytes32(value, field: str = "value") -> bytes:
    """Accept bytes or a hex string (with or without 0x), return 32 bytes."""
    if isinstance(value, str):
        value = bytes.fromhex(value[2:] if value.startswith("0x") else value)
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"{field} must be bytes or hex string")
    if len(value) != HASH_SIZE:
        raise ValueError(f"{field} must be {HASH_SIZE} bytes, got {len(value)}")
    return bytes(value)


def parse_amount(value) -> int:
    """Amounts travel as decimal strings in JSON order files."""
    if isinstance(value, bool):
        raise TypeError("amount must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip(), 10)
    raise TypeError(f"amount must be int or decimal string, got {type(value).__name__}")

