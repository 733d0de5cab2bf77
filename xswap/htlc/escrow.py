"""
Hash time-locked escrow contract for xswap.

One escrow instance holds one conditional transfer:
- the taker withdraws by revealing the secret whose SHA256 is the hashlock
- the maker cancels and reclaims once cancellation_timestamp is reached

Whichever resolution the ledger accepts first wins; the escrow is terminal
afterwards. Custody is the escrow's own ledger address: funding is a plain
transfer into it, done outside this contract.

Lifecycle:
    UNINITIALIZED -> ACTIVE -> WITHDRAWN | CANCELLED
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Any, Dict

from ..chains.base import HostContext
from ..core import HASH_SIZE, EscrowState, in_i128, in_u64, parse_amount, to_bytes32
from ..errors import (
    AlreadyInitialized,
    EscrowResolved,
    InvalidImmutables,
    InvalidSecret,
    NegativeAmount,
    NotInitialized,
    TimePredicateNotMet,
)

log = logging.getLogger(__name__)

KEY_STATE = "state"
KEY_IMMUTABLES = "immutables"


@dataclass(frozen=True)
class Immutables:
    """Escrow parameters, fixed at initialization."""
    hashlock: bytes                 # SHA256(secret), 32 bytes
    maker: str                      # Can cancel after cancellation_timestamp
    taker: str                      # Can withdraw with the secret
    token: str                      # Asset held in custody
    amount: int                     # Smallest units, i128, >= 0
    cancellation_timestamp: int     # Unix seconds, u64

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hashlock": self.hashlock.hex(),
            "maker": self.maker,
            "taker": self.taker,
            "token": self.token,
            "amount": str(self.amount),
            "cancellation_timestamp": self.cancellation_timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Immutables":
        """Parse the JSON form used by deployment tooling (hex hashlock, string amount)."""
        try:
            return cls(
                hashlock=to_bytes32(data["hashlock"], "hashlock"),
                maker=data["maker"],
                taker=data["taker"],
                token=data["token"],
                amount=parse_amount(data["amount"]),
                cancellation_timestamp=int(data["cancellation_timestamp"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidImmutables(f"cannot parse immutables: {e}")


class Escrow:
    """
    HTLC escrow contract.

    Stateless Python object: all state lives in ledger storage behind the
    HostContext, so one instance can be registered per escrow address.
    """

    def initialize(self, ctx: HostContext, immutables: Immutables) -> None:
        """
        Store immutables. One-shot.

        Raises:
            AlreadyInitialized: called twice
            NegativeAmount: immutables.amount < 0
            InvalidImmutables: malformed hashlock, amount or timestamp
        """
        if self._state(ctx) != EscrowState.UNINITIALIZED:
            raise AlreadyInitialized()

        if not isinstance(immutables.hashlock, bytes) or len(immutables.hashlock) != HASH_SIZE:
            raise InvalidImmutables(f"hashlock must be {HASH_SIZE} bytes")
        if not in_i128(immutables.amount):
            raise InvalidImmutables(f"amount out of i128 range: {immutables.amount}")
        if immutables.amount < 0:
            raise NegativeAmount(f"amount {immutables.amount} < 0")
        if not in_u64(immutables.cancellation_timestamp):
            raise InvalidImmutables(
                f"cancellation_timestamp out of u64 range: {immutables.cancellation_timestamp}"
            )

        ctx.set(KEY_IMMUTABLES, immutables)
        ctx.set(KEY_STATE, EscrowState.ACTIVE)

        log.info(f"Escrow {ctx.contract} initialized: hashlock={immutables.hashlock.hex()[:16]}..., "
                 f"amount={immutables.amount} {immutables.token}, "
                 f"cancel_after={immutables.cancellation_timestamp}")

    def withdraw(self, ctx: HostContext, secret: bytes) -> None:
        """
        Release funds to the taker. No deadline: allowed any time until the
        escrow is cancelled.

        Raises:
            NotInitialized, EscrowResolved, NotAuthorized, InvalidSecret
        """
        immutables = self._require_active(ctx)

        ctx.require_auth(immutables.taker)

        if not isinstance(secret, (bytes, bytearray)) or len(secret) != HASH_SIZE:
            raise InvalidSecret(f"secret must be {HASH_SIZE} bytes")
        if not hmac.compare_digest(ctx.sha256(bytes(secret)), immutables.hashlock):
            raise InvalidSecret()

        ctx.transfer(immutables.token, ctx.contract, immutables.taker, immutables.amount)
        ctx.set(KEY_STATE, EscrowState.WITHDRAWN)
        ctx.emit("withdraw", immutables.taker)

        log.info(f"Escrow {ctx.contract} withdrawn by {immutables.taker}: "
                 f"{immutables.amount} {immutables.token}")

    def cancel(self, ctx: HostContext) -> None:
        """
        Return funds to the maker once the cancellation timestamp is reached.

        Raises:
            NotInitialized, EscrowResolved, NotAuthorized, TimePredicateNotMet
        """
        immutables = self._require_active(ctx)

        ctx.require_auth(immutables.maker)

        now = ctx.now()
        if now < immutables.cancellation_timestamp:
            raise TimePredicateNotMet(
                f"now={now} < cancellation_timestamp={immutables.cancellation_timestamp}"
            )

        ctx.transfer(immutables.token, ctx.contract, immutables.maker, immutables.amount)
        ctx.set(KEY_STATE, EscrowState.CANCELLED)
        ctx.emit("cancel", immutables.maker)

        log.info(f"Escrow {ctx.contract} cancelled by {immutables.maker}: "
                 f"{immutables.amount} {immutables.token} refunded")

    def get_immutables(self, ctx: HostContext) -> Immutables:
        if self._state(ctx) == EscrowState.UNINITIALIZED:
            raise NotInitialized()
        return ctx.get(KEY_IMMUTABLES)

    def get_state(self, ctx: HostContext) -> EscrowState:
        return self._state(ctx)

    def _state(self, ctx: HostContext) -> EscrowState:
        return ctx.get(KEY_STATE, EscrowState.UNINITIALIZED)

    def _require_active(self, ctx: HostContext) -> Immutables:
        state = self._state(ctx)
        if state == EscrowState.UNINITIALIZED:
            raise NotInitialized()
        if state.is_terminal:
            raise EscrowResolved(f"escrow already {state.value}")
        return ctx.get(KEY_IMMUTABLES)
