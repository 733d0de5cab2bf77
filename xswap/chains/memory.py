"""
In-memory ledger for xswap.

Reference host for the contracts: balances, contract registry, per-contract
storage, event log and a settable clock. Each invocation is one indivisible
unit: on any exception storage, balances, deployments and events are
restored to their state before the call.

Usage:
    ledger = InMemoryLedger(LedgerConfig(start_timestamp=1_000))
    escrow = ledger.register(Escrow())
    ledger.call(escrow, "initialize", immutables)
    ledger.call(escrow, "withdraw", secret, signers=[taker])
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..config import LedgerConfig
from ..core import in_i128, sha256
from ..errors import (
    ContractError,
    ContractNotFound,
    DeploymentFailed,
    InsufficientBalance,
    NotAuthorized,
    TransferFailed,
)
from .base import HostContext

log = logging.getLogger(__name__)

LEDGER_DEPLOYER = "ledger"


@dataclass(frozen=True)
class LedgerEvent:
    """Event published by a successful invocation."""
    contract: str
    topic: str
    data: Any
    timestamp: int


class LedgerContext(HostContext):
    """HostContext bound to one (possibly nested) invocation."""

    def __init__(self, ledger: "InMemoryLedger", contract: str,
                 signers: FrozenSet[str], events: List[LedgerEvent]):
        self.ledger = ledger
        self.contract = contract
        self.signers = signers
        self.events = events

    def now(self) -> int:
        return self.ledger.timestamp

    def sha256(self, data: bytes) -> bytes:
        return sha256(data)

    def require_auth(self, principal: str) -> None:
        if principal not in self.signers:
            raise NotAuthorized(f"{principal} did not authorize this call")

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or not in_i128(amount):
            raise TransferFailed(f"invalid amount: {amount!r}")
        if amount < 0:
            raise TransferFailed(f"negative transfer amount: {amount}")
        if not asset:
            raise TransferFailed("asset is required")
        # contracts move their own custody, everyone else must sign
        if sender != self.contract and sender not in self.signers:
            raise NotAuthorized(f"{sender} did not authorize transfer of {asset}")

        balances = self.ledger._balances
        available = balances.get((asset, sender), 0)
        if available < amount:
            raise InsufficientBalance(
                f"{sender} holds {available} {asset}, needs {amount}"
            )
        balances[(asset, sender)] = available - amount
        credited = balances.get((asset, recipient), 0) + amount
        if not in_i128(credited):
            balances[(asset, sender)] = available
            raise TransferFailed(f"balance of {recipient} would exceed i128")
        balances[(asset, recipient)] = credited

    def get(self, key: Any, default: Any = None) -> Any:
        return self.ledger._storage.get(self.contract, {}).get(key, default)

    def has(self, key: Any) -> bool:
        return key in self.ledger._storage.get(self.contract, {})

    def set(self, key: Any, value: Any) -> None:
        self.ledger._storage.setdefault(self.contract, {})[key] = value

    def emit(self, topic: str, data: Any = None) -> None:
        self.events.append(LedgerEvent(self.contract, topic, data, self.now()))

    def deployed_address(self, salt: bytes, deployer: Optional[str] = None) -> str:
        return self.ledger.derive_address(deployer or self.contract, salt)

    def deploy(self, salt: bytes, contract: Any) -> str:
        address = self.deployed_address(salt)
        if address in self.ledger._contracts:
            raise DeploymentFailed(f"address already in use: {address}")
        self.ledger._contracts[address] = contract
        log.info(f"Deployed {type(contract).__name__} at {address} (by {self.contract})")
        return address

    def invoke(self, address: str, method: str, *args) -> Any:
        # the calling contract is an implicit signer for its sub-calls
        child = LedgerContext(self.ledger, address, self.signers | {self.contract}, self.events)
        return self.ledger._dispatch(child, method, args)


class InMemoryLedger:
    """
    Single-process ledger with whole-call atomicity.

    Invocations are serialized with a lock, so concurrent callers race the
    way ledger transactions do: the first accepted call wins and the loser
    sees the resulting state.
    """

    def __init__(self, config: LedgerConfig = None):
        self.config = config or LedgerConfig()
        start = self.config.start_timestamp
        self.timestamp = int(time.time()) if start is None else start

        self._balances: Dict[Tuple[str, str], int] = {}
        self._contracts: Dict[str, Any] = {}
        self._storage: Dict[str, Dict[Any, Any]] = {}
        self._events: List[LedgerEvent] = []
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Clock
    # -------------------------------------------------------------------------

    def set_timestamp(self, timestamp: int) -> None:
        with self._lock:
            if timestamp < self.timestamp:
                raise ValueError(f"ledger time is monotonic: {timestamp} < {self.timestamp}")
            self.timestamp = timestamp

    def advance(self, seconds: int) -> int:
        with self._lock:
            self.set_timestamp(self.timestamp + seconds)
            return self.timestamp

    # -------------------------------------------------------------------------
    # Balances
    # -------------------------------------------------------------------------

    def mint(self, asset: str, holder: str, amount: int) -> int:
        """Credit `amount` of `asset` to `holder` (test/testnet faucet)."""
        if amount < 0:
            raise ValueError("mint amount must be >= 0")
        with self._lock:
            new_balance = self._balances.get((asset, holder), 0) + amount
            if not in_i128(new_balance):
                raise ValueError(f"balance of {holder} would exceed i128: {new_balance}")
            self._balances[(asset, holder)] = new_balance
        log.info(f"Minted {amount} {asset} to {holder}")
        return new_balance

    def balance(self, asset: str, holder: str) -> int:
        with self._lock:
            return self._balances.get((asset, holder), 0)

    def transfer(self, asset: str, sender: str, recipient: str, amount: int,
                 signers: Iterable[str] = None) -> None:
        """Top-level transfer invocation signed by `sender` unless told otherwise."""
        signers = [sender] if signers is None else signers

        def run(ctx: LedgerContext) -> None:
            ctx.transfer(asset, sender, recipient, amount)
            ctx.emit("transfer", (asset, sender, recipient, amount))

        self._transact(LEDGER_DEPLOYER, signers, run)

    # -------------------------------------------------------------------------
    # Contracts
    # -------------------------------------------------------------------------

    def derive_address(self, deployer: str, salt: bytes) -> str:
        digest = sha256(deployer.encode() + bytes(salt)).hex().upper()
        return "C" + digest[:self.config.address_length - 1]

    def register(self, contract: Any, salt: bytes = None) -> str:
        """Install a contract outside any factory; returns its address."""
        salt = salt if salt is not None else secrets.token_bytes(32)
        address = self.derive_address(LEDGER_DEPLOYER, salt)
        with self._lock:
            if address in self._contracts:
                raise DeploymentFailed(f"address already in use: {address}")
            self._contracts[address] = contract
        log.info(f"Registered {type(contract).__name__} at {address}")
        return address

    def contract_at(self, address: str) -> Any:
        contract = self._contracts.get(address)
        if contract is None:
            raise ContractNotFound(f"no contract at {address}")
        return contract

    def contracts(self) -> Dict[str, Any]:
        return dict(self._contracts)

    def storage(self, address: str) -> Dict[Any, Any]:
        """Read-only copy of a contract's storage (inspection/debugging)."""
        return dict(self._storage.get(address, {}))

    # -------------------------------------------------------------------------
    # Invocations
    # -------------------------------------------------------------------------

    def call(self, address: str, method: str, *args, signers: Iterable[str] = ()) -> Any:
        """Invoke a public contract method as one atomic ledger transaction."""
        return self._transact(
            address, signers, lambda ctx: self._dispatch(ctx, method, args),
            label=method,
        )

    def view(self, address: str, method: str, *args) -> Any:
        """Invoke a method and discard every effect (read-only simulation)."""
        with self._lock:
            snapshot = self._snapshot()
            ctx = LedgerContext(self, address, frozenset(), [])
            try:
                return self._dispatch(ctx, method, args)
            finally:
                self._restore(snapshot)

    def events(self, topic: str = None, contract: str = None) -> List[LedgerEvent]:
        with self._lock:
            return [
                e for e in self._events
                if (topic is None or e.topic == topic)
                and (contract is None or e.contract == contract)
            ]

    def _dispatch(self, ctx: LedgerContext, method: str, args: tuple) -> Any:
        contract = self.contract_at(ctx.contract)
        if method.startswith("_"):
            raise AttributeError(f"{method!r} is not a public contract method")
        fn = getattr(contract, method, None)
        if not callable(fn):
            raise AttributeError(f"{type(contract).__name__} has no method {method!r}")
        return fn(ctx, *args)

    def _transact(self, address: str, signers: Iterable[str],
                  fn: Callable[[LedgerContext], Any], label: str = "transfer") -> Any:
        with self._lock:
            snapshot = self._snapshot()
            ctx = LedgerContext(self, address, frozenset(signers), [])
            try:
                result = fn(ctx)
            except ContractError as e:
                self._restore(snapshot)
                log.warning(f"Invocation {label} on {address} rejected: {e.kind}: {e.message}")
                raise
            except Exception:
                self._restore(snapshot)
                log.exception(f"Invocation {label} on {address} failed")
                raise
            self._events.extend(ctx.events)
            return result

    def _snapshot(self):
        return (
            dict(self._balances),
            dict(self._contracts),
            {addr: dict(entries) for addr, entries in self._storage.items()},
        )

    def _restore(self, snapshot) -> None:
        self._balances, self._contracts, self._storage = snapshot
