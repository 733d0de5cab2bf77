"""
Host capability contract.

Contracts never reach for globals: every public operation receives a
HostContext bound to one invocation and uses it for time, hashing,
authorization, transfers, storage and events.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class HostContext(ABC):
    """Services a ledger provides to a single contract invocation."""

    #: Address of the contract currently executing.
    contract: str

    @abstractmethod
    def now(self) -> int:
        """Current ledger time (unix seconds)."""

    @abstractmethod
    def sha256(self, data: bytes) -> bytes:
        """Collision-resistant hash, 32-byte digest."""

    @abstractmethod
    def require_auth(self, principal: str) -> None:
        """Raise NotAuthorized unless `principal` signed this invocation."""

    @abstractmethod
    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        """
        Move `amount` of `asset` atomically.

        Raises:
            InsufficientBalance: sender holds less than amount
            TransferFailed: any other rejection (negative amount, bad asset)
        """

    # --- Storage (scoped to `contract`) ---

    @abstractmethod
    def get(self, key: Any, default: Any = None) -> Any:
        """Read a storage entry."""

    @abstractmethod
    def has(self, key: Any) -> bool:
        """True if a storage entry exists."""

    @abstractmethod
    def set(self, key: Any, value: Any) -> None:
        """Write a storage entry."""

    # --- Events ---

    @abstractmethod
    def emit(self, topic: str, data: Any = None) -> None:
        """Publish an event; dropped if the invocation fails."""

    # --- Deployment plumbing (factories only) ---

    @abstractmethod
    def deployed_address(self, salt: bytes, deployer: Optional[str] = None) -> str:
        """Deterministic address for `salt` under `deployer` (default: contract)."""

    @abstractmethod
    def deploy(self, salt: bytes, contract: Any) -> str:
        """Register `contract` at its deterministic address, return the address."""

    @abstractmethod
    def invoke(self, address: str, method: str, *args) -> Any:
        """Call another contract inside the same invocation."""
