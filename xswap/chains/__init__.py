"""
Host ledgers for xswap contracts.

Contracts only see the HostContext interface:
- time, hashing and authorization checks
- token transfers with no partial effect
- storage scoped to the executing contract
- events and deterministic deployment
"""

from .base import HostContext
from .memory import InMemoryLedger, LedgerContext, LedgerEvent

__all__ = ["HostContext", "InMemoryLedger", "LedgerContext", "LedgerEvent"]
