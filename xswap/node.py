"""
Single-ledger xswap deployment.

Boots an in-memory ledger with the contracts the API serves:
- an OrderProtocolFactory and one OrderProtocol (+ its DutchAuction)
- an EscrowFactory that deploys one Escrow per trade
"""

import logging
from typing import Optional

from . import __version__
from .auction import DutchAuction
from .chains.memory import InMemoryLedger
from .config import LedgerConfig
from .core import sha256
from .htlc import Escrow, EscrowFactory
from .orders import OrderProtocol, OrderProtocolFactory

log = logging.getLogger(__name__)

DEFAULT_ADMIN = "xswap-admin"


def code_hash(contract_cls: type) -> bytes:
    """Identifier of a contract implementation (module, class, package version)."""
    ident = f"{contract_cls.__module__}.{contract_cls.__qualname__}@{__version__}"
    return sha256(ident.encode())


class XSwapNode:
    """Ledger plus the addresses of the deployed protocol contracts."""

    def __init__(self, ledger: Optional[InMemoryLedger] = None,
                 admin: str = DEFAULT_ADMIN, salt: bytes = b"\x00" * 32):
        self.ledger = ledger or InMemoryLedger(LedgerConfig.from_env())
        self.admin = admin

        self.order_protocol_factory = self.ledger.register(OrderProtocolFactory(), salt=sha256(b"lop-factory" + salt))
        self.ledger.call(
            self.order_protocol_factory, "initialize",
            admin, code_hash(OrderProtocol), code_hash(DutchAuction),
        )
        self.order_protocol = self.ledger.call(
            self.order_protocol_factory, "deploy_order_protocol", salt, admin,
        )
        self.dutch_auction = self.ledger.view(self.order_protocol, "get_dutch_auction_contract")

        self.escrow_factory = self.ledger.register(EscrowFactory(), salt=sha256(b"escrow-factory" + salt))
        self.ledger.call(self.escrow_factory, "initialize", admin, code_hash(Escrow))

        log.info(f"xswap node ready: order_protocol={self.order_protocol}, "
                 f"escrow_factory={self.escrow_factory}")

    def is_escrow(self, address: str) -> bool:
        return isinstance(self.ledger.contracts().get(address), Escrow)
