#!/usr/bin/env python3
"""
xswap Server
Hashlocked escrows and Dutch-auction limit orders over an in-memory ledger.

Endpoints:
  GET  /api/status                      - Health check, deployed contracts

  POST /api/auction/taking-amount       - Decaying auction price
  POST /api/auction/making-amount       - Increasing auction amount

  POST /api/orders/hash                 - Order hash
  POST /api/orders/state                - ACTIVE / FILLED / CANCELLED
  POST /api/orders/price                - Current taking amount
  POST /api/orders/fill                 - Fill (maker + taker sign)
  POST /api/orders/cancel               - Cancel (maker signs)

  POST /api/escrows                     - Deploy escrow via factory
  GET  /api/escrows/{address}           - Escrow state and immutables
  POST /api/escrows/{address}/withdraw  - Reveal secret (taker signs)
  POST /api/escrows/{address}/cancel    - Refund after deadline (maker signs)

  POST /api/ledger/mint                 - Faucet
  POST /api/ledger/transfer             - Plain transfer (fund escrows)
  GET  /api/ledger/balance              - Balance of (asset, holder)
  POST /api/ledger/time                 - Move the ledger clock
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import ServerConfig
from .node import XSwapNode
from .routes import auction, escrows, ledger, orders

log = logging.getLogger(__name__)


# =============================================================================
# APP SETUP
# =============================================================================

def create_app(node: Optional[XSwapNode] = None,
               config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Build the API around one node.

    Args:
        node: Deployed contracts and ledger (fresh node from env if None)
        config: Server settings (from env if None)

    Returns:
        FastAPI app
    """
    config = config or ServerConfig.from_env()
    node = node or XSwapNode()

    app = FastAPI(
        title="xswap",
        description="Hashlocked escrows and Dutch-auction limit orders",
        version=__version__,
    )
    app.state.node = node
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auction.router)
    app.include_router(orders.router)
    app.include_router(escrows.router)
    app.include_router(ledger.router)

    @app.get("/api/status")
    async def get_status(request: Request):
        """Health check."""
        node: XSwapNode = request.app.state.node
        return {
            "status": "ok",
            "version": __version__,
            "timestamp": node.ledger.timestamp,
            "contracts": {
                "order_protocol_factory": node.order_protocol_factory,
                "order_protocol": node.order_protocol,
                "dutch_auction": node.dutch_auction,
                "escrow_factory": node.escrow_factory,
            },
            "escrow_duration": request.app.state.config.escrow_duration,
        }

    return app


# =============================================================================
# MAIN
# =============================================================================

def main():
    import uvicorn

    config = ServerConfig.from_env()
    logging.basicConfig(
        level=config.level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = create_app(config=config)
    log.info(f"Starting xswap on {config.host}:{config.port}")
    log.info(f"Docs: http://{config.host}:{config.port}/docs")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
