"""
Limit order endpoints, served by the node's OrderProtocol.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..node import XSwapNode
from ..orders import DutchAuctionPrice, Order
from .common import Amount, contract_call, get_node

log = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class OrderModel(BaseModel):
    salt: int = Field(..., ge=0, examples=[1])
    maker: str = Field(..., examples=["alice"])
    receiver: str = ""
    maker_asset: str = Field(..., examples=["XLM"])
    taker_asset: str = Field(..., examples=["USDC"])
    making_amount: Amount
    taking_amount: Amount = 0
    maker_traits: int = Field(0, ge=0)
    auction_start_time: int = 0
    auction_end_time: int = 0
    taking_amount_start: Amount = 0
    taking_amount_end: Amount = 0

    def to_order(self) -> Order:
        return contract_call(Order.from_dict, self.model_dump())


class OrderRequest(BaseModel):
    order: OrderModel


class FillRequest(BaseModel):
    order: OrderModel
    taker: str = Field(..., examples=["bob"])
    signers: List[str] = Field(default_factory=list, examples=[["alice", "bob"]])


class CancelRequest(BaseModel):
    order: OrderModel
    signers: List[str] = Field(default_factory=list, examples=[["alice"]])


class OrderStateResponse(BaseModel):
    order_hash: str
    state: str


class PriceResponse(BaseModel):
    order_hash: str
    pricing: str                     # "fixed" or "dutch_auction"
    taking_amount: str
    timestamp: int


class FillResponse(BaseModel):
    order_hash: str
    state: str
    receiver: str
    making_amount: str
    taking_amount: str
    timestamp: int


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/api/orders/hash")
async def order_hash(req: OrderRequest):
    """Order hash (covers salt, making/taking amounts and traits only)."""
    order = req.order.to_order()
    return {"order_hash": order.order_hash.hex()}


@router.post("/api/orders/state", response_model=OrderStateResponse)
async def order_state(req: OrderRequest, node: XSwapNode = Depends(get_node)):
    order = req.order.to_order()
    state = contract_call(node.ledger.view, node.order_protocol, "get_order_state", order)
    return OrderStateResponse(order_hash=order.order_hash.hex(), state=state.value)


@router.post("/api/orders/price", response_model=PriceResponse)
async def order_price(req: OrderRequest, node: XSwapNode = Depends(get_node)):
    """Taking amount a fill would charge at the current ledger time."""
    order = req.order.to_order()
    price = contract_call(node.ledger.view, node.order_protocol, "get_current_price", order)
    return PriceResponse(
        order_hash=order.order_hash.hex(),
        pricing="dutch_auction" if isinstance(order.pricing, DutchAuctionPrice) else "fixed",
        taking_amount=str(price),
        timestamp=node.ledger.timestamp,
    )


@router.post("/api/orders/fill", response_model=FillResponse)
async def fill_order(req: FillRequest, node: XSwapNode = Depends(get_node)):
    """Fill an order. Maker and taker must both be listed in signers."""
    order = req.order.to_order()
    contract_call(
        node.ledger.call, node.order_protocol, "fill_order", order, req.taker,
        signers=req.signers,
    )

    order_hash = order.order_hash
    _, making, taking, receiver = next(
        e.data for e in reversed(node.ledger.events("order_filled", node.order_protocol))
        if e.data[0] == order_hash
    )

    log.info(f"API fill {order_hash.hex()[:16]}...: taker={req.taker}, taking={taking}")
    return FillResponse(
        order_hash=order_hash.hex(),
        state="filled",
        receiver=receiver,
        making_amount=str(making),
        taking_amount=str(taking),
        timestamp=node.ledger.timestamp,
    )


@router.post("/api/orders/cancel", response_model=OrderStateResponse)
async def cancel_order(req: CancelRequest, node: XSwapNode = Depends(get_node)):
    order = req.order.to_order()
    contract_call(
        node.ledger.call, node.order_protocol, "cancel_order", order,
        signers=req.signers,
    )
    return OrderStateResponse(order_hash=order.order_hash.hex(), state="cancelled")
