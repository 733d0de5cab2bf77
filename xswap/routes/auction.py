"""
Dutch auction quote endpoints.

Quotes are evaluated at ledger time unless the request pins `now`.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from .. import auction
from ..core import parse_amount
from ..node import XSwapNode
from .common import Amount, bad_request, contract_call, get_node

log = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class TakingAmountRequest(BaseModel):
    making_amount: Amount = Field(..., examples=["1000"])
    taking_amount_start: Amount = Field(..., examples=["5000"])
    taking_amount_end: Amount = Field(..., examples=["2000"])
    auction_start_time: int = Field(..., ge=0)
    auction_end_time: int = Field(..., ge=0)
    now: Optional[int] = Field(None, ge=0)


class MakingAmountRequest(BaseModel):
    taking_amount: Amount = Field(..., examples=["2000"])
    making_amount_start: Amount = Field(..., examples=["500"])
    making_amount_end: Amount = Field(..., examples=["1000"])
    auction_start_time: int = Field(..., ge=0)
    auction_end_time: int = Field(..., ge=0)
    now: Optional[int] = Field(None, ge=0)


class QuoteResponse(BaseModel):
    amount: str
    timestamp: int


def _amounts(*values):
    try:
        return [parse_amount(v) for v in values]
    except (TypeError, ValueError) as e:
        raise bad_request(f"invalid amount: {e}")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/api/auction/taking-amount", response_model=QuoteResponse)
async def taking_amount(req: TakingAmountRequest, node: XSwapNode = Depends(get_node)):
    """Current price of a decaying auction (taking_amount_start > taking_amount_end)."""
    making, start, end = _amounts(req.making_amount, req.taking_amount_start, req.taking_amount_end)

    if req.now is None:
        now = node.ledger.timestamp
        amount = contract_call(
            node.ledger.view, node.dutch_auction, "calculate_taking_amount",
            making, start, end, req.auction_start_time, req.auction_end_time,
        )
    else:
        now = req.now
        amount = contract_call(
            auction.calculate_taking_amount,
            making, start, end, req.auction_start_time, req.auction_end_time, now,
        )

    return QuoteResponse(amount=str(amount), timestamp=now)


@router.post("/api/auction/making-amount", response_model=QuoteResponse)
async def making_amount(req: MakingAmountRequest, node: XSwapNode = Depends(get_node)):
    """Current making amount of an increasing auction (making_amount_start < making_amount_end)."""
    taking, start, end = _amounts(req.taking_amount, req.making_amount_start, req.making_amount_end)

    if req.now is None:
        now = node.ledger.timestamp
        amount = contract_call(
            node.ledger.view, node.dutch_auction, "calculate_making_amount",
            taking, start, end, req.auction_start_time, req.auction_end_time,
        )
    else:
        now = req.now
        amount = contract_call(
            auction.calculate_making_amount,
            taking, start, end, req.auction_start_time, req.auction_end_time, now,
        )

    return QuoteResponse(amount=str(amount), timestamp=now)
