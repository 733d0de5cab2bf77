"""
Ledger endpoints: faucet, balances, plain transfers and the clock.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..core import parse_amount
from ..node import XSwapNode
from .common import Amount, bad_request, contract_call, get_node

log = logging.getLogger(__name__)

router = APIRouter()


class MintRequest(BaseModel):
    asset: str = Field(..., examples=["USDC"])
    holder: str = Field(..., examples=["bob"])
    amount: Amount = Field(..., examples=["1000000"])


class TransferRequest(BaseModel):
    asset: str
    sender: str
    recipient: str
    amount: Amount
    signers: Optional[List[str]] = Field(None, description="Defaults to [sender]")


class TimeRequest(BaseModel):
    timestamp: Optional[int] = Field(None, ge=0, description="Absolute ledger time")
    advance: Optional[int] = Field(None, ge=0, description="Seconds to move forward")


class BalanceResponse(BaseModel):
    asset: str
    holder: str
    balance: str


def _amount(value) -> int:
    try:
        return parse_amount(value)
    except (TypeError, ValueError) as e:
        raise bad_request(f"invalid amount: {e}")


@router.post("/api/ledger/mint", response_model=BalanceResponse)
async def mint(req: MintRequest, node: XSwapNode = Depends(get_node)):
    """Faucet: credit an asset to a holder."""
    amount = _amount(req.amount)
    try:
        balance = node.ledger.mint(req.asset, req.holder, amount)
    except ValueError as e:
        raise bad_request(str(e))
    return BalanceResponse(asset=req.asset, holder=req.holder, balance=str(balance))


@router.post("/api/ledger/transfer", response_model=BalanceResponse)
async def transfer(req: TransferRequest, node: XSwapNode = Depends(get_node)):
    """Plain transfer, e.g. funding an escrow. Returns the recipient's balance."""
    contract_call(
        node.ledger.transfer, req.asset, req.sender, req.recipient, _amount(req.amount),
        signers=req.signers,
    )
    balance = node.ledger.balance(req.asset, req.recipient)
    return BalanceResponse(asset=req.asset, holder=req.recipient, balance=str(balance))


@router.get("/api/ledger/balance", response_model=BalanceResponse)
async def balance(asset: str = Query(...), holder: str = Query(...),
                  node: XSwapNode = Depends(get_node)):
    return BalanceResponse(asset=asset, holder=holder, balance=str(node.ledger.balance(asset, holder)))


@router.post("/api/ledger/time")
async def set_time(req: TimeRequest, node: XSwapNode = Depends(get_node)):
    """Move the ledger clock. Time never goes backwards."""
    if (req.timestamp is None) == (req.advance is None):
        raise bad_request("give exactly one of timestamp or advance")
    try:
        if req.timestamp is not None:
            node.ledger.set_timestamp(req.timestamp)
        else:
            node.ledger.advance(req.advance)
    except ValueError as e:
        raise bad_request(str(e))

    log.info(f"Ledger time set to {node.ledger.timestamp}")
    return {"timestamp": node.ledger.timestamp}
