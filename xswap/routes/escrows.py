"""
HTLC escrow endpoints.

Escrows are deployed through the node's EscrowFactory. Funding is a plain
ledger transfer to the escrow address (POST /api/ledger/transfer).
"""

import logging
import secrets
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..config import ServerConfig
from ..core import EscrowState
from ..errors import ContractNotFound
from ..htlc import Immutables
from ..node import XSwapNode
from .common import Amount, bad_request, contract_call, get_config, get_node, hex_bytes32, http_error

log = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class EscrowCreateRequest(BaseModel):
    hashlock: str = Field(..., description="SHA256(secret), 32-byte hex")
    maker: str = Field(..., examples=["alice"])
    taker: str = Field(..., examples=["bob"])
    token: str = Field(..., examples=["USDC"])
    amount: Amount = Field(..., examples=["1000"])
    cancellation_timestamp: Optional[int] = Field(
        None, ge=0, description="Defaults to ledger time + escrow_duration"
    )
    salt: Optional[str] = Field(None, description="32-byte hex; random if omitted")


class WithdrawRequest(BaseModel):
    secret: str = Field(..., description="32-byte preimage, hex")
    signers: List[str] = Field(default_factory=list, examples=[["bob"]])


class SignedRequest(BaseModel):
    signers: List[str] = Field(default_factory=list, examples=[["alice"]])


class EscrowResponse(BaseModel):
    address: str
    state: str
    immutables: Optional[Dict[str, Any]] = None
    balance: Optional[str] = None


def _escrow_view(node: XSwapNode, address: str) -> EscrowResponse:
    if not node.is_escrow(address):
        raise http_error(ContractNotFound(f"no escrow at {address}"))

    state = node.ledger.view(address, "get_state")
    if state == EscrowState.UNINITIALIZED:
        return EscrowResponse(address=address, state=state.value)

    immutables = node.ledger.view(address, "get_immutables")
    return EscrowResponse(
        address=address,
        state=state.value,
        immutables=immutables.to_dict(),
        balance=str(node.ledger.balance(immutables.token, address)),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/api/escrows", response_model=EscrowResponse)
async def create_escrow(req: EscrowCreateRequest,
                        node: XSwapNode = Depends(get_node),
                        config: ServerConfig = Depends(get_config)):
    """Deploy and initialize an escrow. It still has to be funded."""
    cancel_at = req.cancellation_timestamp
    if cancel_at is None:
        cancel_at = node.ledger.timestamp + config.escrow_duration

    immutables = contract_call(Immutables.from_dict, {
        "hashlock": req.hashlock,
        "maker": req.maker,
        "taker": req.taker,
        "token": req.token,
        "amount": req.amount,
        "cancellation_timestamp": cancel_at,
    })
    salt = hex_bytes32(req.salt, "salt") if req.salt else secrets.token_bytes(32)

    address = contract_call(node.ledger.call, node.escrow_factory, "deploy_escrow", immutables, salt)
    log.info(f"API escrow {address}: {immutables.amount} {immutables.token}, "
             f"{immutables.maker} -> {immutables.taker}")
    return _escrow_view(node, address)


@router.get("/api/escrows/{address}", response_model=EscrowResponse)
async def get_escrow(address: str, node: XSwapNode = Depends(get_node)):
    return _escrow_view(node, address)


@router.post("/api/escrows/{address}/withdraw", response_model=EscrowResponse)
async def withdraw_escrow(address: str, req: WithdrawRequest, node: XSwapNode = Depends(get_node)):
    """Release funds to the taker by revealing the secret. Taker must sign."""
    if not node.is_escrow(address):
        raise http_error(ContractNotFound(f"no escrow at {address}"))
    try:
        secret = bytes.fromhex(req.secret[2:] if req.secret.startswith("0x") else req.secret)
    except ValueError:
        raise bad_request("secret must be hex")

    contract_call(node.ledger.call, address, "withdraw", secret, signers=req.signers)
    return _escrow_view(node, address)


@router.post("/api/escrows/{address}/cancel", response_model=EscrowResponse)
async def cancel_escrow(address: str, req: SignedRequest, node: XSwapNode = Depends(get_node)):
    """Refund the maker once the cancellation timestamp is reached. Maker must sign."""
    if not node.is_escrow(address):
        raise http_error(ContractNotFound(f"no escrow at {address}"))

    contract_call(node.ledger.call, address, "cancel", signers=req.signers)
    return _escrow_view(node, address)
