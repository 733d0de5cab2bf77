"""
Shared helpers for the xswap API routers.
"""

import logging
from typing import Any, Callable, Union

from fastapi import HTTPException, Request

from ..config import ServerConfig
from ..core import to_bytes32
from ..errors import (
    AlreadyInitialized,
    ContractError,
    ContractNotFound,
    EscrowResolved,
    NotAuthorized,
    OrderAlreadyFilled,
    OrderCancelled,
)
from ..node import XSwapNode

log = logging.getLogger(__name__)

# str accepted for amounts beyond JSON's safe integer range
Amount = Union[int, str]

_STATUS_BY_ERROR = (
    (NotAuthorized, 403),
    (ContractNotFound, 404),
    ((AlreadyInitialized, EscrowResolved, OrderAlreadyFilled, OrderCancelled), 409),
)


def status_for(error: ContractError) -> int:
    for kinds, status in _STATUS_BY_ERROR:
        if isinstance(error, kinds):
            return status
    return 400


def http_error(error: ContractError) -> HTTPException:
    return HTTPException(status_for(error), error.to_dict())


def bad_request(message: str) -> HTTPException:
    return HTTPException(400, {"error": "BadRequest", "code": 0, "message": message})


def get_node(request: Request) -> XSwapNode:
    return request.app.state.node


def contract_call(fn: Callable, *args, **kwargs) -> Any:
    """Run a ledger operation, translating protocol errors to HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except ContractError as e:
        raise http_error(e)


def get_config(request: Request) -> ServerConfig:
    return request.app.state.config


def hex_bytes32(value: str, field: str) -> bytes:
    try:
        return to_bytes32(value, field)
    except (TypeError, ValueError) as e:
        raise bad_request(str(e))
