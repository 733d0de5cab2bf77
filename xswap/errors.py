"""
Error taxonomy for xswap contracts.

Every failure aborts the whole invocation: the host ledger rolls back storage,
balances and events, and the caller gets one of the structured errors below.
Codes are stable and safe to expose over the API.
"""

from enum import IntEnum
from typing import Any, Dict


class ErrorCode(IntEnum):
    """Stable numeric codes, grouped by component."""
    UNKNOWN = 0
    # Escrow
    ALREADY_INITIALIZED = 1
    NOT_INITIALIZED = 2
    INVALID_SECRET = 3
    NOT_AUTHORIZED = 4
    TIME_PREDICATE_NOT_MET = 5
    NEGATIVE_AMOUNT = 6
    ESCROW_RESOLVED = 7
    INVALID_IMMUTABLES = 8
    # Pricing
    INVALID_TIME_RANGE = 20
    INVALID_AMOUNT_RANGE = 21
    ARITHMETIC_OVERFLOW = 22
    # Orders / transfers
    ORDER_ALREADY_FILLED = 40
    ORDER_CANCELLED = 41
    INSUFFICIENT_BALANCE = 42
    INVALID_ORDER = 43
    TRANSFER_FAILED = 44
    # Host / deployment
    DEPLOYMENT_FAILED = 60
    CONTRACT_NOT_FOUND = 61


class ContractError(Exception):
    """Base class for all protocol failures."""

    code: ErrorCode = ErrorCode.UNKNOWN
    default_message = "contract error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.kind,
            "code": int(self.code),
            "message": self.message,
        }


# =============================================================================
# Escrow
# =============================================================================

class AlreadyInitialized(ContractError):
    code = ErrorCode.ALREADY_INITIALIZED
    default_message = "contract already initialized"


class NotInitialized(ContractError):
    code = ErrorCode.NOT_INITIALIZED
    default_message = "contract not initialized"


class InvalidSecret(ContractError):
    code = ErrorCode.INVALID_SECRET
    default_message = "secret does not match hashlock"


class NotAuthorized(ContractError):
    code = ErrorCode.NOT_AUTHORIZED
    default_message = "missing required authorization"


class TimePredicateNotMet(ContractError):
    code = ErrorCode.TIME_PREDICATE_NOT_MET
    default_message = "cancellation timestamp not reached"


class NegativeAmount(ContractError):
    code = ErrorCode.NEGATIVE_AMOUNT
    default_message = "amount must be >= 0"


class EscrowResolved(ContractError):
    """Escrow already withdrawn or cancelled."""
    code = ErrorCode.ESCROW_RESOLVED
    default_message = "escrow already resolved"


class InvalidImmutables(ContractError):
    code = ErrorCode.INVALID_IMMUTABLES
    default_message = "malformed escrow immutables"


# =============================================================================
# Pricing
# =============================================================================

class InvalidTimeRange(ContractError):
    code = ErrorCode.INVALID_TIME_RANGE
    default_message = "auction end time must be after start time"


class InvalidAmountRange(ContractError):
    code = ErrorCode.INVALID_AMOUNT_RANGE
    default_message = "amount bounds not ordered for interpolation direction"


class ArithmeticOverflow(ContractError):
    code = ErrorCode.ARITHMETIC_OVERFLOW
    default_message = "arithmetic overflow"


# =============================================================================
# Orders / transfers
# =============================================================================

class OrderAlreadyFilled(ContractError):
    code = ErrorCode.ORDER_ALREADY_FILLED
    default_message = "order already filled"


class OrderCancelled(ContractError):
    code = ErrorCode.ORDER_CANCELLED
    default_message = "order cancelled"


class InsufficientBalance(ContractError):
    code = ErrorCode.INSUFFICIENT_BALANCE
    default_message = "insufficient balance"


class InvalidOrder(ContractError):
    code = ErrorCode.INVALID_ORDER
    default_message = "malformed order"


class TransferFailed(ContractError):
    code = ErrorCode.TRANSFER_FAILED
    default_message = "transfer failed"


# =============================================================================
# Host / deployment
# =============================================================================

class DeploymentFailed(ContractError):
    code = ErrorCode.DEPLOYMENT_FAILED
    default_message = "contract deployment failed"


class ContractNotFound(ContractError):
    code = ErrorCode.CONTRACT_NOT_FOUND
    default_message = "no contract at address"


ERRORS_BY_KIND = {
    cls.__name__: cls
    for cls in (
        AlreadyInitialized, NotInitialized, InvalidSecret, NotAuthorized,
        TimePredicateNotMet, NegativeAmount, EscrowResolved, InvalidImmutables,
        InvalidTimeRange, InvalidAmountRange, ArithmeticOverflow,
        OrderAlreadyFilled, OrderCancelled, InsufficientBalance, InvalidOrder,
        TransferFailed, DeploymentFailed, ContractNotFound,
    )
}
