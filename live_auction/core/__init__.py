"""Core building blocks shared by every layer."""

from .exceptions import (
    AuctionError,
    BidTooLowError,
    BudgetExceededError,
    ConflictError,
    InternalError,
    NotFoundError,
    OperatorRequiredError,
    ValidationError,
)

__all__ = [
    "AuctionError",
    "BidTooLowError",
    "BudgetExceededError",
    "ConflictError",
    "InternalError",
    "NotFoundError",
    "OperatorRequiredError",
    "ValidationError",
]
