"""Custom exceptions for the auction engine.

Every failure the engine reports is an AuctionError subclass carrying:

1. kind: a machine-readable identifier the API returns as the "error" field
2. message: human-readable text safe to show in the auction UI
3. context: extra fields clients need to react (e.g. the team's remaining budget)

Budget and conflict errors are expected during a live auction - two teams
racing for the same lot, a team bidding past its wallet - and are displayed
inline. Not-found and internal errors are unexpected and get logged with full
context by the caller.

Usage Examples:
- raise NotFoundError(f"Team {team_id} not found", team_id=team_id)
- raise BudgetExceededError(remaining_budget=340, team_id=team.id)
"""

from typing import Any


class AuctionError(Exception):
    """Base exception for auction engine errors."""

    kind = "auction_error"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {"error": self.kind, "message": self.message, **self.context}


class ValidationError(AuctionError):
    """Raised for missing or malformed input, before any I/O happens."""

    kind = "validation_error"
    status_code = 422


class NotFoundError(AuctionError):
    """Raised when a referenced team or player does not exist."""

    kind = "not_found"
    status_code = 404


class ConflictError(AuctionError):
    """Raised when the lot state does not allow the operation.

    Common Scenarios:
    - Starting a lot while another player is already being auctioned
    - Resolving a player that a concurrent request already sold
    - Resetting bids when no lot is active
    """

    kind = "conflict"
    status_code = 409


class BidTooLowError(ConflictError):
    """Raised when a bid does not reach the minimum legal next bid.

    This is a conflict rather than a validation error: the amount was valid
    when the client computed it, but another team's bid committed first.
    """

    kind = "bid_too_low"

    def __init__(self, amount: int, minimum_bid: int, **context: Any):
        super().__init__(
            f"Bid of {amount} is below the minimum bid of {minimum_bid}",
            amount=amount,
            minimum_bid=minimum_bid,
            **context,
        )
        self.minimum_bid = minimum_bid


class BudgetExceededError(AuctionError):
    """Raised when a bid or sale exceeds the team's remaining budget."""

    kind = "budget_exceeded"
    status_code = 409

    def __init__(self, remaining_budget: int, **context: Any):
        super().__init__(
            f"Not enough budget. Remaining: {remaining_budget} Pts",
            remaining_budget=remaining_budget,
            **context,
        )
        self.remaining_budget = remaining_budget


class OperatorRequiredError(AuctionError):
    """Raised when a non-operator calls an operator-only action."""

    kind = "operator_required"
    status_code = 403


class InternalError(AuctionError):
    """Raised when persistence fails unexpectedly."""

    kind = "internal_error"
    status_code = 500
