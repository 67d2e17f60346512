"""FastAPI dependencies: the auction engine and the operator gate.

The engine and settings live on app.state (set by create_app), so tests can
build an app around an in-memory database without touching module globals.
"""

import secrets

from fastapi import Depends, Header, Request

from live_auction.auction.engine import AuctionEngine
from live_auction.config.settings import Settings
from live_auction.core.exceptions import OperatorRequiredError

OPERATOR_HEADER = "X-Operator-Token"


def get_engine(request: Request) -> AuctionEngine:
    return request.app.state.engine


def get_config(request: Request) -> Settings:
    return request.app.state.config


def is_operator(
    config: Settings = Depends(get_config),
    x_operator_token: str | None = Header(None, alias=OPERATOR_HEADER),
) -> bool:
    """Whether the caller holds the operator token.

    With no token configured every caller is an operator (local development).
    """
    if not config.operator_token:
        return True
    if not x_operator_token:
        return False
    return secrets.compare_digest(x_operator_token, config.operator_token)


def require_operator(operator: bool = Depends(is_operator)) -> None:
    if not operator:
        raise OperatorRequiredError(f"Operator access required ({OPERATOR_HEADER} header)")
