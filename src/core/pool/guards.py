"""Guard functions for pool operations.

Each guard checks one precondition against the PRE-state and raises the
matching error; none of them mutate anything.
"""

from __future__ import annotations

from typing import Any

from ..errors import (
    ExpiredError,
    InsufficientBalanceError,
    InvalidAmountError,
    PausedError,
    ReserveDepletionError,
    SellsDisabledError,
    SlippageExceededError,
    TradeSizeExceededError,
    ZeroAddressError,
)
from .pricing import max_trade_amount
from .types import PoolState


def require_positive(amount: Any, message: str) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount <= 0:
        raise InvalidAmountError(message)


def require_non_negative(amount: Any, name: str) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"{name} must be an int")
    if amount < 0:
        raise InvalidAmountError(f"{name} must be non-negative: {amount}")


def require_account(account: Any, message: str = "Invalid recipient") -> None:
    if not isinstance(account, str) or not account:
        raise ZeroAddressError(message)


def require_not_paused(state: PoolState) -> None:
    if state.paused:
        raise PausedError()


def require_not_expired(deadline: int, now: int) -> None:
    if now > deadline:
        raise ExpiredError(deadline, now)


def require_sells_enabled(state: PoolState, now: int) -> None:
    if now < state.buy_only_until:
        raise SellsDisabledError(state.buy_only_until)


def require_within_trade_limit(state: PoolState, amount: int) -> None:
    """Cap a single trade at `max_trade_bps` of the current reserve.

    Applies only on the bonding curve; the flat bootstrap starts from an
    empty reserve.
    """
    if not state.has_graduated:
        return
    limit = max_trade_amount(state)
    if amount > limit:
        raise TradeSizeExceededError(amount, limit)


def require_reserve_remains(state: PoolState, reserve_out: int) -> None:
    """A seeded reserve is never paid out in full."""
    if state.reserve_balance > 0 and reserve_out >= state.reserve_balance:
        raise ReserveDepletionError(reserve_out, state.reserve_balance)


def require_min_out(actual: int, minimum: int) -> None:
    if actual < minimum:
        raise SlippageExceededError(actual, minimum)


def require_balance(balance: int, amount: int, what: str) -> None:
    if amount > balance:
        raise InsufficientBalanceError(f"Insufficient {what}: {balance} < {amount}")
