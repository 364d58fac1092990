"""Invariant checkers for the pool.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass). Transition-level checks
take the PRE-state as well.
"""

from __future__ import annotations

from typing import Callable

from .types import (
    MAX_CRR_PPM,
    MAX_TRADE_BPS_LIMIT,
    MAX_TRADE_FEE_BPS,
    MIN_CRR_PPM,
    PoolState,
)


def inv_reserve_non_negative(s: PoolState) -> bool:
    return s.reserve_balance >= 0


def inv_flat_below_threshold(s: PoolState) -> bool:
    if s.has_graduated:
        return True
    return s.reserve_balance < s.params.flat_curve_threshold


def inv_params_in_bounds(s: PoolState) -> bool:
    p = s.params
    return (
        MIN_CRR_PPM <= p.crr_ppm <= MAX_CRR_PPM
        and 0 <= p.trade_fee_bps <= MAX_TRADE_FEE_BPS
        and 0 < p.max_trade_bps <= MAX_TRADE_BPS_LIMIT
    )


_ALL_INVARIANTS: list[tuple[str, Callable[[PoolState], bool]]] = [
    ("reserve_non_negative", inv_reserve_non_negative),
    ("flat_below_threshold", inv_flat_below_threshold),
    ("params_in_bounds", inv_params_in_bounds),
]


def check_all(state: PoolState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [name for name, fn in _ALL_INVARIANTS if not fn(state)]


def check_transition(
    pre: PoolState,
    post: PoolState,
    *,
    held_balance: int,
    expected_reserve_delta: int | None = None,
) -> list[str]:
    """State invariants on `post` plus the checks that relate it to `pre`.

    `held_balance` is the reserve asset actually held by the pool account after
    the call's transfers; the accounted reserve may never exceed it.
    """
    violations = check_all(post)
    if pre.has_graduated and not post.has_graduated:
        violations.append("graduation_monotonic")
    if pre.reserve_balance > 0 and post.reserve_balance <= 0:
        violations.append("reserve_positive_once_seeded")
    if post.reserve_balance > held_balance:
        violations.append("reserve_backed")
    if (
        expected_reserve_delta is not None
        and post.reserve_balance - pre.reserve_balance != expected_reserve_delta
    ):
        violations.append("reserve_delta")
    return violations
