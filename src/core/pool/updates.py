"""State update functions for the pool.

One pure function per mutating operation. Each takes the PRE-state and returns
the POST-state; guards have already passed when these run.
"""

from __future__ import annotations

from dataclasses import replace

from .types import BuyQuote, CurveParameters, PoolState, SellQuote


def _graduated(state: PoolState, reserve: int) -> bool:
    return state.has_graduated or reserve >= state.params.flat_curve_threshold


def apply_buy(state: PoolState, quote: BuyQuote) -> PoolState:
    reserve = state.reserve_balance + quote.net_amount
    return replace(state, reserve_balance=reserve, has_graduated=_graduated(state, reserve))


def apply_sell(state: PoolState, quote: SellQuote) -> PoolState:
    return replace(state, reserve_balance=state.reserve_balance - quote.reserve_out)


def apply_deposit(state: PoolState, amount: int) -> PoolState:
    reserve = state.reserve_balance + amount
    return replace(state, reserve_balance=reserve, has_graduated=_graduated(state, reserve))


def apply_parameters(state: PoolState, crr_ppm: int, trade_fee_bps: int) -> PoolState:
    # CurveParameters re-validates the bounds.
    params: CurveParameters = replace(state.params, crr_ppm=crr_ppm, trade_fee_bps=trade_fee_bps)
    return replace(state, params=params)


def apply_max_trade_bps(state: PoolState, max_trade_bps: int) -> PoolState:
    return replace(state, params=replace(state.params, max_trade_bps=max_trade_bps))


def apply_pause(state: PoolState) -> PoolState:
    return replace(state, paused=True)


def apply_unpause(state: PoolState) -> PoolState:
    return replace(state, paused=False)
