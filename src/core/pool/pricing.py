"""Pure pricing for the pool: phase-aware quotes, spot price and impact.

Nothing here mutates state; every function takes the current `PoolState` and
the token supply read from the external token.
"""

from __future__ import annotations

from dataclasses import replace

from ..bonding_curve import BPS_DENOM, PriceImpact, calculate_buy, calculate_sell, calculate_spot_price
from ..fees import apply_fee
from ..fixed_point import ONE
from .types import BuyQuote, PhaseInfo, PoolState, SellQuote


def spot_price(state: PoolState, supply: int) -> int:
    """Flat price before graduation, curve spot price after."""
    if not state.has_graduated:
        return state.params.flat_curve_price
    return calculate_spot_price(supply, state.reserve_balance, state.params.crr_ppm)


def max_trade_amount(state: PoolState) -> int:
    return (state.reserve_balance * state.params.max_trade_bps) // BPS_DENOM


def quote_buy(state: PoolState, supply: int, amount_in: int) -> BuyQuote:
    """
    Tokens minted for `amount_in` reserve units, after the trade fee.

    Before graduation the net amount is priced at the flat price. A buy whose
    net amount carries the reserve to the threshold is split: the part up to
    the threshold is priced flat, the remainder on the curve starting from the
    post-flat supply and the threshold reserve.
    """
    p = state.params
    charged = apply_fee(amount_in, p.trade_fee_bps)
    net = charged.net_amount

    if state.has_graduated:
        tokens = calculate_buy(supply, state.reserve_balance, net, p.crr_ppm)
        return BuyQuote(
            amount_in=amount_in, fee=charged.fee, net_amount=net,
            tokens_out=tokens, curve_tokens=tokens,
        )

    if state.reserve_balance + net < p.flat_curve_threshold:
        tokens = (net * ONE) // p.flat_curve_price
        return BuyQuote(
            amount_in=amount_in, fee=charged.fee, net_amount=net,
            tokens_out=tokens, flat_tokens=tokens,
        )

    flat_part = max(p.flat_curve_threshold - state.reserve_balance, 0)
    flat_tokens = (flat_part * ONE) // p.flat_curve_price
    curve_tokens = calculate_buy(
        supply + flat_tokens,
        state.reserve_balance + flat_part,
        net - flat_part,
        p.crr_ppm,
    )
    return BuyQuote(
        amount_in=amount_in,
        fee=charged.fee,
        net_amount=net,
        tokens_out=flat_tokens + curve_tokens,
        flat_tokens=flat_tokens,
        curve_tokens=curve_tokens,
        graduates=True,
    )


def quote_sell(state: PoolState, supply: int, tokens_in: int) -> SellQuote:
    """Gross reserve released for `tokens_in`, with the fee taken from it."""
    p = state.params
    if state.has_graduated:
        gross = calculate_sell(supply, state.reserve_balance, tokens_in, p.crr_ppm)
    else:
        gross = min((tokens_in * p.flat_curve_price) // ONE, state.reserve_balance)
    charged = apply_fee(gross, p.trade_fee_bps)
    return SellQuote(tokens_in=tokens_in, reserve_out=gross, fee=charged.fee, net_out=charged.net_amount)


def buy_impact(state: PoolState, supply: int, amount_in: int) -> PriceImpact:
    quote = quote_buy(state, supply, amount_in)
    before = spot_price(state, supply)
    post = replace(
        state,
        reserve_balance=state.reserve_balance + quote.net_amount,
        has_graduated=state.has_graduated or quote.graduates,
    )
    after = spot_price(post, supply + quote.tokens_out)
    impact = ((after - before) * BPS_DENOM) // before if before > 0 else 0
    return PriceImpact(amount_out=quote.tokens_out, impact_bps=max(impact, 0), new_spot_price=after)


def sell_impact(state: PoolState, supply: int, tokens_in: int) -> PriceImpact:
    quote = quote_sell(state, supply, tokens_in)
    if supply == 0 or tokens_in >= supply:
        return PriceImpact(amount_out=quote.reserve_out, impact_bps=BPS_DENOM, new_spot_price=0)
    before = spot_price(state, supply)
    post = replace(state, reserve_balance=state.reserve_balance - quote.reserve_out)
    after = spot_price(post, supply - tokens_in)
    impact = ((before - after) * BPS_DENOM) // before if before > 0 else 0
    return PriceImpact(
        amount_out=quote.reserve_out,
        impact_bps=min(max(impact, 0), BPS_DENOM),
        new_spot_price=after,
    )


def phase_info(state: PoolState) -> PhaseInfo:
    p = state.params
    percent = min((state.reserve_balance * 100) // p.flat_curve_threshold, 100)
    if state.has_graduated:
        percent = 100
    return PhaseInfo(
        phase=state.phase,
        reserve_balance=state.reserve_balance,
        flat_curve_threshold=p.flat_curve_threshold,
        flat_curve_price=p.flat_curve_price,
        percent_to_threshold=percent,
    )
