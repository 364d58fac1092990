"""
Bancor-style bonding curve kernels (deterministic, integer-only).

Units:
- `supply` and token amounts are 18-decimal integers (wei).
- `reserve` and reserve amounts are base units of the reserve asset.
- `crr_ppm` is the constant reserve ratio in parts per million.
- Spot prices are reserve base units per one whole token (`ONE` wei).

Rounding always favours the pool: buys round the minted amount down, sells
round the paid-out reserve down, so a buy followed by selling the same tokens
never returns more than was deposited.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidAmountError, ParameterOutOfBoundsError
from .fixed_point import ONE, pow_down, pow_up

PPM = 1_000_000
BPS_DENOM = 10_000


@dataclass(frozen=True)
class PriceImpact:
    amount_out: int
    impact_bps: int
    new_spot_price: int


def _require_non_negative(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise InvalidAmountError(f"{name} must be non-negative: {value}")


def _require_crr(crr_ppm: int) -> None:
    if not isinstance(crr_ppm, int) or isinstance(crr_ppm, bool):
        raise TypeError("crr_ppm must be an int")
    if not (0 < crr_ppm <= PPM):
        raise ParameterOutOfBoundsError(f"crr_ppm must be in (0, {PPM}]: {crr_ppm}")


def _check(supply: int, reserve: int, amount: int, crr_ppm: int) -> None:
    _require_non_negative("supply", supply)
    _require_non_negative("reserve", reserve)
    _require_non_negative("amount", amount)
    _require_crr(crr_ppm)


def calculate_spot_price(supply: int, reserve: int, crr_ppm: int) -> int:
    """reserve / (crr * supply), per whole token. Zero supply prices at 0."""
    _check(supply, reserve, 0, crr_ppm)
    if supply == 0:
        return 0
    return (reserve * ONE * PPM) // (crr_ppm * supply)


def calculate_buy(supply: int, reserve: int, deposit: int, crr_ppm: int) -> int:
    """
    Tokens minted for `deposit` reserve units:

        supply * ((1 + deposit / reserve) ** crr - 1)

    Returns 0 for an empty pool (zero reserve or supply) or a zero deposit.
    """
    _check(supply, reserve, deposit, crr_ppm)
    if supply == 0 or reserve == 0 or deposit == 0:
        return 0

    ratio = ONE + (deposit * ONE) // reserve
    weight = (crr_ppm * ONE) // PPM
    growth = pow_down(ratio, weight)
    if growth <= ONE:
        return 0
    return (supply * (growth - ONE)) // ONE


def calculate_sell(supply: int, reserve: int, tokens_in: int, crr_ppm: int) -> int:
    """
    Gross reserve paid out for burning `tokens_in`:

        reserve * (1 - (1 - tokens_in / supply) ** (1 / crr))

    Returns 0 when there is nothing to sell against or `tokens_in` exceeds
    the supply. Selling the whole supply returns the whole reserve.
    """
    _check(supply, reserve, tokens_in, crr_ppm)
    if supply == 0 or tokens_in == 0 or tokens_in > supply:
        return 0
    if tokens_in == supply:
        return reserve

    ratio = ONE - (tokens_in * ONE) // supply
    inv_weight = (PPM * ONE) // crr_ppm
    remaining = pow_up(ratio, inv_weight)
    if remaining >= ONE:
        return 0
    out = (reserve * (ONE - remaining)) // ONE
    return min(out, reserve)


def buy_impact(supply: int, reserve: int, deposit: int, crr_ppm: int) -> PriceImpact:
    tokens = calculate_buy(supply, reserve, deposit, crr_ppm)
    before = calculate_spot_price(supply, reserve, crr_ppm)
    after = calculate_spot_price(supply + tokens, reserve + deposit, crr_ppm)
    impact = ((after - before) * BPS_DENOM) // before if before > 0 else 0
    return PriceImpact(amount_out=tokens, impact_bps=max(impact, 0), new_spot_price=after)


def sell_impact(supply: int, reserve: int, tokens_in: int, crr_ppm: int) -> PriceImpact:
    out = calculate_sell(supply, reserve, tokens_in, crr_ppm)
    if supply > 0 and tokens_in >= supply:
        return PriceImpact(amount_out=out, impact_bps=BPS_DENOM, new_spot_price=0)
    before = calculate_spot_price(supply, reserve, crr_ppm)
    after = calculate_spot_price(supply - tokens_in, reserve - out, crr_ppm)
    impact = ((before - after) * BPS_DENOM) // before if before > 0 else 0
    return PriceImpact(
        amount_out=out,
        impact_bps=min(max(impact, 0), BPS_DENOM),
        new_spot_price=after,
    )


def calculate_buy_impact(supply: int, reserve: int, deposit: int, crr_ppm: int) -> int:
    """Price increase caused by a buy, in basis points of the current price."""
    return buy_impact(supply, reserve, deposit, crr_ppm).impact_bps


def calculate_sell_impact(supply: int, reserve: int, tokens_in: int, crr_ppm: int) -> int:
    """Price decrease caused by a sell, in bps. Selling the whole supply is 10_000."""
    return sell_impact(supply, reserve, tokens_in, crr_ppm).impact_bps
