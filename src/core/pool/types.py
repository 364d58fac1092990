"""Data types for the model-token pool.

All types are frozen dataclasses (immutable). Every transition produces a new
`PoolState`; the engine swaps it in only after the whole call succeeds.

Units/conventions:
- token amounts are 18-decimal integers (wei);
- `reserve_*`, `flat_curve_*` and prices are reserve-asset base units,
  prices per one whole token;
- `*_bps` rates are basis points (1/10_000), `crr_ppm` parts per million;
- timestamps are integer seconds from the injected clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Mapping

from ..errors import InvalidAmountError, ParameterOutOfBoundsError
from ..fees import require_valid_fee

SECONDS_PER_DAY = 86_400
DEFAULT_IBR_DURATION_SECONDS = 7 * SECONDS_PER_DAY

MIN_CRR_PPM = 50_000
MAX_CRR_PPM = 500_000
MAX_TRADE_FEE_BPS = 1_000
DEFAULT_MAX_TRADE_BPS = 2_000
MAX_TRADE_BPS_LIMIT = 5_000


@unique
class Phase(Enum):
    FLAT_PRICE = "flat_price"
    BONDING_CURVE = "bonding_curve"


@unique
class Event(Enum):
    """One member per emitted pool event."""
    BUY = "Buy"
    SELL = "Sell"
    FEES_DEPOSITED = "FeesDeposited"
    PHASE_TRANSITION = "PhaseTransition"
    PARAMETERS_UPDATED = "ParametersUpdated"
    MAX_TRADE_BPS_UPDATED = "MaxTradeBpsUpdated"
    PAUSED = "Paused"
    UNPAUSED = "Unpaused"
    TREASURY_WITHDRAWN = "TreasuryWithdrawn"


def _require_int(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def validate_crr(crr_ppm: int) -> None:
    _require_int("crr_ppm", crr_ppm)
    if not (MIN_CRR_PPM <= crr_ppm <= MAX_CRR_PPM):
        raise ParameterOutOfBoundsError("CRR out of bounds")


def validate_trade_fee(trade_fee_bps: int) -> None:
    _require_int("trade_fee_bps", trade_fee_bps)
    if trade_fee_bps < 0:
        raise ParameterOutOfBoundsError("Trade fee must be non-negative")
    require_valid_fee(trade_fee_bps, MAX_TRADE_FEE_BPS, "Trade fee too high")


def validate_max_trade_bps(max_trade_bps: int) -> None:
    _require_int("max_trade_bps", max_trade_bps)
    if max_trade_bps <= 0:
        raise ParameterOutOfBoundsError("Max trade bps must be > 0")
    if max_trade_bps > MAX_TRADE_BPS_LIMIT:
        raise ParameterOutOfBoundsError("Max trade bps too high")


@dataclass(frozen=True)
class CurveParameters:
    """Per-pool economic parameters, validated on construction."""

    crr_ppm: int
    trade_fee_bps: int
    flat_curve_threshold: int
    flat_curve_price: int
    ibr_duration_seconds: int = DEFAULT_IBR_DURATION_SECONDS
    max_trade_bps: int = DEFAULT_MAX_TRADE_BPS

    def __post_init__(self) -> None:
        validate_crr(self.crr_ppm)
        validate_trade_fee(self.trade_fee_bps)
        validate_max_trade_bps(self.max_trade_bps)
        for name, v in (
            ("flat_curve_threshold", self.flat_curve_threshold),
            ("flat_curve_price", self.flat_curve_price),
        ):
            _require_int(name, v)
            if v <= 0:
                raise InvalidAmountError(f"{name} must be > 0: {v}")
        _require_int("ibr_duration_seconds", self.ibr_duration_seconds)
        if self.ibr_duration_seconds < 0:
            raise InvalidAmountError(
                f"ibr_duration_seconds must be non-negative: {self.ibr_duration_seconds}"
            )


@dataclass(frozen=True)
class PoolState:
    """Complete mutable-by-replacement state of one pool."""

    params: CurveParameters
    reserve_balance: int = 0
    buy_only_until: int = 0
    has_graduated: bool = False
    paused: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.params, CurveParameters):
            raise TypeError("params must be CurveParameters")
        _require_int("reserve_balance", self.reserve_balance)
        _require_int("buy_only_until", self.buy_only_until)

    @property
    def phase(self) -> Phase:
        return Phase.BONDING_CURVE if self.has_graduated else Phase.FLAT_PRICE


@dataclass(frozen=True)
class PoolEvent:
    event: Event
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BuyQuote:
    """Full breakdown of a buy against a given state and supply."""

    amount_in: int
    fee: int
    net_amount: int
    tokens_out: int
    flat_tokens: int = 0
    curve_tokens: int = 0
    graduates: bool = False


@dataclass(frozen=True)
class SellQuote:
    tokens_in: int
    reserve_out: int  # gross, before the trade fee
    fee: int
    net_out: int


@dataclass(frozen=True)
class PhaseInfo:
    phase: Phase
    reserve_balance: int
    flat_curve_threshold: int
    flat_curve_price: int
    percent_to_threshold: int


@dataclass(frozen=True)
class PoolStats:
    reserve_balance: int
    token_supply: int
    spot_price: int
    crr_ppm: int
    trade_fee_bps: int


@dataclass(frozen=True)
class TradeInfo:
    sells_enabled: bool
    buy_only_until: int
    paused: bool
