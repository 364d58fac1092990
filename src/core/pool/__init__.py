"""`pool`: the model-token pool state machine.

Layout follows the functional-core / imperative-shell split:
- `types`: frozen state, parameters, quotes and events,
- `pricing`: phase-aware quotes, spot price and impact (pure),
- `guards`: preconditions, one raising function each,
- `updates`: PRE-state -> POST-state transitions (pure),
- `invariants`: `check_all()` / `check_transition()`,
- `effects`: the undo journal and the locked single-entry section,
- `engine`: `PoolStateMachine`, the locked, all-or-nothing shell.
"""

from ..interfaces import MintBurnToken, ReserveAsset
from .effects import EffectJournal, GuardedSection
from .engine import PoolStateMachine, system_clock
from .invariants import check_all, check_transition
from .types import (
    DEFAULT_IBR_DURATION_SECONDS,
    DEFAULT_MAX_TRADE_BPS,
    MAX_CRR_PPM,
    MAX_TRADE_BPS_LIMIT,
    MAX_TRADE_FEE_BPS,
    MIN_CRR_PPM,
    BuyQuote,
    CurveParameters,
    Event,
    Phase,
    PhaseInfo,
    PoolEvent,
    PoolState,
    PoolStats,
    SellQuote,
    TradeInfo,
)

__all__ = [
    "PoolStateMachine",
    "system_clock",
    "EffectJournal",
    "GuardedSection",
    "MintBurnToken",
    "ReserveAsset",
    "check_all",
    "check_transition",
    "DEFAULT_IBR_DURATION_SECONDS",
    "DEFAULT_MAX_TRADE_BPS",
    "MAX_CRR_PPM",
    "MAX_TRADE_BPS_LIMIT",
    "MAX_TRADE_FEE_BPS",
    "MIN_CRR_PPM",
    "BuyQuote",
    "CurveParameters",
    "Event",
    "Phase",
    "PhaseInfo",
    "PoolEvent",
    "PoolState",
    "PoolStats",
    "SellQuote",
    "TradeInfo",
]
