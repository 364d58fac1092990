"""
Core AMM algorithms: fixed-point math, bonding curve, pool engine, revenue routing
"""

from .bonding_curve import (
    PriceImpact,
    calculate_buy,
    calculate_buy_impact,
    calculate_sell,
    calculate_sell_impact,
    calculate_spot_price,
)
from .fees import apply_fee, calculate_fee, require_valid_fee, split_protocol_fee
from .fixed_point import ONE, exp, ln, pow
from .infra_reserve import InfraPayment, InfrastructureReserve, ModelAccounting
from .pool import CurveParameters, Phase, PoolState, PoolStateMachine
from .revenue_splitter import BatchDeposit, FeeSplit, RevenueSplitter

__all__ = [
    "PriceImpact",
    "calculate_buy",
    "calculate_buy_impact",
    "calculate_sell",
    "calculate_sell_impact",
    "calculate_spot_price",
    "apply_fee",
    "calculate_fee",
    "require_valid_fee",
    "split_protocol_fee",
    "ONE",
    "exp",
    "ln",
    "pow",
    "InfraPayment",
    "InfrastructureReserve",
    "ModelAccounting",
    "CurveParameters",
    "Phase",
    "PoolState",
    "PoolStateMachine",
    "BatchDeposit",
    "FeeSplit",
    "RevenueSplitter",
]
