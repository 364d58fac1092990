"""
Fee kernels (deterministic, integer-only).

All fees are expressed in basis points and rounded down, so the fee side of a
split never exceeds its exact share and `net + fee == amount` always holds.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import FeeTooHighError, InvalidAmountError


BPS_DENOM = 10_000


def _require_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise InvalidAmountError(f"{name} must be non-negative: {value}")


def _require_bps(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise InvalidAmountError(f"{name} must be non-negative: {value}")
    if value > BPS_DENOM:
        raise FeeTooHighError(value, BPS_DENOM)


@dataclass(frozen=True)
class FeeResult:
    net_amount: int
    fee: int

    def __post_init__(self) -> None:
        for name, v in (("net_amount", self.net_amount), ("fee", self.fee)):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")


@dataclass(frozen=True)
class ProtocolFeeSplit:
    protocol_fee: int
    remaining: int


def calculate_fee(amount: int, fee_bps: int) -> int:
    """floor(amount * fee_bps / 10_000)."""
    _require_amount("amount", amount)
    _require_bps("fee_bps", fee_bps)
    return (amount * fee_bps) // BPS_DENOM


def apply_fee(amount: int, fee_bps: int) -> FeeResult:
    fee = calculate_fee(amount, fee_bps)
    return FeeResult(net_amount=amount - fee, fee=fee)


def split_protocol_fee(amount: int, protocol_fee_bps: int) -> ProtocolFeeSplit:
    """Carve the floored `protocol_fee_bps` share out of `amount`; the rest keeps the dust."""
    fee = calculate_fee(amount, protocol_fee_bps)
    return ProtocolFeeSplit(protocol_fee=fee, remaining=amount - fee)


def require_valid_fee(fee_bps: int, max_fee_bps: int, message: str | None = None) -> None:
    """Raise `FeeTooHighError` if `fee_bps` exceeds `max_fee_bps`."""
    if fee_bps > max_fee_bps:
        raise FeeTooHighError(fee_bps, max_fee_bps, message)
