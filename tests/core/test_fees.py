"""Tests for src/core/fees.py."""

from __future__ import annotations

import pytest

from src.core.errors import FeeTooHighError, InvalidAmountError, ParameterOutOfBoundsError
from src.core.fees import (
    BPS_DENOM,
    FeeResult,
    apply_fee,
    calculate_fee,
    require_valid_fee,
    split_protocol_fee,
)
from src.core.pool import CurveParameters
from src.core.pool.types import MAX_TRADE_FEE_BPS, validate_trade_fee


class TestCalculateFee:
    def test_one_percent(self):
        assert calculate_fee(1000, 100) == 10

    def test_rounds_down(self):
        assert calculate_fee(1000, 25) == 2
        assert calculate_fee(99, 100) == 0

    def test_zero_amount_and_zero_bps(self):
        assert calculate_fee(0, 100) == 0
        assert calculate_fee(1000, 0) == 0

    def test_full_bps(self):
        assert calculate_fee(1000, BPS_DENOM) == 1000

    def test_above_full_bps_rejected(self):
        with pytest.raises(FeeTooHighError) as ei:
            calculate_fee(1000, BPS_DENOM + 1)
        assert ei.value.fee_bps == BPS_DENOM + 1
        assert ei.value.max_bps == BPS_DENOM

    def test_fee_too_high_is_bounds_error(self):
        with pytest.raises(ParameterOutOfBoundsError):
            calculate_fee(1, 20_000)

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidAmountError):
            calculate_fee(-1, 100)

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            calculate_fee(True, 100)


class TestApplyFee:
    def test_net_plus_fee_is_amount(self):
        res = apply_fee(100_000_000, 25)
        assert res == FeeResult(net_amount=99_750_000, fee=250_000)
        assert res.net_amount + res.fee == 100_000_000

    def test_fee_result_rejects_negative(self):
        with pytest.raises(ValueError):
            FeeResult(net_amount=-1, fee=0)


class TestSplitProtocolFee:
    def test_split(self):
        split = split_protocol_fee(1000, 300)
        assert split.protocol_fee == 30
        assert split.remaining == 970

    def test_dust_stays_with_remainder(self):
        split = split_protocol_fee(12_345, 8_000)
        assert split.protocol_fee == 9_876
        assert split.remaining == 2_469


class TestRequireValidFee:
    def test_at_limit_ok(self):
        require_valid_fee(1000, 1000)

    def test_over_limit(self):
        with pytest.raises(FeeTooHighError, match="Fee too high"):
            require_valid_fee(1001, 1000)

    def test_custom_message(self):
        with pytest.raises(FeeTooHighError, match="Trade fee too high") as ei:
            require_valid_fee(11, 10, "Trade fee too high")
        assert ei.value.fee_bps == 11
        assert ei.value.max_bps == 10

    def test_pool_fee_bound_uses_fee_check(self):
        validate_trade_fee(MAX_TRADE_FEE_BPS)
        with pytest.raises(FeeTooHighError, match="Trade fee too high") as ei:
            validate_trade_fee(MAX_TRADE_FEE_BPS + 1)
        assert ei.value.max_bps == MAX_TRADE_FEE_BPS

    def test_curve_parameters_reject_high_fee(self):
        with pytest.raises(FeeTooHighError):
            CurveParameters(
                crr_ppm=100_000,
                trade_fee_bps=1_001,
                flat_curve_threshold=1_000,
                flat_curve_price=10,
            )
