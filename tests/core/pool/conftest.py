from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import pytest

from src.core.pool import CurveParameters, PoolStateMachine
from src.integration.capabilities import LedgerAsset, LedgerToken, MintCapability

USDC = 10**6
TOKEN = 10**18

T0 = 1_700_000_000
TREASURY = "treasury"
FUNDED = ("alice", "bob")
FUNDING = 1_000_000 * USDC


class FakeClock:
    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def make_params(**overrides: Any) -> CurveParameters:
    values = dict(
        crr_ppm=100_000,
        trade_fee_bps=25,
        flat_curve_threshold=1_000 * USDC,
        flat_curve_price=USDC // 100,
    )
    values.update(overrides)
    return CurveParameters(**values)


@dataclass
class PoolEnv:
    clock: FakeClock
    asset: LedgerAsset
    token: LedgerToken
    cap: MintCapability
    pool: PoolStateMachine

    def buy(self, amount: int, *, who: str = "alice", min_out: int = 0) -> int:
        return self.pool.buy(amount, min_out, who, self.clock.now + 60, sender=who)

    def sell(self, tokens: int, *, who: str = "alice", min_out: int = 0) -> int:
        return self.pool.sell(tokens, min_out, who, self.clock.now + 60, sender=who)

    def end_ibr(self) -> None:
        self.clock.now = max(self.clock.now, self.pool.state.buy_only_until)

    def usdc(self, account: str) -> int:
        return self.asset.balance_of(account)

    def tokens(self, account: str) -> int:
        return self.token.balance_of(account)


def build_env(asset: Optional[LedgerAsset] = None, **param_overrides: Any) -> PoolEnv:
    clock = FakeClock()
    asset = asset if asset is not None else LedgerAsset("USDC")
    for account in FUNDED:
        asset.credit(account, FUNDING)
    token = LedgerToken("MODEL-1")
    pool_id = "model-1"
    cap = token.issue_mint_capability(f"pool:{pool_id}")
    pool = PoolStateMachine(
        pool_id,
        token=cap,
        asset=asset,
        treasury=TREASURY,
        params=make_params(**param_overrides),
        clock=clock,
    )
    return PoolEnv(clock=clock, asset=asset, token=token, cap=cap, pool=pool)


@pytest.fixture
def make_env() -> Callable[..., PoolEnv]:
    return build_env


@pytest.fixture
def env() -> PoolEnv:
    return build_env()


@pytest.fixture
def feeless() -> PoolEnv:
    return build_env(trade_fee_bps=0)


@pytest.fixture
def graduated(feeless: PoolEnv) -> PoolEnv:
    """Fee-free pool on the curve: 10_000 tokens out, 1_000 USDC reserve, IBR over."""
    feeless.buy(100 * USDC)
    feeless.pool.deposit_fees(900 * USDC, sender="bob")
    feeless.end_ibr()
    return feeless


@pytest.fixture
def graduated_with_fee(env: PoolEnv) -> PoolEnv:
    """25 bps pool on the curve: 9_975 tokens out, 1_000 USDC reserve, IBR over."""
    env.buy(100 * USDC)
    env.pool.deposit_fees(1_000 * USDC - env.pool.reserve_balance, sender="bob")
    env.end_ibr()
    return env
