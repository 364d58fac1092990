"""Administration, reads, and the all-or-nothing guarantees of PoolStateMachine."""

from __future__ import annotations

import threading

import pytest

from src.core.bonding_curve import calculate_buy, calculate_sell
from src.core.errors import (
    AlreadyPausedError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvariantViolationError,
    NotPausedError,
    ParameterOutOfBoundsError,
    PausedError,
    ReentrantCallError,
    UnauthorizedError,
)
from src.core.pool import Event, Phase, PoolState, PoolStateMachine
from src.integration.capabilities import LedgerAsset

USDC = 10**6
TOKEN = 10**18


class HookedAsset(LedgerAsset):
    """Runs a one-shot callback at the start of the next transfer."""

    def __init__(self, symbol: str) -> None:
        super().__init__(symbol)
        self.hook = None

    def transfer(self, sender, recipient, amount):
        if self.hook is not None:
            hook, self.hook = self.hook, None
            hook()
        super().transfer(sender, recipient, amount)


class HookedMinter:
    """Wraps a mint capability; runs a one-shot callback right after the next mint."""

    def __init__(self, cap) -> None:
        self.cap = cap
        self.after_mint = None

    def mint(self, to, amount):
        self.cap.mint(to, amount)
        if self.after_mint is not None:
            hook, self.after_mint = self.after_mint, None
            hook()

    def burn(self, from_, amount):
        self.cap.burn(from_, amount)

    def total_supply(self):
        return self.cap.total_supply()

    def balance_of(self, account):
        return self.cap.balance_of(account)


# ---------------------------------------------------------------------------
# Pause
# ---------------------------------------------------------------------------

class TestPause:
    def test_pause_blocks_trades(self, env):
        env.buy(USDC)
        env.end_ibr()
        env.pool.pause()
        with pytest.raises(PausedError, match="Pausable: paused"):
            env.buy(USDC)
        with pytest.raises(PausedError):
            env.sell(TOKEN)
        assert env.pool.trade_info().paused is True

    def test_deposit_allowed_while_paused(self, env):
        env.pool.pause()
        env.pool.deposit_fees(USDC, sender="bob")
        assert env.pool.reserve_balance == USDC

    def test_unpause_restores_trading(self, env):
        env.pool.pause()
        env.pool.unpause()
        env.buy(USDC)
        kinds = [ev.event for ev in env.pool.events]
        assert kinds == [Event.PAUSED, Event.UNPAUSED, Event.BUY]

    def test_pause_cycle_keeps_reserve_and_price(self, graduated):
        reserve = graduated.pool.reserve_balance
        price = graduated.pool.spot_price()
        graduated.pool.pause()
        assert graduated.pool.reserve_balance == reserve
        assert graduated.pool.spot_price() == price
        graduated.pool.unpause()
        assert graduated.pool.reserve_balance == reserve
        assert graduated.pool.spot_price() == price

    def test_reads_available_while_paused(self, graduated):
        graduated.pool.pause()
        assert graduated.pool.spot_price() == USDC
        assert graduated.pool.get_buy_quote(10 * USDC) == calculate_buy(
            10_000 * TOKEN, 1_000 * USDC, 10 * USDC, 100_000
        )
        assert graduated.pool.get_sell_quote(100 * TOKEN) == calculate_sell(
            10_000 * TOKEN, 1_000 * USDC, 100 * TOKEN, 100_000
        )
        assert graduated.pool.is_sell_enabled() is True
        assert graduated.pool.trade_info().paused is True

    def test_double_pause(self, env):
        env.pool.pause()
        with pytest.raises(AlreadyPausedError):
            env.pool.pause()

    def test_unpause_when_running(self, env):
        with pytest.raises(NotPausedError, match="Pausable: not paused"):
            env.pool.unpause()


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

class TestParameters:
    def test_set_parameters(self, env):
        env.pool.set_parameters(200_000, 50)
        assert env.pool.params.crr_ppm == 200_000
        assert env.pool.params.trade_fee_bps == 50
        ev = env.pool.events[-1]
        assert ev.event is Event.PARAMETERS_UPDATED
        assert dict(ev.data) == {"crr_ppm": 200_000, "trade_fee_bps": 50}

    @pytest.mark.parametrize("crr", [49_999, 500_001, 0])
    def test_crr_bounds(self, env, crr):
        with pytest.raises(ParameterOutOfBoundsError, match="CRR out of bounds"):
            env.pool.set_parameters(crr, 25)
        assert env.pool.params.crr_ppm == 100_000

    def test_crr_bounds_inclusive(self, env):
        env.pool.set_parameters(50_000, 0)
        env.pool.set_parameters(500_000, 1_000)

    def test_fee_bound(self, env):
        with pytest.raises(ParameterOutOfBoundsError, match="Trade fee too high"):
            env.pool.set_parameters(100_000, 1_001)

    def test_new_fee_applies_to_next_trade(self, env):
        env.pool.set_parameters(100_000, 100)
        env.buy(100 * USDC)
        assert env.usdc("treasury") == USDC

    def test_set_max_trade_bps(self, env):
        env.pool.set_max_trade_bps(5_000)
        ev = env.pool.events[-1]
        assert ev.event is Event.MAX_TRADE_BPS_UPDATED
        assert dict(ev.data) == {"old": 2_000, "new": 5_000}

    def test_max_trade_bps_bounds(self, env):
        with pytest.raises(ParameterOutOfBoundsError, match="must be > 0"):
            env.pool.set_max_trade_bps(0)
        with pytest.raises(ParameterOutOfBoundsError, match="too high"):
            env.pool.set_max_trade_bps(5_001)
        assert env.pool.params.max_trade_bps == 2_000


# ---------------------------------------------------------------------------
# Treasury surplus
# ---------------------------------------------------------------------------

class TestTreasury:
    def test_surplus_is_untracked_balance(self, env):
        env.buy(100 * USDC)
        assert env.pool.treasury_surplus() == 0
        env.asset.transfer("bob", env.pool.pool_account, 5 * USDC)
        assert env.pool.treasury_surplus() == 5 * USDC

    def test_withdraw_surplus(self, env):
        env.asset.transfer("bob", env.pool.pool_account, 5 * USDC)
        env.pool.withdraw_treasury(5 * USDC)
        assert env.usdc("treasury") == 5 * USDC
        assert env.pool.treasury_surplus() == 0
        assert env.pool.events[-1].event is Event.TREASURY_WITHDRAWN

    def test_cannot_withdraw_reserve(self, env):
        env.buy(100 * USDC)
        with pytest.raises(InsufficientBalanceError):
            env.pool.withdraw_treasury(1)
        assert env.usdc(env.pool.pool_account) == env.pool.reserve_balance

    def test_zero_withdraw(self, env):
        with pytest.raises(InvalidAmountError):
            env.pool.withdraw_treasury(0)


# ---------------------------------------------------------------------------
# Rollback and reentrancy
# ---------------------------------------------------------------------------

class TestAtomicity:
    def test_failed_mint_undoes_transfers(self, env):
        env.token.revoke(env.cap)
        with pytest.raises(UnauthorizedError, match="not authorized to mint"):
            env.buy(100 * USDC)
        assert env.usdc("alice") == 1_000_000 * USDC
        assert env.usdc("treasury") == 0
        assert env.usdc(env.pool.pool_account) == 0
        assert env.pool.reserve_balance == 0
        assert env.pool.events == ()

    def test_failed_burn_leaves_pool_untouched(self, env):
        env.buy(100 * USDC)
        env.end_ibr()
        before = env.pool.state
        env.token.revoke(env.cap)
        with pytest.raises(UnauthorizedError):
            env.sell(1_000 * TOKEN)
        assert env.pool.state == before
        assert env.tokens("alice") == 9_975 * TOKEN

    def test_reentrant_buy_rejected(self, make_env):
        e = make_env(asset=HookedAsset("USDC"))
        e.asset.hook = lambda: e.buy(USDC, who="bob")
        with pytest.raises(ReentrantCallError):
            e.buy(100 * USDC)
        assert e.pool.reserve_balance == 0
        assert e.usdc("alice") == e.usdc("bob") == 1_000_000 * USDC
        # guard released after the failure
        e.buy(100 * USDC)
        assert e.pool.reserve_balance == 99_750_000

    def test_reentrant_admin_call_rejected(self, make_env):
        e = make_env(asset=HookedAsset("USDC"))
        e.asset.hook = e.pool.pause
        with pytest.raises(ReentrantCallError):
            e.pool.deposit_fees(USDC, sender="bob")
        assert e.pool.state.paused is False
        assert e.pool.reserve_balance == 0

    def test_concurrent_buys_serialize(self, feeless):
        results = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                out = feeless.pool.buy(USDC, 0, "alice", feeless.clock.now, sender="alice")
                with lock:
                    results.append(out)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 80
        assert all(out == 100 * TOKEN for out in results)
        assert feeless.pool.reserve_balance == 80 * USDC
        assert feeless.usdc(feeless.pool.pool_account) == 80 * USDC
        assert feeless.token.total_supply() == 8_000 * TOKEN
        assert len(feeless.pool.events) == 80


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class TestReads:
    def test_phase_info_progress(self, feeless):
        feeless.buy(250 * USDC)
        info = feeless.pool.phase_info()
        assert info.phase is Phase.FLAT_PRICE
        assert info.percent_to_threshold == 25
        assert info.flat_curve_threshold == 1_000 * USDC

    def test_phase_info_graduated(self, graduated):
        graduated.sell(100 * TOKEN)
        assert graduated.pool.phase_info().percent_to_threshold == 100

    def test_pool_stats(self, graduated):
        stats = graduated.pool.pool_stats()
        assert stats.reserve_balance == 1_000 * USDC
        assert stats.token_supply == 10_000 * TOKEN
        assert stats.spot_price == 1 * USDC
        assert stats.crr_ppm == 100_000
        assert stats.trade_fee_bps == 0

    def test_flat_buy_has_no_impact(self, env):
        impact = env.pool.calculate_buy_impact(100 * USDC)
        assert impact.impact_bps == 0
        assert impact.amount_out == 9_975 * TOKEN

    def test_crossing_buy_impact_reports_curve_price(self, feeless):
        feeless.buy(900 * USDC)
        impact = feeless.pool.calculate_buy_impact(200 * USDC)
        assert impact.new_spot_price > USDC // 100
        assert impact.impact_bps > 0

    def test_curve_sell_impact(self, graduated):
        impact = graduated.pool.calculate_sell_impact(100 * TOKEN)
        assert 0 < impact.impact_bps < 10_000
        assert impact.new_spot_price < graduated.pool.spot_price()

    def test_impact_requires_positive_amount(self, env):
        with pytest.raises(InvalidAmountError, match="Amount must be > 0"):
            env.pool.calculate_buy_impact(0)
        with pytest.raises(InvalidAmountError):
            env.pool.calculate_sell_impact(0)

    def test_zero_quotes(self, env):
        assert env.pool.get_buy_quote(0) == 0
        assert env.pool.get_sell_quote(0) == 0

    def test_reads_do_not_emit_events(self, graduated):
        n = len(graduated.pool.events)
        graduated.pool.spot_price()
        graduated.pool.pool_stats()
        graduated.pool.get_buy_quote(USDC)
        assert len(graduated.pool.events) == n

    def test_reads_mid_trade_see_committed_supply(self, graduated):
        minter = HookedMinter(graduated.cap)
        pool = PoolStateMachine(
            "model-1", token=minter, asset=graduated.asset, treasury="treasury",
            state=graduated.pool.state, clock=graduated.clock,
        )
        seen = []
        minter.after_mint = lambda: seen.append((pool.spot_price(), pool.pool_stats().token_supply))

        out = pool.buy(10 * USDC, 0, "bob", graduated.clock.now, sender="bob")

        assert seen == [(USDC, 10_000 * TOKEN)]
        assert pool.token_supply() == 10_000 * TOKEN + out
        assert pool.spot_price() > USDC

    def test_repr(self, env):
        assert "flat_price" in repr(env.pool)


# ---------------------------------------------------------------------------
# Restored state
# ---------------------------------------------------------------------------

class TestRestoredState:
    def test_pool_resumes_from_state(self, graduated):
        restored = PoolStateMachine(
            "model-1",
            token=graduated.cap,
            asset=graduated.asset,
            treasury="treasury",
            state=graduated.pool.state,
            clock=graduated.clock,
        )
        assert restored.current_phase() is Phase.BONDING_CURVE
        assert restored.spot_price() == graduated.pool.spot_price()
        assert restored.state.buy_only_until == graduated.pool.state.buy_only_until

    def test_unbacked_state_is_caught_on_next_commit(self, env):
        state = PoolState(params=env.pool.params, reserve_balance=10 * USDC)
        pool = PoolStateMachine(
            "ghost", token=env.cap, asset=env.asset, treasury="treasury",
            state=state, clock=env.clock,
        )
        with pytest.raises(InvariantViolationError) as ei:
            pool.deposit_fees(USDC, sender="bob")
        assert "reserve_backed" in ei.value.violations
        assert env.usdc("bob") == 1_000_000 * USDC
