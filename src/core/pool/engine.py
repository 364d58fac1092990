"""Imperative shell around the pure pool kernels.

``PoolStateMachine`` owns one `PoolState` value and the capabilities the pool
acts through. Every mutating call:

1. Takes the pool lock and the single-entry guard.
2. Runs the guards for the operation against the PRE-state.
3. Prices the operation with `pricing` and executes the external effects
   through an `EffectJournal`.
4. Builds the POST-state with `updates` and checks the invariants.
5. Swaps the POST-state in and records the events.

Any failure in steps 2-4 rolls back the journaled effects and leaves the
pool exactly as it was. Reads never take the lock; they see the last
committed `(state, token supply)` pair, so a trade in flight is invisible
to them until it commits. Supply minted or burned outside the pool shows up
at the next commit.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..bonding_curve import PriceImpact
from ..errors import (
    AlreadyPausedError,
    InvalidAmountError,
    InvariantViolationError,
    NotPausedError,
)
from ..interfaces import MintBurnToken, ReserveAsset
from . import guards, pricing, updates
from .effects import GuardedSection
from .invariants import check_transition
from .types import (
    CurveParameters,
    Event,
    Phase,
    PhaseInfo,
    PoolEvent,
    PoolState,
    PoolStats,
    TradeInfo,
    validate_crr,
    validate_max_trade_bps,
    validate_trade_fee,
)

log = logging.getLogger(__name__)

Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time())


class PoolStateMachine:
    """One model-token pool: flat-price bootstrap, then the bonding curve."""

    def __init__(
        self,
        model_id: str,
        *,
        token: MintBurnToken,
        asset: ReserveAsset,
        treasury: str,
        params: CurveParameters | None = None,
        state: PoolState | None = None,
        pool_account: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not isinstance(model_id, str) or not model_id:
            raise ValueError("model_id must be a non-empty str")
        guards.require_account(treasury, "Invalid treasury")
        if (params is None) == (state is None):
            raise ValueError("exactly one of params or state is required")

        self.model_id = model_id
        self.treasury = treasury
        self.pool_account = pool_account or f"pool:{model_id}"
        self._token = token
        self._asset = asset
        self._clock: Clock = clock or system_clock

        if state is None:
            assert params is not None
            created_at = self._clock()
            state = PoolState(params=params, buy_only_until=created_at + params.ibr_duration_seconds)
        self._state: PoolState = state
        # (state, token supply) as of the last commit; reads use only this pair.
        self._view: tuple[PoolState, int] = (state, token.total_supply())

        self._guard = GuardedSection(f"pool {model_id}")
        self._events: list[PoolEvent] = []

    # -- Plumbing -------------------------------------------------------------

    def _commit(
        self,
        pre: PoolState,
        post: PoolState,
        events: list[PoolEvent],
        *,
        expected_reserve_delta: int | None = None,
    ) -> None:
        violations = check_transition(
            pre,
            post,
            held_balance=self._asset.balance_of(self.pool_account),
            expected_reserve_delta=expected_reserve_delta,
        )
        if violations:
            raise InvariantViolationError(violations)
        if post.has_graduated and not pre.has_graduated:
            events.append(
                PoolEvent(
                    Event.PHASE_TRANSITION,
                    {
                        "from": Phase.FLAT_PRICE.value,
                        "to": Phase.BONDING_CURVE.value,
                        "reserve_balance": post.reserve_balance,
                    },
                )
            )
        self._state = post
        self._view = (post, self._token.total_supply())
        for ev in events:
            self._events.append(ev)
            log.info("pool %s: %s %s", self.model_id, ev.event.value, dict(ev.data))

    # -- Trading ----------------------------------------------------------------

    def buy(
        self,
        amount_in: int,
        min_tokens_out: int,
        recipient: str,
        deadline: int,
        *,
        sender: str,
    ) -> int:
        """Spend `amount_in` reserve units from `sender`; mint tokens to `recipient`.

        Returns the number of tokens minted.
        """
        with self._guard.enter("buy") as journal:
            pre = self._state
            now = self._clock()
            guards.require_not_paused(pre)
            guards.require_positive(amount_in, "Reserve amount must be > 0")
            guards.require_non_negative(min_tokens_out, "min_tokens_out")
            guards.require_account(recipient)
            guards.require_account(sender, "Invalid sender")
            guards.require_not_expired(deadline, now)
            guards.require_within_trade_limit(pre, amount_in)

            quote = pricing.quote_buy(pre, self._token.total_supply(), amount_in)
            if quote.tokens_out == 0:
                raise InvalidAmountError("Trade produces zero tokens")
            guards.require_min_out(quote.tokens_out, min_tokens_out)

            journal.transfer(self._asset, sender, self.pool_account, quote.net_amount)
            journal.transfer(self._asset, sender, self.treasury, quote.fee)
            journal.mint(self._token, recipient, quote.tokens_out)

            post = updates.apply_buy(pre, quote)
            self._commit(
                pre,
                post,
                [
                    PoolEvent(
                        Event.BUY,
                        {
                            "sender": sender,
                            "recipient": recipient,
                            "amount_in": amount_in,
                            "fee": quote.fee,
                            "tokens_out": quote.tokens_out,
                        },
                    )
                ],
                expected_reserve_delta=quote.net_amount,
            )
            return quote.tokens_out

    def sell(
        self,
        tokens_in: int,
        min_reserve_out: int,
        recipient: str,
        deadline: int,
        *,
        sender: str,
    ) -> int:
        """Burn `tokens_in` from `sender`; pay the reserve, net of fee, to `recipient`.

        Returns the net reserve amount paid out. `sender` is taken as given:
        the pool burns through its mint capability and does not authenticate
        the holder, so any caller holding the pool reference can sell any
        account's tokens. Callers that front the pool must bind `sender` to
        the authenticated account themselves.

        A sell that would release the whole seeded reserve is rejected with
        `ReserveDepletionError`.
        """
        with self._guard.enter("sell") as journal:
            pre = self._state
            now = self._clock()
            guards.require_not_paused(pre)
            guards.require_positive(tokens_in, "Token amount must be > 0")
            guards.require_non_negative(min_reserve_out, "min_reserve_out")
            guards.require_account(recipient)
            guards.require_account(sender, "Invalid sender")
            guards.require_not_expired(deadline, now)
            guards.require_sells_enabled(pre, now)
            guards.require_balance(self._token.balance_of(sender), tokens_in, "token balance")

            quote = pricing.quote_sell(pre, self._token.total_supply(), tokens_in)
            guards.require_within_trade_limit(pre, quote.reserve_out)
            if quote.reserve_out == 0:
                raise InvalidAmountError("Trade produces zero reserve")
            guards.require_reserve_remains(pre, quote.reserve_out)
            guards.require_min_out(quote.net_out, min_reserve_out)

            journal.burn(self._token, sender, tokens_in)
            journal.transfer(self._asset, self.pool_account, recipient, quote.net_out)
            journal.transfer(self._asset, self.pool_account, self.treasury, quote.fee)

            post = updates.apply_sell(pre, quote)
            self._commit(
                pre,
                post,
                [
                    PoolEvent(
                        Event.SELL,
                        {
                            "sender": sender,
                            "recipient": recipient,
                            "tokens_in": tokens_in,
                            "reserve_out": quote.reserve_out,
                            "fee": quote.fee,
                            "net_out": quote.net_out,
                        },
                    )
                ],
                expected_reserve_delta=-quote.reserve_out,
            )
            return quote.net_out

    def deposit_fees(self, amount: int, *, sender: str) -> None:
        """Add `amount` to the reserve with no trade fee. Allowed while paused."""
        with self._guard.enter("deposit_fees") as journal:
            pre = self._state
            guards.require_positive(amount, "Amount must be > 0")
            guards.require_account(sender, "Invalid sender")

            journal.transfer(self._asset, sender, self.pool_account, amount)

            post = updates.apply_deposit(pre, amount)
            self._commit(
                pre,
                post,
                [PoolEvent(Event.FEES_DEPOSITED, {"sender": sender, "amount": amount})],
                expected_reserve_delta=amount,
            )

    # -- Administration ----------------------------------------------------------

    def set_parameters(self, crr_ppm: int, trade_fee_bps: int) -> None:
        with self._guard.enter("set_parameters"):
            validate_crr(crr_ppm)
            validate_trade_fee(trade_fee_bps)
            pre = self._state
            post = updates.apply_parameters(pre, crr_ppm, trade_fee_bps)
            self._commit(
                pre,
                post,
                [PoolEvent(Event.PARAMETERS_UPDATED, {"crr_ppm": crr_ppm, "trade_fee_bps": trade_fee_bps})],
                expected_reserve_delta=0,
            )

    def set_max_trade_bps(self, max_trade_bps: int) -> None:
        with self._guard.enter("set_max_trade_bps"):
            validate_max_trade_bps(max_trade_bps)
            pre = self._state
            post = updates.apply_max_trade_bps(pre, max_trade_bps)
            self._commit(
                pre,
                post,
                [
                    PoolEvent(
                        Event.MAX_TRADE_BPS_UPDATED,
                        {"old": pre.params.max_trade_bps, "new": max_trade_bps},
                    )
                ],
                expected_reserve_delta=0,
            )

    def pause(self) -> None:
        with self._guard.enter("pause"):
            pre = self._state
            if pre.paused:
                raise AlreadyPausedError()
            self._commit(pre, updates.apply_pause(pre), [PoolEvent(Event.PAUSED)], expected_reserve_delta=0)

    def unpause(self) -> None:
        with self._guard.enter("unpause"):
            pre = self._state
            if not pre.paused:
                raise NotPausedError()
            self._commit(pre, updates.apply_unpause(pre), [PoolEvent(Event.UNPAUSED)], expected_reserve_delta=0)

    def withdraw_treasury(self, amount: int) -> None:
        """Move asset held beyond the accounted reserve to the treasury. Allowed while paused."""
        with self._guard.enter("withdraw_treasury") as journal:
            pre = self._state
            guards.require_positive(amount, "Amount must be > 0")
            guards.require_balance(self.treasury_surplus(), amount, "treasury surplus")

            journal.transfer(self._asset, self.pool_account, self.treasury, amount)

            self._commit(
                pre,
                pre,
                [PoolEvent(Event.TREASURY_WITHDRAWN, {"treasury": self.treasury, "amount": amount})],
                expected_reserve_delta=0,
            )

    # -- Reads ---------------------------------------------------------------------

    @property
    def state(self) -> PoolState:
        return self._view[0]

    @property
    def params(self) -> CurveParameters:
        return self._view[0].params

    @property
    def reserve_balance(self) -> int:
        return self._view[0].reserve_balance

    @property
    def events(self) -> tuple[PoolEvent, ...]:
        return tuple(self._events)

    def token_supply(self) -> int:
        """Token supply as of the last commit."""
        return self._view[1]

    def spot_price(self) -> int:
        state, supply = self._view
        return pricing.spot_price(state, supply)

    def get_buy_quote(self, amount_in: int) -> int:
        """Tokens a buy of `amount_in` would mint now, after the trade fee."""
        guards.require_non_negative(amount_in, "amount_in")
        if amount_in == 0:
            return 0
        state, supply = self._view
        return pricing.quote_buy(state, supply, amount_in).tokens_out

    def get_sell_quote(self, tokens_in: int) -> int:
        """Gross reserve a sell of `tokens_in` would release; the fee is applied separately."""
        guards.require_non_negative(tokens_in, "tokens_in")
        if tokens_in == 0:
            return 0
        state, supply = self._view
        return pricing.quote_sell(state, supply, tokens_in).reserve_out

    def is_sell_enabled(self) -> bool:
        return self._clock() >= self._view[0].buy_only_until

    def current_phase(self) -> Phase:
        return self._view[0].phase

    def phase_info(self) -> PhaseInfo:
        return pricing.phase_info(self._view[0])

    def pool_stats(self) -> PoolStats:
        state, supply = self._view
        return PoolStats(
            reserve_balance=state.reserve_balance,
            token_supply=supply,
            spot_price=pricing.spot_price(state, supply),
            crr_ppm=state.params.crr_ppm,
            trade_fee_bps=state.params.trade_fee_bps,
        )

    def trade_info(self) -> TradeInfo:
        state = self._view[0]
        return TradeInfo(
            sells_enabled=self._clock() >= state.buy_only_until,
            buy_only_until=state.buy_only_until,
            paused=state.paused,
        )

    def calculate_buy_impact(self, amount_in: int) -> PriceImpact:
        guards.require_positive(amount_in, "Amount must be > 0")
        state, supply = self._view
        return pricing.buy_impact(state, supply, amount_in)

    def calculate_sell_impact(self, tokens_in: int) -> PriceImpact:
        guards.require_positive(tokens_in, "Amount must be > 0")
        state, supply = self._view
        return pricing.sell_impact(state, supply, tokens_in)

    def treasury_surplus(self) -> int:
        """Asset held by the pool account beyond the accounted reserve.

        Reads the live asset balance, so a call made while a trade is moving
        funds can include that trade's in-flight transfers.
        """
        return max(self._asset.balance_of(self.pool_account) - self._view[0].reserve_balance, 0)

    def __repr__(self) -> str:
        s = self._view[0]
        return (
            f"PoolStateMachine({self.model_id!r}, phase={s.phase.value}, "
            f"reserve={s.reserve_balance}, paused={s.paused})"
        )
