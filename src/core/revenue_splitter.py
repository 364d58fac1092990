"""
Revenue routing: split model revenue between infrastructure and the pool.

For each deposit the infrastructure share is

    infra = floor(amount * infra_accrual_bps / 10_000)

and goes to the `InfrastructureReserve`; the remainder (`profit`) is added to
the model's pool reserve through `deposit_fees`, which lifts the spot price.
The split ratio is read from governance per model at call time, so a change
applies only to later deposits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from .errors import (
    EmptyIdentifierError,
    InsufficientBalanceError,
    InvalidAmountError,
    PausedError,
    PoolNotFoundError,
    ZeroAddressError,
)
from .fees import split_protocol_fee
from .infra_reserve import InfrastructureReserve
from .interfaces import GovernanceParams, PoolLookup, ReserveAsset
from .pool.effects import EffectJournal, GuardedSection

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeSplit:
    model_id: str
    amount: int
    infra_amount: int
    profit_amount: int

    def __post_init__(self) -> None:
        if self.infra_amount + self.profit_amount != self.amount:
            raise ValueError("split must sum to the deposited amount")


@dataclass(frozen=True)
class BatchDeposit:
    splits: Tuple[FeeSplit, ...]
    total_amount: int
    total_infra: int
    total_profit: int


class RevenueSplitter:
    """Routes fee revenue into `InfrastructureReserve` and pool reserves."""

    def __init__(
        self,
        *,
        asset: ReserveAsset,
        pools: PoolLookup,
        infra_reserve: InfrastructureReserve,
        governance: GovernanceParams,
    ) -> None:
        self._asset = asset
        self._pools = pools
        self._infra = infra_reserve
        self._governance = governance
        self._guard = GuardedSection("revenue splitter")
        self._model_fees: Dict[str, int] = {}
        self.total_fees_deposited = 0

    def _validate(self, model_id: str, amount: int) -> None:
        if not isinstance(model_id, str) or not model_id:
            raise EmptyIdentifierError("Empty model ID")
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise TypeError("amount must be an int")
        if amount <= 0:
            raise InvalidAmountError("Amount must be > 0")
        if not self._pools.has_pool(model_id):
            raise PoolNotFoundError("Pool does not exist")

    def _split(self, model_id: str, amount: int) -> FeeSplit:
        share = split_protocol_fee(amount, self._governance.infra_accrual_bps(model_id))
        return FeeSplit(
            model_id=model_id,
            amount=amount,
            infra_amount=share.protocol_fee,
            profit_amount=share.remaining,
        )

    def calculate_fee_split(self, model_id: str, amount: int) -> FeeSplit:
        """Split `amount` would receive now, without moving anything."""
        if not self._pools.has_pool(model_id):
            raise PoolNotFoundError("Pool not found")
        return self._split(model_id, amount)

    def model_fees(self, model_id: str) -> int:
        return self._model_fees.get(model_id, 0)

    def _preflight(self, splits: Sequence[FeeSplit], sender: str) -> None:
        # Pool deposits are irreversible; anything that could fail mid-route fails here.
        if not isinstance(sender, str) or not sender:
            raise ZeroAddressError("Invalid sender")
        total = sum(s.amount for s in splits)
        balance = self._asset.balance_of(sender)
        if balance < total:
            raise InsufficientBalanceError(f"Insufficient balance: {balance} < {total}")
        if self._infra.paused and any(s.infra_amount > 0 for s in splits):
            raise PausedError()

    def _route(self, split: FeeSplit, sender: str, journal: EffectJournal) -> None:
        if split.infra_amount > 0:
            self._infra.deposit(split.model_id, split.infra_amount, sender=sender)
            journal.record(
                lambda: self._infra.revert_deposit(split.model_id, split.infra_amount, recipient=sender)
            )
        if split.profit_amount > 0:
            self._pools.get(split.model_id).deposit_fees(split.profit_amount, sender=sender)

    def _account(self, splits: Sequence[FeeSplit], journal: EffectJournal) -> None:
        before_total = self.total_fees_deposited
        before_models = dict(self._model_fees)

        def restore() -> None:
            self.total_fees_deposited = before_total
            self._model_fees = before_models

        journal.record(restore)
        for split in splits:
            self._model_fees[split.model_id] = self._model_fees.get(split.model_id, 0) + split.amount
            self.total_fees_deposited += split.amount

    def deposit_fee(self, model_id: str, amount: int, *, sender: str) -> FeeSplit:
        """Split one revenue deposit; returns the amounts routed each way."""
        with self._guard.enter("deposit_fee") as journal:
            self._validate(model_id, amount)
            split = self._split(model_id, amount)
            self._preflight([split], sender)
            self._account([split], journal)
            self._route(split, sender, journal)
            log.info(
                "fee deposited model=%s amount=%d infra=%d profit=%d",
                model_id, amount, split.infra_amount, split.profit_amount,
            )
            return split

    def batch_deposit_fees(
        self,
        model_ids: Sequence[str],
        amounts: Sequence[int],
        *,
        sender: str,
    ) -> BatchDeposit:
        """Split several deposits; every entry is validated before anything moves."""
        with self._guard.enter("batch_deposit_fees") as journal:
            if len(model_ids) != len(amounts):
                raise InvalidAmountError("Array length mismatch")
            if not model_ids:
                raise InvalidAmountError("Empty arrays")
            for model_id, amount in zip(model_ids, amounts):
                self._validate(model_id, amount)

            splits = tuple(self._split(m, a) for m, a in zip(model_ids, amounts))
            self._preflight(splits, sender)
            self._account(splits, journal)
            for split in splits:
                self._route(split, sender, journal)

            result = BatchDeposit(
                splits=splits,
                total_amount=sum(s.amount for s in splits),
                total_infra=sum(s.infra_amount for s in splits),
                total_profit=sum(s.profit_amount for s in splits),
            )
            log.info(
                "batch fees deposited models=%d total=%d infra=%d profit=%d",
                len(splits), result.total_amount, result.total_infra, result.total_profit,
            )
            return result
