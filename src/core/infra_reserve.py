"""
Infrastructure-cost accrual ledger.

Each model accrues the infrastructure share of its revenue here. Accruals are
paid out to infrastructure providers against invoices; whatever remains is the
model's runway. The reserve asset is held under a single account; per-model
figures are bookkeeping over that balance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from .errors import (
    AlreadyPausedError,
    EmptyIdentifierError,
    InsufficientBalanceError,
    InvalidAmountError,
    NotPausedError,
    PausedError,
    PoolNotFoundError,
    ZeroAddressError,
)
from .interfaces import PoolLookup, ReserveAsset
from .pool.effects import GuardedSection

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InfraPayment:
    model_id: str
    payee: str
    amount: int
    invoice_hash: str
    memo: str = ""


@dataclass(frozen=True)
class ModelAccounting:
    accrued: int
    paid: int
    provider: Optional[str]


def _require_model_id(model_id: str) -> None:
    if not isinstance(model_id, str) or not model_id:
        raise EmptyIdentifierError("Empty model ID")


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount <= 0:
        raise InvalidAmountError("Amount must be > 0")


def _require_address(account: str, message: str) -> None:
    if not isinstance(account, str) or not account:
        raise ZeroAddressError(message)


class InfrastructureReserve:
    """Per-model infrastructure accruals backed by one reserve-asset account."""

    def __init__(
        self,
        *,
        asset: ReserveAsset,
        pools: PoolLookup,
        treasury: str,
        account: str = "infra_reserve",
    ) -> None:
        _require_address(treasury, "Invalid treasury")
        _require_address(account, "Invalid account")
        self.account = account
        self.treasury = treasury
        self._asset = asset
        self._pools = pools
        self._guard = GuardedSection("infra reserve")
        self._paused = False

        self._accrued: Dict[str, int] = {}
        self._paid: Dict[str, int] = {}
        self._providers: Dict[str, str] = {}
        self.total_accrued = 0
        self.total_paid = 0

    # -- Deposits -------------------------------------------------------------

    def _check_model(self, model_id: str) -> None:
        _require_model_id(model_id)
        if not self._pools.has_pool(model_id):
            raise PoolNotFoundError("Model pool does not exist")

    def _credit(self, model_id: str, amount: int) -> None:
        self._accrued[model_id] = self._accrued.get(model_id, 0) + amount
        self.total_accrued += amount

    def _debit(self, model_id: str, amount: int) -> None:
        self._accrued[model_id] -= amount
        self.total_accrued -= amount

    def deposit(self, model_id: str, amount: int, *, sender: str) -> None:
        """Accrue `amount` for `model_id`, pulled from `sender`."""
        with self._guard.enter("deposit") as journal:
            self._require_not_paused()
            self._check_model(model_id)
            _require_amount(amount)
            _require_address(sender, "Invalid sender")

            journal.transfer(self._asset, sender, self.account, amount)
            self._credit(model_id, amount)
            log.info("infra deposit model=%s amount=%d", model_id, amount)

    def batch_deposit(self, model_ids: Sequence[str], amounts: Sequence[int], *, sender: str) -> int:
        """Accrue several models at once; all inputs are validated first. Returns the total."""
        with self._guard.enter("batch_deposit") as journal:
            self._require_not_paused()
            if len(model_ids) != len(amounts):
                raise InvalidAmountError("Array length mismatch")
            if not model_ids:
                raise InvalidAmountError("Empty arrays")
            _require_address(sender, "Invalid sender")
            for model_id, amount in zip(model_ids, amounts):
                self._check_model(model_id)
                _require_amount(amount)

            total = sum(amounts)
            journal.transfer(self._asset, sender, self.account, total)
            for model_id, amount in zip(model_ids, amounts):
                self._credit(model_id, amount)
            log.info("infra batch deposit models=%d total=%d", len(model_ids), total)
            return total

    def revert_deposit(self, model_id: str, amount: int, *, recipient: str) -> None:
        """Undo a deposit made earlier in a caller's failed multi-step operation."""
        with self._guard.enter("revert_deposit") as journal:
            _require_model_id(model_id)
            _require_amount(amount)
            if amount > self._accrued.get(model_id, 0):
                raise InsufficientBalanceError("Exceeds accrued balance")
            journal.transfer(self._asset, self.account, recipient, amount)
            self._debit(model_id, amount)
            log.info("infra deposit reverted model=%s amount=%d", model_id, amount)

    # -- Payments -------------------------------------------------------------

    def _pay(self, payment: InfraPayment) -> None:
        _require_model_id(payment.model_id)
        _require_address(payment.payee, "Invalid payee")
        _require_amount(payment.amount)
        if payment.amount > self._accrued.get(payment.model_id, 0):
            raise InsufficientBalanceError("Exceeds accrued balance")
        self._asset.transfer(self.account, payment.payee, payment.amount)
        self._debit(payment.model_id, payment.amount)
        self._paid[payment.model_id] = self._paid.get(payment.model_id, 0) + payment.amount
        self.total_paid += payment.amount
        log.info(
            "infra cost paid model=%s payee=%s amount=%d invoice=%s memo=%r",
            payment.model_id, payment.payee, payment.amount, payment.invoice_hash, payment.memo,
        )

    def pay_infrastructure_cost(
        self,
        model_id: str,
        payee: str,
        amount: int,
        invoice_hash: str,
        memo: str = "",
    ) -> InfraPayment:
        payment = InfraPayment(model_id, payee, amount, invoice_hash, memo)
        with self._guard.enter("pay_infrastructure_cost"):
            self._require_not_paused()
            self._pay(payment)
        return payment

    def batch_pay(self, payments: Sequence[InfraPayment]) -> int:
        """Pay several invoices; none is paid if any fails. Returns the total paid."""
        with self._guard.enter("batch_pay") as journal:
            self._require_not_paused()
            if not payments:
                raise InvalidAmountError("Empty payments array")
            snapshot = self._snapshot()
            journal.record(lambda: self._restore(snapshot))
            for payment in payments:
                self._pay(payment)
                journal.record(
                    lambda p=payment: self._asset.transfer(p.payee, self.account, p.amount)
                )
            return sum(p.amount for p in payments)

    def _snapshot(self) -> Tuple[Dict[str, int], Dict[str, int], int, int]:
        return dict(self._accrued), dict(self._paid), self.total_accrued, self.total_paid

    def _restore(self, snapshot: Tuple[Dict[str, int], Dict[str, int], int, int]) -> None:
        self._accrued, self._paid, self.total_accrued, self.total_paid = snapshot

    # -- Administration ---------------------------------------------------------

    def set_provider(self, model_id: str, provider: str) -> None:
        _require_model_id(model_id)
        _require_address(provider, "Invalid provider")
        with self._guard.enter("set_provider"):
            self._providers[model_id] = provider
        log.info("infra provider set model=%s provider=%s", model_id, provider)

    def set_treasury(self, treasury: str) -> None:
        _require_address(treasury, "Invalid treasury")
        with self._guard.enter("set_treasury"):
            self.treasury = treasury

    def emergency_withdraw(self, amount: int) -> None:
        """Send `amount` of the held asset to the treasury, bypassing accruals."""
        with self._guard.enter("emergency_withdraw") as journal:
            _require_amount(amount)
            if amount > self.balance():
                raise InsufficientBalanceError("Insufficient balance")
            journal.transfer(self._asset, self.account, self.treasury, amount)
        log.warning("infra emergency withdrawal amount=%d to %s", amount, self.treasury)

    def pause(self) -> None:
        with self._guard.enter("pause"):
            if self._paused:
                raise AlreadyPausedError()
            self._paused = True

    def unpause(self) -> None:
        with self._guard.enter("unpause"):
            if not self._paused:
                raise NotPausedError()
            self._paused = False

    def _require_not_paused(self) -> None:
        if self._paused:
            raise PausedError()

    # -- Reads ------------------------------------------------------------------

    @property
    def paused(self) -> bool:
        return self._paused

    def accrued(self, model_id: str) -> int:
        return self._accrued.get(model_id, 0)

    def paid(self, model_id: str) -> int:
        return self._paid.get(model_id, 0)

    def provider(self, model_id: str) -> Optional[str]:
        return self._providers.get(model_id)

    def accrual_runway(self, model_id: str, daily_burn: int) -> Optional[int]:
        """Whole days the accrued balance covers at `daily_burn`; None means unbounded."""
        if daily_burn < 0:
            raise InvalidAmountError(f"daily_burn must be non-negative: {daily_burn}")
        if daily_burn == 0:
            return None
        return self.accrued(model_id) // daily_burn

    def model_accounting(self, model_id: str) -> ModelAccounting:
        return ModelAccounting(
            accrued=self.accrued(model_id),
            paid=self.paid(model_id),
            provider=self.provider(model_id),
        )

    def balance(self) -> int:
        return self._asset.balance_of(self.account)
