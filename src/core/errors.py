"""Exception types shared by the curve math, the pool engine and the revenue layer.

Callers can catch the broad families (`DomainError`, `BusinessRuleError`) or the
specific failure. Messages match the user-facing reasons emitted by the pool.
"""

from __future__ import annotations


class AmmError(Exception):
    """Root of every error raised by this package."""


# -- Domain errors: malformed input, rejected before any mutation -------------

class DomainError(AmmError, ValueError):
    """Input outside the domain of the operation."""


class InvalidAmountError(DomainError):
    """Zero or negative amount where a positive one is required."""


class ZeroAddressError(DomainError):
    """Empty or null account reference."""


class EmptyIdentifierError(DomainError):
    """Empty model identifier."""


class ParameterOutOfBoundsError(DomainError):
    """Governance parameter outside its allowed range."""


class FeeTooHighError(ParameterOutOfBoundsError):
    def __init__(self, fee_bps: int, max_bps: int, message: str | None = None) -> None:
        self.fee_bps = fee_bps
        self.max_bps = max_bps
        super().__init__(message or f"Fee too high: {fee_bps} > {max_bps}")


class LnUndefinedError(DomainError):
    """Natural logarithm requested for a non-positive value."""


# -- Business-rule errors: valid input the current state refuses --------------

class BusinessRuleError(AmmError):
    """Well-formed request rejected by a pool or ledger rule."""


class SlippageExceededError(BusinessRuleError):
    def __init__(self, actual: int, minimum: int) -> None:
        self.actual = actual
        self.minimum = minimum
        super().__init__("Slippage exceeded")


class TradeSizeExceededError(BusinessRuleError):
    def __init__(self, amount: int, limit: int) -> None:
        self.amount = amount
        self.limit = limit
        super().__init__("Trade exceeds max size limit")


class ExpiredError(BusinessRuleError):
    def __init__(self, deadline: int, now: int) -> None:
        self.deadline = deadline
        self.now = now
        super().__init__("Transaction expired")


class SellsDisabledError(BusinessRuleError):
    def __init__(self, buy_only_until: int) -> None:
        self.buy_only_until = buy_only_until
        super().__init__("Sells not enabled during IBR")


class ReserveDepletionError(BusinessRuleError):
    def __init__(self, reserve_out: int, reserve_balance: int) -> None:
        self.reserve_out = reserve_out
        self.reserve_balance = reserve_balance
        super().__init__("Sell would deplete reserve")


class InsufficientBalanceError(BusinessRuleError):
    """Balance (token, asset or accrual) too small for the request."""


class PoolNotFoundError(BusinessRuleError):
    """No pool registered for the model id."""


class PoolExistsError(BusinessRuleError):
    """A pool is already registered for the model id."""


# -- Circuit breaker ---------------------------------------------------------

class PausedError(AmmError):
    def __init__(self) -> None:
        super().__init__("Pausable: paused")


class AlreadyPausedError(PausedError):
    pass


class NotPausedError(AmmError):
    def __init__(self) -> None:
        super().__init__("Pausable: not paused")


# -- Structural errors -------------------------------------------------------

class ReentrantCallError(AmmError):
    """A capability callback tried to re-enter a mutating call."""


class UnauthorizedError(AmmError):
    """A revoked or foreign capability was used."""


class InvariantViolationError(AmmError):
    """Raised when a post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
