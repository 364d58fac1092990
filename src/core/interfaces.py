"""Boundary protocols for the collaborators the core acts through.

Concrete in-memory implementations live in `src.integration`; any object with
the same methods can be wired in instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .pool.engine import PoolStateMachine


@runtime_checkable
class MintBurnToken(Protocol):
    """Mint/burn capability for a model token."""

    def mint(self, to: str, amount: int) -> None: ...

    def burn(self, from_: str, amount: int) -> None: ...

    def total_supply(self) -> int: ...

    def balance_of(self, account: str) -> int: ...


@runtime_checkable
class ReserveAsset(Protocol):
    """Transfer capability for the reserve asset."""

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...


@runtime_checkable
class GovernanceParams(Protocol):
    def infra_accrual_bps(self, model_id: str) -> int: ...


@runtime_checkable
class PoolLookup(Protocol):
    def has_pool(self, model_id: str) -> bool: ...

    def get(self, model_id: str) -> "PoolStateMachine": ...
