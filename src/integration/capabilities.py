"""
In-memory reference implementations of the capabilities the core acts through.

- `LedgerAsset`: the reserve asset (e.g. USDC) over a `BalanceTable`.
- `LedgerToken`: a model token; only holders of a live `MintCapability` can
  mint or burn.
- `MintCapability`: the object a pool receives as its `MintBurnToken`.
  Revoking it cuts the pool off from the token without touching balances.
"""

from __future__ import annotations

import itertools
import logging
from typing import Optional, Set

from ..core.errors import InvalidAmountError, UnauthorizedError, ZeroAddressError
from ..state.balances import Address, BalanceTable

log = logging.getLogger(__name__)


def _require_account(account: Address, message: str) -> None:
    if not isinstance(account, str) or not account:
        raise ZeroAddressError(message)


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise InvalidAmountError(f"Amount must be non-negative: {amount}")


class LedgerAsset:
    """Fungible reserve asset held in a shared `BalanceTable`."""

    def __init__(self, symbol: str, balances: Optional[BalanceTable] = None) -> None:
        if not symbol:
            raise ValueError("symbol must be non-empty")
        self.symbol = symbol
        self.balances = balances if balances is not None else BalanceTable()

    def transfer(self, sender: Address, recipient: Address, amount: int) -> None:
        _require_account(sender, "Invalid sender")
        _require_account(recipient, "Invalid recipient")
        _require_amount(amount)
        self.balances.move(self.symbol, sender, recipient, amount)

    def balance_of(self, account: Address) -> int:
        return self.balances.get(account, self.symbol)

    def total_supply(self) -> int:
        return self.balances.total(self.symbol)

    def credit(self, account: Address, amount: int) -> None:
        """Create `amount` out of thin air for `account` (funding, tests)."""
        _require_account(account, "Invalid account")
        _require_amount(amount)
        self.balances.add(account, self.symbol, amount)

    def __repr__(self) -> str:
        return f"LedgerAsset({self.symbol!r}, supply={self.total_supply()})"


class LedgerToken:
    """Model token with capability-gated mint and burn."""

    _ids = itertools.count(1)

    def __init__(self, token_id: str, balances: Optional[BalanceTable] = None) -> None:
        if not token_id:
            raise ValueError("token_id must be non-empty")
        self.token_id = token_id
        self.balances = balances if balances is not None else BalanceTable()
        self._supply = 0
        self._live: Set[int] = set()

    # -- Capabilities -----------------------------------------------------------

    def issue_mint_capability(self, holder: str) -> "MintCapability":
        cap = MintCapability(self, next(self._ids), holder)
        self._live.add(cap.cap_id)
        log.info("token %s: mint capability %d issued to %s", self.token_id, cap.cap_id, holder)
        return cap

    def revoke(self, cap: "MintCapability") -> None:
        self._live.discard(cap.cap_id)
        log.info("token %s: mint capability %d revoked", self.token_id, cap.cap_id)

    def is_authorized(self, cap: "MintCapability") -> bool:
        return cap.token is self and cap.cap_id in self._live

    def _mint(self, cap: "MintCapability", to: Address, amount: int) -> None:
        if not self.is_authorized(cap):
            raise UnauthorizedError("Caller is not authorized to mint")
        _require_account(to, "Invalid recipient")
        _require_amount(amount)
        self.balances.add(to, self.token_id, amount)
        self._supply += amount

    def _burn(self, cap: "MintCapability", from_: Address, amount: int) -> None:
        if not self.is_authorized(cap):
            raise UnauthorizedError("Caller is not authorized to burn")
        _require_account(from_, "Invalid account")
        _require_amount(amount)
        self.balances.subtract(from_, self.token_id, amount)
        self._supply -= amount

    # -- Holder operations --------------------------------------------------------

    def transfer(self, sender: Address, recipient: Address, amount: int) -> None:
        _require_account(sender, "Invalid sender")
        _require_account(recipient, "Invalid recipient")
        _require_amount(amount)
        self.balances.move(self.token_id, sender, recipient, amount)

    def total_supply(self) -> int:
        return self._supply

    def balance_of(self, account: Address) -> int:
        return self.balances.get(account, self.token_id)

    def __repr__(self) -> str:
        return f"LedgerToken({self.token_id!r}, supply={self._supply})"


class MintCapability:
    """Revocable mint/burn right over one `LedgerToken` (a `MintBurnToken`)."""

    def __init__(self, token: LedgerToken, cap_id: int, holder: str) -> None:
        self.token = token
        self.cap_id = cap_id
        self.holder = holder

    @property
    def revoked(self) -> bool:
        return not self.token.is_authorized(self)

    def mint(self, to: Address, amount: int) -> None:
        self.token._mint(self, to, amount)

    def burn(self, from_: Address, amount: int) -> None:
        self.token._burn(self, from_, amount)

    def total_supply(self) -> int:
        return self.token.total_supply()

    def balance_of(self, account: Address) -> int:
        return self.token.balance_of(account)

    def __repr__(self) -> str:
        return f"MintCapability({self.token.token_id!r}, id={self.cap_id}, holder={self.holder!r})"
