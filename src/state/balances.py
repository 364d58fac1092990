"""
Account balance tracking for ledger-backed assets and tokens.

Implements BalanceTable[Address, AssetId] -> Amount
"""

from typing import Dict, Tuple

from ..core.errors import InsufficientBalanceError, InvalidAmountError


# Type aliases
Address = str  # Opaque account reference (non-empty)
AssetId = str  # Asset symbol or identifier, e.g. "USDC" or a model token id
Amount = int  # Non-negative integer in the asset's base units


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Zero balances are not stored. Iteration order of the underlying dict is not
    relied on; snapshot and hashing code sorts keys explicitly.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Address, AssetId], Amount] = {}

    def get(self, account: Address, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Address, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Raises:
            InvalidAmountError: If amount is negative
        """
        if amount < 0:
            raise InvalidAmountError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def add(self, account: Address, asset: AssetId, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            InsufficientBalanceError: If the resulting balance would be negative
        """
        current = self.get(account, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise InsufficientBalanceError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, asset, new_balance)

    def subtract(self, account: Address, asset: AssetId, delta: Amount) -> None:
        """
        Subtract a non-negative delta from balance.

        Raises:
            InvalidAmountError: If delta is negative
            InsufficientBalanceError: If the balance is too small
        """
        if delta < 0:
            raise InvalidAmountError(f"Delta must be non-negative: {delta}")
        self.add(account, asset, -delta)

    def move(self, asset: AssetId, sender: Address, recipient: Address, amount: Amount) -> None:
        """Debit `sender` and credit `recipient`; leaves the table unchanged on failure."""
        if amount < 0:
            raise InvalidAmountError(f"Amount must be non-negative: {amount}")
        self.subtract(sender, asset, amount)
        self.add(recipient, asset, amount)

    def total(self, asset: AssetId) -> Amount:
        """Sum of all balances of `asset`."""
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def get_all_balances(self) -> Dict[Tuple[Address, AssetId], Amount]:
        return dict(self._balances)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Address, Amount]:
        result = {}
        for (account, a), amount in self._balances.items():
            if a == asset:
                result[account] = amount
        return result

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
