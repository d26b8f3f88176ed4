from typing import Dict, List, Tuple

from mithril.exceptions import InsufficientBalanceError
from mithril.types import Account, Asset


class CollateralLedger:
    """
    Deposited collateral per (account, asset). Entries are sparse: a zero balance is
    never stored, so an emptied account looks exactly like one that never existed.
    """

    balances: Dict[Tuple[Account, Asset], int]

    def __init__(self):
        self.balances = {}

    def balance_of(self, account: Account, asset: Asset) -> int:
        return self.balances.get((account, asset), 0)

    def credit(self, account: Account, asset: Asset, amount: int) -> None:
        self.balances[(account, asset)] = self.balance_of(account, asset) + amount

    def debit(self, account: Account, asset: Asset, amount: int) -> None:
        balance = self.balance_of(account, asset)
        if amount > balance:
            raise InsufficientBalanceError(account, balance, amount, what=f"{asset} collateral")

        if amount == 0:
            return

        if balance == amount:
            del self.balances[(account, asset)]
        else:
            self.balances[(account, asset)] = balance - amount

    def accounts(self) -> List[Account]:
        return list(dict.fromkeys(account for account, _ in self.balances))

    def total_of(self, asset: Asset) -> int:
        return sum(amount for (_, a), amount in self.balances.items() if a == asset)

    def snapshot(self) -> Dict[Tuple[Account, Asset], int]:
        return dict(self.balances)

    def restore(self, state: Dict[Tuple[Account, Asset], int]) -> None:
        self.balances = dict(state)
