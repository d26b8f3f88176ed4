from typing import Dict, List

from mithril.exceptions import InsufficientBalanceError
from mithril.types import Account


class DebtLedger:
    """
    Debt minted per account, in units of the debt token.
    """

    minted: Dict[Account, int]

    def __init__(self):
        self.minted = {}

    def minted_of(self, account: Account) -> int:
        return self.minted.get(account, 0)

    def increase(self, account: Account, amount: int) -> None:
        self.minted[account] = self.minted_of(account) + amount

    def decrease(self, account: Account, amount: int) -> None:
        minted = self.minted_of(account)
        if amount > minted:
            raise InsufficientBalanceError(account, minted, amount, what="minted debt")

        if amount == 0:
            return

        if minted == amount:
            del self.minted[account]
        else:
            self.minted[account] = minted - amount

    def accounts(self) -> List[Account]:
        return list(self.minted)

    @property
    def total_minted(self) -> int:
        return sum(self.minted.values())

    def snapshot(self) -> Dict[Account, int]:
        return dict(self.minted)

    def restore(self, state: Dict[Account, int]) -> None:
        self.minted = dict(state)
