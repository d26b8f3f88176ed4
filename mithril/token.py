import logging
from typing import Dict, Tuple

from mithril.exceptions import TokenError
from mithril.types import Account


TokenState = Tuple[Dict[Account, int], Dict[Tuple[Account, Account], int], int]


class TokenLedger:
    """
    Balances, allowances and supply of a fungible token.
    Transfers report failure by returning False instead of raising.
    """

    allowances: Dict[Tuple[Account, Account], int]
    balances: Dict[Account, int]
    symbol: str
    total_supply: int

    def __init__(self, symbol: str, balances: Dict[Account, int] = None):
        self.symbol = symbol
        self.balances = dict(balances or {})
        self.allowances = {}
        self.total_supply = sum(self.balances.values())

    def balance_of(self, account: Account) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: Account, spender: Account) -> int:
        return self.allowances.get((owner, spender), 0)

    def approve(self, owner: Account, spender: Account, amount: int) -> None:
        self.allowances[(owner, spender)] = amount

    def transfer(self, sender: Account, to: Account, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            logging.debug(f"{self.symbol} transfer of {amount} from {sender} refused")
            return False

        self._move(sender, to, amount)
        return True

    def transfer_from(self, sender: Account, from_: Account, to: Account, amount: int) -> bool:
        allowance = self.allowance(from_, sender)
        if amount < 0 or allowance < amount or self.balance_of(from_) < amount:
            logging.debug(f"{self.symbol} transfer of {amount} from {from_} by {sender} refused")
            return False

        self.allowances[(from_, sender)] = allowance - amount
        self._move(from_, to, amount)
        return True

    def snapshot(self) -> TokenState:
        return dict(self.balances), dict(self.allowances), self.total_supply

    def restore(self, state: TokenState) -> None:
        balances, allowances, total_supply = state
        self.balances = dict(balances)
        self.allowances = dict(allowances)
        self.total_supply = total_supply

    def _move(self, from_: Account, to: Account, amount: int) -> None:
        self.balances[from_] = self.balance_of(from_) - amount
        self.balances[to] = self.balance_of(to) + amount


class AssetLedger(TokenLedger):
    """
    A collateral asset, e.g. wrapped ether or wrapped bitcoin.
    """


class DebtToken(TokenLedger):
    """
    The synthetic debt token. Only its owner, the engine, may mint and burn.
    """

    owner: Account

    def __init__(self, symbol: str, owner: Account, balances: Dict[Account, int] = None):
        super().__init__(symbol, balances)
        self.owner = owner

    def mint(self, sender: Account, to: Account, amount: int) -> bool:
        self._only_owner(sender)
        if amount <= 0:
            return False

        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount
        return True

    def burn(self, sender: Account, amount: int) -> None:
        self._only_owner(sender)
        if amount <= 0:
            raise TokenError(f"{self.symbol} burn amount must be more than zero")

        balance = self.balance_of(sender)
        if balance < amount:
            raise TokenError(f"{self.symbol} burn amount {amount} exceeds balance {balance}")

        self.balances[sender] = balance - amount
        self.total_supply -= amount

    def _only_owner(self, sender: Account) -> None:
        if sender != self.owner:
            raise TokenError(f"{sender} is not the owner of {self.symbol}")
