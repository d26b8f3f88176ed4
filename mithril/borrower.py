import logging
import random
from typing import Callable, Optional

from mithril.constants import LIQUIDATION_PRECISION, LIQUIDATION_THRESHOLD, PRECISION
from mithril.engine import PositionEngine
from mithril.exceptions import MithrilError
from mithril.types import Account, Asset


class Borrower:
    """
    We model borrowers as independent agents who, at every tick, deposit collateral, mint
    debt up to a health factor of their choosing, burn debt or redeem collateral, each
    according to a fixed probability.
    Some borrowers keep a large margin of safety, others run close to the limit.
    """
    account: Account
    burn_probability: float
    deposit_probability: float
    engine: PositionEngine
    mint_probability: float
    redeem_probability: float

    def __init__(
        self,
        account: Account,
        engine: PositionEngine,
        calculate_deposit: Callable[[Asset], int],
        calculate_target_health_factor: Callable[[], int],
        deposit_probability: float,
        mint_probability: float,
        burn_probability: float,
        redeem_probability: float,
    ):
        """
        - calculate_deposit: amount of an asset the borrower would like to deposit, 18 decimals.
        - calculate_target_health_factor: health factor the borrower mints down to, 18 decimals.
        """
        self.account = account
        self.engine = engine
        self.calculate_deposit = calculate_deposit
        self.calculate_target_health_factor = calculate_target_health_factor
        self.deposit_probability = deposit_probability
        self.mint_probability = mint_probability
        self.burn_probability = burn_probability
        self.redeem_probability = redeem_probability

    def act(self) -> None:
        if self._want(self.deposit_probability):
            self.deposit()
        if self._want(self.mint_probability):
            self.mint()
        if self._want(self.burn_probability):
            self.burn()
        if self._want(self.redeem_probability):
            self.redeem()

    def deposit(self) -> None:
        asset = random.choice(self.engine.collateral_assets)
        ledger = self.engine.asset_ledgers[asset]
        amount = min(self.calculate_deposit(asset), ledger.balance_of(self.account))
        if amount <= 0:
            return

        ledger.approve(self.account, self.engine.address, amount)
        self._try("deposit", self.engine.deposit_collateral, self.account, asset, amount)

    def mint(self) -> None:
        amount = self.mintable(self.calculate_target_health_factor())
        if amount > 0:
            self._try("mint", self.engine.mint_debt, self.account, amount)

    def mintable(self, target_health_factor: int) -> int:
        """
        Debt that can still be minted while keeping the health factor at or above the target.
        """
        minted, collateral_value_usd = self.engine.account_information(self.account)
        collateral_adjusted_for_threshold = collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
        return collateral_adjusted_for_threshold * PRECISION // target_health_factor - minted

    def burn(self) -> None:
        minted, _ = self.engine.account_information(self.account)
        amount = min(minted // 2, self.debt_balance)
        if amount <= 0:
            return

        self.engine.debt_token.approve(self.account, self.engine.address, amount)
        self._try("burn", self.engine.burn_debt, self.account, amount)

    def redeem(self) -> None:
        deposited = [
            (asset, self.engine.collateral_balance_of(self.account, asset))
            for asset in self.engine.collateral_assets
        ]
        deposited = [(asset, amount) for asset, amount in deposited if amount > 0]
        if not deposited:
            return

        asset, amount = random.choice(deposited)
        self._try("redeem", self.engine.redeem_collateral, self.account, asset, max(amount // 10, 1))

    @property
    def debt_balance(self) -> int:
        return self.engine.debt_token.balance_of(self.account)

    def _try(self, action: str, operation: Callable, *args) -> Optional[MithrilError]:
        try:
            operation(*args)
        except MithrilError as e:
            logging.info(f"{self.account} could not {action}: {e}")
            return e

        return None

    def _want(self, probability: float) -> bool:
        return random.random() < probability
