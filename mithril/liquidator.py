import logging
import random
from typing import Callable, List, Optional, Tuple

from mithril.borrower import Borrower
from mithril.engine import PositionEngine
from mithril.health import is_broken
from mithril.metrics import Metric, MetricsLogger
from mithril.types import Account, Asset


class Liquidator(Borrower):
    """
    We model liquidators as borrowers who keep the debt they mint as a float, and who will
    try to liquidate insolvent accounts with a fixed probability.
    Each attempt covers half of the target's debt, capped by the liquidator's float.
    """

    liquidation_probability: float
    metrics_logger: MetricsLogger

    def __init__(
        self,
        account: Account,
        engine: PositionEngine,
        calculate_deposit: Callable[[Asset], int],
        calculate_target_health_factor: Callable[[], int],
        liquidation_probability: float,
        metrics_logger: MetricsLogger,
        deposit_probability: float = 0.1,
        mint_probability: float = 0.1,
    ):
        super().__init__(
            account=account,
            engine=engine,
            calculate_deposit=calculate_deposit,
            calculate_target_health_factor=calculate_target_health_factor,
            deposit_probability=deposit_probability,
            mint_probability=mint_probability,
            burn_probability=0.0,
            redeem_probability=0.0,
        )
        self.liquidation_probability = liquidation_probability
        self.metrics_logger = metrics_logger

    def liquidable_accounts(self) -> List[Account]:
        return [
            account
            for account in self.engine.accounts()
            if account != self.account and is_broken(self.engine.health_factor_of(account))
        ]

    def liquidate(self) -> None:
        liquidable_accounts = self.liquidable_accounts()
        if not liquidable_accounts or not self._want(self.liquidation_probability):
            return

        account = random.choice(liquidable_accounts)
        target = self._choose_collateral(account)
        if target is None:
            return

        asset, _ = target
        minted, _ = self.engine.account_information(account)
        debt_to_cover = min(minted // 2, self.debt_balance)
        if debt_to_cover <= 0:
            return

        self.engine.debt_token.approve(self.account, self.engine.address, debt_to_cover)
        error = self._try("liquidate", self.engine.liquidate, self.account, asset, account, debt_to_cover)
        if error is not None:
            self.metrics_logger.log(Metric.LIQUIDATION_FAILED)
        else:
            logging.info(f"{self.account} liquidated {debt_to_cover} of {account} debt against {asset}")

    def _choose_collateral(self, account: Account) -> Optional[Tuple[Asset, int]]:
        """
        The asset the account holds the most USD value of.
        """
        values = [
            (asset, self.engine.usd_value(asset, self.engine.collateral_balance_of(account, asset)))
            for asset in self.engine.collateral_assets
        ]
        values = [(asset, value) for asset, value in values if value > 0]
        if not values:
            return None

        return max(values, key=lambda x: x[1])
