from typing import List, Tuple

from mithril.collateral import CollateralLedger
from mithril.constants import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from mithril.debt import DebtLedger
from mithril.exceptions import StateInvariantError
from mithril.types import Account, Asset
from mithril.valuation import Valuation


def calculate_health_factor(total_minted: int, collateral_value_usd: int) -> int:
    """
    Ratio of threshold-adjusted collateral value to minted debt, 18-decimal fixed point.
    An account without debt is infinitely healthy.
    """
    if total_minted == 0:
        return MAX_HEALTH_FACTOR

    collateral_adjusted_for_threshold = collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
    return collateral_adjusted_for_threshold * PRECISION // total_minted


def is_broken(health_factor: int) -> bool:
    return health_factor < MIN_HEALTH_FACTOR


class HealthFactorEvaluator:
    assets: List[Asset]
    collateral: CollateralLedger
    debt: DebtLedger
    valuation: Valuation

    def __init__(
        self,
        assets: List[Asset],
        collateral: CollateralLedger,
        debt: DebtLedger,
        valuation: Valuation,
    ):
        """
        - assets: the allowed collateral, in the order values are aggregated.
        """
        self.assets = assets
        self.collateral = collateral
        self.debt = debt
        self.valuation = valuation

    def collateral_value_usd(self, account: Account) -> int:
        return sum(
            self.valuation.usd_value(asset, self.collateral.balance_of(account, asset))
            for asset in self.assets
        )

    def account_information(self, account: Account) -> Tuple[int, int]:
        return self.debt.minted_of(account), self.collateral_value_usd(account)

    def health_factor(self, account: Account) -> int:
        return calculate_health_factor(*self.account_information(account))

    def revert_if_broken(self, account: Account) -> None:
        health_factor = self.health_factor(account)
        if is_broken(health_factor):
            raise StateInvariantError(account, health_factor)
