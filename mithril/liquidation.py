import logging
from typing import Any, Callable

from mithril.constants import LIQUIDATION_BONUS, LIQUIDATION_PRECISION
from mithril.exceptions import LiquidationEffectError, LiquidationPreconditionError
from mithril.health import HealthFactorEvaluator, is_broken
from mithril.types import Account, Asset, Liquidated
from mithril.valuation import Valuation


def liquidation_bonus(collateral_amount: int) -> int:
    return collateral_amount * LIQUIDATION_BONUS // LIQUIDATION_PRECISION


class LiquidationCoordinator:
    """
    Lets a third party repay debt of an insolvent account in exchange for that account's
    collateral plus a LIQUIDATION_BONUS percent premium.
    """

    health: HealthFactorEvaluator
    valuation: Valuation

    def __init__(
        self,
        health: HealthFactorEvaluator,
        valuation: Valuation,
        redeem_to: Callable[[Account, Account, Asset, int], None],
        burn: Callable[[int, Account, Account], None],
        emit: Callable[[Any], None],
    ):
        """
        - health: evaluates health factors of the target and of the liquidator.
        - valuation: converts the covered debt into collateral.
        - redeem_to: moves collateral of an account out of the engine to a recipient.
        - burn: burns debt of an account using debt tokens pulled from a payer.
        - emit: records a committed liquidation.
        """
        self.health = health
        self.valuation = valuation
        self.redeem_to = redeem_to
        self.burn = burn
        self.emit = emit

    def liquidate(self, liquidator: Account, asset: Asset, account: Account, debt_to_cover: int) -> int:
        """
        Repays `debt_to_cover` of `account` with the liquidator's debt tokens and pays out the
        equivalent amount of `asset` plus the bonus. Returns the collateral seized.
        Must run inside an engine operation, which undoes everything if a check fails.
        """
        starting_health_factor = self.health.health_factor(account)
        if not is_broken(starting_health_factor):
            raise LiquidationPreconditionError(account, starting_health_factor)

        covered_amount = self.valuation.asset_amount_from_usd(asset, debt_to_cover)
        collateral_seized = covered_amount + liquidation_bonus(covered_amount)

        self.redeem_to(account, liquidator, asset, collateral_seized)
        self.burn(debt_to_cover, account, liquidator)

        ending_health_factor = self.health.health_factor(account)
        if ending_health_factor <= starting_health_factor:
            raise LiquidationEffectError(
                f"Liquidation did not improve the health factor of {account}: "
                f"{starting_health_factor} => {ending_health_factor}",
                account=account,
                health_factor=ending_health_factor,
            )

        liquidator_health_factor = self.health.health_factor(liquidator)
        if is_broken(liquidator_health_factor):
            raise LiquidationEffectError(
                f"Liquidation breaks the health factor of liquidator {liquidator}: {liquidator_health_factor}",
                account=liquidator,
                health_factor=liquidator_health_factor,
            )

        self.emit(
            Liquidated(
                account=account,
                liquidator=liquidator,
                asset=asset,
                debt_covered=debt_to_cover,
                collateral_seized=collateral_seized,
            )
        )
        logging.debug(f"Liquidation of {account}: {starting_health_factor} => {ending_health_factor}")

        return collateral_seized
