import logging
from typing import List

from mithril.borrower import Borrower
from mithril.clock import Clock
from mithril.engine import PositionEngine
from mithril.health import is_broken
from mithril.liquidator import Liquidator
from mithril.metrics import Metric, Metrics, MetricsLogger


class Simulation:
    borrowers: List[Borrower]
    clock: Clock
    engine: PositionEngine
    liquidators: List[Liquidator]
    metrics_logger: MetricsLogger

    def __init__(
        self,
        clock: Clock,
        engine: PositionEngine,
        borrowers: List[Borrower],
        liquidators: List[Liquidator],
        metrics_logger: MetricsLogger,
    ):
        self.clock = clock
        self.engine = engine
        self.borrowers = borrowers
        self.liquidators = liquidators
        self.metrics_logger = metrics_logger

    def run(self) -> Metrics:
        while True:
            logging.info(f"TIME: {self.clock.time}")
            for borrower in self.borrowers:
                borrower.act()
            for liquidator in self.liquidators:
                liquidator.act()
                liquidator.liquidate()

            self.record()

            should_continue = self.clock.step()
            if not should_continue:
                break

        return self.metrics_logger.metrics

    def record(self) -> None:
        accounts = self.engine.accounts()
        health_factors = [self.engine.health_factor_of(account) for account in accounts]

        self.metrics_logger.log(
            Metric.TOTAL_COLLATERAL_VALUE_USD,
            sum(self.engine.collateral_value_usd(account) for account in accounts),
        )
        self.metrics_logger.log(Metric.TOTAL_DEBT, self.engine.debt.total_minted)
        self.metrics_logger.log(
            Metric.INSOLVENT_ACCOUNTS,
            sum(1 for health_factor in health_factors if is_broken(health_factor)),
        )
