from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Type

from mithril.clock import Clock
from mithril.constants import PRECISION
from mithril.engine import PositionEngine
from mithril.metrics import MetricsLogger
from mithril.oracle import PriceOracle
from mithril.token import AssetLedger, DebtToken
from mithril.types import Account, Asset, FeedId, Price


ENGINE = Account("mithril-engine")
ALICE = Account("0xa11ce")
BOB = Account("0xb0b")
CAROL = Account("0xca401")

WETH = Asset("weth")
WBTC = Asset("wbtc")
WETH_FEED = FeedId("eth-usd")
WBTC_FEED = FeedId("btc-usd")

WETH_PRICE = 2000 * 10 ** 8
WBTC_PRICE = 30000 * 10 ** 8

STARTING_BALANCES = {
    ALICE: 1000 * PRECISION,
    BOB: 1000 * PRECISION,
    CAROL: 1000 * PRECISION,
}


@dataclass
class Deployment:
    clock: Clock
    debt_token: DebtToken
    engine: PositionEngine
    metrics_logger: MetricsLogger
    wbtc: AssetLedger
    weth: AssetLedger

    def ledger(self, asset: Asset) -> AssetLedger:
        return self.engine.asset_ledgers[asset]

    def deposit(self, account: Account, asset: Asset, amount: int) -> None:
        self.ledger(asset).approve(account, ENGINE, amount)
        self.engine.deposit_collateral(account, asset, amount)

    def deposit_and_mint(self, account: Account, asset: Asset, collateral: int, debt: int) -> None:
        self.ledger(asset).approve(account, ENGINE, collateral)
        self.engine.deposit_and_mint(account, asset, collateral, debt)

    def approve_debt(self, account: Account, amount: int) -> None:
        self.debt_token.approve(account, ENGINE, amount)

    def state(self):
        """
        Everything an operation may touch, for before/after comparisons.
        """
        return (
            self.engine.collateral.snapshot(),
            self.engine.debt.snapshot(),
            list(self.engine.events),
            self.debt_token.snapshot(),
            self.weth.snapshot(),
            self.wbtc.snapshot(),
        )


def _series(prices: Sequence[Price], periods: int):
    return list(prices) if len(prices) == periods else [prices[0]] * periods


def deploy(
    weth_prices: Sequence[Price] = (WETH_PRICE,),
    wbtc_prices: Sequence[Price] = (WBTC_PRICE,),
    balances: Optional[Dict[Account, int]] = None,
    asset_ledger_class: Type[AssetLedger] = AssetLedger,
    debt_token_class: Type[DebtToken] = DebtToken,
) -> Deployment:
    periods = max(len(weth_prices), len(wbtc_prices))
    clock = Clock(periods)
    metrics_logger = MetricsLogger(clock)
    price_oracle = PriceOracle.from_prices(
        clock,
        {
            WETH_FEED: _series(weth_prices, periods),
            WBTC_FEED: _series(wbtc_prices, periods),
        },
    )
    balances = STARTING_BALANCES if balances is None else balances
    weth = asset_ledger_class("weth", balances)
    wbtc = AssetLedger("wbtc", balances)
    debt_token = debt_token_class("mUSD", owner=ENGINE)
    engine = PositionEngine(
        address=ENGINE,
        assets=[WETH, WBTC],
        feeds=[WETH_FEED, WBTC_FEED],
        debt_token=debt_token,
        asset_ledgers={WETH: weth, WBTC: wbtc},
        price_oracle=price_oracle,
        metrics_logger=metrics_logger,
    )

    return Deployment(
        clock=clock,
        debt_token=debt_token,
        engine=engine,
        metrics_logger=metrics_logger,
        wbtc=wbtc,
        weth=weth,
    )
