import logging
import sys
from argparse import ArgumentParser
from functools import partial
from random import gauss, uniform
from typing import Dict, List

from mithril.borrower import Borrower
from mithril.clock import Clock
from mithril.constants import PRECISION
from mithril.crawlers.coingecko import coin_ids
from mithril.db import Quote
from mithril.engine import PositionEngine
from mithril.liquidator import Liquidator
from mithril.metrics import (
    Metric,
    MetricsAggregatorMax,
    MetricsAggregatorSum,
    MetricsLogger,
    make_timeseries,
)
from mithril.oracle import PriceOracle
from mithril.runner import Runner
from mithril.simulation import Simulation
from mithril.token import AssetLedger, DebtToken
from mithril.types import Account, Asset, FeedId
from mithril.util import (
    download_price_data,
    init_price_db,
    make_agent_names,
    read_quotes_from_db,
    units,
)


ENGINE_ADDRESS = Account("mithril-engine")
DEFAULT_HOURS = 2000
DEFAULT_TOKENS = ["ethereum", "bitcoin"]


def setup_logger(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def run_crawler():
    """
    Download price data for coin `token` for the last `days` days from Coingeko API
    """
    parser = ArgumentParser()
    parser.add_argument(
        "token", metavar="token", type=str, help="The token we need prices for"
    )
    parser.add_argument(
        "days", metavar="days", type=int, help="Number of days of historical data"
    )
    args = parser.parse_args()

    setup_logger()

    valid_coin_ids = list(coin_ids())
    valid_coin_ids_msg = f"Coin should be one of {valid_coin_ids}"

    token = args.token
    assert token in valid_coin_ids, valid_coin_ids_msg

    download_price_data(token=token, hours=args.days * 24)


def feed_of(token: str) -> FeedId:
    return FeedId(f"{token}-usd")


def build_simulation(
    quotes: Dict[str, List[Quote]],
    borrowers_number: int,
    liquidators_number: int,
) -> Simulation:
    tokens = list(quotes)
    periods = min(len(series) for series in quotes.values())
    assets = [Asset(token) for token in tokens]

    clock = Clock(periods)
    metrics_logger = MetricsLogger(clock)
    price_oracle = PriceOracle(
        clock=clock,
        quotes={feed_of(token): series[-periods:] for token, series in quotes.items()},
    )
    agent_names = list(make_agent_names(borrowers_number + liquidators_number))
    asset_ledgers = {
        asset: AssetLedger(
            symbol=asset,
            balances={Account(name): units(abs(gauss(mu=50_000, sigma=20_000))) for name in agent_names},
        )
        for asset in assets
    }
    engine = PositionEngine(
        address=ENGINE_ADDRESS,
        assets=assets,
        feeds=[feed_of(token) for token in tokens],
        debt_token=DebtToken(symbol="mUSD", owner=ENGINE_ADDRESS),
        asset_ledgers=asset_ledgers,
        price_oracle=price_oracle,
        metrics_logger=metrics_logger,
    )

    def calculate_deposit(asset: Asset) -> int:
        usd = units(abs(gauss(mu=3000, sigma=5000)) + 100.0)
        return engine.asset_amount_from_usd(asset, usd)

    def calculate_target_health_factor() -> int:
        return int(uniform(1.01, 3.0) * PRECISION)

    borrowers = [
        Borrower(
            account=Account(name),
            engine=engine,
            calculate_deposit=calculate_deposit,
            calculate_target_health_factor=calculate_target_health_factor,
            deposit_probability=0.1,
            mint_probability=0.1,
            burn_probability=0.05,
            redeem_probability=0.05,
        )
        for name in agent_names[:borrowers_number]
    ]
    liquidators = [
        Liquidator(
            account=Account(name),
            engine=engine,
            calculate_deposit=calculate_deposit,
            calculate_target_health_factor=lambda: 3 * PRECISION,
            liquidation_probability=0.5,
            metrics_logger=metrics_logger,
        )
        for name in agent_names[borrowers_number:]
    ]

    return Simulation(
        clock=clock,
        engine=engine,
        borrowers=borrowers,
        liquidators=liquidators,
        metrics_logger=metrics_logger,
    )


def run_simulation():
    parser = ArgumentParser()
    parser.add_argument("--hours", type=int, default=DEFAULT_HOURS, help="Number of hourly price points")
    parser.add_argument("--borrowers", type=int, default=10, help="Number of borrowers")
    parser.add_argument("--liquidators", type=int, default=2, help="Number of liquidators")
    parser.add_argument("--simulations", type=int, default=1, help="Number of independent simulations")
    parser.add_argument("--tokens", nargs="+", default=DEFAULT_TOKENS, help="Collateral coins, as CoinGecko ids")
    args = parser.parse_args()

    setup_logger()

    db = init_price_db(args.tokens, args.hours)
    quotes = {token: read_quotes_from_db(db, token, args.hours) for token in args.tokens}
    db.close()

    runner = Runner(
        simulation_factory=partial(
            build_simulation,
            quotes=quotes,
            borrowers_number=args.borrowers,
            liquidators_number=args.liquidators,
        ),
        simulations_number=args.simulations,
    )

    periods = min(len(series) for series in quotes.values())
    for n, metrics in enumerate(runner.run()):
        liquidations = make_timeseries(metrics, Metric.LIQUIDATION, MetricsAggregatorSum(), periods)
        insolvent_accounts = make_timeseries(metrics, Metric.INSOLVENT_ACCOUNTS, MetricsAggregatorMax(), periods)
        total_debt = make_timeseries(metrics, Metric.TOTAL_DEBT, MetricsAggregatorMax(), periods)

        print(f"SIMULATION {n}")
        print(f"LIQUIDATED_DEBT => {sum(liquidations) / PRECISION}")
        print(f"MAX_INSOLVENT_ACCOUNTS => {max(insolvent_accounts, default=0)}")
        print(f"FINAL_TOTAL_DEBT => {total_debt[-1] / PRECISION if total_debt else 0.0}")
