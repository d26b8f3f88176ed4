from unittest import mock

import pytest

from mithril.clock import Clock
from mithril.crawlers import coingecko
from mithril.db import Quote, init_db
from mithril.exceptions import PriceFeedError, ValidationError
from mithril.oracle import PriceOracle
from mithril.types import FeedId
from mithril.util import read_quotes_from_db, to_feed_price, units


ETH = FeedId("eth-usd")
BTC = FeedId("btc-usd")


def make_test_quotes_from_prices(prices):
    return [
        Quote(id=0, coin='', vs_currency='usd', timestamp=t, price=price)
        for t, price in enumerate(prices)
    ]


def test_oracle_serves_the_quote_of_the_current_tick():
    clock = Clock(3)
    oracle = PriceOracle(
        clock=clock,
        quotes={
            ETH: make_test_quotes_from_prices([1, 2, 3]),
            BTC: make_test_quotes_from_prices([10, 20, 30]),
        },
    )

    assert oracle.get_price(ETH) == 1
    clock.step()
    clock.step()
    assert oracle.get_price(ETH) == 3
    assert oracle.get_price(BTC) == 30
    assert clock.step() is False
    assert oracle.get_price(ETH) == 3


def test_oracle_requires_series_of_equal_length():
    with pytest.raises(ValidationError):
        PriceOracle(
            clock=Clock(2),
            quotes={
                ETH: make_test_quotes_from_prices([1, 2]),
                BTC: make_test_quotes_from_prices([1]),
            },
        )


def test_unknown_feed():
    oracle = PriceOracle.from_prices(Clock(1), {ETH: [1]})

    with pytest.raises(PriceFeedError):
        oracle.get_price(BTC)


def test_to_feed_price_keeps_eight_decimals():
    assert to_feed_price(1.0) == 10 ** 8
    assert to_feed_price(1834.123456789) == 183412345678
    assert to_feed_price(0.1) == 10 ** 7


def test_units():
    assert units(1) == 10 ** 18
    assert units("0.5") == 5 * 10 ** 17


def test_quotes_round_trip_through_the_db():
    db = init_db("sqlite://")
    for t, price in enumerate([300, 100, 200]):
        db.add(Quote(coin="ethereum", vs_currency="usd", timestamp=10 - t, price=price))
    db.add(Quote(coin="bitcoin", vs_currency="usd", timestamp=0, price=1))
    db.commit()

    quotes = read_quotes_from_db(db, "ethereum", 2)

    assert [quote.price for quote in quotes] == [100, 300]


def test_market_chart_range_merges_and_sorts_prices():
    response = mock.Mock()
    response.json.return_value = {"prices": [[2000, 2.0], [1000, 1.0], [2000, 2.0]]}

    with mock.patch.object(coingecko.requests, "get", return_value=response) as get:
        prices = coingecko.market_chart_range(
            coin_id="ethereum",
            vs_currency="usd",
            from_timestamp=0,
            to_timestamp=3600,
        )

    assert prices == [(1, 1.0), (2, 2.0)]
    assert get.call_args.kwargs["params"] == {"vs_currency": "usd", "from": 0, "to": 3600}
