from fractions import Fraction

import pytest
from hypothesis import given, strategies as st

from mithril.clock import Clock
from mithril.constants import ADDITIONAL_FEED_PRECISION, PRECISION
from mithril.exceptions import ExternalCallError, PriceFeedError, ValidationError
from mithril.oracle import PriceOracle
from mithril.types import Asset, FeedId
from mithril.valuation import Valuation


ASSET = Asset("weth")
FEED = FeedId("eth-usd")

prices = st.integers(min_value=10 ** 8, max_value=10 ** 15)  # 1 USD to 10 million USD
amounts = st.integers(min_value=0, max_value=10 ** 30)


def make_valuation(price: int) -> Valuation:
    clock = Clock(1)
    return Valuation({ASSET: FEED}, PriceOracle.from_prices(clock, {FEED: [price]}))


def test_usd_value_of_ten_units_at_one_thousand():
    """
    10 units priced at 1000 USD by an 8 decimals feed are worth 10,000 USD, 18 decimals.
    """
    valuation = make_valuation(1000 * 10 ** 8)

    assert valuation.usd_value(ASSET, 10 * PRECISION) == 10_000 * PRECISION


def test_asset_amount_from_usd():
    valuation = make_valuation(2000 * 10 ** 8)

    assert valuation.asset_amount_from_usd(ASSET, 100 * PRECISION) == PRECISION // 20


def test_asset_amount_from_usd_truncates():
    valuation = make_valuation(3 * 10 ** 8)

    # 1 USD at 3 USD per unit is 0.333... units
    assert valuation.asset_amount_from_usd(ASSET, PRECISION) == 333333333333333333


def test_usd_value_of_dust_truncates_to_zero():
    valuation = make_valuation(1000 * 10 ** 8)

    # 1e-18 units of a 1000 USD asset are worth 1e-15 USD, which truncates to 1000 wei of USD
    assert valuation.usd_value(ASSET, 1) == 1000
    assert make_valuation(10 ** 8 // 2).usd_value(ASSET, 1) == 0


def test_unknown_asset_is_rejected():
    valuation = make_valuation(1000 * 10 ** 8)

    with pytest.raises(ValidationError):
        valuation.usd_value(Asset("doge"), PRECISION)


@pytest.mark.parametrize("price", [0, -1])
def test_non_positive_price_is_an_external_failure(price):
    valuation = make_valuation(price)

    with pytest.raises(PriceFeedError):
        valuation.asset_amount_from_usd(ASSET, PRECISION)


def test_missing_feed_is_an_external_failure():
    clock = Clock(1)
    valuation = Valuation({ASSET: FEED}, PriceOracle.from_prices(clock, {FeedId("btc-usd"): [1]}))

    with pytest.raises(ExternalCallError):
        valuation.usd_value(ASSET, PRECISION)


def test_valuation_follows_the_clock():
    clock = Clock(2)
    valuation = Valuation({ASSET: FEED}, PriceOracle.from_prices(clock, {FEED: [1000 * 10 ** 8, 500 * 10 ** 8]}))

    assert valuation.usd_value(ASSET, PRECISION) == 1000 * PRECISION
    clock.step()
    assert valuation.usd_value(ASSET, PRECISION) == 500 * PRECISION


@given(price=prices, amount=amounts)
def test_usd_value_never_overvalues_collateral(price, amount):
    """
    Truncation rounds collateral value down: the protocol never counts more backing
    than the exact rational value.
    """
    value = make_valuation(price).usd_value(ASSET, amount)
    exact = Fraction(price * ADDITIONAL_FEED_PRECISION * amount, PRECISION)

    assert value <= exact < value + 1


@given(price=prices, usd_amount=amounts)
def test_asset_amount_from_usd_never_overpays(price, usd_amount):
    """
    Converting debt into collateral rounds down, in favour of the account being liquidated.
    """
    amount = make_valuation(price).asset_amount_from_usd(ASSET, usd_amount)
    exact = Fraction(usd_amount * PRECISION, price * ADDITIONAL_FEED_PRECISION)

    assert amount <= exact < amount + 1


@given(price=prices, amount=amounts)
def test_round_trip_from_asset_loses_at_most_one_unit(price, amount):
    valuation = make_valuation(price)

    round_trip = valuation.asset_amount_from_usd(ASSET, valuation.usd_value(ASSET, amount))

    assert amount - 1 <= round_trip <= amount


@given(price=prices, usd_amount=amounts)
def test_round_trip_from_usd_never_gains(price, usd_amount):
    valuation = make_valuation(price)

    round_trip = valuation.usd_value(ASSET, valuation.asset_amount_from_usd(ASSET, usd_amount))

    assert round_trip <= usd_amount
    assert usd_amount - round_trip <= price * ADDITIONAL_FEED_PRECISION // PRECISION + 1
