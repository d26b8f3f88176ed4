from typing import Dict, List

from mithril.clock import Clock
from mithril.db import Quote
from mithril.exceptions import PriceFeedError, ValidationError
from mithril.types import FeedId, Price


class PriceOracle:
    """
    Serves the latest quote of each price feed at the current clock tick.
    Quotes are trusted as they are: no staleness or sanity checks beyond existence.
    """

    clock: Clock
    quotes: Dict[FeedId, List[Quote]]

    def __init__(self, clock: Clock, quotes: Dict[FeedId, List[Quote]]) -> None:
        quote_periods = [len(prices) for prices in quotes.values()]

        if len(set(quote_periods)) > 1:
            raise ValidationError("All price quote series must have the same length")

        self.clock = clock
        self.quotes = quotes

    @classmethod
    def from_prices(cls, clock: Clock, prices: Dict[FeedId, List[Price]]) -> "PriceOracle":
        return cls(
            clock=clock,
            quotes={
                feed: [
                    Quote(coin=feed, vs_currency="usd", timestamp=t, price=price)
                    for t, price in enumerate(series)
                ]
                for feed, series in prices.items()
            },
        )

    def get_price(self, feed: FeedId) -> Price:
        if feed not in self.quotes:
            raise PriceFeedError(f"Unknown price feed {feed}")

        return self.quotes[feed][self.clock.time].price
