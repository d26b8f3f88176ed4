from typing import Dict, List

from mithril.constants import ADDITIONAL_FEED_PRECISION, PRECISION
from mithril.exceptions import PriceFeedError, ValidationError
from mithril.oracle import PriceOracle
from mithril.types import Asset, FeedId, Price


class Valuation:
    """
    Converts between asset amounts and USD values, both in 18-decimal fixed point.

    Every conversion reads exactly one quote and truncates on division, so
    usd_value and asset_amount_from_usd are inverses only up to one unit of
    truncation. Multiplications always happen before the division.
    """

    price_feeds: Dict[Asset, FeedId]
    price_oracle: PriceOracle

    def __init__(self, price_feeds: Dict[Asset, FeedId], price_oracle: PriceOracle):
        self.price_feeds = price_feeds
        self.price_oracle = price_oracle

    @property
    def assets(self) -> List[Asset]:
        return list(self.price_feeds)

    def price_of(self, asset: Asset) -> Price:
        if asset not in self.price_feeds:
            raise ValidationError(f"Asset {asset} is not allowed as collateral")

        price = self.price_oracle.get_price(self.price_feeds[asset])
        if price <= 0:
            raise PriceFeedError(f"Invalid price {price} for {asset}")

        return price

    def usd_value(self, asset: Asset, amount: int) -> int:
        price = self.price_of(asset)
        return (price * ADDITIONAL_FEED_PRECISION) * amount // PRECISION

    def asset_amount_from_usd(self, asset: Asset, usd_amount: int) -> int:
        price = self.price_of(asset)
        return usd_amount * PRECISION // (price * ADDITIONAL_FEED_PRECISION)
