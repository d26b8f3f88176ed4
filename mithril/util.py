import logging
import time
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, List, Set

import names

from mithril.constants import FEED_DECIMALS, PRECISION, SECONDS_IN_AN_HOUR
from mithril.crawlers.coingecko import (
    coin_ids,
    market_chart_range,
)
from mithril.db import drop_all, init_db, Quote
from mithril.types import (
    Price,
    Timestamp,
)


def to_feed_price(price: float) -> Price:
    """
    Converts a USD price into the 8-decimal fixed point a price feed reports, truncating.
    """
    scaled = Decimal(str(price)).scaleb(FEED_DECIMALS).to_integral_value(rounding=ROUND_DOWN)
    return int(scaled)


def units(amount) -> int:
    """
    Whole (or decimal) token units to 18-decimal fixed point.
    """
    return int(Decimal(str(amount)) * PRECISION)


def download_price_data(token: str, hours: int) -> None:
    VS_CURRENCY = "usd"
    logging.info(f"Download {hours} price points for {token}")
    valid_coin_ids = list(coin_ids())
    valid_coin_ids_msg = f"Coin should be one of {valid_coin_ids}"

    assert token in valid_coin_ids, valid_coin_ids_msg

    now = Timestamp(time.time())
    prices = market_chart_range(
        coin_id=token,
        vs_currency=VS_CURRENCY,
        from_timestamp=now - hours * SECONDS_IN_AN_HOUR,
        to_timestamp=now,
    )

    quotes = [
        Quote(coin=token, vs_currency=VS_CURRENCY, timestamp=timestamp, price=to_feed_price(price))
        for timestamp, price in prices
    ]

    db = init_db()

    for quote in quotes:
        db.add(quote)

    db.commit()


def init_price_db(tokens: Iterable[str], hours: int):
    db = init_db()

    if not all(
        db.query(Quote).filter(Quote.coin == token).count() >= hours for token in tokens
    ):
        db.close()
        drop_all()
        db = init_db()
        for token in tokens:
            download_price_data(token, hours)

    return db


def make_agent_names(n: int) -> Set[str]:
    agent_names = set()
    while len(agent_names) < n:
        name = names.get_full_name()
        agent_names.add(name)

    return agent_names


def read_quotes_from_db(db, token: str, hours: int) -> List[Quote]:
    return list(
        db.query(Quote).filter(Quote.coin == token).order_by(Quote.timestamp).all()
    )[-hours:]
