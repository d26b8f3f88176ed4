# CoinGecko API crawler
# https://www.coingecko.com/en/api/documentation
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

import requests

from mithril.constants import SECONDS_IN_A_DAY
from mithril.types import Timestamp


COINGEKO_BASE_URL = "https://api.coingecko.com/api/v3"
REQUEST_TIMEOUT_SECONDS = 30


def coin_ids() -> Iterable[str]:
    response = requests.get(f"{COINGEKO_BASE_URL}/coins/list", timeout=REQUEST_TIMEOUT_SECONDS)
    response.raise_for_status()
    for coin in response.json():
        yield coin["id"]


def _format(timestamp: Timestamp) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S')


def market_chart_range(
    coin_id: str,
    vs_currency: str,
    from_timestamp: Timestamp,
    to_timestamp: Timestamp,
) -> List[Tuple[Timestamp, float]]:
    """
    Hourly USD prices of `coin_id` between two unix timestamps, oldest first.
    """
    days = int((to_timestamp - from_timestamp) / SECONDS_IN_A_DAY)
    days_per_api_call = 30
    periods = (
        int(days / days_per_api_call) + 1
    )  # Add an extra call to also download the rest
    date_ranges = [
        (
            from_timestamp + (n * days_per_api_call * SECONDS_IN_A_DAY),
            min(to_timestamp, from_timestamp + ((n + 1) * days_per_api_call * SECONDS_IN_A_DAY)),
        )
        for n in range(periods)
    ]

    prices = {}  # We write everything in a dict to avoid duplicate price samples
    for start, end in date_ranges:
        logging.info(f"Downloading {coin_id} prices {_format(start)} => {_format(end)}")
        response = requests.get(
            f"{COINGEKO_BASE_URL}/coins/{coin_id}/market_chart/range",
            params={"vs_currency": vs_currency, "from": start, "to": end},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
        prices.update({int(timestamp / 1000): price for timestamp, price in data["prices"]})

    # Sort everything by ascending timestamp before returning
    return sorted(
        [(timestamp, price) for timestamp, price in prices.items()], key=lambda x: x[0]
    )
