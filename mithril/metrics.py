from enum import Enum
from typing import Dict, List, NewType

from mithril.clock import Clock
from mithril.types import Timestamp


class Metric(Enum):
    COLLATERAL_DEPOSITED = "collateral_deposited"
    COLLATERAL_REDEEMED = "collateral_redeemed"
    DEBT_BURNED = "debt_burned"
    DEBT_MINTED = "debt_minted"
    INSOLVENT_ACCOUNTS = "insolvent_accounts"
    LIQUIDATION = "liquidation"
    LIQUIDATION_FAILED = "liquidation_failed"
    OPERATION_FAILED = "operation_failed"
    TOTAL_COLLATERAL_VALUE_USD = "total_collateral_value_usd"
    TOTAL_DEBT = "total_debt"


Metrics = NewType("Metrics", Dict[Metric, Dict[Timestamp, List[float]]])


class MetricsAggregator:
    def aggregate(self, samples: List[float]) -> float:
        ...


class MetricsAggregatorSum(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return sum(samples)


class MetricsAggregatorAvg(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return sum(samples) / len(samples)


class MetricsAggregatorMax(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return max(samples)


class MetricsAggregatorMin(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return min(samples)


def make_timeseries(metrics: Metrics, metric: Metric, aggregator: MetricsAggregator, periods: int) -> List[float]:
    return [
        aggregator.aggregate(metrics[metric][t])
        if metric in metrics and t in metrics[metric] else 0.0
        for t in range(periods)
    ]


class MetricsLogger:
    clock: Clock
    metrics: Metrics

    def __init__(self, clock: Clock):
        self.clock = clock
        self.metrics = Metrics({})

    def log(self, metric: Metric, sample: float=1.0) -> None:
        if metric not in self.metrics:
            self.metrics[metric] = {}

        if self.clock.time not in self.metrics[metric]:
            self.metrics[metric][self.clock.time] = []

        self.metrics[metric][self.clock.time].append(sample)

    def count(self, metric: Metric) -> int:
        return sum(len(samples) for samples in self.metrics.get(metric, {}).values())
