"""Outcome statistics and tabular export."""

from queuelab.instrumentation.export import (
    latencies_to_series,
    requests_to_dataframe,
    stats_to_dataframe,
)
from queuelab.instrumentation.stats import (
    DEFAULT_PERCENTILES,
    StatsAggregator,
    StatsSnapshot,
    percentile,
)

__all__ = [
    "DEFAULT_PERCENTILES",
    "StatsAggregator",
    "StatsSnapshot",
    "latencies_to_series",
    "percentile",
    "requests_to_dataframe",
    "stats_to_dataframe",
]
