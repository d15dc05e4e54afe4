"""Tabular export of requests and stats for renderers and notebooks."""

from __future__ import annotations

from dataclasses import asdict
from typing import Iterable

import pandas as pd

from queuelab.core.request import Request
from queuelab.instrumentation.stats import StatsSnapshot

REQUEST_COLUMNS = [
    "id",
    "seq",
    "status",
    "service_time",
    "created_at",
    "queued_at",
    "service_started_at",
    "completed_at",
    "client_timed_out_at",
    "latency",
]


def requests_to_dataframe(requests: Iterable[Request]) -> pd.DataFrame:
    """One row per request, in the order given. Missing timestamps are NaN."""
    rows = []
    for request in requests:
        row = asdict(request)
        row["status"] = request.status.value
        row["latency"] = request.latency
        rows.append(row)
    return pd.DataFrame(rows, columns=REQUEST_COLUMNS)


def stats_to_dataframe(snapshot: StatsSnapshot) -> pd.DataFrame:
    """Counters and latency percentiles as a two-column (metric, value) frame."""
    rows = [
        ("arrived", snapshot.arrived),
        ("completed", snapshot.completed),
        ("dropped", snapshot.dropped),
        ("wasted", snapshot.wasted),
        ("rejected", snapshot.rejected),
    ]
    rows.extend((f"p{p}", value) for p, value in snapshot.percentiles.items())
    return pd.DataFrame(rows, columns=["metric", "value"])


def latencies_to_series(snapshot: StatsSnapshot) -> pd.Series:
    """Completion latencies in completion order."""
    return pd.Series(snapshot.latencies, name="latency_ms", dtype="float64")
