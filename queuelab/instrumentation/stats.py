"""Outcome counters and completion-latency percentiles.

StatsAggregator subscribes to the request registry and is updated only when
a request reaches a terminal state. Latencies are kept in completion order;
percentiles sort a copy on demand.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Sequence

from queuelab.core.request import Request, RequestStatus

DEFAULT_PERCENTILES = (50, 75, 90, 99)


def percentile(latencies: Sequence[float], p: float) -> float:
    """Calculate the p-th percentile with linear interpolation.

    Args:
        latencies: Sample values in any order.
        p: Percentile in [0, 100]. E.g., 99 for p99.

    Returns:
        Interpolated percentile value, or 0.0 if empty.

    Raises:
        ValueError: If ``p`` is outside [0, 100].
    """
    if not 0 <= p <= 100:
        raise ValueError(f"percentile must be in [0, 100], got {p}")
    vals = sorted(latencies)
    if not vals:
        return 0.0
    rank = (p / 100.0) * (len(vals) - 1)
    lo = math.floor(rank)
    hi = math.ceil(rank)
    if lo == hi:
        return float(vals[lo])
    return float(vals[lo] + (vals[hi] - vals[lo]) * (rank - lo))


@dataclass(frozen=True)
class StatsSnapshot:
    """Immutable view of the aggregator at one instant."""

    arrived: int = 0
    completed: int = 0
    dropped: int = 0
    wasted: int = 0
    rejected: int = 0
    latencies: tuple[float, ...] = ()
    percentiles: dict[int, float] = field(default_factory=dict)

    @property
    def total_terminal(self) -> int:
        return self.completed + self.dropped + self.wasted + self.rejected

    @property
    def in_flight(self) -> int:
        """Arrivals that have not reached a terminal state yet."""
        return self.arrived - self.total_terminal

    def percentile(self, p: float) -> float:
        return percentile(self.latencies, p)

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["latencies"] = list(self.latencies)
        result["percentiles"] = {f"p{p}": v for p, v in self.percentiles.items()}
        return result

    def __str__(self) -> str:
        lines = [
            "Queue Stats",
            f"  Arrived: {self.arrived}",
            f"  Completed: {self.completed} | Dropped: {self.dropped}"
            f" | Wasted: {self.wasted} | Rejected: {self.rejected}",
        ]
        if self.latencies:
            lines.append(
                "  Latency: "
                + ", ".join(f"p{p}={_format_ms(v)}" for p, v in self.percentiles.items())
            )
        else:
            lines.append("  Latency: no data yet")
        return "\n".join(lines)


def _format_ms(ms: float) -> str:
    if ms < 1000:
        return f"{round(ms)}ms"
    return f"{ms / 1000:.2f}s"


class StatsAggregator:
    """Accumulates terminal outcomes for one simulation run.

    Counters only grow; ``reset`` is the only way to bring them back to zero.
    """

    def __init__(self, tracked_percentiles: Iterable[int] = DEFAULT_PERCENTILES) -> None:
        self._tracked = tuple(tracked_percentiles)
        self.reset()

    def reset(self) -> None:
        self.arrived = 0
        self.completed = 0
        self.dropped = 0
        self.wasted = 0
        self.rejected = 0
        self._latencies: list[float] = []

    @property
    def latencies(self) -> list[float]:
        """Completion latencies in completion order (a copy)."""
        return list(self._latencies)

    def record_arrival(self) -> None:
        self.arrived += 1

    def record(self, request: Request) -> None:
        """Count a request that just reached a terminal state."""
        status = request.status
        if status is RequestStatus.COMPLETED:
            self.completed += 1
            self._latencies.append(request.latency)
        elif status is RequestStatus.DROPPED:
            self.dropped += 1
        elif status is RequestStatus.WASTED:
            self.wasted += 1
        elif status is RequestStatus.REJECTED:
            self.rejected += 1
        else:
            raise ValueError(f"not a terminal status: {status}")

    def percentile(self, p: float) -> float:
        return percentile(self._latencies, p)

    def percentiles(self, ps: Iterable[float] | None = None) -> dict[float, float]:
        ps = self._tracked if ps is None else ps
        return {p: self.percentile(p) for p in ps}

    def mean(self) -> float:
        """Mean completion latency. Returns 0.0 if empty."""
        if not self._latencies:
            return 0.0
        return sum(self._latencies) / len(self._latencies)

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            arrived=self.arrived,
            completed=self.completed,
            dropped=self.dropped,
            wasted=self.wasted,
            rejected=self.rejected,
            latencies=tuple(self._latencies),
            percentiles=self.percentiles(),
        )
