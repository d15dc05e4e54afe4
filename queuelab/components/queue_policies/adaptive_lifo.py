"""Adaptive LIFO queue discipline.

Switches between FIFO and LIFO based on how many requests are waiting.
Under normal load, FIFO provides fairness. Once the backlog reaches the
congestion threshold, LIFO serves the freshest requests first so they still
finish inside their client timeout, at the cost of older requests starving
and eventually timing out.

Example:
    from queuelab.components.queue_policies import AdaptiveLIFO

    policy = AdaptiveLIFO(congestion_threshold=10)
    next_request = policy.select(registry.queued())
"""

from dataclasses import dataclass
from typing import Sequence

from queuelab.components.queue_policy import FIFOQueue, LIFOQueue, QueuePolicy
from queuelab.core.request import Request


@dataclass(frozen=True)
class AdaptiveLIFOStats:
    """Selections made in each mode, and how often the mode flipped."""

    dequeued_fifo: int = 0
    dequeued_lifo: int = 0
    mode_switches: int = 0


class AdaptiveLIFO(QueuePolicy):
    """FIFO while the queue is short, LIFO once it reaches ``congestion_threshold``.

    The queued set is measured on every selection, so the mode can flip back
    and forth during a run as the backlog grows and drains. The first
    selection counts as a switch only if it is made in LIFO mode.
    """

    def __init__(self, congestion_threshold: int):
        if congestion_threshold < 1:
            raise ValueError(f"congestion_threshold must be >= 1, got {congestion_threshold}")

        self._congestion_threshold = congestion_threshold
        self._orderings: dict[str, QueuePolicy] = {"FIFO": FIFOQueue(), "LIFO": LIFOQueue()}
        self._current = "FIFO"
        self._selected = {"FIFO": 0, "LIFO": 0}
        self._mode_switches = 0

    @property
    def stats(self) -> AdaptiveLIFOStats:
        return AdaptiveLIFOStats(
            dequeued_fifo=self._selected["FIFO"],
            dequeued_lifo=self._selected["LIFO"],
            mode_switches=self._mode_switches,
        )

    @property
    def congestion_threshold(self) -> int:
        return self._congestion_threshold

    def is_congested(self, depth: int) -> bool:
        """Whether a queue of ``depth`` requests is served LIFO."""
        return depth >= self._congestion_threshold

    @property
    def mode(self) -> str:
        """Ordering used by the most recent selection."""
        return self._current

    def select(self, queued: Sequence[Request]) -> Request | None:
        if not queued:
            return None

        wanted = "LIFO" if self.is_congested(len(queued)) else "FIFO"
        if wanted != self._current:
            self._mode_switches += 1
            self._current = wanted

        self._selected[wanted] += 1
        return self._orderings[wanted].select(queued)
