"""Queue disciplines and the factory that maps settings onto them."""

from typing import Sequence

from queuelab.components.queue_policies.adaptive_lifo import AdaptiveLIFO, AdaptiveLIFOStats
from queuelab.components.queue_policy import FIFOQueue, LIFOQueue, QueueDiscipline, QueuePolicy
from queuelab.core.request import Request

__all__ = [
    "AdaptiveLIFO",
    "AdaptiveLIFOStats",
    "FIFOQueue",
    "LIFOQueue",
    "QueueDiscipline",
    "QueuePolicy",
    "policy_for",
    "select_next",
]


def policy_for(discipline: QueueDiscipline | str, adaptive_threshold: int = 1) -> QueuePolicy:
    """Build the policy object for a configured discipline."""
    discipline = QueueDiscipline.parse(discipline)
    if discipline is QueueDiscipline.FIFO:
        return FIFOQueue()
    if discipline is QueueDiscipline.LIFO:
        return LIFOQueue()
    return AdaptiveLIFO(congestion_threshold=adaptive_threshold)


def select_next(
    queued: Sequence[Request],
    mode: QueueDiscipline | str,
    adaptive_threshold: int = 1,
) -> Request | None:
    """Stateless selection: the request ``mode`` would dispatch next."""
    return policy_for(mode, adaptive_threshold).select(queued)
