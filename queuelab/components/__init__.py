"""Simulation components: admission, queue disciplines, dispatch and timeouts."""

from queuelab.components.admission import AdmissionController, AdmissionStats
from queuelab.components.dispatcher import Dispatcher, DispatcherStats
from queuelab.components.queue_policies import (
    AdaptiveLIFO,
    AdaptiveLIFOStats,
    FIFOQueue,
    LIFOQueue,
    QueueDiscipline,
    QueuePolicy,
    policy_for,
    select_next,
)
from queuelab.components.timeout_monitor import TimeoutMonitor, TimeoutResult

__all__ = [
    "AdaptiveLIFO",
    "AdaptiveLIFOStats",
    "AdmissionController",
    "AdmissionStats",
    "Dispatcher",
    "DispatcherStats",
    "FIFOQueue",
    "LIFOQueue",
    "QueueDiscipline",
    "QueuePolicy",
    "TimeoutMonitor",
    "TimeoutResult",
    "policy_for",
    "select_next",
]
