"""Admission control applied once per arrival.

A bounded queue turns arrivals away while it is full. Rejected requests are
recorded as terminal immediately and never take a queue slot or server time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from queuelab.core.registry import RequestRegistry
from queuelab.core.request import Request, RequestStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmissionStats:
    """Frozen snapshot of admission decisions."""

    admitted: int = 0
    rejected: int = 0


class AdmissionController:
    """Accepts or rejects arrivals based on queue occupancy.

    ``max_queue_size`` of 0 means the queue is unbounded.
    """

    def __init__(self) -> None:
        self._admitted = 0
        self._rejected = 0

    @property
    def stats(self) -> AdmissionStats:
        return AdmissionStats(admitted=self._admitted, rejected=self._rejected)

    @staticmethod
    def has_room(registry: RequestRegistry, max_queue_size: int) -> bool:
        if max_queue_size <= 0:
            return True
        return registry.count(RequestStatus.QUEUED) < max_queue_size

    def admit(
        self,
        registry: RequestRegistry,
        max_queue_size: int,
        service_time: float,
        now: float,
    ) -> Request:
        """Create the arriving request as QUEUED or REJECTED.

        Returns:
            The new request. Check ``status`` for the decision.
        """
        if self.has_room(registry, max_queue_size):
            self._admitted += 1
            return registry.admit_queued(service_time, now)

        self._rejected += 1
        logger.debug("Queue full (%d), rejecting arrival at %.1f", max_queue_size, now)
        return registry.reject(service_time, now)

    def reset(self) -> None:
        self._admitted = 0
        self._rejected = 0
