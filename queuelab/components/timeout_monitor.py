"""Client-side timeout enforcement.

The deadline is measured from ``created_at``: it covers the whole request
lifetime including queueing delay, like a load balancer giving up on a
backend. A queued request past its deadline is dropped. A request in service
is only marked TIMED_OUT_PROCESSING; the server keeps working on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from queuelab.core.registry import RequestRegistry
from queuelab.core.request import RequestStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeoutResult:
    """Transitions applied by one scan."""

    dropped: int = 0
    timed_out_processing: int = 0


class TimeoutMonitor:
    """Scans queued and in-service requests for expired client deadlines."""

    def tick(self, registry: RequestRegistry, now: float, client_timeout: float) -> TimeoutResult:
        dropped = 0
        timed_out = 0
        for request in registry.with_status(RequestStatus.QUEUED, RequestStatus.PROCESSING):
            if request.age(now) <= client_timeout:
                continue
            if request.status is RequestStatus.QUEUED:
                registry.transition(request.id, RequestStatus.DROPPED, client_timed_out_at=now)
                dropped += 1
            else:
                registry.transition(
                    request.id, RequestStatus.TIMED_OUT_PROCESSING, client_timed_out_at=now
                )
                timed_out += 1

        if dropped or timed_out:
            logger.debug(
                "Timeouts at %.1f: %d dropped, %d timed out in service",
                now,
                dropped,
                timed_out,
                extra={"sim_time": now},
            )
        return TimeoutResult(dropped=dropped, timed_out_processing=timed_out)
