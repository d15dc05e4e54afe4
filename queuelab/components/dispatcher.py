"""Single-server dispatcher.

The dispatcher owns the server slot. When the slot is free it asks the
queue policy for the next request, starts serving it, and records when the
service will finish. Nothing runs concurrently: a scheduled completion is
just a due time compared against ``now`` on later ticks. When it fires, the
request is stamped with that due time.

Service always takes the request's full ``service_time``. A client timeout
during service does not free the server early; the completion then lands as
WASTED instead of COMPLETED.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from queuelab.components.queue_policy import QueuePolicy
from queuelab.core.errors import InvariantViolation
from queuelab.core.registry import RequestRegistry
from queuelab.core.request import Request, RequestStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatcherStats:
    """Frozen snapshot of dispatcher activity."""

    dispatched: int = 0
    completed: int = 0
    wasted: int = 0


class Dispatcher:
    """Enforces single-concurrency service over a request registry."""

    def __init__(self) -> None:
        self._in_service: str | None = None
        self._due_at: float | None = None
        self._dispatched = 0
        self._completed = 0
        self._wasted = 0

    @property
    def busy(self) -> bool:
        return self._in_service is not None

    @property
    def in_service(self) -> str | None:
        """Id of the request occupying the server."""
        return self._in_service

    @property
    def busy_until(self) -> float | None:
        """Time the scheduled completion is due, if the server is busy."""
        return self._due_at

    @property
    def stats(self) -> DispatcherStats:
        return DispatcherStats(
            dispatched=self._dispatched,
            completed=self._completed,
            wasted=self._wasted,
        )

    def tick(self, registry: RequestRegistry, policy: QueuePolicy, now: float) -> Request | None:
        """Start serving the next queued request if the server is idle.

        Returns:
            The request that entered service, or None.

        Raises:
            InvariantViolation: If the registry shows an active request the
                dispatcher did not start.
        """
        if self.busy:
            return None

        active = registry.active()
        if active:
            raise InvariantViolation(
                f"server idle but {active[0].id} is {active[0].status.value}",
                request_id=active[0].id,
                status=active[0].status,
            )

        chosen = policy.select(registry.queued())
        if chosen is None:
            return None

        started = registry.transition(
            chosen.id, RequestStatus.PROCESSING, service_started_at=now
        )
        self._in_service = started.id
        self._due_at = now + started.service_time
        self._dispatched += 1
        logger.debug(
            "Dispatched %s (%s) at %.1f, due at %.1f",
            started.id,
            policy.mode,
            now,
            self._due_at,
            extra={"sim_time": now},
        )
        return started

    def fire_due(
        self,
        registry: RequestRegistry,
        now: float,
        client_timeout: float | None = None,
    ) -> Request | None:
        """Fire the pending completion if its due time has been reached.

        The completion is stamped with its due time, not with ``now``, so the
        outcome does not depend on how far apart ticks are. When
        ``client_timeout`` is given and the client's deadline fell before the
        due time, a request still PROCESSING is first marked
        TIMED_OUT_PROCESSING at the deadline and then finishes WASTED.

        Returns:
            The finished request (COMPLETED or WASTED), or None.

        Raises:
            InvariantViolation: If the request in service is in any status
                other than PROCESSING or TIMED_OUT_PROCESSING.
        """
        if self._in_service is None or now < self._due_at:
            return None

        finished_at = self._due_at
        request = registry.get(self._in_service)
        status = request.status if request is not None else None

        if (
            status is RequestStatus.PROCESSING
            and client_timeout is not None
            and finished_at - request.created_at > client_timeout
        ):
            request = registry.transition(
                request.id,
                RequestStatus.TIMED_OUT_PROCESSING,
                # A timeout lowered mid-service can put the deadline before the start.
                client_timed_out_at=max(
                    request.created_at + client_timeout, request.service_started_at
                ),
            )
            status = request.status
            logger.debug(
                "Deadline of %s passed at %.1f, between ticks",
                request.id,
                request.client_timed_out_at,
                extra={"sim_time": now},
            )

        if status is RequestStatus.PROCESSING:
            finished = registry.transition(
                request.id, RequestStatus.COMPLETED, completed_at=finished_at
            )
            self._completed += 1
        elif status is RequestStatus.TIMED_OUT_PROCESSING:
            finished = registry.transition(
                request.id, RequestStatus.WASTED, completed_at=finished_at
            )
            self._wasted += 1
        else:
            logger.error(
                "Completion fired for %s in unexpected status %s", self._in_service, status
            )
            raise InvariantViolation(
                f"completion fired for {self._in_service} in status {status}",
                request_id=self._in_service,
                status=status,
            )

        self._in_service = None
        self._due_at = None
        return finished

    def abort(self) -> None:
        """Forget the pending completion and free the server."""
        self._in_service = None
        self._due_at = None

    def reset(self) -> None:
        self.abort()
        self._dispatched = 0
        self._completed = 0
        self._wasted = 0
