"""Request registry: the single owner of in-flight request state.

Every status change goes through ``RequestRegistry.transition``, which
checks the lifecycle edge, the timestamp rules, and the single-server
invariant before touching anything. Terminal transitions are published to
subscribers; the stats aggregator is fed this way.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterator

from queuelab.core.errors import InvariantViolation
from queuelab.core.request import (
    ALLOWED_TRANSITIONS,
    TIMESTAMP_FIELDS,
    Request,
    RequestStatus,
)
from queuelab.utils.ids import IdSequence

logger = logging.getLogger(__name__)

TerminalListener = Callable[[Request], None]


class RequestRegistry:
    """Arrival-ordered store of requests for one simulation run."""

    def __init__(self) -> None:
        self._requests: dict[str, Request] = {}
        self._ids = IdSequence()
        self._listeners: list[TerminalListener] = []

    def subscribe(self, listener: TerminalListener) -> None:
        """Register a callback invoked with each request that turns terminal."""
        self._listeners.append(listener)

    # === Arrival ===

    def admit_queued(self, service_time: float, now: float) -> Request:
        """Create a request that enters the queue immediately."""
        return self._arrive(service_time, now, RequestStatus.QUEUED, queued_at=now)

    def reject(self, service_time: float, now: float) -> Request:
        """Create a request that admission control turned away."""
        return self._arrive(service_time, now, RequestStatus.REJECTED)

    def _arrive(
        self,
        service_time: float,
        now: float,
        status: RequestStatus,
        queued_at: float | None = None,
    ) -> Request:
        seq, request_id = self._ids.next()
        request = Request(
            id=request_id,
            seq=seq,
            service_time=service_time,
            created_at=now,
            status=status,
            queued_at=queued_at,
        )
        self._requests[request_id] = request
        logger.debug(
            "Request %s arrived at %.1f -> %s",
            request_id,
            now,
            status.value,
            extra={"sim_time": now},
        )
        if status.is_terminal:
            self._publish(request)
        return request

    # === Transitions ===

    def transition(self, request_id: str, status: RequestStatus, **timestamps: float) -> Request:
        """Move a request to ``status`` and record the given timestamps.

        Raises:
            InvariantViolation: If the request is unknown, the edge is not
                allowed, a timestamp is set twice or out of order, or a second
                request would occupy the server.
        """
        current = self._requests.get(request_id)
        if current is None:
            raise self._violation(f"unknown request {request_id}", request_id, None)

        if status not in ALLOWED_TRANSITIONS[current.status]:
            raise self._violation(
                f"illegal transition {current.status.value} -> {status.value}",
                request_id,
                current.status,
            )

        latest = max(
            [current.created_at]
            + [getattr(current, name) for name in TIMESTAMP_FIELDS if getattr(current, name) is not None]
        )
        for name, value in timestamps.items():
            if name not in TIMESTAMP_FIELDS:
                raise TypeError(f"unknown timestamp field: {name}")
            if getattr(current, name) is not None:
                raise self._violation(f"{name} already set", request_id, current.status)
            if value < latest:
                raise self._violation(
                    f"{name}={value} precedes recorded timestamp {latest}",
                    request_id,
                    current.status,
                )

        if status is RequestStatus.PROCESSING:
            busy = [r.id for r in self.active() if r.id != request_id]
            if busy:
                raise self._violation(
                    f"server already occupied by {busy[0]}", request_id, current.status
                )

        updated = replace(current, status=status, **timestamps)
        self._requests[request_id] = updated
        logger.debug(
            "Request %s: %s -> %s", request_id, current.status.value, status.value
        )
        if status.is_terminal:
            self._publish(updated)
        return updated

    def _publish(self, request: Request) -> None:
        for listener in self._listeners:
            listener(request)

    def _violation(
        self, message: str, request_id: str | None, status: RequestStatus | None
    ) -> InvariantViolation:
        logger.error("Invariant violation: %s", message)
        return InvariantViolation(message, request_id=request_id, status=status)

    # === Queries ===

    def get(self, request_id: str) -> Request | None:
        return self._requests.get(request_id)

    def with_status(self, *statuses: RequestStatus) -> list[Request]:
        """Requests in any of ``statuses``, in arrival order."""
        return [r for r in self._requests.values() if r.status in statuses]

    def queued(self) -> list[Request]:
        return self.with_status(RequestStatus.QUEUED)

    def active(self) -> list[Request]:
        """Requests currently occupying the server (zero or one)."""
        return [r for r in self._requests.values() if r.status.is_active]

    def count(self, status: RequestStatus) -> int:
        return sum(1 for r in self._requests.values() if r.status is status)

    def __len__(self) -> int:
        return len(self._requests)

    def __iter__(self) -> Iterator[Request]:
        return iter(list(self._requests.values()))

    # === Housekeeping ===

    def evict(self, now: float, retention_ms: float) -> int:
        """Forget terminal requests older than ``retention_ms``.

        Returns:
            Number of requests removed.
        """
        expired = [
            r.id
            for r in self._requests.values()
            if r.status.is_terminal and now - r.terminal_at > retention_ms
        ]
        for request_id in expired:
            del self._requests[request_id]
        return len(expired)

    def clear(self) -> None:
        """Drop every request and restart the id sequence."""
        self._requests.clear()
        self._ids = IdSequence()
