"""Request record and lifecycle states.

A Request is created at arrival and moves through a small state machine:

    arrival -> QUEUED -> PROCESSING -> COMPLETED
                 |            |
                 v            v
              DROPPED   TIMED_OUT_PROCESSING -> WASTED

    arrival -> REJECTED  (admission control, never queued)

Records are immutable. The registry replaces a record on every transition,
so any record handed out in a snapshot stays valid after later ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RequestStatus(Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    DROPPED = "dropped"
    TIMED_OUT_PROCESSING = "timed_out_processing"
    WASTED = "wasted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_active(self) -> bool:
        """True while the request occupies the server."""
        return self in _ACTIVE


_TERMINAL = frozenset(
    {
        RequestStatus.COMPLETED,
        RequestStatus.DROPPED,
        RequestStatus.WASTED,
        RequestStatus.REJECTED,
    }
)
_ACTIVE = frozenset({RequestStatus.PROCESSING, RequestStatus.TIMED_OUT_PROCESSING})

# Edges reachable after arrival. REJECTED is only ever assigned at arrival.
ALLOWED_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.QUEUED: frozenset({RequestStatus.PROCESSING, RequestStatus.DROPPED}),
    RequestStatus.PROCESSING: frozenset(
        {RequestStatus.COMPLETED, RequestStatus.TIMED_OUT_PROCESSING}
    ),
    RequestStatus.TIMED_OUT_PROCESSING: frozenset({RequestStatus.WASTED}),
    RequestStatus.COMPLETED: frozenset(),
    RequestStatus.DROPPED: frozenset(),
    RequestStatus.WASTED: frozenset(),
    RequestStatus.REJECTED: frozenset(),
}

# Optional timestamps. Each is set at most once and never earlier than any
# timestamp already recorded on the request.
TIMESTAMP_FIELDS = (
    "queued_at",
    "service_started_at",
    "completed_at",
    "client_timed_out_at",
)


@dataclass(frozen=True)
class Request:
    """A simulated client request.

    Attributes:
        id: Opaque unique identifier.
        seq: Arrival order within the run, used to break ties.
        service_time: Milliseconds of server time this request needs. Fixed
            at creation and independent of any client timeout.
        created_at: Arrival time in milliseconds.
        status: Current lifecycle state.
    """

    id: str
    seq: int
    service_time: float
    created_at: float
    status: RequestStatus
    queued_at: float | None = None
    service_started_at: float | None = None
    completed_at: float | None = None
    client_timed_out_at: float | None = None

    @property
    def latency(self) -> float | None:
        """Time from arrival to completion, or None if not finished."""
        if self.completed_at is None:
            return None
        return self.completed_at - self.created_at

    def age(self, now: float) -> float:
        return now - self.created_at

    @property
    def terminal_at(self) -> float | None:
        """Time at which the request reached its terminal state."""
        if self.status in (RequestStatus.COMPLETED, RequestStatus.WASTED):
            return self.completed_at
        if self.status is RequestStatus.DROPPED:
            return self.client_timed_out_at
        if self.status is RequestStatus.REJECTED:
            return self.created_at
        return None
