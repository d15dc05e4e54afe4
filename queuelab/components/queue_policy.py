"""Queue disciplines: which queued request the server takes next.

Policies do not own storage. The registry holds every request; a policy is
handed the currently queued ones and picks one. This keeps a request that
times out while queued from lingering inside a policy's own buffer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Sequence

from queuelab.core.request import Request


class QueueDiscipline(Enum):
    FIFO = "FIFO"
    LIFO = "LIFO"
    ADAPTIVE_LIFO = "Adaptive LIFO"

    @classmethod
    def parse(cls, value: "str | QueueDiscipline") -> "QueueDiscipline":
        """Accept enum members, values, member names, and "AdaptiveLIFO"."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper().replace(" ", "").replace("_", "")
        for member in cls:
            if key == member.name.replace("_", ""):
                return member
        raise ValueError(f"Unknown queue discipline: {value!r}")


def _arrival_key(request: Request) -> tuple[float, int]:
    return (request.queued_at if request.queued_at is not None else request.created_at, request.seq)


class QueuePolicy(ABC):
    """Selects the next request to serve from the queued set."""

    @abstractmethod
    def select(self, queued: Sequence[Request]) -> Request | None:
        """Return the request to dispatch, or None if ``queued`` is empty."""

    @property
    def mode(self) -> str:
        """Ordering the policy would apply right now."""
        return type(self).__name__


class FIFOQueue(QueuePolicy):
    """Oldest first: smallest ``queued_at``, ties broken by arrival order."""

    def select(self, queued: Sequence[Request]) -> Request | None:
        if not queued:
            return None
        return min(queued, key=_arrival_key)

    @property
    def mode(self) -> str:
        return "FIFO"


class LIFOQueue(QueuePolicy):
    """Newest first: largest ``queued_at``, ties broken by latest arrival."""

    def select(self, queued: Sequence[Request]) -> Request | None:
        if not queued:
            return None
        return max(queued, key=_arrival_key)

    @property
    def mode(self) -> str:
        return "LIFO"
