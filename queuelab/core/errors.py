"""Exception hierarchy for queuelab.

Configuration problems are user-facing and recoverable: the simulation keeps
its previous settings. Invariant violations are internal defects and abort
the current tick.
"""

from __future__ import annotations


class QueueLabError(Exception):
    """Base class for all queuelab errors."""


class ConfigurationError(QueueLabError, ValueError):
    """Raised when settings fail validation."""

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field}={value!r}: {reason}")


class InvariantViolation(QueueLabError, RuntimeError):
    """Raised when the request lifecycle reaches an impossible state.

    Attributes:
        request_id: The request involved, if any.
        status: The status observed when the violation was detected.
    """

    def __init__(self, message: str, request_id: str | None = None, status: object = None):
        self.request_id = request_id
        self.status = status
        super().__init__(message)
