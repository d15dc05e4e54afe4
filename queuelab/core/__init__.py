"""Request lifecycle primitives: records, states, registry and errors."""

from queuelab.core.errors import ConfigurationError, InvariantViolation, QueueLabError
from queuelab.core.registry import RequestRegistry
from queuelab.core.request import ALLOWED_TRANSITIONS, Request, RequestStatus

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ConfigurationError",
    "InvariantViolation",
    "QueueLabError",
    "Request",
    "RequestRegistry",
    "RequestStatus",
]
