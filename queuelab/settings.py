"""Simulation settings.

Settings are immutable and validated as a whole. The control surface
replaces them atomically through ``Simulation.configure``; a change takes
effect on the next tick.

Environment variables (read by ``Settings.from_env``):
    QL_ARRIVAL_RATE: Requests per second.
    QL_AVG_SERVICE_TIME: Average service time in ms.
    QL_VARIATION: Service-time spread in [0, 1].
    QL_DISCIPLINE: FIFO, LIFO or AdaptiveLIFO.
    QL_CLIENT_TIMEOUT: Client deadline in ms, measured from arrival.
    QL_MAX_QUEUE_SIZE: Queue bound, 0 = unbounded.
    QL_ADAPTIVE_THRESHOLD: Queue depth at which Adaptive LIFO serves LIFO.
    QL_ARRIVAL_DURATION: Seconds of arrivals per start, 0 = until stopped.
    QL_RETENTION_MS: How long finished requests stay visible.
    QL_SEED: Seed for the service-time sampler.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Mapping

from queuelab.components.queue_policy import QueueDiscipline
from queuelab.core.errors import ConfigurationError


@dataclass(frozen=True)
class Settings:
    """Process-wide simulation configuration.

    Attributes:
        arrival_rate: Arrivals per second. One arrival every
            ``1000 / arrival_rate`` ms while running.
        avg_service_time: Average service time in ms.
        variation: Service-time spread in [0, 1].
        discipline: Queue discipline.
        client_timeout: Client deadline in ms from arrival.
        max_queue_size: Maximum queued requests, 0 = unbounded.
        adaptive_threshold: Queue depth at which Adaptive LIFO switches to LIFO.
        arrival_duration: Seconds of arrivals after ``start``, 0 = indefinite.
        retention_ms: Time a terminal request stays in the registry.
        seed: Seed for the service-time sampler, None for entropy.
    """

    arrival_rate: float = 2.0
    avg_service_time: float = 1000.0
    variation: float = 0.3
    discipline: QueueDiscipline = QueueDiscipline.FIFO
    client_timeout: float = 5000.0
    max_queue_size: int = 0
    adaptive_threshold: int = 10
    arrival_duration: float = 10.0
    retention_ms: float = 1200.0
    seed: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "discipline", _parse_discipline(self.discipline))

    @property
    def arrival_period(self) -> float:
        """Milliseconds between consecutive arrivals."""
        return 1000.0 / self.arrival_rate

    def validate(self) -> Settings:
        """Check every field, returning self for chaining.

        Raises:
            ConfigurationError: On the first invalid field.
        """
        if not self.arrival_rate > 0:
            raise ConfigurationError("arrival_rate", self.arrival_rate, "must be > 0")
        if not self.avg_service_time > 0:
            raise ConfigurationError("avg_service_time", self.avg_service_time, "must be > 0")
        if not 0 <= self.variation <= 1:
            raise ConfigurationError("variation", self.variation, "must be in [0, 1]")
        if not self.client_timeout > 0:
            raise ConfigurationError("client_timeout", self.client_timeout, "must be > 0")
        if self.max_queue_size < 0:
            raise ConfigurationError("max_queue_size", self.max_queue_size, "must be >= 0")
        if self.adaptive_threshold < 1:
            raise ConfigurationError("adaptive_threshold", self.adaptive_threshold, "must be >= 1")
        if self.arrival_duration < 0:
            raise ConfigurationError("arrival_duration", self.arrival_duration, "must be >= 0")
        if self.retention_ms < 0:
            raise ConfigurationError("retention_ms", self.retention_ms, "must be >= 0")
        return self

    def replace(self, **changes: Any) -> Settings:
        """Return a validated copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes).validate()

    def to_dict(self) -> dict[str, Any]:
        result = dataclasses.asdict(self)
        result["discipline"] = self.discipline.value
        return result

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = "QL_",
        base: Settings | None = None,
    ) -> Settings:
        """Build settings from environment variables over ``base`` defaults.

        Unset variables keep the base value.

        Raises:
            ConfigurationError: If a value cannot be parsed or is out of range.
        """
        environ = os.environ if environ is None else environ
        base = base or cls()
        changes: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            raw = environ.get(f"{prefix}{f.name.upper()}")
            if raw is None or raw == "":
                continue
            changes[f.name] = _coerce(f.name, raw)
        return base.replace(**changes)


def _parse_discipline(value: Any) -> QueueDiscipline:
    try:
        return QueueDiscipline.parse(value)
    except ValueError as e:
        raise ConfigurationError("discipline", value, str(e)) from e


def _coerce(name: str, raw: str) -> Any:
    if name == "discipline":
        return _parse_discipline(raw)
    try:
        if name in ("max_queue_size", "adaptive_threshold", "seed"):
            return int(raw)
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(name, raw, f"expected a number ({e})") from e
