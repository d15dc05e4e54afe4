"""Simulation driver.

Simulation ties the components together and advances them in discrete,
caller-timed ticks. Each ``step(now)`` runs, in order:

1. the pending service completion, if due. It is stamped with its due time
   and ends WASTED if the client deadline fell before that time, even when
   no tick landed in between;
2. arrivals owed since the last tick (only while RUNNING);
3. the timeout monitor;
4. the dispatcher;
5. eviction of finished requests past their retention window.

Running the timeout monitor before the dispatcher means a request whose
deadline has passed is dropped instead of being put into service. Steps 1,
3, 4 and 5 run whether or not arrivals are enabled, so admitted work drains
to a terminal state after ``stop()``.

Example:
    from queuelab import ManualClock, QueueDiscipline, Settings, Simulation

    sim = Simulation(Settings(arrival_rate=5, discipline=QueueDiscipline.ADAPTIVE_LIFO))
    sim.start(duration_seconds=30)
    snapshot = sim.run(ManualClock(), until=60_000)
    print(snapshot.stats)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum

from queuelab.components.admission import AdmissionController
from queuelab.components.dispatcher import Dispatcher
from queuelab.components.queue_policies import policy_for
from queuelab.components.queue_policy import QueuePolicy
from queuelab.components.timeout_monitor import TimeoutMonitor
from queuelab.core.errors import ConfigurationError
from queuelab.core.registry import RequestRegistry
from queuelab.core.request import Request, RequestStatus
from queuelab.distributions.skewed import SkewedServiceTime
from queuelab.instrumentation.stats import StatsAggregator, StatsSnapshot
from queuelab.settings import Settings
from queuelab.utils.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_TICK_MS = 20.0


class DriverState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only view of the simulation between two ticks.

    Attributes:
        time: Time of the last completed tick, or None before the first.
        state: Whether arrivals are being generated.
        requests: Requests still in the registry, in arrival order.
        stats: Outcome counters and latency percentiles.
        queue_length: Number of QUEUED requests.
        in_service: Id of the request occupying the server, if any.
        mode: Ordering the queue discipline applied most recently.
        settings: Configuration in effect.
    """

    time: float | None
    state: DriverState
    requests: tuple[Request, ...]
    stats: StatsSnapshot
    queue_length: int
    in_service: str | None
    mode: str
    settings: Settings

    @property
    def running(self) -> bool:
        return self.state is DriverState.RUNNING

    def by_status(self, status: RequestStatus) -> tuple[Request, ...]:
        return tuple(r for r in self.requests if r.status is status)


class Simulation:
    """Single-server queue simulation driven by an external clock.

    Args:
        settings: Initial configuration. Defaults to ``Settings()``.

    Raises:
        ConfigurationError: If ``settings`` is invalid.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = (settings or Settings()).validate()
        self._lock = threading.RLock()

        self._registry = RequestRegistry()
        self._stats = StatsAggregator()
        self._registry.subscribe(self._stats.record)

        self._sampler = SkewedServiceTime(self._settings.seed)
        self._admission = AdmissionController()
        self._dispatcher = Dispatcher()
        self._timeouts = TimeoutMonitor()
        self._policy = self._build_policy(self._settings)

        self._state = DriverState.STOPPED
        self._now: float | None = None
        self._run_duration_ms: float | None = None
        self._run_started_at: float | None = None
        self._last_arrival_at: float | None = None

    # === Accessors ===

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def now(self) -> float | None:
        """Time of the last tick."""
        return self._now

    @property
    def registry(self) -> RequestRegistry:
        return self._registry

    @property
    def stats(self) -> StatsAggregator:
        return self._stats

    @property
    def policy(self) -> QueuePolicy:
        return self._policy

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def admission(self) -> AdmissionController:
        return self._admission

    def remaining(self, now: float | None = None) -> float | None:
        """Milliseconds of arrivals left in a finite run.

        Returns None when stopped, when the run is indefinite, or before the
        run has been anchored to a tick.
        """
        if self._state is not DriverState.RUNNING or self._run_duration_ms is None:
            return None
        if self._run_started_at is None:
            return self._run_duration_ms
        now = self._now if now is None else now
        return max(0.0, self._run_started_at + self._run_duration_ms - now)

    @property
    def is_drained(self) -> bool:
        """True when stopped and every admitted request is terminal."""
        with self._lock:
            return self._state is DriverState.STOPPED and not any(
                not r.status.is_terminal for r in self._registry
            )

    # === Control surface ===

    def configure(self, settings: Settings) -> None:
        """Replace the configuration atomically.

        Raises:
            ConfigurationError: If ``settings`` is invalid. The previous
                configuration stays in effect.
        """
        settings.validate()
        with self._lock:
            previous = self._settings
            self._settings = settings
            if (
                settings.discipline is not previous.discipline
                or settings.adaptive_threshold != previous.adaptive_threshold
            ):
                self._policy = self._build_policy(settings)
            if settings.seed != previous.seed:
                self._sampler.reseed(settings.seed)
        logger.info(
            "Configured: %.2f req/s, avg %.0fms, %s, timeout %.0fms, max queue %d",
            settings.arrival_rate,
            settings.avg_service_time,
            settings.discipline.value,
            settings.client_timeout,
            settings.max_queue_size,
        )

    def start(self, duration_seconds: float | None = None, now: float | None = None) -> None:
        """Begin generating arrivals.

        Args:
            duration_seconds: Seconds of arrivals, 0 for indefinite. None
                uses ``settings.arrival_duration``.
            now: Start time. When omitted the run starts at the next tick.

        Raises:
            ConfigurationError: If ``duration_seconds`` is negative.
        """
        if duration_seconds is None:
            duration_seconds = self._settings.arrival_duration
        if duration_seconds < 0:
            raise ConfigurationError("duration_seconds", duration_seconds, "must be >= 0")

        with self._lock:
            self._state = DriverState.RUNNING
            self._run_duration_ms = duration_seconds * 1000.0 if duration_seconds > 0 else None
            self._run_started_at = None
            self._last_arrival_at = None
            if now is not None:
                self._anchor(now)
        logger.info(
            "Arrivals started (%s)",
            f"{duration_seconds:g}s" if duration_seconds > 0 else "indefinite",
        )

    def stop(self) -> None:
        """Stop generating arrivals. Admitted work keeps draining."""
        with self._lock:
            was_running = self._state is DriverState.RUNNING
            self._state = DriverState.STOPPED
            self._run_duration_ms = None
            self._run_started_at = None
            self._last_arrival_at = None
        if was_running:
            logger.info("Arrivals stopped")

    def reset(self) -> None:
        """Clear every request and counter and abort the pending completion.

        The running state is left as it is.
        """
        with self._lock:
            self._registry.clear()
            self._stats.reset()
            self._dispatcher.reset()
            self._admission.reset()
            self._policy = self._build_policy(self._settings)
        logger.info("Simulation reset")

    def submit(self, now: float, service_time: float | None = None) -> Request:
        """Inject one arrival at ``now`` outside the arrival schedule.

        The request goes through admission control like any other arrival.
        ``service_time`` defaults to a sample from the configured distribution.
        """
        with self._lock:
            self._advance_to(now)
            return self._arrive(now, service_time)

    # === Time ===

    def step(self, now: float) -> SimulationSnapshot:
        """Advance the simulation to ``now`` and return the resulting snapshot.

        Raises:
            ValueError: If ``now`` is earlier than the previous tick.
            InvariantViolation: If the request lifecycle is found corrupted.
        """
        with self._lock:
            self._advance_to(now)
            settings = self._settings

            self._dispatcher.fire_due(self._registry, now, settings.client_timeout)
            self._generate_arrivals(now)
            self._timeouts.tick(self._registry, now, settings.client_timeout)
            self._dispatcher.tick(self._registry, self._policy, now)
            self._registry.evict(now, settings.retention_ms)

            return self.snapshot()

    def snapshot(self) -> SimulationSnapshot:
        with self._lock:
            return SimulationSnapshot(
                time=self._now,
                state=self._state,
                requests=tuple(self._registry),
                stats=self._stats.snapshot(),
                queue_length=self._registry.count(RequestStatus.QUEUED),
                in_service=self._dispatcher.in_service,
                mode=self._policy.mode,
                settings=self._settings,
            )

    def run(
        self,
        clock: Clock,
        until: float,
        tick_ms: float = DEFAULT_TICK_MS,
    ) -> SimulationSnapshot:
        """Step the simulation from ``clock`` until it reads ``until``.

        With a ``ManualClock`` this is a deterministic batch run; with a
        ``WallClock`` it runs in real time.
        """
        if tick_ms <= 0:
            raise ValueError(f"tick_ms must be > 0, got {tick_ms}")
        snapshot = self.step(clock.now)
        while clock.now < until:
            clock.advance(min(tick_ms, until - clock.now))
            snapshot = self.step(clock.now)
        return snapshot

    def drain(
        self,
        clock: Clock,
        tick_ms: float = DEFAULT_TICK_MS,
        max_ms: float = 3_600_000.0,
    ) -> SimulationSnapshot:
        """Stop arrivals and step until every admitted request is terminal.

        Raises:
            RuntimeError: If work is still in flight after ``max_ms``.
        """
        self.stop()
        deadline = clock.now + max_ms
        snapshot = self.step(clock.now)
        while not self.is_drained:
            if clock.now >= deadline:
                raise RuntimeError(f"simulation did not drain within {max_ms}ms")
            clock.advance(tick_ms)
            snapshot = self.step(clock.now)
        return snapshot

    # === Internals ===

    def _advance_to(self, now: float) -> None:
        if self._now is not None and now < self._now:
            raise ValueError(f"time cannot go backwards: {now} < {self._now}")
        self._now = now
        if self._state is DriverState.RUNNING and self._run_started_at is None:
            self._anchor(now)

    def _anchor(self, now: float) -> None:
        self._run_started_at = now
        self._last_arrival_at = now

    def _generate_arrivals(self, now: float) -> None:
        if self._state is not DriverState.RUNNING:
            return

        period = self._settings.arrival_period
        stop_at = (
            self._run_started_at + self._run_duration_ms
            if self._run_duration_ms is not None
            else None
        )
        while True:
            next_at = self._last_arrival_at + period
            if next_at > now or (stop_at is not None and next_at > stop_at):
                break
            self._arrive(now)
            self._last_arrival_at = next_at

        if stop_at is not None and now >= stop_at:
            logger.info(
                "Arrival duration elapsed at %.1f, stopping arrivals", now, extra={"sim_time": now}
            )
            self.stop()

    def _arrive(self, now: float, service_time: float | None = None) -> Request:
        if service_time is None:
            service_time = self._sampler.sample(
                self._settings.avg_service_time, self._settings.variation
            )
        self._stats.record_arrival()
        return self._admission.admit(
            self._registry, self._settings.max_queue_size, service_time, now
        )

    @staticmethod
    def _build_policy(settings: Settings) -> QueuePolicy:
        return policy_for(settings.discipline, settings.adaptive_threshold)
