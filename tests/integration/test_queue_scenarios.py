"""End-to-end runs of the queue under load, checked against lifecycle invariants.

Scenarios:
- Overloaded server (utilization ~2x) under FIFO, LIFO and Adaptive LIFO
- Bounded queue with admission control
- Arrivals stop partway through and the backlog drains

Every run is driven by a ManualClock in 20ms ticks and observed after every
tick, so the invariants are checked at each instant a renderer could see.
"""

from __future__ import annotations

import pytest

from queuelab.core.request import ALLOWED_TRANSITIONS, RequestStatus
from queuelab.settings import Settings
from queuelab.simulation import Simulation
from queuelab.utils.clock import ManualClock

TICK_MS = 20.0

FIRST_SEEN = {RequestStatus.QUEUED, RequestStatus.REJECTED, RequestStatus.PROCESSING}


def reachable(start: RequestStatus, end: RequestStatus) -> bool:
    """Whether ``end`` follows ``start`` through allowed transitions.

    A completion whose client deadline fell between two ticks passes through
    TIMED_OUT_PROCESSING inside a single tick, so one observed change can span
    more than one edge.
    """
    frontier = set(ALLOWED_TRANSITIONS[start])
    seen: set[RequestStatus] = set()
    while frontier:
        status = frontier.pop()
        if status is end:
            return True
        seen.add(status)
        frontier |= set(ALLOWED_TRANSITIONS[status]) - seen
    return False


def observe(sim: Simulation, until: float, clock: ManualClock) -> None:
    """Step to ``until`` asserting the lifecycle invariants after every tick."""
    last_seen: dict[str, RequestStatus] = {
        r.id: r.status for r in sim.snapshot().requests
    }
    while clock.now < until:
        clock.advance(TICK_MS)
        snapshot = sim.step(clock.now)

        active = [r for r in snapshot.requests if r.status.is_active]
        assert len(active) <= 1

        for request in snapshot.requests:
            previous = last_seen.get(request.id)
            if previous is None:
                assert request.status in FIRST_SEEN
            elif previous is not request.status:
                assert reachable(previous, request.status)
            last_seen[request.id] = request.status


def overloaded(discipline: str, **overrides) -> Settings:
    fields = dict(
        arrival_rate=4,
        avg_service_time=500,
        variation=0,
        client_timeout=2000,
        discipline=discipline,
        adaptive_threshold=3,
        seed=1,
    )
    fields.update(overrides)
    return Settings(**fields)


def run_to_completion(settings: Settings, arrival_seconds: float = 20) -> Simulation:
    sim = Simulation(settings)
    clock = ManualClock()
    sim.start(duration_seconds=arrival_seconds, now=clock.now)
    observe(sim, arrival_seconds * 1000 + 30_000, clock)
    return sim


class TestConservation:
    @pytest.mark.parametrize("discipline", ["FIFO", "LIFO", "AdaptiveLIFO"])
    def test_every_arrival_ends_in_exactly_one_outcome(self, discipline):
        sim = run_to_completion(overloaded(discipline, variation=0.6, max_queue_size=6))

        stats = sim.snapshot().stats
        assert sim.is_drained
        assert stats.arrived == 80
        assert stats.completed + stats.dropped + stats.wasted + stats.rejected == stats.arrived

    def test_latency_recorded_only_for_completed(self):
        sim = run_to_completion(overloaded("FIFO"))

        stats = sim.snapshot().stats
        assert len(stats.latencies) == stats.completed
        assert stats.wasted > 0


class TestDisciplinesUnderOverload:
    def test_lifo_completes_more_than_fifo(self):
        fifo = run_to_completion(overloaded("FIFO")).snapshot().stats
        lifo = run_to_completion(overloaded("LIFO")).snapshot().stats

        assert lifo.completed > fifo.completed
        assert fifo.wasted > lifo.wasted

    @pytest.mark.parametrize("discipline", ["FIFO", "LIFO", "AdaptiveLIFO"])
    def test_completed_latencies_stay_within_timeout(self, discipline):
        settings = overloaded(discipline, variation=0.6)
        stats = run_to_completion(settings).snapshot().stats

        assert stats.latencies
        assert all(latency <= settings.client_timeout for latency in stats.latencies)

    def test_adaptive_lifo_flips_modes_as_queue_moves(self):
        sim = run_to_completion(overloaded("AdaptiveLIFO"))

        policy_stats = sim.policy.stats
        assert policy_stats.dequeued_fifo > 0
        assert policy_stats.dequeued_lifo > 0
        assert policy_stats.mode_switches >= 2

    def test_percentiles_are_monotonic(self):
        stats = run_to_completion(overloaded("LIFO", variation=0.9)).snapshot().stats

        p = stats.percentiles
        assert p[50] <= p[75] <= p[90] <= p[99]


class TestAdmissionUnderLoad:
    def test_bounded_queue_never_exceeds_capacity(self):
        sim = Simulation(overloaded("FIFO", max_queue_size=3))
        clock = ManualClock()
        sim.start(duration_seconds=10, now=clock.now)

        while clock.now < 15_000:
            clock.advance(TICK_MS)
            snapshot = sim.step(clock.now)
            assert snapshot.queue_length <= 3

        assert sim.snapshot().stats.rejected > 0

    def test_unbounded_queue_never_rejects(self):
        stats = run_to_completion(overloaded("FIFO", max_queue_size=0)).snapshot().stats

        assert stats.rejected == 0


class TestDrainAfterStop:
    def test_drain_finishes_admitted_work(self):
        sim = Simulation(overloaded("LIFO"))
        clock = ManualClock()
        sim.start(duration_seconds=0, now=clock.now)
        observe(sim, 5000, clock)

        snapshot = sim.drain(clock, tick_ms=TICK_MS)

        assert sim.is_drained
        assert snapshot.stats.in_flight == 0
        assert snapshot.stats.arrived == 20

    def test_reset_mid_run_starts_from_zero(self):
        sim = Simulation(overloaded("AdaptiveLIFO"))
        clock = ManualClock()
        sim.start(duration_seconds=0, now=clock.now)
        observe(sim, 3000, clock)

        sim.reset()
        observe(sim, 6000, clock)

        stats = sim.snapshot().stats
        assert stats.arrived == 12
        assert stats.total_terminal <= stats.arrived
