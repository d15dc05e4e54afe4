"""Tests for the single-server Dispatcher."""

import pytest

from queuelab.components.dispatcher import Dispatcher
from queuelab.components.queue_policy import FIFOQueue, LIFOQueue
from queuelab.core.errors import InvariantViolation
from queuelab.core.request import RequestStatus


class TestDispatch:
    def test_idle_server_takes_next_request(self, registry):
        dispatcher = Dispatcher()
        request = registry.admit_queued(1000.0, 0.0)

        started = dispatcher.tick(registry, FIFOQueue(), now=5.0)

        assert started.id == request.id
        assert started.status is RequestStatus.PROCESSING
        assert started.service_started_at == 5.0
        assert dispatcher.busy
        assert dispatcher.busy_until == 1005.0

    def test_busy_server_is_a_noop(self, registry):
        dispatcher = Dispatcher()
        registry.admit_queued(1000.0, 0.0)
        waiting = registry.admit_queued(1000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)

        assert dispatcher.tick(registry, FIFOQueue(), 10.0) is None
        assert registry.get(waiting.id).status is RequestStatus.QUEUED
        assert len(registry.active()) == 1

    def test_empty_queue_is_a_noop(self, registry):
        dispatcher = Dispatcher()

        assert dispatcher.tick(registry, FIFOQueue(), 0.0) is None
        assert not dispatcher.busy

    def test_fifo_and_lifo_order(self, registry):
        registry.admit_queued(100.0, 0.0)
        b = registry.admit_queued(100.0, 10.0)

        assert Dispatcher().tick(registry, LIFOQueue(), 10.0).id == b.id
        registry.clear()
        a = registry.admit_queued(100.0, 0.0)
        registry.admit_queued(100.0, 10.0)
        assert Dispatcher().tick(registry, FIFOQueue(), 10.0).id == a.id


class TestCompletion:
    def test_completion_not_fired_before_due(self, registry):
        dispatcher = Dispatcher()
        registry.admit_queued(1000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)

        assert dispatcher.fire_due(registry, 999.0) is None
        assert dispatcher.busy

    def test_processing_request_completes(self, tracked_registry):
        registry, stats = tracked_registry
        dispatcher = Dispatcher()
        registry.admit_queued(1000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 200.0)

        finished = dispatcher.fire_due(registry, 1200.0)

        assert finished.status is RequestStatus.COMPLETED
        assert finished.completed_at == 1200.0
        assert stats.latencies == [1200.0]
        assert not dispatcher.busy
        assert dispatcher.stats.completed == 1

    def test_timed_out_request_is_wasted_without_latency(self, tracked_registry):
        registry, stats = tracked_registry
        dispatcher = Dispatcher()
        request = registry.admit_queued(5000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)
        registry.transition(request.id, RequestStatus.TIMED_OUT_PROCESSING, client_timed_out_at=3001.0)

        finished = dispatcher.fire_due(registry, 5000.0)

        assert finished.status is RequestStatus.WASTED
        assert finished.completed_at == 5000.0
        assert stats.wasted == 1
        assert stats.latencies == []

    def test_unexpected_status_at_completion_is_fatal(self, registry):
        dispatcher = Dispatcher()
        request = registry.admit_queued(1000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)
        # Simulate corruption: the record vanishes while in service.
        registry.clear()

        with pytest.raises(InvariantViolation) as info:
            dispatcher.fire_due(registry, 1000.0)
        assert info.value.request_id == request.id

    def test_active_request_unknown_to_dispatcher_is_fatal(self, registry):
        request = registry.admit_queued(1000.0, 0.0)
        registry.transition(request.id, RequestStatus.PROCESSING, service_started_at=0.0)

        with pytest.raises(InvariantViolation):
            Dispatcher().tick(registry, FIFOQueue(), 1.0)

    def test_abort_frees_server(self, registry):
        dispatcher = Dispatcher()
        registry.admit_queued(1000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)

        dispatcher.abort()

        assert not dispatcher.busy
        assert dispatcher.busy_until is None


class TestCompletionBetweenTicks:
    """The outcome of a completion depends on its due time, not on tick spacing."""

    def test_late_tick_stamps_due_time(self, tracked_registry):
        registry, stats = tracked_registry
        dispatcher = Dispatcher()
        registry.admit_queued(1000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)

        finished = dispatcher.fire_due(registry, 1040.0, client_timeout=5000.0)

        assert finished.status is RequestStatus.COMPLETED
        assert finished.completed_at == 1000.0
        assert stats.latencies == [1000.0]

    def test_deadline_skipped_by_ticks_is_wasted(self, tracked_registry):
        registry, stats = tracked_registry
        dispatcher = Dispatcher()
        request = registry.admit_queued(5000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)

        finished = dispatcher.fire_due(registry, 5000.0, client_timeout=3000.0)

        assert finished.status is RequestStatus.WASTED
        assert finished.client_timed_out_at == 3000.0
        assert finished.completed_at == 5000.0
        assert stats.wasted == 1
        assert stats.completed == 0
        assert stats.latencies == []
        assert dispatcher.stats.wasted == 1
        assert registry.get(request.id).status is RequestStatus.WASTED

    def test_finishing_exactly_at_deadline_completes(self, tracked_registry):
        registry, stats = tracked_registry
        dispatcher = Dispatcher()
        registry.admit_queued(2000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 0.0)

        finished = dispatcher.fire_due(registry, 2020.0, client_timeout=2000.0)

        assert finished.status is RequestStatus.COMPLETED
        assert stats.latencies == [2000.0]

    def test_lowered_timeout_never_predates_service_start(self, registry):
        dispatcher = Dispatcher()
        registry.admit_queued(1000.0, 0.0)
        dispatcher.tick(registry, FIFOQueue(), 1500.0)

        finished = dispatcher.fire_due(registry, 2500.0, client_timeout=1000.0)

        assert finished.status is RequestStatus.WASTED
        assert finished.client_timed_out_at == 1500.0
