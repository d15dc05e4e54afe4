"""Tests for RequestRegistry."""

import pytest

from queuelab.core.errors import InvariantViolation
from queuelab.core.request import RequestStatus


class TestArrivals:
    def test_admit_queued_sets_queued_at(self, registry):
        request = registry.admit_queued(service_time=500.0, now=10.0)

        assert request.status is RequestStatus.QUEUED
        assert request.created_at == 10.0
        assert request.queued_at == 10.0
        assert registry.get(request.id) == request

    def test_ids_and_sequence_follow_arrival_order(self, registry):
        first = registry.admit_queued(500.0, 0.0)
        second = registry.admit_queued(500.0, 0.0)

        assert first.id != second.id
        assert second.seq == first.seq + 1
        assert [r.id for r in registry] == [first.id, second.id]

    def test_reject_is_terminal_and_never_queued(self, tracked_registry):
        registry, stats = tracked_registry

        request = registry.reject(service_time=500.0, now=0.0)

        assert request.status is RequestStatus.REJECTED
        assert request.queued_at is None
        assert stats.rejected == 1


class TestTransitions:
    def test_dispatch_then_complete(self, tracked_registry):
        registry, stats = tracked_registry
        request = registry.admit_queued(1000.0, 0.0)

        registry.transition(request.id, RequestStatus.PROCESSING, service_started_at=100.0)
        done = registry.transition(request.id, RequestStatus.COMPLETED, completed_at=1100.0)

        assert done.status is RequestStatus.COMPLETED
        assert done.service_started_at == 100.0
        assert stats.completed == 1
        assert stats.latencies == [1100.0]

    def test_records_are_replaced_not_mutated(self, registry):
        original = registry.admit_queued(1000.0, 0.0)
        registry.transition(original.id, RequestStatus.PROCESSING, service_started_at=5.0)

        assert original.status is RequestStatus.QUEUED
        assert registry.get(original.id).status is RequestStatus.PROCESSING

    def test_illegal_edge_raises_without_mutation(self, registry):
        request = registry.admit_queued(1000.0, 0.0)

        with pytest.raises(InvariantViolation) as info:
            registry.transition(request.id, RequestStatus.COMPLETED, completed_at=10.0)

        assert info.value.request_id == request.id
        assert info.value.status is RequestStatus.QUEUED
        assert registry.get(request.id).status is RequestStatus.QUEUED

    def test_terminal_request_never_reenters(self, registry):
        request = registry.admit_queued(1000.0, 0.0)
        registry.transition(request.id, RequestStatus.DROPPED, client_timed_out_at=6000.0)

        with pytest.raises(InvariantViolation):
            registry.transition(request.id, RequestStatus.PROCESSING, service_started_at=7000.0)

    def test_rejected_request_cannot_be_dispatched(self, registry):
        request = registry.reject(1000.0, 0.0)

        with pytest.raises(InvariantViolation):
            registry.transition(request.id, RequestStatus.PROCESSING, service_started_at=1.0)

    def test_unknown_request_raises(self, registry):
        with pytest.raises(InvariantViolation):
            registry.transition("missing", RequestStatus.PROCESSING, service_started_at=0.0)

    def test_second_active_request_is_refused(self, registry):
        first = registry.admit_queued(1000.0, 0.0)
        second = registry.admit_queued(1000.0, 0.0)
        registry.transition(first.id, RequestStatus.PROCESSING, service_started_at=0.0)

        with pytest.raises(InvariantViolation):
            registry.transition(second.id, RequestStatus.PROCESSING, service_started_at=0.0)
        assert registry.get(second.id).status is RequestStatus.QUEUED

    def test_timed_out_processing_still_occupies_server(self, registry):
        first = registry.admit_queued(1000.0, 0.0)
        second = registry.admit_queued(1000.0, 0.0)
        registry.transition(first.id, RequestStatus.PROCESSING, service_started_at=0.0)
        registry.transition(first.id, RequestStatus.TIMED_OUT_PROCESSING, client_timed_out_at=600.0)

        with pytest.raises(InvariantViolation):
            registry.transition(second.id, RequestStatus.PROCESSING, service_started_at=700.0)

    def test_timestamp_cannot_precede_recorded_ones(self, registry):
        request = registry.admit_queued(1000.0, 100.0)

        with pytest.raises(InvariantViolation):
            registry.transition(request.id, RequestStatus.PROCESSING, service_started_at=50.0)

    def test_unknown_timestamp_field_is_a_type_error(self, registry):
        request = registry.admit_queued(1000.0, 0.0)

        with pytest.raises(TypeError):
            registry.transition(request.id, RequestStatus.PROCESSING, started=1.0)


class TestQueries:
    def test_filters_by_status(self, registry):
        a = registry.admit_queued(1000.0, 0.0)
        b = registry.admit_queued(1000.0, 0.0)
        registry.transition(a.id, RequestStatus.PROCESSING, service_started_at=0.0)

        assert [r.id for r in registry.queued()] == [b.id]
        assert [r.id for r in registry.active()] == [a.id]
        assert registry.count(RequestStatus.QUEUED) == 1
        assert len(registry) == 2


class TestEviction:
    def test_evicts_terminal_requests_after_retention(self, tracked_registry):
        registry, stats = tracked_registry
        done = registry.admit_queued(100.0, 0.0)
        registry.transition(done.id, RequestStatus.PROCESSING, service_started_at=0.0)
        registry.transition(done.id, RequestStatus.COMPLETED, completed_at=100.0)
        waiting = registry.admit_queued(100.0, 50.0)

        assert registry.evict(now=1300.0, retention_ms=1200.0) == 0
        assert registry.evict(now=1301.0, retention_ms=1200.0) == 1

        assert registry.get(done.id) is None
        assert registry.get(waiting.id) is not None
        assert stats.completed == 1

    def test_clear_restarts_ids(self, registry):
        first = registry.admit_queued(100.0, 0.0)
        registry.clear()
        again = registry.admit_queued(100.0, 0.0)

        assert len(registry) == 1
        assert again.seq == first.seq == 0
