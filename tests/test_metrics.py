"""Tests for running performance metrics."""

import itertools

import pytest

from code_assistant.core.metrics import Metrics, MetricsSnapshot


class TestMetrics:
    def test_initial_snapshot(self):
        assert Metrics().snapshot() == MetricsSnapshot()

    def test_success_rate_is_percentage_of_successes(self):
        metrics = Metrics()
        for success in (True, False, True, True):
            metrics.record_outcome(10.0, success)

        assert metrics.snapshot().success_rate == pytest.approx(75.0)

    @pytest.mark.parametrize("flags", list(itertools.permutations([True, True, False, False, False])))
    def test_success_rate_independent_of_order(self, flags):
        metrics = Metrics()
        for success in flags:
            metrics.record_outcome(1.0, success)

        assert metrics.snapshot().success_rate == pytest.approx(40.0)

    def test_average_response_time(self):
        metrics = Metrics()
        for duration in (100.0, 200.0, 600.0):
            metrics.record_outcome(duration, True)

        assert metrics.snapshot().average_response_time == pytest.approx(300.0)

    def test_tokens_accumulate(self):
        metrics = Metrics()
        metrics.record_outcome(1.0, True, tokens=120)
        metrics.record_outcome(1.0, False, tokens=30)

        snapshot = metrics.snapshot()
        assert snapshot.total_requests == 2
        assert snapshot.total_tokens == 150

    def test_snapshot_is_immutable_copy(self):
        metrics = Metrics()
        snapshot = metrics.snapshot()
        metrics.record_outcome(1.0, True)

        assert snapshot.total_requests == 0
        with pytest.raises(AttributeError):
            snapshot.total_requests = 5

    def test_reset(self):
        metrics = Metrics()
        metrics.record_outcome(5.0, True, tokens=10)
        metrics.reset()

        assert metrics.snapshot() == MetricsSnapshot()

    def test_to_dict(self):
        snapshot = MetricsSnapshot(total_requests=2, total_tokens=10, average_response_time=1.5, success_rate=50.0)
        assert snapshot.to_dict() == {
            "total_requests": 2,
            "total_tokens": 10,
            "average_response_time": 1.5,
            "success_rate": 50.0,
        }
