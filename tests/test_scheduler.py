"""
Tests for the debounced recompute scheduler.
"""

import pytest

from budgetbook.engine import RecomputeScheduler


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


@pytest.fixture
def clock(scheduler_clock):
    return scheduler_clock


@pytest.fixture
def counter():
    return Counter()


@pytest.fixture
def scheduler(counter, clock):
    return RecomputeScheduler(counter, delay_ms=50, clock=clock)


class TestRecomputeScheduler:
    """Tests for coalescing and flushing."""

    def test_idle_tick_does_nothing(self, scheduler, counter):
        assert not scheduler.tick()
        assert counter.calls == 0

    def test_runs_after_delay(self, scheduler, counter, clock):
        scheduler.request()
        assert scheduler.dirty

        clock.advance(0.049)
        assert not scheduler.tick()

        clock.advance(0.002)
        assert scheduler.tick()
        assert counter.calls == 1
        assert not scheduler.dirty

    def test_burst_coalesces_into_one_run(self, scheduler, counter, clock):
        for _ in range(5):
            scheduler.request()
            clock.advance(0.01)

        clock.advance(0.05)
        assert scheduler.tick()
        assert not scheduler.tick()
        assert counter.calls == 1
        assert scheduler.run_count == 1

    def test_each_request_pushes_deadline(self, scheduler, clock):
        scheduler.request()
        first = scheduler.due_at
        clock.advance(0.03)
        scheduler.request()
        assert scheduler.due_at > first

    def test_flush_runs_immediately(self, scheduler, counter):
        scheduler.request()
        assert scheduler.flush()
        assert counter.calls == 1
        assert not scheduler.flush()

    def test_explicit_now(self, scheduler, counter, clock):
        scheduler.request()
        assert scheduler.tick(now=clock.now + 1)
        assert counter.calls == 1

    def test_negative_delay_rejected(self, counter):
        with pytest.raises(ValueError):
            RecomputeScheduler(counter, delay_ms=-1)
