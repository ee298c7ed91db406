"""Unit tests for per-client sliding-window throttling."""

import pytest

from cvforge.exceptions import RateLimitExceeded
from cvforge.utils.throttle import InMemoryRequestCounterStore, SlidingWindowThrottle


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def throttle(clock):
    return SlidingWindowThrottle(max_requests=3, window_s=60, clock=clock)


@pytest.mark.unit
def test_requests_within_budget_are_admitted(throttle):
    decisions = [throttle.check("client-a") for _ in range(3)]

    assert all(d.allowed for d in decisions)
    assert [d.remaining for d in decisions] == [2, 1, 0]


@pytest.mark.unit
def test_request_over_budget_is_rejected(throttle, clock):
    for _ in range(3):
        throttle.check("client-a")
        clock.advance(10)

    decision = throttle.check("client-a")

    assert not decision.allowed
    assert decision.remaining == 0
    # Oldest request was 30s ago; it leaves the 60s window in 30s
    assert decision.retry_after_s == 30


@pytest.mark.unit
def test_window_slides(throttle, clock):
    for _ in range(3):
        throttle.check("client-a")
    assert not throttle.check("client-a").allowed

    clock.advance(61)

    assert throttle.check("client-a").allowed


@pytest.mark.unit
def test_rejected_requests_do_not_extend_the_window(throttle, clock):
    for _ in range(3):
        throttle.check("client-a")
    for _ in range(5):
        clock.advance(10)
        assert not throttle.check("client-a").allowed

    clock.advance(11)

    assert throttle.check("client-a").allowed


@pytest.mark.unit
def test_clients_are_independent(throttle):
    for _ in range(3):
        throttle.check("client-a")

    assert not throttle.check("client-a").allowed
    assert throttle.check("client-b").allowed


@pytest.mark.unit
def test_acquire_raises_when_over_budget(throttle):
    for _ in range(3):
        throttle.acquire("client-a")

    with pytest.raises(RateLimitExceeded) as excinfo:
        throttle.acquire("client-a")

    assert excinfo.value.client_id == "client-a"
    assert excinfo.value.retry_after_s == 60


@pytest.mark.unit
def test_store_prunes_and_clears():
    store = InMemoryRequestCounterStore()

    store.record_if_below("a", now=1.0, window_start=0.0, limit=5)
    store.record_if_below("b", now=2.0, window_start=0.0, limit=5)
    assert store.client_count() == 2

    # Everything before the window start is dropped on touch
    assert store.record_if_below("a", now=100.0, window_start=50.0, limit=5) == []

    store.clear("b")
    assert store.client_count() == 1
