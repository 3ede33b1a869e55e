"""
Tests for join throttling
"""

from app.utils.security import SlidingWindowLimiter

class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

def test_limit_within_window():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(limit=2, window=60, clock=clock)

    assert limiter.allow("10.0.0.1")
    assert limiter.allow("10.0.0.1")
    assert not limiter.allow("10.0.0.1")
    assert limiter.allow("10.0.0.2")

    clock.now += 61
    assert limiter.allow("10.0.0.1")

def test_idle_clients_are_forgotten():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(limit=5, window=60, clock=clock)
    for i in range(100):
        limiter.allow(f"10.0.1.{i}")
    assert len(limiter.hits) == 100

    clock.now += 61
    limiter.allow("10.0.2.1")

    assert list(limiter.hits) == ["10.0.2.1"]
