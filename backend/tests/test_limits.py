"""
Tests for in-process rate windows and the daily quota tracker.
"""
import pytest

from src.validation.exceptions import RateLimitedError
from src.validation.limits import (
    ENDPOINT_LIMITS, HOUR, PLAN_LIMITS, QuotaTracker, RateLimiter, check_anonymous_rate,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def test_nth_request_allowed_next_rejected():
    clock = FakeClock()
    limiter = RateLimiter(5, HOUR, clock=clock)

    decisions = [limiter.hit("1.2.3.4") for _ in range(6)]

    assert [d.allowed for d in decisions] == [True] * 5 + [False]
    assert decisions[4].remaining == 0
    assert decisions[0].reset_at == clock.now + HOUR


def test_window_resets_after_reset_at():
    clock = FakeClock()
    limiter = RateLimiter(2, HOUR, clock=clock)
    limiter.hit("k")
    limiter.hit("k")
    assert not limiter.hit("k").allowed

    clock.advance(HOUR)
    # still inside the window at exactly reset_at
    assert not limiter.hit("k").allowed

    clock.advance(1)
    fresh = limiter.hit("k")
    assert fresh.allowed
    assert fresh.remaining == 1


def test_keys_are_independent():
    limiter = RateLimiter(1, HOUR, clock=FakeClock())
    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed
    assert not limiter.hit("a").allowed


def test_peek_does_not_count():
    limiter = RateLimiter(3, HOUR, clock=FakeClock())
    limiter.hit("k")

    assert limiter.peek("k").remaining == 2
    assert limiter.peek("k").remaining == 2
    assert limiter.used("k") == 1


def test_release_gives_back_one_hit():
    limiter = RateLimiter(1, HOUR, clock=FakeClock())
    limiter.hit("k")
    limiter.release("k")

    assert limiter.hit("k").allowed


def test_evict_expired():
    clock = FakeClock()
    limiter = RateLimiter(5, 10, clock=clock)
    limiter.hit("a")
    clock.advance(5)
    limiter.hit("b")
    clock.advance(6)

    assert limiter.evict_expired() == 1
    assert len(limiter) == 1


def test_endpoint_limit_table():
    assert ENDPOINT_LIMITS["validate"] == (5, HOUR)
    assert ENDPOINT_LIMITS["build"] == (3, HOUR)
    assert ENDPOINT_LIMITS["generate"] == (3, 24 * HOUR)


def test_check_anonymous_rate_raises_with_retry_after():
    clock = FakeClock()
    limiter = RateLimiter(1, HOUR, clock=clock)
    check_anonymous_rate(limiter, "ip", "slow down")
    clock.advance(600)

    with pytest.raises(RateLimitedError) as exc:
        check_anonymous_rate(limiter, "ip", "slow down", upgrade={"url": "/pricing"})

    assert exc.value.message == "slow down"
    assert exc.value.retry_after == HOUR - 600 + 1
    assert exc.value.upgrade == {"url": "/pricing"}


def test_quota_tracker_daily_cap_per_plan():
    clock = FakeClock()
    quota = QuotaTracker(clock=clock)

    for _ in range(PLAN_LIMITS["pro"].daily):
        assert quota.has_room("a@example.com", "pro")
        quota.consume("a@example.com", "pro")

    assert not quota.has_room("a@example.com", "pro")
    assert quota.used("a@example.com", "pro") == 5
    # different plan key, different window
    assert quota.has_room("a@example.com", "enterprise")

    clock.advance(24 * HOUR + 1)
    assert quota.has_room("a@example.com", "pro")


def test_quota_tracker_key_is_case_insensitive():
    quota = QuotaTracker(clock=FakeClock())
    quota.consume("A@Example.com", "pro")
    assert quota.used("a@example.com", "pro") == 1

    quota.release("a@example.com", "pro")
    assert quota.used("A@example.com", "pro") == 0
