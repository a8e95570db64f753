"""
In-process rate windows and daily quota tracking.

Limits:
  Anonymous (per IP):   validate 5/hour, build 3/hour, generate 3/day
  Pro subscriber:       30/month (billing record), 5/day (in-process)
  Enterprise:           50/month (billing record), 10/day (in-process)

Windows are per-instance and lost on restart. The billing record's
validations_used counter is the durable monthly cap; the daily window
here only smooths bursts.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from src.validation.exceptions import RateLimitedError

logger = logging.getLogger(__name__)

HOUR = 60 * 60
DAY = 24 * HOUR


@dataclass
class RateWindow:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass(frozen=True)
class PlanLimits:
    monthly: int
    daily: int


PLAN_LIMITS: dict[str, PlanLimits] = {
    "pro": PlanLimits(monthly=30, daily=5),
    "enterprise": PlanLimits(monthly=50, daily=10),
}

# endpoint -> (limit, window seconds)
ENDPOINT_LIMITS: dict[str, tuple[int, int]] = {
    "validate": (5, HOUR),
    "build": (3, HOUR),
    "generate": (3, DAY),
}


class RateLimiter:
    """Fixed-window counter keyed by an arbitrary identity string.

    The Nth hit inside a window is allowed, the N+1th is rejected, and
    the first hit after reset_at opens a fresh window.
    """

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    def _live_window(self, key: str, now: float) -> Optional[RateWindow]:
        window = self._windows.get(key)
        if window is not None and now > window.reset_at:
            del self._windows[key]
            return None
        return window

    def hit(self, key: str) -> RateDecision:
        now = self.clock()
        with self._lock:
            window = self._live_window(key, now)
            if window is None:
                window = RateWindow(count=1, reset_at=now + self.window_seconds)
                self._windows[key] = window
                return RateDecision(True, self.limit - 1, window.reset_at)
            if window.count >= self.limit:
                return RateDecision(False, 0, window.reset_at)
            window.count += 1
            return RateDecision(True, self.limit - window.count, window.reset_at)

    def peek(self, key: str) -> RateDecision:
        """Report what the next hit would see, without counting it."""
        now = self.clock()
        with self._lock:
            window = self._live_window(key, now)
            if window is None:
                return RateDecision(True, self.limit, now + self.window_seconds)
            remaining = max(0, self.limit - window.count)
            return RateDecision(remaining > 0, remaining, window.reset_at)

    def used(self, key: str) -> int:
        now = self.clock()
        with self._lock:
            window = self._live_window(key, now)
            return window.count if window else 0

    def release(self, key: str) -> None:
        """Give back one hit (compensation for a failed downstream step)."""
        now = self.clock()
        with self._lock:
            window = self._live_window(key, now)
            if window is not None and window.count > 0:
                window.count -= 1

    def evict_expired(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [k for k, w in self._windows.items() if now > w.reset_at]
            for k in expired:
                del self._windows[k]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)


class QuotaTracker:
    """Daily per-subscriber cap, keyed by email:plan."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._limiters: dict[str, RateLimiter] = {}
        self._lock = threading.Lock()

    def _limiter(self, plan: str) -> RateLimiter:
        with self._lock:
            limiter = self._limiters.get(plan)
            if limiter is None:
                limiter = RateLimiter(PLAN_LIMITS[plan].daily, DAY, clock=self.clock)
                self._limiters[plan] = limiter
            return limiter

    @staticmethod
    def key(email: str, plan: str) -> str:
        return f"{email.lower()}:{plan}"

    def used(self, email: str, plan: str) -> int:
        return self._limiter(plan).used(self.key(email, plan))

    def has_room(self, email: str, plan: str) -> bool:
        return self._limiter(plan).peek(self.key(email, plan)).allowed

    def consume(self, email: str, plan: str) -> RateDecision:
        return self._limiter(plan).hit(self.key(email, plan))

    def release(self, email: str, plan: str) -> None:
        self._limiter(plan).release(self.key(email, plan))

    def clear(self) -> None:
        with self._lock:
            self._limiters.clear()


# ═══════════════════════════════════════
# Process-wide instances
# ═══════════════════════════════════════

endpoint_limiters: dict[str, RateLimiter] = {
    name: RateLimiter(limit, window) for name, (limit, window) in ENDPOINT_LIMITS.items()
}
daily_quota = QuotaTracker()


def get_endpoint_limiter(endpoint: str) -> RateLimiter:
    return endpoint_limiters[endpoint]


def get_daily_quota() -> QuotaTracker:
    return daily_quota


def check_anonymous_rate(limiter: RateLimiter, ip_key: str, message: str, upgrade: Optional[dict] = None) -> RateDecision:
    """Count one hit for ip_key; raise RateLimitedError if the window is full."""
    decision = limiter.hit(ip_key)
    if not decision.allowed:
        retry_after = int(decision.reset_at - limiter.clock()) + 1
        logger.info(f"Rate limited {ip_key[:12]}… ({limiter.limit}/{int(limiter.window_seconds)}s)")
        raise RateLimitedError(message, retry_after=retry_after, upgrade=upgrade)
    return decision
