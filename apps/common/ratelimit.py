"""
Fixed-window rate limiting per operation scope and client identifier.

The in-memory backend keeps its counters in process memory, so each server
process enforces its own budget. Deployments running more than one process
should switch ``RATE_LIMIT_BACKEND`` to ``"cache"`` and point the default cache
at Redis so every instance increments the same counter.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from django.conf import settings
from django.core.cache import cache as default_cache

from .exceptions import RateLimited

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass(frozen=True)
class RateLimitPolicy:
    window_seconds: float
    max_requests: int


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    def retry_after(self, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        return max(0, math.ceil(self.reset_at - now))

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(math.ceil(self.reset_at))),
        }


class RateLimiter:
    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    """Per-process counters guarded by a lock.

    Requests over budget are still counted and never move ``reset_at``, so the
    window is a hard cap rather than a leaky bucket.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = SWEEP_INTERVAL_SECONDS):
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._lock = threading.Lock()
        self._entries: Dict[str, list] = {}
        self._last_sweep = clock()

    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._purge(now)
            entry = self._entries.get(identifier)
            if entry is None or now >= entry[1]:
                entry = [0, now + policy.window_seconds]
                self._entries[identifier] = entry
            entry[0] += 1
            count, reset_at = entry
        return RateLimitResult(
            allowed=count <= policy.max_requests,
            limit=policy.max_requests,
            remaining=max(0, policy.max_requests - count),
            reset_at=reset_at,
        )

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        stale = [key for key, (_count, reset_at) in self._entries.items() if reset_at <= now]
        for key in stale:
            del self._entries[key]
        self._last_sweep = now
        if stale:
            logger.debug("rate limiter purged %d expired entries", len(stale))
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


class CacheRateLimiter(RateLimiter):
    """Counters in the Django cache; shared across processes when the cache is."""

    def __init__(self, cache=None, clock: Callable[[], float] = time.time, key_prefix: str = "ratelimit"):
        self._cache = cache or default_cache
        self._clock = clock
        self._prefix = key_prefix

    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        now = self._clock()
        window = max(1, int(math.ceil(policy.window_seconds)))
        window_start = int(now // window) * window
        reset_at = float(window_start + window)
        key = f"{self._prefix}:{identifier}:{window_start}"
        # add() is a no-op when the key exists, incr() is atomic on Redis/Memcached
        self._cache.add(key, 0, timeout=window + 1)
        try:
            count = self._cache.incr(key)
        except ValueError:
            # key expired between add() and incr()
            self._cache.set(key, 1, timeout=window + 1)
            count = 1
        return RateLimitResult(
            allowed=count <= policy.max_requests,
            limit=policy.max_requests,
            remaining=max(0, policy.max_requests - count),
            reset_at=reset_at,
        )


_limiter: Optional[RateLimiter] = None
_limiter_lock = threading.Lock()


def get_rate_limiter() -> RateLimiter:
    global _limiter
    if _limiter is None:
        with _limiter_lock:
            if _limiter is None:
                backend = getattr(settings, "RATE_LIMIT_BACKEND", "memory")
                if backend == "cache":
                    _limiter = CacheRateLimiter()
                elif backend == "memory":
                    _limiter = InMemoryRateLimiter()
                else:
                    raise ValueError(f"Unknown RATE_LIMIT_BACKEND: {backend}")
    return _limiter


def set_rate_limiter(limiter: Optional[RateLimiter]) -> None:
    """Swap the process-wide limiter (tests, custom backends)."""
    global _limiter
    with _limiter_lock:
        _limiter = limiter


def get_policy(scope: str) -> RateLimitPolicy:
    configs = getattr(settings, "RATE_LIMITS", {})
    cfg = configs.get(scope) or configs.get("default") or {"window_seconds": 15 * 60, "max_requests": 100}
    return RateLimitPolicy(window_seconds=float(cfg["window_seconds"]), max_requests=int(cfg["max_requests"]))


def client_identifier(request) -> str:
    """``user:<id>`` for authenticated callers, else ``ip:<address>``."""
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return f"user:{user.pk}"

    meta = request.META
    forwarded = meta.get("HTTP_X_FORWARDED_FOR", "")
    ip = forwarded.split(",")[0].strip() if forwarded else ""
    ip = ip or meta.get("HTTP_X_REAL_IP", "") or meta.get("REMOTE_ADDR", "") or "unknown"
    return f"ip:{ip}"


class RateLimitMixin:
    """DRF view mixin: checks the scope's budget after authentication.

    Throttled requests raise ``RateLimited`` before the handler runs; allowed
    responses carry the X-RateLimit-* headers.
    """

    rate_limit_scope: str = "default"

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        identifier = client_identifier(request)
        # each scope keeps its own counter and window
        key = f"{self.rate_limit_scope}:{identifier}"
        result = get_rate_limiter().check(key, get_policy(self.rate_limit_scope))
        self._rate_limit_result = result
        if not result.allowed:
            logger.warning("rate limit exceeded scope=%s identifier=%s", self.rate_limit_scope, identifier)
            raise RateLimited(retry_after=result.retry_after(), headers=result.headers())

    def finalize_response(self, request, response, *args, **kwargs):
        response = super().finalize_response(request, response, *args, **kwargs)
        result = getattr(self, "_rate_limit_result", None)
        if result is not None and result.allowed:
            for name, value in result.headers().items():
                response[name] = value
        return response
