import pytest
from django.core.cache.backends.locmem import LocMemCache

from apps.common.ratelimit import (
    CacheRateLimiter,
    InMemoryRateLimiter,
    RateLimitPolicy,
    client_identifier,
    get_policy,
)


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


POLICY = RateLimitPolicy(window_seconds=900, max_requests=3)


def test_allows_up_to_budget_then_blocks():
    limiter = InMemoryRateLimiter(clock=FakeClock())
    results = [limiter.check("user:1", POLICY) for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].limit == 3


def test_blocked_requests_do_not_extend_window():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)
    first = limiter.check("user:1", POLICY)
    for _ in range(5):
        clock.now += 10
        blocked = limiter.check("user:1", POLICY)

    assert not blocked.allowed
    assert blocked.reset_at == first.reset_at == 1_000.0 + 900


def test_request_at_reset_time_starts_new_window():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)
    for _ in range(4):
        last = limiter.check("user:1", POLICY)
    assert not last.allowed

    clock.now = last.reset_at
    fresh = limiter.check("user:1", POLICY)

    assert fresh.allowed
    assert fresh.remaining == POLICY.max_requests - 1
    assert fresh.reset_at == clock.now + 900


def test_identifiers_are_independent():
    limiter = InMemoryRateLimiter(clock=FakeClock())
    for _ in range(3):
        limiter.check("user:1", POLICY)

    assert not limiter.check("user:1", POLICY).allowed
    assert limiter.check("user:2", POLICY).allowed


def test_purge_expired_drops_stale_entries():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)
    limiter.check("ip:1.1.1.1", POLICY)
    clock.now += 100
    limiter.check("ip:2.2.2.2", POLICY)

    clock.now = 1_000.0 + 900
    assert limiter.purge_expired() == 1
    assert len(limiter) == 1


def test_check_sweeps_lazily():
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock, sweep_interval=300)
    limiter.check("ip:1.1.1.1", RateLimitPolicy(window_seconds=60, max_requests=5))
    clock.now += 301
    limiter.check("ip:2.2.2.2", POLICY)

    assert len(limiter) == 1


def test_headers_and_retry_after():
    limiter = InMemoryRateLimiter(clock=FakeClock())
    result = limiter.check("user:1", POLICY)

    assert result.headers() == {
        "X-RateLimit-Limit": "3",
        "X-RateLimit-Remaining": "2",
        "X-RateLimit-Reset": "1900",
    }
    assert result.retry_after(now=1_000.0) == 900


def test_cache_limiter_counts_in_shared_cache():
    cache = LocMemCache("ratelimit-test", {})
    clock = FakeClock(now=1_800.0)
    limiter = CacheRateLimiter(cache=cache, clock=clock)
    other_instance = CacheRateLimiter(cache=cache, clock=clock)

    assert limiter.check("user:1", POLICY).allowed
    assert other_instance.check("user:1", POLICY).allowed
    assert limiter.check("user:1", POLICY).allowed
    blocked = other_instance.check("user:1", POLICY)

    assert not blocked.allowed
    assert blocked.reset_at == 2_700.0

    clock.now = 2_700.0
    assert limiter.check("user:1", POLICY).remaining == 2


def test_get_policy_falls_back_to_default(settings):
    settings.RATE_LIMITS = {
        "default": {"window_seconds": 900, "max_requests": 100},
        "upload": {"window_seconds": 900, "max_requests": 30},
    }

    assert get_policy("upload").max_requests == 30
    assert get_policy("unknown").max_requests == 100


@pytest.mark.parametrize(
    "meta, expected",
    [
        ({"HTTP_X_FORWARDED_FOR": "9.9.9.9, 10.0.0.1", "REMOTE_ADDR": "127.0.0.1"}, "ip:9.9.9.9"),
        ({"HTTP_X_REAL_IP": "8.8.8.8", "REMOTE_ADDR": "127.0.0.1"}, "ip:8.8.8.8"),
        ({"REMOTE_ADDR": "127.0.0.1"}, "ip:127.0.0.1"),
        ({}, "ip:unknown"),
    ],
)
def test_client_identifier_for_anonymous(rf, meta, expected):
    from django.contrib.auth.models import AnonymousUser

    request = rf.get("/")
    request.META.pop("REMOTE_ADDR", None)
    request.META.update(meta)
    request.user = AnonymousUser()

    assert client_identifier(request) == expected


@pytest.mark.django_db
def test_client_identifier_prefers_user(rf, user):
    request = rf.get("/", HTTP_X_FORWARDED_FOR="9.9.9.9")
    request.user = user

    assert client_identifier(request) == f"user:{user.pk}"


@pytest.mark.django_db
def test_throttled_view_returns_429_with_headers(settings, auth_client, fake_gemini, questions_factory):
    settings.RATE_LIMITS = {
        **settings.RATE_LIMITS,
        "generate_questions": {"window_seconds": 900, "max_requests": 1},
    }
    payload = {"topic": "Indian Polity", "numQuestions": 1, "difficulty": "conceptual"}
    fake_gemini.queue({"questions": questions_factory(1)})

    first = auth_client.post("/api/generate-questions", payload, format="json")
    second = auth_client.post("/api/generate-questions", payload, format="json")

    assert first.status_code == 201
    assert first["X-RateLimit-Remaining"] == "0"
    assert second.status_code == 429
    assert second.json()["error"]
    assert second.json()["retryAfter"] > 0
    assert second["Retry-After"] == str(second.json()["retryAfter"])
    assert second["X-RateLimit-Limit"] == "1"
    assert len(fake_gemini.calls) == 1
