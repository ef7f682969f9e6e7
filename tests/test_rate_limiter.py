"""
Tests for the attempt limiter, the request limiter and client identification.
"""

from auth import AttemptRateLimiter, InMemoryRateLimiterStore, RequestRateLimiter, get_client_identifier
from auth.rate_limiter import RateLimitRecord


def test_attempts_below_max_are_allowed(limiter: AttemptRateLimiter):
    remaining = [limiter.check("1.2.3.4").attempts_remaining for _ in range(limiter.max_attempts - 1)]

    assert remaining == list(range(limiter.max_attempts - 1, 0, -1))


def test_attempt_reaching_max_starts_cooldown(limiter: AttemptRateLimiter):
    for _ in range(limiter.max_attempts - 1):
        assert limiter.check("1.2.3.4").allowed

    result = limiter.check("1.2.3.4")
    assert not result.allowed
    assert result.attempts_remaining == 0
    assert result.cooldown_remaining_seconds == 900


def test_cooldown_blocks_until_it_expires(limiter: AttemptRateLimiter, clock):
    for _ in range(limiter.max_attempts):
        limiter.check("1.2.3.4")

    clock.advance(899.5)
    result = limiter.check("1.2.3.4")
    assert not result.allowed
    assert result.cooldown_remaining_seconds == 1

    clock.advance(1)
    result = limiter.check("1.2.3.4")
    assert result.allowed
    assert result.attempts_remaining == limiter.max_attempts - 1
    assert limiter.store.get("1.2.3.4").attempt_count == 1


def test_cooldown_seconds_round_up(limiter: AttemptRateLimiter, clock):
    for _ in range(limiter.max_attempts):
        limiter.check("1.2.3.4")

    clock.advance(0.25)
    assert limiter.check("1.2.3.4").cooldown_remaining_seconds == 900


def test_reset_behaves_like_fresh_identifier(limiter: AttemptRateLimiter):
    for _ in range(5):
        limiter.check("1.2.3.4")

    limiter.reset("1.2.3.4")
    result = limiter.check("1.2.3.4")

    assert result.allowed
    assert result.attempts_remaining == limiter.max_attempts - 1


def test_reset_clears_cooldown(limiter: AttemptRateLimiter):
    for _ in range(limiter.max_attempts):
        limiter.check("1.2.3.4")

    limiter.reset("1.2.3.4")
    assert limiter.check("1.2.3.4").allowed


def test_window_expiry_restarts_count(limiter: AttemptRateLimiter, clock):
    for _ in range(limiter.max_attempts - 1):
        limiter.check("1.2.3.4")

    clock.advance(limiter.window_seconds + 1)
    result = limiter.check("1.2.3.4")

    assert result.allowed
    assert result.attempts_remaining == limiter.max_attempts - 1


def test_identifiers_are_independent(limiter: AttemptRateLimiter):
    for _ in range(limiter.max_attempts):
        limiter.check("1.2.3.4")

    assert not limiter.check("1.2.3.4").allowed
    assert limiter.check("5.6.7.8").allowed


def test_lockout_notifies_once_per_episode(clock):
    episodes = []
    limiter = AttemptRateLimiter(
        max_attempts=3,
        cooldown_seconds=60,
        on_lockout=lambda identifier, started, record: episodes.append((identifier, started)),
        clock=clock,
    )

    for _ in range(10):
        limiter.check("1.2.3.4")
    assert episodes == [("1.2.3.4", clock.now)]

    clock.advance(61)
    for _ in range(3):
        limiter.check("1.2.3.4")
    assert len(episodes) == 2


def test_lockout_alert_is_deduplicated(reporter, limiter: AttemptRateLimiter):
    for _ in range(limiter.max_attempts + 5):
        limiter.check("1.2.3.4")

    assert reporter.events == 1
    assert not reporter.alert_once(f"1.2.3.4:{limiter.clock():.3f}", "again")


def test_sweep_evicts_stale_records(clock):
    limiter = AttemptRateLimiter(max_attempts=3, window_seconds=60, cooldown_seconds=60, cleanup_threshold=2, clock=clock)

    limiter.check("stale-1")
    limiter.check("stale-2")
    for _ in range(3):
        limiter.check("cooling")

    clock.advance(30)
    limiter.check("fresh")
    clock.advance(40)

    # stale-1/stale-2 windows and the cooldown have expired, fresh is 40s old
    assert limiter.sweep() == 3
    assert limiter.store.get("fresh") is not None
    assert len(limiter.store) == 1


def test_sweep_runs_automatically_above_threshold(clock):
    limiter = AttemptRateLimiter(window_seconds=60, cleanup_threshold=5, sweep_every=1, clock=clock)

    for index in range(6):
        limiter.check(f"bot-{index}")
    clock.advance(120)

    limiter.check("new-client")

    assert len(limiter.store) == 1


def test_retention_ceiling_evicts_long_lived_records(clock):
    limiter = AttemptRateLimiter(window_seconds=10_000, retention_seconds=3600, clock=clock)
    limiter.store.put("old", RateLimitRecord(attempt_count=2, window_start=clock.now - 3601))

    assert limiter.sweep() == 1


def test_in_memory_store_operations():
    store = InMemoryRateLimiterStore()
    store.put("a", 1)
    store.put("b", 2)

    assert store.get("a") == 1
    assert len(store) == 2
    assert store.sweep(lambda value: value > 1) == 1
    store.delete("a")
    store.delete("missing")
    assert len(store) == 0


def test_request_limiter_refills(clock):
    limiter = RequestRateLimiter(capacity=2, refill_rate=0.5, clock=clock)

    assert limiter.check("1.2.3.4") == (True, 0)
    assert limiter.check("1.2.3.4") == (True, 0)
    assert limiter.check("1.2.3.4") == (False, 2)

    clock.advance(2)
    assert limiter.check("1.2.3.4") == (True, 0)


def test_client_identifier_header_precedence():
    assert get_client_identifier({"x-forwarded-for": "203.0.113.1, 10.0.0.1", "x-real-ip": "10.0.0.2"}) == "203.0.113.1"
    assert get_client_identifier({"x-forwarded-for": " ", "x-real-ip": "10.0.0.2"}) == "10.0.0.2"
    assert get_client_identifier({"cf-connecting-ip": "198.51.100.4"}) == "198.51.100.4"
    assert get_client_identifier({}) == "unknown"
