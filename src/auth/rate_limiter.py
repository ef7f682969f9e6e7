"""
Rate Limiter

Two independent in-process limiters keyed by client identifier:
- AttemptRateLimiter: password attempts with a lockout cooldown
- RequestRateLimiter: coarse token bucket per client for all traffic

State lives behind RateLimiterStore so a networked store can replace the
in-memory one without touching the callers. Nothing here survives a
restart or is shared between instances.
"""

import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from core.logger import get_logger

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"

_IP_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")

R = TypeVar("R")


def get_client_identifier(headers: Mapping[str, str]) -> str:
    """
    Derive the rate-limit bucket for a request from proxy headers

    Unattributable clients share the "unknown" bucket.
    """
    for header in _IP_HEADERS:
        raw = headers.get(header)
        if not raw:
            continue
        # First hop of the proxy chain is the client
        candidate = raw.split(",")[0].strip()
        if candidate:
            return candidate
    return UNKNOWN_CLIENT


class RateLimiterStore(ABC, Generic[R]):
    """Key-value storage for limiter records"""

    @abstractmethod
    def get(self, key: str) -> R | None:
        pass

    @abstractmethod
    def put(self, key: str, record: R) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def sweep(self, is_stale: Callable[[R], bool]) -> int:
        """Delete every record for which is_stale returns True; return the count."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    @property
    @abstractmethod
    def lock(self) -> threading.Lock:
        """Lock serializing read-modify-write sequences on this store."""
        pass


class InMemoryRateLimiterStore(RateLimiterStore[R]):
    def __init__(self) -> None:
        self._records: dict[str, R] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> R | None:
        return self._records.get(key)

    def put(self, key: str, record: R) -> None:
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def sweep(self, is_stale: Callable[[R], bool]) -> int:
        stale_keys = [key for key, record in self._records.items() if is_stale(record)]
        for key in stale_keys:
            del self._records[key]
        return len(stale_keys)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def lock(self) -> threading.Lock:
        return self._lock


@dataclass
class RateLimitRecord:
    """Attempt tracking for one client identifier"""

    attempt_count: int
    window_start: float
    cooldown_until: float | None = None


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    attempts_remaining: int
    cooldown_remaining_seconds: int | None = None


class AttemptRateLimiter:
    def __init__(
        self,
        max_attempts: int = 10,
        window_seconds: float = 15 * 60,
        cooldown_seconds: float = 15 * 60,
        cleanup_threshold: int = 1000,
        retention_seconds: float = 60 * 60,
        sweep_every: int = 100,
        store: RateLimiterStore[RateLimitRecord] | None = None,
        on_lockout: Callable[[str, float, RateLimitRecord], None] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize Attempt Rate Limiter

        Args:
            max_attempts: Attempts allowed before the cooldown starts
            window_seconds: Tracking window after which the count restarts
            cooldown_seconds: Lockout duration once max_attempts is reached
            cleanup_threshold: Store size above which stale records are swept
            retention_seconds: Records whose window started earlier are stale
            sweep_every: Checks between sweeps while above the threshold
            store: Record storage (in-memory by default)
            on_lockout: Called with (identifier, cooldown start, record) when
                a cooldown episode begins
            clock: Time source returning epoch seconds
        """
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.cooldown_seconds = cooldown_seconds
        self.cleanup_threshold = cleanup_threshold
        self.retention_seconds = retention_seconds
        self.sweep_every = sweep_every
        self.store: RateLimiterStore[RateLimitRecord] = store or InMemoryRateLimiterStore()
        self.on_lockout = on_lockout
        self.clock = clock

        self._checks_since_sweep = 0

    def check(self, identifier: str) -> RateLimitResult:
        """
        Record an attempt and decide whether it may proceed

        Args:
            identifier: Client identifier

        Returns:
            RateLimitResult for this attempt
        """
        now = self.clock()
        lockout: RateLimitRecord | None = None

        with self.store.lock:
            self._maybe_sweep(now)
            record = self.store.get(identifier)

            if record is not None and record.cooldown_until is not None and record.cooldown_until > now:
                return RateLimitResult(
                    allowed=False,
                    attempts_remaining=0,
                    cooldown_remaining_seconds=math.ceil(record.cooldown_until - now),
                )

            if record is None or record.cooldown_until is not None or self._window_expired(record, now):
                self.store.put(identifier, RateLimitRecord(attempt_count=1, window_start=now))
                return RateLimitResult(allowed=True, attempts_remaining=max(self.max_attempts - 1, 0))

            record.attempt_count += 1
            if record.attempt_count >= self.max_attempts:
                record.cooldown_until = now + self.cooldown_seconds
                self.store.put(identifier, record)
                lockout = record
            else:
                self.store.put(identifier, record)
                return RateLimitResult(allowed=True, attempts_remaining=self.max_attempts - record.attempt_count)

        logger.warning(f"Attempt limit reached for {identifier}, cooling down for {self.cooldown_seconds}s")
        if self.on_lockout:
            self.on_lockout(identifier, now, lockout)

        return RateLimitResult(
            allowed=False,
            attempts_remaining=0,
            cooldown_remaining_seconds=math.ceil(self.cooldown_seconds),
        )

    def reset(self, identifier: str) -> None:
        """Forget an identifier's attempts, e.g. after a successful login."""
        with self.store.lock:
            self.store.delete(identifier)

    def sweep(self) -> int:
        """Evict stale records now; returns the number removed."""
        with self.store.lock:
            return self._sweep(self.clock())

    def _window_expired(self, record: RateLimitRecord, now: float) -> bool:
        return now - record.window_start > self.window_seconds

    def _is_stale(self, record: RateLimitRecord, now: float) -> bool:
        if now - record.window_start > self.retention_seconds:
            return True
        if record.cooldown_until is not None:
            return record.cooldown_until <= now
        return self._window_expired(record, now)

    def _maybe_sweep(self, now: float) -> None:
        if len(self.store) <= self.cleanup_threshold:
            self._checks_since_sweep = 0
            return
        self._checks_since_sweep += 1
        if self._checks_since_sweep >= self.sweep_every or len(self.store) > 2 * self.cleanup_threshold:
            self._sweep(now)

    def _sweep(self, now: float) -> int:
        self._checks_since_sweep = 0
        removed = self.store.sweep(lambda record: self._is_stale(record, now))
        if removed:
            logger.debug(f"Evicted {removed} stale rate-limit records")
        return removed

    def get_stats(self) -> dict[str, Any]:
        """Get rate limiter statistics"""
        return {
            "tracked_clients": len(self.store),
            "max_attempts": self.max_attempts,
            "cooldown_seconds": self.cooldown_seconds,
        }


@dataclass
class TokenBucket:
    """Token bucket for rate limiting"""

    capacity: int
    refill_rate: float  # tokens per second
    last_refill: float
    tokens: float = field(init=False)

    def __post_init__(self):
        self.tokens = float(self.capacity)

    def refill(self, now: float):
        """Refill tokens based on elapsed time"""
        elapsed = max(now - self.last_refill, 0.0)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    def consume(self, now: float, tokens: int = 1) -> bool:
        """
        Attempt to consume tokens

        Returns:
            True if tokens were available and consumed, False otherwise
        """
        self.refill(now)
        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def seconds_until_available(self, tokens: int = 1) -> int:
        missing = tokens - self.tokens
        if missing <= 0:
            return 0
        return max(1, math.ceil(missing / self.refill_rate))


class RequestRateLimiter:
    def __init__(
        self,
        capacity: int = 60,
        refill_rate: float = 1.0,
        cleanup_threshold: int = 5000,
        store: RateLimiterStore[TokenBucket] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize Request Rate Limiter

        Args:
            capacity: Burst size per client
            refill_rate: Tokens refilled per second per client
            cleanup_threshold: Store size above which full buckets are dropped
            store: Bucket storage (in-memory by default)
            clock: Time source returning epoch seconds
        """
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.cleanup_threshold = cleanup_threshold
        self.store: RateLimiterStore[TokenBucket] = store or InMemoryRateLimiterStore()
        self.clock = clock

    def check(self, identifier: str) -> tuple[bool, int]:
        """
        Consume one request for a client

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        now = self.clock()
        with self.store.lock:
            if len(self.store) > self.cleanup_threshold:
                # A bucket that has refilled completely carries no state
                self.store.sweep(lambda bucket: self._is_full(bucket, now))

            bucket = self.store.get(identifier)
            if bucket is None:
                bucket = TokenBucket(self.capacity, self.refill_rate, last_refill=now)
                self.store.put(identifier, bucket)

            if bucket.consume(now):
                return True, 0
            return False, bucket.seconds_until_available()

    @staticmethod
    def _is_full(bucket: TokenBucket, now: float) -> bool:
        refilled = bucket.tokens + (now - bucket.last_refill) * bucket.refill_rate
        return refilled >= bucket.capacity
