# storefront/services/rate_limiter.py
import math
import threading
import time
from dataclasses import dataclass
from typing import Protocol

import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, RATE_LIMIT_BACKEND, RATE_LIMIT_SWEEP_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA: sprawdz limit i zwieksz licznik jako jedna nieprzerywalna operacja
#odrzucone requesty nie zwiekszaja licznika
_CHECK_AND_INCR_LUA = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
if current >= tonumber(ARGV[1]) then
    return {0, redis.call('PTTL', KEYS[1])}
end
current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[2])
end
return {1, redis.call('PTTL', KEYS[1])}
"""


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0  # sekundy


def rate_limit_key(prefix: str, user_id: int | None = None, client_ip: str | None = None) -> str:
    if user_id is not None:
        return f"user:{user_id}:{prefix}"
    return f"ip:{client_ip or 'unknown'}:{prefix}"


class RateLimiter(Protocol):
    def check_and_increment(self, key: str, max_requests: int, window_seconds: int) -> RateLimitDecision:
        ...


class InMemoryRateLimiter:
    """
    Fixed-window counters for a single instance. Expired entries are pruned
    from the table every ``sweep_interval`` seconds.
    """

    def __init__(self, sweep_interval: float = RATE_LIMIT_SWEEP_SECONDS, clock=time.monotonic):
        self._entries: dict[str, list] = {}  # key -> [count, reset_at]
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def check_and_increment(self, key: str, max_requests: int, window_seconds: int) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._prune(now)

            entry = self._entries.get(key)
            if entry is None or now >= entry[1]:
                self._entries[key] = [1, now + window_seconds]
                return RateLimitDecision(True)

            if entry[0] >= max_requests:
                return RateLimitDecision(False, max(1, math.ceil(entry[1] - now)))

            entry[0] += 1
            return RateLimitDecision(True)

    def prune(self) -> int:
        with self._lock:
            return self._prune(self._clock())

    def _prune(self, now: float) -> int:
        expired = [k for k, (_, reset_at) in self._entries.items() if now >= reset_at]
        for k in expired:
            del self._entries[k]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.info(f"Pruned {len(expired)} expired rate limit entries")
        return len(expired)

    def __len__(self):
        return len(self._entries)


class RedisRateLimiter:
    """
    Shared counters for multi-instance deployments. Keys expire on their own
    (PEXPIRE), no sweep needed.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self._script = self.redis.register_script(_CHECK_AND_INCR_LUA)

    @redis_retry()
    def check_and_increment(self, key: str, max_requests: int, window_seconds: int) -> RateLimitDecision:
        allowed, ttl_ms = self._script(keys=[f"ratelimit:{key}"], args=[max_requests, window_seconds * 1000])
        if allowed:
            return RateLimitDecision(True)

        retry_after = max(1, (int(ttl_ms) + 999) // 1000) if int(ttl_ms) > 0 else window_seconds
        logger.info(f"Rate limit exceeded for {key}")
        return RateLimitDecision(False, retry_after)


def build_rate_limiter(backend: str | None = None) -> RateLimiter:
    backend = backend or RATE_LIMIT_BACKEND
    if backend == "redis":
        return RedisRateLimiter()
    if backend == "memory":
        return InMemoryRateLimiter()
    raise ValueError(f"Unknown rate limit backend: {backend}")
