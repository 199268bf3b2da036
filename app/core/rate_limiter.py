import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


class RateLimiter(ABC):
    """Fixed-window request counter.

    ``allow`` returns ``(allowed, retry_after_seconds)``. The first request of a
    window opens it with count 1; later requests inside the window are allowed
    while the count stays within ``limit``; the first request after the window
    elapses opens a fresh one.
    """

    @abstractmethod
    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int = 10_000) -> None:
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._max_entries = max_entries

    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now >= entry.reset_at:
                if entry is None and len(self._entries) >= self._max_entries:
                    self._purge_expired(now)
                    if self._entries and len(self._entries) >= self._max_entries:
                        self._evict_oldest()
                self._entries[key] = RateLimitEntry(count=1, reset_at=now + window_seconds)
                return True, 0

            if entry.count >= limit:
                retry_after = max(1, int(entry.reset_at - now + 0.999))
                return False, retry_after

            entry.count += 1
            return True, 0

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if now >= entry.reset_at]
        for key in expired:
            del self._entries[key]

    def _evict_oldest(self) -> None:
        # every window is still open; drop the one closest to expiring
        oldest = min(self._entries, key=lambda key: self._entries[key].reset_at)
        del self._entries[oldest]


class RedisRateLimiter(RateLimiter):
    def __init__(self, redis_url: str, prefix: str = "rl") -> None:
        self._client = redis.Redis.from_url(
            redis_url,
            socket_connect_timeout=0.2,
            socket_timeout=0.2,
            decode_responses=False,
        )
        self._prefix = prefix

    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        redis_key = f"{self._prefix}:{key}"
        pipe = self._client.pipeline()
        pipe.incr(redis_key)
        pipe.ttl(redis_key)
        current_count, ttl = pipe.execute()

        if current_count == 1 or ttl < 0:
            self._client.expire(redis_key, window_seconds)
            ttl = window_seconds

        if current_count > limit:
            return False, max(1, int(ttl))
        return True, 0

    def reset(self) -> None:
        keys = self._client.keys(f"{self._prefix}:*")
        if keys:
            self._client.delete(*keys)


class FallbackRateLimiter(RateLimiter):
    def __init__(self, primary: RateLimiter, fallback: RateLimiter) -> None:
        self._primary = primary
        self._fallback = fallback

    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        try:
            return self._primary.allow(key=key, limit=limit, window_seconds=window_seconds)
        except redis.RedisError:
            logger.warning("rate_limit_primary_unavailable key=%s falling back to memory", key)
            return self._fallback.allow(key=key, limit=limit, window_seconds=window_seconds)

    def reset(self) -> None:
        try:
            self._primary.reset()
        except redis.RedisError:
            logger.warning("rate_limit_primary_unavailable during reset")
        self._fallback.reset()


class BookingRequestThrottle:
    """Per (client ip, event type slug) throttle in front of booking admission."""

    def __init__(self, limiter: RateLimiter, limit: int | None = None, window_seconds: int | None = None) -> None:
        self._limiter = limiter
        self._limit = limit
        self._window_seconds = window_seconds

    @property
    def limit(self) -> int:
        return self._limit if self._limit is not None else settings.public_booking_max_requests

    @property
    def window_seconds(self) -> int:
        if self._window_seconds is not None:
            return self._window_seconds
        return settings.public_booking_rate_limit_window_seconds

    @staticmethod
    def key_for(client_ip: str, slug: str) -> str:
        return f"public-booking:{client_ip}:{slug}"

    def check(self, client_ip: str, slug: str) -> tuple[bool, int]:
        return self._limiter.allow(
            key=self.key_for(client_ip, slug),
            limit=self.limit,
            window_seconds=self.window_seconds,
        )

    def allow(self, client_ip: str, slug: str) -> bool:
        allowed, _ = self.check(client_ip, slug)
        return allowed


def _build_rate_limiter() -> RateLimiter:
    backend = settings.rate_limit_backend.strip().lower()
    memory = InMemoryRateLimiter()
    if backend == "memory":
        return memory
    if backend == "redis":
        redis_limiter = RedisRateLimiter(redis_url=settings.rate_limit_redis_url)
        return FallbackRateLimiter(primary=redis_limiter, fallback=memory)
    return memory


rate_limiter: RateLimiter = _build_rate_limiter()
booking_throttle = BookingRequestThrottle(rate_limiter)
