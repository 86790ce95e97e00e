"""Per-client admission limiting.

Each client key (usually the source IP) owns a token bucket created on first
sight. Buckets refill continuously, so bursts are smoothed instead of being
reset at window boundaries. A background sweeper evicts buckets that have been
idle longer than a threshold, which bounds memory under churn of many keys.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock
from typing import Protocol

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Limiter(Protocol):
    """Admission check shared by the real and the unlimited limiter."""

    def allow(self, key: str) -> bool: ...

    def retry_after(self, key: str) -> int | None: ...


@dataclass
class _Bucket:
    tokens: float
    updated: float
    last_access: float


class AdmissionLimiter:
    """Token-bucket limiter keyed by client.

    Args:
        rate: Units refilled per second.
        burst: Bucket capacity, also the size of a fresh bucket.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(self, rate: float, burst: int, *, clock: Clock = time.monotonic) -> None:
        if rate < 0:
            raise ValueError("rate must not be negative")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self._rate = float(rate)
        self._burst = int(burst)
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._lock = Lock()

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def burst(self) -> int:
        return self._burst

    def allow(self, key: str) -> bool:
        """Consume one unit for `key`; return False when none is available."""
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket(tokens=float(self._burst), updated=now, last_access=now)
                self._buckets[key] = bucket
            else:
                elapsed = max(0.0, now - bucket.updated)
                bucket.tokens = min(float(self._burst), bucket.tokens + elapsed * self._rate)
                bucket.updated = now
            bucket.last_access = now
            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return True
            return False

    def retry_after(self, key: str) -> int | None:
        """Return whole seconds until `key` regains one unit.

        `None` when the bucket never refills (zero rate).
        """
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                return 0
            tokens = min(float(self._burst), bucket.tokens + max(0.0, now - bucket.updated) * self._rate)
        if tokens >= 1.0:
            return 0
        if self._rate == 0:
            return None
        return max(1, math.ceil((1.0 - tokens) / self._rate))

    def sweep(self, idle_seconds: float) -> int:
        """Drop buckets untouched for more than `idle_seconds`; return how many."""
        threshold = self._clock() - idle_seconds
        with self._lock:
            stale = [key for key, bucket in self._buckets.items() if bucket.last_access < threshold]
            for key in stale:
                del self._buckets[key]
        return len(stale)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._buckets

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


class UnlimitedLimiter:
    """Limiter for trusted contexts: every request is admitted."""

    def allow(self, key: str) -> bool:
        return True

    def retry_after(self, key: str) -> int | None:
        return 0

    def sweep(self, idle_seconds: float) -> int:
        return 0


class LimiterSweeper:
    """Periodically evicts idle buckets from an `AdmissionLimiter`.

    Eviction is advisory: a delayed or skipped sweep only costs memory.
    """

    def __init__(self, limiter: AdmissionLimiter, *, interval: float, idle_seconds: float) -> None:
        self.limiter = limiter
        self.interval = max(0.01, float(interval))
        self.idle_seconds = float(idle_seconds)
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run(), name="limiter-sweeper")

    async def stop(self) -> None:
        """Stop the background sweep loop and wait for it to exit."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                pass
            else:
                return
            removed = self.limiter.sweep(self.idle_seconds)
            if removed:
                logger.debug("Evicted %d idle limiter entries", removed)
