"""Simple in-memory rate limiting and per-key serialization utilities."""
from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Deque, DefaultDict


class RateLimiter:
    """Provide in-memory rate limiting with asyncio locking."""

    def __init__(self) -> None:
        self._attempts: DefaultDict[str, Deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def is_allowed(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Return True when the request should be allowed for the key."""
        async with self._lock:
            now = time.time()
            window_start = now - window_seconds
            bucket = self._attempts[key]

            while bucket and bucket[0] < window_start:
                bucket.popleft()

            if len(bucket) >= max_requests:
                return False

            bucket.append(now)
            return True

    def reset(self) -> None:
        self._attempts.clear()


class KeyedLock:
    """Serialize coroutines that share a key, e.g. all category writes of one user.

    Locks live only in this process; a multi-worker deployment still relies on
    the store's unique index for duplicate detection.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: DefaultDict[str, int] = defaultdict(int)
        self._guard = asyncio.Lock()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self._guard:
            lock = self._locks.setdefault(key, asyncio.Lock())
            self._holders[key] += 1
        try:
            async with lock:
                yield
        finally:
            async with self._guard:
                self._holders[key] -= 1
                if self._holders[key] == 0:
                    del self._holders[key]
                    self._locks.pop(key, None)


rate_limiter = RateLimiter()
category_locks = KeyedLock()
