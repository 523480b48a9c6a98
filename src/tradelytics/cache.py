"""In-memory TTL cache for computed analytics."""
import hashlib
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import structlog

logger = structlog.get_logger()

DEFAULT_TTL_MS = 5 * 60 * 1000
DEFAULT_CLEANUP_INTERVAL = 10 * 60  # Seconds

Clock = Callable[[], float]


def _now_ms() -> float:
    return time.time() * 1000


def cache_key(metric: str, account_id: str, params: Optional[Mapping[str, Any]] = None, filters: str = "") -> str:
    """Key for a computed metric: ``analytics:<account>:<metric>:<hash>``.

    The account comes before the metric so ``analytics:<account>:*`` covers
    every metric of one account. The hash is order-independent over params.
    """
    payload = json.dumps({"params": dict(params or {}), "filters": filters}, sort_keys=True, default=str)
    digest = hashlib.sha1(payload.encode()).hexdigest()[:12]
    return f"analytics:{account_id}:{metric}:{digest}"


def account_pattern(account_id: str) -> str:
    return f"analytics:{account_id}:*"


@dataclass
class CacheEntry:
    data: Any
    timestamp: float  # Milliseconds
    ttl: float  # Milliseconds

    def expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total * 100 if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"hits": self.hits, "misses": self.misses, "size": self.size, "hit_rate": self.hit_rate}


class AnalyticsCache:
    """Memoizes metric results by key with a per-entry TTL.

    Expired entries are evicted lazily on ``get`` and in bulk by ``cleanup``.
    All times are in milliseconds from ``clock``.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL_MS, clock: Optional[Clock] = None):
        self.default_ttl = default_ttl if default_ttl and default_ttl > 0 else DEFAULT_TTL_MS
        self._clock = clock or _now_ms
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.data

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """Store ``data``. A missing or non-positive ttl uses the default."""
        if not ttl or ttl <= 0:
            ttl = self.default_ttl
        with self._lock:
            self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), ttl=ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate(self, pattern: str) -> int:
        """Remove keys matching ``pattern``. A trailing ``*`` matches any suffix."""
        with self._lock:
            if pattern.endswith("*"):
                prefix = pattern[:-1]
                doomed = [k for k in self._entries if k.startswith(prefix)]
            else:
                doomed = [pattern] if pattern in self._entries else []
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Cache invalidated", pattern=pattern, removed=len(doomed))
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, v in self._entries.items() if v.expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Cache cleanup", removed=len(expired))
        return len(expired)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, size=len(self._entries))

    def reset_stats(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0


class CacheJanitor:
    """Background thread that periodically sweeps expired cache entries."""

    def __init__(self, cache: AnalyticsCache, interval: float = DEFAULT_CLEANUP_INTERVAL):
        self.cache = cache
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="analytics-cache-janitor", daemon=True)
        self._thread.start()
        logger.debug("Cache janitor started", interval=self.interval)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.cache.cleanup()
            except Exception as e:
                logger.warning("Cache cleanup failed", error=str(e))
