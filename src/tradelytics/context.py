"""Explicitly constructed analytics container."""
from pathlib import Path
from typing import Optional

import structlog

from .cache import AnalyticsCache, CacheJanitor
from .config import AnalyticsConfig
from .metrics.registry import MetricRegistry, default_registry
from .service import ReactiveAnalyticsService
from .store import TradeMirror, TradeStore

logger = structlog.get_logger()


class AnalyticsContext:
    """Owns one account's store, cache, janitor and service.

    Nothing is shared between contexts; tests build as many as they need.
    Use as a context manager, or call ``init()`` and ``dispose()`` yourself.
    """

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        mirror: Optional[TradeMirror] = None,
        registry: Optional[MetricRegistry] = None,
        cache: Optional[AnalyticsCache] = None,
        start_janitor: bool = True,
    ):
        self.config = config or AnalyticsConfig()
        if mirror is None and self.config.mirror_path is not None:
            mirror = TradeMirror(Path(self.config.mirror_path))
        self.store = TradeStore(account_id=self.config.account_id, mirror=mirror)
        self.cache = cache or AnalyticsCache(default_ttl=self.config.cache.default_ttl_ms)
        self.janitor = CacheJanitor(self.cache, interval=self.config.cache.cleanup_interval_seconds)
        self.service = ReactiveAnalyticsService(
            self.store,
            cache=self.cache,
            registry=registry or default_registry(),
            config=self.config,
        )
        self.start_janitor = start_janitor
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, load_mirror: bool = True) -> "AnalyticsContext":
        if self._initialized:
            return self
        self.service.init()
        if load_mirror and self.store.mirror is not None:
            loaded = self.store.load_from_mirror()
            logger.info("Loaded mirrored trades", account_id=self.store.account_id, count=loaded)
        if self.start_janitor and self.config.cache.enabled:
            self.janitor.start()
        self._initialized = True
        return self

    def dispose(self) -> None:
        if not self._initialized:
            return
        self.janitor.stop()
        self.service.dispose()
        self.cache.clear()
        self._initialized = False

    def __enter__(self) -> "AnalyticsContext":
        return self.init()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()
