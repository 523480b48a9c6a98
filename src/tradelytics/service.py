"""Reactive analytics facade over the trade store and cache."""
import asyncio
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from .cache import AnalyticsCache, account_pattern, cache_key
from .config import AnalyticsConfig
from .filters import AnalyticsFilter
from .metrics.registry import MetricRegistry, default_registry
from .metrics.summary import PerformanceSummary, summarize
from .models import MetricSeries
from .store import TradeStore

logger = structlog.get_logger()

Listener = Callable[[], None]

# Metrics that take the account's starting balance when the caller does not pass one
_BALANCE_METRICS = ("equity_curve", "net_account_balance")


class ServiceState(str, Enum):
    IDLE = "idle"
    RECOMPUTING = "recomputing"


class ReactiveAnalyticsService:
    """Answers metric queries from cache, recomputing from the store on a miss.

    The service subscribes to the store when built. Every store mutation
    drops the account's cached results and then notifies this service's
    subscribers, in registration order.
    """

    def __init__(
        self,
        store: TradeStore,
        cache: Optional[AnalyticsCache] = None,
        registry: Optional[MetricRegistry] = None,
        config: Optional[AnalyticsConfig] = None,
    ):
        self.store = store
        self.config = config or AnalyticsConfig(account_id=store.account_id)
        self.cache = cache or AnalyticsCache(default_ttl=self.config.cache.default_ttl_ms)
        self.registry = registry or default_registry()
        self.state = ServiceState.IDLE
        self.last_calculation_ms = 0.0
        self._listeners: List[Tuple[int, Listener]] = []
        self._next_token = 0
        self._store_unsubscribe: Optional[Callable[[], None]] = None
        self.init()

    @property
    def account_id(self) -> str:
        return self.store.account_id

    @property
    def initialized(self) -> bool:
        return self._store_unsubscribe is not None

    def init(self) -> None:
        """Listen to store changes. Done on construction; a no-op unless disposed."""
        if self._store_unsubscribe is None:
            self._store_unsubscribe = self.store.subscribe(self._on_trades_changed)
            logger.debug("Analytics service initialized", account_id=self.account_id)

    def dispose(self) -> None:
        if self._store_unsubscribe is not None:
            self._store_unsubscribe()
            self._store_unsubscribe = None
        self._listeners = []
        logger.debug("Analytics service disposed", account_id=self.account_id)

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        token = self._next_token
        self._next_token += 1
        self._listeners.append((token, callback))

        def unsubscribe() -> None:
            self._listeners = [(t, cb) for t, cb in self._listeners if t != token]

        return unsubscribe

    def invalidate(self) -> int:
        """Drop every cached result for the current account."""
        return self.cache.invalidate(account_pattern(self.account_id))

    def get_metric(
        self,
        name: str,
        params: Optional[Dict[str, Any]] = None,
        filters: Optional[AnalyticsFilter] = None,
    ) -> MetricSeries:
        """Return the named metric, computing it only on a cache miss.

        Raises:
            UnknownMetricError: ``name`` is not registered. Checked before the cache.
        """
        definition = self.registry.get(name)
        params = self._with_defaults(name, params)
        # Undeclared params are dropped by compute and must not split the cache
        params = {k: v for k, v in params.items() if k in definition.params}
        key = cache_key(name, self.account_id, params, filters.fingerprint() if filters else "")

        if self.config.cache.enabled:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Metric cache hit", metric=name, key=key)
                return cached

        logger.debug("Metric cache miss", metric=name, key=key)
        series = self._compute(lambda trades: self.registry.compute(name, trades, params), filters)
        if self.config.cache.enabled:
            self.cache.set(key, series)
        return series

    def get_summary(self, filters: Optional[AnalyticsFilter] = None) -> PerformanceSummary:
        key = cache_key("summary", self.account_id, None, filters.fingerprint() if filters else "")
        if self.config.cache.enabled:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        summary = self._compute(summarize, filters)
        if self.config.cache.enabled:
            self.cache.set(key, summary)
        return summary

    def list_metrics(self) -> List[Dict[str, Any]]:
        return self.registry.list_metrics()

    async def reset(self) -> None:
        """Clear every cached result and tell subscribers to re-query."""
        self.cache.clear()
        self.cache.reset_stats()
        # Yield so a reset never completes inside the caller's own step
        await asyncio.sleep(0)
        logger.info("Analytics reset", account_id=self.account_id, trades=len(self.store))
        self._notify()

    def _with_defaults(self, name: str, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = dict(params or {})
        if name in _BALANCE_METRICS and "starting_balance" not in merged:
            merged["starting_balance"] = self.config.starting_balance
        return merged

    def _compute(self, fn, filters: Optional[AnalyticsFilter]):
        self.state = ServiceState.RECOMPUTING
        started = time.perf_counter()
        try:
            trades = self.store.get_all_trades()
            if filters is not None:
                trades = filters.apply(trades)
            return fn(trades)
        finally:
            self.last_calculation_ms = (time.perf_counter() - started) * 1000
            self.state = ServiceState.IDLE

    def _on_trades_changed(self) -> None:
        removed = self.invalidate()
        logger.debug(
            "Trades changed, cache invalidated",
            account_id=self.account_id,
            removed=removed,
            version=self.store.version,
        )
        self._notify()

    def _notify(self) -> None:
        for _, callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                logger.error("Analytics subscriber failed", account_id=self.account_id, error=str(e))
