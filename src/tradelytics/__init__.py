"""Trading journal analytics: trade store, metrics, cache and reactive service."""
from .cache import AnalyticsCache, CacheJanitor, cache_key
from .config import AnalyticsConfig
from .context import AnalyticsContext
from .filters import AnalyticsFilter
from .metrics import MetricRegistry, UnknownMetricError, default_registry
from .models import MetricPoint, MetricSeries, ParseError, ParseResult, Side, TradeRecord, TradeStatus, parse_trade_record
from .service import ReactiveAnalyticsService, ServiceState
from .store import TradeMirror, TradeStore

__version__ = "0.1.0"

__all__ = [
    "AnalyticsCache",
    "CacheJanitor",
    "cache_key",
    "AnalyticsConfig",
    "AnalyticsContext",
    "AnalyticsFilter",
    "MetricRegistry",
    "UnknownMetricError",
    "default_registry",
    "MetricPoint",
    "MetricSeries",
    "ParseError",
    "ParseResult",
    "Side",
    "TradeRecord",
    "TradeStatus",
    "parse_trade_record",
    "ReactiveAnalyticsService",
    "ServiceState",
    "TradeMirror",
    "TradeStore",
]
