"""Name to metric function registry."""
import inspect
from typing import Any, Callable, Dict, List, Optional, Sequence

import structlog
from pydantic import BaseModel

from ..models import MetricSeries, TradeRecord
from . import aggregation, daily, equity, r_multiple

logger = structlog.get_logger()

MetricFn = Callable[..., MetricSeries]


class UnknownMetricError(KeyError):
    """Raised when a metric name has no registered function."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown metric '{self.name}'"


class MetricDefinition(BaseModel):
    """Metadata for a registered metric"""
    name: str
    description: str
    function: Callable
    params: List[str] = []
    category: str = "general"


class MetricRegistry:
    """Registry of metric computation functions"""

    def __init__(self):
        self._metrics: Dict[str, MetricDefinition] = {}

    def register(self, name: str, description: str = "", category: str = "general"):
        """Decorator to register a function as a metric"""
        def decorator(func: MetricFn) -> MetricFn:
            self.add(name, func, description=description, category=category)
            return func
        return decorator

    def add(self, name: str, func: MetricFn, description: str = "", category: str = "general") -> None:
        params = [p for p in inspect.signature(func).parameters if p != "trades"]
        self._metrics[name] = MetricDefinition(
            name=name,
            description=description or (func.__doc__ or "").strip().split("\n")[0],
            function=func,
            params=params,
            category=category,
        )
        logger.debug("Registered metric", metric=name, category=category)

    def get(self, name: str) -> MetricDefinition:
        try:
            return self._metrics[name]
        except KeyError:
            raise UnknownMetricError(name) from None

    def exists(self, name: str) -> bool:
        return name in self._metrics

    def names(self) -> List[str]:
        return sorted(self._metrics)

    def list_metrics(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": m.name,
                "description": m.description,
                "category": m.category,
                "params": list(m.params),
            }
            for m in sorted(self._metrics.values(), key=lambda m: (m.category, m.name))
        ]

    def compute(
        self,
        name: str,
        trades: Sequence[TradeRecord],
        params: Optional[Dict[str, Any]] = None,
    ) -> MetricSeries:
        """Run a metric. Params the function does not declare are dropped."""
        metric = self.get(name)
        kwargs = {}
        for key, value in (params or {}).items():
            if key in metric.params:
                kwargs[key] = value
            else:
                logger.debug("Ignoring unsupported metric param", metric=name, param=key)
        return metric.function(list(trades), **kwargs)


def default_registry() -> MetricRegistry:
    """Registry with every built-in metric."""
    registry = MetricRegistry()

    registry.add("equity_curve", equity.equity_curve, category="equity")
    registry.add("cumulative_pnl", equity.cumulative_pnl, category="equity")
    registry.add("daily_pnl", equity.daily_pnl, category="equity")
    registry.add("drawdown", equity.drawdown, category="equity")
    registry.add("net_account_balance", equity.net_account_balance,
                 "Account balance after each trade", category="equity")

    registry.add("realized_r_multiple", r_multiple.realized_r_multiple_series, category="risk")
    registry.add("planned_r_multiple", r_multiple.planned_r_multiple_series,
                 "Average planned R per day", category="risk")
    registry.add("r_multiple_distribution", r_multiple.r_multiple_distribution, category="risk")

    registry.add("day_of_week", aggregation.day_of_week_performance, category="breakdown")
    registry.add("hourly", aggregation.hourly_performance, category="breakdown")
    registry.add("symbol", aggregation.symbol_performance, category="breakdown")
    registry.add("tag", aggregation.tag_performance, category="breakdown")
    registry.add("days_to_expiration", aggregation.days_to_expiration, category="breakdown")

    registry.add("daily_trade_count", daily.daily_trade_count, "Trades per day", category="daily")
    registry.add("daily_volume", daily.daily_volume, category="daily")
    registry.add("win_rate_over_time", daily.win_rate_over_time, "Win rate % per day", category="daily")
    registry.add("daily_avg_win", daily.daily_avg_win, "Average winning P&L per day", category="daily")
    registry.add("daily_avg_loss", daily.daily_avg_loss, category="daily")
    registry.add("profit_factor_over_time", daily.profit_factor_over_time,
                 "Gross profit over gross loss per day", category="daily")
    registry.add("expectancy_over_time", daily.expectancy_over_time,
                 "Expected P&L per trade, per day", category="daily")

    return registry
