"""Pure metric computation functions."""
from .aggregation import (
    days_to_expiration,
    day_of_week_performance,
    hourly_performance,
    symbol_performance,
    tag_performance,
)
from .equity import cumulative_pnl, daily_pnl, drawdown, equity_curve, net_account_balance
from .r_multiple import (
    r_multiple_distribution,
    r_multiple_expectancy,
    r_multiple_metrics,
    realized_r_multiple,
    planned_r_multiple,
    trade_r_multiple,
)
from .registry import MetricRegistry, UnknownMetricError, default_registry
from .summary import PerformanceSummary, summarize

__all__ = [
    "equity_curve",
    "cumulative_pnl",
    "daily_pnl",
    "drawdown",
    "net_account_balance",
    "trade_r_multiple",
    "realized_r_multiple",
    "planned_r_multiple",
    "r_multiple_metrics",
    "r_multiple_expectancy",
    "r_multiple_distribution",
    "day_of_week_performance",
    "hourly_performance",
    "symbol_performance",
    "tag_performance",
    "days_to_expiration",
    "summarize",
    "PerformanceSummary",
    "MetricRegistry",
    "UnknownMetricError",
    "default_registry",
]
