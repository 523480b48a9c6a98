"""Shared grouping helpers for metric functions."""
from collections import OrderedDict
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..models import MetricPoint, MetricSeries, TradeRecord


def with_open_date(trades: Iterable[TradeRecord]) -> List[TradeRecord]:
    """Drop trades whose open date is missing or not a date."""
    return [t for t in trades if isinstance(getattr(t, "open_date", None), date)]


def realized_on(trade: TradeRecord) -> Optional[date]:
    d = trade.close_date if isinstance(trade.close_date, date) else None
    if d is None and isinstance(trade.open_date, date):
        d = trade.open_date
    return d


def group_by_open_date(trades: Sequence[TradeRecord]) -> "OrderedDict[date, List[TradeRecord]]":
    """Group trades by open date, ascending. Input order is kept within a day."""
    groups: Dict[date, List[TradeRecord]] = {}
    for trade in with_open_date(trades):
        groups.setdefault(trade.open_date, []).append(trade)
    return OrderedDict(sorted(groups.items()))


def group_by_realized_date(trades: Sequence[TradeRecord]) -> "OrderedDict[date, List[TradeRecord]]":
    groups: Dict[date, List[TradeRecord]] = {}
    for trade in trades:
        d = realized_on(trade)
        if d is not None:
            groups.setdefault(d, []).append(trade)
    return OrderedDict(sorted(groups.items()))


def daily_series(
    title: str,
    trades: Sequence[TradeRecord],
    reduce: Callable[[List[TradeRecord]], Optional[float]],
) -> MetricSeries:
    """One point per open date, value computed by ``reduce`` over that day's trades."""
    series = MetricSeries(title=title, timeframe="day")
    for day, day_trades in group_by_open_date(trades).items():
        series.data.append(MetricPoint(date=day.isoformat(), value=reduce(day_trades)))
    return series


def mean(values: Sequence[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None
