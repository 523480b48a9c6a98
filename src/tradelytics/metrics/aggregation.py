"""Day, time, symbol, tag and expiration breakdowns."""
from typing import Dict, List, Sequence

from ..dates import WEEKDAY_NAMES, days_between
from ..models import MetricPoint, MetricSeries, TradeRecord
from .grouping import realized_on, with_open_date

DTE_LABELS = ["Same day", "1 day"] + [f"{n} days" for n in range(2, 10)] + ["10+ days"]


def _bucket_series(title: str, buckets: Dict[str, List[TradeRecord]], order: Sequence[str]) -> MetricSeries:
    series = MetricSeries(title=title)
    for label in order:
        members = buckets.get(label, [])
        pnl = sum(t.net_pnl for t in members)
        wins = sum(1 for t in members if t.net_pnl > 0)
        series.data.append(MetricPoint(
            date=label,
            value=pnl,
            extra={
                "count": len(members),
                "pnl": pnl,
                "win_rate": wins / len(members) * 100 if members else 0.0,
            },
        ))
    return series


def day_of_week_performance(trades: Sequence[TradeRecord]) -> MetricSeries:
    """P&L per weekday, Monday through Friday. Weekend trades are dropped."""
    if not trades:
        return MetricSeries(title="Performance by Day of Week")
    weekdays = WEEKDAY_NAMES[:5]
    buckets: Dict[str, List[TradeRecord]] = {}
    for trade in trades:
        day = realized_on(trade)
        if day is None or day.weekday() > 4:
            continue
        buckets.setdefault(WEEKDAY_NAMES[day.weekday()], []).append(trade)
    return _bucket_series("Performance by Day of Week", buckets, weekdays)


def hourly_performance(trades: Sequence[TradeRecord]) -> MetricSeries:
    """P&L per entry hour. Trades without an entry time are skipped."""
    buckets: Dict[str, List[TradeRecord]] = {}
    for trade in trades:
        if trade.entry_time is None:
            continue
        buckets.setdefault(f"{trade.entry_time.hour:02d}:00", []).append(trade)
    return _bucket_series("Performance by Hour", buckets, sorted(buckets))


def symbol_performance(trades: Sequence[TradeRecord]) -> MetricSeries:
    """P&L per symbol, best first."""
    buckets: Dict[str, List[TradeRecord]] = {}
    for trade in trades:
        buckets.setdefault(trade.symbol, []).append(trade)
    order = sorted(buckets, key=lambda s: sum(t.net_pnl for t in buckets[s]), reverse=True)
    return _bucket_series("Performance by Symbol", buckets, order)


UNTAGGED = "None"


def tag_performance(trades: Sequence[TradeRecord]) -> MetricSeries:
    """P&L per tag, best first.

    A trade counts toward every one of its tags; untagged trades go under
    ``"None"``. Point extras also carry ``avg_daily_volume``, the mean of the
    per-day summed quantity over the days the tag traded.
    """
    buckets: Dict[str, List[TradeRecord]] = {}
    for trade in trades:
        for tag in dict.fromkeys(trade.tags) or (UNTAGGED,):
            buckets.setdefault(tag, []).append(trade)
    order = sorted(buckets, key=lambda s: sum(t.net_pnl for t in buckets[s]), reverse=True)
    series = _bucket_series("Performance by Tag", buckets, order)

    for point in series.data:
        volume_by_day: Dict[str, float] = {}
        for trade in buckets[point.date]:
            day = realized_on(trade)
            key = day.isoformat() if day else ""
            volume_by_day[key] = volume_by_day.get(key, 0.0) + trade.quantity
        point.extra["avg_daily_volume"] = sum(volume_by_day.values()) / len(volume_by_day)
    return series


def dte_label(days: int) -> str:
    if days <= 0:
        return "Same day"
    if days == 1:
        return "1 day"
    if days < 10:
        return f"{days} days"
    return "10+ days"


def days_to_expiration(trades: Sequence[TradeRecord]) -> MetricSeries:
    """P&L by calendar days between open and expiration.

    Trades without an expiration date are counted as expiring on their close
    date. Every bucket is present, including empty ones.
    """
    if not trades:
        return MetricSeries(title="Days to Expiration")
    buckets: Dict[str, List[TradeRecord]] = {}
    for trade in with_open_date(trades):
        expiry = trade.expiration_date or trade.close_date or trade.open_date
        days = max(0, days_between(trade.open_date, expiry))
        buckets.setdefault(dte_label(days), []).append(trade)
    return _bucket_series("Days to Expiration", buckets, DTE_LABELS)
