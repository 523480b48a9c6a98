"""Equity, cumulative P&L and drawdown series."""
import math

import structlog

from ..dates import short_label
from ..models import MetricPoint, MetricSeries, TradeRecord
from .grouping import group_by_realized_date, realized_on, with_open_date

logger = structlog.get_logger()


def _pnl(trade: TradeRecord) -> float:
    pnl = trade.net_pnl
    if isinstance(pnl, (int, float)) and math.isfinite(pnl):
        return float(pnl)
    return 0.0


def equity_curve(trades, starting_balance: float = 0.0) -> MetricSeries:
    """Account equity after each trade, in open date order.

    Ties on the open date keep their original order. Each point carries the
    cumulative P&L (``pnl``), ``equity`` and the ISO ``full_date``; its
    ``value`` is the equity.
    """
    series = MetricSeries(title="Equity Curve", timeframe="trade")
    dated = with_open_date(trades)
    skipped = len(trades) - len(dated)
    if skipped:
        logger.debug("Equity curve skipped undated trades", skipped=skipped)

    cumulative = 0.0
    for trade in sorted(dated, key=lambda t: t.open_date):
        cumulative += _pnl(trade)
        equity = float(starting_balance) + cumulative
        series.data.append(MetricPoint(
            date=short_label(trade.open_date),
            value=equity,
            extra={
                "full_date": trade.open_date.isoformat(),
                "pnl": round(cumulative, 2),
                "equity": equity,
            },
        ))
    return series


def daily_pnl(trades) -> MetricSeries:
    """Net P&L summed per realized day."""
    series = MetricSeries(title="Daily Net P&L", timeframe="day")
    for day, day_trades in group_by_realized_date(trades).items():
        series.data.append(MetricPoint(
            date=day.isoformat(),
            value=sum(_pnl(t) for t in day_trades),
            extra={"trades": len(day_trades)},
        ))
    return series


def cumulative_pnl(trades) -> MetricSeries:
    """Running P&L with one point per trade, ordered by realized date."""
    series = MetricSeries(title="Cumulative P&L", timeframe="trade")
    dated = [t for t in trades if realized_on(t) is not None]
    cumulative = 0.0
    for trade in sorted(dated, key=realized_on):
        cumulative += _pnl(trade)
        series.data.append(MetricPoint(date=realized_on(trade).isoformat(), value=cumulative))
    return series


def net_account_balance(trades, starting_balance: float = 0.0) -> MetricSeries:
    cumulative = cumulative_pnl(trades)
    return MetricSeries(
        title="Net Account Balance",
        timeframe="trade",
        data=[MetricPoint(date=p.date, value=float(starting_balance) + p.value) for p in cumulative.data],
    )


def drawdown(trades) -> MetricSeries:
    """Distance below the running peak of cumulative P&L. Values are zero or negative."""
    series = MetricSeries(title="Drawdown", timeframe="trade", color="#ef4444")
    peak = 0.0
    for point in cumulative_pnl(trades).data:
        peak = max(peak, point.value)
        series.data.append(MetricPoint(date=point.date, value=point.value - peak))
    return series
