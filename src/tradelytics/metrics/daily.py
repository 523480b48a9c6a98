"""Per-day series grouped by open date."""
from typing import List, Sequence

from ..models import MetricSeries, TradeRecord, TradeStatus
from .grouping import daily_series, mean


def _wins(trades: List[TradeRecord]) -> List[float]:
    return [t.net_pnl for t in trades if t.net_pnl > 0]


def _losses(trades: List[TradeRecord]) -> List[float]:
    return [t.net_pnl for t in trades if t.net_pnl < 0]


def _win_rate(trades: List[TradeRecord]) -> float:
    return len(_wins(trades)) / len(trades) * 100 if trades else 0.0


def _profit_factor(trades: List[TradeRecord]) -> float:
    """Gross profit over gross loss. Zero on days without a loss."""
    gross_loss = abs(sum(_losses(trades)))
    return sum(_wins(trades)) / gross_loss if gross_loss > 0 else 0.0


def _expectancy(trades: List[TradeRecord]) -> float:
    """win_rate * avg_win - (1 - win_rate) * |avg_loss|, by trade status."""
    if not trades:
        return 0.0
    wins = [t.net_pnl for t in trades if t.status is TradeStatus.WIN]
    losses = [t.net_pnl for t in trades if t.status is TradeStatus.LOSS]
    win_rate = len(wins) / len(trades)
    return win_rate * (mean(wins) or 0.0) - (1 - win_rate) * abs(mean(losses) or 0.0)


def daily_trade_count(trades: Sequence[TradeRecord]) -> MetricSeries:
    return daily_series("Trade Count", trades, lambda day: float(len(day)))


def daily_volume(trades: Sequence[TradeRecord]) -> MetricSeries:
    """Contracts or shares traded per day."""
    return daily_series("Trade Volume", trades, lambda day: sum(t.quantity for t in day))


def win_rate_over_time(trades: Sequence[TradeRecord]) -> MetricSeries:
    return daily_series("Win Rate %", trades, _win_rate)


def daily_avg_win(trades: Sequence[TradeRecord]) -> MetricSeries:
    return daily_series("Average Win", trades, lambda day: mean(_wins(day)) or 0.0)


def daily_avg_loss(trades: Sequence[TradeRecord]) -> MetricSeries:
    """Average losing P&L per day. Values are zero or negative."""
    return daily_series("Average Loss", trades, lambda day: mean(_losses(day)) or 0.0)


def profit_factor_over_time(trades: Sequence[TradeRecord]) -> MetricSeries:
    return daily_series("Profit Factor", trades, _profit_factor)


def expectancy_over_time(trades: Sequence[TradeRecord]) -> MetricSeries:
    return daily_series("Trade Expectancy", trades, _expectancy)
