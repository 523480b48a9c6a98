"""Headline KPIs over a set of trades."""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Sequence

from ..models import TradeRecord, TradeStatus
from .grouping import realized_on


@dataclass
class PerformanceSummary:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    net_pnl: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    win_rate: float = 0.0  # Percent
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: Optional[float] = None
    expectancy: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    current_streak: int = 0  # Positive for wins, negative for losses

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize(trades: Sequence[TradeRecord]) -> PerformanceSummary:
    """Calculate summary metrics. Breakeven trades count toward totals only."""
    summary = PerformanceSummary()
    if not trades:
        return summary

    summary.total_trades = len(trades)
    wins = []
    losses = []
    for trade in trades:
        status = trade.status
        if status is TradeStatus.WIN:
            wins.append(trade.net_pnl)
        elif status is TradeStatus.LOSS:
            losses.append(trade.net_pnl)
        else:
            summary.breakeven_trades += 1
        summary.net_pnl += trade.net_pnl

    summary.winning_trades = len(wins)
    summary.losing_trades = len(losses)
    summary.gross_profit = sum(wins)
    summary.gross_loss = abs(sum(losses))
    summary.win_rate = len(wins) / len(trades) * 100

    if wins:
        summary.avg_win = summary.gross_profit / len(wins)
        summary.largest_win = max(wins)
    if losses:
        summary.avg_loss = sum(losses) / len(losses)
        summary.largest_loss = min(losses)
    if summary.gross_loss > 0:
        summary.profit_factor = summary.gross_profit / summary.gross_loss

    summary.expectancy = summary.net_pnl / len(trades)
    summary.current_streak = _current_streak(trades)
    return summary


def _current_streak(trades: Sequence[TradeRecord]) -> int:
    dated = [t for t in trades if realized_on(t) is not None]
    streak = 0
    for trade in reversed(sorted(dated, key=realized_on)):
        status = trade.status
        if status is TradeStatus.BREAKEVEN:
            break
        step = 1 if status is TradeStatus.WIN else -1
        if streak and (streak > 0) != (step > 0):
            break
        streak += step
    return streak
