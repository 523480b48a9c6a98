"""R-multiple calculations.

Risk is the distance between entry and stop. A trade's realized R is its net
P&L expressed in units of that risk; planned R is the distance to the profit
target in the same units.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..models import MetricPoint, MetricSeries, Side, TradeRecord
from .grouping import daily_series, mean

R_RANGES = (
    "< -2R",
    "-2R to -1R",
    "-1R to 0R",
    "0R to 1R",
    "1R to 2R",
    "2R to 3R",
    "> 3R",
)


@dataclass
class TradeRMultiple:
    planned: Optional[float] = None
    realized: Optional[float] = None
    risk: Optional[float] = None
    initial_target: Optional[float] = None


@dataclass
class RMultipleMetrics:
    avg_planned: float = 0.0
    avg_realized: float = 0.0
    total_planned: float = 0.0
    total_realized: float = 0.0
    trades_with_stop_and_target: int = 0
    total_trades: int = 0
    distribution: List[Dict[str, object]] = field(default_factory=list)


@dataclass
class RExpectancy:
    expectancy: float = 0.0
    win_rate: float = 0.0
    avg_win_r: float = 0.0
    avg_loss_r: float = 0.0


def _finite(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


def trade_r_multiple(trade: TradeRecord) -> TradeRMultiple:
    """Planned and realized R for one trade.

    Both are None without a stop loss, an entry price, or when entry equals
    stop. Planned R additionally needs a profit target.
    """
    entry = trade.entry_price
    stop = trade.stop_loss
    if not _finite(stop) or not _finite(entry) or not entry or not _finite(trade.net_pnl):
        return TradeRMultiple()

    risk = abs(entry - stop)
    if risk == 0:
        return TradeRMultiple()

    result = TradeRMultiple(risk=risk, realized=trade.net_pnl / risk)
    target = trade.profit_target
    if _finite(target):
        result.initial_target = target - entry if trade.side is not Side.SHORT else entry - target
        result.planned = result.initial_target / risk
    return result


def realized_r_multiple(trade: TradeRecord) -> Optional[float]:
    return trade_r_multiple(trade).realized


def planned_r_multiple(trade: TradeRecord) -> Optional[float]:
    return trade_r_multiple(trade).planned


def r_range(value: float) -> str:
    """Bucket label for an R value. Lower bounds are inclusive."""
    if value < -2:
        return "< -2R"
    if value < -1:
        return "-2R to -1R"
    if value < 0:
        return "-1R to 0R"
    if value < 1:
        return "0R to 1R"
    if value < 2:
        return "1R to 2R"
    if value < 3:
        return "2R to 3R"
    return "> 3R"


def r_multiple_metrics(trades: Sequence[TradeRecord]) -> RMultipleMetrics:
    planned: List[float] = []
    realized: List[float] = []
    for trade in trades:
        r = trade_r_multiple(trade)
        if r.planned is not None:
            planned.append(r.planned)
        if r.realized is not None:
            realized.append(r.realized)

    planned_counts = {name: 0 for name in R_RANGES}
    realized_counts = {name: 0 for name in R_RANGES}
    for value in planned:
        planned_counts[r_range(value)] += 1
    for value in realized:
        realized_counts[r_range(value)] += 1

    return RMultipleMetrics(
        avg_planned=mean(planned) or 0.0,
        avg_realized=mean(realized) or 0.0,
        total_planned=sum(planned),
        total_realized=sum(realized),
        trades_with_stop_and_target=len(planned),
        total_trades=len(trades),
        distribution=[
            {"range": name, "planned": planned_counts[name], "realized": realized_counts[name]}
            for name in R_RANGES
        ],
    )


def r_multiple_expectancy(trades: Sequence[TradeRecord]) -> RExpectancy:
    """Expectancy in R: win_rate * avg_win_r - (1 - win_rate) * avg_loss_r."""
    realized = [r for r in (realized_r_multiple(t) for t in trades) if r is not None]
    if not realized:
        return RExpectancy()

    wins = [r for r in realized if r > 0]
    losses = [r for r in realized if r < 0]
    win_rate = len(wins) / len(realized)
    avg_win = mean(wins) or 0.0
    avg_loss = abs(mean(losses) or 0.0)
    return RExpectancy(
        expectancy=win_rate * avg_win - (1 - win_rate) * avg_loss,
        win_rate=win_rate,
        avg_win_r=avg_win,
        avg_loss_r=avg_loss,
    )


def _daily_average(picker):
    def reduce(day_trades: List[TradeRecord]) -> Optional[float]:
        return mean([v for v in (picker(t) for t in day_trades) if v is not None])
    return reduce


def realized_r_multiple_series(trades: Sequence[TradeRecord]) -> MetricSeries:
    """Average realized R per open date. Days without a defined R get None."""
    return daily_series("Realized R-Multiple", trades, _daily_average(realized_r_multiple))


def planned_r_multiple_series(trades: Sequence[TradeRecord]) -> MetricSeries:
    return daily_series("Planned R-Multiple", trades, _daily_average(planned_r_multiple))


def r_multiple_distribution(trades: Sequence[TradeRecord]) -> MetricSeries:
    """Count of realized R values per range; planned counts ride along in ``extra``."""
    series = MetricSeries(title="R-Multiple Distribution")
    if not trades:
        return series
    metrics = r_multiple_metrics(trades)
    for bucket in metrics.distribution:
        series.data.append(MetricPoint(
            date=bucket["range"],
            value=bucket["realized"],
            extra={"planned": bucket["planned"]},
        ))
    return series
