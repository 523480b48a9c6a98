"""Tests for day/time/symbol/tag/expiration breakdowns and daily series."""
from datetime import date, time

import pytest

from tradelytics.metrics.aggregation import (
    DTE_LABELS,
    day_of_week_performance,
    days_to_expiration,
    dte_label,
    hourly_performance,
    symbol_performance,
    tag_performance,
)
from tradelytics.metrics.daily import (
    daily_avg_loss,
    daily_avg_win,
    daily_trade_count,
    daily_volume,
    expectancy_over_time,
    profit_factor_over_time,
    win_rate_over_time,
)


class TestDaysToExpiration:
    def test_example(self, trade_factory):
        """Two calendar days to expiry lands in the "2 days" bucket."""
        trade = trade_factory(open_date=date(2024, 1, 1), expiration_date=date(2024, 1, 3))
        series = days_to_expiration([trade])
        buckets = {p.date: p.extra["count"] for p in series.data}
        assert buckets["2 days"] == 1
        assert sum(buckets.values()) == 1

    def test_all_buckets_present(self, trade_factory):
        """Every DTE label is emitted, including empty buckets."""
        series = days_to_expiration([trade_factory()])
        assert series.dates() == DTE_LABELS
        assert DTE_LABELS[0] == "Same day"
        assert DTE_LABELS[-1] == "10+ days"
        assert len(DTE_LABELS) == 11

    def test_expired_before_open_is_same_day(self, trade_factory):
        """Negative day counts clamp to "Same day"."""
        trade = trade_factory(open_date=date(2024, 1, 5), expiration_date=date(2024, 1, 1))
        series = days_to_expiration([trade])
        assert series.data[0].extra["count"] == 1

    @pytest.mark.parametrize("days,label", [(0, "Same day"), (1, "1 day"), (9, "9 days"), (10, "10+ days"), (45, "10+ days")])
    def test_labels(self, days, label):
        assert dte_label(days) == label

    def test_empty(self):
        """Empty input gives an empty series."""
        assert days_to_expiration([]).data == []


class TestDayOfWeek:
    def test_weekdays_only(self, trades, trade_factory):
        """Weekend trades are dropped and all five weekdays are present."""
        weekend = trade_factory("w", open_date=date(2024, 1, 6), net_pnl=999)
        series = day_of_week_performance(trades + [weekend])

        assert series.dates() == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
        by_day = dict(zip(series.dates(), series.values()))
        assert by_day["Monday"] == 100
        assert by_day["Tuesday"] == -25
        assert by_day["Wednesday"] == 0
        assert sum(p.extra["count"] for p in series.data) == 4

    def test_uses_close_date(self, trade_factory):
        """Trades are bucketed by close date."""
        trade = trade_factory(open_date=date(2024, 1, 1), close_date=date(2024, 1, 3), net_pnl=10)
        series = day_of_week_performance([trade])
        by_day = dict(zip(series.dates(), series.values()))
        assert by_day["Wednesday"] == 10
        assert by_day["Monday"] == 0


class TestOtherBreakdowns:
    def test_hourly(self, trade_factory):
        """Trades bucket by entry hour; trades without a time are skipped."""
        trades = [
            trade_factory("a", entry_time=time(9, 31), net_pnl=10),
            trade_factory("b", entry_time=time(9, 59), net_pnl=5),
            trade_factory("c", entry_time=time(14, 0), net_pnl=-3),
            trade_factory("d", net_pnl=100),
        ]
        series = hourly_performance(trades)
        assert series.dates() == ["09:00", "14:00"]
        assert series.values() == [15, -3]

    def test_symbol_best_first(self, trades):
        """Symbols are ordered by net P&L, best first."""
        series = symbol_performance(trades)
        assert series.dates() == ["NQ", "ES"]
        assert series.values() == [125, -50]
        assert series.data[0].extra["win_rate"] == 100.0

    def test_tags_count_once_per_tag(self, trade_factory):
        """A trade adds to each of its tags; untagged trades go under None."""
        trades = [
            trade_factory("a", net_pnl=100, quantity=2, tags=("breakout", "A+")),
            trade_factory("b", net_pnl=-40, quantity=1, tags=("breakout",)),
            trade_factory("c", net_pnl=5, open_date=date(2024, 1, 2)),
            trade_factory("d", net_pnl=-10, quantity=3, open_date=date(2024, 1, 3), tags=("breakout",)),
        ]
        series = tag_performance(trades)
        assert series.title == "Performance by Tag"
        assert series.dates() == ["A+", "breakout", "None"]
        assert series.values() == [100, 50, 5]

        breakout = series.data[1].extra
        assert breakout["count"] == 3
        assert breakout["win_rate"] == pytest.approx(100 / 3)
        # 3 contracts on 1/1 and 3 on 1/3
        assert breakout["avg_daily_volume"] == 3.0

    def test_tags_empty(self):
        """No trades means no tag buckets at all."""
        assert tag_performance([]).data == []


class TestDailySeries:
    """Daily series are grouped by open date."""

    def test_count_and_volume(self, trades):
        """Per-day trade count and summed quantity."""
        assert daily_trade_count(trades).values() == [1, 2, 1]
        assert daily_volume(trades).values() == [1, 2, 1]

    def test_win_rate(self, trades):
        """Win rate is a percentage per day."""
        assert win_rate_over_time(trades).values() == [100.0, 50.0, 0.0]

    def test_avg_win_and_loss(self, trades):
        """Average loss is reported as a non-positive number."""
        assert daily_avg_win(trades).values() == [100, 25, 0]
        assert daily_avg_loss(trades).values() == [0, -50, 0]

    def test_profit_factor(self, trades):
        """Days without a loss report a profit factor of 0."""
        assert profit_factor_over_time(trades).values() == [0, 0.5, 0]

    def test_expectancy(self, trades):
        """Expectancy weighs average win and loss by win rate."""
        values = expectancy_over_time(trades).values()
        assert values[0] == 100
        assert values[1] == pytest.approx(0.5 * 25 - 0.5 * 50)
        assert values[2] == 0

    def test_dates_ascending(self, trades):
        """Daily points come out in date order."""
        assert win_rate_over_time(list(reversed(trades))).dates() == ["2024-01-01", "2024-01-02", "2024-01-05"]

    def test_empty(self):
        """Empty input gives an empty series."""
        assert daily_trade_count([]).data == []
