"""Tests for equity and P&L series."""
from datetime import date

import pytest

from tradelytics.metrics.equity import cumulative_pnl, daily_pnl, drawdown, equity_curve, net_account_balance


class TestEquityCurve:
    """Test the equity curve series."""

    def test_example(self, trade_factory):
        """Equity and cumulative P&L on top of a starting balance."""
        trades = [
            trade_factory("a", open_date=date(2024, 1, 1), net_pnl=100),
            trade_factory("b", open_date=date(2024, 1, 2), net_pnl=-50),
        ]
        series = equity_curve(trades, starting_balance=1000)

        assert [p.to_dict() for p in series.data] == [
            {"date": "1/1", "value": 1100.0, "full_date": "2024-01-01", "pnl": 100.0, "equity": 1100.0},
            {"date": "1/2", "value": 1050.0, "full_date": "2024-01-02", "pnl": 50.0, "equity": 1050.0},
        ]

    def test_sorted_by_open_date(self, trade_factory):
        """Points follow open date, not input order."""
        trades = [
            trade_factory("c", open_date=date(2024, 1, 3), net_pnl=1),
            trade_factory("a", open_date=date(2024, 1, 1), net_pnl=1),
            trade_factory("b", open_date=date(2024, 1, 2), net_pnl=1),
        ]
        full_dates = [p.extra["full_date"] for p in equity_curve(trades).data]
        assert full_dates == sorted(full_dates)

    def test_ties_keep_input_order(self, trade_factory):
        """Trades on the same day keep their input order."""
        trades = [
            trade_factory("a", open_date=date(2024, 1, 1), net_pnl=10),
            trade_factory("b", open_date=date(2024, 1, 1), net_pnl=-30),
        ]
        assert [p.extra["pnl"] for p in equity_curve(trades).data] == [10.0, -20.0]

    def test_pnl_rounded_to_cents(self, trade_factory):
        """Cumulative P&L is rounded to 2 decimals."""
        trades = [trade_factory("a", net_pnl=0.1), trade_factory("b", net_pnl=0.2)]
        assert equity_curve(trades).data[-1].extra["pnl"] == 0.3

    def test_empty(self):
        """Empty input gives an empty series."""
        series = equity_curve([])
        assert series.data == []
        assert series.title == "Equity Curve"

    def test_skips_trades_without_date(self, trade_factory):
        """Trades without an open date are skipped."""
        trades = [trade_factory("a", net_pnl=5), trade_factory("b", open_date=None, close_date=None, net_pnl=5)]
        assert len(equity_curve(trades)) == 1


class TestPnlSeries:
    def test_daily_pnl_groups_by_close_date(self, trade_factory):
        """Daily P&L uses the close date."""
        trades = [
            trade_factory("a", open_date=date(2024, 1, 1), close_date=date(2024, 1, 2), net_pnl=10),
            trade_factory("b", open_date=date(2024, 1, 2), net_pnl=5),
            trade_factory("c", open_date=date(2024, 1, 3), net_pnl=-4),
        ]
        series = daily_pnl(trades)
        assert series.dates() == ["2024-01-02", "2024-01-03"]
        assert series.values() == [15, -4]
        assert series.data[0].extra["trades"] == 2

    def test_cumulative_and_balance(self, trades):
        """Cumulative P&L and balance after each trade."""
        assert cumulative_pnl(trades).values() == [100, 50, 75, 75]
        assert net_account_balance(trades, starting_balance=500).values() == [600, 550, 575, 575]

    def test_drawdown_never_positive(self, trades):
        """Drawdown is measured below the running peak."""
        values = drawdown(trades).values()
        assert values == [0, -50, -25, -25]
        assert all(v <= 0 for v in values)

    def test_empty(self):
        """Empty input gives an empty series."""
        assert daily_pnl([]).data == []
        assert drawdown([]).data == []
        assert cumulative_pnl([]).values() == []

    @pytest.mark.parametrize("balance", [0, 2500.5])
    def test_balance_offsets_equity(self, trades, balance):
        """Starting balance shifts every equity point."""
        base = equity_curve(trades).values()
        shifted = equity_curve(trades, starting_balance=balance).values()
        assert [s - b for s, b in zip(shifted, base)] == [balance] * len(base)
