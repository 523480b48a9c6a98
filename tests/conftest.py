"""Shared fixtures for tradelytics tests."""
from datetime import date

import pytest

from tradelytics.models import Side, TradeRecord


def make_trade(
    trade_id="t1",
    symbol="NQ",
    open_date=date(2024, 1, 1),
    net_pnl=100.0,
    side=Side.LONG,
    **kwargs,
):
    """Build a TradeRecord with sensible defaults."""
    kwargs.setdefault("close_date", open_date)
    return TradeRecord(
        id=trade_id,
        symbol=symbol,
        side=side,
        open_date=open_date,
        net_pnl=net_pnl,
        **kwargs,
    )


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def trades():
    """A small week of trades across two symbols."""
    return [
        make_trade("t1", "NQ", date(2024, 1, 1), 100.0, entry_price=100.0, stop_loss=95.0, profit_target=110.0),
        make_trade("t2", "ES", date(2024, 1, 2), -50.0, entry_price=200.0, stop_loss=210.0, side=Side.SHORT),
        make_trade("t3", "NQ", date(2024, 1, 2), 25.0, entry_price=100.0),
        make_trade("t4", "ES", date(2024, 1, 5), 0.0, entry_price=200.0),
    ]


@pytest.fixture
def trade_factory():
    return make_trade
