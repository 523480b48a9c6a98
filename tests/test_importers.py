"""Tests for broker CSV importers."""
from datetime import date, time

import pytest

from tradelytics.importers import detect_broker, parse_csv, parse_file
from tradelytics.importers.tradingview import symbol_root
from tradelytics.importers.tradovate import contract_root
from tradelytics.models import Side

TRADOVATE_CSV = """\
symbol,_priceFormat,_priceFormatType,_tickSize,Position ID,Pair ID,Buy Fill ID,Sell Fill ID,Paired Qty,Buy Price,Sell Price,P/L,Bought Timestamp,Sold Timestamp,Duration,Trade Date,Contract
NQ,-2,0,0.25,101,201,301,401,1,20000.00,20010.00,"$200.00",09/05/2025 09:30:00,09/05/2025 09:45:00,15min,09/05/2025,NQU5
NQ,-2,0,0.25,102,202,302,402,2,20020.00,20030.00,"$(400.00)",09/05/2025 10:15:00,09/05/2025 10:00:00,15min,09/05/2025,NQU5
ES,-2,0,0.25,103,203,303,403,1,5000.00,5001.00,,09/05/2025 11:00:00,09/05/2025 11:05:00,5min,09/05/2025,ESZ5
"""

TRADINGVIEW_CSV = """\
Time,Balance Before,Balance After,Realized P&L (value),Realized P&L (currency),Action
2025-08-07 19:48:37,10000,10150,150.00,USD,"Close long position for symbol CME_MINI:NQU2025 at price 23508.00 for 1 units. Position AVG Price was 23500.500000, currency: USD, point value: 20.000000"
2025-08-08 10:00:00,10150,10050,-100.00,USD,"Close short position for symbol CME_MINI:ES1! at price 6400.00 for 2 units. Position AVG Price was 6390.000000, currency: USD, point value: 50.000000"
2025-08-08 11:00:00,10050,10050,0,USD,Commission for order 123
"""

NATIVE_CSV = """\
Symbol,Side,Open Date,Close Date,Entry Price,Exit Price,Stop Loss,Net P&L,Qty,Tags
AAPL,Long,2024-01-02,2024-01-03,185.00,190.00,180.00,500.00,100,"swing, earnings"
MSFT,Short,2024-01-04,,370.00,365.00,,250.00,50,
TSLA,Long,not-a-date,,240.00,250.00,,100.00,10,
"""


class TestDetection:
    def test_detects_each_format(self):
        """Each sample is detected by its headers."""
        assert detect_broker(TRADOVATE_CSV) == "tradovate"
        assert detect_broker(TRADINGVIEW_CSV) == "tradingview"
        assert detect_broker(NATIVE_CSV) == "native"

    def test_unknown_format(self):
        """Unknown headers fail with a clear error."""
        result = parse_csv("foo,bar\n1,2\n")
        assert not result.success
        assert result.errors == ["Unrecognized CSV format"]

    def test_unsupported_broker(self):
        """An unknown broker name fails the import."""
        assert not parse_csv(NATIVE_CSV, broker="ibkr").success


class TestTradovate:
    def test_parses_trades(self):
        """Tradovate rows become trades with ROI and ids."""
        result = parse_csv(TRADOVATE_CSV)
        assert result.broker == "Tradovate"
        assert result.original_rows == 3
        assert result.processed_rows == 2
        assert result.skipped_rows == 1

        long_trade, short_trade = result.trades
        assert long_trade.symbol == "NQ"
        assert long_trade.side is Side.LONG
        assert long_trade.entry_price == 20000.0
        assert long_trade.exit_price == 20010.0
        assert long_trade.net_pnl == 200.0
        assert long_trade.open_date == date(2025, 9, 5)
        assert long_trade.entry_time == time(9, 30)
        assert long_trade.net_roi == pytest.approx(200 / 20000 * 100)
        assert long_trade.id == "tradovate_101_201_301_401_1"

    def test_sold_first_is_short(self):
        """A sale before the buy is a short trade."""
        short_trade = parse_csv(TRADOVATE_CSV).trades[1]
        assert short_trade.side is Side.SHORT
        assert short_trade.entry_price == 20030.0
        assert short_trade.exit_price == 20020.0
        assert short_trade.net_pnl == -400.0
        assert short_trade.quantity == 2
        assert short_trade.entry_time == time(10, 0)

    def test_row_without_pnl_is_skipped_with_warning(self):
        """Rows without P&L are skipped with a row warning."""
        result = parse_csv(TRADOVATE_CSV)
        assert any(w.startswith("Row 4") for w in result.warnings)

    def test_missing_headers(self):
        """Missing Tradovate headers are listed in the error."""
        result = parse_csv("Position ID,Contract\n1,NQU5\n", broker="tradovate")
        assert not result.success
        assert "Trade Date" in result.errors[0]
        assert result.skipped_rows == 1

    @pytest.mark.parametrize("contract,root", [("NQU5", "NQ"), ("MESZ25", "MES"), ("ES", "ES")])
    def test_contract_root(self, contract, root):
        """Month and year codes are stripped from contracts."""
        assert contract_root(contract) == root


class TestTradingView:
    def test_parses_closing_rows(self):
        """Only closing rows become trades."""
        result = parse_csv(TRADINGVIEW_CSV)
        assert result.broker == "TradingView"
        assert result.processed_rows == 2
        assert result.skipped_rows == 1

        first, second = result.trades
        assert first.symbol == "NQ"
        assert first.side is Side.LONG
        assert first.entry_price == 23500.5
        assert first.exit_price == 23508.0
        assert first.net_pnl == 150.0
        assert first.open_date == first.close_date == date(2025, 8, 7)
        assert first.id == "tradingview_NQ_2025-08-07 19:48:37_1"

        assert second.symbol == "ES"
        assert second.side is Side.SHORT
        assert second.quantity == 2

    @pytest.mark.parametrize("raw,root", [
        ("CME_MINI:NQU2025", "NQ"),
        ("CME_MINI:NQ1!", "NQ"),
        ("NASDAQ:AAPL", "AAPL"),
        ("MSFT", "MSFT"),
    ])
    def test_symbol_root(self, raw, root):
        """Exchange prefix and contract suffix are removed."""
        assert symbol_root(raw) == root


class TestNative:
    def test_parses_and_filters_bad_rows(self):
        """Bad rows are skipped, good rows imported."""
        result = parse_csv(NATIVE_CSV)
        assert result.broker == "native"
        assert [t.symbol for t in result.trades] == ["AAPL", "MSFT"]
        assert result.skipped_rows == 1
        assert "open_date" in result.warnings[0]

        aapl, msft = result.trades
        assert aapl.stop_loss == 180.0
        assert aapl.tags == ("swing", "earnings")
        assert aapl.close_date == date(2024, 1, 3)
        assert msft.side is Side.SHORT
        assert msft.close_date == msft.open_date

    def test_missing_required_columns(self):
        """Missing required columns fail the import."""
        result = parse_csv("Symbol,Side\nAAPL,Long\n", broker="native")
        assert not result.success
        assert "open_date" in result.errors[0]

    def test_empty_file(self):
        """An empty file fails without rows."""
        result = parse_csv("", broker="native")
        assert not result.success
        assert result.original_rows == 0


class TestParseFile:
    def test_reads_csv_file(self, tmp_path):
        """parse_file reads a CSV from disk."""
        path = tmp_path / "trades.csv"
        path.write_text(NATIVE_CSV)
        assert parse_file(path).processed_rows == 2

    def test_rejects_other_extensions(self, tmp_path):
        """Only .csv files are accepted."""
        path = tmp_path / "trades.txt"
        path.write_text(NATIVE_CSV)
        assert not parse_file(path).success

    def test_undecodable_file_is_reported(self, tmp_path):
        """Bytes that are not UTF-8 fail the import instead of raising."""
        path = tmp_path / "bad.csv"
        path.write_bytes(b"symbol,date,pnl\nNQ,2024-01-01,\xff\xfe100\n")
        result = parse_file(path)
        assert not result.success
        assert "UTF-8" in result.errors[0]

    def test_missing_file_is_reported(self, tmp_path):
        """A path that does not exist fails the import instead of raising."""
        result = parse_file(tmp_path / "gone.csv")
        assert not result.success
        assert "gone.csv" in result.errors[0]
