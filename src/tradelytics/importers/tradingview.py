"""TradingView paper trading history export.

Each closing row describes the trade in its ``Action`` text, e.g.::

    Close long position for symbol CME_MINI:NQU2025 at price 23508.00 for 1 units.
    Position AVG Price was 23500.500000, currency: USD, point value: 20.000000
"""
import re
from typing import Any, Dict, Optional, Sequence

from ..dates import parse_local_date, parse_local_time
from ..models import to_number
from .base import CsvImporter, FieldMap

_SIDE_RE = re.compile(r"Close\s+(long|short)\s+position", re.IGNORECASE)
_SYMBOL_RE = re.compile(r"symbol\s+([^\s]+)\s+at", re.IGNORECASE)
_PRICE_RE = re.compile(r"at price\s+([0-9.]+)", re.IGNORECASE)
_QTY_RE = re.compile(r"for\s+([0-9.]+)\s+units", re.IGNORECASE)
_AVG_RE = re.compile(r"AVG Price was\s+([0-9.]+)", re.IGNORECASE)
_CONTINUOUS_RE = re.compile(r"^([A-Z]+)\d*!$")
_DATED_RE = re.compile(r"^([A-Z]+)[FGHJKMNQUVXZ]\d{1,4}$")


def symbol_root(raw: str) -> str:
    """``CME_MINI:NQU2025`` or ``CME_MINI:NQ1!`` -> ``NQ``. Stocks pass through."""
    ticker = raw.rsplit(":", 1)[-1].strip().upper()
    for pattern in (_CONTINUOUS_RE, _DATED_RE):
        m = pattern.match(ticker)
        if m:
            return m.group(1)
    return re.sub(r"[\d!\s.]", "", ticker) or ticker


class TradingViewImporter(CsvImporter):
    broker = "TradingView"
    required_headers = ("Time", "Realized P&L (value)", "Action")

    def row_to_raw(self, row: Sequence[str], fields: FieldMap, index: int) -> Optional[Dict[str, Any]]:
        stamp = fields.get(row, "Time")
        pnl = fields.get(row, "Realized P&L (value)")
        action = fields.get(row, "Action")
        if not stamp or not pnl or not action:
            return None

        side = _SIDE_RE.search(action)
        symbol = _SYMBOL_RE.search(action)
        price = _PRICE_RE.search(action)
        avg = _AVG_RE.search(action)
        if not (side and symbol and price and avg):
            return None

        qty_match = _QTY_RE.search(action)
        quantity = max(1, round(float(qty_match.group(1)))) if qty_match else 1
        entry_price = to_number(avg.group(1)) or 0.0
        root = symbol_root(symbol.group(1))

        # Only the close is exported; the open is pinned to the same day
        day = parse_local_date(stamp)
        return {
            "id": f"tradingview_{root}_{stamp}_{index}",
            "symbol": root,
            "side": side.group(1).upper(),
            "open_date": day,
            "close_date": day,
            "exit_time": parse_local_time(stamp),
            "entry_price": entry_price,
            "exit_price": to_number(price.group(1)) or 0.0,
            "net_pnl": pnl,
            "quantity": quantity,
            "commissions": 0.0,
        }
