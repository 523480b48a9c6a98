"""Tradovate position history export."""
import re
from typing import Any, Dict, Optional, Sequence

from ..dates import parse_local_date, parse_local_time
from ..models import to_number
from .base import CsvImporter, FieldMap

_CONTRACT_MONTH_RE = re.compile(r"[UMZ]\d+$")


def contract_root(contract: str) -> str:
    """``NQU5`` -> ``NQ``. Leaves symbols without a month code untouched."""
    return _CONTRACT_MONTH_RE.sub("", contract).strip() or contract


def _timestamp(value: str):
    if not value:
        return None
    d = parse_local_date(value)
    t = parse_local_time(value)
    if d is None or t is None:
        return None
    return d, t


class TradovateImporter(CsvImporter):
    broker = "Tradovate"
    required_headers = ("Position ID", "Trade Date", "P/L", "Contract", "Paired Qty")

    def row_to_raw(self, row: Sequence[str], fields: FieldMap, index: int) -> Optional[Dict[str, Any]]:
        position_id = fields.get(row, "Position ID")
        pnl = fields.get(row, "P/L")
        contract = fields.get(row, "Contract")
        if not position_id or not pnl or not contract:
            return None

        try:
            quantity = int(float(fields.get(row, "Paired Qty") or 1)) or 1
        except ValueError:
            quantity = 1

        buy_price = to_number(fields.get(row, "Buy Price")) or 0.0
        sell_price = to_number(fields.get(row, "Sell Price")) or 0.0
        bought = fields.get(row, "Bought Timestamp")
        sold = fields.get(row, "Sold Timestamp")

        # Sold before bought means the position was opened short
        side = "LONG"
        bought_at, sold_at = _timestamp(bought), _timestamp(sold)
        if bought_at and sold_at and buy_price and sell_price and sold_at < bought_at:
            side = "SHORT"

        if side == "LONG":
            entry_price, exit_price = buy_price, sell_price
            entry_stamp, exit_stamp = bought, sold
        else:
            entry_price, exit_price = sell_price, buy_price
            entry_stamp, exit_stamp = sold, bought

        trade_date = fields.get(row, "Trade Date")
        open_date = parse_local_date(entry_stamp) or parse_local_date(trade_date)
        close_date = parse_local_date(exit_stamp) or parse_local_date(trade_date)

        net_pnl = to_number(pnl)
        net_roi = None
        if net_pnl is not None and entry_price > 0:
            net_roi = net_pnl / (entry_price * quantity) * 100

        unique_id = "_".join([
            "tradovate",
            position_id,
            fields.get(row, "Pair ID"),
            fields.get(row, "Buy Fill ID"),
            fields.get(row, "Sell Fill ID"),
            str(index),
        ])

        return {
            "id": unique_id,
            "symbol": contract_root(contract),
            "side": side,
            "open_date": open_date,
            "close_date": close_date,
            "entry_time": parse_local_time(entry_stamp) if entry_stamp else None,
            "exit_time": parse_local_time(exit_stamp) if exit_stamp else None,
            "entry_price": entry_price,
            "exit_price": exit_price,
            "net_pnl": pnl,
            "net_roi": net_roi,
            "quantity": quantity,
            "commissions": 0.0,
            "gross_pnl": net_pnl,
        }
