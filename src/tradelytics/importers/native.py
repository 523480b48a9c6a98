"""Generic one-row-per-trade CSV, including this package's own exports."""
import re
from typing import Any, Dict, Optional, Sequence

from .base import CsvImporter, FieldMap, ImportResult, read_csv

# Normalized header -> trade field
HEADER_ALIASES = {
    "id": "id",
    "tradeid": "id",
    "symbol": "symbol",
    "ticker": "symbol",
    "side": "side",
    "direction": "side",
    "opendate": "open_date",
    "entrydate": "open_date",
    "date": "open_date",
    "closedate": "close_date",
    "exitdate": "close_date",
    "entrytime": "entry_time",
    "exittime": "exit_time",
    "entryprice": "entry_price",
    "exitprice": "exit_price",
    "stoploss": "stop_loss",
    "stop": "stop_loss",
    "profittarget": "profit_target",
    "target": "profit_target",
    "netpnl": "net_pnl",
    "netpl": "net_pnl",
    "pnl": "net_pnl",
    "pl": "net_pnl",
    "netroi": "net_roi",
    "roi": "net_roi",
    "quantity": "quantity",
    "qty": "quantity",
    "contracts": "quantity",
    "contractstraded": "quantity",
    "shares": "quantity",
    "expiration": "expiration_date",
    "expirationdate": "expiration_date",
    "commissions": "commissions",
    "fees": "commissions",
    "grosspnl": "gross_pnl",
    "tags": "tags",
    "accountid": "account_id",
    "account": "account_id",
}

REQUIRED_FIELDS = ("symbol", "open_date", "net_pnl")


def normalize_header(header: str) -> str:
    return re.sub(r"[^a-z]", "", header.lower())


class NativeImporter(CsvImporter):
    """Maps loosely named columns onto trade fields. Needs a symbol, a date and a P&L."""

    broker = "native"

    def _columns(self, headers: Sequence[str]) -> Dict[str, str]:
        columns: Dict[str, str] = {}
        for header in headers:
            target = HEADER_ALIASES.get(normalize_header(header))
            if target and target not in columns.values():
                columns[header] = target
        return columns

    def missing_fields(self, headers: Sequence[str]):
        targets = set(self._columns(headers).values())
        return [name for name in REQUIRED_FIELDS if name not in targets]

    def matches(self, headers: Sequence[str]) -> bool:
        return not self.missing_fields(headers)

    def parse(self, content: str) -> ImportResult:
        headers, rows = read_csv(content)
        missing = self.missing_fields(headers)
        if headers and rows and missing:
            return ImportResult.failure(
                self.broker,
                f"Missing required columns: {', '.join(missing)}",
                rows=len(rows),
            )
        return super().parse(content)

    def row_to_raw(self, row: Sequence[str], fields: FieldMap, index: int) -> Optional[Dict[str, Any]]:
        raw: Dict[str, Any] = {}
        for header, target in self._columns(fields.headers).items():
            value = fields.get(row, header)
            if value != "":
                raw[target] = value
        if "symbol" not in raw or "net_pnl" not in raw:
            return None
        return raw
