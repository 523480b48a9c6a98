"""Shared CSV import plumbing."""
import csv
import io
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from ..models import TradeRecord, parse_trade_record

logger = structlog.get_logger()

MAX_FILE_SIZE_BYTES = 15 * 1024 * 1024


@dataclass
class ImportResult:
    success: bool
    trades: List[TradeRecord] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    broker: str = "unknown"
    original_rows: int = 0
    processed_rows: int = 0
    skipped_rows: int = 0
    parse_time_ms: int = 0

    @classmethod
    def failure(cls, broker: str, message: str, rows: int = 0) -> "ImportResult":
        return cls(success=False, errors=[message], broker=broker, original_rows=rows, skipped_rows=rows)


def read_csv(content: str) -> Tuple[List[str], List[List[str]]]:
    """Split CSV text into stripped headers and data rows."""
    reader = csv.reader(io.StringIO(content.lstrip("\ufeff").strip()))
    rows = [[cell.strip() for cell in row] for row in reader]
    if not rows:
        return [], []
    return rows[0], rows[1:]


class FieldMap:
    """Case-insensitive header lookup for one CSV."""

    def __init__(self, headers: Sequence[str]):
        self.headers = list(headers)
        self._index: Dict[str, int] = {}
        for i, header in enumerate(headers):
            self._index.setdefault(header.strip(), i)
            self._index.setdefault(header.strip().lower(), i)

    def has(self, name: str) -> bool:
        return name in self._index or name.lower() in self._index

    def missing(self, required: Sequence[str]) -> List[str]:
        return [name for name in required if not self.has(name)]

    def get(self, row: Sequence[str], name: str) -> str:
        i = self._index.get(name, self._index.get(name.lower()))
        if i is None or i >= len(row):
            return ""
        return (row[i] or "").strip()


class CsvImporter:
    """Base importer: header check, row loop and validation through ``parse_trade_record``.

    Subclasses define ``broker``, ``required_headers`` and ``row_to_raw``.
    """

    broker = "unknown"
    required_headers: Tuple[str, ...] = ()

    def matches(self, headers: Sequence[str]) -> bool:
        return not FieldMap(headers).missing(self.required_headers)

    def row_to_raw(self, row: Sequence[str], fields: FieldMap, index: int) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def parse(self, content: str) -> ImportResult:
        started = time.perf_counter()
        headers, rows = read_csv(content)
        if not headers or not rows:
            return ImportResult.failure(self.broker, "CSV must contain at least header and one data row")

        fields = FieldMap(headers)
        missing = fields.missing(self.required_headers)
        if missing:
            return ImportResult.failure(
                self.broker,
                f"Missing required {self.broker} headers: {', '.join(missing)}",
                rows=len(rows),
            )

        result = ImportResult(success=False, broker=self.broker, original_rows=len(rows))
        for index, row in enumerate(rows, start=1):
            line = index + 1
            if not any(cell for cell in row):
                result.skipped_rows += 1
                continue

            try:
                raw = self.row_to_raw(row, fields, index)
            except (ValueError, IndexError) as e:
                result.skipped_rows += 1
                result.errors.append(f"Row {line}: {e}")
                continue

            if raw is None:
                result.skipped_rows += 1
                result.warnings.append(f"Row {line}: Could not create valid trade")
                continue

            parsed = parse_trade_record(raw, row=line)
            if not parsed.ok:
                result.skipped_rows += 1
                result.warnings.append(str(parsed.error))
                continue
            result.trades.append(parsed.record)

        result.processed_rows = len(result.trades)
        result.success = bool(result.trades)
        result.parse_time_ms = round((time.perf_counter() - started) * 1000)
        logger.info(
            "CSV parsed",
            broker=self.broker,
            trades=result.processed_rows,
            skipped=result.skipped_rows,
            errors=len(result.errors),
        )
        return result
