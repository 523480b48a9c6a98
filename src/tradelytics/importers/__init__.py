"""Broker CSV importers."""
from pathlib import Path
from typing import Dict, Optional, Union

import structlog

from .base import MAX_FILE_SIZE_BYTES, CsvImporter, ImportResult, read_csv
from .native import NativeImporter
from .tradingview import TradingViewImporter
from .tradovate import TradovateImporter

logger = structlog.get_logger()

IMPORTERS: Dict[str, CsvImporter] = {
    "tradovate": TradovateImporter(),
    "tradingview": TradingViewImporter(),
    "native": NativeImporter(),
}


def detect_broker(content: str) -> Optional[str]:
    """Name of the first importer whose required headers are all present."""
    headers, _ = read_csv(content)
    for name, importer in IMPORTERS.items():
        if importer.matches(headers):
            return name
    return None


def parse_csv(content: str, broker: Optional[str] = None) -> ImportResult:
    """Parse CSV text into validated trades. Never raises for bad content."""
    if broker is None:
        broker = detect_broker(content)
        if broker is None:
            return ImportResult.failure("unknown", "Unrecognized CSV format")
        logger.debug("Detected CSV format", broker=broker)

    importer = IMPORTERS.get(broker.lower())
    if importer is None:
        return ImportResult.failure(broker, f"Unsupported broker '{broker}'")
    return importer.parse(content)


def parse_file(path: Union[str, Path], broker: Optional[str] = None) -> ImportResult:
    path = Path(path)
    if path.suffix.lower() != ".csv":
        return ImportResult.failure(broker or "unknown", f"Only CSV files are supported: {path.name}")
    try:
        if path.stat().st_size > MAX_FILE_SIZE_BYTES:
            return ImportResult.failure(
                broker or "unknown", f"File exceeds {MAX_FILE_SIZE_BYTES // (1024 * 1024)}MB limit"
            )
        content = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        return ImportResult.failure(broker or "unknown", f"File is not valid UTF-8 text: {path.name}")
    except OSError as e:
        return ImportResult.failure(broker or "unknown", f"Could not read {path.name}: {e}")
    return parse_csv(content, broker)


__all__ = [
    "ImportResult",
    "CsvImporter",
    "TradovateImporter",
    "TradingViewImporter",
    "NativeImporter",
    "IMPORTERS",
    "detect_broker",
    "parse_csv",
    "parse_file",
]
