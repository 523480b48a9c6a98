"""Trade and metric data models."""
import math
import re
import uuid
from dataclasses import dataclass, field, asdict
from datetime import date, time
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .dates import parse_local_date, parse_local_time

logger = structlog.get_logger()

BREAKEVEN_EPSILON = 0.01

_NUM_RE = re.compile(r"[-+]?\d*\.?\d+(?:[eE][-+]?\d+)?")


class Side(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class TradeStatus(str, Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    BREAKEVEN = "BREAKEVEN"


def to_number(value: Any) -> Optional[float]:
    """Convert broker strings like ``$1,234.56``, ``(45.00)`` or ``24.7%`` to float.

    Returns None when nothing numeric can be found or the result is not finite.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None

    s = str(value).replace(",", "").replace('"', "").replace("$", "").strip()
    if not s:
        return None
    negative = s.startswith("(") and s.endswith(")")
    m = _NUM_RE.search(s)
    if not m:
        return None
    try:
        num = float(m.group(0))
    except ValueError:
        return None
    if not math.isfinite(num):
        return None
    return -abs(num) if negative else num


@dataclass(frozen=True)
class TradeRecord:
    """A single normalized trade."""
    id: str
    symbol: str
    side: Side
    open_date: date
    net_pnl: float
    close_date: Optional[date] = None
    entry_time: Optional[time] = None
    exit_time: Optional[time] = None
    entry_price: float = 0.0
    exit_price: float = 0.0
    stop_loss: Optional[float] = None
    profit_target: Optional[float] = None
    net_roi: float = 0.0  # Percent
    quantity: float = 1.0
    expiration_date: Optional[date] = None
    commissions: float = 0.0
    gross_pnl: Optional[float] = None
    tags: Tuple[str, ...] = ()
    account_id: Optional[str] = None

    @property
    def status(self) -> TradeStatus:
        if abs(self.net_pnl) < BREAKEVEN_EPSILON:
            return TradeStatus.BREAKEVEN
        return TradeStatus.WIN if self.net_pnl > 0 else TradeStatus.LOSS

    @property
    def realized_date(self) -> Optional[date]:
        """Date the P&L was realized: close date, falling back to open date."""
        return self.close_date or self.open_date

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with ISO dates, suitable for JSON."""
        data = asdict(self)
        data["side"] = self.side.value
        data["tags"] = list(self.tags)
        for key in ("open_date", "close_date", "expiration_date", "entry_time", "exit_time"):
            value = data[key]
            data[key] = value.isoformat() if value is not None else None
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TradeRecord":
        """Inverse of ``to_dict``. Assumes data previously produced by ``to_dict``."""
        return cls(
            id=data["id"],
            symbol=data["symbol"],
            side=Side(data["side"]),
            open_date=date.fromisoformat(data["open_date"]),
            net_pnl=float(data["net_pnl"]),
            close_date=date.fromisoformat(data["close_date"]) if data.get("close_date") else None,
            entry_time=time.fromisoformat(data["entry_time"]) if data.get("entry_time") else None,
            exit_time=time.fromisoformat(data["exit_time"]) if data.get("exit_time") else None,
            entry_price=float(data.get("entry_price") or 0.0),
            exit_price=float(data.get("exit_price") or 0.0),
            stop_loss=data.get("stop_loss"),
            profit_target=data.get("profit_target"),
            net_roi=float(data.get("net_roi") or 0.0),
            quantity=float(data.get("quantity") or 1.0),
            expiration_date=(
                date.fromisoformat(data["expiration_date"]) if data.get("expiration_date") else None
            ),
            commissions=float(data.get("commissions") or 0.0),
            gross_pnl=data.get("gross_pnl"),
            tags=tuple(data.get("tags") or ()),
            account_id=data.get("account_id"),
        )


@dataclass
class MetricPoint:
    """One point of a metric series. ``extra`` holds metric specific fields."""
    date: str
    value: Optional[float]
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "value": self.value, **self.extra}


@dataclass
class MetricSeries:
    """Output of a metric computation."""
    title: str
    data: List[MetricPoint] = field(default_factory=list)
    color: Optional[str] = None
    timeframe: Optional[str] = None

    def __len__(self) -> int:
        return len(self.data)

    def values(self) -> List[Optional[float]]:
        return [p.value for p in self.data]

    def dates(self) -> List[str]:
        return [p.date for p in self.data]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "title": self.title,
            "data": [p.to_dict() for p in self.data],
        }
        if self.color is not None:
            out["color"] = self.color
        if self.timeframe is not None:
            out["timeframe"] = self.timeframe
        return out


@dataclass
class ParseError:
    """Why a raw row could not become a TradeRecord."""
    message: str
    field: Optional[str] = None
    row: Optional[int] = None

    def __str__(self) -> str:
        where = f"Row {self.row}: " if self.row is not None else ""
        what = f"{self.field}: " if self.field else ""
        return f"{where}{what}{self.message}"


@dataclass
class ParseResult:
    """Either a record or an error, never both."""
    record: Optional[TradeRecord] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


class RawTrade(BaseModel):
    """Validation schema for a raw trade row handed over by an importer.

    Accepts both snake_case and the camelCase keys the journal's exports use.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    symbol: str
    side: Side = Side.LONG
    open_date: date = Field(alias="openDate")
    net_pnl: float = Field(alias="netPnl")
    close_date: Optional[date] = Field(default=None, alias="closeDate")
    entry_time: Optional[time] = Field(default=None, alias="entryTime")
    exit_time: Optional[time] = Field(default=None, alias="exitTime")
    entry_price: float = Field(default=0.0, alias="entryPrice")
    exit_price: float = Field(default=0.0, alias="exitPrice")
    stop_loss: Optional[float] = Field(default=None, alias="stopLoss")
    profit_target: Optional[float] = Field(default=None, alias="profitTarget")
    net_roi: Optional[float] = Field(default=None, alias="netRoi")
    quantity: float = Field(default=1.0, alias="contractsTraded")
    expiration_date: Optional[date] = Field(default=None, alias="expirationDate")
    commissions: float = 0.0
    gross_pnl: Optional[float] = Field(default=None, alias="grossPnl")
    tags: List[str] = Field(default_factory=list)
    account_id: Optional[str] = Field(default=None, alias="accountId")

    @field_validator("symbol", mode="before")
    @classmethod
    def _clean_symbol(cls, v: Any) -> Any:
        if v is None:
            return v
        s = str(v).strip().upper()
        if not s:
            raise ValueError("symbol is empty")
        return s

    @field_validator("side", mode="before")
    @classmethod
    def _parse_side(cls, v: Any) -> Any:
        if v is None or v == "":
            return Side.LONG
        if isinstance(v, Side):
            return v
        s = str(v).strip().lower()
        if s in ("long", "buy", "l", "b"):
            return Side.LONG
        if s in ("short", "sell", "s"):
            return Side.SHORT
        raise ValueError(f"unknown side {v!r}")

    @field_validator("open_date", "close_date", "expiration_date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any, info) -> Any:
        if v is None or v == "":
            if info.field_name == "open_date":
                raise ValueError("date is required")
            return None
        parsed = parse_local_date(v)
        if parsed is None:
            raise ValueError(f"unparseable date {v!r}")
        return parsed

    @field_validator("entry_time", "exit_time", mode="before")
    @classmethod
    def _parse_time(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return parse_local_time(v)

    @field_validator("net_pnl", mode="before")
    @classmethod
    def _parse_pnl(cls, v: Any) -> Any:
        num = to_number(v)
        if num is None:
            raise ValueError(f"invalid P&L {v!r}")
        return num

    @field_validator(
        "entry_price", "exit_price", "quantity", "commissions", mode="before"
    )
    @classmethod
    def _parse_number(cls, v: Any, info) -> Any:
        num = to_number(v)
        if num is None:
            return 1.0 if info.field_name == "quantity" else 0.0
        return num

    @field_validator("stop_loss", "profit_target", "net_roi", "gross_pnl", mode="before")
    @classmethod
    def _parse_optional_number(cls, v: Any) -> Any:
        return to_number(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, v: Any) -> Any:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v

    @model_validator(mode="after")
    def _check_dates(self) -> "RawTrade":
        if self.close_date is not None and self.close_date < self.open_date:
            raise ValueError("close date is before open date")
        return self


_FIELD_BY_ALIAS = {f.alias: name for name, f in RawTrade.model_fields.items() if f.alias}


def _pnl_disagrees(raw: RawTrade) -> bool:
    if not raw.entry_price or not raw.exit_price or abs(raw.net_pnl) < BREAKEVEN_EPSILON:
        return False
    delta = raw.exit_price - raw.entry_price
    if raw.side is Side.SHORT:
        delta = -delta
    return delta != 0 and (delta > 0) != (raw.net_pnl > 0)


def parse_trade_record(raw: Mapping[str, Any], row: Optional[int] = None) -> ParseResult:
    """Validate a raw mapping and build a TradeRecord.

    Never raises for bad data; the error is returned in the result instead.
    """
    try:
        parsed = RawTrade.model_validate(dict(raw))
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ()
        field_name = _FIELD_BY_ALIAS.get(str(loc[0]), str(loc[0])) if loc else None
        return ParseResult(error=ParseError(message=first.get("msg", str(e)), field=field_name, row=row))

    if _pnl_disagrees(parsed):
        # Commissions or partial fills can legitimately flip the sign
        logger.warning(
            "P&L sign disagrees with side and price delta",
            symbol=parsed.symbol,
            side=parsed.side.value,
            net_pnl=parsed.net_pnl,
        )

    net_roi = parsed.net_roi
    if net_roi is None:
        cost = parsed.entry_price * parsed.quantity
        net_roi = parsed.net_pnl / cost * 100 if cost > 0 else 0.0

    record = TradeRecord(
        id=parsed.id or f"trade_{uuid.uuid4().hex[:12]}",
        symbol=parsed.symbol,
        side=parsed.side,
        open_date=parsed.open_date,
        net_pnl=parsed.net_pnl,
        close_date=parsed.close_date or parsed.open_date,
        entry_time=parsed.entry_time,
        exit_time=parsed.exit_time,
        entry_price=parsed.entry_price,
        exit_price=parsed.exit_price,
        stop_loss=parsed.stop_loss,
        profit_target=parsed.profit_target,
        net_roi=net_roi,
        quantity=parsed.quantity,
        expiration_date=parsed.expiration_date,
        commissions=parsed.commissions,
        gross_pnl=parsed.gross_pnl if parsed.gross_pnl is not None else parsed.net_pnl,
        tags=tuple(parsed.tags),
        account_id=parsed.account_id,
    )
    return ParseResult(record=record)
