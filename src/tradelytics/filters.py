"""Trade filters applied before metric computation."""
from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Iterable, List, Optional

from .dates import parse_local_date
from .models import Side, TradeRecord, TradeStatus


def _bound(value) -> Optional[date]:
    if not value:
        return None
    parsed = parse_local_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date '{value}'")
    return parsed


def _tag_set(tags: Optional[Iterable[str]]) -> FrozenSet[str]:
    return frozenset(t.strip().lower() for t in tags or () if t and t.strip())


@dataclass(frozen=True)
class AnalyticsFilter:
    """Date range plus symbol, side, status and tag restrictions.

    Empty sets mean "no restriction". The date range is inclusive and is
    checked against the trade's open date. Tags match case-insensitively as
    substrings: a trade passes ``tags`` when any of its tags contains any
    listed tag (or all of them with ``match_all_tags``), and fails
    ``exclude_tags`` when any of its tags contains any listed one.
    """
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    symbols: FrozenSet[str] = field(default_factory=frozenset)
    sides: FrozenSet[Side] = field(default_factory=frozenset)
    statuses: FrozenSet[TradeStatus] = field(default_factory=frozenset)
    tags: FrozenSet[str] = field(default_factory=frozenset)
    exclude_tags: FrozenSet[str] = field(default_factory=frozenset)
    match_all_tags: bool = False

    @classmethod
    def create(
        cls,
        start_date=None,
        end_date=None,
        symbols: Optional[Iterable[str]] = None,
        sides: Optional[Iterable] = None,
        statuses: Optional[Iterable] = None,
        tags: Optional[Iterable[str]] = None,
        exclude_tags: Optional[Iterable[str]] = None,
        match_all_tags: bool = False,
    ) -> "AnalyticsFilter":
        """Build a filter from loose input such as CLI options.

        Raises:
            ValueError: a date bound, side or status cannot be parsed.
        """
        return cls(
            start_date=_bound(start_date),
            end_date=_bound(end_date),
            symbols=frozenset(s.strip().upper() for s in symbols or () if s and s.strip()),
            sides=frozenset(Side(str(s).upper()) for s in sides or ()),
            statuses=frozenset(TradeStatus(str(s).upper()) for s in statuses or ()),
            tags=_tag_set(tags),
            exclude_tags=_tag_set(exclude_tags),
            match_all_tags=match_all_tags,
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.start_date or self.end_date or self.symbols or self.sides or self.statuses
            or self.tags or self.exclude_tags
        )

    def matches(self, trade: TradeRecord) -> bool:
        if self.start_date and trade.open_date < self.start_date:
            return False
        if self.end_date and trade.open_date > self.end_date:
            return False
        if self.symbols and trade.symbol.upper() not in self.symbols:
            return False
        if self.sides and trade.side not in self.sides:
            return False
        if self.statuses and trade.status not in self.statuses:
            return False
        if self.tags or self.exclude_tags:
            return self._matches_tags(trade)
        return True

    def _matches_tags(self, trade: TradeRecord) -> bool:
        trade_tags = [t.lower() for t in trade.tags]

        def hit(wanted: str) -> bool:
            return any(wanted.lower() in t for t in trade_tags)

        if self.tags:
            check = all if self.match_all_tags else any
            if not check(hit(w) for w in self.tags):
                return False
        return not any(hit(w) for w in self.exclude_tags)

    def apply(self, trades: Iterable[TradeRecord]) -> List[TradeRecord]:
        if self.is_empty:
            return list(trades)
        return [t for t in trades if self.matches(t)]

    def fingerprint(self) -> str:
        """Stable string for cache keys. Independent of set ordering."""
        if self.is_empty:
            return ""
        parts = [
            f"from={self.start_date.isoformat() if self.start_date else ''}",
            f"to={self.end_date.isoformat() if self.end_date else ''}",
            f"symbols={','.join(sorted(self.symbols))}",
            f"sides={','.join(sorted(s.value for s in self.sides))}",
            f"statuses={','.join(sorted(s.value for s in self.statuses))}",
            f"tags={','.join(sorted(self.tags))}",
            f"exclude_tags={','.join(sorted(self.exclude_tags))}",
            f"match_all_tags={int(self.match_all_tags)}",
        ]
        return "|".join(parts)
