"""In-memory trade record store with change notification."""
from typing import Callable, Iterable, List, Optional, Tuple

import structlog

from ..models import TradeRecord
from .mirror import TradeMirror

logger = structlog.get_logger()

Listener = Callable[[], None]


class TradeStore:
    """Canonical set of imported trades for one account.

    The store performs no validation; records are expected to come out of
    ``parse_trade_record``. Subscribers are called synchronously, in the order
    they registered, after every ``replace_trades``.
    """

    def __init__(self, account_id: str = "default", mirror: Optional[TradeMirror] = None):
        self.account_id = account_id
        self.mirror = mirror
        self.version = 0
        self._trades: List[TradeRecord] = []
        self._listeners: List[Tuple[int, Listener]] = []
        self._next_token = 0

    def __len__(self) -> int:
        return len(self._trades)

    def get_all_trades(self) -> List[TradeRecord]:
        """Snapshot of current trades. Mutating the returned list has no effect on the store."""
        return list(self._trades)

    def replace_trades(self, trades: Iterable[TradeRecord], persist: bool = True) -> None:
        """Swap the whole collection, mirror it if configured, then notify."""
        self._trades = list(trades)
        self.version += 1
        logger.debug(
            "Trades replaced",
            account_id=self.account_id,
            count=len(self._trades),
            version=self.version,
        )

        if persist and self.mirror is not None:
            try:
                self.mirror.save(self.account_id, self._trades)
            except Exception as e:
                logger.warning("Failed to mirror trades", account_id=self.account_id, error=str(e))

        self._notify()

    def clear_data(self) -> None:
        self.replace_trades([])

    def load_from_mirror(self) -> int:
        """Replace the in-memory set with the mirrored one. Returns the count loaded."""
        if self.mirror is None:
            return 0
        trades = self.mirror.load(self.account_id)
        self.replace_trades(trades, persist=False)
        return len(trades)

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """Register ``callback``; the returned function removes that registration only."""
        token = self._next_token
        self._next_token += 1
        self._listeners.append((token, callback))

        def unsubscribe() -> None:
            self._listeners = [(t, cb) for t, cb in self._listeners if t != token]

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def _notify(self) -> None:
        # Iterate over a copy so callbacks may unsubscribe themselves
        for _, callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                logger.error("Trade store subscriber failed", account_id=self.account_id, error=str(e))
