"""SQLite mirror of imported trades."""
import json
import sqlite3
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from ..models import TradeRecord

logger = structlog.get_logger()


class TradeMirror:
    """Best-effort local copy of each account's trades.

    Never authoritative: the in-memory TradeStore is the source of truth for
    a session. Each save overwrites the account's rows (last write wins).
    """

    DEFAULT_DB_PATH = Path.home() / ".tradelytics" / "trades.db"

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS trades (
                    account_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    id TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    saved_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (account_id, position)
                );

                CREATE INDEX IF NOT EXISTS idx_trades_account ON trades(account_id);
            """)

    def save(self, account_id: str, trades: Sequence[TradeRecord]) -> None:
        """Overwrite the stored trades for ``account_id``, preserving order."""
        rows = [
            (account_id, position, trade.id, json.dumps(trade.to_dict()))
            for position, trade in enumerate(trades)
        ]
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM trades WHERE account_id = ?", (account_id,))
            conn.executemany(
                "INSERT INTO trades (account_id, position, id, payload) VALUES (?, ?, ?, ?)",
                rows,
            )

    def load(self, account_id: str) -> List[TradeRecord]:
        """Load trades for ``account_id`` in saved order. Corrupt rows are skipped."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT id, payload FROM trades WHERE account_id = ? ORDER BY position",
                (account_id,),
            ).fetchall()

        trades = []
        for trade_id, payload in rows:
            try:
                trades.append(TradeRecord.from_dict(json.loads(payload)))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("Skipping corrupt mirrored trade", trade_id=trade_id, error=str(e))
        return trades

    def clear(self, account_id: str) -> int:
        """Delete an account's trades. Returns count of deleted rows."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM trades WHERE account_id = ?", (account_id,))
            return cursor.rowcount

    def accounts(self) -> List[str]:
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute("SELECT DISTINCT account_id FROM trades ORDER BY account_id").fetchall()
            return [row[0] for row in rows]
