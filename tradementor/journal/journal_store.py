"""
Journal Storage Engine — SQLite-backed emotion and trade storage
================================================================

Tables:
  emotion_checks — One row per emotion check-in
  trades         — One row per logged trade

Each row keeps the indexed columns needed for range queries plus the full
record as JSON in 'data'. Timestamps are stored as UTC ISO-8601 strings so
lexical order equals time order.

Indexes:
  By (user_id, timestamp) and (user_id, entry_time)
"""

from __future__ import annotations
import json
import os
import sqlite3
import threading
import logging
from datetime import datetime
from typing import Optional, List, Dict, Any

from tradementor.journal.journal_models import EmotionRecord, TradeRecord, to_utc
from tradementor.utils.exceptions import DataError

logger = logging.getLogger("journal_store")


class JournalStore:
    """
    SQLite journal store for emotion check-ins and trades.
    Thread-safe (one connection per thread), append-optimized.
    """

    def __init__(self, db_path: str = "data/tradementor.db"):
        self._db_path = db_path
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._local = threading.local()
        self._init_db()
        logger.info("JournalStore initialized: %s", db_path)

    def _get_conn(self) -> sqlite3.Connection:
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(self._db_path, timeout=10)
            self._local.conn.row_factory = sqlite3.Row
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
        return self._local.conn

    def _init_db(self):
        conn = self._get_conn()
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS emotion_checks (
                id          TEXT PRIMARY KEY,
                user_id     TEXT NOT NULL,
                level       INTEGER NOT NULL,
                context     TEXT DEFAULT 'pre-trade',
                timestamp   TEXT NOT NULL,
                symbol      TEXT DEFAULT '',
                data        TEXT DEFAULT '{}'
            );

            CREATE TABLE IF NOT EXISTS trades (
                id          TEXT PRIMARY KEY,
                user_id     TEXT NOT NULL,
                symbol      TEXT DEFAULT '',
                outcome     TEXT DEFAULT '',
                pnl         REAL,
                entry_time  TEXT NOT NULL,
                emotion_check_id TEXT DEFAULT '',
                data        TEXT DEFAULT '{}'
            );

            CREATE INDEX IF NOT EXISTS idx_ec_user_ts ON emotion_checks(user_id, timestamp);
            CREATE INDEX IF NOT EXISTS idx_ec_context ON emotion_checks(context);
            CREATE INDEX IF NOT EXISTS idx_tr_user_entry ON trades(user_id, entry_time);
            CREATE INDEX IF NOT EXISTS idx_tr_outcome ON trades(outcome);
        """)
        conn.commit()

    # ─── EMOTION CHECKS ─────────────────────────────────────────

    def record_emotion(self, emotion: EmotionRecord) -> str:
        """Insert or replace an emotion check-in."""
        conn = self._get_conn()
        d = emotion.to_dict()
        try:
            conn.execute("""
                INSERT OR REPLACE INTO emotion_checks
                (id, user_id, level, context, timestamp, symbol, data)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                d["id"], d["user_id"], d["level"], d["context"], d["timestamp"],
                d["symbol"] or "", json.dumps(d, default=str),
            ))
            conn.commit()
        except sqlite3.Error as e:
            logger.error("Failed to record emotion %s: %s", emotion.id, e)
            raise DataError(f"Failed to record emotion check: {e}") from e
        return emotion.id

    def get_emotion(self, emotion_id: str) -> Optional[EmotionRecord]:
        conn = self._get_conn()
        row = conn.execute("SELECT data FROM emotion_checks WHERE id = ?",
                           (emotion_id,)).fetchone()
        if row:
            return EmotionRecord.from_dict(json.loads(row["data"]))
        return None

    def query_emotions(self, user_id: str, from_dt: Optional[datetime] = None,
                       to_dt: Optional[datetime] = None, context: str = "",
                       limit: int = 10000) -> List[EmotionRecord]:
        """Emotion check-ins for a user, oldest first."""
        conditions = ["user_id = ?"]
        params: list = [user_id]
        if from_dt is not None:
            conditions.append("timestamp >= ?"); params.append(to_utc(from_dt).isoformat())
        if to_dt is not None:
            conditions.append("timestamp <= ?"); params.append(to_utc(to_dt).isoformat())
        if context:
            conditions.append("context = ?"); params.append(context)
        where = " AND ".join(conditions)
        rows = self._get_conn().execute(
            f"SELECT data FROM emotion_checks WHERE {where} ORDER BY timestamp ASC LIMIT ?",
            params + [limit]).fetchall()
        emotions = []
        for row in rows:
            try:
                emotions.append(EmotionRecord.from_dict(json.loads(row["data"])))
            except Exception as e:
                logger.error("Failed to parse emotion check: %s", e)
        return emotions

    def count_emotions(self, user_id: str) -> int:
        row = self._get_conn().execute(
            "SELECT COUNT(*) as cnt FROM emotion_checks WHERE user_id = ?", (user_id,)).fetchone()
        return row["cnt"] if row else 0

    # ─── TRADES ─────────────────────────────────────────────────

    def record_trade(self, trade: TradeRecord) -> str:
        """Insert or replace a trade."""
        conn = self._get_conn()
        d = trade.to_dict()
        try:
            conn.execute("""
                INSERT OR REPLACE INTO trades
                (id, user_id, symbol, outcome, pnl, entry_time, emotion_check_id, data)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                d["id"], d["user_id"], d["symbol"], d["outcome"], d["pnl"],
                d["entry_time"], d["emotion_check_id"] or "", json.dumps(d, default=str),
            ))
            conn.commit()
        except sqlite3.Error as e:
            logger.error("Failed to record trade %s: %s", trade.id, e)
            raise DataError(f"Failed to record trade: {e}") from e
        return trade.id

    def get_trade(self, trade_id: str) -> Optional[TradeRecord]:
        conn = self._get_conn()
        row = conn.execute("SELECT data FROM trades WHERE id = ?", (trade_id,)).fetchone()
        if row:
            return TradeRecord.from_dict(json.loads(row["data"]))
        return None

    def query_trades(self, user_id: str, from_dt: Optional[datetime] = None,
                     to_dt: Optional[datetime] = None, outcome: str = "",
                     symbol: str = "", limit: int = 10000) -> List[TradeRecord]:
        """Trades for a user, oldest entry first."""
        conditions = ["user_id = ?"]
        params: list = [user_id]
        if from_dt is not None:
            conditions.append("entry_time >= ?"); params.append(to_utc(from_dt).isoformat())
        if to_dt is not None:
            conditions.append("entry_time <= ?"); params.append(to_utc(to_dt).isoformat())
        if outcome:
            conditions.append("outcome = ?"); params.append(outcome)
        if symbol:
            conditions.append("symbol = ?"); params.append(symbol.upper())
        where = " AND ".join(conditions)
        rows = self._get_conn().execute(
            f"SELECT data FROM trades WHERE {where} ORDER BY entry_time ASC LIMIT ?",
            params + [limit]).fetchall()
        trades = []
        for row in rows:
            try:
                trades.append(TradeRecord.from_dict(json.loads(row["data"])))
            except Exception as e:
                logger.error("Failed to parse trade: %s", e)
        return trades

    def count_trades(self, user_id: str) -> int:
        row = self._get_conn().execute(
            "SELECT COUNT(*) as cnt FROM trades WHERE user_id = ?", (user_id,)).fetchone()
        return row["cnt"] if row else 0

    # ─── STATS ──────────────────────────────────────────────────

    def get_db_stats(self) -> Dict[str, Any]:
        conn = self._get_conn()
        emotions = conn.execute("SELECT COUNT(*) as cnt FROM emotion_checks").fetchone()["cnt"]
        trades = conn.execute("SELECT COUNT(*) as cnt FROM trades").fetchone()["cnt"]
        users = conn.execute("""
            SELECT COUNT(*) as cnt FROM (
                SELECT user_id FROM emotion_checks UNION SELECT user_id FROM trades
            )
        """).fetchone()["cnt"]
        size = os.path.getsize(self._db_path) if os.path.exists(self._db_path) else 0
        return {
            "db_path": self._db_path,
            "db_size_kb": round(size / 1024, 1),
            "emotion_checks": emotions,
            "trades": trades,
            "users": users,
        }

    def close(self):
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None
