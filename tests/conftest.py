"""
Shared fixtures and synthetic journal generators for analytics testing.

Generates emotion check-ins and the trades that follow them with a seeded
numpy generator. Trade returns depend linearly on the check-in level plus
Gaussian noise, so the strength of the emotion / performance link is
controlled by level_effect and noise.

All timestamps are anchored to NOW, which the pattern service fixture also
uses as its clock, so reports are reproducible.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import numpy as np
import pytest

from tradementor.analytics.pattern_service import PatternService
from tradementor.analytics.report_cache import ReportCache
from tradementor.journal.journal_models import EmotionRecord, TradeRecord
from tradementor.journal.journal_store import JournalStore
from tradementor.utils.config import Settings

NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)

SYMBOLS = ["AAPL", "MSFT", "TSLA"]
MARKET_CONDITIONS = ["trending", "ranging", "volatile"]


# ─────────────────────────────────────────────────────────
# Synthetic Journal Generator
# ─────────────────────────────────────────────────────────

def generate_journal(
    user_id: str = "trader-1",
    n_trades: int = 60,
    seed: int = 42,
    end: datetime = NOW,
    days: int = 56,
    level_effect: float = 1.0,
    noise: float = 1.0,
    link: bool = True,
) -> Tuple[List[EmotionRecord], List[TradeRecord]]:
    """Generate n_trades check-ins, each followed 30 minutes later by a trade.

    Args:
        level_effect: return change per emotion level above 5.5
        noise: std dev of the Gaussian noise added to each return
        link: set emotion_check_id on every trade so pairing is exact

    Returns:
        (emotions, trades), both oldest first
    """
    rng = np.random.default_rng(seed)
    start = end - timedelta(days=days)
    offsets = np.sort(rng.uniform(0, days * 24 - 1, n_trades))

    emotions, trades = [], []
    for i, hours in enumerate(offsets):
        ts = start + timedelta(hours=float(hours))
        level = int(rng.integers(1, 11))
        emotion = EmotionRecord(
            user_id=user_id, level=level, timestamp=ts, id=f"{user_id}-e{i:03d}",
            market_conditions=MARKET_CONDITIONS[int(rng.integers(0, 3))],
        )
        ret = level_effect * (level - 5.5) + float(rng.normal(0, noise))
        if ret > 0.05:
            outcome = "win"
        elif ret < -0.05:
            outcome = "loss"
        else:
            outcome = "breakeven"
        trade = TradeRecord(
            user_id=user_id,
            symbol=SYMBOLS[int(rng.integers(0, len(SYMBOLS)))],
            outcome=outcome,
            entry_time=ts + timedelta(minutes=30),
            id=f"{user_id}-t{i:03d}",
            pnl=round(ret * 100, 2),
            emotion_check_id=emotion.id if link else None,
        )
        emotions.append(emotion)
        trades.append(trade)
    return emotions, trades


def load_journal(store: JournalStore, emotions, trades) -> None:
    for e in emotions:
        store.record_emotion(e)
    for t in trades:
        store.record_trade(t)


# ─────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(db_path=str(tmp_path / "journal.db"), log_file=str(tmp_path / "test.log"))


@pytest.fixture
def store(settings):
    s = JournalStore(settings.db_path)
    yield s
    s.close()


@pytest.fixture
def pattern_service(store, settings) -> PatternService:
    return PatternService(store, settings=settings, cache=ReportCache(),
                          semaphore=threading.BoundedSemaphore(settings.heavy_concurrency_limit),
                          clock=lambda: NOW)


@pytest.fixture
def journal():
    """60 linked trades with a strong positive level effect."""
    return generate_journal()


@pytest.fixture
def populated_store(store, journal):
    load_journal(store, *journal)
    return store
