"""
Trade Journal — emotion check-ins and trades
============================================

Architecture:
  journal_models.py — EmotionRecord, TradeRecord, TradeEmotionPair, DateRange
  journal_store.py  — SQLite-backed storage for both record kinds
"""

from tradementor.journal.journal_models import (
    EmotionContext,
    TradeOutcome,
    TradeType,
    PrimaryEmotion,
    EmotionRecord,
    TradeRecord,
    TradeEmotionPair,
    DateRange,
)

from tradementor.journal.journal_store import JournalStore

__all__ = [
    "EmotionContext", "TradeOutcome", "TradeType", "PrimaryEmotion",
    "EmotionRecord", "TradeRecord", "TradeEmotionPair", "DateRange",
    "JournalStore",
]
