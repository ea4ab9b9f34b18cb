"""
Emotion / Performance Analytics
===============================

Architecture:
  pairing.py         — trade ↔ check-in matching and trade returns
  stats.py           — descriptive statistics, correlation, trend fitting
  frames.py          — pandas calendar bucketing
  insight_engine.py  — rule-based insights, profile, risk, progress
  conditions.py      — optimal conditions and emotional readiness
  report_cache.py    — TTL report cache and heavy-report semaphore
  pattern_service.py — per-user reports tying it all together
"""

from tradementor.analytics.pairing import pair_trades_with_emotions, trade_return
from tradementor.analytics.report_cache import ReportCache, heavy_slots
from tradementor.analytics.pattern_service import PatternService

__all__ = [
    "pair_trades_with_emotions", "trade_return",
    "ReportCache", "heavy_slots",
    "PatternService",
]
