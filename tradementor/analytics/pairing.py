"""
Trade ↔ emotion pairing.

A trade is explained by the most recent check-in at or before its entry,
provided that check-in is no older than the lookback window. A trade that
carries an explicit emotion_check_id is matched to that check-in directly.
Trades with no match are dropped from correlation input.
"""

from __future__ import annotations

import bisect
from datetime import timedelta
from typing import Dict, Iterable, List

from tradementor.journal.journal_models import (
    EmotionRecord,
    TradeEmotionPair,
    TradeOutcome,
    TradeRecord,
)
from tradementor.utils.exceptions import ValidationError

DEFAULT_LOOKBACK_HOURS = 6.0

OUTCOME_PROXY_RETURN = {
    TradeOutcome.WIN: 1.0,
    TradeOutcome.LOSS: -1.0,
    TradeOutcome.BREAKEVEN: 0.0,
}


def trade_return(trade: TradeRecord) -> float:
    """
    Return used for statistics: recorded P&L, else the price move times
    quantity, else a unit proxy from the outcome.
    """
    if trade.pnl is not None:
        return trade.pnl
    if trade.entry_price is not None and trade.exit_price is not None and trade.quantity:
        move = (trade.exit_price - trade.entry_price) * trade.quantity
        return -move if trade.is_short else move
    return OUTCOME_PROXY_RETURN[trade.outcome]


def pair_trades_with_emotions(
    trades: Iterable[TradeRecord],
    emotions: Iterable[EmotionRecord],
    lookback_hours: float = DEFAULT_LOOKBACK_HOURS,
) -> List[TradeEmotionPair]:
    """Match each trade to its explaining check-in. Output is ordered by entry time."""
    if lookback_hours <= 0:
        raise ValidationError("lookback_hours must be positive", field="lookback_hours")

    window = timedelta(hours=lookback_hours)
    ordered = sorted(emotions, key=lambda e: e.timestamp)
    stamps = [e.timestamp for e in ordered]
    by_id: Dict[str, EmotionRecord] = {e.id: e for e in ordered}

    pairs: List[TradeEmotionPair] = []
    for trade in sorted(trades, key=lambda t: t.entry_time):
        linked = by_id.get(trade.emotion_check_id) if trade.emotion_check_id else None
        if linked is not None:
            pairs.append(TradeEmotionPair(trade=trade, emotion=linked,
                                          trade_return=trade_return(trade), linked=True))
            continue

        idx = bisect.bisect_right(stamps, trade.entry_time) - 1
        if idx < 0:
            continue
        emotion = ordered[idx]
        if trade.entry_time - emotion.timestamp > window:
            continue
        pairs.append(TradeEmotionPair(trade=trade, emotion=emotion,
                                      trade_return=trade_return(trade)))
    return pairs
