"""
Calendar bucketing of matched trades and check-ins with pandas.

pairs_frame() flattens TradeEmotionPairs into one row per trade with the
calendar columns (date, weekday, hour, month) used for grouping.
group_performance() aggregates any of those columns into trade count,
win rate and average return.
"""

from __future__ import annotations

import calendar
from typing import List, Sequence

import pandas as pd

from tradementor.journal.journal_models import EmotionRecord, TradeEmotionPair

PAIR_COLUMNS = [
    "level", "ret", "win", "outcome", "entry_time", "date", "weekday_num",
    "weekday", "hour", "month", "symbol", "market_conditions",
]

EMOTION_COLUMNS = ["level", "timestamp", "date", "context"]


def pairs_frame(pairs: Sequence[TradeEmotionPair]) -> pd.DataFrame:
    rows = []
    for p in pairs:
        ts = p.trade.entry_time
        rows.append({
            "level": p.level,
            "ret": float(p.trade_return),
            "win": p.is_win,
            "outcome": p.trade.outcome.value,
            "entry_time": ts,
            "date": ts.date(),
            "weekday_num": ts.weekday(),
            "weekday": calendar.day_name[ts.weekday()],
            "hour": ts.hour,
            "month": ts.strftime("%Y-%m"),
            "symbol": p.trade.symbol,
            "market_conditions": p.emotion.market_conditions or "",
        })
    return pd.DataFrame(rows, columns=PAIR_COLUMNS)


def emotions_frame(emotions: Sequence[EmotionRecord]) -> pd.DataFrame:
    rows = [{
        "level": e.level,
        "timestamp": e.timestamp,
        "date": e.timestamp.date(),
        "context": e.context.value,
    } for e in emotions]
    return pd.DataFrame(rows, columns=EMOTION_COLUMNS)


def group_performance(df: pd.DataFrame, key: str, min_trades: int = 1) -> pd.DataFrame:
    """
    Per-group trades / wins / win_rate (0-1) / avg_return, indexed by key
    and sorted by it. Groups with fewer than min_trades are dropped.
    """
    if df.empty:
        return pd.DataFrame(columns=["trades", "wins", "win_rate", "avg_return"])
    grouped = df.groupby(key).agg(
        trades=("ret", "size"),
        wins=("win", "sum"),
        avg_return=("ret", "mean"),
    )
    grouped["wins"] = grouped["wins"].astype(int)
    grouped["win_rate"] = grouped["wins"] / grouped["trades"]
    grouped = grouped[grouped["trades"] >= min_trades]
    return grouped[["trades", "wins", "win_rate", "avg_return"]]


def hour_label(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def weekday_name(num: int) -> str:
    return calendar.day_name[int(num)]


def month_name(key: str) -> str:
    """'2025-03' -> 'March 2025'."""
    year, month = key.split("-")
    return f"{calendar.month_name[int(month)]} {year}"


def best_keys(grouped: pd.DataFrame, top: int = 3) -> List:
    """Group keys ordered by win rate then average return, best first."""
    if grouped.empty:
        return []
    ranked = grouped.sort_values(["win_rate", "avg_return"], ascending=[False, False], kind="mergesort")
    return list(ranked.index[:top])
