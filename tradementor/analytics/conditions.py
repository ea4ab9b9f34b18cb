"""
Optimal Trading Conditions — when and in what state a trader performs best
==========================================================================

Builds the parts of the optimal-conditions report from matched trades:
  best_conditions / conditions_to_avoid — emotion levels, bands, weekdays,
                                          hours and symbols with enough trades
  market_timing                         — day / hour / month win rates
  emotional_readiness                   — optimal / caution / avoid ranges
  environmental_factors                 — symbol and market-condition results
  optimization_score                    — 0-100 summary
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from tradementor.analytics import stats
from tradementor.analytics.frames import (
    best_keys,
    group_performance,
    hour_label,
    month_name,
    pairs_frame,
    weekday_name,
)
from tradementor.journal.journal_models import EmotionRecord, TradeEmotionPair

BEST_CONDITION_WIN_RATE = 0.6
AVOID_CONDITION_WIN_RATE = 0.4
FAVORABLE_WIN_RATE = 60.0
CHALLENGING_WIN_RATE = 40.0
TOP_CONDITIONS = 5

READINESS_OPTIMAL = "Optimal"
READINESS_CAUTION = "Caution"
READINESS_AVOID = "Avoid"
READINESS_NEUTRAL = "Neutral"
READINESS_UNKNOWN = "Unknown"

STATE_NAMES = {
    1: "Distressed", 2: "Distressed",
    3: "Anxious", 4: "Anxious",
    5: "Neutral", 6: "Neutral",
    7: "Confident", 8: "Confident",
    9: "Euphoric", 10: "Euphoric",
}


def _band_column(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["band"] = [stats.emotion_band(int(level)) for level in df["level"]]
    return df


def _candidates(pairs: Sequence[TradeEmotionPair], min_trades: int) -> List[Dict[str, Any]]:
    """Every condition dimension, flattened to one row per qualifying group."""
    df = _band_column(pairs_frame(pairs))
    dimensions = [
        ("level", "emotion_level", lambda k: f"Emotion level {int(k)}",
         lambda k: f"Trading after an emotion check-in of {int(k)}"),
        ("band", "emotion_band", lambda k: f"{k} emotion", lambda k: f"Emotion level in the {k} band"),
        ("weekday_num", "day_of_week", lambda k: f"{weekday_name(k)} trading",
         lambda k: f"Trades entered on {weekday_name(k)}"),
        ("hour", "hour_of_day", lambda k: f"{hour_label(int(k))} entries",
         lambda k: f"Trades entered in the {hour_label(int(k))} hour (UTC)"),
        ("symbol", "symbol", lambda k: f"{k} trades", lambda k: f"Trades in {k}"),
    ]
    rows = []
    for column, dimension, name_fn, desc_fn in dimensions:
        grouped = group_performance(df, column, min_trades)
        for key, row in grouped.iterrows():
            value = key if isinstance(key, str) else int(key)
            rows.append({
                "condition_name": name_fn(key),
                "description": desc_fn(key),
                "win_rate": round(float(row["win_rate"]) * 100, 2),
                "average_return": round(float(row["avg_return"]), 2),
                "trade_count": int(row["trades"]),
                "confidence": stats.insight_confidence(int(row["trades"])),
                "parameters": {"dimension": dimension, "value": value},
            })
    return rows


def best_conditions(pairs: Sequence[TradeEmotionPair], min_trades: int) -> List[Dict[str, Any]]:
    good = [c for c in _candidates(pairs, min_trades)
            if c["win_rate"] >= BEST_CONDITION_WIN_RATE * 100 and c["average_return"] > 0]
    good.sort(key=lambda c: (c["win_rate"], c["average_return"], c["trade_count"]), reverse=True)
    return good[:TOP_CONDITIONS]


def _severity(win_rate_pct: float, average_return: float) -> str:
    if win_rate_pct < 20 or (win_rate_pct < 30 and average_return < 0):
        return "Severe"
    if win_rate_pct < 30:
        return "Moderate"
    return "Mild"


def conditions_to_avoid(pairs: Sequence[TradeEmotionPair], min_trades: int) -> List[Dict[str, Any]]:
    bad = []
    for c in _candidates(pairs, min_trades):
        if c["win_rate"] < AVOID_CONDITION_WIN_RATE * 100 or c["average_return"] < 0:
            bad.append({
                "condition_name": c["condition_name"],
                "reason": (f"{c['win_rate']:.0f}% win rate and {c['average_return']:.2f} "
                           f"average return over {c['trade_count']} trades"),
                "win_rate": c["win_rate"],
                "average_return": c["average_return"],
                "trade_count": c["trade_count"],
                "severity": _severity(c["win_rate"], c["average_return"]),
            })
    bad.sort(key=lambda c: (c["win_rate"], c["average_return"]))
    return bad[:TOP_CONDITIONS]


def market_timing(pairs: Sequence[TradeEmotionPair], min_trades: int) -> Dict[str, Any]:
    df = pairs_frame(pairs)
    days = group_performance(df, "weekday_num")
    hours = group_performance(df, "hour")
    months = group_performance(df, "month")

    return {
        "best_days_of_week": [weekday_name(k) for k in
                              best_keys(days[days["trades"] >= min_trades])],
        "best_hours_of_day": [hour_label(int(k)) for k in
                              best_keys(hours[hours["trades"] >= min_trades])],
        "best_months": [month_name(k) for k in
                        best_keys(months[months["trades"] >= min_trades])],
        "day_performance": {weekday_name(k): round(float(r["win_rate"]) * 100, 2)
                            for k, r in days.iterrows()},
        "hour_performance": {hour_label(int(k)): round(float(r["win_rate"]) * 100, 2)
                             for k, r in hours.iterrows()},
        "month_performance": {str(k): round(float(r["win_rate"]) * 100, 2)
                              for k, r in months.iterrows()},
    }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# EMOTIONAL READINESS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def readiness_for_level(level: int, readiness: Dict[str, Any]) -> str:
    """Classify a level against the readiness ranges. Neutral when no range contains it."""
    for key, label in (("optimal_emotion_range", READINESS_OPTIMAL),
                       ("caution_emotion_range", READINESS_CAUTION),
                       ("avoid_emotion_range", READINESS_AVOID)):
        lo, hi = readiness[key]
        if lo <= level <= hi:
            return label
    return READINESS_NEUTRAL


def emotional_readiness(pairs: Sequence[TradeEmotionPair],
                        latest: Optional[EmotionRecord]) -> Dict[str, Any]:
    """
    Emotion bands ranked by average return: best is optimal, middle is
    caution, worst is avoid. A band without trades is never optimal; it takes
    the caution slot when two bands have trades, otherwise bands without
    trades fill caution then avoid in level order.
    """
    df = _band_column(pairs_frame(pairs))
    band_perf = group_performance(df, "band")

    traded = sorted((b for b in stats.EMOTION_BANDS if b in band_perf.index),
                    key=lambda b: float(band_perf.loc[b, "avg_return"]), reverse=True)
    untested = [b for b in stats.EMOTION_BANDS if b not in band_perf.index]
    if len(traded) >= 2:
        ordered = traded[:-1] + untested + traded[-1:]
    else:
        ordered = traded + untested
    readiness: Dict[str, Any] = {
        "optimal_emotion_range": list(stats.EMOTION_BANDS[ordered[0]]),
        "caution_emotion_range": list(stats.EMOTION_BANDS[ordered[1]]),
        "avoid_emotion_range": list(stats.EMOTION_BANDS[ordered[2]]),
    }

    overall_win_rate = float(df["win"].mean()) if not df.empty else 0.0
    level_perf = group_performance(df, "level")
    recommendations = {
        READINESS_OPTIMAL: "Trade your plan at normal size",
        READINESS_CAUTION: "Trade with reduced size and tighter stops",
        READINESS_AVOID: "Stand aside or paper trade",
        READINESS_NEUTRAL: "Trade with caution",
    }
    states = []
    for level, row in level_perf.iterrows():
        level = int(level)
        multiplier = float(row["win_rate"]) / overall_win_rate if overall_win_rate > 0 else 1.0
        states.append({
            "state_name": STATE_NAMES[level],
            "emotion_level": level,
            "performance_multiplier": round(multiplier, 2),
            "recommendation": recommendations[readiness_for_level(level, readiness)],
        })
    readiness["emotional_states"] = states
    readiness["current_readiness_level"] = (
        readiness_for_level(latest.level, readiness) if latest else READINESS_UNKNOWN)
    return readiness


def empty_readiness() -> Dict[str, Any]:
    return {
        "optimal_emotion_range": [0, 0],
        "caution_emotion_range": [0, 0],
        "avoid_emotion_range": [0, 0],
        "emotional_states": [],
        "current_readiness_level": READINESS_UNKNOWN,
    }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ENVIRONMENT & SCORE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def environmental_factors(pairs: Sequence[TradeEmotionPair], min_trades: int) -> Dict[str, Any]:
    df = pairs_frame(pairs)
    symbols = group_performance(df, "symbol")
    tagged = df[df["market_conditions"] != ""]
    conditions = group_performance(tagged, "market_conditions")
    qualified = conditions[conditions["trades"] >= min_trades]

    return {
        "symbol_performance": {str(k): round(float(r["win_rate"]) * 100, 2)
                               for k, r in symbols.iterrows()},
        "market_condition_performance": {str(k): round(float(r["win_rate"]) * 100, 2)
                                         for k, r in conditions.iterrows()},
        "favorable_market_conditions": [str(k) for k, r in qualified.iterrows()
                                        if r["win_rate"] * 100 >= FAVORABLE_WIN_RATE],
        "challenging_market_conditions": [str(k) for k, r in qualified.iterrows()
                                          if r["win_rate"] * 100 <= CHALLENGING_WIN_RATE],
    }


def optimization_score(pairs: Sequence[TradeEmotionPair], readiness: Dict[str, Any]) -> float:
    """
    40% overall win rate, 30% share of trades taken inside the optimal range,
    30% profit factor (capped at 3).
    """
    if not pairs:
        return 0.0
    win_rate = sum(1 for p in pairs if p.is_win) / len(pairs)
    lo, hi = readiness["optimal_emotion_range"]
    in_optimal = sum(1 for p in pairs if lo <= p.level <= hi) / len(pairs)
    returns = [p.trade_return for p in pairs]
    if any(r > 0 for r in returns) and not any(r < 0 for r in returns):
        pf = 1.0
    else:
        pf = min(stats.profit_factor(returns), 3.0) / 3.0
    score = win_rate * 40 + in_optimal * 30 + pf * 30
    return round(max(0.0, min(100.0, score)), 2)
