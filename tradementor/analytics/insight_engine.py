"""
Insight Engine — Rule-based personalised insights
=================================================

Turns matched trades and check-ins into the pieces of the key-insights report:
  - Insights (sweet spot, danger zone, trend, volatility, day / hour patterns,
    correlation finding), ordered by priority then confidence
  - Emotional trading profile (stability, risk tolerance, pressure handling,
    consistency)
  - Actionable recommendations
  - Risk assessment with a position-sizing suggestion
  - Progress metrics (first half vs second half of the window)

Everything here is a pure function of its inputs; the service layer loads
data, caches, and logs.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from tradementor.analytics import stats
from tradementor.analytics.frames import (
    emotions_frame,
    group_performance,
    hour_label,
    pairs_frame,
    weekday_name,
)
from tradementor.journal.journal_models import EmotionRecord, TradeEmotionPair


class InsightType(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    OPPORTUNITY = "opportunity"
    PATTERN = "pattern"
    RECOMMENDATION = "recommendation"


class InsightPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


PRIORITY_RANK = {
    InsightPriority.CRITICAL.value: 4,
    InsightPriority.HIGH.value: 3,
    InsightPriority.MEDIUM.value: 2,
    InsightPriority.LOW.value: 1,
}

SWEET_SPOT_WIN_RATE = 0.7
SWEET_SPOT_MIN_TRADES = 5
DANGER_ZONE_WIN_RATE = 0.3
DANGER_ZONE_MIN_TRADES = 3
TREND_MIN_CONFIDENCE = 60.0
HIGH_VOLATILITY_STD = 2.0
DAY_PATTERN_MIN_GAP = 0.3
HOUR_PATTERN_MIN_GAP = 0.4
TIME_PATTERN_MIN_TRADES = 3
CORRELATION_MIN_ABS_R = 0.3


def _insight(title: str, description: str, insight_type: InsightType,
             priority: InsightPriority, confidence: float, category: str,
             impact: float = 0.0, supporting_data: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "type": insight_type.value,
        "priority": priority.value,
        "impact": round(impact, 2),
        "confidence": round(confidence, 2),
        "supporting_data": supporting_data or [],
        "category": category,
    }


def keep_tracking_insight() -> Dict[str, Any]:
    return _insight(
        "Keep Tracking Your Emotions",
        "Log an emotion check-in before each trade. Personalised patterns appear "
        "once enough check-ins and trades are recorded.",
        InsightType.RECOMMENDATION, InsightPriority.MEDIUM, 100.0, "getting_started",
    )


def sort_insights(insights: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(insights,
                  key=lambda i: (PRIORITY_RANK.get(i["priority"], 0), i["confidence"]),
                  reverse=True)


def performance_by_level(pairs: Sequence[TradeEmotionPair]) -> List[Dict[str, Any]]:
    """Win rate (0-1), trade count and average return for each traded level, ascending."""
    grouped = group_performance(pairs_frame(pairs), "level")
    return [{
        "emotion_level": int(level),
        "win_rate": float(row["win_rate"]),
        "trade_count": int(row["trades"]),
        "average_return": float(row["avg_return"]),
    } for level, row in grouped.iterrows()]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# INSIGHT RULES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def generate_insights(pairs: Sequence[TradeEmotionPair], emotions: Sequence[EmotionRecord],
                      correlation_r: Optional[float] = None) -> List[Dict[str, Any]]:
    """All rule-based insights, ordered by priority then confidence."""
    insights: List[Dict[str, Any]] = []
    levels = performance_by_level(pairs)

    # ── Sweet spot ──
    if levels:
        best = max(levels, key=lambda r: r["win_rate"])
        if best["win_rate"] > SWEET_SPOT_WIN_RATE and best["trade_count"] >= SWEET_SPOT_MIN_TRADES:
            insights.append(_insight(
                "Your Sweet Spot",
                f"You win {round(best['win_rate'] * 100)}% of trades when your emotion "
                f"level is {best['emotion_level']}",
                InsightType.POSITIVE, InsightPriority.HIGH,
                stats.insight_confidence(best["trade_count"]), "emotion_performance",
                impact=best["win_rate"] * 100,
                supporting_data=[f"{best['trade_count']} trades at level {best['emotion_level']}",
                                 f"Average return {best['average_return']:.2f}"],
            ))

    # ── Danger zone ──
    eligible = [r for r in levels if r["trade_count"] >= DANGER_ZONE_MIN_TRADES]
    if eligible:
        worst = min(eligible, key=lambda r: r["win_rate"])
        if worst["win_rate"] < DANGER_ZONE_WIN_RATE:
            insights.append(_insight(
                "Danger Zone Detected",
                f"You only win {round(worst['win_rate'] * 100)}% of trades when your "
                f"emotion level is {worst['emotion_level']}",
                InsightType.WARNING, InsightPriority.HIGH,
                stats.insight_confidence(worst["trade_count"]), "emotion_performance",
                impact=(1 - worst["win_rate"]) * 100,
                supporting_data=[f"{worst['trade_count']} trades at level {worst['emotion_level']}",
                                 f"Average return {worst['average_return']:.2f}"],
            ))

    ordered_levels = [e.level for e in sorted(emotions, key=lambda e: e.timestamp)]

    # ── Emotional trend ──
    trend = stats.linear_trend(ordered_levels)
    if trend["direction"] != "insufficient_data" and trend["confidence"] > TREND_MIN_CONFIDENCE:
        messages = {
            "improving": "Your emotional state has been steadily improving over time. Keep it up.",
            "declining": "Your emotional state shows a declining trend. Consider stress "
                         "management before trading sessions.",
            "stable": "Your emotional state remains stable. Consistency supports trading success.",
        }
        declining = trend["direction"] == "declining"
        insights.append(_insight(
            f"Emotional Trend: {trend['direction'].capitalize()}",
            messages[trend["direction"]],
            InsightType.WARNING if declining else InsightType.PATTERN,
            InsightPriority.HIGH if declining else InsightPriority.MEDIUM,
            trend["confidence"], "emotional_trend",
            supporting_data=[f"Slope {trend['slope']:.3f} per check-in",
                             f"{len(ordered_levels)} check-ins"],
        ))

    # ── Volatility ──
    if len(ordered_levels) >= 2:
        volatility = stats.population_std(ordered_levels)
        if volatility > HIGH_VOLATILITY_STD:
            insights.append(_insight(
                "High Emotional Volatility",
                f"Your emotions vary significantly (±{volatility:.1f}). Mindfulness practice "
                f"can help stabilise your state before trading.",
                InsightType.WARNING, InsightPriority.HIGH, 85.0, "emotional_stability",
                impact=volatility * 10,
            ))

    insights.extend(_time_pattern_insights(pairs))

    # ── Correlation finding ──
    if correlation_r is not None and abs(correlation_r) >= CORRELATION_MIN_ABS_R:
        strength = stats.correlation_strength(correlation_r)
        direction = "rise" if correlation_r > 0 else "fall"
        insights.append(_insight(
            f"{strength} Emotion-Performance Link",
            f"Your returns tend to {direction} as your emotion level increases "
            f"(r = {correlation_r:.2f}).",
            InsightType.PATTERN, InsightPriority.MEDIUM,
            stats.insight_confidence(len(pairs)), "correlation",
            impact=abs(correlation_r) * 100,
        ))

    return sort_insights(insights)


def _time_pattern_insights(pairs: Sequence[TradeEmotionPair]) -> List[Dict[str, Any]]:
    insights = []
    df = pairs_frame(pairs)

    days = group_performance(df, "weekday_num", TIME_PATTERN_MIN_TRADES)
    if len(days) >= 2:
        best_day = days["win_rate"].idxmax()
        worst_day = days["win_rate"].idxmin()
        gap = days.loc[best_day, "win_rate"] - days.loc[worst_day, "win_rate"]
        if gap > DAY_PATTERN_MIN_GAP:
            n = int(days.loc[best_day, "trades"] + days.loc[worst_day, "trades"])
            insights.append(_insight(
                "Day-of-Week Pattern",
                f"You perform best on {weekday_name(best_day)}s "
                f"({days.loc[best_day, 'win_rate']:.0%} win rate) and worst on "
                f"{weekday_name(worst_day)}s ({days.loc[worst_day, 'win_rate']:.0%})",
                InsightType.OPPORTUNITY, InsightPriority.MEDIUM,
                stats.insight_confidence(n), "timing", impact=float(gap) * 100,
            ))

    hours = group_performance(df, "hour", TIME_PATTERN_MIN_TRADES)
    if len(hours) >= 2:
        best_hour = hours["win_rate"].idxmax()
        worst_hour = hours["win_rate"].idxmin()
        gap = hours.loc[best_hour, "win_rate"] - hours.loc[worst_hour, "win_rate"]
        if gap > HOUR_PATTERN_MIN_GAP:
            n = int(hours.loc[best_hour, "trades"] + hours.loc[worst_hour, "trades"])
            insights.append(_insight(
                "Time-of-Day Pattern",
                f"You trade best around {hour_label(best_hour)} "
                f"({hours.loc[best_hour, 'win_rate']:.0%} win rate) and struggle around "
                f"{hour_label(worst_hour)} ({hours.loc[worst_hour, 'win_rate']:.0%})",
                InsightType.OPPORTUNITY, InsightPriority.MEDIUM,
                stats.insight_confidence(n), "timing", impact=float(gap) * 100,
            ))
    return insights


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRADING PROFILE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def _win_rate(pairs: Sequence[TradeEmotionPair]) -> float:
    return sum(1 for p in pairs if p.is_win) / len(pairs) if pairs else 0.0


def trading_profile(pairs: Sequence[TradeEmotionPair],
                    emotions: Sequence[EmotionRecord]) -> Dict[str, Any]:
    """
    Trait scores (0-100):
      emotional_stability — 100 minus 20 points per unit of level std dev
      risk_tolerance      — mean level of the check-ins behind trades, x10
      pressure_handling   — win rate on trades taken at level 4 or below
      consistency_score   — 100 minus the spread of weekly win rates
    """
    levels = [e.level for e in emotions]
    stability = _clamp(100 - stats.population_std(levels) * 20) if levels else 0.0
    risk_tolerance = _clamp(stats.mean([p.level for p in pairs]) * 10) if pairs else 50.0

    low_state = [p for p in pairs if p.level <= 4]
    pressure = _win_rate(low_state) * 100 if low_state else 50.0

    df = pairs_frame(pairs)
    consistency = 50.0
    if not df.empty:
        df["week"] = [t.strftime("%G-%V") for t in df["entry_time"]]
        weekly = group_performance(df, "week")
        if len(weekly) >= 2:
            consistency = _clamp(100 - stats.population_std(list(weekly["win_rate"])) * 200)

    traits = {
        "emotional_stability": round(stability, 2),
        "risk_tolerance": round(risk_tolerance, 2),
        "pressure_handling": round(pressure, 2),
        "consistency_score": round(consistency, 2),
    }

    if stability < 40:
        profile_type = "Emotional"
    elif risk_tolerance >= 70:
        profile_type = "Aggressive"
    elif risk_tolerance <= 40:
        profile_type = "Conservative"
    else:
        profile_type = "Balanced"

    names = {
        "emotional_stability": "Emotional stability",
        "risk_tolerance": "Risk appetite",
        "pressure_handling": "Handling pressure",
        "consistency_score": "Week-to-week consistency",
    }
    strengths = [names[k] for k, v in traits.items() if v >= 70]
    weak_areas = [names[k] for k, v in traits.items() if v < 40]

    return {
        "profile_type": profile_type,
        "emotional_stability": traits["emotional_stability"],
        "risk_tolerance": traits["risk_tolerance"],
        "pressure_handling": traits["pressure_handling"],
        "consistency_score": traits["consistency_score"],
        "strengths": strengths,
        "weak_areas": weak_areas,
        "trait_scores": traits,
    }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RECOMMENDATIONS / RISK / PROGRESS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _recommendation(title: str, description: str, action: str, expected_impact: float,
                    timeframe: str, category: str, priority: int) -> Dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "action": action,
        "expected_impact": round(expected_impact, 2),
        "timeframe": timeframe,
        "category": category,
        "priority": priority,
    }


def actionable_recommendations(insights: Sequence[Dict[str, Any]],
                               profile: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Concrete actions derived from insights and the profile. Priority 1 is most urgent."""
    recs = []
    titles = {i["title"]: i for i in insights}

    if "Danger Zone Detected" in titles:
        recs.append(_recommendation(
            "Sit Out Your Danger Zone",
            titles["Danger Zone Detected"]["description"],
            "Skip new entries when your pre-trade check-in lands at this level.",
            20.0, "Immediate", "risk_management", 1))

    if "Your Sweet Spot" in titles:
        recs.append(_recommendation(
            "Trade From Your Sweet Spot",
            titles["Your Sweet Spot"]["description"],
            "Prioritise setups taken while you are at this emotion level.",
            15.0, "Next 2 weeks", "emotion_performance", 1))

    if profile["emotional_stability"] < 50 or "High Emotional Volatility" in titles:
        recs.append(_recommendation(
            "Stabilise Before You Trade",
            "Your emotion level swings widely between check-ins.",
            "Add a 5-minute breathing or journaling routine before each session.",
            10.0, "Next 30 days", "emotional_stability", 2))

    if "Emotional Trend: Declining" in titles:
        recs.append(_recommendation(
            "Address the Declining Trend",
            titles["Emotional Trend: Declining"]["description"],
            "Reduce position size until your weekly average recovers.",
            10.0, "Next 2 weeks", "emotional_trend", 2))

    for title in ("Day-of-Week Pattern", "Time-of-Day Pattern"):
        if title in titles:
            recs.append(_recommendation(
                f"Schedule Around Your {title.split(' Pattern')[0]} Edge",
                titles[title]["description"],
                "Concentrate trading in your strongest window and cut size in the weakest.",
                8.0, "Next 30 days", "timing", 3))

    if profile["consistency_score"] < 40:
        recs.append(_recommendation(
            "Build Week-to-Week Consistency",
            "Your win rate changes sharply from week to week.",
            "Write a fixed pre-trade checklist and follow it for every entry.",
            8.0, "Next 30 days", "consistency", 3))

    recs.append(_recommendation(
        "Keep Logging Check-ins",
        "Each check-in linked to a trade sharpens these recommendations.",
        "Record an emotion check-in before every trade.",
        5.0, "Ongoing", "habits", 4))

    return sorted(recs, key=lambda r: r["priority"])


def risk_assessment(pairs: Sequence[TradeEmotionPair], insights: Sequence[Dict[str, Any]],
                    profile: Dict[str, Any]) -> Dict[str, Any]:
    titles = {i["title"] for i in insights}
    score = (100 - profile["emotional_stability"]) * 0.4
    risk_factors: List[str] = []
    protective: List[str] = []

    if profile["emotional_stability"] < 50:
        risk_factors.append("Unstable emotional state between check-ins")
    else:
        protective.append("Stable emotional baseline")

    if "Danger Zone Detected" in titles:
        score += 20
        risk_factors.append("Emotion level with a very low win rate")
    if "Emotional Trend: Declining" in titles:
        score += 10
        risk_factors.append("Declining emotional trend")
    if "Your Sweet Spot" in titles:
        protective.append("Identified high-win-rate emotion level")

    win_rate = _win_rate(pairs)
    if pairs and win_rate < 0.4:
        score += 20
        risk_factors.append(f"Overall win rate {win_rate:.0%}")
    elif pairs and win_rate >= 0.55:
        protective.append(f"Overall win rate {win_rate:.0%}")

    returns = [p.trade_return for p in pairs]
    gross = sum(abs(r) for r in returns)
    if gross > 0 and stats.max_drawdown(returns) > 0.25 * gross:
        score += 10
        risk_factors.append("Deep drawdown relative to total traded P&L")

    score = _clamp(score)
    if score < 25:
        level, sizing = "Low", "Standard size (1-2% of capital at risk per trade)"
    elif score < 50:
        level, sizing = "Medium", "Reduced size (0.5-1% of capital at risk per trade)"
    elif score < 75:
        level, sizing = "High", "Minimal size (0.25-0.5% of capital at risk per trade)"
    else:
        level, sizing = "Very High", "Paper trade until emotional stability improves"

    return {
        "risk_level": level,
        "risk_score": round(score, 2),
        "risk_factors": risk_factors,
        "protective_factors": protective,
        "emotional_risk_tolerance": profile["risk_tolerance"],
        "recommended_position_sizing": sizing,
    }


def progress_metrics(pairs: Sequence[TradeEmotionPair],
                     emotions: Sequence[EmotionRecord]) -> Dict[str, Any]:
    """
    Compare the first and second half of the window. Positive values are
    improvements: lower level spread, higher win rate (percentage points),
    lower return spread.
    """
    ordered_emotions = sorted(emotions, key=lambda e: e.timestamp)
    ordered_pairs = sorted(pairs, key=lambda p: p.trade.entry_time)

    e_half = len(ordered_emotions) // 2
    stability_trend = 0.0
    if e_half >= 2:
        first = [e.level for e in ordered_emotions[:e_half]]
        second = [e.level for e in ordered_emotions[e_half:]]
        stability_trend = stats.population_std(first) - stats.population_std(second)

    p_half = len(ordered_pairs) // 2
    performance = consistency = 0.0
    if p_half >= 2:
        first_p, second_p = ordered_pairs[:p_half], ordered_pairs[p_half:]
        performance = (_win_rate(second_p) - _win_rate(first_p)) * 100
        consistency = (stats.sample_std([p.trade_return for p in first_p])
                       - stats.sample_std([p.trade_return for p in second_p]))

    days = set(emotions_frame(emotions)["date"]) | set(pairs_frame(pairs)["date"])
    monthly = group_performance(pairs_frame(pairs), "month")

    return {
        "emotion_stability_trend": round(stability_trend, 4),
        "performance_improvement": round(performance, 2),
        "consistency_improvement": round(consistency, 4),
        "days_analyzed": len(days),
        "first_trade_date": (ordered_pairs[0].trade.entry_time.isoformat()
                             if ordered_pairs else None),
        "monthly_progress": {str(month): round(float(row["win_rate"]) * 100, 2)
                             for month, row in monthly.iterrows()},
    }
