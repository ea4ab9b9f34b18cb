"""
Pattern Service — Emotion / performance analytics per user
==========================================================

Heavy reports (cached per user, one semaphore slot per computation):
  get_emotion_performance_correlation — per-level stats, Pearson r, p-value
  get_weekly_emotion_trend            — week-by-week emotion and results
  get_key_insights                    — insights, profile, recommendations, risk
  get_best_trading_conditions         — best / avoid conditions, readiness, timing

Composite and light reports:
  get_trading_recommendations, get_pattern_dashboard,
  get_emotion_patterns, get_emotion_distribution, get_emotion_stats,
  get_performance_by_emotion
"""

from __future__ import annotations

import threading
import time
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from tradementor.analytics import conditions, insight_engine, stats
from tradementor.analytics.frames import emotions_frame
from tradementor.analytics.pairing import pair_trades_with_emotions, trade_return
from tradementor.analytics.report_cache import ReportCache, heavy_slots
from tradementor.journal.journal_models import (
    DateRange,
    EmotionRecord,
    TradeEmotionPair,
    TradeOutcome,
    TradeRecord,
    utcnow,
)
from tradementor.journal.journal_store import JournalStore
from tradementor.utils.config import Settings, get_settings
from tradementor.utils.exceptions import AnalyticsError, TradeMentorError, ValidationError
from tradementor.utils.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
PERIOD_WEEKS = {"7d": 2, "30d": 5, "90d": 13, "1y": 52}
DEFAULT_PERIOD = "30d"
DEFAULT_WEEKS = 4
MAX_WEEKS = 52

VOLATILE_WEEK_STD = 2.0
WEEK_CHANGE_THRESHOLD = 0.5


def clamp_weeks(weeks: int) -> int:
    if weeks < 1:
        return DEFAULT_WEEKS
    return min(weeks, MAX_WEEKS)


def normalize_period(period: str) -> str:
    return period if period in PERIOD_DAYS else DEFAULT_PERIOD


class PatternService:
    """
    Computes the pattern reports for one journal store.

    The semaphore defaults to the process-wide heavy_slots(); the clock
    returns the aware UTC "now" every window is anchored to.
    """

    def __init__(self, store: JournalStore, settings: Optional[Settings] = None,
                 cache: Optional[ReportCache] = None,
                 semaphore: Optional[threading.Semaphore] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self._store = store
        self._settings = settings or get_settings()
        self._cache = cache if cache is not None else ReportCache()
        self._semaphore = semaphore if semaphore is not None else heavy_slots()
        self._clock = clock or utcnow

    @property
    def cache(self) -> ReportCache:
        return self._cache

    def now(self) -> datetime:
        return self._clock()

    # ─── Plumbing ───────────────────────────────────────────────

    def _cached_report(self, report: str, user_id: str, params: Tuple, ttl: float,
                       compute: Callable[[], Any]) -> Any:
        key = ReportCache.make_key(report, user_id, *params)
        cached = self._cache.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug("report_cache_hit", report=report, user_id=user_id)
            return cached

        with self._semaphore:
            cached = self._cache.get(key, _MISSING)
            if cached is not _MISSING:
                return cached
            started = time.perf_counter()
            try:
                result = compute()
            except TradeMentorError:
                raise
            except Exception as e:
                logger.error("report_failed", report=report, user_id=user_id, error=str(e))
                raise AnalyticsError(f"Failed to compute {report}: {e}") from e
            self._cache.set(key, result, ttl)

        logger.info("report_computed", report=report, user_id=user_id,
                    duration_ms=round((time.perf_counter() - started) * 1000, 1))
        return result

    def _load_pairs(self, user_id: str, start: datetime,
                    end: datetime) -> Tuple[List[TradeEmotionPair], List[EmotionRecord], List[TradeRecord]]:
        lookback = self._settings.emotion_lookback_hours
        emotions = self._store.query_emotions(user_id, from_dt=start - timedelta(hours=lookback), to_dt=end)
        trades = self._store.query_trades(user_id, from_dt=start, to_dt=end)
        in_window = [e for e in emotions if e.timestamp >= start]
        pairs = pair_trades_with_emotions(trades, emotions + self._linked_outside(user_id, trades, emotions),
                                          lookback)
        return pairs, in_window, trades

    def _linked_outside(self, user_id: str, trades: List[TradeRecord],
                        emotions: List[EmotionRecord]) -> List[EmotionRecord]:
        """Check-ins named by emotion_check_id that fall before the loaded range."""
        loaded = {e.id for e in emotions}
        extra: Dict[str, EmotionRecord] = {}
        for t in trades:
            check_id = t.emotion_check_id
            if not check_id or check_id in loaded or check_id in extra:
                continue
            emotion = self._store.get_emotion(check_id)
            if emotion is not None and emotion.user_id == user_id:
                extra[check_id] = emotion
        return list(extra.values())

    def _analysis_window(self) -> DateRange:
        end = self._clock()
        return DateRange(end - timedelta(days=self._settings.analysis_window_days), end,
                         period=f"{self._settings.analysis_window_days}d", rolling=True)

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # CORRELATION
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_emotion_performance_correlation(self, user_id: str,
                                            date_range: DateRange) -> Dict[str, Any]:
        return self._cached_report(
            "correlation", user_id, (date_range.cache_key(),),
            self._settings.correlation_cache_ttl,
            lambda: self._compute_correlation(user_id, date_range))

    def _compute_correlation(self, user_id: str, date_range: DateRange) -> Dict[str, Any]:
        pairs, _, _ = self._load_pairs(user_id, date_range.start, date_range.end)
        n = len(pairs)
        if n < self._settings.min_trades_correlation:
            logger.info("correlation_insufficient_data", user_id=user_id, sample_size=n)
            return self._insufficient_correlation(n, date_range)

        by_level: Dict[int, List[TradeEmotionPair]] = defaultdict(list)
        for p in pairs:
            by_level[p.level].append(p)

        emotion_levels = []
        win_rate_by_level = {}
        for level in sorted(by_level):
            group = by_level[level]
            returns = [p.trade_return for p in group]
            wins = [p.trade_return for p in group if p.is_win]
            losses = [p.trade_return for p in group if p.trade.outcome == TradeOutcome.LOSS]
            win_rate = len(wins) / len(group) * 100

            emotion_levels.append({
                "emotion_level": level,
                "trade_count": len(group),
                "average_return": round(stats.mean(returns), 4),
                "win_rate": round(win_rate, 2),
                "standard_deviation": round(stats.sample_std(returns), 4),
                "sharpe_ratio": round(stats.sharpe_ratio(returns), 4),
                "max_drawdown": round(stats.max_drawdown(returns), 4),
                "profit_factor": round(stats.profit_factor(returns), 4),
            })
            win_rate_by_level[level] = {
                "win_rate": round(win_rate, 2),
                "total_trades": len(group),
                "winning_trades": len(wins),
                "losing_trades": len(losses),
                "average_win": round(stats.mean(wins), 4),
                "average_loss": round(stats.mean(losses), 4),
                "confidence_interval": round(stats.win_rate_confidence_interval(len(wins), len(group)), 2),
            }

        r = stats.pearson([p.level for p in pairs], [p.trade_return for p in pairs])
        p_value = stats.correlation_p_value(r, n)
        significant = (p_value < self._settings.significance_alpha
                       and n >= self._settings.significance_min_samples)

        logger.info("correlation_computed", user_id=user_id, sample_size=n,
                    r=round(r, 4), p_value=round(p_value, 6))

        return {
            "correlation_coefficient": round(r, 4),
            "p_value": round(p_value, 6),
            "is_statistically_significant": significant,
            "emotion_levels": emotion_levels,
            "win_rate_by_level": win_rate_by_level,
            "insights": self._correlation_insights(pairs, emotion_levels, r, significant),
            "sample_size": n,
            "date_range": date_range.label(),
            "period": date_range.period,
        }

    def _insufficient_correlation(self, n: int, date_range: DateRange) -> Dict[str, Any]:
        need = self._settings.min_trades_correlation
        return {
            "correlation_coefficient": 0.0,
            "p_value": 1.0,
            "is_statistically_significant": False,
            "emotion_levels": [],
            "win_rate_by_level": {},
            "insights": {
                "correlation_strength": "Insufficient Data",
                "recommendation": (f"Keep logging emotion check-ins before your trades. "
                                   f"At least {need} trades matched to a check-in are needed "
                                   f"for correlation analysis."),
                "key_findings": [f"{n} of {need} required matched trades recorded"],
                "optimal_emotion_range": [0, 0],
                "avoid_emotion_range": [0, 0],
            },
            "sample_size": n,
            "date_range": date_range.label(),
            "period": date_range.period,
        }

    def _correlation_insights(self, pairs: List[TradeEmotionPair], emotion_levels: List[Dict],
                              r: float, significant: bool) -> Dict[str, Any]:
        strength = stats.correlation_strength(r)
        if r >= 0.3:
            recommendation = ("Your returns improve as your emotion level rises. Favour "
                              "trading when you feel positive and composed.")
        elif r <= -0.3:
            recommendation = ("Your returns fall as your emotion level rises. Watch for "
                              "overconfidence before entering trades.")
        else:
            recommendation = ("Emotion level has little linear effect on your returns. "
                              "Use the per-level results to spot specific states to avoid.")

        best = max(emotion_levels, key=lambda l: l["average_return"])
        worst = min(emotion_levels, key=lambda l: l["average_return"])
        findings = [
            f"Best average return at emotion level {best['emotion_level']} "
            f"({best['average_return']:.2f} over {best['trade_count']} trades)",
            f"Worst average return at emotion level {worst['emotion_level']} "
            f"({worst['average_return']:.2f} over {worst['trade_count']} trades)",
            f"{strength} correlation (r = {r:.2f}), "
            f"{'statistically significant' if significant else 'not statistically significant'}",
        ]

        band_returns: Dict[str, List[float]] = defaultdict(list)
        for p in pairs:
            band_returns[stats.emotion_band(p.level)].append(p.trade_return)
        ranked = sorted(band_returns, key=lambda b: stats.mean(band_returns[b]), reverse=True)
        optimal = list(stats.EMOTION_BANDS[ranked[0]])
        avoid = list(stats.EMOTION_BANDS[ranked[-1]]) if len(ranked) > 1 else [0, 0]

        return {
            "correlation_strength": strength,
            "recommendation": recommendation,
            "key_findings": findings,
            "optimal_emotion_range": optimal,
            "avoid_emotion_range": avoid,
        }

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # WEEKLY TREND
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_weekly_emotion_trend(self, user_id: str, weeks: int = DEFAULT_WEEKS) -> List[Dict[str, Any]]:
        weeks = clamp_weeks(weeks)
        return self._cached_report(
            "weekly_trend", user_id, (weeks,), self._settings.weekly_trend_cache_ttl,
            lambda: self._compute_weekly_trend(user_id, weeks))

    def _compute_weekly_trend(self, user_id: str, weeks: int) -> List[Dict[str, Any]]:
        end = self._clock()
        start = end - timedelta(weeks=weeks)
        emotions = self._store.query_emotions(user_id, from_dt=start, to_dt=end)
        if len(emotions) < self._settings.min_trend_points:
            logger.info("weekly_trend_insufficient_data", user_id=user_id, checks=len(emotions))
            return []
        trades = self._store.query_trades(user_id, from_dt=start, to_dt=end)

        result: List[Dict[str, Any]] = []
        previous: Optional[Dict[str, Any]] = None
        for i in range(weeks):
            week_start = start + timedelta(weeks=i)
            week_end = week_start + timedelta(weeks=1)
            last_week = i == weeks - 1
            week_emotions = [e for e in emotions
                             if week_start <= e.timestamp < week_end or (last_week and e.timestamp == week_end)]
            week_trades = [t for t in trades
                           if week_start <= t.entry_time < week_end or (last_week and t.entry_time == week_end)]

            levels = [e.level for e in week_emotions]
            returns = [trade_return(t) for t in week_trades]
            avg_level = stats.mean(levels)
            volatility = stats.population_std(levels)
            direction, strength = self._week_direction(avg_level, volatility, levels, previous)

            entry = {
                "week_start_date": week_start.isoformat(),
                "week_end_date": week_end.isoformat(),
                "week_label": f"Week of {week_start.strftime('%b %d, %Y')}",
                "average_emotion_level": round(avg_level, 2),
                "emotion_volatility": round(volatility, 2),
                "win_rate": round(sum(1 for t in week_trades if t.is_win) / len(week_trades) * 100, 2)
                            if week_trades else 0.0,
                "average_return": round(stats.mean(returns), 4),
                "total_trades": len(week_trades),
                "emotion_checks": len(week_emotions),
                "trend_direction": direction,
                "trend_strength": strength,
                "daily_breakdown": self._daily_breakdown(week_emotions, week_trades),
            }
            result.append(entry)
            if levels:
                previous = entry

        logger.info("weekly_trend_computed", user_id=user_id, weeks=weeks, checks=len(emotions))
        return result

    @staticmethod
    def _week_direction(avg_level: float, volatility: float, levels: List[int],
                        previous: Optional[Dict[str, Any]]) -> Tuple[str, float]:
        if not levels:
            return "Stable", 0.0
        if volatility > VOLATILE_WEEK_STD:
            return "Volatile", round(volatility, 2)
        if previous is None:
            return "Stable", 0.0
        change = avg_level - previous["average_emotion_level"]
        if change > WEEK_CHANGE_THRESHOLD:
            return "Improving", round(abs(change), 2)
        if change < -WEEK_CHANGE_THRESHOLD:
            return "Declining", round(abs(change), 2)
        return "Stable", round(abs(change), 2)

    @staticmethod
    def _daily_breakdown(emotions: List[EmotionRecord], trades: List[TradeRecord]) -> List[Dict[str, Any]]:
        df = emotions_frame(emotions)
        if df.empty:
            return []
        daily = df.groupby("date").agg(average_emotion=("level", "mean"), check_count=("level", "size"))

        trade_returns: Dict[Any, List[float]] = defaultdict(list)
        for t in trades:
            trade_returns[t.entry_time.date()].append(trade_return(t))

        return [{
            "date": day.isoformat(),
            "average_emotion": round(float(row["average_emotion"]), 2),
            "check_count": int(row["check_count"]),
            "trade_performance": (round(stats.mean(trade_returns[day]), 4)
                                  if day in trade_returns else None),
        } for day, row in daily.iterrows()]

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # KEY INSIGHTS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_key_insights(self, user_id: str) -> Dict[str, Any]:
        return self._cached_report(
            "insights", user_id, (), self._settings.insights_cache_ttl,
            lambda: self._compute_insights(user_id))

    def _compute_insights(self, user_id: str) -> Dict[str, Any]:
        window = self._analysis_window()
        pairs, emotions, trades = self._load_pairs(user_id, window.start, window.end)

        if not emotions and not trades:
            insights = [insight_engine.keep_tracking_insight()]
        else:
            r = None
            if len(pairs) >= self._settings.min_trades_correlation:
                r = stats.pearson([p.level for p in pairs], [p.trade_return for p in pairs])
            insights = insight_engine.generate_insights(pairs, emotions, r)
            if not insights:
                insights = [insight_engine.keep_tracking_insight()]

        profile = insight_engine.trading_profile(pairs, emotions)
        logger.info("insights_computed", user_id=user_id, insights=len(insights),
                    pairs=len(pairs), profile=profile["profile_type"])
        return {
            "insights": insights,
            "trading_profile": profile,
            "recommendations": insight_engine.actionable_recommendations(insights, profile),
            "risk_assessment": insight_engine.risk_assessment(pairs, insights, profile),
            "progress": insight_engine.progress_metrics(pairs, emotions),
            "generated_at": self._clock().isoformat(),
            "analysis_period": window.label(),
        }

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # OPTIMAL CONDITIONS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_best_trading_conditions(self, user_id: str) -> Dict[str, Any]:
        return self._cached_report(
            "optimal_conditions", user_id, (), self._settings.optimal_conditions_cache_ttl,
            lambda: self._compute_conditions(user_id))

    def _compute_conditions(self, user_id: str) -> Dict[str, Any]:
        window = self._analysis_window()
        pairs, emotions, _ = self._load_pairs(user_id, window.start, window.end)
        latest = emotions[-1] if emotions else None
        n = len(pairs)

        if n < self._settings.min_trades_optimal:
            logger.info("optimal_conditions_insufficient_data", user_id=user_id, sample_size=n)
            return {
                "best_conditions": [],
                "conditions_to_avoid": [],
                "best_market_timing": {
                    "best_days_of_week": [], "best_hours_of_day": [], "best_months": [],
                    "day_performance": {}, "hour_performance": {}, "month_performance": {},
                },
                "emotional_readiness": conditions.empty_readiness(),
                "environmental_factors": {
                    "symbol_performance": {}, "market_condition_performance": {},
                    "favorable_market_conditions": [], "challenging_market_conditions": [],
                },
                "overall_optimization_score": 0.0,
                "sample_size": n,
                "message": (f"At least {self._settings.min_trades_optimal} trades matched to an "
                            f"emotion check-in are needed to identify optimal conditions."),
                "last_updated": self._clock().isoformat(),
            }

        min_trades = self._settings.min_trades_per_level
        readiness = conditions.emotional_readiness(pairs, latest)
        score = conditions.optimization_score(pairs, readiness)
        logger.info("optimal_conditions_computed", user_id=user_id, sample_size=n, score=score)
        return {
            "best_conditions": conditions.best_conditions(pairs, min_trades),
            "conditions_to_avoid": conditions.conditions_to_avoid(pairs, min_trades),
            "best_market_timing": conditions.market_timing(pairs, min_trades),
            "emotional_readiness": readiness,
            "environmental_factors": conditions.environmental_factors(pairs, min_trades),
            "overall_optimization_score": score,
            "sample_size": n,
            "last_updated": self._clock().isoformat(),
        }

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # COMPOSITE REPORTS
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_trading_recommendations(self, user_id: str, current_emotion_level: int = 5) -> Dict[str, Any]:
        """Readiness for trading right now, given the user's current emotion level."""
        if not 1 <= current_emotion_level <= 10:
            raise ValidationError("current_emotion_level must be between 1 and 10",
                                  field="current_emotion_level")
        insights = self.get_key_insights(user_id)
        optimal = self.get_best_trading_conditions(user_id)

        readiness = conditions.readiness_for_level(current_emotion_level, optimal["emotional_readiness"])
        if readiness == conditions.READINESS_AVOID:
            risk_level = "High"
        elif readiness == conditions.READINESS_CAUTION:
            risk_level = "Medium"
        else:
            risk_level = "Low"

        logger.info("recommendations_generated", user_id=user_id,
                    level=current_emotion_level, readiness=readiness)
        return {
            "current_emotion_level": current_emotion_level,
            "readiness_level": readiness,
            "should_trade": readiness == conditions.READINESS_OPTIMAL,
            "risk_level": risk_level,
            "recommendations": [r for r in insights["recommendations"] if r["priority"] <= 3],
            "optimal_conditions": optimal["best_conditions"][:3],
            "conditions_to_avoid": optimal["conditions_to_avoid"][:3],
            "market_timing": optimal["best_market_timing"],
            "confidence_score": optimal["overall_optimization_score"],
        }

    def get_pattern_dashboard(self, user_id: str, period: str = DEFAULT_PERIOD) -> Dict[str, Any]:
        period = normalize_period(period)
        end = self._clock()
        date_range = DateRange(end - timedelta(days=PERIOD_DAYS[period]), end,
                               period=period, rolling=True)

        correlation = self.get_emotion_performance_correlation(user_id, date_range)
        trends = self.get_weekly_emotion_trend(user_id, PERIOD_WEEKS[period])
        insights = self.get_key_insights(user_id)
        optimal = self.get_best_trading_conditions(user_id)

        high = {insight_engine.InsightPriority.HIGH.value, insight_engine.InsightPriority.CRITICAL.value}
        return {
            "period": period,
            "generated_at": end.isoformat(),
            "correlation": correlation,
            "weekly_trends": trends,
            "insights": insights,
            "optimal_conditions": optimal,
            "summary": {
                "total_insights": len(insights["insights"]),
                "high_priority_insights": sum(1 for i in insights["insights"] if i["priority"] in high),
                "correlation_strength": correlation["insights"]["correlation_strength"],
                "optimization_score": optimal["overall_optimization_score"],
                "recent_trend_direction": trends[-1]["trend_direction"] if trends else "Unknown",
            },
        }

    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
    # LIGHT REPORTS (uncached)
    # ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

    def get_emotion_patterns(self, user_id: str, start: Optional[datetime] = None,
                             end: Optional[datetime] = None) -> Dict[str, Any]:
        emotions = self._store.query_emotions(user_id, from_dt=start, to_dt=end)
        if not emotions:
            return {"average_emotion": 0.0, "most_common_emotion": 0,
                    "emotion_volatility": 0.0, "total_checks": 0}
        levels = [e.level for e in emotions]
        counts = Counter(levels)
        most_common = min(counts, key=lambda lvl: (-counts[lvl], lvl))
        return {
            "average_emotion": round(stats.mean(levels), 2),
            "most_common_emotion": most_common,
            "emotion_volatility": round(stats.population_std(levels), 2),
            "total_checks": len(levels),
        }

    def get_emotion_distribution(self, user_id: str, start: Optional[datetime] = None,
                                 end: Optional[datetime] = None) -> List[Dict[str, Any]]:
        emotions = self._store.query_emotions(user_id, from_dt=start, to_dt=end)
        counts = Counter(e.level for e in emotions)
        total = len(emotions)
        return [{
            "emotion_level": level,
            "count": counts.get(level, 0),
            "percentage": round(counts.get(level, 0) / total * 100, 2) if total else 0.0,
        } for level in range(1, 11)]

    def get_performance_by_emotion(self, user_id: str, start: Optional[datetime] = None,
                                   end: Optional[datetime] = None) -> Dict[str, Any]:
        """Win rate and average return per level with best / worst band."""
        end = end or self._clock()
        start = start or end - timedelta(days=self._settings.analysis_window_days)
        pairs, _, _ = self._load_pairs(user_id, start, end)
        if not pairs:
            return {"win_rate_by_emotion": {}, "avg_return_by_emotion": {},
                    "best_performing_emotion_range": "No data",
                    "worst_performing_emotion_range": "No data"}
        levels = insight_engine.performance_by_level(pairs)
        best = max(levels, key=lambda l: l["average_return"])
        worst = min(levels, key=lambda l: l["average_return"])
        return {
            "win_rate_by_emotion": {l["emotion_level"]: round(l["win_rate"] * 100, 2) for l in levels},
            "avg_return_by_emotion": {l["emotion_level"]: round(l["average_return"], 2) for l in levels},
            "best_performing_emotion_range": stats.emotion_band(best["emotion_level"]),
            "worst_performing_emotion_range": stats.emotion_band(worst["emotion_level"]),
        }

    def get_emotion_stats(self, user_id: str) -> Dict[str, Any]:
        emotions = self._store.query_emotions(user_id)
        now = self._clock()
        weekly = [e.level for e in emotions if e.timestamp >= now - timedelta(days=7)]
        monthly = [e.level for e in emotions if e.timestamp >= now - timedelta(days=30)]
        latest = emotions[-1] if emotions else None

        return {
            "total_checks": len(emotions),
            "average_level": round(stats.mean([e.level for e in emotions]), 2),
            "weekly_checks": len(weekly),
            "monthly_checks": len(monthly),
            "weekly_average": round(stats.mean(weekly), 2),
            "monthly_average": round(stats.mean(monthly), 2),
            "streak_days": self._streak_days(emotions, now),
            "latest_check": latest.to_dict() if latest else None,
            "context_distribution": dict(Counter(e.context.value for e in emotions)),
        }

    @staticmethod
    def _streak_days(emotions: List[EmotionRecord], now: datetime) -> int:
        """Consecutive days with a check-in, counting back from today."""
        days = {e.timestamp.date() for e in emotions}
        streak = 0
        today = now.date()
        while today - timedelta(days=streak) in days:
            streak += 1
        return streak
