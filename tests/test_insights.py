"""
Tests for the rule-based insight engine and the optimal-conditions builders,
using small hand-built journals so each rule fires (or not) predictably.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tradementor.analytics import conditions, insight_engine
from tradementor.analytics.frames import group_performance, hour_label, pairs_frame
from tradementor.journal.journal_models import EmotionRecord, TradeEmotionPair, TradeRecord

# A Monday
MONDAY = datetime(2025, 3, 3, 10, 0, tzinfo=timezone.utc)


def make_pair(level, outcome, ret, when, symbol="AAPL", market=None):
    emotion = EmotionRecord(user_id="u1", level=level, timestamp=when - timedelta(minutes=15),
                            market_conditions=market)
    trade = TradeRecord(user_id="u1", symbol=symbol, outcome=outcome, entry_time=when, pnl=ret)
    return TradeEmotionPair(trade=trade, emotion=emotion, trade_return=ret)


def batch(level, outcome, ret, count, start=MONDAY, step=timedelta(days=7), **kwargs):
    return [make_pair(level, outcome, ret, start + i * step, **kwargs) for i in range(count)]


def emotions_from(levels, start=MONDAY):
    return [EmotionRecord(user_id="u1", level=lvl, timestamp=start + timedelta(hours=i))
            for i, lvl in enumerate(levels)]


def titles(insights):
    return [i["title"] for i in insights]


class TestFrames:

    def test_group_performance(self):
        pairs = batch(8, "win", 50.0, 3) + batch(2, "loss", -30.0, 2)
        grouped = group_performance(pairs_frame(pairs), "level")
        assert list(grouped.index) == [2, 8]
        assert grouped.loc[8, "win_rate"] == 1.0
        assert grouped.loc[2, "avg_return"] == -30.0

    def test_min_trades_filter(self):
        pairs = batch(8, "win", 50.0, 3) + batch(2, "loss", -30.0, 2)
        assert list(group_performance(pairs_frame(pairs), "level", 3).index) == [8]

    def test_empty_frame(self):
        assert group_performance(pairs_frame([]), "level").empty

    @pytest.mark.parametrize("hour,label", [(0, "12 AM"), (9, "9 AM"), (12, "12 PM"), (15, "3 PM")])
    def test_hour_label(self, hour, label):
        assert hour_label(hour) == label


class TestInsightRules:

    def test_sweet_spot_and_danger_zone(self):
        pairs = batch(8, "win", 50.0, 6) + batch(3, "loss", -40.0, 3)
        insights = insight_engine.generate_insights(pairs, [])
        assert "Your Sweet Spot" in titles(insights)
        assert "Danger Zone Detected" in titles(insights)
        sweet = next(i for i in insights if i["title"] == "Your Sweet Spot")
        assert sweet["priority"] == "high"
        assert sweet["confidence"] == 70.0
        assert "level is 8" in sweet["description"]

    def test_sweet_spot_needs_five_trades(self):
        insights = insight_engine.generate_insights(batch(8, "win", 50.0, 4), [])
        assert "Your Sweet Spot" not in titles(insights)

    def test_danger_zone_needs_three_trades(self):
        insights = insight_engine.generate_insights(batch(2, "loss", -10.0, 2), [])
        assert "Danger Zone Detected" not in titles(insights)

    def test_improving_trend(self):
        levels = [lvl for lvl in range(1, 11) for _ in range(2)]
        insights = insight_engine.generate_insights([], emotions_from(levels))
        assert "Emotional Trend: Improving" in titles(insights)

    def test_declining_trend_is_high_priority(self):
        levels = [lvl for lvl in range(10, 0, -1) for _ in range(2)]
        insights = insight_engine.generate_insights([], emotions_from(levels))
        trend = next(i for i in insights if i["title"] == "Emotional Trend: Declining")
        assert trend["priority"] == "high"
        assert trend["type"] == "warning"

    def test_high_volatility(self):
        insights = insight_engine.generate_insights([], emotions_from([1, 10] * 5))
        assert "High Emotional Volatility" in titles(insights)
        assert not any(t.startswith("Emotional Trend") for t in titles(insights))

    def test_day_of_week_pattern(self):
        pairs = (batch(5, "win", 10.0, 3, start=MONDAY)
                 + batch(5, "loss", -10.0, 3, start=MONDAY + timedelta(days=4)))
        insights = insight_engine.generate_insights(pairs, [])
        day = next(i for i in insights if i["title"] == "Day-of-Week Pattern")
        assert "Mondays" in day["description"]
        assert "Fridays" in day["description"]
        assert "Time-of-Day Pattern" not in titles(insights)

    def test_time_of_day_pattern(self):
        pairs = (batch(5, "win", 10.0, 3, start=MONDAY.replace(hour=9))
                 + batch(5, "loss", -10.0, 3, start=MONDAY.replace(hour=15)))
        insights = insight_engine.generate_insights(pairs, [])
        hour = next(i for i in insights if i["title"] == "Time-of-Day Pattern")
        assert "9 AM" in hour["description"]
        assert "3 PM" in hour["description"]

    def test_correlation_finding_threshold(self):
        assert "Moderate Emotion-Performance Link" in titles(
            insight_engine.generate_insights([], [], correlation_r=0.55))
        assert insight_engine.generate_insights([], [], correlation_r=0.1) == []

    def test_sorted_by_priority_then_confidence(self):
        pairs = (batch(8, "win", 50.0, 6) + batch(3, "loss", -40.0, 3)
                 + batch(5, "win", 10.0, 3, start=MONDAY + timedelta(days=1)))
        insights = insight_engine.generate_insights(pairs, emotions_from([1, 10] * 5), 0.6)
        keys = [(insight_engine.PRIORITY_RANK[i["priority"]], i["confidence"]) for i in insights]
        assert keys == sorted(keys, reverse=True)


class TestProfileAndRisk:

    def test_stable_balanced_trader(self):
        pairs = batch(5, "win", 10.0, 4) + batch(6, "win", 10.0, 4)
        profile = insight_engine.trading_profile(pairs, emotions_from([5, 6] * 5))
        assert profile["profile_type"] == "Balanced"
        assert profile["emotional_stability"] == 90.0
        assert "Emotional stability" in profile["strengths"]

    def test_volatile_trader_is_emotional(self):
        profile = insight_engine.trading_profile([], emotions_from([1, 10] * 5))
        assert profile["profile_type"] == "Emotional"
        assert "Emotional stability" in profile["weak_areas"]

    def test_pressure_handling_from_low_states(self):
        pairs = batch(3, "win", 5.0, 2) + batch(2, "loss", -5.0, 2)
        profile = insight_engine.trading_profile(pairs, emotions_from([3, 2]))
        assert profile["pressure_handling"] == 50.0

    def test_recommendations_ordered_and_end_with_logging(self):
        pairs = batch(8, "win", 50.0, 6) + batch(3, "loss", -40.0, 3)
        insights = insight_engine.generate_insights(pairs, [])
        profile = insight_engine.trading_profile(pairs, emotions_from([8, 3] * 3))
        recs = insight_engine.actionable_recommendations(insights, profile)
        assert recs[0]["priority"] == 1
        assert recs[-1]["title"] == "Keep Logging Check-ins"
        assert [r["priority"] for r in recs] == sorted(r["priority"] for r in recs)

    def test_risk_levels(self):
        calm = batch(5, "win", 10.0, 6)
        calm_profile = insight_engine.trading_profile(calm, emotions_from([5] * 6))
        low = insight_engine.risk_assessment(calm, [], calm_profile)
        assert low["risk_level"] == "Low"
        assert low["protective_factors"]

        shaky = batch(2, "loss", -10.0, 6)
        shaky_insights = insight_engine.generate_insights(shaky, emotions_from([1, 10] * 5))
        shaky_profile = insight_engine.trading_profile(shaky, emotions_from([1, 10] * 5))
        high = insight_engine.risk_assessment(shaky, shaky_insights, shaky_profile)
        assert high["risk_level"] in ("High", "Very High")
        assert high["risk_score"] > low["risk_score"]

    def test_progress_metrics(self):
        early = batch(5, "loss", -10.0, 4, start=MONDAY)
        late = batch(5, "win", 10.0, 4, start=MONDAY + timedelta(days=70))
        progress = insight_engine.progress_metrics(early + late, [])
        assert progress["performance_improvement"] == 100.0
        assert progress["first_trade_date"] == MONDAY.isoformat()
        assert progress["monthly_progress"]["2025-03"] == 0.0
        assert progress["days_analyzed"] == 8


class TestConditions:

    def test_best_and_avoid(self):
        pairs = batch(8, "win", 50.0, 6) + batch(2, "loss", -30.0, 4)
        best = conditions.best_conditions(pairs, 3)
        avoid = conditions.conditions_to_avoid(pairs, 3)
        assert "Emotion level 8" in [c["condition_name"] for c in best]
        level_2 = next(c for c in avoid if c["condition_name"] == "Emotion level 2")
        assert level_2["severity"] == "Severe"
        assert level_2["win_rate"] == 0.0

    @pytest.mark.parametrize("win_rate,avg,severity", [
        (10.0, 5.0, "Severe"), (25.0, -1.0, "Severe"), (25.0, 1.0, "Moderate"), (35.0, 1.0, "Mild"),
    ])
    def test_severity(self, win_rate, avg, severity):
        assert conditions._severity(win_rate, avg) == severity

    def test_readiness_ranges(self):
        pairs = (batch(8, "win", 50.0, 5) + batch(5, "win", 5.0, 5)
                 + batch(2, "loss", -30.0, 5))
        latest = EmotionRecord(user_id="u1", level=9, timestamp=MONDAY)
        readiness = conditions.emotional_readiness(pairs, latest)
        assert readiness["optimal_emotion_range"] == [7, 10]
        assert readiness["caution_emotion_range"] == [4, 6]
        assert readiness["avoid_emotion_range"] == [1, 3]
        assert readiness["current_readiness_level"] == "Optimal"
        states = {s["emotion_level"]: s for s in readiness["emotional_states"]}
        assert states[8]["state_name"] == "Confident"
        assert states[2]["recommendation"] == "Stand aside or paper trade"

    def test_untested_band_is_never_optimal(self):
        pairs = batch(8, "loss", -5.0, 5) + batch(2, "loss", -30.0, 5)
        readiness = conditions.emotional_readiness(pairs, None)
        assert readiness["optimal_emotion_range"] == [7, 10]
        assert readiness["caution_emotion_range"] == [4, 6]
        assert readiness["current_readiness_level"] == "Unknown"

    def test_readiness_for_level(self):
        readiness = conditions.empty_readiness()
        assert conditions.readiness_for_level(5, readiness) == "Neutral"

    def test_market_timing_and_environment(self):
        pairs = (batch(5, "win", 10.0, 3, symbol="MSFT", market="trending")
                 + batch(5, "loss", -10.0, 3, start=MONDAY + timedelta(days=2), symbol="TSLA",
                         market="ranging"))
        timing = conditions.market_timing(pairs, 3)
        assert timing["best_days_of_week"][0] == "Monday"
        assert timing["day_performance"] == {"Monday": 100.0, "Wednesday": 0.0}
        env = conditions.environmental_factors(pairs, 3)
        assert env["symbol_performance"] == {"MSFT": 100.0, "TSLA": 0.0}
        assert env["favorable_market_conditions"] == ["trending"]
        assert env["challenging_market_conditions"] == ["ranging"]

    def test_optimization_score_bounds(self):
        perfect = batch(8, "win", 50.0, 10)
        readiness = {"optimal_emotion_range": [7, 10]}
        assert conditions.optimization_score(perfect, readiness) == 100.0
        assert conditions.optimization_score([], readiness) == 0.0
        poor = batch(2, "loss", -10.0, 10)
        assert conditions.optimization_score(poor, readiness) == 0.0
