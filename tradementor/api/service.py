from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

from tradementor.analytics.pattern_service import PatternService
from tradementor.api.schemas import EmotionCheckRequest, TradeRequest
from tradementor.journal.journal_models import DateRange, EmotionRecord, TradeRecord, utcnow
from tradementor.journal.journal_store import JournalStore
from tradementor.utils.config import Settings, get_settings
from tradementor.utils.exceptions import NotFoundError, ValidationError
from tradementor.utils.logger import get_logger, sanitize_log_data

logger = get_logger(__name__)


class JournalService:
    """Owns the journal store and the pattern analytics built on it."""

    _instance: Optional[JournalService] = None

    def __init__(self, store: Optional[JournalStore] = None,
                 patterns: Optional[PatternService] = None,
                 settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._store = store or JournalStore(self._settings.db_path)
        self._patterns = patterns or PatternService(self._store, settings=self._settings)

    @classmethod
    def get_instance(cls) -> JournalService:
        if cls._instance is None:
            cls._instance = JournalService()
            logger.info("journal_service_created", db_path=cls._instance._settings.db_path)
        return cls._instance

    @property
    def store(self) -> JournalStore:
        return self._store

    @property
    def patterns(self) -> PatternService:
        return self._patterns

    # ─── Ingestion ──────────────────────────────────────────────

    def record_emotion(self, user_id: str, req: EmotionCheckRequest) -> dict[str, Any]:
        emotion = EmotionRecord(
            user_id=user_id,
            level=req.level,
            context=req.context,
            timestamp=req.timestamp or utcnow(),
            notes=req.notes,
            symbol=req.symbol,
            primary_emotion=req.primary_emotion.value if req.primary_emotion else None,
            market_conditions=req.market_conditions,
        )
        self._store.record_emotion(emotion)
        logger.info("emotion_recorded", user_id=user_id,
                    **sanitize_log_data({"id": emotion.id, "level": emotion.level,
                                         "context": emotion.context.value, "notes": emotion.notes}))
        return emotion.to_dict()

    def record_trade(self, user_id: str, req: TradeRequest) -> dict[str, Any]:
        if req.emotion_check_id:
            linked = self._store.get_emotion(req.emotion_check_id)
            if linked is None or linked.user_id != user_id:
                raise ValidationError("emotion_check_id does not reference one of your check-ins",
                                      field="emotion_check_id")
        trade = TradeRecord(
            user_id=user_id,
            symbol=req.symbol,
            outcome=req.outcome,
            entry_time=req.entry_time or utcnow(),
            pnl=req.pnl,
            trade_type=req.trade_type.value if req.trade_type else None,
            exit_time=req.exit_time,
            entry_price=req.entry_price,
            exit_price=req.exit_price,
            quantity=req.quantity,
            emotion_check_id=req.emotion_check_id,
        )
        self._store.record_trade(trade)
        logger.info("trade_recorded", user_id=user_id, trade_id=trade.id,
                    symbol=trade.symbol, outcome=trade.outcome.value)
        return trade.to_dict()

    # ─── Reads ──────────────────────────────────────────────────

    def get_emotion(self, user_id: str, emotion_id: str) -> dict[str, Any]:
        emotion = self._store.get_emotion(emotion_id)
        if emotion is None or emotion.user_id != user_id:
            raise NotFoundError(f"Emotion check '{emotion_id}' not found")
        return emotion.to_dict()

    def get_trade(self, user_id: str, trade_id: str) -> dict[str, Any]:
        trade = self._store.get_trade(trade_id)
        if trade is None or trade.user_id != user_id:
            raise NotFoundError(f"Trade '{trade_id}' not found")
        return trade.to_dict()

    def get_emotion_stats(self, user_id: str) -> dict[str, Any]:
        return self._patterns.get_emotion_stats(user_id)

    def get_health(self) -> dict[str, Any]:
        return {"status": "ok", "database": self._store.get_db_stats(),
                "cache": self._patterns.cache.stats()}

    # ─── Pattern reports ────────────────────────────────────────

    def get_correlation(self, user_id: str, start: Optional[datetime], end: Optional[datetime],
                        period: str = "custom", default_days: int = 30) -> dict[str, Any]:
        rolling = start is None and end is None
        end = end or self._patterns.now()
        start = start or end - timedelta(days=default_days)
        return self._patterns.get_emotion_performance_correlation(
            user_id, DateRange(start, end, period, rolling=rolling))

    def get_emotion_level_performance(self, user_id: str, start: Optional[datetime],
                                      end: Optional[datetime]) -> list[dict[str, Any]]:
        correlation = self.get_correlation(user_id, start, end, default_days=90)
        return correlation["emotion_levels"]

    def get_weekly_trend(self, user_id: str, weeks: int) -> list[dict[str, Any]]:
        return self._patterns.get_weekly_emotion_trend(user_id, weeks)

    def get_insights(self, user_id: str) -> dict[str, Any]:
        return self._patterns.get_key_insights(user_id)

    def get_optimal_conditions(self, user_id: str) -> dict[str, Any]:
        return self._patterns.get_best_trading_conditions(user_id)

    def get_dashboard(self, user_id: str, period: str) -> dict[str, Any]:
        return self._patterns.get_pattern_dashboard(user_id, period)

    def get_recommendations(self, user_id: str, level: int) -> dict[str, Any]:
        return self._patterns.get_trading_recommendations(user_id, level)

    def get_emotion_patterns(self, user_id: str, start: Optional[datetime],
                             end: Optional[datetime]) -> dict[str, Any]:
        return self._patterns.get_emotion_patterns(user_id, start, end)

    def get_emotion_distribution(self, user_id: str, start: Optional[datetime],
                                 end: Optional[datetime]) -> list[dict[str, Any]]:
        return self._patterns.get_emotion_distribution(user_id, start, end)

    def get_pattern_analysis(self, user_id: str, start: Optional[datetime],
                             end: Optional[datetime], weeks: int = 4) -> dict[str, Any]:
        """Emotion patterns, per-level performance, weekly trend and distribution in one call."""
        return {
            "emotion_patterns": self._patterns.get_emotion_patterns(user_id, start, end),
            "performance_correlation": self._patterns.get_performance_by_emotion(user_id, start, end),
            "weekly_trends": self._patterns.get_weekly_emotion_trend(user_id, weeks),
            "emotion_distribution": self._patterns.get_emotion_distribution(user_id, start, end),
        }
