"""
Journal Data Models — Emotion check-ins, trades and their pairing
=================================================================

EmotionRecord    — A single emotion check-in (level 1–10) with context
TradeRecord      — A logged trade with outcome and optional P&L
TradeEmotionPair — A trade matched to the check-in that preceded it

All models are dataclasses with to_dict()/from_dict() for SQLite JSON storage.
Timestamps are timezone-aware UTC datetimes in memory and ISO-8601 strings
when serialised. Naive datetimes are treated as UTC.
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Any

from tradementor.utils.exceptions import ValidationError


MIN_EMOTION_LEVEL = 1
MAX_EMOTION_LEVEL = 10


# ── Enums ────────────────────────────────────────────────────

class EmotionContext(str, Enum):
    PRE_TRADE = "pre-trade"
    POST_TRADE = "post-trade"
    MARKET_EVENT = "market-event"


class TradeOutcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    LONG = "long"
    SHORT = "short"


class PrimaryEmotion(str, Enum):
    FEAR = "fear"
    GREED = "greed"
    CONFIDENCE = "confidence"
    ANXIETY = "anxiety"
    EXCITEMENT = "excitement"
    FRUSTRATION = "frustration"
    CALM = "calm"
    FOMO = "fomo"


# ── Time helpers ─────────────────────────────────────────────

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: Any) -> datetime:
    """Coerce a datetime or ISO-8601 string to an aware UTC datetime."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}", field="timestamp")
    if not isinstance(value, datetime):
        raise ValidationError(f"Expected datetime, got {type(value).__name__}", field="timestamp")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _opt_utc(value: Any) -> Optional[datetime]:
    return to_utc(value) if value not in (None, "") else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_value(enum_cls, value: Any, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}", field=field_name)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# EMOTION CHECK-INS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class EmotionRecord:
    """One emotion check-in. Level 1 = very negative, 10 = very positive."""
    user_id: str
    level: int
    context: EmotionContext = EmotionContext.PRE_TRADE
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=_new_id)
    notes: Optional[str] = None
    symbol: Optional[str] = None
    primary_emotion: Optional[str] = None   # PrimaryEmotion value
    market_conditions: Optional[str] = None

    def __post_init__(self):
        if not self.user_id:
            raise ValidationError("user_id is required", field="user_id")
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise ValidationError("Emotion level must be an integer", field="level")
        if not MIN_EMOTION_LEVEL <= self.level <= MAX_EMOTION_LEVEL:
            raise ValidationError(
                f"Emotion level must be between {MIN_EMOTION_LEVEL} and {MAX_EMOTION_LEVEL}",
                field="level")
        self.context = _enum_value(EmotionContext, self.context, "context")
        self.timestamp = to_utc(self.timestamp)
        if self.primary_emotion:
            self.primary_emotion = _enum_value(PrimaryEmotion, self.primary_emotion,
                                               "primary_emotion").value
        if self.symbol:
            self.symbol = self.symbol.upper()

    def to_dict(self) -> dict:
        d = asdict(self)
        d["context"] = self.context.value
        d["timestamp"] = _iso(self.timestamp)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "EmotionRecord":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRADES
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class TradeRecord:
    """A logged trade. P&L is optional; outcome is always present."""
    user_id: str
    symbol: str
    outcome: TradeOutcome
    entry_time: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=_new_id)
    pnl: Optional[float] = None
    trade_type: Optional[str] = None        # TradeType value
    exit_time: Optional[datetime] = None
    entry_price: Optional[float] = None
    exit_price: Optional[float] = None
    quantity: Optional[int] = None
    emotion_check_id: Optional[str] = None  # explicit link to a check-in

    def __post_init__(self):
        if not self.user_id:
            raise ValidationError("user_id is required", field="user_id")
        if not self.symbol:
            raise ValidationError("symbol is required", field="symbol")
        self.symbol = self.symbol.upper()
        self.outcome = _enum_value(TradeOutcome, self.outcome, "outcome")
        if self.trade_type:
            self.trade_type = _enum_value(TradeType, self.trade_type, "trade_type").value
        self.entry_time = to_utc(self.entry_time)
        self.exit_time = _opt_utc(self.exit_time)
        if self.pnl is not None:
            self.pnl = float(self.pnl)
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("quantity must be positive", field="quantity")

    @property
    def is_win(self) -> bool:
        return self.outcome == TradeOutcome.WIN

    @property
    def is_short(self) -> bool:
        return self.trade_type in (TradeType.SELL.value, TradeType.SHORT.value)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["outcome"] = self.outcome.value
        d["entry_time"] = _iso(self.entry_time)
        d["exit_time"] = _iso(self.exit_time)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "TradeRecord":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PAIRING
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class TradeEmotionPair:
    """A trade matched to the check-in that explains it."""
    trade: TradeRecord
    emotion: EmotionRecord
    trade_return: float = 0.0
    linked: bool = False        # True when matched via emotion_check_id

    @property
    def level(self) -> int:
        return self.emotion.level

    @property
    def is_win(self) -> bool:
        return self.trade.is_win

    @property
    def gap_minutes(self) -> float:
        return (self.trade.entry_time - self.emotion.timestamp).total_seconds() / 60


@dataclass
class DateRange:
    """
    Inclusive analysis window. period is a label: 7d, 30d, 90d, 1y, custom.
    rolling marks a window anchored on "now" rather than chosen by the caller.
    """
    start: datetime
    end: datetime
    period: str = "custom"
    rolling: bool = False

    def __post_init__(self):
        self.start = to_utc(self.start)
        self.end = to_utc(self.end)
        if self.start > self.end:
            raise ValidationError("start must not be after end", field="start")

    def label(self) -> str:
        return f"{self.start.date().isoformat()} to {self.end.date().isoformat()}"

    def cache_key(self) -> str:
        # Rolling windows share one entry per hour; caller-chosen ones key to the minute.
        fmt = "%Y%m%d%H" if self.rolling else "%Y%m%d%H%M"
        return f"{self.period}:{self.start.strftime(fmt)}-{self.end.strftime(fmt)}"
