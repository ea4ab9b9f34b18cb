from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field

from tradementor.journal.journal_models import EmotionContext, PrimaryEmotion, TradeOutcome, TradeType


class EmotionCheckRequest(BaseModel):
    level: int = Field(ge=1, le=10)
    context: EmotionContext = EmotionContext.PRE_TRADE
    timestamp: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    symbol: Optional[str] = Field(default=None, max_length=20)
    primary_emotion: Optional[PrimaryEmotion] = None
    market_conditions: Optional[str] = Field(default=None, max_length=100)


class TradeRequest(BaseModel):
    symbol: str = Field(min_length=1, max_length=20)
    outcome: TradeOutcome
    pnl: Optional[float] = None
    trade_type: Optional[TradeType] = None
    entry_time: Optional[datetime] = None
    exit_time: Optional[datetime] = None
    entry_price: Optional[float] = Field(default=None, gt=0)
    exit_price: Optional[float] = Field(default=None, gt=0)
    quantity: Optional[int] = Field(default=None, gt=0)
    emotion_check_id: Optional[str] = None


def api_success(data: Any = None, message: str = "Success") -> dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
        "errors": [],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def api_error(message: str, errors: Optional[list[str]] = None) -> dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "data": None,
        "errors": errors or [],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
