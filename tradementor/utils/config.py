from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_path: str = Field(default="data/tradementor.db", description="SQLite journal database path")

    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=5000, description="HTTP port")

    emotion_lookback_hours: float = Field(default=6.0, description="Max gap between a check-in and the trade it explains")
    min_trades_correlation: int = Field(default=10, description="Matched trades required for correlation analysis")
    min_trades_optimal: int = Field(default=20, description="Matched trades required for optimal-conditions analysis")
    min_trend_points: int = Field(default=3, description="Emotion checks required for trend analysis")
    min_trades_per_level: int = Field(default=3, description="Trades required before a level counts as a condition")
    significance_alpha: float = Field(default=0.05, description="p-value threshold for significance")
    significance_min_samples: int = Field(default=30, description="Sample size required for significance")
    analysis_window_days: int = Field(default=90, description="Look-back window for insights and conditions")

    correlation_cache_ttl: float = Field(default=1800.0, description="Correlation report TTL in seconds")
    weekly_trend_cache_ttl: float = Field(default=3600.0, description="Weekly trend report TTL in seconds")
    insights_cache_ttl: float = Field(default=7200.0, description="Key insights report TTL in seconds")
    optimal_conditions_cache_ttl: float = Field(default=7200.0, description="Optimal conditions report TTL in seconds")
    heavy_concurrency_limit: int = Field(default=2, description="Concurrent heavy report computations")

    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/tradementor.log", description="Log file path")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    global _settings
    _settings = Settings()
    return _settings
