"""
Descriptive statistics used by the pattern analytics.

All functions take plain float sequences and return plain floats/dicts so
results serialise straight into report JSON. Degenerate inputs (too few
samples, zero variance) return neutral values instead of raising.
"""

from __future__ import annotations

import math
from typing import Dict, List, Sequence

import numpy as np
from scipy.stats import norm


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation (n-1). Zero for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def population_std(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=0))


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient, clipped to [-1, 1]."""
    if len(x) != len(y):
        raise ValueError(f"length mismatch: {len(x)} vs {len(y)}")
    if len(x) < 2:
        return 0.0
    xa = np.asarray(x, dtype=float)
    ya = np.asarray(y, dtype=float)
    dx = xa - xa.mean()
    dy = ya - ya.mean()
    ss_x = float(np.dot(dx, dx))
    ss_y = float(np.dot(dy, dy))
    if ss_x == 0 or ss_y == 0:
        return 0.0
    r = float(np.dot(dx, dy)) / math.sqrt(ss_x * ss_y)
    return max(-1.0, min(1.0, r))


def correlation_p_value(r: float, n: int) -> float:
    """
    Two-tailed p-value for a correlation coefficient.

    Uses t = r * sqrt((n-2) / (1-r^2)) and a normal approximation of the
    t-distribution, which understates p for small n.
    """
    if n <= 2:
        return 1.0
    if abs(r) >= 1.0:
        return 0.0
    t = r * math.sqrt((n - 2) / (1 - r * r))
    p = 2 * float(norm.sf(abs(t)))
    return max(0.0, min(1.0, p))


def sharpe_ratio(returns: Sequence[float]) -> float:
    """Per-trade Sharpe-like ratio: mean / sample std. Not annualised."""
    std = sample_std(returns)
    return mean(returns) / std if std > 0 else 0.0


def max_drawdown(returns: Sequence[float]) -> float:
    """Largest peak-to-trough fall of the cumulative return curve (>= 0)."""
    if len(returns) == 0:
        return 0.0
    equity = np.cumsum(np.asarray(returns, dtype=float))
    peaks = np.maximum.accumulate(np.concatenate(([0.0], equity)))[1:]
    return float(max(0.0, np.max(peaks - equity)))


def profit_factor(returns: Sequence[float]) -> float:
    """Gross gains / gross losses. Zero when there are no losses."""
    gains = sum(r for r in returns if r > 0)
    losses = sum(-r for r in returns if r < 0)
    return gains / losses if losses > 0 else 0.0


def win_rate_confidence_interval(wins: int, total: int, z: float = 1.96) -> float:
    """Normal-approximation half-width of the win rate, in percent."""
    if total == 0:
        return 0.0
    p = wins / total
    return z * math.sqrt(p * (1 - p) / total) * 100


def linear_trend(values: Sequence[float]) -> Dict[str, float]:
    """
    Least-squares trend of values against their index.

    Direction: improving (slope > 0.1), declining (< -0.1), stable, or
    insufficient_data for fewer than 3 points. Confidence is R² scaled by
    sample size (full weight at 20 points), as a 0-100 percentage.
    """
    n = len(values)
    if n < 3:
        return {"direction": "insufficient_data", "slope": 0.0,
                "intercept": 0.0, "confidence": 0.0}

    y = np.asarray(values, dtype=float)
    x = np.arange(n, dtype=float)
    slope, intercept = np.polyfit(x, y, 1)
    slope, intercept = float(slope), float(intercept)

    total_ss = float(np.sum((y - y.mean()) ** 2))
    residual_ss = float(np.sum((y - (slope * x + intercept)) ** 2))
    r_squared = 1 - residual_ss / total_ss if total_ss > 0 else 0.0
    confidence = max(0.0, min(100.0, r_squared * 100 * min(1.0, n / 20.0)))

    if slope > 0.1:
        direction = "improving"
    elif slope < -0.1:
        direction = "declining"
    else:
        direction = "stable"

    return {"direction": direction, "slope": slope,
            "intercept": intercept, "confidence": confidence}


def correlation_strength(r: float) -> str:
    abs_r = abs(r)
    if abs_r >= 0.7:
        return "Strong"
    if abs_r >= 0.5:
        return "Moderate"
    if abs_r >= 0.3:
        return "Weak"
    return "Very Weak"


def insight_confidence(sample_size: int) -> float:
    """Confidence (%) attached to a rule-based insight backed by N trades."""
    if sample_size < 3:
        return 30.0
    if sample_size < 5:
        return 50.0
    if sample_size < 10:
        return 70.0
    if sample_size < 20:
        return 85.0
    return 95.0


EMOTION_BANDS: Dict[str, List[int]] = {
    "Low (1-3)": [1, 3],
    "Medium (4-6)": [4, 6],
    "High (7-10)": [7, 10],
}


def emotion_band(level: int) -> str:
    for name, (lo, hi) in EMOTION_BANDS.items():
        if lo <= level <= hi:
            return name
    return "Unknown"
