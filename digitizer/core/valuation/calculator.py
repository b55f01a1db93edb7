# digitizer/core/valuation/calculator.py
"""
Valuation Calculator

Purpose
-------
Turn five numbers into an appraised value:

    rebuild_cost      = sqft * rebuild_cost_per_sqft
    market_adjustment = (market_rating - 5) * 0.05     # -25% at 0, +25% at 10
    appraised_value   = (rebuild_cost + land_value + total_asset_residual_value) * (1 + market_adjustment)

Design
------
- Pure: no I/O, no rounding, no hidden state. The same inputs always produce
  bit-identical outputs, which is what lets a revaluation reproduce a cached
  appraised value exactly.
- The adjustment is computed as ``(rating - 5) * 5 / 100`` so whole-number
  ratings map to the correctly-rounded decimal (0.15, not 0.15000000000000002).
- Presentation rounding belongs to callers (report summaries, Markdown export).

Public API
----------
market_adjustment_for(market_rating) -> float
compute_valuation(sqft, rebuild_cost_per_sqft, land_value, total_asset_residual_value, market_rating)
  -> ValuationBreakdown
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

NEUTRAL_MARKET_RATING = 5
MIN_MARKET_RATING = 0
MAX_MARKET_RATING = 10
ADJUSTMENT_PER_POINT_PCT = 5


@dataclass(frozen=True)
class ValuationBreakdown:
    sqft: float
    rebuild_cost_per_sqft: float
    land_value: float
    total_asset_residual_value: float
    market_rating: int
    rebuild_cost: float
    market_adjustment: float
    appraised_value: float

    @property
    def market_adjustment_percent(self) -> float:
        return float((self.market_rating - NEUTRAL_MARKET_RATING) * ADJUSTMENT_PER_POINT_PCT)

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def _check_rating(market_rating: int) -> int:
    if isinstance(market_rating, bool) or not isinstance(market_rating, int):
        raise ValueError(f"market_rating must be an integer, got {market_rating!r}")
    if not (MIN_MARKET_RATING <= market_rating <= MAX_MARKET_RATING):
        raise ValueError(f"market_rating must be within {MIN_MARKET_RATING}..{MAX_MARKET_RATING}, got {market_rating}")
    return market_rating


def _check_amount(name: str, value: float, *, strictly_positive: bool = False) -> float:
    v = float(value)
    if math.isnan(v) or math.isinf(v):
        raise ValueError(f"{name} must be finite, got {value!r}")
    if strictly_positive and v <= 0:
        raise ValueError(f"{name} must be > 0, got {value!r}")
    if v < 0:
        raise ValueError(f"{name} must be >= 0, got {value!r}")
    return v


def market_adjustment_for(market_rating: int) -> float:
    """Fractional adjustment for a 0-10 market rating (neutral at 5)."""
    rating = _check_rating(market_rating)
    return (rating - NEUTRAL_MARKET_RATING) * ADJUSTMENT_PER_POINT_PCT / 100


def compute_valuation(
    sqft: float,
    rebuild_cost_per_sqft: float,
    land_value: float,
    total_asset_residual_value: float,
    market_rating: int,
) -> ValuationBreakdown:
    """
    Compute rebuild cost, market adjustment and appraised value.

    Raises:
        ValueError: sqft <= 0, a negative or non-finite amount, or a rating outside 0..10.
    """
    area = _check_amount("sqft", sqft, strictly_positive=True)
    cost = _check_amount("rebuild_cost_per_sqft", rebuild_cost_per_sqft)
    land = _check_amount("land_value", land_value)
    residual = _check_amount("total_asset_residual_value", total_asset_residual_value)
    adjustment = market_adjustment_for(market_rating)

    rebuild_cost = area * cost
    appraised = (rebuild_cost + land + residual) * (1 + adjustment)

    return ValuationBreakdown(
        sqft=area,
        rebuild_cost_per_sqft=cost,
        land_value=land,
        total_asset_residual_value=residual,
        market_rating=market_rating,
        rebuild_cost=rebuild_cost,
        market_adjustment=adjustment,
        appraised_value=appraised,
    )
