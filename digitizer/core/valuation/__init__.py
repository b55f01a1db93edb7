# digitizer/core/valuation/__init__.py

from .calculator import (
    NEUTRAL_MARKET_RATING,
    ValuationBreakdown,
    compute_valuation,
    market_adjustment_for,
)

__all__ = [
    "NEUTRAL_MARKET_RATING",
    "ValuationBreakdown",
    "compute_valuation",
    "market_adjustment_for",
]
