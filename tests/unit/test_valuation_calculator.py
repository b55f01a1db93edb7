# tests/unit/test_valuation_calculator.py
"""
Valuation Calculator

Purpose
-------
Pin the appraisal formula: neutral, floor and ceiling market ratings, the
worked 442,750 example, purity, and input validation.
"""

import math

import pytest

from digitizer.core.valuation import compute_valuation, market_adjustment_for


def test_worked_example_rating_8():
    v = compute_valuation(2000, 150, 80000, 5000, 8)
    assert v.rebuild_cost == 300000
    assert v.market_adjustment == 0.15
    assert v.appraised_value == pytest.approx(442750.0)
    assert v.market_adjustment_percent == 15.0


def test_neutral_rating_has_no_adjustment():
    v = compute_valuation(1850, 185, 95000, 14625, 5)
    assert v.market_adjustment == 0
    assert v.appraised_value == v.rebuild_cost + v.land_value + v.total_asset_residual_value


@pytest.mark.parametrize("rating, expected", [(0, -0.25), (10, 0.25), (3, -0.10), (7, 0.10)])
def test_market_adjustment_bounds_and_steps(rating, expected):
    assert market_adjustment_for(rating) == expected


def test_is_pure_and_idempotent():
    args = (1234.5, 187.25, 61725.0, 3333.33, 9)
    a = compute_valuation(*args)
    b = compute_valuation(*args)
    assert a == b
    assert a.appraised_value.hex() == b.appraised_value.hex()


def test_no_rounding_applied():
    v = compute_valuation(1001, 199.99, 0, 0.01, 5)
    assert v.appraised_value == 1001 * 199.99 + 0.01


@pytest.mark.parametrize("rating", [-1, 11, 5.5, True, "5"])
def test_rejects_out_of_range_or_non_integer_ratings(rating):
    with pytest.raises(ValueError):
        market_adjustment_for(rating)


@pytest.mark.parametrize(
    "args",
    [
        (0, 150, 80000, 0, 5),
        (-10, 150, 80000, 0, 5),
        (2000, -1, 80000, 0, 5),
        (2000, 150, -1, 0, 5),
        (2000, 150, 80000, -5, 5),
        (2000, math.nan, 80000, 0, 5),
        (2000, 150, math.inf, 0, 5),
    ],
)
def test_rejects_invalid_amounts(args):
    with pytest.raises(ValueError):
        compute_valuation(*args)


def test_as_dict_carries_breakdown():
    d = compute_valuation(1000, 100, 10000, 500, 6).as_dict()
    assert d["rebuild_cost"] == 100000
    assert d["market_rating"] == 6
    assert set(d) >= {"appraised_value", "market_adjustment", "land_value", "total_asset_residual_value"}
