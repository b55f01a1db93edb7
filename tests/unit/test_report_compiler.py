# tests/unit/test_report_compiler.py
"""
Report Compiler

The appraisal's numeric fields must come from the calculator regardless of
what the gateway returns; the inspection summary is the executive summary.
"""

import pytest

from digitizer.agents.report_compiler import (
    change_percent,
    compile_appraisal_report,
    compile_inspection_report,
)
from digitizer.core.errors import InferenceError
from digitizer.core.valuation import compute_valuation
from digitizer.gateway.mock_gateway import MockInferenceGateway
from digitizer.schemas.models import Component, InsightsBundle, ReportType
from tests.utils import make_property_input


def _component(kind: str, condition: str = "good") -> Component:
    return Component(
        property_id="p1",
        component_type=kind,
        installation_year=2010,
        current_condition=condition,
        estimated_lifetime_years=20,
        replacement_cost=10000,
        residual_value=4000,
        maintenance_notes="ok",
    )


def test_inspection_report_uses_executive_summary(gateway):
    report = compile_inspection_report(
        make_property_input(), [_component("roof"), _component("ac", "fair")], gateway, property_id="p1"
    )
    assert report.report_type is ReportType.inspection
    assert report.property_id == "p1"
    assert report.summary == report.report_data["executive_summary"]
    assert "roof (good), ac (fair)" in gateway.calls[0].prompt


def test_inspection_summary_empty_when_absent():
    gw = MockInferenceGateway(responses={"inspection_report": {"overall_rating": "Fair"}})
    report = compile_inspection_report(make_property_input(), [], gw, property_id="p1")
    assert report.summary == ""
    assert report.report_data == {"component_assessments": [], "overall_rating": "Fair"}


def test_appraisal_numbers_are_overwritten(gateway):
    v = compute_valuation(2000, 150, 80000, 5000, 8)
    report = compile_appraisal_report(make_property_input(), v, InsightsBundle(), gateway, property_id="p1")
    data = report.report_data
    assert data["appraised_value"] == v.appraised_value
    assert data["rebuild_cost"] == 300000
    assert data["land_value"] == 80000
    assert data["asset_residual_value"] == 5000
    assert data["market_adjustment_percent"] == 15.0
    assert "previous_appraised_value" not in data
    assert "changes_summary" not in data
    assert report.summary == f"Appraised Value: ${v.appraised_value:,.2f}"
    assert gateway.calls[0].use_web_context is False


def test_appraisal_prompt_labels_shared_land_for_condos(gateway):
    v = compute_valuation(1200, 165, 60000, 0, 5)
    compile_appraisal_report(make_property_input(property_type="condo", sqft=1200), v, InsightsBundle(), gateway, property_id="p1")
    assert "Shared Land/Common Area Value: $60,000.00" in gateway.calls[0].prompt


def test_revaluation_variant_adds_change_fields(gateway):
    v = compute_valuation(2000, 150, 80000, 5000, 3)
    report = compile_appraisal_report(
        make_property_input(),
        v,
        InsightsBundle(market_trends="Cooling"),
        gateway,
        property_id="p1",
        previous_appraised_value=442750.0,
        additional_context="Roof leak found",
        revaluation=True,
    )
    data = report.report_data
    assert data["previous_appraised_value"] == 442750.0
    assert data["change_percent"] == pytest.approx((v.appraised_value - 442750.0) / 442750.0 * 100)
    assert data["changes_summary"]
    prompt = gateway.calls[0].prompt
    assert "Previous Appraised Value: $442,750.00" in prompt
    assert "Roof leak found" in prompt


def test_revaluation_without_previous_value_has_null_change(gateway):
    v = compute_valuation(1000, 100, 1000, 0, 5)
    report = compile_appraisal_report(
        make_property_input(), v, InsightsBundle(), gateway, property_id="p1", revaluation=True
    )
    assert report.report_data["previous_appraised_value"] is None
    assert report.report_data["change_percent"] is None
    assert "Previous Appraised Value: N/A" in gateway.calls[0].prompt


def test_garbage_numbers_from_gateway_do_not_break_compilation():
    gw = MockInferenceGateway(
        responses={"appraisal_report": {"appraised_value": "a lot", "valuation_methodology": "Cost approach"}}
    )
    v = compute_valuation(1000, 100, 1000, 0, 5)
    report = compile_appraisal_report(make_property_input(), v, InsightsBundle(), gw, property_id="p1")
    assert report.report_data["appraised_value"] == v.appraised_value
    assert report.report_data["valuation_methodology"] == "Cost approach"


def test_appraisal_failure_is_raised():
    gw = MockInferenceGateway(fail={"appraisal_report"})
    v = compute_valuation(1000, 100, 1000, 0, 5)
    with pytest.raises(InferenceError):
        compile_appraisal_report(make_property_input(), v, InsightsBundle(), gw, property_id="p1")


@pytest.mark.parametrize("new, prev, expected", [(110.0, 100.0, 10.0), (90.0, 100.0, -10.0), (5.0, None, None), (5.0, 0, None)])
def test_change_percent(new, prev, expected):
    assert change_percent(new, prev) == (pytest.approx(expected) if expected is not None else None)
