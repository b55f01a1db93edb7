# tests/integration/test_pipeline_failures.py
"""
Digitization pipeline, failure semantics

- Validation problems raise before any write or gateway call.
- A failing component analysis degrades to defaults; the run still completes.
- A fatal stage raises PipelineStageError once, with the stage, the property
  id and the writes already committed; the Property stays in `processing`.
"""

import pytest

from digitizer.core.errors import InferenceError, PipelineStageError, PropertyValidationError
from digitizer.gateway.mock_gateway import MockInferenceGateway
from digitizer.orchestrators.pipeline import run_digitization
from digitizer.orchestrators.stages import PipelineStage
from digitizer.schemas.defaults import COMPONENT_DEFAULTS
from digitizer.store import COMPONENT, PROPERTY, REPORT, get_record
from tests.utils import MOCK_RESIDUALS, FailOnComponentGateway, FlakyStore, make_property_input, make_submissions

pytestmark = pytest.mark.integration


@pytest.mark.parametrize(
    "overrides, missing",
    [
        ({"address": ""}, "address"),
        ({"sqft": None}, "sqft"),
        ({"sqft": -10}, "sqft"),
        ({"lot_size": None}, "lot_size"),
    ],
)
def test_validation_errors_write_nothing(gateway, store, overrides, missing):
    seen = []
    with pytest.raises(PropertyValidationError) as ei:
        run_digitization(
            make_property_input(**overrides), make_submissions(), gateway=gateway, store=store, on_stage=seen.append
        )
    assert missing in ei.value.missing
    assert store.filter(PROPERTY) == []
    assert gateway.calls == []
    assert seen == [PipelineStage.validating, PipelineStage.failed]


@pytest.mark.parametrize("rating", [-1, 11, 5.5, "7"])
def test_bad_market_rating_is_validation_error(gateway, store, rating):
    with pytest.raises(PropertyValidationError) as ei:
        run_digitization(make_property_input(), [], rating, gateway=gateway, store=store)
    assert ei.value.missing == ["market_rating"]
    assert store.filter(PROPERTY) == []


def test_unknown_component_type_is_validation_error(gateway, store):
    with pytest.raises(PropertyValidationError):
        run_digitization(make_property_input(), [{"component_type": "chimney"}], gateway=gateway, store=store)
    assert store.filter(PROPERTY) == []


def test_component_failure_degrades_and_run_completes(store):
    gw = FailOnComponentGateway(["hvac"])
    result = run_digitization(make_property_input(), make_submissions(), gateway=gw, store=store)

    assert result.degraded_components == ["hvac"]
    components = {c["component_type"]: c for c in store.filter(COMPONENT)}
    assert set(components) == {"roof", "hvac", "windows"}
    hvac = components["hvac"]
    assert hvac["residual_value"] == COMPONENT_DEFAULTS["residual_value"]
    assert hvac["current_condition"] == "good"
    assert hvac["installation_year"] == 1994

    expected_residual = MOCK_RESIDUALS["roof"] + MOCK_RESIDUALS["windows"] + COMPONENT_DEFAULTS["residual_value"]
    prop = get_record(store, PROPERTY, result.property_id)
    assert prop["status"] == "completed"
    assert prop["total_asset_residual_value"] == pytest.approx(expected_residual)


def test_enrichment_failure_uses_defaults(store):
    gw = MockInferenceGateway(fail={"cost_basis"})
    result = run_digitization(make_property_input(), [], gateway=gw, store=store)
    prop = get_record(store, PROPERTY, result.property_id)
    assert prop["rebuild_cost_per_sqft"] == 200.0
    assert prop["land_value"] == 100000.0
    assert result.appraised_value == pytest.approx(2000 * 200.0 + 100000.0)


def test_insights_failure_leaves_processing_property(store):
    gw = MockInferenceGateway(fail={"property_insights"})
    seen = []
    with pytest.raises(PipelineStageError) as ei:
        run_digitization(make_property_input(), make_submissions(), gateway=gw, store=store, on_stage=seen.append)

    err = ei.value
    assert err.stage == PipelineStage.generating_insights.value
    assert isinstance(err.__cause__, InferenceError)
    assert err.committed[0] == f"Property:{err.property_id}"
    assert sum(1 for entry in err.committed if entry.startswith("Component:")) == 3
    assert seen[-1] is PipelineStage.failed

    prop = get_record(store, PROPERTY, err.property_id)
    assert prop["status"] == "processing"
    assert prop.get("insights") is None
    assert prop.get("appraised_value") is None
    assert len(store.filter(COMPONENT, {"property_id": err.property_id})) == 3
    assert store.filter(REPORT) == []


def test_appraisal_failure_keeps_inspection_report(store):
    gw = MockInferenceGateway(fail={"appraisal_report"})
    with pytest.raises(PipelineStageError) as ei:
        run_digitization(make_property_input(), [], gateway=gw, store=store)
    assert ei.value.stage == "compiling_appraisal_report"
    reports = store.filter(REPORT)
    assert [r["report_type"] for r in reports] == ["inspection"]
    assert f"Report:{reports[0]['id']}" in ei.value.committed


def test_component_persistence_failure_is_fatal(gateway):
    store = FlakyStore(COMPONENT)
    with pytest.raises(PipelineStageError) as ei:
        run_digitization(make_property_input(), make_submissions(), gateway=gateway, store=store)
    err = ei.value
    assert err.stage == "analyzing_components"
    assert isinstance(err.__cause__, ConnectionError)
    assert get_record(store, PROPERTY, err.property_id)["status"] == "processing"
    assert store.filter(COMPONENT) == []
    assert err.committed == [f"Property:{err.property_id}"]
    assert gateway.calls_for("property_insights") == []


def test_property_creation_failure_has_no_property_id(gateway):
    store = FlakyStore(PROPERTY)
    with pytest.raises(PipelineStageError) as ei:
        run_digitization(make_property_input(), make_submissions(), gateway=gateway, store=store)
    assert ei.value.stage == "creating_property"
    assert ei.value.property_id is None
    assert ei.value.committed == []
    assert gateway.calls_for("component_analysis") == []
