# tests/gateway/test_gateway_contract.py
"""
Gateway contract

- infer_object normalizes any gateway failure to InferenceError.
- Non-dict results are rejected.
- The mock routes on schema title and honours overrides and failures.
"""

import pytest

from digitizer.core.errors import InferenceError
from digitizer.gateway import MockInferenceGateway, get_gateway, infer_object, positive_number


class _ListGateway:
    def infer(self, prompt, schema, *, use_web_context=False, evidence=None):
        return ["not", "a", "dict"]


class _CrashingGateway:
    def infer(self, prompt, schema, *, use_web_context=False, evidence=None):
        raise TimeoutError("read timed out")


def test_non_dict_result_is_inference_error():
    with pytest.raises(InferenceError, match="expected an object"):
        infer_object(_ListGateway(), "p", {"title": "cost_basis"})


def test_foreign_exceptions_become_inference_errors():
    with pytest.raises(InferenceError) as ei:
        infer_object(_CrashingGateway(), "p", {"title": "cost_basis"})
    assert isinstance(ei.value.__cause__, TimeoutError)


def test_mock_routes_by_title_and_records_calls():
    gw = MockInferenceGateway(responses={"cost_basis": {"rebuild_cost_per_sqft": 1.5}})
    assert infer_object(gw, "p", {"title": "cost_basis"}) == {"rebuild_cost_per_sqft": 1.5}
    assert infer_object(gw, "p", {"title": "something_else"}) == {}
    assert [c.title for c in gw.calls] == ["cost_basis", "something_else"]


def test_mock_override_is_copied_per_call():
    payload = {"market_trends": "Flat", "value_drivers": ["Schools"]}
    gw = MockInferenceGateway(responses={"property_insights": payload})
    first = gw.infer("p", {"title": "property_insights"})
    first["value_drivers"].append("mutated")
    assert gw.infer("p", {"title": "property_insights"})["value_drivers"] == ["Schools"]


def test_mock_failure():
    gw = MockInferenceGateway(fail={"appraisal_report"})
    with pytest.raises(InferenceError, match="appraisal_report"):
        gw.infer("p", {"title": "appraisal_report"})
    assert len(gw.calls_for("appraisal_report")) == 1


@pytest.mark.parametrize(
    "value, expected",
    [(5, 5.0), ("12.5", 12.5), (0, None), (-3, None), (True, None), ("abc", None), (None, None), (float("nan"), None)],
)
def test_positive_number(value, expected):
    assert positive_number(value) == expected


def test_get_gateway(monkeypatch):
    assert isinstance(get_gateway("mock"), MockInferenceGateway)
    monkeypatch.setenv("DIGITIZER_GATEWAY", "MOCK")
    assert isinstance(get_gateway(), MockInferenceGateway)
    with pytest.raises(ValueError):
        get_gateway("bard")


def test_get_gateway_openai_requires_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        get_gateway("openai")
