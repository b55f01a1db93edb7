# tests/unit/test_inputs_loader.py
"""
Inputs loader

- Bare and structured JSON shapes both parse into AppInputs.
- Type-keyed component maps become submission lists.
- DIGITIZER_* env vars override run options; bad values are ignored.
- with_overrides never mutates its input.
"""

import json

import pytest

from digitizer.inputs.inputs import DigitizationRequest, InputsLoader, load_inputs
from digitizer.schemas.models import ComponentType
from tests.utils import DEFAULT_ADDRESS

BARE = {
    "property": {"address": DEFAULT_ADDRESS, "sqft": 1850, "lot_size": 6500},
    "components": [{"component_type": "roof", "photo_urls": ["https://x/roof.jpg"]}],
    "market_rating": 7,
}


def test_bare_shape_gets_default_run_options():
    cfg = InputsLoader().load_json(json.dumps(BARE))
    assert cfg.request.market_rating == 7
    assert cfg.request.components[0].component_type is ComponentType.roof
    assert cfg.run.store == "json"
    assert cfg.run.gateway == "mock"
    assert cfg.run.out == "property_report.md"


def test_structured_shape_with_type_keyed_components(tmp_path):
    payload = {
        "request": {
            "property": BARE["property"],
            "components": {"hvac": {"serial_number": "XR-14"}, "windows": {"photo_urls": ["https://x/w.jpg"]}},
        },
        "run": {"out": "out/report.md", "store": "memory", "max_concurrency": 2},
    }
    path = tmp_path / "request.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    cfg = load_inputs(path)
    types = {c.component_type for c in cfg.request.components}
    assert types == {ComponentType.hvac, ComponentType.windows}
    assert cfg.request.market_rating == 5
    assert cfg.run.store == "memory"
    assert cfg.run.max_concurrency == 2


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DIGITIZER_STORE", "Memory")
    monkeypatch.setenv("DIGITIZER_GATEWAY", "openai")
    monkeypatch.setenv("DIGITIZER_MAX_CONCURRENCY", "not-a-number")
    monkeypatch.setenv("DIGITIZER_OUT", "env.md")
    cfg = InputsLoader().load_json(json.dumps(BARE))
    assert cfg.run.store == "memory"
    assert cfg.run.gateway == "openai"
    assert cfg.run.max_concurrency == 0
    assert cfg.run.out == "env.md"


def test_unknown_env_backend_is_ignored(monkeypatch):
    monkeypatch.setenv("DIGITIZER_STORE", "postgres")
    cfg = InputsLoader().load_json(json.dumps(BARE))
    assert cfg.run.store == "json"


def test_with_overrides_is_non_destructive():
    loader = InputsLoader()
    cfg = loader.from_request(DigitizationRequest.model_validate(BARE))
    new = loader.with_overrides(cfg, out="x.md", store="memory")
    assert new.run.out == "x.md"
    assert new.run.store == "memory"
    assert cfg.run.out == "property_report.md"
    assert loader.with_overrides(cfg) is cfg


def test_invalid_override_value_raises():
    loader = InputsLoader()
    cfg = loader.from_request(DigitizationRequest.model_validate(BARE))
    with pytest.raises(ValueError, match="override"):
        loader.with_overrides(cfg, store="postgres")


@pytest.mark.parametrize("text", ["{not json", "[1, 2]", json.dumps({"property": {}, "market_rating": 11})])
def test_bad_payloads_raise_value_error(text):
    with pytest.raises(ValueError):
        InputsLoader().load_json(text)


def test_missing_and_non_json_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        InputsLoader().load(tmp_path / "nope.json")
    yaml_file = tmp_path / "request.yaml"
    yaml_file.write_text("property: {}", encoding="utf-8")
    with pytest.raises(ValueError, match="only .json"):
        InputsLoader().load(yaml_file)
