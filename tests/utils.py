# tests/utils.py
"""
Single source of truth for test data, factories, and canonical payloads.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from digitizer.core.errors import InferenceError
from digitizer.gateway.gateway_base import JSONDict, JSONSchema, schema_title
from digitizer.gateway.mock_gateway import MockInferenceGateway
from digitizer.schemas.models import ComponentSubmission, PropertyInput
from digitizer.store.memory import InMemoryEntityStore
from digitizer.store.store_base import PROPERTY

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_ADDRESS = "123 Main St, Springfield, IL 62701"
DEFAULT_SQFT = 2000.0
DEFAULT_LOT_SIZE = 6500.0
DEFAULT_YEAR_BUILT = 1994

# Mock gateway cost basis for non-shared-land properties
MOCK_REBUILD_COST_PER_SQFT = 185.0
MOCK_LAND_VALUE = 95000.0

# Mock component profile: residual = replacement * 0.45
MOCK_RESIDUALS = {
    "roof": 6300.0,  # 14000 * 0.45
    "hvac": 4275.0,  # 9500 * 0.45
    "windows": 4050.0,  # 9000 * 0.45
}

DEFAULT_INSIGHTS: dict[str, Any] = {
    "market_trends": "Balanced market.",
    "roi_projection": {"one_year": 3.0, "five_year": 15.0, "ten_year": 35.0},
    "investment_risks": [],
    "investment_opportunities": ["Add ADU"],
    "comparable_properties": [],
    "value_drivers": ["Schools"],
    "maintenance_priorities": [],
}


# -----------------------------
# Factories
# -----------------------------


def make_property_input(**overrides: Any) -> PropertyInput:
    data: dict[str, Any] = {
        "address": DEFAULT_ADDRESS,
        "sqft": DEFAULT_SQFT,
        "lot_size": DEFAULT_LOT_SIZE,
        "bedrooms": 3,
        "bathrooms": 2,
        "year_built": DEFAULT_YEAR_BUILT,
        "property_type": "single_family",
    }
    data.update(overrides)
    return PropertyInput.model_validate(data)


def make_submission(component_type: str, *, photos: int = 1, serial: str | None = None) -> ComponentSubmission:
    return ComponentSubmission(
        component_type=component_type,
        serial_number=serial,
        photo_urls=[f"https://example.com/{component_type}/{i}.jpg" for i in range(photos)],
    )


def make_submissions(types: Iterable[str] = ("roof", "hvac", "windows")) -> list[ComponentSubmission]:
    """One photo per component; hvac also carries a serial number."""
    return [make_submission(t, serial="XR14-0042" if t == "hvac" else None) for t in types]


def make_stored_property(store: InMemoryEntityStore, **overrides: Any) -> str:
    """
    Seed a completed Property record directly (bypassing the pipeline).

    Defaults: 2000 sqft, $200/sqft, $100k land, residual $15k, rating 5
    -> appraised value 515,000.
    """
    fields: dict[str, Any] = {
        "address": DEFAULT_ADDRESS,
        "sqft": DEFAULT_SQFT,
        "lot_size": DEFAULT_LOT_SIZE,
        "year_built": DEFAULT_YEAR_BUILT,
        "property_type": "single_family",
        "rebuild_cost_per_sqft": 200.0,
        "land_value": 100000.0,
        "market_rating": 5,
        "total_asset_residual_value": 15000.0,
        "appraised_value": 515000.0,
        "insights": dict(DEFAULT_INSIGHTS),
        "status": "completed",
    }
    fields.update(overrides)
    return store.create(PROPERTY, fields)


# -----------------------------
# Test doubles
# -----------------------------


class FailOnComponentGateway(MockInferenceGateway):
    """Mock gateway whose component analysis fails for selected component types."""

    def __init__(self, failing_types: Sequence[str], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._failing_types = {t.lower() for t in failing_types}

    def infer(self, prompt: str, schema: JSONSchema, *, use_web_context: bool = False, evidence=None) -> JSONDict:
        if schema_title(schema) == "component_analysis":
            lowered = prompt.lower()
            if any(f"analyze this {t} component" in lowered for t in self._failing_types):
                super().infer(prompt, schema, use_web_context=use_web_context, evidence=evidence)
                raise InferenceError("vision backend unavailable")
        return super().infer(prompt, schema, use_web_context=use_web_context, evidence=evidence)


class FlakyStore(InMemoryEntityStore):
    """In-memory store that raises on create for one entity kind."""

    def __init__(self, failing_kind: str) -> None:
        super().__init__()
        self._failing_kind = failing_kind

    def create(self, kind: str, fields):
        if kind == self._failing_kind:
            raise ConnectionError(f"store unavailable for {kind}")
        return super().create(kind, fields)
