# digitizer/gateway/mock_gateway.py
"""
Mock Inference Gateway

Purpose
-------
Deterministic, offline stand-in for the inference service so the full
pipeline runs in tests, CI and local demos without network access.

Design
------
- Routes on the schema "title" each stage sets (cost_basis, component_analysis,
  property_insights, inspection_report, appraisal_report, address_validation,
  property_attributes).
- Answers are plausible but fixed; component answers vary by component type
  read from the prompt, and cost-basis answers return land_value=0 for
  condos/townhouses so the shared-land proxy gets exercised.
- `responses` overrides the payload per title; `fail` makes a title raise.
- Every call is recorded in `calls` (thread-safe; fan-out calls arrive concurrently).

Usage
-----
from digitizer.gateway.mock_gateway import MockInferenceGateway
gw = MockInferenceGateway(fail={"property_insights"})
"""

from __future__ import annotations

import copy
import re
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from digitizer.core.errors import InferenceError

from .gateway_base import InferenceGateway, JSONDict, JSONSchema, schema_title

_COMPONENT_RE = re.compile(r"Analyze this (\w+) component", re.IGNORECASE)

# (lifetime years, replacement cost)
_COMPONENT_PROFILES: dict[str, tuple[int, float]] = {
    "front": (40, 18000.0),
    "roof": (25, 14000.0),
    "windows": (30, 9000.0),
    "porch": (20, 7000.0),
    "heater": (15, 4500.0),
    "ac": (15, 6000.0),
    "hvac": (18, 9500.0),
    "pool": (20, 30000.0),
    "plumbing": (40, 8000.0),
    "electrical": (35, 7500.0),
    "other": (15, 5000.0),
}


@dataclass(frozen=True)
class RecordedCall:
    title: str
    prompt: str
    use_web_context: bool
    evidence: tuple[str, ...]


class MockInferenceGateway(InferenceGateway):
    """Deterministic, schema-title-based mock gateway."""

    def __init__(
        self,
        responses: Mapping[str, JSONDict] | None = None,
        fail: Iterable[str] = (),
    ) -> None:
        self._responses = dict(responses or {})
        self._fail = set(fail)
        self._lock = threading.Lock()
        self.calls: list[RecordedCall] = []

    def infer(
        self,
        prompt: str,
        schema: JSONSchema,
        *,
        use_web_context: bool = False,
        evidence: Sequence[str] | None = None,
    ) -> JSONDict:
        title = schema_title(schema)
        with self._lock:
            self.calls.append(RecordedCall(title, prompt, use_web_context, tuple(evidence or ())))
        if title in self._fail:
            raise InferenceError(f"mock failure for '{title}'")
        if title in self._responses:
            return copy.deepcopy(self._responses[title])

        builder = _BUILDERS.get(title)
        if builder is None:
            return {}
        return builder(prompt)

    def calls_for(self, title: str) -> list[RecordedCall]:
        with self._lock:
            return [c for c in self.calls if c.title == title]


def _cost_basis(prompt: str) -> JSONDict:
    lower = prompt.lower()
    if "condo" in lower or "townhouse" in lower:
        return {"rebuild_cost_per_sqft": 165.0, "land_value": 0}
    return {"rebuild_cost_per_sqft": 185.0, "land_value": 95000.0}


def _component(prompt: str) -> JSONDict:
    m = _COMPONENT_RE.search(prompt)
    kind = m.group(1).lower() if m else "other"
    lifetime, replacement = _COMPONENT_PROFILES.get(kind, _COMPONENT_PROFILES["other"])
    return {
        "current_condition": "good",
        "estimated_lifetime_years": lifetime,
        "replacement_cost": replacement,
        "residual_value": round(replacement * 0.45, 2),
        "maintenance_notes": f"Inspect {kind} annually and address wear early.",
    }


def _insights(_prompt: str) -> JSONDict:
    return {
        "market_trends": "Steady demand with modest year-over-year price growth and low inventory.",
        "roi_projection": {"one_year": 3.5, "five_year": 18.0, "ten_year": 41.0},
        "investment_risks": [
            {"risk_type": "interest_rates", "severity": "medium", "description": "Rate increases may soften demand."},
            {"risk_type": "deferred_maintenance", "severity": "low", "description": "Ageing systems need budgeting."},
        ],
        "investment_opportunities": ["Energy-efficiency upgrades", "Finish basement for added living area"],
        "comparable_properties": [
            {"address": "14 Elm St", "price": 410000, "sqft": 1850, "similarity_score": 88},
            {"address": "220 Oak Ave", "price": 455000, "sqft": 2100, "similarity_score": 81},
            {"address": "9 Birch Ct", "price": 398000, "sqft": 1790, "similarity_score": 76},
        ],
        "value_drivers": ["School district", "Lot size", "Recent roof"],
        "maintenance_priorities": [
            {"priority": "1", "item": "Service HVAC system", "estimated_cost": 350, "urgency": "medium"},
            {"priority": "2", "item": "Repair roof flashing", "estimated_cost": 900, "urgency": "high"},
            {"priority": "3", "item": "Repaint exterior trim", "estimated_cost": 1200, "urgency": "low"},
        ],
    }


def _inspection(_prompt: str) -> JSONDict:
    return {
        "executive_summary": "Property is in good overall condition with routine maintenance items.",
        "property_overview": "Detached residence with analyzed exterior and mechanical components.",
        "component_assessments": [{"component": "general", "finding": "No structural concerns observed."}],
        "maintenance_recommendations": "Service mechanical systems annually; monitor roof flashing.",
        "overall_rating": "Good",
        "inspector_notes": "Findings are based on submitted photos and serial numbers.",
    }


def _appraisal(prompt: str) -> JSONDict:
    out: JSONDict = {
        "valuation_methodology": "Cost approach: rebuild cost plus land and component residual value, market adjusted.",
        "market_analysis": "Local market shows stable demand.",
        "comparable_properties_summary": "Three nearby sales support the concluded value.",
        "investment_potential": "Moderate appreciation potential.",
        "risk_factors": "Interest-rate sensitivity.",
        # Deliberately wrong; the compiler must overwrite these.
        "appraised_value": 1.0,
        "rebuild_cost": 1.0,
        "land_value": 1.0,
        "asset_residual_value": 1.0,
    }
    if "Previous Appraised Value" in prompt:
        out["changes_summary"] = "Valuation updated for new owner-supplied information and market rating."
    return out


def _address_validation(prompt: str) -> JSONDict:
    m = re.search(r'"([^"]+)"', prompt)
    addr = m.group(1).strip() if m else ""
    return {"is_valid": bool(addr), "formatted_address": addr, "error_message": "" if addr else "Address missing"}


def _attributes(_prompt: str) -> JSONDict:
    return {
        "sqft": 1850,
        "lot_size": 6500,
        "bedrooms": 3,
        "bathrooms": 2,
        "year_built": 1994,
        "property_type": "Single Family",
        "rebuild_cost_per_sqft": 185,
        "land_value": 95000,
        "data_confidence": "medium",
        "data_sources": "mock",
    }


_BUILDERS = {
    "cost_basis": _cost_basis,
    "component_analysis": _component,
    "property_insights": _insights,
    "inspection_report": _inspection,
    "appraisal_report": _appraisal,
    "address_validation": _address_validation,
    "property_attributes": _attributes,
}
