# digitizer/agents/component_analyzer.py
"""
Component Analysis Stage

Purpose
-------
Turn one component submission (photos and/or serial number) into a fully
populated Component record: installation year, condition, lifetime,
replacement cost, residual value, maintenance notes.

Design
------
- One inference call per submission; photo URIs go as evidence.
- Tolerant: a failed call or any empty field falls back to the per-field
  defaults, so a component record is always complete. Analysis failure is
  reported as `degraded`, never raised.
- Submissions with neither photos nor a serial number are skipped (None).
- Pure with respect to storage; persisting is the orchestrator's job.

Public API
----------
analyze_component(submission, *, property_id, year_built, gateway) -> ComponentAnalysis | None
"""

from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass, field
from typing import Any

from digitizer.core.errors import InferenceError
from digitizer.gateway.gateway_base import InferenceGateway, infer_object, positive_number
from digitizer.schemas.defaults import COMPONENT_DEFAULTS, default_installation_year
from digitizer.schemas.models import Component, ComponentSubmission, Condition, lenient_enum

logger = logging.getLogger(__name__)

COMPONENT_SCHEMA: dict[str, Any] = {
    "title": "component_analysis",
    "type": "object",
    "properties": {
        "installation_year": {"type": "number"},
        "current_condition": {"type": "string", "enum": [c.value for c in Condition]},
        "estimated_lifetime_years": {"type": "number"},
        "replacement_cost": {"type": "number"},
        "residual_value": {"type": "number"},
        "maintenance_notes": {"type": "string"},
    },
}

_EARLIEST_PLAUSIBLE_YEAR = 1800


@dataclass(frozen=True)
class ComponentAnalysis:
    component: Component
    degraded: bool = False
    error: str | None = None
    defaulted_fields: tuple[str, ...] = field(default_factory=tuple)


def build_component_prompt(submission: ComponentSubmission, year_built: int | None) -> str:
    year = year_built or "an unknown year"
    lines = [f"Analyze this {submission.component_type.value} component for a property built in {year}."]
    serial = (submission.serial_number or "").strip()
    if serial:
        lines.append(f"Serial/Model: {serial}")
    if submission.photo_urls:
        lines.append(f"{len(submission.photo_urls)} photo(s) of the component are attached.")
    lines.append(
        "Provide: installation year estimate, current condition, estimated remaining lifetime in years, "
        "replacement cost in USD, current residual value in USD, and maintenance notes."
    )
    return "\n".join(lines)


def _installation_year(value: Any) -> int | None:
    n = positive_number(value)
    if n is None:
        return None
    year = int(n)
    if year < _EARLIEST_PLAUSIBLE_YEAR or year > _dt.date.today().year + 1:
        return None
    return year


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def analyze_component(
    submission: ComponentSubmission,
    *,
    property_id: str,
    year_built: int | None,
    gateway: InferenceGateway,
) -> ComponentAnalysis | None:
    """
    Analyze one submission.

    Returns:
        ComponentAnalysis with a complete (unsaved) Component, or None if the
        submission carries no photos and no serial number.
    """
    if not submission.has_content:
        logger.debug("skipping empty %s submission", submission.component_type.value)
        return None

    degraded = False
    error: str | None = None
    try:
        resp = infer_object(
            gateway,
            build_component_prompt(submission, year_built),
            COMPONENT_SCHEMA,
            evidence=submission.photo_urls or None,
        )
    except InferenceError as e:
        logger.warning("component analysis failed for %s; using defaults: %s", submission.component_type.value, e)
        resp = {}
        degraded = True
        error = str(e)

    fallback_year = default_installation_year(year_built)
    resolved: dict[str, Any] = {
        "installation_year": _installation_year(resp.get("installation_year")),
        "current_condition": lenient_enum(Condition, resp.get("current_condition")),
        "estimated_lifetime_years": positive_number(resp.get("estimated_lifetime_years")),
        "replacement_cost": positive_number(resp.get("replacement_cost")),
        "residual_value": positive_number(resp.get("residual_value")),
        "maintenance_notes": _text(resp.get("maintenance_notes")),
    }

    defaults = dict(COMPONENT_DEFAULTS, installation_year=fallback_year)
    defaulted = tuple(k for k, v in resolved.items() if v is None)
    for key in defaulted:
        resolved[key] = defaults[key]
    if defaulted and not degraded:
        logger.debug("component %s defaulted fields: %s", submission.component_type.value, ", ".join(defaulted))

    component = Component(
        property_id=property_id,
        component_type=submission.component_type,
        serial_number=(submission.serial_number or "").strip(),
        photo_urls=list(submission.photo_urls),
        **resolved,
    )
    return ComponentAnalysis(component=component, degraded=degraded, error=error, defaulted_fields=defaulted)
