# digitizer/agents/report_compiler.py
"""
Report Compiler Stage

Purpose
-------
Build the two persisted reports for a property:
  - inspection: narrative over the analyzed components
  - appraisal:  narrative over the valuation breakdown and insights

Design
------
- One inference call per report; failures raise InferenceError (fatal upstream).
- The appraisal's numeric fields always come from the calculator. Whatever
  the gateway returns for appraised_value, rebuild_cost, land_value,
  asset_residual_value or market_adjustment_percent is overwritten.
- Revaluation variant adds the previous appraised value, the percentage
  change and a changes summary.
- Returns unsaved `Report` models; the orchestrator persists them.

Public API
----------
compile_inspection_report(prop, components, gateway, *, property_id) -> Report
compile_appraisal_report(prop, valuation, insights, gateway, *, property_id,
                         previous_appraised_value=None, additional_context=None,
                         revaluation=False) -> Report
change_percent(new_value, previous_value) -> float | None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from digitizer.core.errors import InferenceError
from digitizer.core.valuation import ValuationBreakdown
from digitizer.gateway.gateway_base import InferenceGateway, infer_object
from digitizer.schemas.models import (
    AppraisalNarrative,
    Component,
    InsightsBundle,
    InspectionNarrative,
    Property,
    PropertyInput,
    Report,
    ReportType,
)

logger = logging.getLogger(__name__)

INSPECTION_SCHEMA: dict[str, Any] = {
    "title": "inspection_report",
    "type": "object",
    "properties": {
        "executive_summary": {"type": "string"},
        "property_overview": {"type": "string"},
        "component_assessments": {"type": "array", "items": {"type": "object"}},
        "maintenance_recommendations": {"type": "string"},
        "overall_rating": {"type": "string"},
        "inspector_notes": {"type": "string"},
    },
}

APPRAISAL_SCHEMA: dict[str, Any] = {
    "title": "appraisal_report",
    "type": "object",
    "properties": {
        "appraised_value": {"type": "number"},
        "rebuild_cost": {"type": "number"},
        "land_value": {"type": "number"},
        "asset_residual_value": {"type": "number"},
        "market_adjustment_percent": {"type": "number"},
        "valuation_methodology": {"type": "string"},
        "market_analysis": {"type": "string"},
        "comparable_properties_summary": {"type": "string"},
        "investment_potential": {"type": "string"},
        "risk_factors": {"type": "string"},
        "changes_summary": {"type": "string"},
    },
}


def _money(value: float) -> str:
    return f"${value:,.2f}"


def change_percent(new_value: float, previous_value: float | None) -> float | None:
    """Percentage change from previous to new; None when there is no usable previous value."""
    if not previous_value:
        return None
    return (new_value - previous_value) / previous_value * 100


def appraisal_summary(appraised_value: float, *, updated: bool = False) -> str:
    prefix = "Updated Appraised Value" if updated else "Appraised Value"
    return f"{prefix}: {_money(appraised_value)}"


# =========================
# Inspection
# =========================


def build_inspection_prompt(prop: PropertyInput | Property, components: Sequence[Component]) -> str:
    analyzed = ", ".join(f"{c.component_type.value} ({c.current_condition.value})" for c in components) or "None"
    return (
        "Generate a comprehensive professional property inspection report for:\n"
        f"Address: {prop.address}\n"
        f"Built: {prop.year_built or 'Unknown'}\n"
        f"Size: {prop.sqft:g} sqft\n"
        f"Bedrooms: {prop.bedrooms if prop.bedrooms is not None else 'N/A'}\n"
        f"Bathrooms: {prop.bathrooms if prop.bathrooms is not None else 'N/A'}\n\n"
        f"Components analyzed: {analyzed}\n\n"
        "Create a detailed inspection report including:\n"
        "- Executive summary\n"
        "- Property overview\n"
        "- Component-by-component assessment with specific findings\n"
        "- Maintenance recommendations prioritized by urgency\n"
        "- Overall property condition rating\n"
        "- Inspector notes with actionable insights\n\n"
        "Format as a professional, detailed report suitable for real estate transactions."
    )


def compile_inspection_report(
    prop: PropertyInput | Property,
    components: Sequence[Component],
    gateway: InferenceGateway,
    *,
    property_id: str,
) -> Report:
    resp = infer_object(gateway, build_inspection_prompt(prop, components), INSPECTION_SCHEMA)
    try:
        narrative = InspectionNarrative.model_validate(resp)
    except ValidationError as e:
        raise InferenceError(f"Inspection payload did not validate: {e}") from e
    return Report(
        property_id=property_id,
        report_type=ReportType.inspection,
        report_data=narrative.model_dump(mode="json", exclude_none=True),
        summary=narrative.executive_summary or "",
    )


# =========================
# Appraisal
# =========================


def build_appraisal_prompt(
    prop: PropertyInput | Property,
    valuation: ValuationBreakdown,
    insights: InsightsBundle,
    *,
    previous_appraised_value: float | None = None,
    additional_context: str | None = None,
    revaluation: bool = False,
) -> str:
    land_label = "Shared Land/Common Area Value" if prop.has_shared_land else "Land Value"
    header = "Generate an UPDATED professional property appraisal report for:" if revaluation else (
        "Generate a professional property appraisal report for:"
    )
    lines = [
        header,
        f"Address: {prop.address}",
        "",
        "Updated Valuation Components:" if revaluation else "Valuation Components:",
        f"- Rebuild Cost: {_money(valuation.rebuild_cost)} "
        f"({valuation.sqft:g} sqft x {_money(valuation.rebuild_cost_per_sqft)}/sqft)",
        f"- {land_label}: {_money(valuation.land_value)}",
        f"- Asset Residual Value: {_money(valuation.total_asset_residual_value)}",
        f"- Market Adjustment: {valuation.market_adjustment_percent:.1f}% ({valuation.market_rating}/10 market rating)",
        f"- Final Appraised Value: {_money(valuation.appraised_value)}",
    ]
    if revaluation:
        delta = change_percent(valuation.appraised_value, previous_appraised_value)
        lines += [
            "",
            "Previous Appraised Value: "
            + (_money(previous_appraised_value) if previous_appraised_value else "N/A"),
            f"Change: {delta:.2f}%" if delta is not None else "Change: N/A",
            "",
            f"Additional Context Considered:\n{(additional_context or '').strip() or 'None'}",
        ]
    lines += [
        "",
        "Updated AI Insights:" if revaluation else "AI Insights Available:",
        f"- Market Trends: {insights.market_trends or 'N/A'}",
        f"- Comparable Properties: {len(insights.comparable_properties)} similar properties analyzed",
        "",
        "Create a detailed appraisal report explaining:",
        "1. Valuation methodology",
        "2. Market analysis with current trends",
        "3. Comparable properties analysis",
        "4. Investment potential",
        "5. Risk factors",
    ]
    if revaluation:
        lines.append("6. Impact of the additional information on valuation (changes summary)")
    lines += ["", "Be thorough and professional."]
    return "\n".join(lines)


def compile_appraisal_report(
    prop: PropertyInput | Property,
    valuation: ValuationBreakdown,
    insights: InsightsBundle,
    gateway: InferenceGateway,
    *,
    property_id: str,
    previous_appraised_value: float | None = None,
    additional_context: str | None = None,
    revaluation: bool = False,
) -> Report:
    """
    Compile the appraisal report with calculator-authoritative numbers.

    The returned summary reads "Appraised Value: $X"; the revaluation
    orchestrator rewrites it to "Updated Appraised Value: $X" when it updates
    an existing report in place.
    """
    prompt = build_appraisal_prompt(
        prop,
        valuation,
        insights,
        previous_appraised_value=previous_appraised_value,
        additional_context=additional_context,
        revaluation=revaluation,
    )
    resp = infer_object(gateway, prompt, APPRAISAL_SCHEMA)
    try:
        narrative = AppraisalNarrative.model_validate(resp)
    except ValidationError as e:
        # Numbers are overwritten below; only the narrative shape matters here.
        logger.debug("appraisal payload had invalid numeric fields; keeping narrative only: %s", e)
        narrative = AppraisalNarrative.model_validate(
            {k: v for k, v in resp.items() if k not in AppraisalNarrative.model_fields or k in _NARRATIVE_FIELDS}
        )

    data = narrative.model_dump(mode="json", exclude_none=True)
    data.update(
        appraised_value=valuation.appraised_value,
        rebuild_cost=valuation.rebuild_cost,
        land_value=valuation.land_value,
        asset_residual_value=valuation.total_asset_residual_value,
        market_adjustment_percent=valuation.market_adjustment_percent,
    )
    if revaluation:
        data["previous_appraised_value"] = previous_appraised_value
        data["change_percent"] = change_percent(valuation.appraised_value, previous_appraised_value)

    return Report(
        property_id=property_id,
        report_type=ReportType.appraisal,
        report_data=data,
        summary=appraisal_summary(valuation.appraised_value),
    )


_NARRATIVE_FIELDS = frozenset(
    {
        "valuation_methodology",
        "market_analysis",
        "comparable_properties_summary",
        "investment_potential",
        "risk_factors",
        "changes_summary",
    }
)
