# digitizer/agents/insights.py
"""
Insight Generation Stage

Purpose
-------
Produce the structured advisory bundle for a property (market trends, ROI
projections, risks, opportunities, comparables, value drivers, maintenance
priorities) from one web-grounded inference call.

Design
------
- Fatal on failure: gateway errors surface as InferenceError; the orchestrator
  attaches stage context.
- Shape-tolerant: the response is validated into `InsightsBundle`, whose
  validators drop malformed list entries and null out unparseable
  numbers instead of rejecting the bundle. A response with none of the
  advisory fields populated counts as a failure.
- Revaluation variant carries the owner's additional context and the
  previous bundle for reference.

Public API
----------
generate_insights(prop, gateway, *, market_rating, additional_context=None, previous_insights=None)
  -> InsightsBundle
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from digitizer.core.errors import InferenceError
from digitizer.gateway.gateway_base import InferenceGateway, infer_object
from digitizer.schemas.models import InsightsBundle, Property, PropertyInput, Severity

logger = logging.getLogger(__name__)

_SEVERITIES = [s.value for s in Severity]

INSIGHTS_SCHEMA: dict[str, Any] = {
    "title": "property_insights",
    "type": "object",
    "properties": {
        "market_trends": {"type": "string"},
        "roi_projection": {
            "type": "object",
            "properties": {
                "one_year": {"type": "number"},
                "five_year": {"type": "number"},
                "ten_year": {"type": "number"},
            },
        },
        "investment_risks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "risk_type": {"type": "string"},
                    "severity": {"type": "string", "enum": _SEVERITIES},
                    "description": {"type": "string"},
                },
            },
        },
        "investment_opportunities": {"type": "array", "items": {"type": "string"}},
        "comparable_properties": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "address": {"type": "string"},
                    "price": {"type": "number"},
                    "sqft": {"type": "number"},
                    "similarity_score": {"type": "number"},
                },
            },
        },
        "value_drivers": {"type": "array", "items": {"type": "string"}},
        "maintenance_priorities": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "priority": {"type": "string"},
                    "item": {"type": "string"},
                    "estimated_cost": {"type": "number"},
                    "urgency": {"type": "string", "enum": _SEVERITIES},
                },
            },
        },
    },
}


def _details(prop: PropertyInput | Property, market_rating: int) -> str:
    return "\n".join(
        [
            "Property Details:",
            f"- Address: {prop.address}",
            f"- Type: {prop.property_type.value}",
            f"- Size: {prop.sqft:g} sqft",
            f"- Built: {prop.year_built or 'Unknown'}",
            f"- Bedrooms: {prop.bedrooms if prop.bedrooms is not None else 'N/A'}",
            f"- Bathrooms: {prop.bathrooms if prop.bathrooms is not None else 'N/A'}",
            f"- Market Rating: {market_rating}/10",
        ]
    )


def build_insights_prompt(
    prop: PropertyInput | Property,
    *,
    market_rating: int,
    additional_context: str | None = None,
    previous_insights: Mapping[str, Any] | None = None,
) -> str:
    revaluation = additional_context is not None or previous_insights is not None
    parts = [
        (
            "As an expert real estate analyst, provide updated comprehensive investment analysis "
            "for this property with new information:"
            if revaluation
            else "As an expert real estate analyst, provide comprehensive investment analysis for this property:"
        ),
        _details(prop, market_rating),
    ]
    if revaluation:
        parts.append(f"Additional Information Provided by Owner:\n{(additional_context or '').strip() or 'None'}")
        previous = json.dumps(dict(previous_insights), indent=2, default=str) if previous_insights else "None"
        parts.append(f"Previous Analysis Available for Reference:\n{previous}")
    parts.append(
        "Provide detailed analysis including:\n"
        "1. Current market trends in this area\n"
        "2. ROI projections (1-year, 5-year, 10-year as percentages)\n"
        "3. Investment risks with severity levels (low, medium, high)\n"
        "4. Investment opportunities\n"
        "5. Top 3 comparable properties with addresses, prices, and similarity scores (0-100)\n"
        "6. Key value drivers for this property\n"
        "7. Top 5 maintenance priorities with estimated costs and urgency (low, medium, high)"
    )
    parts.append("Be realistic, data-driven, and specific to the location and property type.")
    return "\n\n".join(parts)


def _has_content(bundle: InsightsBundle) -> bool:
    roi = bundle.roi_projection
    return bool(
        (bundle.market_trends or "").strip()
        or (roi is not None and any(v is not None for v in (roi.one_year, roi.five_year, roi.ten_year)))
        or bundle.investment_risks
        or bundle.investment_opportunities
        or bundle.comparable_properties
        or bundle.value_drivers
        or bundle.maintenance_priorities
    )


def generate_insights(
    prop: PropertyInput | Property,
    gateway: InferenceGateway,
    *,
    market_rating: int,
    additional_context: str | None = None,
    previous_insights: Mapping[str, Any] | None = None,
) -> InsightsBundle:
    """
    Generate the advisory bundle.

    Raises:
        InferenceError: gateway failure or an unusable payload.
    """
    prompt = build_insights_prompt(
        prop,
        market_rating=market_rating,
        additional_context=additional_context,
        previous_insights=previous_insights,
    )
    resp = infer_object(gateway, prompt, INSIGHTS_SCHEMA, use_web_context=True)
    try:
        bundle = InsightsBundle.model_validate(resp)
    except ValidationError as e:
        raise InferenceError(f"Insights payload did not validate: {e}") from e
    if not _has_content(bundle):
        raise InferenceError("Insights payload carried no advisory content")
    logger.debug(
        "insights for %r: %d risks, %d comparables, %d priorities",
        prop.address,
        len(bundle.investment_risks),
        len(bundle.comparable_properties),
        len(bundle.maintenance_priorities),
    )
    return bundle
