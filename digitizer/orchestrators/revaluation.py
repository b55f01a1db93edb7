# digitizer/orchestrators/revaluation.py
"""
Revaluation Orchestrator

Purpose
-------
Recompute the valuation and advisory content of an already-digitized
property from owner-supplied context and a new market rating, without
re-analyzing its components.

Stages
------
loading -> enriching -> generating_insights -> aggregating -> computing_valuation ->
compiling_appraisal_report -> persisting_final -> completed

Design
------
- Preconditions: the property exists, is `completed`, and has insights;
  otherwise RevaluationPreconditionError before anything runs.
- Enrichment is seeded with the property's existing cost basis and degrades
  to it on failure. Insights and the appraisal narrative are fatal.
- Components are re-summed from the store, not re-analyzed.
- Writes happen only in `persisting_final`: the existing appraisal report is
  updated in place (created if missing), then the Property.

Public API
----------
async revalue_property(property_id, additional_context, new_market_rating, *,
                       gateway, store, on_stage=None) -> RevaluationResult
run_revaluation(...)   # sync wrapper around asyncio.run
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from digitizer.agents.enrichment import enrich_cost_basis, seed_from_property
from digitizer.agents.insights import generate_insights
from digitizer.agents.report_compiler import appraisal_summary, change_percent, compile_appraisal_report
from digitizer.core.errors import PipelineStageError, RevaluationPreconditionError, stage_guard
from digitizer.core.valuation import compute_valuation
from digitizer.gateway.gateway_base import InferenceGateway
from digitizer.orchestrators.pipeline import validate_market_rating
from digitizer.orchestrators.stages import RevaluationStage, StageCallback, StageTracker
from digitizer.schemas.models import Property, PropertyStatus, ReportType, RevaluationResult
from digitizer.store.store_base import COMPONENT, PROPERTY, REPORT, EntityStore, get_record

logger = logging.getLogger(__name__)


def load_revaluable_property(store: EntityStore, property_id: str) -> Property:
    """Fetch a property and check it can be revalued. Raises RevaluationPreconditionError."""
    record = get_record(store, PROPERTY, property_id)
    if record is None:
        raise RevaluationPreconditionError(f"Property {property_id!r} does not exist")
    try:
        prop = Property.model_validate(record)
    except ValidationError as e:
        raise RevaluationPreconditionError(f"Property {property_id!r} record is incomplete: {e}") from e
    if prop.status is not PropertyStatus.completed:
        raise RevaluationPreconditionError(
            f"Property {property_id!r} has status {prop.status.value!r}; only completed properties can be revalued"
        )
    if not prop.insights:
        raise RevaluationPreconditionError(f"Property {property_id!r} has no insights to revise")
    return prop


def _residual_sum(records: list[dict[str, Any]]) -> float:
    total = 0.0
    for r in records:
        value = r.get("residual_value")
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            total += float(value)
    return total


async def revalue_property(
    property_id: str,
    additional_context: str | None,
    new_market_rating: int,
    *,
    gateway: InferenceGateway,
    store: EntityStore,
    on_stage: StageCallback | None = None,
) -> RevaluationResult:
    """
    Revalue a completed property.

    Raises:
        RevaluationPreconditionError: missing, incomplete, or insight-less property.
        PropertyValidationError: new_market_rating outside 0..10.
        PipelineStageError: a fatal stage failed (no writes before persisting_final).
    """
    tracker = StageTracker.for_revaluation(on_stage)
    tracker.property_id = property_id

    tracker.advance(RevaluationStage.loading)
    try:
        rating = validate_market_rating(new_market_rating)
        with stage_guard(tracker.stage, property_id=property_id, committed=tracker.committed):
            prop = await asyncio.to_thread(load_revaluable_property, store, property_id)
    except Exception:
        tracker.fail()
        raise

    try:
        return await _revalue(tracker, prop, additional_context, rating, gateway=gateway, store=store)
    except PipelineStageError as e:
        tracker.fail()
        logger.error("revaluation failed: %s committed=%s", e, e.committed)
        raise


async def _revalue(
    tracker: StageTracker,
    prop: Property,
    additional_context: str | None,
    rating: int,
    *,
    gateway: InferenceGateway,
    store: EntityStore,
) -> RevaluationResult:
    def guard():
        return stage_guard(tracker.stage, property_id=prop.id, committed=tracker.committed)

    context = (additional_context or "").strip()
    previous_value = prop.appraised_value

    tracker.advance(RevaluationStage.enriching)
    with guard():
        enrichment = await asyncio.to_thread(
            enrich_cost_basis,
            prop,
            gateway,
            seed=seed_from_property(prop),
            additional_context=context,
        )
    cost_basis = enrichment.cost_basis

    tracker.advance(RevaluationStage.generating_insights)
    with guard():
        insights = await asyncio.to_thread(
            generate_insights,
            prop,
            gateway,
            market_rating=rating,
            additional_context=context,
            previous_insights=prop.insights,
        )

    tracker.advance(RevaluationStage.aggregating)
    with guard():
        components = await asyncio.to_thread(store.filter, COMPONENT, {"property_id": prop.id})
    total_residual = _residual_sum(components)

    tracker.advance(RevaluationStage.computing_valuation)
    with guard():
        valuation = compute_valuation(
            prop.sqft,
            cost_basis.rebuild_cost_per_sqft,
            cost_basis.land_value,
            total_residual,
            rating,
        )

    tracker.advance(RevaluationStage.compiling_appraisal_report)
    with guard():
        appraisal = await asyncio.to_thread(
            compile_appraisal_report,
            prop,
            valuation,
            insights,
            gateway,
            property_id=prop.id,
            previous_appraised_value=previous_value,
            additional_context=context,
            revaluation=True,
        )

    tracker.advance(RevaluationStage.persisting_final)
    with guard():
        reports = await asyncio.to_thread(store.filter, REPORT, {"property_id": prop.id})
        existing = next((r for r in reports if r.get("report_type") == ReportType.appraisal.value), None)
        if existing is not None:
            report_id = str(existing["id"])
            await asyncio.to_thread(
                store.update,
                REPORT,
                report_id,
                {
                    "report_data": appraisal.report_data,
                    "summary": appraisal_summary(valuation.appraised_value, updated=True),
                },
            )
        else:
            report_id = await asyncio.to_thread(store.create, REPORT, appraisal.to_fields())
        tracker.commit(REPORT, report_id)

        await asyncio.to_thread(
            store.update,
            PROPERTY,
            prop.id,
            {
                "rebuild_cost_per_sqft": cost_basis.rebuild_cost_per_sqft,
                "land_value": cost_basis.land_value,
                "market_rating": rating,
                "total_asset_residual_value": total_residual,
                "appraised_value": valuation.appraised_value,
                "insights": insights.model_dump(mode="json"),
            },
        )
        tracker.commit(PROPERTY, prop.id)

    tracker.advance(RevaluationStage.completed)
    return RevaluationResult(
        property_id=prop.id,
        appraised_value=valuation.appraised_value,
        previous_appraised_value=previous_value,
        change_percent=change_percent(valuation.appraised_value, previous_value),
        appraisal_report_id=report_id,
        appraisal_report_created=existing is None,
    )


def run_revaluation(
    property_id: str,
    additional_context: str | None,
    new_market_rating: int,
    **kwargs: Any,
) -> RevaluationResult:
    """Synchronous wrapper for callers without an event loop (CLI, tests)."""
    return asyncio.run(revalue_property(property_id, additional_context, new_market_rating, **kwargs))
