# digitizer/orchestrators/pipeline.py
"""
Digitization Pipeline Orchestrator

Purpose
-------
Turn raw property attributes plus component submissions into a persisted,
valued Property with its Components, an inspection Report and an appraisal
Report.

Stages
------
validating -> enriching -> creating_property -> analyzing_components ->
aggregating -> generating_insights -> compiling_inspection_report ->
computing_valuation -> compiling_appraisal_report -> persisting_final -> completed
(any stage after creating_property may end in `failed`)

Design
------
- Validation happens before any write; PropertyValidationError leaves the
  store untouched.
- Enrichment and component analysis degrade to defaults; every other stage
  failure is fatal and surfaces once as PipelineStageError with the stage,
  the property id and the ledger of writes already committed. There is no
  rollback: a Property created before the failure stays in `processing`.
- Component analyses fan out concurrently (asyncio.gather, optional
  semaphore bound). Each task persists its own Component; the gather is the
  barrier, so aggregation never sees a partial set.
- Blocking gateway/store calls run in worker threads (asyncio.to_thread).

Public API
----------
async digitize_property(property_input, component_submissions, market_rating=5, *,
                        gateway, store, owner=None, max_concurrency=0, on_stage=None)
  -> DigitizationResult
run_digitization(...)   # sync wrapper around asyncio.run
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from digitizer.agents.component_analyzer import ComponentAnalysis, analyze_component
from digitizer.agents.enrichment import enrich_cost_basis
from digitizer.agents.insights import generate_insights
from digitizer.agents.report_compiler import compile_appraisal_report, compile_inspection_report
from digitizer.core.errors import PipelineStageError, PropertyValidationError, stage_guard
from digitizer.core.valuation import NEUTRAL_MARKET_RATING, compute_valuation, market_adjustment_for
from digitizer.gateway.gateway_base import InferenceGateway
from digitizer.orchestrators.stages import PipelineStage, StageCallback, StageTracker
from digitizer.schemas.models import (
    Component,
    ComponentSubmission,
    DigitizationResult,
    PropertyInput,
    PropertyStatus,
)
from digitizer.store.store_base import COMPONENT, PROPERTY, REPORT, EntityStore

logger = logging.getLogger(__name__)

SubmissionsLike = Iterable[ComponentSubmission | Mapping[str, Any]] | Mapping[str, Mapping[str, Any]] | None


# =========================
# Input validation
# =========================


def _error_fields(err: ValidationError) -> list[str]:
    return sorted({str(e["loc"][0]) for e in err.errors() if e.get("loc")})


def validate_property_input(property_input: PropertyInput | Mapping[str, Any]) -> PropertyInput:
    """Coerce and check the property attributes. Raises PropertyValidationError."""
    try:
        prop = (
            property_input
            if isinstance(property_input, PropertyInput)
            else PropertyInput.model_validate(dict(property_input))
        )
    except ValidationError as e:
        raise PropertyValidationError(f"Invalid property input: {e}", missing=_error_fields(e)) from e
    problems = prop.validation_problems()
    if problems:
        raise PropertyValidationError(f"Missing or invalid property fields: {', '.join(problems)}", missing=problems)
    return prop


def validate_market_rating(market_rating: Any) -> int:
    try:
        market_adjustment_for(market_rating)
    except ValueError as e:
        raise PropertyValidationError(str(e), missing=["market_rating"]) from e
    return market_rating


def coerce_submissions(submissions: SubmissionsLike) -> list[ComponentSubmission]:
    """
    Accept a list of submissions (models or dicts) or a mapping keyed by
    component type, e.g. {"roof": {"photo_urls": [...], "serial_number": "..."}}.
    """
    if not submissions:
        return []
    raw: list[Any]
    if isinstance(submissions, Mapping):
        raw = [dict(v or {}, component_type=k) for k, v in submissions.items()]
    else:
        raw = list(submissions)
    try:
        return [s if isinstance(s, ComponentSubmission) else ComponentSubmission.model_validate(s) for s in raw]
    except ValidationError as e:
        raise PropertyValidationError(f"Invalid component submission: {e}", missing=["components"]) from e


# =========================
# Orchestrator
# =========================


class PipelineOrchestrator:
    """Runs one digitization at a time against a gateway and a store."""

    def __init__(
        self,
        gateway: InferenceGateway,
        store: EntityStore,
        *,
        max_concurrency: int = 0,
        on_stage: StageCallback | None = None,
    ) -> None:
        if max_concurrency < 0:
            raise ValueError("max_concurrency must be >= 0 (0 = unbounded)")
        self._gateway = gateway
        self._store = store
        self._max_concurrency = max_concurrency
        self._on_stage = on_stage

    async def digitize(
        self,
        property_input: PropertyInput | Mapping[str, Any],
        component_submissions: SubmissionsLike = None,
        market_rating: int = NEUTRAL_MARKET_RATING,
        *,
        owner: str | None = None,
    ) -> DigitizationResult:
        tracker = StageTracker.for_pipeline(self._on_stage)

        tracker.advance(PipelineStage.validating)
        try:
            prop = validate_property_input(property_input)
            rating = validate_market_rating(market_rating)
            submissions = coerce_submissions(component_submissions)
        except PropertyValidationError:
            tracker.fail()
            raise

        try:
            return await self._run(tracker, prop, submissions, rating, owner)
        except PipelineStageError as e:
            tracker.fail()
            logger.error("digitization failed: %s committed=%s", e, e.committed)
            raise

    async def _run(
        self,
        tracker: StageTracker,
        prop: PropertyInput,
        submissions: list[ComponentSubmission],
        rating: int,
        owner: str | None,
    ) -> DigitizationResult:
        gateway, store = self._gateway, self._store

        # Degraded, never fatal.
        tracker.advance(PipelineStage.enriching)
        with self._guard(tracker):
            enrichment = await asyncio.to_thread(enrich_cost_basis, prop, gateway)
        cost_basis = enrichment.cost_basis

        tracker.advance(PipelineStage.creating_property)
        with self._guard(tracker):
            fields = prop.model_dump(mode="json")
            fields.update(
                owner=owner,
                rebuild_cost_per_sqft=cost_basis.rebuild_cost_per_sqft,
                land_value=cost_basis.land_value,
                market_rating=rating,
                status=PropertyStatus.processing.value,
            )
            property_id = await asyncio.to_thread(store.create, PROPERTY, fields)
        tracker.property_id = property_id
        tracker.commit(PROPERTY, property_id)

        tracker.advance(PipelineStage.analyzing_components)
        with self._guard(tracker):
            analyses = await self._analyze_components(tracker, prop, property_id, submissions)
        components = [a.component for a in analyses]

        tracker.advance(PipelineStage.aggregating)
        total_residual = sum((c.residual_value for c in components), 0.0)

        tracker.advance(PipelineStage.generating_insights)
        with self._guard(tracker):
            insights = await asyncio.to_thread(generate_insights, prop, gateway, market_rating=rating)

        tracker.advance(PipelineStage.compiling_inspection_report)
        with self._guard(tracker):
            inspection = await asyncio.to_thread(
                compile_inspection_report, prop, components, gateway, property_id=property_id
            )
            inspection_id = await asyncio.to_thread(store.create, REPORT, inspection.to_fields())
        tracker.commit(REPORT, inspection_id)

        tracker.advance(PipelineStage.computing_valuation)
        with self._guard(tracker):
            valuation = compute_valuation(
                prop.sqft,
                cost_basis.rebuild_cost_per_sqft,
                cost_basis.land_value,
                total_residual,
                rating,
            )

        tracker.advance(PipelineStage.compiling_appraisal_report)
        with self._guard(tracker):
            appraisal = await asyncio.to_thread(
                compile_appraisal_report, prop, valuation, insights, gateway, property_id=property_id
            )
            appraisal_id = await asyncio.to_thread(store.create, REPORT, appraisal.to_fields())
        tracker.commit(REPORT, appraisal_id)

        tracker.advance(PipelineStage.persisting_final)
        with self._guard(tracker):
            await asyncio.to_thread(
                store.update,
                PROPERTY,
                property_id,
                {
                    "total_asset_residual_value": total_residual,
                    "appraised_value": valuation.appraised_value,
                    "insights": insights.model_dump(mode="json"),
                    "status": PropertyStatus.completed.value,
                },
            )

        tracker.advance(PipelineStage.completed)
        return DigitizationResult(
            property_id=property_id,
            appraised_value=valuation.appraised_value,
            total_asset_residual_value=total_residual,
            component_ids=[c.id for c in components if c.id],
            degraded_components=[a.component.component_type.value for a in analyses if a.degraded],
            inspection_report_id=inspection_id,
            appraisal_report_id=appraisal_id,
        )

    # ---------- component fan-out ----------
    async def _analyze_components(
        self,
        tracker: StageTracker,
        prop: PropertyInput,
        property_id: str,
        submissions: list[ComponentSubmission],
    ) -> list[ComponentAnalysis]:
        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency > 0 else None

        async def _one(submission: ComponentSubmission) -> ComponentAnalysis | None:
            if semaphore is None:
                return await self._analyze_and_persist(tracker, prop, property_id, submission)
            async with semaphore:
                return await self._analyze_and_persist(tracker, prop, property_id, submission)

        results = await asyncio.gather(*(_one(s) for s in submissions), return_exceptions=True)

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for extra in failures[1:]:
                logger.error("additional component persistence failure: %s: %s", type(extra).__name__, extra)
            raise failures[0]
        analyses = [r for r in results if r is not None]
        skipped = len(submissions) - len(analyses)
        if skipped:
            logger.info("skipped %d empty component submission(s) for property_id=%s", skipped, property_id)
        return analyses

    async def _analyze_and_persist(
        self,
        tracker: StageTracker,
        prop: PropertyInput,
        property_id: str,
        submission: ComponentSubmission,
    ) -> ComponentAnalysis | None:
        analysis = await asyncio.to_thread(
            analyze_component,
            submission,
            property_id=property_id,
            year_built=prop.year_built,
            gateway=self._gateway,
        )
        if analysis is None:
            return None
        component_id = await asyncio.to_thread(self._store.create, COMPONENT, analysis.component.to_fields())
        tracker.commit(COMPONENT, component_id)
        stored: Component = analysis.component.model_copy(update={"id": component_id})
        return ComponentAnalysis(
            component=stored,
            degraded=analysis.degraded,
            error=analysis.error,
            defaulted_fields=analysis.defaulted_fields,
        )

    @staticmethod
    def _guard(tracker: StageTracker):
        return stage_guard(tracker.stage, property_id=tracker.property_id, committed=tracker.committed)


# =========================
# Entry points
# =========================


async def digitize_property(
    property_input: PropertyInput | Mapping[str, Any],
    component_submissions: SubmissionsLike = None,
    market_rating: int = NEUTRAL_MARKET_RATING,
    *,
    gateway: InferenceGateway,
    store: EntityStore,
    owner: str | None = None,
    max_concurrency: int = 0,
    on_stage: StageCallback | None = None,
) -> DigitizationResult:
    """
    Run the full digitization pipeline.

    Raises:
        PropertyValidationError: required inputs missing (nothing written).
        PipelineStageError: a fatal stage failed; `.committed` lists writes already made.
    """
    orchestrator = PipelineOrchestrator(gateway, store, max_concurrency=max_concurrency, on_stage=on_stage)
    return await orchestrator.digitize(property_input, component_submissions, market_rating, owner=owner)


def run_digitization(
    property_input: PropertyInput | Mapping[str, Any],
    component_submissions: SubmissionsLike = None,
    market_rating: int = NEUTRAL_MARKET_RATING,
    **kwargs: Any,
) -> DigitizationResult:
    """Synchronous wrapper for callers without an event loop (CLI, tests)."""
    return asyncio.run(digitize_property(property_input, component_submissions, market_rating, **kwargs))
