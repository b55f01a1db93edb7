# digitizer/orchestrators/stages.py
"""
Pipeline stages and the stage tracker.

Both orchestrators run a fixed, linear sequence of stages with a single
terminal `failed` state. `StageTracker` enforces the order, reports each
transition to an optional `on_stage` callback, and keeps the ledger of
durable writes made so far (attached to PipelineStageError on failure).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    validating = "validating"
    enriching = "enriching"
    creating_property = "creating_property"
    analyzing_components = "analyzing_components"
    aggregating = "aggregating"
    generating_insights = "generating_insights"
    compiling_inspection_report = "compiling_inspection_report"
    computing_valuation = "computing_valuation"
    compiling_appraisal_report = "compiling_appraisal_report"
    persisting_final = "persisting_final"
    completed = "completed"
    failed = "failed"


class RevaluationStage(str, Enum):
    loading = "loading"
    enriching = "enriching"
    generating_insights = "generating_insights"
    aggregating = "aggregating"
    computing_valuation = "computing_valuation"
    compiling_appraisal_report = "compiling_appraisal_report"
    persisting_final = "persisting_final"
    completed = "completed"
    failed = "failed"


PIPELINE_SEQUENCE: tuple[PipelineStage, ...] = tuple(s for s in PipelineStage if s is not PipelineStage.failed)
REVALUATION_SEQUENCE: tuple[RevaluationStage, ...] = tuple(
    s for s in RevaluationStage if s is not RevaluationStage.failed
)

StageCallback = Callable[[Enum], None]


class StageTracker:
    """
    Linear state machine over a stage sequence.

    `advance(stage)` only accepts the next stage in sequence; `fail()` moves
    to the terminal failed state from any non-terminal stage.
    """

    def __init__(
        self,
        sequence: Sequence[Enum],
        failed: Enum,
        *,
        on_stage: StageCallback | None = None,
        label: str = "pipeline",
    ) -> None:
        if not sequence:
            raise ValueError("stage sequence must not be empty")
        self._sequence = tuple(sequence)
        self._failed = failed
        self._on_stage = on_stage
        self._label = label
        self._index = -1
        self._stage: Enum | None = None
        self.property_id: str | None = None
        self.history: list[Enum] = []
        self.committed: list[str] = []

    @classmethod
    def for_pipeline(cls, on_stage: StageCallback | None = None) -> StageTracker:
        return cls(PIPELINE_SEQUENCE, PipelineStage.failed, on_stage=on_stage, label="digitize")

    @classmethod
    def for_revaluation(cls, on_stage: StageCallback | None = None) -> StageTracker:
        return cls(REVALUATION_SEQUENCE, RevaluationStage.failed, on_stage=on_stage, label="revalue")

    @property
    def stage(self) -> Enum | None:
        return self._stage

    @property
    def is_terminal(self) -> bool:
        return self._stage is self._failed or self._stage is self._sequence[-1]

    def advance(self, stage: Enum) -> None:
        if self.is_terminal:
            raise RuntimeError(f"{self._label}: cannot enter {stage.value!r} after terminal {self._stage.value!r}")
        expected = self._sequence[self._index + 1]
        if stage is not expected:
            raise RuntimeError(f"{self._label}: illegal transition to {stage.value!r}; expected {expected.value!r}")
        self._index += 1
        self._enter(stage)

    def fail(self) -> None:
        if self.is_terminal:
            return
        self._enter(self._failed)

    def commit(self, kind: str, record_id: str) -> None:
        self.committed.append(f"{kind}:{record_id}")

    def _enter(self, stage: Enum) -> None:
        self._stage = stage
        self.history.append(stage)
        logger.info("%s stage=%s property_id=%s", self._label, stage.value, self.property_id or "-")
        if self._on_stage is not None:
            try:
                self._on_stage(stage)
            except Exception:  # noqa: BLE001
                logger.exception("on_stage callback raised for stage=%s; ignoring", stage.value)
