# tests/unit/test_stage_tracker.py
import logging

import pytest

from digitizer.orchestrators.stages import (
    PIPELINE_SEQUENCE,
    PipelineStage,
    RevaluationStage,
    StageTracker,
)


def test_advances_in_order_and_reports_each_stage():
    seen = []
    tracker = StageTracker.for_pipeline(seen.append)
    for stage in PIPELINE_SEQUENCE:
        tracker.advance(stage)
    assert seen == list(PIPELINE_SEQUENCE)
    assert tracker.stage is PipelineStage.completed
    assert tracker.is_terminal


def test_skipping_a_stage_is_rejected():
    tracker = StageTracker.for_pipeline()
    tracker.advance(PipelineStage.validating)
    with pytest.raises(RuntimeError, match="illegal transition"):
        tracker.advance(PipelineStage.creating_property)
    assert tracker.stage is PipelineStage.validating


def test_fail_is_terminal():
    tracker = StageTracker.for_revaluation()
    tracker.advance(RevaluationStage.loading)
    tracker.fail()
    assert tracker.stage is RevaluationStage.failed
    assert tracker.is_terminal
    tracker.fail()
    assert tracker.history == [RevaluationStage.loading, RevaluationStage.failed]
    with pytest.raises(RuntimeError, match="terminal"):
        tracker.advance(RevaluationStage.enriching)


def test_commit_ledger():
    tracker = StageTracker.for_pipeline()
    tracker.commit("Property", "p1")
    tracker.commit("Component", "c1")
    assert tracker.committed == ["Property:p1", "Component:c1"]


def test_callback_errors_are_logged_not_raised(caplog):
    def boom(_stage):
        raise ValueError("ui went away")

    tracker = StageTracker.for_pipeline(boom)
    with caplog.at_level(logging.ERROR, logger="digitizer.orchestrators.stages"):
        tracker.advance(PipelineStage.validating)
    assert tracker.stage is PipelineStage.validating
    assert "on_stage callback raised" in caplog.text


def test_empty_sequence_rejected():
    with pytest.raises(ValueError):
        StageTracker((), PipelineStage.failed)
