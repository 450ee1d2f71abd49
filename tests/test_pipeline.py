"""Tests for the six-stage pipeline orchestrator.

WHY: The orchestrator is what turns six independent transforms into a
workflow a user can step through, undo, and restart. A wrong transition
rule either strands the user or lets them export a half-processed file.

HOW: Tests are organized by concern:
  - TestStageActions: each action's effect on text and boundary
  - TestTransitions: no skip-ahead, completion required, final stage
  - TestGoBack: snapshots restored, later state discarded
  - TestReset: back to the original upload
  - TestOptions: private copy, restored on rewind, caller defaults as fallback
  - TestRunPipeline: the non-interactive driver end to end
"""

from __future__ import annotations

import pytest

from deposition_formatter.core.marker import has_marker, inject_marker
from deposition_formatter.core.models import (
    ExportDocument,
    PipelineStage,
    ProcessingOptions,
    SplitRecommendation,
)
from deposition_formatter.core.pipeline import (
    InvalidTransitionError,
    PipelineError,
    StageError,
    StageNotCompleteError,
    TranscriptPipeline,
    run_pipeline,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _advance_to(pipeline: TranscriptPipeline, stage: PipelineStage) -> None:
    """Run default actions until ``stage`` is current."""
    while pipeline.stage is not stage:
        current = pipeline.stage
        if current is PipelineStage.CLEAN_ARTIFACTS:
            pipeline.clean()
        elif current is PipelineStage.DETECT_CAPTION:
            pipeline.detect_caption()
        elif current is PipelineStage.REMOVE_INDENTATION:
            pipeline.suggest_indentation()
            pipeline.remove_indentation()
        elif current is PipelineStage.VALIDATE_SPLIT:
            pipeline.validate_split()
        elif current is PipelineStage.CONSOLIDATE_LINE_BREAKS:
            pipeline.suggest_threshold()
            pipeline.consolidate()
        pipeline.advance()


# ---------------------------------------------------------------------------
# TestStageActions
# ---------------------------------------------------------------------------


class TestStageActions:

    def test_starts_at_clean(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        assert pipeline.stage is PipelineStage.CLEAN_ARTIFACTS
        assert pipeline.text == sample_transcript
        assert pipeline.boundary is None
        assert pipeline.completed is False

    def test_clean_strips_artifacts(self):
        pipeline = TranscriptPipeline("\n 12  Q. Are you ready?\n 12  A. Yes.")
        assert pipeline.clean() == "\nQ. Are you ready?\nA. Yes."
        assert pipeline.completed is True

    def test_detect_caption_sets_boundary(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.DETECT_CAPTION)
        result = pipeline.detect_caption()
        assert pipeline.boundary == sample_transcript.index("Q.  Please")
        assert result.confidence == 0.7
        assert pipeline.detections[PipelineStage.DETECT_CAPTION] is result

    def test_marked_text_shows_boundary(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.DETECT_CAPTION)
        pipeline.set_boundary(10)
        assert pipeline.marked_text == inject_marker(sample_transcript, 10)
        assert pipeline.split == (sample_transcript[:10], sample_transcript[10:])

    def test_set_marked_text_adopts_edited_marker(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.DETECT_CAPTION)
        edited = inject_marker(sample_transcript.replace("JANE", "JAYNE"), 20)
        assert pipeline.set_marked_text(edited) == 20
        assert not has_marker(pipeline.text)
        assert "JAYNE" in pipeline.text
        assert pipeline.completed is True

    def test_set_marked_text_without_marker_leaves_stage_open(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.DETECT_CAPTION)
        pipeline.detect_caption()
        assert pipeline.set_marked_text("no marker here") is None
        assert pipeline.boundary is None
        assert pipeline.completed is False

    def test_indentation_carries_boundary(self, sample_transcript, caption_text):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.REMOVE_INDENTATION)
        suggestion = pipeline.suggest_indentation()
        assert suggestion.value == 5
        pipeline.remove_indentation()
        assert pipeline.boundary == len(caption_text)
        assert pipeline.text.startswith(caption_text + "Q.  Please")

    def test_explicit_indentation_overrides_option(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.REMOVE_INDENTATION)
        pipeline.remove_indentation(2)
        assert pipeline.options.indent_spaces == 2
        assert "\n   Q.  Please" in pipeline.text

    def test_validate_split_correct(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.VALIDATE_SPLIT)
        result = pipeline.validate_split()
        assert result.value.recommendation is SplitRecommendation.CORRECT
        assert pipeline.completed is True

    def test_fine_tune_requires_revalidation(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.VALIDATE_SPLIT)
        pipeline.validate_split()
        pipeline.set_boundary(5)
        assert pipeline.boundary == 5
        assert pipeline.completed is False
        with pytest.raises(StageNotCompleteError):
            pipeline.advance()

    def test_consolidate_consumes_boundary(self, sample_transcript, expected_final):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.CONSOLIDATE_LINE_BREAKS)
        assert pipeline.suggest_threshold().value == 5
        assert pipeline.consolidate() == expected_final
        assert pipeline.boundary is None

    def test_action_outside_its_stage(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        with pytest.raises(StageError):
            pipeline.consolidate()
        with pytest.raises(StageError):
            pipeline.export_document()

    def test_stage_errors_share_a_base(self):
        assert issubclass(StageError, PipelineError)
        assert issubclass(StageNotCompleteError, PipelineError)
        assert issubclass(InvalidTransitionError, PipelineError)


# ---------------------------------------------------------------------------
# TestTransitions
# ---------------------------------------------------------------------------


class TestTransitions:

    def test_advance_requires_completion(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        with pytest.raises(StageNotCompleteError):
            pipeline.advance()
        assert pipeline.stage is PipelineStage.CLEAN_ARTIFACTS

    def test_advance_moves_one_stage(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        pipeline.clean()
        assert pipeline.advance() is PipelineStage.DETECT_CAPTION
        assert pipeline.completed is False

    def test_cannot_advance_past_final_stage(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.PREVIEW_AND_EXPORT)
        with pytest.raises(InvalidTransitionError):
            pipeline.advance()

    def test_visited_stages_in_order(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.REMOVE_INDENTATION)
        assert pipeline.visited_stages == (
            PipelineStage.CLEAN_ARTIFACTS,
            PipelineStage.DETECT_CAPTION,
            PipelineStage.REMOVE_INDENTATION,
        )


# ---------------------------------------------------------------------------
# TestGoBack
# ---------------------------------------------------------------------------


class TestGoBack:

    def test_restores_entry_snapshot(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.VALIDATE_SPLIT)
        pipeline.go_back(PipelineStage.REMOVE_INDENTATION)
        assert pipeline.stage is PipelineStage.REMOVE_INDENTATION
        assert pipeline.text == sample_transcript
        assert pipeline.boundary == sample_transcript.index("Q.  Please")
        assert pipeline.completed is False

    def test_discards_later_stages(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.CONSOLIDATE_LINE_BREAKS)
        pipeline.go_back(PipelineStage.DETECT_CAPTION)
        assert pipeline.visited_stages == (
            PipelineStage.CLEAN_ARTIFACTS,
            PipelineStage.DETECT_CAPTION,
        )
        assert PipelineStage.DETECT_CAPTION not in pipeline.detections
        with pytest.raises(InvalidTransitionError):
            pipeline.go_back(PipelineStage.DETECT_CAPTION)

    def test_redo_after_going_back(self, sample_transcript, expected_final):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.PREVIEW_AND_EXPORT)
        pipeline.go_back(PipelineStage.CLEAN_ARTIFACTS)
        _advance_to(pipeline, PipelineStage.PREVIEW_AND_EXPORT)
        assert pipeline.text == expected_final

    def test_cannot_go_forward(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        pipeline.clean()
        with pytest.raises(InvalidTransitionError):
            pipeline.go_back(PipelineStage.DETECT_CAPTION)

    def test_cannot_go_to_current_stage(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        with pytest.raises(InvalidTransitionError):
            pipeline.go_back(PipelineStage.CLEAN_ARTIFACTS)


# ---------------------------------------------------------------------------
# TestReset
# ---------------------------------------------------------------------------


class TestReset:

    def test_reset_restores_original(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript)
        _advance_to(pipeline, PipelineStage.PREVIEW_AND_EXPORT)
        pipeline.reset()
        assert pipeline.stage is PipelineStage.CLEAN_ARTIFACTS
        assert pipeline.text == sample_transcript
        assert pipeline.boundary is None
        assert pipeline.detections == {}
        assert pipeline.visited_stages == (PipelineStage.CLEAN_ARTIFACTS,)


# ---------------------------------------------------------------------------
# TestOptions
# ---------------------------------------------------------------------------

UNINDENTED = "CAPTION\nQ.  Hello.\nA.  Hi."


class TestOptions:

    def test_go_back_restores_options(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript, ProcessingOptions(2, 7))
        _advance_to(pipeline, PipelineStage.REMOVE_INDENTATION)
        pipeline.suggest_indentation()
        assert pipeline.options.indent_spaces == 5

        pipeline.go_back(PipelineStage.DETECT_CAPTION)
        assert pipeline.options.indent_spaces == 2
        assert pipeline.options.line_break_space_threshold == 7

    def test_go_back_keeps_options_adopted_before_target(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript, ProcessingOptions(2, 7))
        _advance_to(pipeline, PipelineStage.CONSOLIDATE_LINE_BREAKS)
        pipeline.suggest_threshold()
        pipeline.go_back(PipelineStage.VALIDATE_SPLIT)
        assert pipeline.options.indent_spaces == 5
        assert pipeline.options.line_break_space_threshold == 7

    def test_reset_restores_options(self, sample_transcript):
        pipeline = TranscriptPipeline(sample_transcript, ProcessingOptions(2, 7))
        _advance_to(pipeline, PipelineStage.PREVIEW_AND_EXPORT)
        pipeline.reset()
        assert (pipeline.options.indent_spaces, pipeline.options.line_break_space_threshold) == (2, 7)

    def test_caller_options_never_modified(self, sample_transcript):
        shared = ProcessingOptions(2, 7)
        first = TranscriptPipeline(sample_transcript, shared)
        _advance_to(first, PipelineStage.PREVIEW_AND_EXPORT)
        second = TranscriptPipeline(sample_transcript, shared)
        assert (shared.indent_spaces, shared.line_break_space_threshold) == (2, 7)
        assert second.options.indent_spaces == 2
        assert second.options is not shared

    def test_indentation_falls_back_to_given_default(self):
        pipeline = TranscriptPipeline(UNINDENTED, ProcessingOptions(3, 8))
        _advance_to(pipeline, PipelineStage.REMOVE_INDENTATION)
        result = pipeline.suggest_indentation()
        assert result.success is False
        assert pipeline.options.indent_spaces == 3

    def test_threshold_falls_back_to_given_default(self):
        pipeline = TranscriptPipeline(UNINDENTED, ProcessingOptions(3, 8))
        _advance_to(pipeline, PipelineStage.CONSOLIDATE_LINE_BREAKS)
        pipeline.suggest_threshold()
        assert pipeline.options.line_break_space_threshold == 8


# ---------------------------------------------------------------------------
# TestRunPipeline
# ---------------------------------------------------------------------------


class TestRunPipeline:

    def test_detects_every_setting(self, sample_transcript, expected_final):
        pipeline = run_pipeline(sample_transcript)
        assert pipeline.stage is PipelineStage.PREVIEW_AND_EXPORT
        assert pipeline.text == expected_final
        assert pipeline.options.indent_spaces == 5
        assert pipeline.options.line_break_space_threshold == 5

    def test_pinned_settings_are_used(self, sample_transcript):
        pipeline = run_pipeline(sample_transcript, indent_spaces=0, line_break_threshold=0, boundary=0)
        assert pipeline.options.indent_spaces == 0
        assert pipeline.detections[PipelineStage.DETECT_CAPTION].value == 0
        # threshold 0 keeps every line; the empty caption adds a leading newline
        assert pipeline.text == "\n" + sample_transcript

    def test_export_document(self, sample_transcript, expected_final):
        pipeline = run_pipeline(sample_transcript, source_filename="smith_depo.txt")
        document = pipeline.export_document(header_text="SMITH", company_name="ACME")
        assert isinstance(document, ExportDocument)
        assert document.content == expected_final
        assert document.header_text == "SMITH"
        assert document.company_name == "ACME"
        assert document.stem == "smith_depo"

    def test_defaults_feed_the_analyzers(self):
        pipeline = run_pipeline(UNINDENTED, defaults=ProcessingOptions(3, 8))
        assert pipeline.options.indent_spaces == 3
        assert pipeline.options.line_break_space_threshold == 8
        assert pipeline.text == "CAPTION\n\nQ.  Hello.\nA.  Hi."

    def test_empty_text(self):
        pipeline = run_pipeline("")
        assert pipeline.stage is PipelineStage.PREVIEW_AND_EXPORT
        assert pipeline.text == "\n"
