"""Six-stage transcript pipeline driven by user confirmation.

WHY: Every transform in the pipeline depends on a judgement call (where
does the caption end? how wide is the gutter?) that the user may want to
review. The orchestrator runs one stage at a time, lets the user confirm
or redo it, and can rewind to any earlier stage without re-uploading.

HOW: TranscriptPipeline owns the current text, the caption boundary as an
explicit integer, the ProcessingOptions in effect, and a snapshot of
(text, boundary, options) taken on entry to each stage. Each stage has its
own action methods; advance() moves forward only once the current stage's
action has completed, go_back() restores an earlier snapshot and forgets
everything after it.

RULES:
- Stages run in PipelineStage order; no skipping forward
- An action called outside its stage raises StageError
- advance() on an incomplete stage raises StageNotCompleteError
- go_back() only targets earlier, already-visited stages
- reset() returns to CLEAN_ARTIFACTS with the original upload
- The pipeline owns a private copy of its options; suggestions never
  write through to the caller's ProcessingOptions, and go_back()/reset()
  restore the options of the stage they return to
- Text is replaced, never mutated; every stage yields a new string
- The boundary marker is only materialized (marked_text) for display,
  validation, and transforms that would otherwise shift the offset
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Set, Tuple

from deposition_formatter.core import analyzers
from deposition_formatter.core.boundary import locate_boundary, manual_boundary
from deposition_formatter.core.cleaning import clean_artifacts
from deposition_formatter.core.indentation import detect_base_indent, remove_indentation
from deposition_formatter.core.linebreaks import consolidate_marked_text
from deposition_formatter.core.marker import extract_marker, has_marker, inject_marker
from deposition_formatter.core.models import (
    DetectionResult,
    ExportDocument,
    PipelineStage,
    ProcessingOptions,
    SplitValidation,
)

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base class for pipeline state errors."""


class StageError(PipelineError):
    """Raised when a stage action is called while in a different stage."""


class StageNotCompleteError(PipelineError):
    """Raised by advance() before the current stage's action has run."""


class InvalidTransitionError(PipelineError):
    """Raised for skip-ahead, past-the-end, or unvisited-stage transitions."""


@dataclass(frozen=True)
class _Snapshot:
    text: str
    boundary: Optional[int]
    options: ProcessingOptions


class TranscriptPipeline:
    """Resumable state machine over one uploaded transcript.

    Attributes:
        original_text: The upload, kept verbatim for reset().
        source_filename: Upload filename, used to name exports.
        defaults: Options given at construction; analyzer fallbacks and
            the starting point after reset().
        options: Indentation width and line-break threshold in effect.
        stage: The current PipelineStage.
        text: The current transcript text (without any marker).
        boundary: Caption/testimony offset into ``text``, or None.
        detections: Last analyzer result per stage, for display.
    """

    def __init__(
        self,
        original_text: str,
        options: Optional[ProcessingOptions] = None,
        source_filename: str = "transcript.txt",
    ) -> None:
        self.original_text = original_text
        self.source_filename = source_filename
        self.defaults = replace(options) if options is not None else ProcessingOptions()
        self._start()

    def _start(self) -> None:
        self.stage = PipelineStage.CLEAN_ARTIFACTS
        self.text = self.original_text
        self.boundary: Optional[int] = None
        self.options = replace(self.defaults)
        self.detections: Dict[PipelineStage, DetectionResult] = {}
        self._completed: Set[PipelineStage] = set()
        self._snapshots: Dict[PipelineStage, _Snapshot] = {
            PipelineStage.CLEAN_ARTIFACTS: _Snapshot(self.text, None, self.options),
        }

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------

    @property
    def completed(self) -> bool:
        """Whether the current stage's action has run."""
        return self.stage in self._completed

    @property
    def visited_stages(self) -> Tuple[PipelineStage, ...]:
        return tuple(s for s in PipelineStage if s in self._snapshots)

    @property
    def marked_text(self) -> str:
        """Current text with the boundary marker materialized, if any."""
        if self.boundary is None:
            return self.text
        return inject_marker(self.text, self.boundary)

    @property
    def split(self) -> Tuple[str, str]:
        """(caption, body) around the boundary; (text, "") without one."""
        if self.boundary is None:
            return self.text, ""
        return self.text[:self.boundary], self.text[self.boundary:]

    def _require_stage(self, *stages: PipelineStage) -> None:
        if self.stage not in stages:
            raise StageError(
                "Action requires stage {} but pipeline is at {}".format(
                    " or ".join(s.value for s in stages), self.stage.value
                )
            )

    def _complete(self) -> None:
        self._completed.add(self.stage)

    # ------------------------------------------------------------------
    # Stage 1: clean artifacts
    # ------------------------------------------------------------------

    def clean(self) -> str:
        self._require_stage(PipelineStage.CLEAN_ARTIFACTS)
        self.text = clean_artifacts(self.text)
        self._complete()
        logger.debug("Cleaned artifacts (%d chars)", len(self.text))
        return self.text

    # ------------------------------------------------------------------
    # Stage 2: detect caption
    # ------------------------------------------------------------------

    def detect_caption(self) -> DetectionResult[int]:
        """Locate the boundary automatically and adopt it."""
        self._require_stage(PipelineStage.DETECT_CAPTION)
        result = locate_boundary(self.text)
        self.detections[self.stage] = result
        self.boundary = result.value
        self._complete()
        logger.info("Detected caption boundary at %d (confidence %.2f)", result.value, result.confidence)
        return result

    def set_boundary(self, offset: int) -> DetectionResult[int]:
        """Adopt a user-chosen boundary (caption detection or fine-tuning).

        During VALIDATE_SPLIT a new boundary invalidates the previous
        validation, so validate_split() has to run again.
        """
        self._require_stage(PipelineStage.DETECT_CAPTION, PipelineStage.VALIDATE_SPLIT)
        result = manual_boundary(self.text, offset)
        self.boundary = result.value
        self.detections[self.stage] = result
        if self.stage is PipelineStage.VALIDATE_SPLIT:
            self._completed.discard(self.stage)
        else:
            self._complete()
        return result

    def set_marked_text(self, marked_text: str) -> Optional[int]:
        """Adopt text edited on a surface that carries the marker.

        The marker position becomes the boundary. Text without a marker
        is adopted with no boundary, which leaves the stage incomplete.
        """
        self._require_stage(PipelineStage.DETECT_CAPTION, PipelineStage.VALIDATE_SPLIT)
        self._completed.discard(self.stage)
        if not has_marker(marked_text):
            self.text = marked_text
            self.boundary = None
            return None
        before, after = extract_marker(marked_text)
        self.text = before + after
        self.boundary = len(before)
        if self.stage is PipelineStage.DETECT_CAPTION:
            self._complete()
        return self.boundary

    # ------------------------------------------------------------------
    # Stage 3: remove indentation
    # ------------------------------------------------------------------

    def suggest_indentation(self) -> DetectionResult[int]:
        """Run the indentation analyzer and adopt its recommendation."""
        self._require_stage(PipelineStage.REMOVE_INDENTATION)
        fallback = self.defaults.indent_spaces
        result = analyzers.analyze_indentation(self.text, default=fallback)
        self.detections[self.stage] = result
        spaces = result.value if result.success else detect_base_indent(self.text, default=fallback)
        self.options = replace(self.options, indent_spaces=spaces)
        return result

    def remove_indentation(self, spaces: Optional[int] = None) -> str:
        """Strip ``spaces`` (default: options.indent_spaces) per line.

        The marker rides along through the edit so the boundary lands on
        the same character afterwards.
        """
        self._require_stage(PipelineStage.REMOVE_INDENTATION)
        if spaces is not None:
            self.options = replace(self.options, indent_spaces=spaces)
        edited = remove_indentation(self.marked_text, self.options.indent_spaces)
        if self.boundary is None:
            self.text = edited
        else:
            before, after = extract_marker(edited)
            self.text = before + after
            self.boundary = len(before)
        self._complete()
        return self.text

    # ------------------------------------------------------------------
    # Stage 4: validate split
    # ------------------------------------------------------------------

    def validate_split(self) -> DetectionResult[SplitValidation]:
        self._require_stage(PipelineStage.VALIDATE_SPLIT)
        result = analyzers.validate_split(self.marked_text)
        self.detections[self.stage] = result
        if result.value.valid:
            self._complete()
        else:
            self._completed.discard(self.stage)
        return result

    # ------------------------------------------------------------------
    # Stage 5: consolidate line breaks
    # ------------------------------------------------------------------

    def suggest_threshold(self) -> DetectionResult[int]:
        """Run the line-break analyzer over the body and adopt its value."""
        self._require_stage(PipelineStage.CONSOLIDATE_LINE_BREAKS)
        _, body = self.split
        fallback = self.defaults.line_break_space_threshold
        result = analyzers.analyze_line_breaks(body or self.text, default=fallback)
        self.detections[self.stage] = result
        self.options = replace(
            self.options,
            line_break_space_threshold=result.value if result.success else fallback,
        )
        return result

    def consolidate(self, threshold: Optional[int] = None) -> str:
        """Join soft wraps in the body; the split is consumed here."""
        self._require_stage(PipelineStage.CONSOLIDATE_LINE_BREAKS)
        if threshold is not None:
            self.options = replace(self.options, line_break_space_threshold=threshold)
        self.text = consolidate_marked_text(self.marked_text, self.options.line_break_space_threshold)
        self.boundary = None
        self._complete()
        return self.text

    # ------------------------------------------------------------------
    # Stage 6: preview and export
    # ------------------------------------------------------------------

    def export_document(
        self,
        header_text: Optional[str] = None,
        footer_text: Optional[str] = None,
        company_name: Optional[str] = None,
    ) -> ExportDocument:
        """Bundle the final text for the formatters."""
        self._require_stage(PipelineStage.PREVIEW_AND_EXPORT)
        kwargs = {}
        if header_text is not None:
            kwargs["header_text"] = header_text
        return ExportDocument(
            content=self.text,
            source_filename=self.source_filename,
            footer_text=footer_text,
            company_name=company_name,
            **kwargs
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> PipelineStage:
        """Confirm the current stage and move to the next one."""
        nxt = self.stage.next()
        if nxt is None:
            raise InvalidTransitionError("{} is the final stage".format(self.stage.value))
        if not self.completed:
            raise StageNotCompleteError(
                "Stage {} has not completed; run its action first".format(self.stage.value)
            )
        self._snapshots[nxt] = _Snapshot(self.text, self.boundary, self.options)
        logger.info("Pipeline %s -> %s", self.stage.value, nxt.value)
        self.stage = nxt
        return nxt

    def go_back(self, target: PipelineStage) -> PipelineStage:
        """Rewind to an earlier visited stage, restoring its entry text."""
        if target.index >= self.stage.index:
            raise InvalidTransitionError(
                "Cannot go back from {} to {}".format(self.stage.value, target.value)
            )
        snapshot = self._snapshots.get(target)
        if snapshot is None:
            raise InvalidTransitionError("Stage {} was never visited".format(target.value))

        for stage in PipelineStage:
            if stage.index >= target.index:
                self._completed.discard(stage)
                self.detections.pop(stage, None)
                if stage is not target:
                    self._snapshots.pop(stage, None)

        self.text = snapshot.text
        self.boundary = snapshot.boundary
        self.options = snapshot.options
        logger.info("Pipeline %s -> %s (back)", self.stage.value, target.value)
        self.stage = target
        return target

    def reset(self) -> None:
        """Start over from the original upload."""
        logger.info("Pipeline reset from %s", self.stage.value)
        self._start()


def run_pipeline(
    text: str,
    indent_spaces: Optional[int] = None,
    line_break_threshold: Optional[int] = None,
    boundary: Optional[int] = None,
    source_filename: str = "transcript.txt",
    defaults: Optional[ProcessingOptions] = None,
) -> TranscriptPipeline:
    """Drive every stage without user interaction.

    Settings left as None come from the analyzers, falling back to
    ``defaults`` (5 and 5 when not given) when they find no signal; a None
    boundary is located automatically.

    Returns:
        The pipeline, positioned at PREVIEW_AND_EXPORT.
    """
    pipeline = TranscriptPipeline(text, options=defaults, source_filename=source_filename)

    pipeline.clean()
    pipeline.advance()

    if boundary is None:
        pipeline.detect_caption()
    else:
        pipeline.set_boundary(boundary)
    pipeline.advance()

    if indent_spaces is None:
        pipeline.suggest_indentation()
    pipeline.remove_indentation(indent_spaces)
    pipeline.advance()

    pipeline.validate_split()
    pipeline.advance()

    if line_break_threshold is None:
        pipeline.suggest_threshold()
    pipeline.consolidate(line_break_threshold)
    pipeline.advance()

    return pipeline
