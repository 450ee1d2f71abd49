"""Shared dataclasses and enums threaded through the transcript pipeline.

WHY: The analyzers, the orchestrator, the HTTP layer, and the formatters
all exchange the same handful of shapes: a detection result with a
confidence score, the user-tunable processing options, the ordered stage
enum, and the export document handed to the renderers. Defining them once
keeps those seams typed and stable.

HOW: Plain dataclasses and str-valued enums. ``DetectionResult`` is generic
over its payload so each analyzer can return its own value type.

RULES:
- DetectionResult.confidence is always within [0, 1]
- success=False means "no usable signal"; value then holds the hard default
- PipelineStage members are declared in execution order
- Line classification mirrors what the document renderer formats specially
"""

from __future__ import annotations

import datetime
import enum
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from deposition_formatter.core.patterns import QA_LINE_RE, SPEAKER_LINE_RE

T = TypeVar("T")


@dataclass
class DetectionResult(Generic[T]):
    """Uniform result returned by every heuristic analyzer.

    Attributes:
        success: False when the analyzer found no usable signal.
        value: The recommendation (offset, indent width, threshold, ...).
        confidence: Score in [0, 1].
        reasoning: Human-readable rationale for the recommendation.
        stats: Analyzer-specific counters.
        warnings: Advisory messages for the user.
    """

    success: bool
    value: T
    confidence: float
    reasoning: str = ""
    stats: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.confidence = max(0.0, min(1.0, float(self.confidence)))

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if is_dataclass(value):
            value = asdict(value)
        return {
            "success": self.success,
            "value": value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "stats": dict(self.stats),
            "warnings": list(self.warnings),
        }


@dataclass
class ProcessingOptions:
    """User-overridable processing configuration.

    RULES:
    - indent_spaces: leading spaces removed per line (>= 0)
    - line_break_space_threshold: indent run that preserves a line break (>= 0)
    """

    indent_spaces: int = 5
    line_break_space_threshold: int = 5

    def __post_init__(self) -> None:
        if self.indent_spaces < 0:
            raise ValueError("indent_spaces must be non-negative, got {}".format(self.indent_spaces))
        if self.line_break_space_threshold < 0:
            raise ValueError(
                "line_break_space_threshold must be non-negative, got {}".format(
                    self.line_break_space_threshold
                )
            )


class PipelineStage(str, enum.Enum):
    """The six pipeline stages, declared in execution order."""

    CLEAN_ARTIFACTS = "clean_artifacts"
    DETECT_CAPTION = "detect_caption"
    REMOVE_INDENTATION = "remove_indentation"
    VALIDATE_SPLIT = "validate_split"
    CONSOLIDATE_LINE_BREAKS = "consolidate_line_breaks"
    PREVIEW_AND_EXPORT = "preview_and_export"

    @property
    def index(self) -> int:
        return list(PipelineStage).index(self)

    def next(self) -> Optional[PipelineStage]:
        stages = list(PipelineStage)
        i = self.index
        return stages[i + 1] if i + 1 < len(stages) else None

    def previous(self) -> Optional[PipelineStage]:
        stages = list(PipelineStage)
        i = self.index
        return stages[i - 1] if i > 0 else None


class SplitRecommendation(str, enum.Enum):
    """What the split validator suggests doing with the marker."""

    CORRECT = "CORRECT"
    MOVE_EARLIER = "MOVE_EARLIER"
    MOVE_LATER = "MOVE_LATER"
    FINE_TUNE = "FINE_TUNE"


@dataclass
class SplitValidation:
    """Payload of the split-validation analyzer."""

    valid: bool
    recommendation: SplitRecommendation
    suggested_adjustment: int = 0
    before_context: str = ""
    after_context: str = ""


# ---------------------------------------------------------------------------
# Export document
# ---------------------------------------------------------------------------


class LineKind(str, enum.Enum):
    """Per-line classification consumed by the document renderer."""

    QA = "qa"
    SPEAKER = "speaker"
    PLAIN = "plain"
    BLANK = "blank"


def classify_line(line: str) -> LineKind:
    """Classify one line of final text for rendering.

    Leading/trailing whitespace is ignored. ``Q.``/``A.`` prefixes are
    question/answer turns; ``MR.``, ``MS.``, ``THE WITNESS:`` and
    ``THE COURT:`` are speaker lines.
    """
    stripped = line.strip()
    if not stripped:
        return LineKind.BLANK
    if QA_LINE_RE.match(stripped):
        return LineKind.QA
    if SPEAKER_LINE_RE.match(stripped):
        return LineKind.SPEAKER
    return LineKind.PLAIN


def classify_lines(text: str) -> List[Tuple[LineKind, str]]:
    """Split text on newlines and classify each line."""
    return [(classify_line(line), line.strip()) for line in text.split("\n")]


@dataclass
class ExportDocument:
    """Final text plus the metadata the renderers need.

    RULES:
    - content is the final pipeline text, exported verbatim as plain text
    - header_text / footer_text / company_name are optional decorations
    - generated_on defaults to today; footer_text defaults to
      "Generated on <date>" when not given
    """

    content: str
    source_filename: str = "transcript.txt"
    header_text: str = "FORMATTED TRANSCRIPT"
    footer_text: Optional[str] = None
    company_name: Optional[str] = None
    generated_on: datetime.date = field(default_factory=datetime.date.today)

    def __post_init__(self) -> None:
        if self.footer_text is None:
            self.footer_text = "Generated on {}".format(self.generated_on.strftime("%m/%d/%Y"))

    @property
    def stem(self) -> str:
        name = self.source_filename.rsplit("/", 1)[-1]
        return name.rsplit(".", 1)[0] if "." in name else name

    @property
    def lines(self) -> Iterator[Tuple[LineKind, str]]:
        return iter(classify_lines(self.content))
