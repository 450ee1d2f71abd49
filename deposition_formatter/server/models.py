"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Rejecting a
missing or non-string ``content`` here means no stage ever sees bad input.

HOW: The detection endpoints share DetectionResponse and add their own
value field. Stateless transforms take ContentRequest or a subclass.
Session endpoints return SessionResponse after every action so a client
can redraw the current stage from a single reply.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Integer settings are validated >= 0 at this layer
- Field names are snake_case and match api.models' JSON schemas
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from deposition_formatter.core.models import PipelineStage, SplitRecommendation

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ContentRequest(BaseModel):
    """Body shared by every stateless /transcript endpoint."""

    content: str = Field(description="Transcript text (or marked text, for validate-split).")

    model_config = {"json_schema_extra": {
        "examples": [
            {"content": "CAPTION\n     Q.  State your name.\n     A.  Jane Doe."}
        ]
    }}


class ProcessRequest(ContentRequest):
    """Full non-interactive run; unset settings come from the analyzers."""

    indent_spaces: Optional[int] = Field(
        default=None, ge=0, description="Leading spaces to strip per line. Detected when omitted.",
    )
    line_break_threshold: Optional[int] = Field(
        default=None, ge=0, description="Indent run that keeps a line break. Detected when omitted.",
    )
    boundary: Optional[int] = Field(
        default=None, ge=0, description="Caption/testimony offset after cleaning. Located when omitted.",
    )


class ExportRequest(ContentRequest):
    """Final text plus document metadata."""

    filename: str = Field(default="transcript.txt", description="Source filename used to name the download.")
    header_text: Optional[str] = Field(default=None, description="Document title. Defaults to DEFAULT_HEADER_TEXT.")
    footer_text: Optional[str] = Field(default=None, description="Footer line. Defaults to 'Generated on <date>'.")
    company_name: Optional[str] = Field(default=None, description="Company line under the title.")


class CaptionRequest(BaseModel):
    """Caption stage action. Leave both fields empty to auto-detect."""

    boundary: Optional[int] = Field(default=None, ge=0, description="Manual boundary offset.")
    marked_text: Optional[str] = Field(
        default=None, description="Edited text carrying the boundary marker; the marker position is adopted.",
    )


class IndentationRequest(BaseModel):
    spaces: Optional[int] = Field(default=None, ge=0, description="Spaces to strip. Suggested when omitted.")


class ValidateRequest(BaseModel):
    boundary: Optional[int] = Field(
        default=None, ge=0, description="Fine-tuned boundary offset applied before validating.",
    )


class ConsolidateRequest(BaseModel):
    threshold: Optional[int] = Field(default=None, ge=0, description="Line-break threshold. Suggested when omitted.")


class BackRequest(BaseModel):
    stage: PipelineStage = Field(description="Earlier, already-visited stage to return to.")


# ---------------------------------------------------------------------------
# Detection responses
# ---------------------------------------------------------------------------


class DetectionResponse(BaseModel):
    """Fields common to every analyzer reply."""

    success: bool = Field(description="False when no usable signal was found; defaults are returned.")
    confidence: float = Field(ge=0, le=1, description="Confidence score in [0, 1].")
    reasoning: str = Field(default="", description="Human-readable explanation.")
    stats: Dict[str, Any] = Field(default_factory=dict, description="Analyzer-specific counters.")
    warnings: List[str] = Field(default_factory=list, description="Advisory messages.")


class CaptionResponse(DetectionResponse):
    boundary: int = Field(description="Character offset where testimony starts.")


class IndentResponse(DetectionResponse):
    recommended_indent: int = Field(description="Recommended indentation width to remove.")


class LineBreakResponse(DetectionResponse):
    recommended_space_threshold: int = Field(description="Recommended line-break threshold.")


class SplitResponse(DetectionResponse):
    valid: bool = Field(description="Whether the marker position is acceptable.")
    recommendation: SplitRecommendation = Field(description="Suggested follow-up.")
    suggested_adjustment: int = Field(default=0, description="Suggested offset shift in characters.")
    before_context: str = Field(default="", description="Text just before the marker.")
    after_context: str = Field(default="", description="Text just after the marker.")


# ---------------------------------------------------------------------------
# Transform responses
# ---------------------------------------------------------------------------


class CleanResponse(BaseModel):
    content: str = Field(description="Text with line-number artifacts removed.")


class ProcessResponse(BaseModel):
    """Result of a full non-interactive run."""

    content: str = Field(description="Final consolidated transcript.")
    boundary: int = Field(description="Boundary offset that was used (after cleaning).")
    indent_spaces: int = Field(description="Indentation width that was removed.")
    line_break_threshold: int = Field(description="Threshold used for consolidation.")


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Snapshot of a session's pipeline after the last action."""

    id: str = Field(description="Session identifier.")
    filename: str = Field(description="Uploaded filename.")
    stage: PipelineStage = Field(description="Current stage.")
    completed: bool = Field(description="Whether the current stage's action has run.")
    visited_stages: List[PipelineStage] = Field(description="Stages that can be returned to.")
    content: str = Field(description="Current text, with the boundary marker when one is set.")
    boundary: Optional[int] = Field(default=None, description="Boundary offset into the unmarked text.")
    indent_spaces: int = Field(description="Indentation width in effect.")
    line_break_threshold: int = Field(description="Line-break threshold in effect.")
    detection: Optional[Dict[str, Any]] = Field(
        default=None, description="Last analyzer result for the current stage, if any.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "550e8400e29b41d4a716446655440000",
                "filename": "smith_depo.txt",
                "stage": "detect_caption",
                "completed": True,
                "visited_stages": ["clean_artifacts", "detect_caption"],
                "content": "CAPTION\n\U0001F6A9\n     Q.  State your name.",
                "boundary": 8,
                "indent_spaces": 5,
                "line_break_threshold": 5,
                "detection": {"success": True, "value": 8, "confidence": 0.7},
            }
        ]
    }}


class SessionSummary(BaseModel):
    """One row of the session listing."""

    id: str = Field(description="Session identifier.")
    filename: str = Field(description="Uploaded filename.")
    stage: PipelineStage = Field(description="Current stage.")
    created_at: float = Field(description="Upload time (epoch seconds).")
    last_accessed: float = Field(description="Most recent request (epoch seconds).")


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class FormatInfo(BaseModel):
    """Description of an available export format."""

    key: str = Field(description="Format identifier used in export URLs.")
    name: str = Field(description="Human-readable format name.")
    suffix: str = Field(description="File suffix produced (e.g. '_formatted.txt').")


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error message.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service status ('ok').")
    version: str = Field(description="Package version.")
