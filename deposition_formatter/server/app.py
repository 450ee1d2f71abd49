"""FastAPI application exposing the transcript pipeline over HTTP.

WHY: A browser front end (or curl, or a batch script) needs the same
pipeline the CLI runs, both as one-shot stateless calls and as a
step-by-step session where the user confirms each stage. FastAPI provides
request validation, OpenAPI docs, and dependency injection for the
session store and the access gate.

HOW: create_app() builds the app and puts a SessionStore on app.state.
Routes are grouped into three routers:
  /transcript  - stateless analyzers and transforms (content in, result out)
  /sessions    - upload once, then drive a TranscriptPipeline stage by stage
  /formats, /health - discovery and liveness (not gated)
PipelineError from the core maps to 409 through an exception handler.

RULES:
- Every pipeline route depends on require_token (auth.py)
- Handlers reach the store through get_store(), never a module global
- Uploads must be .txt, at most MAX_UPLOAD_BYTES, and valid UTF-8
- Unknown session or export format → 404; invalid stage transition → 409
- Error responses use the ErrorResponse schema
- Session actions are plain def handlers (run in the threadpool) and hold
  the session's lock while touching its pipeline
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from deposition_formatter import __version__
from deposition_formatter.config import (
    DEFAULT_HEADER_TEXT,
    MAX_UPLOAD_BYTES,
    SUPPORTED_UPLOAD_FORMATS,
    default_options,
)
from deposition_formatter.core import analyzers
from deposition_formatter.core.boundary import locate_boundary
from deposition_formatter.core.cleaning import clean_artifacts, normalize_line_endings
from deposition_formatter.core.marker import has_marker
from deposition_formatter.core.models import DetectionResult, ExportDocument, PipelineStage
from deposition_formatter.core.pipeline import PipelineError, run_pipeline
from deposition_formatter.formatters import FORMATTERS
from deposition_formatter.server.auth import require_token
from deposition_formatter.server.models import (
    BackRequest,
    CaptionRequest,
    CaptionResponse,
    CleanResponse,
    ConsolidateRequest,
    ContentRequest,
    ErrorResponse,
    ExportRequest,
    FormatInfo,
    HealthResponse,
    IndentationRequest,
    IndentResponse,
    LineBreakResponse,
    ProcessRequest,
    ProcessResponse,
    SessionResponse,
    SessionSummary,
    SplitResponse,
    ValidateRequest,
)
from deposition_formatter.server.sessions import Session, SessionStore

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_S = 300


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_session(session_id: str, store: SessionStore = Depends(get_store)) -> Session:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return session


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _detection_fields(result: DetectionResult) -> dict:
    return {
        "success": result.success,
        "confidence": result.confidence,
        "reasoning": result.reasoning,
        "stats": result.stats,
        "warnings": result.warnings,
    }


def _session_to_response(session: Session) -> SessionResponse:
    pipeline = session.pipeline
    detection = pipeline.detections.get(pipeline.stage)
    return SessionResponse(
        id=session.id,
        filename=session.filename,
        stage=pipeline.stage,
        completed=pipeline.completed,
        visited_stages=list(pipeline.visited_stages),
        content=pipeline.marked_text,
        boundary=pipeline.boundary,
        indent_spaces=pipeline.options.indent_spaces,
        line_break_threshold=pipeline.options.line_break_space_threshold,
        detection=detection.to_dict() if detection else None,
    )


def _render(document: ExportDocument, format_key: str) -> Response:
    """Run one formatter and wrap its first output as a download."""
    formatter_cls = FORMATTERS.get(format_key)
    if formatter_cls is None:
        raise HTTPException(
            status_code=404,
            detail="Unknown export format '{}'. Available: {}".format(
                format_key, ", ".join(sorted(FORMATTERS))
            ),
        )
    output = formatter_cls().format(document)[0]
    filename = "{}{}".format(document.stem, output.suffix)
    logger.info("Exported %s (%s)", filename, format_key)
    return Response(
        content=output.content,
        media_type=output.media_type,
        headers={"Content-Disposition": 'attachment; filename="{}"'.format(filename)},
    )


def _export_document(req: ExportRequest) -> ExportDocument:
    return ExportDocument(
        content=req.content,
        source_filename=Path(req.filename).name,
        header_text=req.header_text or DEFAULT_HEADER_TEXT,
        footer_text=req.footer_text,
        company_name=req.company_name,
    )


def _reject_reserved_marker(text: str) -> None:
    if has_marker(text):
        raise HTTPException(
            status_code=422,
            detail="Transcript contains the reserved boundary marker character (U+1F6A9)",
        )


def _validate_upload(filename: str, data: bytes) -> str:
    ext = Path(filename).suffix.lower()
    if ext not in SUPPORTED_UPLOAD_FORMATS:
        raise HTTPException(
            status_code=400,
            detail="Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_UPLOAD_FORMATS))
            ),
        )
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail="File too large ({} bytes, max {})".format(len(data), MAX_UPLOAD_BYTES),
        )
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=422, detail="File is not valid UTF-8 text")
    _reject_reserved_marker(text)
    return normalize_line_endings(text)


# ---------------------------------------------------------------------------
# Stateless endpoints
# ---------------------------------------------------------------------------

transcript_router = APIRouter(
    prefix="/transcript",
    tags=["transcript"],
    dependencies=[Depends(require_token)],
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid API token"}},
)


@transcript_router.post(
    "/detect-caption",
    response_model=CaptionResponse,
    summary="Locate the caption/testimony boundary",
)
async def detect_caption(req: ContentRequest) -> CaptionResponse:
    result = locate_boundary(req.content)
    return CaptionResponse(boundary=result.value, **_detection_fields(result))


@transcript_router.post(
    "/detect-indent",
    response_model=IndentResponse,
    summary="Recommend the indentation width to remove",
)
async def detect_indent(req: ContentRequest) -> IndentResponse:
    result = analyzers.analyze_indentation(req.content, default=default_options().indent_spaces)
    return IndentResponse(recommended_indent=result.value, **_detection_fields(result))


@transcript_router.post(
    "/analyze-linebreaks",
    response_model=LineBreakResponse,
    summary="Recommend the line-break threshold",
)
async def analyze_linebreaks(req: ContentRequest) -> LineBreakResponse:
    result = analyzers.analyze_line_breaks(
        req.content, default=default_options().line_break_space_threshold,
    )
    return LineBreakResponse(recommended_space_threshold=result.value, **_detection_fields(result))


@transcript_router.post(
    "/validate-split",
    response_model=SplitResponse,
    summary="Check the boundary marker position",
    description="``content`` must carry the boundary marker.",
)
async def validate_split(req: ContentRequest) -> SplitResponse:
    result = analyzers.validate_split(req.content)
    split = result.value
    return SplitResponse(
        valid=split.valid,
        recommendation=split.recommendation,
        suggested_adjustment=split.suggested_adjustment,
        before_context=split.before_context,
        after_context=split.after_context,
        **_detection_fields(result)
    )


@transcript_router.post("/clean", response_model=CleanResponse, summary="Remove line-number artifacts")
async def clean(req: ContentRequest) -> CleanResponse:
    return CleanResponse(content=clean_artifacts(req.content))


@transcript_router.post(
    "/process",
    response_model=ProcessResponse,
    summary="Run the whole pipeline without interaction",
    description="Settings left out are recommended by the analyzers.",
)
async def process(req: ProcessRequest) -> ProcessResponse:
    _reject_reserved_marker(req.content)
    pipeline = run_pipeline(
        req.content,
        indent_spaces=req.indent_spaces,
        line_break_threshold=req.line_break_threshold,
        boundary=req.boundary,
        defaults=default_options(),
    )
    return ProcessResponse(
        content=pipeline.text,
        boundary=pipeline.detections[PipelineStage.DETECT_CAPTION].value,
        indent_spaces=pipeline.options.indent_spaces,
        line_break_threshold=pipeline.options.line_break_space_threshold,
    )


@transcript_router.post("/generate-docx", summary="Render final text as a Word document")
async def generate_docx(req: ExportRequest) -> Response:
    return _render(_export_document(req), "docx")


@transcript_router.post("/export-text", summary="Download final text as a plain-text file")
async def export_text(req: ExportRequest) -> Response:
    return _render(_export_document(req), "plain_text")


# ---------------------------------------------------------------------------
# Session endpoints
# ---------------------------------------------------------------------------

sessions_router = APIRouter(
    prefix="/sessions",
    tags=["sessions"],
    dependencies=[Depends(require_token)],
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid API token"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "Action not allowed in the current stage"},
    },
)


@sessions_router.post(
    "",
    response_model=SessionResponse,
    status_code=201,
    summary="Upload a transcript and start a session",
    responses={
        400: {"model": ErrorResponse, "description": "Unsupported file type"},
        413: {"model": ErrorResponse, "description": "File too large"},
        422: {"model": ErrorResponse, "description": "File is not UTF-8 text"},
        429: {"model": ErrorResponse, "description": "Too many concurrent sessions"},
    },
)
async def create_session(
    file: Annotated[UploadFile, File(description="Plain-text (.txt) transcript")],
    store: SessionStore = Depends(get_store),
) -> SessionResponse:
    filename = Path(file.filename or "upload").name
    text = _validate_upload(filename, await file.read())
    try:
        session = store.create(text, filename, options=default_options())
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    return _session_to_response(session)


@sessions_router.get("", response_model=List[SessionSummary], summary="List live sessions, oldest first")
def list_sessions(store: SessionStore = Depends(get_store)) -> List[SessionSummary]:
    return [
        SessionSummary(
            id=session.id,
            filename=session.filename,
            stage=session.pipeline.stage,
            created_at=session.created_at,
            last_accessed=session.last_accessed,
        )
        for session in store.list_sessions()
    ]


@sessions_router.get("/{session_id}", response_model=SessionResponse, summary="Get session state")
def get_session_state(session: Session = Depends(get_session)) -> SessionResponse:
    with session.lock:
        return _session_to_response(session)


@sessions_router.post("/{session_id}/clean", response_model=SessionResponse, summary="Remove artifacts")
def session_clean(session: Session = Depends(get_session)) -> SessionResponse:
    with session.lock:
        session.pipeline.clean()
        return _session_to_response(session)


@sessions_router.post(
    "/{session_id}/caption",
    response_model=SessionResponse,
    summary="Set the caption boundary",
    description=(
        "Send marked_text to adopt an edited marker position, boundary for a "
        "manual offset, or an empty body to detect automatically."
    ),
)
def session_caption(
    req: Optional[CaptionRequest] = None,
    session: Session = Depends(get_session),
) -> SessionResponse:
    req = req or CaptionRequest()
    with session.lock:
        pipeline = session.pipeline
        if req.marked_text is not None:
            pipeline.set_marked_text(normalize_line_endings(req.marked_text))
        elif req.boundary is not None:
            pipeline.set_boundary(req.boundary)
        else:
            pipeline.detect_caption()
        return _session_to_response(session)


@sessions_router.post(
    "/{session_id}/indentation",
    response_model=SessionResponse,
    summary="Remove base indentation",
)
def session_indentation(
    req: Optional[IndentationRequest] = None,
    session: Session = Depends(get_session),
) -> SessionResponse:
    req = req or IndentationRequest()
    with session.lock:
        if req.spaces is None:
            session.pipeline.suggest_indentation()
        session.pipeline.remove_indentation(req.spaces)
        return _session_to_response(session)


@sessions_router.post(
    "/{session_id}/validate",
    response_model=SessionResponse,
    summary="Validate (and optionally fine-tune) the split",
)
def session_validate(
    req: Optional[ValidateRequest] = None,
    session: Session = Depends(get_session),
) -> SessionResponse:
    req = req or ValidateRequest()
    with session.lock:
        if req.boundary is not None:
            session.pipeline.set_boundary(req.boundary)
        session.pipeline.validate_split()
        return _session_to_response(session)


@sessions_router.post(
    "/{session_id}/consolidate",
    response_model=SessionResponse,
    summary="Consolidate soft line breaks",
)
def session_consolidate(
    req: Optional[ConsolidateRequest] = None,
    session: Session = Depends(get_session),
) -> SessionResponse:
    req = req or ConsolidateRequest()
    with session.lock:
        if req.threshold is None:
            session.pipeline.suggest_threshold()
        session.pipeline.consolidate(req.threshold)
        return _session_to_response(session)


@sessions_router.post("/{session_id}/advance", response_model=SessionResponse, summary="Confirm and continue")
def session_advance(session: Session = Depends(get_session)) -> SessionResponse:
    with session.lock:
        session.pipeline.advance()
        return _session_to_response(session)


@sessions_router.post("/{session_id}/back", response_model=SessionResponse, summary="Return to an earlier stage")
def session_back(req: BackRequest, session: Session = Depends(get_session)) -> SessionResponse:
    with session.lock:
        session.pipeline.go_back(req.stage)
        return _session_to_response(session)


@sessions_router.post("/{session_id}/reset", response_model=SessionResponse, summary="Start over")
def session_reset(session: Session = Depends(get_session)) -> SessionResponse:
    with session.lock:
        session.pipeline.reset()
        return _session_to_response(session)


@sessions_router.get(
    "/{session_id}/export/{format_key}",
    summary="Download the final transcript",
    description="Only available in the preview_and_export stage.",
)
def session_export(
    format_key: str,
    header_text: Optional[str] = None,
    footer_text: Optional[str] = None,
    company_name: Optional[str] = None,
    session: Session = Depends(get_session),
) -> Response:
    with session.lock:
        document = session.pipeline.export_document(
            header_text=header_text or DEFAULT_HEADER_TEXT,
            footer_text=footer_text,
            company_name=company_name,
        )
    return _render(document, format_key)


@sessions_router.delete("/{session_id}", status_code=204, summary="Discard a session")
def delete_session(session_id: str, store: SessionStore = Depends(get_store)) -> Response:
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Formats and health
# ---------------------------------------------------------------------------

meta_router = APIRouter()


@meta_router.get(
    "/formats",
    response_model=List[FormatInfo],
    tags=["formats"],
    summary="List available export formats",
)
async def list_formats() -> List[FormatInfo]:
    result = []
    for key, formatter_cls in sorted(FORMATTERS.items()):
        formatter = formatter_cls()
        result.append(FormatInfo(key=key, name=formatter.name, suffix=formatter.suffix))
    return result


@meta_router.get("/health", response_model=HealthResponse, tags=["health"], summary="Health check")
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


async def _periodic_cleanup(store: SessionStore) -> None:
    """Expire idle sessions every 5 minutes."""
    while True:
        await asyncio.sleep(CLEANUP_INTERVAL_S)
        removed = store.cleanup_expired()
        if removed:
            logger.info("Expired %d idle session(s)", removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup(app.state.sessions))
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def _pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def create_app(store: Optional[SessionStore] = None) -> FastAPI:
    """Build the API with its own session store."""
    app = FastAPI(
        lifespan=lifespan,
        title="Deposition Transcript Formatter API",
        description=(
            "Clean, split, and reflow plain-text deposition transcripts. "
            "Use /transcript for one-shot calls or /sessions to walk an "
            "upload through each stage, then export as text or .docx."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.sessions = store if store is not None else SessionStore()
    app.add_exception_handler(PipelineError, _pipeline_error_handler)
    app.include_router(transcript_router)
    app.include_router(sessions_router)
    app.include_router(meta_router)
    return app


app = create_app()


def run_api():
    """Entry point for the deposition-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
