"""Configuration constants, defaults, and .env loading.

WHY: Centralizes every tunable value (processing defaults, document
branding, upload limits, service URLs) so it is easy to find and override
per deployment without touching logic.

HOW: python-dotenv loads the .env file on import. Constants are module-level
values read from the environment with hard-coded fallbacks.

RULES:
- Processing defaults are 5 spaces for both indentation and line-break
  threshold; entry points hand them to the core via default_options()
- SUPPORTED_UPLOAD_FORMATS lists accepted transcript file extensions
- The API access token is optional; when unset the HTTP API is open
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

from deposition_formatter.core.models import ProcessingOptions

# Load .env from the project root (where the script is run from)
load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError("{} must be an integer, got {!r}".format(name, raw))


# ---------------------------------------------------------------------------
# Processing defaults
# ---------------------------------------------------------------------------

DEFAULT_INDENT_SPACES = _int_env("DEFAULT_INDENT_SPACES", 5)
DEFAULT_LINE_BREAK_THRESHOLD = _int_env("DEFAULT_LINE_BREAK_THRESHOLD", 5)

# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

SUPPORTED_UPLOAD_FORMATS: set[str] = {".txt"}
"""Transcript file extensions accepted for upload (lowercase, with dot)."""

MAX_UPLOAD_BYTES = _int_env("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)

# ---------------------------------------------------------------------------
# Document branding
# ---------------------------------------------------------------------------

COMPANY_NAME = os.getenv("DEPOSITION_COMPANY_NAME", "Naegeli Deposition & Trial")
DEFAULT_HEADER_TEXT = os.getenv("DEFAULT_HEADER_TEXT", "FORMATTED TRANSCRIPT")

# ---------------------------------------------------------------------------
# Server and remote detection service
# ---------------------------------------------------------------------------

DETECTION_API_URL = os.getenv("DETECTION_API_URL", "http://localhost:8000")
SESSION_TTL_SECONDS = _int_env("SESSION_TTL_SECONDS", 3600)
MAX_SESSIONS = _int_env("MAX_SESSIONS", 100)


def default_options() -> ProcessingOptions:
    """Processing defaults from the environment, as core options.

    The core never reads configuration itself; the CLI and the HTTP server
    pass this into the pipeline and analyzers as their fallback values.
    """
    return ProcessingOptions(
        indent_spaces=DEFAULT_INDENT_SPACES,
        line_break_space_threshold=DEFAULT_LINE_BREAK_THRESHOLD,
    )


def load_api_token() -> Optional[str]:
    """Load the HTTP API access token from the environment.

    WHY: Deployments that expose the API beyond localhost gate it behind
    a shared bearer token. Local use needs no token.

    RULES:
    - Reads DEPOSITION_API_TOKEN at call time (tests can monkeypatch it)
    - Returns None when the variable is missing or blank
    """
    token = os.getenv("DEPOSITION_API_TOKEN", "").strip()
    return token or None
