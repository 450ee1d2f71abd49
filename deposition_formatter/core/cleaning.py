"""Page and line-number artifact removal.

WHY: Transcripts exported from reporting software (or OCR'd from paper)
carry a left-hand column of page and line numbers. Each one shows up as a
newline followed by a short digit run and a few spaces, wedged in front of
the real text of the line.

HOW: Normalize CRLF to LF, then replace every ARTIFACT_RE match with a bare
newline in one pass. ARTIFACT_RE swallows stacked columns (page number
followed by line number) in a single match, so the result never exposes
a fresh artifact and a second pass is a no-op.

RULES:
- Output never contains "\\r\\n"
- clean_artifacts(clean_artifacts(t)) == clean_artifacts(t)
- One substitution pass over the text; never raises
"""

from __future__ import annotations

from deposition_formatter.core.patterns import ARTIFACT_RE


def normalize_line_endings(text: str) -> str:
    """Convert CRLF line endings to LF."""
    return text.replace("\r\n", "\n")


def clean_artifacts(text: str) -> str:
    """Strip page/line-number artifacts and normalize line endings.

    Args:
        text: Raw transcript text as uploaded.

    Returns:
        The cleaned text. Each artifact collapses to a single newline.
    """
    return ARTIFACT_RE.sub("\n", normalize_line_endings(text))
