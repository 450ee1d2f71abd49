"""Regular expressions and literal markers for deposition transcript layout.

WHY: Every transform and heuristic in the pipeline keys off the same small
set of court-reporting conventions: page/line-number columns, Q/A turn
markers, speaker labels, and the boundary marker glyph. Keeping them in one
module means a convention change is a one-line edit, not a hunt through
the cleaner, the locator, and three analyzers.

HOW: Module-level compiled patterns plus two small builders for the
patterns whose quantifier depends on a user-supplied count.

RULES:
- No logic here beyond pattern construction
- Caption-end patterns expose a named group ``marker``; its start is the
  boundary offset reported by the locator
- Caption-end patterns are case-insensitive and line-anchored (MULTILINE)
- The line-break lookahead is case-sensitive: only capital Q/A preserve
"""

from __future__ import annotations

import re
from typing import List, Pattern, Tuple

# ---------------------------------------------------------------------------
# Boundary marker
# ---------------------------------------------------------------------------

BOUNDARY_MARKER = "\U0001F6A9"
"""Sentinel code point (red flag) marking the caption/testimony split."""

MARKER_TOKEN = BOUNDARY_MARKER + "\n"
"""The marker as inserted into text: glyph immediately followed by a newline."""

# ---------------------------------------------------------------------------
# Artifact cleaning
# ---------------------------------------------------------------------------

# Newline, then one or more columns of (optional whitespace, a digit run,
# up to three spaces). Stacked page/line columns go in a single match.
ARTIFACT_RE = re.compile(r"\n(?:\s*\d+\s{0,3})+")

# ---------------------------------------------------------------------------
# Caption boundary detection
# ---------------------------------------------------------------------------

_LINE_START = r"^[ \t]*"

CAPTION_END_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    (
        "question marker",
        re.compile(_LINE_START + r"(?P<marker>Q(?:\.\s|[ \t]{2,}|\t))", re.IGNORECASE | re.MULTILINE),
    ),
    (
        "answer marker",
        re.compile(_LINE_START + r"(?P<marker>A(?:\.\s|[ \t]{2,}|\t))", re.IGNORECASE | re.MULTILINE),
    ),
    (
        "witness statement",
        re.compile(_LINE_START + r"(?P<marker>THE\s+WITNESS:)", re.IGNORECASE | re.MULTILINE),
    ),
    (
        "attorney statement (MR.)",
        re.compile(_LINE_START + r"(?P<marker>MR\.\s+\w+:)", re.IGNORECASE | re.MULTILINE),
    ),
    (
        "attorney statement (MS.)",
        re.compile(_LINE_START + r"(?P<marker>MS\.\s+\w+:)", re.IGNORECASE | re.MULTILINE),
    ),
]
"""Ordered (name, pattern) pairs signalling the start of testimony."""

# ---------------------------------------------------------------------------
# Heuristic analyzers
# ---------------------------------------------------------------------------

LEADING_SPACES_RE = re.compile(r"^( +)")

PRESERVED_LINE_RE = re.compile(
    r"^\s*(Q\.|Q |A\.|A |THE\s+\w+:|MR\.|MS\.|WHEREUPON|EXHIBIT)"
)

TESTIMONY_OPENING_PATTERNS: List[Pattern[str]] = [
    re.compile(r"THE\s+REPORTER:", re.IGNORECASE),
    re.compile(r"THE\s+BAILIFF:", re.IGNORECASE),
    re.compile(r"VIDEOGRAPHER:", re.IGNORECASE),
    re.compile(r"Q\.\s"),
    re.compile(r"A\.\s"),
]

# ---------------------------------------------------------------------------
# Renderer line classification
# ---------------------------------------------------------------------------

QA_LINE_RE = re.compile(r"^(Q\.|A\.)")
SPEAKER_LINE_RE = re.compile(r"^(MR\.|MS\.|THE\s+WITNESS:|THE\s+COURT:)", re.IGNORECASE)


def linebreak_pattern(threshold: int) -> Pattern[str]:
    """Newlines NOT followed by a Q/A marker or ``threshold``+ spaces."""
    return re.compile(r"\n(?!Q\.|Q|A\.|A| {%d,})" % threshold)


def indentation_pattern(spaces: int) -> Pattern[str]:
    """A newline followed by exactly ``spaces`` literal spaces."""
    return re.compile(r"\n {%d}" % spaces)
