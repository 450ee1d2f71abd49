"""Boundary marker injection, extraction, and removal.

WHY: While a user edits the transcript in a text surface, the caption /
testimony split has to survive arbitrary edits before and after it. An
integer offset goes stale on the first keystroke; a glyph embedded in the
text moves with it. The orchestrator keeps the split as an integer and only
materializes the glyph when text is shown, edited, validated, or rewritten
by a transform that shifts offsets.

HOW: The marker is MARKER_TOKEN (the flag glyph followed by a newline).
inject_marker() inserts it at an offset, extract_marker() splits around it,
remove_marker() deletes it.

RULES:
- At most one marker is present after inject_marker()
- Offsets outside [0, len(text)] are clamped (logged as a warning)
- extract_marker() on text without a marker returns (text, "")
- extract_marker() on text with several markers splits on the first and
  drops the rest (logged as a warning)
- remove_marker() deletes the first MARKER_TOKEN only
- extract_marker(inject_marker(t, k)) == (t[:k], t[k:]) for 0 <= k <= len(t)
- remove_marker(inject_marker(t, k)) == t
- The flag glyph is reserved: inject_marker() and extract_marker() delete
  every stray BOUNDARY_MARKER, so a transcript that genuinely contains the
  glyph would lose it. Entry points reject such uploads before they reach
  the pipeline
"""

from __future__ import annotations

import logging
from typing import Tuple

from deposition_formatter.core.patterns import BOUNDARY_MARKER, MARKER_TOKEN

logger = logging.getLogger(__name__)


def has_marker(text: str) -> bool:
    return BOUNDARY_MARKER in text


def marker_count(text: str) -> int:
    return text.count(BOUNDARY_MARKER)


def find_marker(text: str) -> Tuple[int, int]:
    """Return (index, length) of the first marker, or (-1, 0).

    The full token (glyph + newline) is preferred; a bare glyph whose
    newline was edited away still counts as the split point.
    """
    idx = text.find(BOUNDARY_MARKER)
    if idx == -1:
        return -1, 0
    if text.startswith(MARKER_TOKEN, idx):
        return idx, len(MARKER_TOKEN)
    return idx, len(BOUNDARY_MARKER)


def inject_marker(text: str, offset: int) -> str:
    """Insert the boundary marker at ``offset``.

    An existing marker is removed first so the text never carries two.
    ``offset`` indexes ``text`` as given, old marker included, and is
    shifted so it lands on the same character once that marker is gone.
    """
    idx, length = find_marker(text)
    while idx != -1:
        logger.warning("Replacing existing boundary marker at offset %d", idx)
        text = text[:idx] + text[idx + length:]
        if idx < offset:
            offset -= min(length, offset - idx)
        idx, length = find_marker(text)

    if offset < 0 or offset > len(text):
        clamped = max(0, min(offset, len(text)))
        logger.warning("Boundary offset %d out of range [0, %d]; clamped to %d", offset, len(text), clamped)
        offset = clamped

    return text[:offset] + MARKER_TOKEN + text[offset:]


def extract_marker(text: str) -> Tuple[str, str]:
    """Split ``text`` around the boundary marker.

    Returns:
        (before, after) with the marker token excluded from both, or
        (text, "") when no marker is present.
    """
    idx, length = find_marker(text)
    if idx == -1:
        return text, ""

    before = text[:idx]
    after = text[idx + length:]
    if has_marker(after):
        logger.warning("Found %d extra boundary markers; ignoring all but the first", marker_count(after))
        after = after.replace(MARKER_TOKEN, "").replace(BOUNDARY_MARKER, "")
    return before, after


def remove_marker(text: str) -> str:
    """Delete the first marker token, or return ``text`` unchanged."""
    return text.replace(MARKER_TOKEN, "", 1)
