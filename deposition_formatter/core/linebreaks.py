"""Soft line-wrap consolidation for the testimony body.

WHY: Transcripts hard-wrap at a fixed column, so a sentence spans several
lines. A newline in mid-sentence looks exactly like a paragraph break
except for what follows it: a new Q/A turn, or a deliberately indented
block, means the break is real. Anything else is a soft wrap.

HOW: In the body only, every newline not followed by ``Q.``, ``Q``, ``A.``,
``A`` or at least ``threshold`` spaces becomes a single space. The caption
is reattached unchanged with one newline between the halves.

RULES:
- The caption is never rewritten
- Result is caption + "\\n" + consolidated body
- The Q/A lookahead is case-sensitive and also fires on body lines that
  merely begin with a capital Q or A (known heuristic limitation)
- threshold == 0 preserves every newline
"""

from __future__ import annotations

from deposition_formatter.core.marker import extract_marker, has_marker
from deposition_formatter.core.patterns import linebreak_pattern


def consolidate_body(body: str, threshold: int) -> str:
    """Join soft-wrapped lines of ``body`` with single spaces."""
    if threshold < 0:
        raise ValueError("Line-break threshold must be non-negative, got {}".format(threshold))
    return linebreak_pattern(threshold).sub(" ", body)


def consolidate_line_breaks(caption: str, body: str, threshold: int) -> str:
    """Consolidate ``body`` and reattach ``caption`` in front of it."""
    return caption + "\n" + consolidate_body(body, threshold)


def consolidate_marked_text(text: str, threshold: int) -> str:
    """Split on the boundary marker, then consolidate the body.

    Without a marker the whole text is treated as body and nothing is
    prepended.
    """
    if not has_marker(text):
        return consolidate_body(text, threshold)
    caption, body = extract_marker(text)
    return consolidate_line_breaks(caption, body, threshold)
