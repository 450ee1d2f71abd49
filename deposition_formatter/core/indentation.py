"""Base indentation detection and removal.

WHY: Fixed-column transcripts indent every line by the width of the
line-number gutter. Once the numbers are gone, that gutter is just a run of
leading spaces that has to come off before line-wrap consolidation can tell
a continuation line from a deliberately indented block.

HOW: detect_base_indent() takes the smallest non-zero leading-space run
across non-blank lines. remove_indentation() deletes exactly ``n`` spaces
after each newline that is followed by at least ``n`` spaces.

RULES:
- Blank (whitespace-only) lines are ignored during detection
- Lines with no leading space do not count towards the minimum
- Default base indent is 5 when no line is indented
- Only "newline + n spaces" sequences are edited; the first line of the
  text (no preceding newline) is left alone
- A second pass with the same ``n`` only changes lines that still had
  ``n`` or more leading spaces after the first pass
"""

from __future__ import annotations

import re

from deposition_formatter.core.patterns import indentation_pattern

DEFAULT_BASE_INDENT = 5

_LINE_SPLIT_RE = re.compile(r"\r?\n")
_LEADING_RE = re.compile(r"^ +")


def detect_base_indent(text: str, default: int = DEFAULT_BASE_INDENT) -> int:
    """Return the minimum non-zero leading-space run, or ``default`` if none."""
    indents = []
    for line in _LINE_SPLIT_RE.split(text):
        if not line.strip():
            continue
        match = _LEADING_RE.match(line)
        if match:
            indents.append(len(match.group(0)))
    if indents:
        return min(indents)
    return default


def remove_indentation(text: str, spaces: int) -> str:
    """Remove ``spaces`` leading spaces from every line that has them.

    Raises:
        ValueError: if ``spaces`` is negative.
    """
    if spaces < 0:
        raise ValueError("Indentation width must be non-negative, got {}".format(spaces))
    if spaces == 0:
        return text
    return indentation_pattern(spaces).sub("\n", text)
