"""Statistical analyzers that recommend pipeline settings.

WHY: Users rarely know a transcript's gutter width or how deep its quoted
blocks are indented. Sampling the document gives a good default for each
setting together with a confidence score and a sentence explaining it, so
the user can accept or override with their eyes open.

HOW: Three independent read-only scanners:
  analyze_indentation  - most frequent leading-space run → indent width
  analyze_line_breaks  - median continuation indent → line-break threshold
  validate_split       - checks the text right after the boundary marker

RULES:
- Analyzers never mutate text
- success=False means no usable signal; value holds the caller's default
- Confidence values and message wording are stable (shown verbatim in UIs)
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import List

from deposition_formatter.core.marker import find_marker
from deposition_formatter.core.models import (
    DetectionResult,
    SplitRecommendation,
    SplitValidation,
)
from deposition_formatter.core.patterns import (
    LEADING_SPACES_RE,
    PRESERVED_LINE_RE,
    TESTIMONY_OPENING_PATTERNS,
)

DEFAULT_INDENT = 5
DEFAULT_THRESHOLD = 5
MAX_SAMPLED_INDENT = 20
MIN_PRESERVED_BREAKS = 10
MIN_PRESERVATION_RATE = 20
CONTEXT_WINDOW = 100
CONTEXT_REPORTED = 50

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def _percent(part: int, whole: int) -> int:
    """Round half up, as a whole percentage."""
    if whole == 0:
        return 0
    return int(math.floor(part * 100.0 / whole + 0.5))


# ---------------------------------------------------------------------------
# Indentation
# ---------------------------------------------------------------------------


def analyze_indentation(text: str, default: int = DEFAULT_INDENT) -> DetectionResult[int]:
    """Recommend the indentation width to strip.

    Tallies leading-space runs of 1..20 over non-blank lines and picks the
    most frequent (first seen wins a tie). Confidence is the share of
    sampled lines with that width, capped at 0.95. With nothing indented
    the result is unsuccessful and carries ``default``.
    """
    counts: Counter = Counter()
    sampled = 0
    for line in _LINE_SPLIT_RE.split(text):
        if not line.strip():
            continue
        match = LEADING_SPACES_RE.match(line)
        if match:
            indent = len(match.group(1))
            if 0 < indent <= MAX_SAMPLED_INDENT:
                counts[indent] += 1
                sampled += 1

    if sampled == 0:
        return DetectionResult(
            success=False,
            value=default,
            confidence=0.2,
            reasoning="No indented lines found. Using default value of {} spaces.".format(default),
            stats={
                "sampled_lines": 0,
                "most_common_indent": default,
                "consistency_percentage": 0,
            },
        )

    indent, count = counts.most_common(1)[0]
    consistency = _percent(count, sampled)
    return DetectionResult(
        success=True,
        value=indent,
        confidence=min(consistency / 100.0, 0.95),
        reasoning="Found {} spaces as the most common indentation ({}% of lines).".format(
            indent, consistency
        ),
        stats={
            "sampled_lines": sampled,
            "most_common_indent": indent,
            "consistency_percentage": consistency,
        },
    )


# ---------------------------------------------------------------------------
# Line breaks
# ---------------------------------------------------------------------------


def analyze_line_breaks(text: str, default: int = DEFAULT_THRESHOLD) -> DetectionResult[int]:
    """Recommend the indent run that keeps a line break.

    Every line after the first is one line break. Lines opening with a Q/A
    marker, a speaker label, WHEREUPON or EXHIBIT are preserved breaks; the
    leading-space runs of the others are continuation samples. The
    threshold is the middle of the sorted distinct continuation runs, or
    ``default`` when there are none.
    """
    lines = _LINE_SPLIT_RE.split(text)
    total = 0
    preserved = 0
    continuation_indents: Counter = Counter()

    for line in lines[1:]:
        total += 1
        if PRESERVED_LINE_RE.match(line):
            preserved += 1
            continue
        match = LEADING_SPACES_RE.match(line)
        if match:
            continuation_indents[len(match.group(1))] += 1

    threshold = default
    distinct = sorted(continuation_indents)
    if distinct:
        threshold = distinct[len(distinct) // 2]

    consolidated = total - preserved
    rate = _percent(preserved, total)

    warnings: List[str] = []
    if preserved < MIN_PRESERVED_BREAKS:
        warnings.append("Low number of Q/A markers detected. Manual review recommended.")
    if rate < MIN_PRESERVATION_RATE:
        warnings.append("Most line breaks will be consolidated. Verify this is intended.")

    return DetectionResult(
        success=True,
        value=threshold,
        confidence=0.75 if preserved >= MIN_PRESERVED_BREAKS else 0.5,
        reasoning=(
            "Analyzed {} line breaks. {} have Q/A markers. Threshold of {} spaces "
            "preserves structure while consolidating continuations.".format(total, preserved, threshold)
        ),
        stats={
            "total_line_breaks": total,
            "preserved_breaks": preserved,
            "consolidated_breaks": consolidated,
            "preservation_rate": rate,
        },
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# Split validation
# ---------------------------------------------------------------------------


def validate_split(text: str) -> DetectionResult[SplitValidation]:
    """Check that the boundary marker sits just before testimony."""
    idx, length = find_marker(text)
    if idx == -1:
        return DetectionResult(
            success=False,
            value=SplitValidation(valid=False, recommendation=SplitRecommendation.CORRECT),
            confidence=0.0,
            reasoning="No marker found in content.",
        )

    before = text[max(0, idx - CONTEXT_WINDOW):idx]
    after = text[idx + length:idx + length + CONTEXT_WINDOW]
    before_reported = before[-CONTEXT_REPORTED:]
    after_reported = after[:CONTEXT_REPORTED]

    if any(pattern.search(after) for pattern in TESTIMONY_OPENING_PATTERNS):
        return DetectionResult(
            success=True,
            value=SplitValidation(
                valid=True,
                recommendation=SplitRecommendation.CORRECT,
                before_context=before_reported,
                after_context=after_reported,
            ),
            confidence=0.85,
            reasoning="Marker appears correctly positioned before testimony content.",
        )

    return DetectionResult(
        success=True,
        value=SplitValidation(
            valid=True,
            recommendation=SplitRecommendation.FINE_TUNE,
            before_context=before_reported,
            after_context=after_reported,
        ),
        confidence=0.6,
        reasoning="Marker position is acceptable but could not verify with high confidence.",
    )

