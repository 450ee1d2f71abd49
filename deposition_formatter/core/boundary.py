"""Caption / testimony boundary detection.

WHY: Line-wrap consolidation must not touch the caption (case number,
parties, appearances), whose line breaks are meaningful. The pipeline needs
a character offset where the caption ends and sworn testimony begins.

HOW: locate_boundary() scans for the earliest line that opens testimony
(Q/A marker, THE WITNESS:, MR./MS. <name>:). Without any such line it falls
back to a position estimate from document length. manual_boundary() wraps
a cursor offset chosen by the user.

RULES:
- Pattern match → offset of the marker token itself, confidence 0.7
- No match → floor(min(0.2 * len(text), 1500)), confidence 0.3
- Manual boundary → clamped into [0, len(text)], confidence 1.0
- Deterministic; never raises
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from deposition_formatter.core.models import DetectionResult
from deposition_formatter.core.patterns import CAPTION_END_PATTERNS

PATTERN_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.3
FALLBACK_SHARE = 0.2
FALLBACK_MAX_CHARS = 1500


def _earliest_match(text: str) -> Optional[Tuple[int, str]]:
    best: Optional[Tuple[int, str]] = None
    for name, pattern in CAPTION_END_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        offset = match.start("marker")
        if best is None or offset < best[0]:
            best = (offset, name)
    return best


def locate_boundary(text: str) -> DetectionResult[int]:
    """Find where the caption ends and testimony begins."""
    found = _earliest_match(text)
    if found is not None:
        offset, name = found
        return DetectionResult(
            success=True,
            value=offset,
            confidence=PATTERN_CONFIDENCE,
            reasoning="Testimony starts at the first {} (offset {}).".format(name, offset),
            stats={"pattern": name, "text_length": len(text)},
        )

    estimate = int(math.floor(min(len(text) * FALLBACK_SHARE, FALLBACK_MAX_CHARS)))
    return DetectionResult(
        success=True,
        value=estimate,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=(
            "No Q/A marker or speaker label found; estimated the caption "
            "from typical caption length (offset {}).".format(estimate)
        ),
        stats={"pattern": None, "text_length": len(text)},
    )


def manual_boundary(text: str, offset: int) -> DetectionResult[int]:
    """Wrap a user-chosen cursor offset as ground truth."""
    clamped = max(0, min(offset, len(text)))
    return DetectionResult(
        success=True,
        value=clamped,
        confidence=1.0,
        reasoning="Boundary set manually at offset {}.".format(clamped),
        stats={"pattern": "manual", "text_length": len(text)},
    )
