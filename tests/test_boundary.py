"""Tests for caption boundary detection and the boundary marker.

WHY: Every later stage trusts the boundary. A locator that drifts by a
few characters, or a marker that does not round-trip, silently moves
caption text into the body (where it gets reflowed) or vice versa.

HOW: Tests are organized by class:
  - TestLocateBoundary: pattern matches, earliest-wins, fallback estimate
  - TestManualBoundary: user offsets are clamped and trusted
  - TestMarkerRoundTrip: inject/extract/remove agree with plain slicing
  - TestMarkerEdgeCases: existing, duplicate, bare, and missing markers
"""

from __future__ import annotations

import pytest

from deposition_formatter.core.boundary import (
    FALLBACK_CONFIDENCE,
    PATTERN_CONFIDENCE,
    locate_boundary,
    manual_boundary,
)
from deposition_formatter.core.marker import (
    extract_marker,
    find_marker,
    has_marker,
    inject_marker,
    marker_count,
    remove_marker,
)
from deposition_formatter.core.patterns import BOUNDARY_MARKER, MARKER_TOKEN

# ---------------------------------------------------------------------------
# TestLocateBoundary
# ---------------------------------------------------------------------------


class TestLocateBoundary:

    def test_witness_statement_after_caption(self):
        text = "IN THE MATTER OF\nSMITH V. JONES\n\nTHE WITNESS: I do."
        result = locate_boundary(text)
        assert result.success is True
        assert result.value == text.index("THE WITNESS:")
        assert result.confidence == PATTERN_CONFIDENCE
        assert result.stats["pattern"] == "witness statement"

    def test_question_marker(self, sample_transcript):
        result = locate_boundary(sample_transcript)
        assert result.value == sample_transcript.index("Q.  Please")
        assert result.stats["pattern"] == "question marker"

    def test_earliest_match_wins(self):
        text = "CAPTION\nMR. JONES: Good morning.\nQ.  State your name."
        result = locate_boundary(text)
        assert result.value == text.index("MR. JONES:")
        assert result.stats["pattern"] == "attorney statement (MR.)"

    def test_ms_attorney_statement(self):
        text = "CAPTION\nMS. LEE: Let's begin."
        assert locate_boundary(text).value == text.index("MS. LEE:")

    def test_case_insensitive(self):
        text = "caption\nthe witness: yes."
        assert locate_boundary(text).value == text.index("the witness:")

    def test_single_space_after_bare_letter_is_not_a_marker(self):
        text = "CAPTION\nA big house on the hill\nQ.  Where is it?"
        assert locate_boundary(text).value == text.index("Q.  Where")

    def test_boundary_can_be_zero(self):
        assert locate_boundary("Q.  First question.").value == 0

    def test_fallback_is_a_fifth_of_short_text(self):
        result = locate_boundary("x" * 100)
        assert result.value == 20
        assert result.confidence == FALLBACK_CONFIDENCE
        assert result.stats["pattern"] is None

    def test_fallback_capped_for_long_text(self):
        assert locate_boundary("x" * 10000).value == 1500

    def test_fallback_on_empty_text(self):
        assert locate_boundary("").value == 0

    def test_deterministic(self, sample_transcript):
        first = locate_boundary(sample_transcript)
        second = locate_boundary(sample_transcript)
        assert (first.value, first.confidence) == (second.value, second.confidence)


# ---------------------------------------------------------------------------
# TestManualBoundary
# ---------------------------------------------------------------------------


class TestManualBoundary:

    def test_full_confidence(self):
        result = manual_boundary("abcdef", 3)
        assert result.value == 3
        assert result.confidence == 1.0
        assert result.stats["pattern"] == "manual"

    def test_clamped_to_text(self):
        assert manual_boundary("abc", 99).value == 3
        assert manual_boundary("abc", -4).value == 0


# ---------------------------------------------------------------------------
# TestMarkerRoundTrip
# ---------------------------------------------------------------------------


class TestMarkerRoundTrip:

    @pytest.mark.parametrize("offset", [0, 5, 12])
    def test_extract_inverts_inject(self, offset):
        text = "CAPTION\nQ. Hi"
        assert extract_marker(inject_marker(text, offset)) == (text[:offset], text[offset:])

    def test_remove_inverts_inject(self, sample_transcript):
        marked = inject_marker(sample_transcript, 40)
        assert remove_marker(marked) == sample_transcript

    def test_inject_inserts_token(self):
        assert inject_marker("abc", 1) == "a" + MARKER_TOKEN + "bc"

    def test_find_marker_reports_token_length(self):
        assert find_marker("ab" + MARKER_TOKEN) == (2, len(MARKER_TOKEN))
        assert find_marker("nothing") == (-1, 0)


# ---------------------------------------------------------------------------
# TestMarkerEdgeCases
# ---------------------------------------------------------------------------


class TestMarkerEdgeCases:

    def test_inject_replaces_existing_marker(self):
        marked = inject_marker("abcdef", 2)
        # offset 6 in the marked text is the "e"
        remarked = inject_marker(marked, 6)
        assert marker_count(remarked) == 1
        assert extract_marker(remarked) == ("abcd", "ef")

    def test_inject_clamps_out_of_range_offsets(self):
        assert inject_marker("abc", 99) == "abc" + MARKER_TOKEN
        assert inject_marker("abc", -5) == MARKER_TOKEN + "abc"

    def test_extract_without_marker(self):
        assert extract_marker("plain text") == ("plain text", "")

    def test_extract_bare_glyph(self):
        assert extract_marker("ab" + BOUNDARY_MARKER + "cd") == ("ab", "cd")

    def test_extract_splits_on_first_of_several(self):
        text = "a" + MARKER_TOKEN + "b" + MARKER_TOKEN + "c"
        assert extract_marker(text) == ("a", "bc")

    def test_remove_without_marker_is_identity(self):
        assert remove_marker("abc") == "abc"

    def test_has_marker(self):
        assert has_marker("x" + BOUNDARY_MARKER)
        assert not has_marker("x")
