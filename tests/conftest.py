"""Shared test fixtures for the deposition_formatter test suite.

WHY: The pipeline, CLI, and API tests all walk the same small transcript
through every stage. Keeping it (and its expected final text) in one
place means the hand-checked expectations live next to the input.

HOW: SAMPLE_TRANSCRIPT is a caption block followed by five-space-indented
Q/A testimony with one soft wrap and one deeper continuation line.
EXPECTED_FINAL is what the default pipeline produces from it.

RULES:
- The sample has no line-number artifacts
- Detected settings for the sample: indent 5, threshold 5
- The detected boundary is the "Q." of the first question
"""

from __future__ import annotations

import pytest

SAMPLE_TRANSCRIPT = (
    "IN THE SUPERIOR COURT\n"
    "COUNTY OF SAN DIEGO\n"
    "\n"
    "DEPOSITION OF JANE SMITH\n"
    "     Q.  Please state your name\n"
    "     for the record.\n"
    "     A.  Jane Smith.\n"
    "     Q.  Where do you live?\n"
    "     A.  San Diego,\n"
    "          California."
)

CAPTION = (
    "IN THE SUPERIOR COURT\n"
    "COUNTY OF SAN DIEGO\n"
    "\n"
    "DEPOSITION OF JANE SMITH\n"
)

EXPECTED_FINAL = (
    CAPTION
    + "\n"
    + "Q.  Please state your name for the record.\n"
    "A.  Jane Smith.\n"
    "Q.  Where do you live?\n"
    "A.  San Diego,\n"
    "     California."
)


@pytest.fixture
def sample_transcript() -> str:
    return SAMPLE_TRANSCRIPT


@pytest.fixture
def expected_final() -> str:
    return EXPECTED_FINAL


@pytest.fixture
def sample_file(tmp_path):
    """The sample transcript written to a .txt file."""
    path = tmp_path / "smith_depo.txt"
    path.write_text(SAMPLE_TRANSCRIPT, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _no_api_token(monkeypatch):
    """Keep a developer's DEPOSITION_API_TOKEN out of the tests."""
    monkeypatch.delenv("DEPOSITION_API_TOKEN", raising=False)


@pytest.fixture
def caption_text() -> str:
    """Caption block of the sample, as it reads once indentation is gone."""
    return CAPTION
