"""Deposition transcript formatter: clean, split, and reflow transcripts.

WHY: Plain-text deposition transcripts arrive hard-wrapped at a fixed
column, with page/line numbers in a left gutter and a caption block in
front of the testimony. Before they can be read, searched, or turned into a
formatted document, that layout has to come off without losing the Q/A and
speaker structure.

HOW: A six-stage pipeline (clean → detect caption → remove indentation →
validate split → consolidate line breaks → preview/export) built from pure
text transforms in ``core``, with heuristic analyzers recommending each
setting. Delivered through a CLI, a FastAPI server, and pluggable output
formatters (plain text, .docx).

RULES:
- core/ holds all transcript logic and has no I/O
- Every transform takes a string and returns a new string
- Formatters consume an ExportDocument; adding a format needs no core change
"""

__version__ = "0.1.0"
