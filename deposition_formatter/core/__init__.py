"""Transcript transforms, heuristics, and the pipeline state machine.

WHY: The core package is the only part of the project with non-trivial
logic: regex rewrites, boundary bookkeeping, and confidence scoring. The
CLI, the HTTP server, and the formatters are thin layers over it.

HOW: patterns.py holds the shared regexes, one module per transform
(cleaning, indentation, boundary, marker, linebreaks), analyzers.py holds
the three recommenders, models.py the shared types, and pipeline.py the
orchestrator that sequences them.

RULES:
- No file, network, or environment access in this package
- Transforms are total over strings; only invalid counts raise ValueError
- Output-format specifics belong in formatters/, not here
"""
