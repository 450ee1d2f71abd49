"""Output formatter registry.

WHY: The CLI and the HTTP API need a single lookup to find the right
formatter by name. A central dict makes adding a format a two-line change.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["docx"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and URLs)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from deposition_formatter.formatters.docx_document import DocxFormatter
from deposition_formatter.formatters.plain_text import PlainTextFormatter

if TYPE_CHECKING:
    from deposition_formatter.formatters.base import BaseFormatter

FORMATTERS: Dict[str, Type[BaseFormatter]] = {
    "plain_text": PlainTextFormatter,
    "docx": DocxFormatter,
}
