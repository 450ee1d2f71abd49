"""Plain text export.

WHY: The simplest deliverable: the processed transcript exactly as the
pipeline left it, for pasting into other tools or archiving.

HOW: Writes ExportDocument.content verbatim. Header, footer, and company
metadata are deliberately not applied to plain text.

RULES:
- No transformation at export time
- Output suffix: "_formatted.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List

from deposition_formatter.core.models import ExportDocument
from deposition_formatter.formatters.base import BaseFormatter, FormatterOutput


class PlainTextFormatter(BaseFormatter):
    """Formatter that writes the final transcript text unchanged."""

    @property
    def name(self) -> str:
        return "Plain Text"

    @property
    def suffix(self) -> str:
        return "_formatted.txt"

    def format(self, document: ExportDocument) -> List[FormatterOutput]:
        return [
            FormatterOutput(
                suffix=self.suffix,
                content=document.content,
                media_type="text/plain",
            )
        ]
