"""Word (.docx) transcript renderer.

WHY: Court reporters deliver transcripts as formatted documents, not raw
text. Q/A turns and speaker statements need consistent spacing and styling
that a plain-text export cannot carry.

HOW: Builds a python-docx Document from the ExportDocument's classified
lines: a centered title and company line, one paragraph per line of the
final text, and a centered footer. The document is serialized to bytes in
memory.

RULES:
- Title: header_text, bold, 16pt, centered, "Title" style
- Company line: 12pt, centered, followed by one empty paragraph
- Body font: Times New Roman 12pt
- Q/A lines: 6pt space before and after
- Speaker lines: italic, 6pt space before and after
- Plain lines: no extra spacing; blank lines become a spacing paragraph
- Blank lines before the first body paragraph are skipped
- Footer: footer_text, italic, 9pt, centered
- Output suffix: "_formatted_<YYYY-MM-DD>.docx"
"""

from __future__ import annotations

import io
from typing import List

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

from deposition_formatter.config import COMPANY_NAME
from deposition_formatter.core.models import ExportDocument, LineKind
from deposition_formatter.formatters.base import BaseFormatter, FormatterOutput

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_BODY_FONT = "Times New Roman"
_BODY_SIZE = Pt(12)
_TURN_SPACING = Pt(6)


def _add_centered(doc, text: str, size, bold: bool = False, italic: bool = False, style=None):
    paragraph = doc.add_paragraph(style=style)
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = paragraph.add_run(text)
    run.bold = bold
    run.italic = italic
    run.font.size = size
    return paragraph


def _add_body_line(doc, kind: LineKind, text: str):
    paragraph = doc.add_paragraph()
    run = paragraph.add_run(text or " ")
    run.font.name = _BODY_FONT
    run.font.size = _BODY_SIZE
    fmt = paragraph.paragraph_format

    if kind in (LineKind.QA, LineKind.SPEAKER):
        fmt.space_before = _TURN_SPACING
        fmt.space_after = _TURN_SPACING
        run.italic = kind is LineKind.SPEAKER
    elif kind is LineKind.BLANK:
        fmt.space_after = _TURN_SPACING
    else:
        fmt.space_after = Pt(0)
    return paragraph


class DocxFormatter(BaseFormatter):
    """Formatter that renders the transcript as a Word document."""

    @property
    def name(self) -> str:
        return "Word Document"

    @property
    def suffix(self) -> str:
        return "_formatted_YYYY-MM-DD.docx"

    def build(self, document: ExportDocument):
        """Return the python-docx Document (exposed for inspection in tests)."""
        doc = Document()

        _add_centered(doc, document.header_text, Pt(16), bold=True, style="Title")
        _add_centered(doc, document.company_name or COMPANY_NAME, Pt(12))
        doc.add_paragraph("")

        started = False
        for kind, text in document.lines:
            if kind is LineKind.BLANK and not started:
                continue
            started = True
            _add_body_line(doc, kind, text)

        _add_centered(doc, document.footer_text or "", Pt(9), italic=True)
        return doc

    def format(self, document: ExportDocument) -> List[FormatterOutput]:
        buffer = io.BytesIO()
        self.build(document).save(buffer)
        return [
            FormatterOutput(
                suffix="_formatted_{}.docx".format(document.generated_on.isoformat()),
                content=buffer.getvalue(),
                media_type=DOCX_MEDIA_TYPE,
            )
        ]
