"""Abstract base formatter and output container.

WHY: Every export format consumes the same ExportDocument but produces
different file content. This base class enforces a consistent interface so
the CLI and the HTTP API can work with any formatter generically.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content (string or bytes) and MIME type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list, one item per output file
- ``suffix`` starts with an underscore, e.g. ``"_formatted.txt"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Union

from deposition_formatter.core.models import ExportDocument


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"_formatted.txt"`` → ``"smith-depo_formatted.txt"``.
        content: The file content as a string (plain text) or bytes (.docx).
        media_type: MIME type for the content.
    """

    suffix: str
    content: Union[str, bytes]
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Word Document'."""

    @property
    @abstractmethod
    def suffix(self) -> str:
        """Suffix of the (first) output file, for format listings."""

    @abstractmethod
    def format(self, document: ExportDocument) -> List[FormatterOutput]:
        """Convert the final transcript into one or more output files.

        Args:
            document: Final pipeline text plus header/footer metadata.

        Returns:
            List of FormatterOutput objects.
        """
