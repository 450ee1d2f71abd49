"""Command-line interface for the deposition transcript formatter.

WHY: Most transcripts are processed in bulk from a terminal or a script.
The CLI runs the whole six-stage pipeline in one go and writes the
formatted outputs next to the source file.

HOW: argparse collects the input path and any settings the user wants to
pin. Settings left out are recommended by the analyzers (locally, or by a
remote detection service with --remote), falling back to the configured
defaults.
The final text is handed to each selected formatter and saved to disk.

RULES:
- Positional argument: input transcript (.txt)
- --boundary / --indent / --threshold pin a setting; omitted ones are detected
- --formats: comma-separated formatter keys (default: all registered)
- --analyze prints the analyzer reports as JSON to stdout and writes nothing
- Output naming: {stem}{suffix}, numeric suffix on conflict
  (smith_formatted-2.txt)
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from deposition_formatter.api.client import DetectionClient
from deposition_formatter.config import (
    DEFAULT_HEADER_TEXT,
    SUPPORTED_UPLOAD_FORMATS,
    default_options,
)
from deposition_formatter.core import analyzers
from deposition_formatter.core.boundary import locate_boundary
from deposition_formatter.core.cleaning import clean_artifacts
from deposition_formatter.core.indentation import remove_indentation
from deposition_formatter.core.marker import has_marker
from deposition_formatter.core.models import PipelineStage
from deposition_formatter.core.pipeline import run_pipeline
from deposition_formatter.formatters import FORMATTERS
from deposition_formatter.formatters.base import FormatterOutput


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError("expected an integer, got {!r}".format(raw))
    if value < 0:
        raise argparse.ArgumentTypeError("must be >= 0, got {}".format(value))
    return value


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. smith_formatted.txt)
    - Conflict: insert -2, -3, ... before the extension
      (e.g. smith_formatted-2.txt)
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(
    output: FormatterOutput,
    stem: str,
    output_dir: Path,
) -> Path:
    """Write one formatter output (text as UTF-8, bytes as-is)."""
    path = _resolve_output_path(stem, output.suffix, output_dir)

    if isinstance(output.content, bytes):
        path.write_bytes(output.content)
    else:
        path.write_text(output.content, encoding="utf-8")

    return path


def _analysis_report(text: str) -> Dict[str, dict]:
    """Run every analyzer the way the pipeline would see the text."""
    defaults = default_options()
    cleaned = clean_artifacts(text)
    caption = locate_boundary(cleaned)
    indentation = analyzers.analyze_indentation(cleaned, default=defaults.indent_spaces)
    body = remove_indentation(cleaned[caption.value:], indentation.value)
    line_breaks = analyzers.analyze_line_breaks(body, default=defaults.line_break_space_threshold)
    return {
        "caption": caption.to_dict(),
        "indentation": indentation.to_dict(),
        "line_breaks": line_breaks.to_dict(),
    }


async def _remote_settings(base_url: str, text: str) -> Dict[str, Optional[int]]:
    """Ask a detection service for settings; None where it had no answer."""
    cleaned = clean_artifacts(text)
    settings: Dict[str, Optional[int]] = {"boundary": None, "indent": None, "threshold": None}
    async with DetectionClient(base_url=base_url) as client:
        caption = await client.detect_caption(cleaned)
        indent = await client.detect_indentation(cleaned)
        if caption.success:
            settings["boundary"] = caption.value
        if indent.success:
            settings["indent"] = indent.value
        body = cleaned[settings["boundary"] or 0:]
        threshold = await client.analyze_line_breaks(
            remove_indentation(body, indent.value)
        )
        if threshold.success:
            settings["threshold"] = threshold.value
    for key, value in settings.items():
        if value is None:
            _status("  Remote service gave no {} recommendation, detecting locally".format(key))
    return settings


def _run(args: argparse.Namespace) -> None:
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    ext = input_path.suffix.lower()
    if ext not in SUPPORTED_UPLOAD_FORMATS:
        _fail("Unsupported file type '{}'. Supported formats: {}".format(
            ext, ", ".join(sorted(SUPPORTED_UPLOAD_FORMATS))
        ))

    try:
        text = input_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError:
        _fail("File is not valid UTF-8 text: {}".format(input_path))
    if has_marker(text):
        _fail("Transcript contains the reserved boundary marker character (U+1F6A9): {}".format(input_path))

    if args.analyze:
        print(json.dumps(_analysis_report(text), indent=2))
        return

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _fail("Output directory does not exist: {}".format(output_dir))

    if args.formats:
        format_keys = [f.strip() for f in args.formats.split(",") if f.strip()]
    else:
        format_keys = list(FORMATTERS.keys())
    for key in format_keys:
        if key not in FORMATTERS:
            _fail("Unknown format '{}'. Available: {}".format(
                key, ", ".join(sorted(FORMATTERS.keys()))
            ))

    boundary = args.boundary
    indent = args.indent
    threshold = args.threshold
    if args.remote:
        _status("Requesting recommendations from {}...".format(args.remote))
        remote = asyncio.run(_remote_settings(args.remote, text))
        boundary = boundary if boundary is not None else remote["boundary"]
        indent = indent if indent is not None else remote["indent"]
        threshold = threshold if threshold is not None else remote["threshold"]

    _status("Processing {}...".format(input_path.name))
    pipeline = run_pipeline(
        text,
        indent_spaces=indent,
        line_break_threshold=threshold,
        boundary=boundary,
        source_filename=input_path.name,
        defaults=default_options(),
    )

    caption = pipeline.detections[PipelineStage.DETECT_CAPTION]
    _status("  Caption boundary: offset {} (confidence {:.0%})".format(caption.value, caption.confidence))
    _status("  Indentation removed: {} spaces".format(pipeline.options.indent_spaces))
    _status("  Line-break threshold: {} spaces".format(pipeline.options.line_break_space_threshold))
    for detection in pipeline.detections.values():
        for warning in detection.warnings:
            _status("  Warning: {}".format(warning))

    document = pipeline.export_document(
        header_text=args.header,
        footer_text=args.footer,
        company_name=args.company,
    )
    saved: List[Path] = []
    for key in format_keys:
        for output in FORMATTERS[key]().format(document):
            saved.append(_save_output(output, document.stem, output_dir))

    _status("Saved {} file(s):".format(len(saved)))
    for path in saved:
        _status("  {}".format(path))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser (separate from main() for testing)."""
    parser = argparse.ArgumentParser(
        prog="deposition_formatter",
        description="Clean, split, and reflow a plain-text deposition transcript "
                    "and export it as text and/or a Word document.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the .txt transcript.",
    )

    parser.add_argument(
        "--boundary",
        type=_non_negative_int,
        default=None,
        help="Character offset (after artifact cleaning) where testimony starts. "
             "Detected when omitted.",
    )

    parser.add_argument(
        "--indent",
        type=_non_negative_int,
        default=None,
        help="Leading spaces to remove from each line. Detected when omitted.",
    )

    parser.add_argument(
        "--threshold",
        type=_non_negative_int,
        default=None,
        help="Leading-space run that keeps a line break. Detected when omitted.",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--header",
        default=DEFAULT_HEADER_TEXT,
        help="Document title (default: %(default)s).",
    )

    parser.add_argument(
        "--footer",
        default=None,
        help="Document footer (default: 'Generated on <date>').",
    )

    parser.add_argument(
        "--company",
        default=None,
        help="Company line under the title (default: DEPOSITION_COMPANY_NAME).",
    )

    parser.add_argument(
        "--remote",
        default=None,
        metavar="URL",
        help="Ask a running deposition-api at URL for recommendations "
             "instead of analyzing locally.",
    )

    parser.add_argument(
        "--analyze",
        action="store_true",
        help="Print the analyzer reports as JSON and exit without writing files.",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log pipeline details to stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m deposition_formatter`` and the console script.

    argv=None means use sys.argv; an explicit list is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    _run(args)


if __name__ == "__main__":
    main()
