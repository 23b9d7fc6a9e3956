"""Command-line interface for document text extraction and reconciliation.

Provides subcommands to OCR a document, to structure it through the
extraction service, and to reconcile an existing extracted record
offline.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from scanrecon.errors import ScanReconError
from scanrecon.extraction.structurer import Structurer
from scanrecon.ocr.document_processor import DocumentProcessor
from scanrecon.ocr.progress import PageProgressEvent
from scanrecon.reconciliation.audit import ConsistencyReport, audit
from scanrecon.reconciliation.engine import ReconciliationEngine
from scanrecon.utils.config import load_config
from scanrecon.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _print_progress(event: PageProgressEvent) -> None:
    print(f"[{event.page_index}/{event.total_pages}] {event.describe()}", file=sys.stderr)


def _emit(output: str, path: Path | None) -> None:
    """Write output to a file, or print it."""
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output)
        print(f"Output written to {path}")
    else:
        print(output)


def _report_payload(report: ConsistencyReport) -> list[dict[str, Any]]:
    return [
        {
            "field": issue.field_name,
            "message": issue.message,
            "expected": issue.expected,
            "actual": issue.actual,
        }
        for issue in report.issues
    ]


def ocr_file(file_path: Path, config_path: Path | None = None, verbose: bool = False) -> str:
    """Extract the combined text of a document file.

    Args:
        file_path: PDF, TIFF, or image file.
        config_path: Optional YAML configuration file.
        verbose: Print per-page progress to stderr.

    Returns:
        Page texts joined with page-break markers.
    """
    config = load_config(config_path)
    processor = DocumentProcessor(config)
    if verbose:
        processor.progress.subscribe(_print_progress)
    try:
        return processor.extract_text(file_path, file_path.name)
    finally:
        processor.close()


def structure_file(
    file_path: Path,
    config_path: Path | None = None,
    verbose: bool = False,
    with_audit: bool = False,
) -> dict[str, Any]:
    """OCR a document, extract its fields, and reconcile them.

    Args:
        file_path: PDF, TIFF, or image file.
        config_path: Optional YAML configuration file.
        verbose: Print per-page progress to stderr.
        with_audit: Include remaining arithmetic inconsistencies.

    Returns:
        ``{"structured": ...}`` plus ``"issues"`` when auditing.
    """
    text = ocr_file(file_path, config_path, verbose)
    structurer = Structurer(load_config(config_path))
    document, report = structurer.structure(text, file_path.name)

    result: dict[str, Any] = {"structured": document.to_dict()}
    if with_audit:
        result["issues"] = _report_payload(report)
    return result


def reconcile_file(
    json_path: Path,
    config_path: Path | None = None,
    with_audit: bool = False,
) -> dict[str, Any]:
    """Reconcile an extracted record stored as JSON, without any network call.

    Accepts either a bare record or a ``{"structured": record}`` wrapper.
    """
    config = load_config(config_path)
    raw = json.loads(json_path.read_text())
    if isinstance(raw, dict) and isinstance(raw.get("structured"), dict):
        raw = raw["structured"]

    document = ReconciliationEngine(config.reconciliation).reconcile(raw)
    result: dict[str, Any] = {"structured": document.to_dict()}
    if with_audit:
        report = audit(document, config.reconciliation.tolerance)
        result["issues"] = _report_payload(report)
    return result


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Scanned document OCR and arithmetic reconciliation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ocr_parser = subparsers.add_parser("ocr", help="Extract text from a document")
    ocr_parser.add_argument("file", type=Path, help="PDF, TIFF, or image file")
    ocr_parser.add_argument("-o", "--output", type=Path, help="Output text file")
    ocr_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print page progress"
    )

    structure_parser = subparsers.add_parser(
        "structure", help="OCR a document and extract reconciled fields"
    )
    structure_parser.add_argument("file", type=Path, help="PDF, TIFF, or image file")
    structure_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    structure_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print page progress"
    )
    structure_parser.add_argument(
        "--audit", action="store_true", help="Report remaining inconsistencies"
    )

    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Reconcile an extracted JSON record"
    )
    reconcile_parser.add_argument("file", type=Path, help="Extracted record JSON")
    reconcile_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    reconcile_parser.add_argument(
        "--audit", action="store_true", help="Report remaining inconsistencies"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    setup_logging(load_config(args.config).log_level)

    if not args.file.exists():
        print(f"Error: {args.file} does not exist", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "ocr":
            _emit(ocr_file(args.file, args.config, args.verbose), args.output)
        elif args.command == "structure":
            result = structure_file(args.file, args.config, args.verbose, args.audit)
            _emit(json.dumps(result, indent=2), args.output)
        elif args.command == "reconcile":
            result = reconcile_file(args.file, args.config, args.audit)
            _emit(json.dumps(result, indent=2), args.output)
    except (ScanReconError, json.JSONDecodeError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
