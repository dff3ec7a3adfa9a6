"""Command-line interface for batch document processing and CSV export.

Provides subcommands for processing a folder of documents into a CSV of
extracted fields and for processing a single document into JSON.
"""

import argparse
import csv
import json
import sys
import time
from dataclasses import fields
from pathlib import Path

from docvision.errors import DocumentError
from docvision.extraction.fields import FieldRecord
from docvision.ocr.document_processor import DocumentOutcome, DocumentProcessor
from docvision.ocr.page_renderer import Document
from docvision.utils.config import load_config
from docvision.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_MIME_BY_SUFFIX = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".pdf": "application/pdf",
}
_META_COLUMNS = [
    "filename",
    "status",
    "page_count",
    "processed_page_count",
    "tokens_used",
    "processing_time_s",
    "error",
]
_FIELD_COLUMNS = [f.name for f in fields(FieldRecord) if f.name != "additional_fields"]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.

    Returns:
        Sorted list of document file paths.
    """
    return sorted(
        p
        for p in input_dir.iterdir()
        if p.is_file() and p.suffix.lower() in _MIME_BY_SUFFIX
    )


def _load_document(file_path: Path) -> Document:
    """Read a file into a document, deriving its MIME type from the suffix."""
    return Document(
        content=file_path.read_bytes(),
        content_type=_MIME_BY_SUFFIX.get(file_path.suffix.lower(), ""),
        filename=file_path.name,
    )


def _outcome_row(outcome: DocumentOutcome) -> dict[str, object]:
    """Flatten a document outcome into one CSV row."""
    row: dict[str, object] = {
        "filename": outcome.source_file,
        "status": "success" if outcome.success else "failed",
        "page_count": outcome.page_count,
        "processed_page_count": outcome.processed_page_count,
        "tokens_used": outcome.tokens_used,
        "error": outcome.error_message,
    }
    if outcome.fields is not None:
        record = outcome.fields.to_dict()
        row.update({name: record[name] for name in _FIELD_COLUMNS})
        for key, value in (outcome.fields.additional_fields or {}).items():
            row[f"additional.{key}"] = value
    return row


def process_folder(
    input_dir: Path,
    output_csv: Path,
    verbose: bool = False,
) -> dict[str, int]:
    """Process all documents in a folder and export results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))
    processor = DocumentProcessor(load_config())

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    try:
        for i, file_path in enumerate(files, 1):
            if verbose:
                print(f"Processing [{i}/{len(files)}]: {file_path.name}")

            start_time = time.time()
            try:
                outcome = processor.process(_load_document(file_path))
            except DocumentError as exc:
                logger.error("Failed to process %s: %s", file_path.name, exc)
                results.append(
                    {"filename": file_path.name, "status": "failed", "error": str(exc)}
                )
                failed += 1
                continue

            row = _outcome_row(outcome)
            row["processing_time_s"] = round(time.time() - start_time, 2)
            results.append(row)
            if outcome.success:
                successful += 1
            else:
                failed += 1
    finally:
        processor.close()

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction results to a CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    columns = [c for c in _META_COLUMNS + _FIELD_COLUMNS if c in all_keys]
    columns += sorted(all_keys - set(columns))

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout.

    Args:
        summary: Counts of total, successful, and failed documents.
        output_csv: Path to the output CSV.
    """
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(file_path: Path) -> dict[str, object]:
    """Process a single document and return structured results.

    Args:
        file_path: Path to the document file.

    Returns:
        Dictionary with outcome summary, fields, per-page status and text.
    """
    processor = DocumentProcessor(load_config())
    try:
        outcome = processor.process(_load_document(file_path))
    finally:
        processor.close()

    return {
        "filename": outcome.source_file,
        "success": outcome.success,
        "error": outcome.error_message,
        "page_count": outcome.page_count,
        "processed_page_count": outcome.processed_page_count,
        "tokens_used": outcome.tokens_used,
        "fields": outcome.fields.to_dict() if outcome.fields else None,
        "pages": [
            {"page": o.index + 1, "success": o.success, "error": o.error}
            for o in outcome.outcomes
        ],
        "processing_steps": outcome.processing_steps,
        "text": outcome.text,
    }


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="docvision document processor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    single_parser = subparsers.add_parser("extract", help="Process a single document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    setup_logging()

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.verbose)
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file)
        except DocumentError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
