"""
CLI for catalog import operations.

Imports brands, colors and formula components either as one batch
(a spreadsheet or three CSV files) or stage by stage (one CSV per table).

Usage:
    paintmix-import batch --workbook catalog.xlsx
    paintmix-import batch --brands b.csv --colors c.csv --components f.csv --dry-run
    paintmix-import stage colors colors.csv --dry-run
    paintmix-import status

Exit Codes:
    0 - Success (preview clean or commit written)
    1 - Blocked by validation errors (nothing written)
    2 - Failure (transaction aborted, or unexpected error)
    3 - Invalid arguments, unreadable upload, or stage not ready
"""

import argparse
import logging
import sys
from typing import List, Sequence

from paintmix.services.batch_import_service import BatchUpload, import_batch
from paintmix.services.database import initialize_app_database
from paintmix.services.exceptions import ImportTransactionError, ImportUploadError
from paintmix.services.import_preview import ImportIssue
from paintmix.services.import_state_service import get_import_status, stage_ready
from paintmix.services.staged_import_service import import_stage
from paintmix.utils.config import get_config
from paintmix.utils.constants import IMPORT_TABLES

# Exit code constants
EXIT_SUCCESS = 0
EXIT_BLOCKED = 1
EXIT_FAILURE = 2
EXIT_INVALID_ARGS = 3

ERRORS_SHOWN = 10

PREVIOUS_STAGE = {"colors": "brands", "components": "colors"}


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with EXIT_INVALID_ARGS on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_INVALID_ARGS, f"{self.prog}: error: {message}\n")


def print_errors(errors: Sequence[ImportIssue], verbose: bool) -> None:
    """Print import errors; only the first few unless verbose."""
    if not errors:
        return
    shown = errors if verbose else errors[:ERRORS_SHOWN]
    print(f"\nErrors ({len(errors)}):")
    for error in shown:
        print(f"  - {error.describe()}")
    if len(errors) > len(shown):
        print(f"  ... and {len(errors) - len(shown)} more (use --verbose to list all)")


def _run_batch(parsed_args) -> int:
    upload = BatchUpload(
        workbook=parsed_args.workbook,
        brands=parsed_args.brands,
        colors=parsed_args.colors,
        components=parsed_args.components,
    )
    preview = import_batch(upload, dry_run=parsed_args.dry_run)

    for table in IMPORT_TABLES:
        print(f"{table}: {len(preview.data[table])} valid rows")
    print_errors(preview.errors, parsed_args.verbose)

    if preview.blocked:
        print("\nImport blocked: fix the errors above and try again.")
        return EXIT_BLOCKED

    if preview.result is not None:
        counts = preview.result
        print(
            f"\nWritten: {counts.brands} brands, {counts.colors} colors, "
            f"{counts.components} components"
        )
    return EXIT_SUCCESS


def _run_stage(parsed_args) -> int:
    table = parsed_args.table
    if not parsed_args.force and not stage_ready(table, get_import_status()):
        print(
            f"Error: import {PREVIOUS_STAGE[table]} before {table} (use --force to override)",
            file=sys.stderr,
        )
        return EXIT_INVALID_ARGS

    preview = import_stage(table, parsed_args.file, dry_run=parsed_args.dry_run)

    print(
        f"{table}: {preview.total_rows} rows, {preview.valid_rows} valid, "
        f"{preview.invalid_rows} invalid"
    )
    print_errors(preview.errors, parsed_args.verbose)

    if preview.blocked:
        print("\nImport blocked: fix the errors above and try again.")
        return EXIT_BLOCKED

    counts = preview.result if preview.result is not None else preview.projected
    label = "Written" if preview.result is not None else "Would write"
    print(
        f"\n{label}: {counts.created} created, {counts.updated} updated, "
        f"{counts.skipped} unchanged"
    )
    return EXIT_SUCCESS


def _run_status(parsed_args) -> int:
    status = get_import_status()
    flags = {
        "brands": status.brands_done,
        "colors": status.colors_done,
        "components": status.components_done,
    }
    for table in IMPORT_TABLES:
        mark = "done" if flags[table] else "pending"
        print(f"{table:<12} {mark:<8} {status.counts.get(table, 0)} rows")
    return EXIT_SUCCESS


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = _ArgumentParser(
        prog="paintmix-import",
        description="Import paint brands, colors and formula components",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s batch --workbook catalog.xlsx                  # Whole catalog from a spreadsheet
  %(prog)s batch --brands b.csv --colors c.csv \\
        --components f.csv --dry-run                      # Preview three CSV files
  %(prog)s stage brands brands.csv                        # Staged: brands first
  %(prog)s stage colors colors.csv --dry-run              # Preview the colors stage
  %(prog)s status                                         # Show staged import progress

Exit Codes:
  0 - Success
  1 - Blocked by validation errors
  2 - Failure (nothing written)
  3 - Invalid arguments, unreadable upload, or stage not ready
        """,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="List every error and enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{config.app_name} {config.app_version}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    batch = subparsers.add_parser("batch", help="Import the whole catalog at once")
    batch.add_argument("--workbook", help="Spreadsheet with brands/colors/components sheets")
    batch.add_argument("--brands", help="Brands CSV file")
    batch.add_argument("--colors", help="Colors CSV file")
    batch.add_argument("--components", help="Components CSV file")
    batch.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview changes without modifying the database",
    )
    batch.set_defaults(handler=_run_batch)

    stage = subparsers.add_parser("stage", help="Import one table of the staged workflow")
    stage.add_argument("table", choices=IMPORT_TABLES, help="Table to import")
    stage.add_argument("file", help="CSV file for the table")
    stage.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview changes without modifying the database",
    )
    stage.add_argument(
        "--force",
        action="store_true",
        help="Run even if the previous stage is not done",
    )
    stage.set_defaults(handler=_run_stage)

    status = subparsers.add_parser("status", help="Show staged import progress")
    status.set_defaults(handler=_run_status)

    return parser


def main(args: List[str] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    parsed_args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if getattr(parsed_args, "dry_run", False):
        print("=" * 60)
        print("DRY RUN - No changes will be made")
        print("=" * 60)
        print()

    initialize_app_database()

    try:
        return parsed_args.handler(parsed_args)

    except ImportUploadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_ARGS

    except ImportTransactionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
