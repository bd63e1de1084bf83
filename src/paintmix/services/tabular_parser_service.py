"""
Tabular Parser Service - turns uploaded CSV files or a spreadsheet into rows.

Two upload shapes are supported:
- one spreadsheet (.xlsx) with sheets named ``brands``, ``colors`` and
  ``components``, first row = header
- three comma-separated UTF-8 files, one per table, first line = header

Every data row is tagged with its 1-based source row number (header = 1,
first data row = 2). Blank lines are dropped before numbering.

Usage:
    from paintmix.services.tabular_parser_service import load_upload

    upload = load_upload(workbook="catalog.xlsx")
    for issue in upload.issues:
        print(issue.describe())
"""

import csv
import io
import os
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from paintmix.services.exceptions import IncompleteUploadError, UploadFormatError
from paintmix.services.import_preview import ImportIssue, RawRow
from paintmix.utils.constants import (
    IMPORT_TABLES,
    KEY_MISSING_COLUMNS,
    KEY_MISSING_SHEET,
    REQUIRED_COLUMNS,
    REQUIRED_SHEETS,
)


@dataclass
class ParsedTable:
    """Header and data rows of one table from an upload."""

    table: str
    header: List[str] = field(default_factory=list)
    rows: List[RawRow] = field(default_factory=list)
    present: bool = True  # False when the sheet was missing from a workbook

    @property
    def total_rows(self) -> int:
        return len(self.rows)


@dataclass
class UploadTables:
    """All three tables of a whole-batch upload plus structural issues."""

    tables: Dict[str, ParsedTable]
    issues: List[ImportIssue] = field(default_factory=list)


# ============================================================================
# Source Helpers
# ============================================================================


def _read_source(source: Any, label: str) -> bytes:
    """Read raw bytes from a path, bytes, or binary/text file object."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        try:
            return Path(source).read_bytes()
        except OSError as e:
            raise UploadFormatError(label, str(e)) from e
    if hasattr(source, "read"):
        content = source.read()
        if isinstance(content, str):
            return content.encode("utf-8")
        return content
    raise UploadFormatError(label, f"unsupported source type {type(source).__name__}")


def _is_blank(cells) -> bool:
    return all(cell is None or str(cell).strip() == "" for cell in cells)


def _cell_text(value: Any) -> str:
    """Text form of a spreadsheet cell."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time.min and value.tzinfo is None:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _build_rows(header: List[str], body) -> List[RawRow]:
    """Zip header with each non-blank line, numbering rows from 2."""
    rows: List[RawRow] = []
    row_number = 1
    for cells in body:
        if _is_blank(cells):
            continue
        row_number += 1
        padded = list(cells) + [""] * (len(header) - len(cells))
        values = {
            column: padded[index]
            for index, column in enumerate(header)
            if column
        }
        rows.append(RawRow(row_number, values))
    return rows


# ============================================================================
# CSV
# ============================================================================


def read_csv_table(table: str, source: Any) -> ParsedTable:
    """
    Parse one comma-separated file.

    Args:
        table: Table name the file is for (used in errors)
        source: Path, bytes, or file object with UTF-8 text (BOM allowed)

    Returns:
        ParsedTable with header and numbered data rows

    Raises:
        UploadFormatError: If the file is not UTF-8 or not valid CSV
    """
    raw = _read_source(source, f"{table} file")
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UploadFormatError(f"{table} file", "file is not UTF-8 encoded") from e

    try:
        lines = [line for line in csv.reader(io.StringIO(text, newline=""))]
    except csv.Error as e:
        raise UploadFormatError(f"{table} file", str(e)) from e

    while lines and _is_blank(lines[0]):
        lines.pop(0)
    if not lines:
        return ParsedTable(table=table)

    header = [column.strip() for column in lines[0]]
    return ParsedTable(table=table, header=header, rows=_build_rows(header, lines[1:]))


# ============================================================================
# Spreadsheet
# ============================================================================


def read_workbook_tables(source: Any) -> Tuple[Dict[str, ParsedTable], List[ImportIssue]]:
    """
    Parse a spreadsheet with one sheet per table.

    A missing sheet yields one row-0 issue for that table; the other sheets
    are still parsed.

    Args:
        source: Path, bytes, or binary file object with .xlsx content

    Returns:
        (tables by name, missing-sheet issues)

    Raises:
        UploadFormatError: If the content is not a readable workbook
    """
    raw = _read_source(source, "workbook")
    try:
        workbook = load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise UploadFormatError("workbook", str(e) or type(e).__name__) from e

    tables: Dict[str, ParsedTable] = {}
    issues: List[ImportIssue] = []
    try:
        for sheet_name in REQUIRED_SHEETS:
            if sheet_name not in workbook.sheetnames:
                tables[sheet_name] = ParsedTable(table=sheet_name, present=False)
                issues.append(
                    ImportIssue(
                        table=sheet_name,
                        row=0,
                        message=f"Missing sheet: {sheet_name}",
                        message_key=KEY_MISSING_SHEET,
                        message_values={"sheet": sheet_name},
                    )
                )
                continue

            lines = [
                [_cell_text(value) for value in row]
                for row in workbook[sheet_name].iter_rows(values_only=True)
            ]
            while lines and _is_blank(lines[0]):
                lines.pop(0)
            if not lines:
                tables[sheet_name] = ParsedTable(table=sheet_name)
                continue

            header = [column.strip() for column in lines[0]]
            tables[sheet_name] = ParsedTable(
                table=sheet_name, header=header, rows=_build_rows(header, lines[1:])
            )
    finally:
        workbook.close()

    return tables, issues


# ============================================================================
# Upload Entry Points
# ============================================================================


def load_upload(
    workbook: Any = None,
    brands: Any = None,
    colors: Any = None,
    components: Any = None,
) -> UploadTables:
    """
    Parse a whole-batch upload.

    Either ``workbook`` or all three CSV sources must be given; a workbook
    takes precedence when both are supplied.

    Raises:
        IncompleteUploadError: If neither a workbook nor all three files are given
        UploadFormatError: If a file cannot be read
    """
    if workbook is not None:
        tables, issues = read_workbook_tables(workbook)
        return UploadTables(tables=tables, issues=issues)

    sources = {"brands": brands, "colors": colors, "components": components}
    provided = [table for table, source in sources.items() if source is not None]
    if len(provided) != len(IMPORT_TABLES):
        raise IncompleteUploadError(provided)

    tables = {table: read_csv_table(table, sources[table]) for table in IMPORT_TABLES}
    return UploadTables(tables=tables)


def check_columns(parsed: ParsedTable) -> List[ImportIssue]:
    """
    Check the header for the table's required columns.

    Returns a single row-0 issue listing every missing column, or nothing.
    Tables that were absent from the upload are not checked again.
    """
    if not parsed.present:
        return []

    missing = [column for column in REQUIRED_COLUMNS[parsed.table] if column not in parsed.header]
    if not missing:
        return []

    columns = ", ".join(missing)
    return [
        ImportIssue(
            table=parsed.table,
            row=0,
            message=f"Missing columns: {columns}",
            message_key=KEY_MISSING_COLUMNS,
            message_values={"columns": columns},
        )
    ]
