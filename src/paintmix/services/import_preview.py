"""
Import preview and issue types shared by the staged and whole-batch imports.

An ImportIssue is one line of the error list returned to the caller: table,
row, human message, and (where known) the field and a stable message key
with its values so the caller can localize it.
"""

from dataclasses import asdict, dataclass, is_dataclass
from dataclasses import field as dataclass_field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from paintmix.utils.constants import IMPORT_TABLES, PREVIEW_SAMPLE_SIZE


class RawRow(NamedTuple):
    """One data row from an upload, tagged with its 1-based source row number."""

    row_number: int
    values: Dict[str, Any]


@dataclass
class ImportIssue:
    """Structured error for an import preview."""

    table: str  # "brands", "colors", "components"
    row: int  # 1-based source row, 0 for table-level problems
    message: str
    field: Optional[str] = None
    message_key: Optional[str] = None
    message_values: Dict[str, Any] = dataclass_field(default_factory=dict)

    @classmethod
    def from_field_error(cls, table: str, error) -> "ImportIssue":
        """Build an issue from a schema FieldError."""
        return cls(
            table=table,
            row=error.row,
            message=error.message,
            field=error.field,
            message_key=error.message_key,
            message_values=dict(error.message_values),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: optional keys are omitted when empty."""
        result: Dict[str, Any] = {
            "table": self.table,
            "row": self.row,
            "message": self.message,
        }
        if self.field:
            result["field"] = self.field
        if self.message_key:
            result["messageKey"] = self.message_key
        if self.message_values:
            result["messageValues"] = dict(self.message_values)
        return result

    def describe(self) -> str:
        """One-line human description, e.g. "colors row 7, field `code`: ..."."""
        location = f"{self.table} row {self.row}"
        if self.field:
            location += f", field `{self.field}`"
        return f"{location}: {self.message}"


@dataclass
class ReconcileCounts:
    """Create/update/skip classification of one staged import."""

    created: int = 0
    updated: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"created": self.created, "updated": self.updated, "skipped": self.skipped}


@dataclass
class BatchCounts:
    """Rows written per table by a whole-batch import."""

    brands: int = 0
    colors: int = 0
    components: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"brands": self.brands, "colors": self.colors, "components": self.components}


def count_invalid_rows(errors: Sequence[ImportIssue]) -> int:
    """Number of distinct data rows with at least one error (row 0 excluded)."""
    return len({error.row for error in errors if error.row > 0})


def record_to_dict(record: Any) -> Dict[str, Any]:
    """Serialize a typed import record with the upload's camelCase column names."""
    data = asdict(record) if is_dataclass(record) else dict(record)
    result = {}
    for key, value in data.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = float(value)
        result[_camel_case(key)] = value
    return result


def _camel_case(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


@dataclass
class ImportPreview:
    """
    Preview (and, after commit, result) of one staged import.

    ``result`` is only set once a commit has been written; a dry run carries
    the same classification in ``projected`` instead.
    """

    table: str
    total_rows: int
    errors: List[ImportIssue] = dataclass_field(default_factory=list)
    samples: List[Any] = dataclass_field(default_factory=list)
    dry_run: bool = False
    projected: Optional[ReconcileCounts] = None
    result: Optional[ReconcileCounts] = None

    @property
    def invalid_rows(self) -> int:
        return count_invalid_rows(self.errors)

    @property
    def valid_rows(self) -> int:
        return max(self.total_rows - self.invalid_rows, 0)

    @property
    def blocked(self) -> bool:
        """Any error blocks the commit."""
        return len(self.errors) > 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "invalidRows": self.invalid_rows,
            "errors": [error.to_dict() for error in self.errors],
            "samples": [record_to_dict(sample) for sample in self.samples],
            "blocked": self.blocked,
        }
        if self.projected is not None:
            data["projected"] = self.projected.to_dict()
        if self.result is not None:
            data["result"] = self.result.to_dict()
        return data


@dataclass
class BatchPreview:
    """Preview (and, after commit, result) of a whole-batch import."""

    data: Dict[str, List[Any]] = dataclass_field(
        default_factory=lambda: {table: [] for table in IMPORT_TABLES}
    )
    errors: List[ImportIssue] = dataclass_field(default_factory=list)
    dry_run: bool = False
    result: Optional[BatchCounts] = None

    @property
    def samples(self) -> Dict[str, List[Any]]:
        return {table: rows[:PREVIEW_SAMPLE_SIZE] for table, rows in self.data.items()}

    @property
    def blocked(self) -> bool:
        return len(self.errors) > 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "data": {
                table: [record_to_dict(row) for row in rows] for table, rows in self.data.items()
            },
            "errors": [error.to_dict() for error in self.errors],
            "samples": {
                table: [record_to_dict(row) for row in rows]
                for table, rows in self.samples.items()
            },
            "blocked": self.blocked,
        }
        if self.result is not None:
            data["result"] = self.result.to_dict()
        return data
