"""
Schema Validation Service - per-row validation of import records.

Validates raw string-keyed rows (from CSV files, spreadsheet sheets or admin
forms) into typed records. Every problem is reported as a FieldError that
keeps its row number and field name; validation never stops at the first
bad row.

Usage:
    from paintmix.services.schema_validation_service import RecordKind, validate_rows

    table = validate_rows(RecordKind.COLORS, rows)
    for error in table.errors:
        print(f"row {error.row}, field {error.field}: {error.message}")
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from paintmix.utils.constants import (
    ERROR_COLOR_CAR_TOO_LONG,
    ERROR_FUTURE_DATE,
    ERROR_INVALID_DATE,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_SLUG,
    ERROR_INVALID_VARIANT,
    ERROR_PARTS_PRECISION,
    ERROR_REQUIRED_FIELD,
    KEY_COLOR_CAR_TOO_LONG,
    KEY_PARTS_POSITIVE,
    KEY_PARTS_PRECISION,
    KEY_PRODUCTION_DATE_FUTURE,
    KEY_PRODUCTION_DATE_INVALID,
    KEY_REQUIRED,
    KEY_SLUG_INVALID,
    KEY_VARIANT_INVALID,
    MAX_COLOR_CAR_LENGTH,
    PARTS_LIMIT,
    PARTS_QUANTUM,
    SLUG_PATTERN,
    TABLE_BRANDS,
    TABLE_COLORS,
    TABLE_COMPONENTS,
    VARIANTS,
)
from paintmix.utils.datetime_utils import parse_iso_datetime, utc_now


# ============================================================================
# Dataclasses
# ============================================================================


class RecordKind(str, Enum):
    """Import record kinds, valued by their table name."""

    BRANDS = TABLE_BRANDS
    COLORS = TABLE_COLORS
    COMPONENTS = TABLE_COMPONENTS


@dataclass
class FieldError:
    """A validation error tied to one field of one row."""

    row: int  # 1-based source row (header = 1), 0 for table-level problems
    field: Optional[str]  # Column name, None when not field-specific
    message: str  # Human-readable message
    message_key: str  # Stable key for localization
    message_values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BrandRecord:
    slug: str
    name: str


@dataclass
class ColorRecord:
    brand_slug: str
    code: str
    name: str
    production_date: Optional[datetime] = None
    color_car: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class ComponentRecord:
    brand_slug: str
    color_code: str
    variant: str
    toner_code: str
    toner_name: str
    parts: Decimal


Record = Union[BrandRecord, ColorRecord, ComponentRecord]


@dataclass
class RowValidation:
    """Outcome of validating one row: a record or a list of errors."""

    record: Optional[Record]
    errors: List[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class TableValidation:
    """Outcome of validating every row of one table."""

    kind: RecordKind
    records: List[Record] = field(default_factory=list)
    row_numbers: List[int] = field(default_factory=list)  # parallel to records
    errors: List[FieldError] = field(default_factory=list)
    total_rows: int = 0


# ============================================================================
# Field Helpers
# ============================================================================


def _text(value: Any) -> str:
    """Trimmed text form of a raw cell; None becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    """Trimmed text, with empty strings normalized to None."""
    text = _text(value)
    return text or None


def _required(raw: Dict[str, Any], column: str, row: int, errors: List[FieldError]) -> str:
    value = _text(raw.get(column))
    if not value:
        errors.append(FieldError(row, column, ERROR_REQUIRED_FIELD, KEY_REQUIRED))
    return value


def _slug(raw: Dict[str, Any], column: str, row: int, errors: List[FieldError]) -> str:
    value = _required(raw, column, row, errors)
    if value and not SLUG_PATTERN.match(value):
        errors.append(
            FieldError(row, column, ERROR_INVALID_SLUG, KEY_SLUG_INVALID, {"value": value})
        )
    return value


def _production_date(
    raw: Dict[str, Any], row: int, errors: List[FieldError]
) -> Optional[datetime]:
    value = raw.get("productionDate")
    if value is None or (isinstance(value, str) and not value.strip()):
        return None

    parsed = parse_iso_datetime(value)
    if parsed is None:
        errors.append(
            FieldError(
                row,
                "productionDate",
                ERROR_INVALID_DATE,
                KEY_PRODUCTION_DATE_INVALID,
                {"value": _text(value)},
            )
        )
        return None
    if parsed > utc_now():
        errors.append(
            FieldError(
                row,
                "productionDate",
                ERROR_FUTURE_DATE,
                KEY_PRODUCTION_DATE_FUTURE,
                {"value": parsed.date().isoformat()},
            )
        )
        return None
    return parsed


def _variant(raw: Dict[str, Any], row: int, errors: List[FieldError]) -> str:
    value = _text(raw.get("variant")).upper()
    if not value:
        errors.append(FieldError(row, "variant", ERROR_REQUIRED_FIELD, KEY_REQUIRED))
    elif value not in VARIANTS:
        errors.append(
            FieldError(row, "variant", ERROR_INVALID_VARIANT, KEY_VARIANT_INVALID, {"value": value})
        )
    return value


def _parts(raw: Dict[str, Any], row: int, errors: List[FieldError]) -> Optional[Decimal]:
    value = raw.get("parts")
    text = _text(value)
    if not text:
        errors.append(FieldError(row, "parts", ERROR_REQUIRED_FIELD, KEY_REQUIRED))
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        number = None
    if number is None or not number.is_finite() or number <= 0:
        errors.append(
            FieldError(row, "parts", ERROR_INVALID_POSITIVE, KEY_PARTS_POSITIVE, {"value": text})
        )
        return None
    if number >= PARTS_LIMIT or number != number.quantize(PARTS_QUANTUM):
        errors.append(
            FieldError(
                row, "parts", ERROR_PARTS_PRECISION, KEY_PARTS_PRECISION, {"value": text}
            )
        )
        return None
    return number


# ============================================================================
# Record Validators
# ============================================================================


def validate_brand_row(raw: Dict[str, Any], row: int = 0) -> RowValidation:
    """Validate a brand row: slug (required, pattern) and name (required)."""
    errors: List[FieldError] = []
    slug = _slug(raw, "slug", row, errors)
    name = _required(raw, "name", row, errors)
    if errors:
        return RowValidation(None, errors)
    return RowValidation(BrandRecord(slug=slug, name=name))


def validate_color_row(raw: Dict[str, Any], row: int = 0) -> RowValidation:
    """
    Validate a color row.

    Args:
        raw: Column name -> raw value
        row: Source row number used in errors

    Returns:
        RowValidation with a ColorRecord, or every field error found
    """
    errors: List[FieldError] = []
    brand_slug = _slug(raw, "brandSlug", row, errors)
    code = _required(raw, "code", row, errors)
    name = _required(raw, "name", row, errors)
    production_date = _production_date(raw, row, errors)

    color_car = _optional_text(raw.get("colorCar"))
    if color_car is not None and len(color_car) > MAX_COLOR_CAR_LENGTH:
        errors.append(
            FieldError(
                row,
                "colorCar",
                ERROR_COLOR_CAR_TOO_LONG,
                KEY_COLOR_CAR_TOO_LONG,
                {"max": MAX_COLOR_CAR_LENGTH},
            )
        )

    notes = _optional_text(raw.get("notes"))

    if errors:
        return RowValidation(None, errors)
    return RowValidation(
        ColorRecord(
            brand_slug=brand_slug,
            code=code,
            name=name,
            production_date=production_date,
            color_car=color_car,
            notes=notes,
        )
    )


def validate_component_row(raw: Dict[str, Any], row: int = 0) -> RowValidation:
    """
    Validate a formula component row.

    The variant is case-insensitive ("v1" becomes "V1"); parts must be a
    strictly positive number with at most 8 integer digits and 4 decimals.
    """
    errors: List[FieldError] = []
    brand_slug = _slug(raw, "brandSlug", row, errors)
    color_code = _required(raw, "colorCode", row, errors)
    variant = _variant(raw, row, errors)
    toner_code = _required(raw, "tonerCode", row, errors)
    toner_name = _required(raw, "tonerName", row, errors)
    parts = _parts(raw, row, errors)

    if errors:
        return RowValidation(None, errors)
    return RowValidation(
        ComponentRecord(
            brand_slug=brand_slug,
            color_code=color_code,
            variant=variant,
            toner_code=toner_code,
            toner_name=toner_name,
            parts=parts,
        )
    )


ROW_VALIDATORS: Dict[RecordKind, Callable[[Dict[str, Any], int], RowValidation]] = {
    RecordKind.BRANDS: validate_brand_row,
    RecordKind.COLORS: validate_color_row,
    RecordKind.COMPONENTS: validate_component_row,
}


def validate_row(kind: RecordKind, raw: Dict[str, Any], row: int = 0) -> RowValidation:
    """Validate one raw row with the validator registered for its kind."""
    return ROW_VALIDATORS[RecordKind(kind)](raw, row)


def validate_rows(
    kind: RecordKind, rows: Sequence[Tuple[int, Dict[str, Any]]]
) -> TableValidation:
    """
    Validate every row of a table.

    Args:
        kind: Record kind of the table
        rows: (row_number, raw values) pairs in source order

    Returns:
        TableValidation with valid records (and their row numbers) plus
        the errors of all invalid rows
    """
    kind = RecordKind(kind)
    validator = ROW_VALIDATORS[kind]
    result = TableValidation(kind=kind, total_rows=len(rows))

    for row_number, raw in rows:
        outcome = validator(raw, row_number)
        if outcome.valid:
            result.records.append(outcome.record)
            result.row_numbers.append(row_number)
        else:
            result.errors.extend(outcome.errors)

    return result
