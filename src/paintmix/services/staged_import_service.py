"""
Staged Import Service - one CSV upload per table, previewed then committed.

The staged workflow imports brands, then colors, then formula components.
Each stage validates its file, checks references against the store,
and classifies every row by natural key:

- created: key not in the store
- updated: key present, a mutable field differs
- skipped: key present, all mutable fields equal

Any validation error blocks the stage entirely. A dry run performs the same
classification inside the transaction and rolls it back, so the projected
counts match what a commit would do. A commit writes every row inside one
transaction; nothing is deleted.

Usage:
    from paintmix.services.staged_import_service import import_colors

    preview = import_colors("colors.csv", dry_run=True)
    if not preview.blocked:
        preview = import_colors("colors.csv")
        print(preview.result.to_dict())
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paintmix.models import Brand, Color, FormulaComponent
from paintmix.services.cross_reference_service import (
    check_color_brands,
    check_component_colors,
    store_brand_slugs,
    store_color_keys,
)
from paintmix.services.database import session_scope
from paintmix.services.exceptions import ImportTransactionError, ReferenceVanishedError
from paintmix.services.import_preview import ImportIssue, ImportPreview, ReconcileCounts
from paintmix.services.import_state_service import mark_stage_done
from paintmix.services.logging_utils import get_service_logger, log_operation
from paintmix.services.schema_validation_service import (
    BrandRecord,
    ColorRecord,
    ComponentRecord,
    RecordKind,
    TableValidation,
    validate_rows,
)
from paintmix.services.tabular_parser_service import ParsedTable, check_columns, read_csv_table
from paintmix.utils.constants import PARTS_QUANTUM, PREVIEW_SAMPLE_SIZE
from paintmix.utils.datetime_utils import to_iso_instant

logger = get_service_logger(__name__)


# ============================================================================
# Public Entry Points
# ============================================================================


def import_brands(
    source: Any, dry_run: bool = False, session: Optional[Session] = None
) -> ImportPreview:
    """
    Import brands from a CSV file (columns: slug, name).

    A committed brands stage also sets the brands_done import flag.

    Args:
        source: Path, bytes, or file object with the CSV content
        dry_run: If True, classify without committing
        session: Optional SQLAlchemy session for transactional composition.
            A dry run rolls this session back.

    Returns:
        ImportPreview; ``result`` is set only after a commit

    Raises:
        UploadFormatError: If the file cannot be read
        ImportTransactionError: If the write phase fails (nothing is committed)
    """
    parsed = read_csv_table(RecordKind.BRANDS.value, source)
    return _run_stage(RecordKind.BRANDS, parsed, dry_run, session)


def import_colors(
    source: Any, dry_run: bool = False, session: Optional[Session] = None
) -> ImportPreview:
    """
    Import colors from a CSV file.

    Required columns: brandSlug, code, name. Optional: productionDate,
    colorCar, notes. Every brandSlug must already exist in the store.
    """
    parsed = read_csv_table(RecordKind.COLORS.value, source)
    return _run_stage(RecordKind.COLORS, parsed, dry_run, session)


def import_components(
    source: Any, dry_run: bool = False, session: Optional[Session] = None
) -> ImportPreview:
    """
    Import formula components from a CSV file.

    Required columns: brandSlug, colorCode, variant, tonerCode, tonerName,
    parts. Every (brandSlug, colorCode) must already exist in the store.
    """
    parsed = read_csv_table(RecordKind.COMPONENTS.value, source)
    return _run_stage(RecordKind.COMPONENTS, parsed, dry_run, session)


def import_stage(
    table: str, source: Any, dry_run: bool = False, session: Optional[Session] = None
) -> ImportPreview:
    """Run the staged import for ``table`` ("brands", "colors" or "components")."""
    kind = RecordKind(table)
    parsed = read_csv_table(kind.value, source)
    return _run_stage(kind, parsed, dry_run, session)


# ============================================================================
# Stage Runner
# ============================================================================


def _run_stage(
    kind: RecordKind, parsed: ParsedTable, dry_run: bool, session: Optional[Session]
) -> ImportPreview:
    if session is not None:
        return _run_stage_impl(kind, parsed, dry_run, session)
    with session_scope() as sess:
        return _run_stage_impl(kind, parsed, dry_run, sess)


def _run_stage_impl(
    kind: RecordKind, parsed: ParsedTable, dry_run: bool, session: Session
) -> ImportPreview:
    table = kind.value
    validation = validate_rows(kind, parsed.rows)

    errors: List[ImportIssue] = check_columns(parsed)
    errors.extend(ImportIssue.from_field_error(table, error) for error in validation.errors)
    errors.extend(_REFERENCE_CHECKS[kind](session, validation))

    preview = ImportPreview(
        table=table,
        total_rows=parsed.total_rows,
        errors=errors,
        samples=validation.records[:PREVIEW_SAMPLE_SIZE],
        dry_run=dry_run,
    )

    if preview.blocked:
        log_operation(
            logger,
            operation=f"import_{table}",
            outcome="blocked",
            level=logging.WARNING,
            total_rows=preview.total_rows,
            invalid_rows=preview.invalid_rows,
            error_count=len(errors),
        )
        return preview

    try:
        counts = _RECONCILERS[kind](session, validation.records)
        if not dry_run and kind == RecordKind.BRANDS:
            mark_stage_done(table, session=session)
        session.flush()
    except IntegrityError as e:
        log_operation(
            logger,
            operation=f"import_{table}",
            outcome="transaction_failed",
            level=logging.ERROR,
            error=str(e.orig),
        )
        raise ImportTransactionError(str(e.orig), original_error=e) from e

    if dry_run:
        session.rollback()
        preview.projected = counts
        outcome = "dry_run"
    else:
        preview.result = counts
        outcome = "committed"

    log_operation(
        logger,
        operation=f"import_{table}",
        outcome=outcome,
        total_rows=preview.total_rows,
        created_rows=counts.created,
        updated_rows=counts.updated,
        skipped_rows=counts.skipped,
    )
    return preview


# ============================================================================
# Reference Checks (store-backed)
# ============================================================================


def _check_brand_references(session: Session, validation: TableValidation) -> List[ImportIssue]:
    return []


def _check_color_references(session: Session, validation: TableValidation) -> List[ImportIssue]:
    colors: Sequence[ColorRecord] = validation.records
    known = store_brand_slugs(session, (color.brand_slug for color in colors))
    return check_color_brands(colors, validation.row_numbers, known)


def _check_component_references(
    session: Session, validation: TableValidation
) -> List[ImportIssue]:
    components: Sequence[ComponentRecord] = validation.records
    known_brands = store_brand_slugs(session, (c.brand_slug for c in components))
    known_colors = store_color_keys(
        session, ((c.brand_slug, c.color_code) for c in components)
    )
    return check_component_colors(
        components, validation.row_numbers, known_brands, known_colors
    )


_REFERENCE_CHECKS: Dict[RecordKind, Callable[[Session, TableValidation], List[ImportIssue]]] = {
    RecordKind.BRANDS: _check_brand_references,
    RecordKind.COLORS: _check_color_references,
    RecordKind.COMPONENTS: _check_component_references,
}


# ============================================================================
# Reconcilers
# ============================================================================


def _reconcile_brands(session: Session, records: Sequence[BrandRecord]) -> ReconcileCounts:
    counts = ReconcileCounts()
    slugs = {record.slug for record in records}
    existing: Dict[str, Brand] = {
        brand.slug: brand
        for brand in session.query(Brand).filter(Brand.slug.in_(slugs)).all()
    }

    for record in records:
        brand = existing.get(record.slug)
        if brand is None:
            brand = Brand(slug=record.slug, name=record.name)
            session.add(brand)
            existing[record.slug] = brand
            counts.created += 1
        elif brand.name != record.name:
            brand.name = record.name
            counts.updated += 1
        else:
            counts.skipped += 1

    return counts


def _color_fields(record: ColorRecord) -> Dict[str, Any]:
    return {
        "name": record.name,
        "color_car": record.color_car,
        "notes": record.notes,
        "production_date": record.production_date,
    }


def _color_changed(color: Color, record: ColorRecord) -> bool:
    return (
        color.name != record.name
        or color.color_car != record.color_car
        or color.notes != record.notes
        or to_iso_instant(color.production_date) != to_iso_instant(record.production_date)
    )


def _reconcile_colors(session: Session, records: Sequence[ColorRecord]) -> ReconcileCounts:
    counts = ReconcileCounts()
    brands: Dict[str, Brand] = {
        brand.slug: brand
        for brand in session.query(Brand)
        .filter(Brand.slug.in_({record.brand_slug for record in records}))
        .all()
    }
    brand_ids = [brand.id for brand in brands.values()]
    existing: Dict[Tuple[int, str], Color] = {
        (color.brand_id, color.code): color
        for color in session.query(Color).filter(Color.brand_id.in_(brand_ids)).all()
    }

    for record in records:
        brand = brands.get(record.brand_slug)
        if brand is None:
            raise ReferenceVanishedError("colors", f"brand '{record.brand_slug}'")

        key = (brand.id, record.code)
        color = existing.get(key)
        if color is None:
            color = Color(brand_id=brand.id, code=record.code, **_color_fields(record))
            session.add(color)
            existing[key] = color
            counts.created += 1
        elif _color_changed(color, record):
            for attr, value in _color_fields(record).items():
                setattr(color, attr, value)
            counts.updated += 1
        else:
            counts.skipped += 1

    return counts


def _same_parts(stored, incoming: Decimal) -> bool:
    return Decimal(str(stored)).quantize(PARTS_QUANTUM) == incoming.quantize(PARTS_QUANTUM)


def _reconcile_components(
    session: Session, records: Sequence[ComponentRecord]
) -> ReconcileCounts:
    counts = ReconcileCounts()
    color_rows = (
        session.query(Brand.slug, Color.code, Color.id)
        .join(Color, Color.brand_id == Brand.id)
        .filter(Brand.slug.in_({record.brand_slug for record in records}))
        .filter(Color.code.in_({record.color_code for record in records}))
        .all()
    )
    color_ids: Dict[Tuple[str, str], int] = {
        (row.slug, row.code): row.id for row in color_rows
    }
    existing: Dict[Tuple[int, str, str], FormulaComponent] = {
        (component.color_id, component.variant, component.toner_code): component
        for component in session.query(FormulaComponent)
        .filter(FormulaComponent.color_id.in_(list(color_ids.values())))
        .all()
    }

    for record in records:
        color_id = color_ids.get((record.brand_slug, record.color_code))
        if color_id is None:
            raise ReferenceVanishedError(
                "components", f"color '{record.brand_slug}/{record.color_code}'"
            )

        key = (color_id, record.variant, record.toner_code)
        component = existing.get(key)
        if component is None:
            component = FormulaComponent(
                color_id=color_id,
                variant=record.variant,
                toner_code=record.toner_code,
                toner_name=record.toner_name,
                parts=record.parts,
            )
            session.add(component)
            existing[key] = component
            counts.created += 1
        elif component.toner_name != record.toner_name or not _same_parts(
            component.parts, record.parts
        ):
            component.toner_name = record.toner_name
            component.parts = record.parts
            counts.updated += 1
        else:
            counts.skipped += 1

    return counts


_RECONCILERS = {
    RecordKind.BRANDS: _reconcile_brands,
    RecordKind.COLORS: _reconcile_colors,
    RecordKind.COMPONENTS: _reconcile_components,
}
