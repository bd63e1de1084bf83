"""
Batch Import Service - the whole catalog from one upload.

The upload is either one spreadsheet or all three CSV files. References
resolve against the upload itself: colors must name a brand from the
brands table, components a (brand, color code) from the colors table.

Commit order:
1. Upsert brands by slug
2. Upsert colors by (brand, code) using the brand ids from step 1
3. For every (brand, color, variant) group of components, delete the
   color's existing components of that variant and insert the group

Formulas are replaced, not diffed. Everything runs in one transaction.

Usage:
    from paintmix.services.batch_import_service import BatchUpload, import_batch

    preview = import_batch(BatchUpload(workbook="catalog.xlsx"))
    if preview.blocked:
        for issue in preview.errors:
            print(issue.describe())
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from paintmix.models import Brand, Color, FormulaComponent
from paintmix.services.cross_reference_service import (
    batch_reference_sets,
    check_color_brands,
    check_component_colors,
)
from paintmix.services.database import session_scope
from paintmix.services.exceptions import ImportTransactionError, ReferenceVanishedError
from paintmix.services.import_preview import BatchCounts, BatchPreview, ImportIssue
from paintmix.services.logging_utils import get_service_logger, log_operation
from paintmix.services.schema_validation_service import (
    BrandRecord,
    ColorRecord,
    ComponentRecord,
    RecordKind,
    validate_rows,
)
from paintmix.services.tabular_parser_service import UploadTables, check_columns, load_upload
from paintmix.utils.constants import IMPORT_TABLES, TABLE_BRANDS, TABLE_COLORS, TABLE_COMPONENTS

logger = get_service_logger(__name__)

GroupKey = Tuple[str, str, str]  # (brand slug, color code, variant)


@dataclass
class BatchUpload:
    """
    Sources of a whole-batch upload.

    Either ``workbook`` or all of ``brands``, ``colors`` and ``components``
    must be set. Each source is a path, bytes, or file object.
    """

    workbook: Any = None
    brands: Any = None
    colors: Any = None
    components: Any = None

    def load(self) -> UploadTables:
        return load_upload(
            workbook=self.workbook,
            brands=self.brands,
            colors=self.colors,
            components=self.components,
        )


# ============================================================================
# Preview
# ============================================================================


def preview_batch(upload: BatchUpload) -> BatchPreview:
    """
    Parse and validate a whole-batch upload without touching the store.

    Args:
        upload: Workbook or the three CSV sources

    Returns:
        BatchPreview with typed records per table and every issue found

    Raises:
        IncompleteUploadError: If the upload is missing files
        UploadFormatError: If a file cannot be read
    """
    tables = upload.load()
    preview = BatchPreview(dry_run=True)
    preview.errors.extend(tables.issues)

    row_numbers: Dict[str, List[int]] = {}
    for table in IMPORT_TABLES:
        parsed = tables.tables[table]
        validation = validate_rows(RecordKind(table), parsed.rows)
        preview.errors.extend(check_columns(parsed))
        preview.errors.extend(
            ImportIssue.from_field_error(table, error) for error in validation.errors
        )
        preview.data[table] = validation.records
        row_numbers[table] = validation.row_numbers

    brand_slugs, color_keys = batch_reference_sets(
        preview.data[TABLE_BRANDS], preview.data[TABLE_COLORS]
    )
    preview.errors.extend(
        check_color_brands(preview.data[TABLE_COLORS], row_numbers[TABLE_COLORS], brand_slugs)
    )
    preview.errors.extend(
        check_component_colors(
            preview.data[TABLE_COMPONENTS],
            row_numbers[TABLE_COMPONENTS],
            brand_slugs,
            color_keys,
        )
    )
    return preview


# ============================================================================
# Commit
# ============================================================================


def import_batch(
    upload: BatchUpload, dry_run: bool = False, session: Optional[Session] = None
) -> BatchPreview:
    """
    Preview a whole-batch upload and, unless blocked, write it.

    Args:
        upload: Workbook or the three CSV sources
        dry_run: If True, run the writes and roll them back
        session: Optional SQLAlchemy session for transactional composition.
            A dry run rolls this session back.

    Returns:
        BatchPreview; ``result`` holds the rows written per table after a
        commit and is None when blocked or dry-run

    Raises:
        IncompleteUploadError: If the upload is missing files
        UploadFormatError: If a file cannot be read
        ImportTransactionError: If the write phase fails (nothing is committed)
    """
    preview = preview_batch(upload)
    preview.dry_run = dry_run

    if preview.blocked:
        log_operation(
            logger,
            operation="import_batch",
            outcome="blocked",
            level=logging.WARNING,
            error_count=len(preview.errors),
        )
        return preview

    if session is not None:
        return _import_batch_impl(preview, dry_run, session)
    with session_scope() as sess:
        return _import_batch_impl(preview, dry_run, sess)


def _import_batch_impl(preview: BatchPreview, dry_run: bool, session: Session) -> BatchPreview:
    try:
        brand_ids = _upsert_brands(session, preview.data[TABLE_BRANDS])
        color_ids = _upsert_colors(session, preview.data[TABLE_COLORS], brand_ids)
        _replace_components(session, preview.data[TABLE_COMPONENTS], color_ids)
        session.flush()
    except IntegrityError as e:
        log_operation(
            logger,
            operation="import_batch",
            outcome="transaction_failed",
            level=logging.ERROR,
            error=str(e.orig),
        )
        raise ImportTransactionError(str(e.orig), original_error=e) from e

    counts = BatchCounts(
        brands=len(preview.data[TABLE_BRANDS]),
        colors=len(preview.data[TABLE_COLORS]),
        components=len(preview.data[TABLE_COMPONENTS]),
    )

    if dry_run:
        session.rollback()
        log_operation(logger, operation="import_batch", outcome="dry_run", **counts.to_dict())
        return preview

    preview.result = counts
    log_operation(logger, operation="import_batch", outcome="committed", **counts.to_dict())
    return preview


def _upsert_brands(session: Session, records: Sequence[BrandRecord]) -> Dict[str, int]:
    """Upsert brands by slug; returns slug -> id."""
    existing: Dict[str, Brand] = {
        brand.slug: brand
        for brand in session.query(Brand)
        .filter(Brand.slug.in_({record.slug for record in records}))
        .all()
    }
    for record in records:
        brand = existing.get(record.slug)
        if brand is None:
            brand = Brand(slug=record.slug, name=record.name)
            session.add(brand)
            existing[record.slug] = brand
        else:
            brand.name = record.name
    session.flush()
    return {slug: brand.id for slug, brand in existing.items()}


def _upsert_colors(
    session: Session, records: Sequence[ColorRecord], brand_ids: Dict[str, int]
) -> Dict[Tuple[str, str], int]:
    """Upsert colors by (brand, code); returns (brand slug, code) -> id."""
    existing: Dict[Tuple[int, str], Color] = {
        (color.brand_id, color.code): color
        for color in session.query(Color)
        .filter(Color.brand_id.in_(list(brand_ids.values())))
        .all()
    }
    saved: Dict[Tuple[str, str], Color] = {}

    for record in records:
        brand_id = brand_ids.get(record.brand_slug)
        if brand_id is None:
            raise ReferenceVanishedError("colors", f"brand '{record.brand_slug}'")

        color = existing.get((brand_id, record.code))
        if color is None:
            color = Color(brand_id=brand_id, code=record.code)
            session.add(color)
            existing[(brand_id, record.code)] = color
        color.name = record.name
        color.color_car = record.color_car
        color.notes = record.notes
        color.production_date = record.production_date
        saved[(record.brand_slug, record.code)] = color

    session.flush()
    return {key: color.id for key, color in saved.items()}


def _replace_components(
    session: Session,
    records: Sequence[ComponentRecord],
    color_ids: Dict[Tuple[str, str], int],
) -> None:
    """Replace each (color, variant) formula with the uploaded group."""
    groups: Dict[GroupKey, List[ComponentRecord]] = {}
    for record in records:
        groups.setdefault((record.brand_slug, record.color_code, record.variant), []).append(
            record
        )

    for (brand_slug, color_code, variant), group in groups.items():
        color_id = color_ids.get((brand_slug, color_code))
        if color_id is None:
            raise ReferenceVanishedError("components", f"color '{brand_slug}/{color_code}'")

        session.query(FormulaComponent).filter(
            FormulaComponent.color_id == color_id,
            FormulaComponent.variant == variant,
        ).delete(synchronize_session=False)

        session.add_all(
            FormulaComponent(
                color_id=color_id,
                variant=variant,
                toner_code=record.toner_code,
                toner_name=record.toner_name,
                parts=record.parts,
            )
            for record in group
        )
        session.flush()
