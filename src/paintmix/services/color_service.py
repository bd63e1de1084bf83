"""
Color Service - admin CRUD for colors.

Colors are created and updated from the same row shape as the colors
import (brandSlug, code, name, productionDate, colorCar, notes) and are
unique per (brand, code). Colors that still own formula components cannot
be deleted.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paintmix.models import Brand, Color, FormulaComponent
from paintmix.services.database import session_scope
from paintmix.services.exceptions import (
    ColorHasComponentsError,
    ColorNotFoundError,
    DatabaseError,
    DuplicateColorError,
    ValidationError,
)
from paintmix.services.logging_utils import get_service_logger, log_operation
from paintmix.services.pagination import apply_sort, clean_ids, paginate
from paintmix.services.schema_validation_service import (
    ColorRecord,
    FieldError,
    validate_color_row,
)
from paintmix.utils.constants import DEFAULT_PAGE_SIZE, KEY_UNKNOWN_BRAND

logger = get_service_logger(__name__)

SORT_COLUMNS = {
    "code": Color.code,
    "name": Color.name,
    "productionDate": Color.production_date,
}


def _validated(data: Dict[str, Any]) -> ColorRecord:
    result = validate_color_row(data)
    if not result.valid:
        raise ValidationError(result.errors)
    return result.record


def _get_or_raise(session: Session, color_id: int) -> Color:
    color = session.get(Color, color_id)
    if color is None:
        raise ColorNotFoundError(color_id)
    return color


def _resolve_brand(session: Session, brand_slug: str) -> Brand:
    brand = session.query(Brand).filter(Brand.slug == brand_slug).first()
    if brand is None:
        raise ValidationError(
            [
                FieldError(
                    0,
                    "brandSlug",
                    f"Unknown brandSlug: {brand_slug}",
                    KEY_UNKNOWN_BRAND,
                    {"brandSlug": brand_slug},
                )
            ]
        )
    return brand


def _apply(color: Color, brand: Brand, record: ColorRecord) -> None:
    color.brand_id = brand.id
    color.brand = brand
    color.code = record.code
    color.name = record.name
    color.production_date = record.production_date
    color.color_car = record.color_car
    color.notes = record.notes


# ============================================================================
# CRUD Operations
# ============================================================================


def create_color(data: Dict[str, Any], session: Optional[Session] = None) -> Color:
    """
    Create a new color.

    Args:
        data: Color row (brandSlug, code, name and optional productionDate,
            colorCar, notes)
        session: Optional database session

    Returns:
        Created Color instance

    Raises:
        ValidationError: If data validation fails or the brand is unknown
        DuplicateColorError: If the brand already has a color with this code
        DatabaseError: If database operation fails
    """
    record = _validated(data)
    try:
        if session is not None:
            return _create_color_impl(record, session)
        with session_scope() as session:
            return _create_color_impl(record, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create color", e) from e


def _create_color_impl(record: ColorRecord, session: Session) -> Color:
    brand = _resolve_brand(session, record.brand_slug)
    existing = (
        session.query(Color)
        .filter(Color.brand_id == brand.id, Color.code == record.code)
        .first()
    )
    if existing is not None:
        raise DuplicateColorError(brand.slug, record.code)

    color = Color()
    _apply(color, brand, record)
    session.add(color)
    session.flush()
    log_operation(logger, operation="create_color", outcome="created", color_id=color.id)
    return color


def get_color(color_id: int, session: Optional[Session] = None) -> Color:
    """Retrieve a color by ID, raising ColorNotFoundError if absent."""
    if session is not None:
        return _get_or_raise(session, color_id)
    with session_scope() as session:
        return _get_or_raise(session, color_id)


def list_colors(
    query: Optional[str] = None,
    brand_slug: Optional[str] = None,
    sort: str = "code",
    direction: str = "asc",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    List colors one page at a time.

    Args:
        query: Case-insensitive filter on code, name or colorCar
        brand_slug: Only colors of this brand
        sort: "code" (default), "name" or "productionDate"
        direction: "asc" or "desc"
        page: 1-based page number
        page_size: Rows per page
        session: Optional database session

    Returns:
        Dict with data (Color list), total, page and page_size
    """
    if session is not None:
        return _list_colors_impl(query, brand_slug, sort, direction, page, page_size, session)
    with session_scope() as session:
        return _list_colors_impl(query, brand_slug, sort, direction, page, page_size, session)


def _list_colors_impl(query, brand_slug, sort, direction, page, page_size, session: Session):
    q = session.query(Color)
    if brand_slug:
        q = q.filter(Color.brand.has(Brand.slug == brand_slug.strip()))

    text = (query or "").strip().lower()
    if text:
        q = q.filter(
            or_(
                func.lower(Color.code).contains(text, autoescape=True),
                func.lower(Color.name).contains(text, autoescape=True),
                func.lower(Color.color_car).contains(text, autoescape=True),
            )
        )
    q = apply_sort(q, SORT_COLUMNS, sort, "code", direction)
    return paginate(q, page, page_size)


def update_color(
    color_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Color:
    """
    Replace every field of a color, including its brand.

    Raises:
        ValidationError: If data validation fails or the brand is unknown
        ColorNotFoundError: If the color doesn't exist
        DuplicateColorError: If another color of the brand has this code
        DatabaseError: If database operation fails
    """
    record = _validated(data)
    try:
        if session is not None:
            return _update_color_impl(color_id, record, session)
        with session_scope() as session:
            return _update_color_impl(color_id, record, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update color {color_id}", e) from e


def _update_color_impl(color_id: int, record: ColorRecord, session: Session) -> Color:
    color = _get_or_raise(session, color_id)
    brand = _resolve_brand(session, record.brand_slug)

    duplicate = (
        session.query(Color)
        .filter(Color.brand_id == brand.id, Color.code == record.code)
        .first()
    )
    if duplicate is not None and duplicate.id != color.id:
        raise DuplicateColorError(brand.slug, record.code)

    _apply(color, brand, record)
    session.flush()
    log_operation(logger, operation="update_color", outcome="updated", color_id=color.id)
    return color


def delete_color(color_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a color that has no formula components.

    Raises:
        ColorNotFoundError: If the color doesn't exist
        ColorHasComponentsError: If the color still has components
    """
    if session is not None:
        return _delete_color_impl(color_id, session)
    with session_scope() as session:
        return _delete_color_impl(color_id, session)


def _delete_color_impl(color_id: int, session: Session) -> bool:
    color = _get_or_raise(session, color_id)

    component_count = (
        session.query(FormulaComponent).filter(FormulaComponent.color_id == color.id).count()
    )
    if component_count > 0:
        log_operation(
            logger,
            operation="delete_color",
            outcome="rejected",
            level=logging.WARNING,
            color_id=color.id,
            component_count=component_count,
        )
        raise ColorHasComponentsError([color.id], component_count)

    session.delete(color)
    session.flush()
    log_operation(logger, operation="delete_color", outcome="deleted", color_id=color_id)
    return True


def bulk_delete_colors(ids: Iterable[int], session: Optional[Session] = None) -> int:
    """
    Delete several colors at once.

    Nothing is deleted if any of the colors still has components. IDs that
    do not exist are ignored.

    Returns:
        Number of colors deleted

    Raises:
        ValidationError: If ``ids`` is empty
        ColorHasComponentsError: If any color still has components
    """
    id_list = clean_ids(ids)
    if session is not None:
        return _bulk_delete_colors_impl(id_list, session)
    with session_scope() as session:
        return _bulk_delete_colors_impl(id_list, session)


def _bulk_delete_colors_impl(ids: List[int], session: Session) -> int:
    owners = (
        session.query(FormulaComponent.color_id, func.count(FormulaComponent.id))
        .filter(FormulaComponent.color_id.in_(ids))
        .group_by(FormulaComponent.color_id)
        .all()
    )
    if owners:
        component_count = sum(count for _, count in owners)
        log_operation(
            logger,
            operation="bulk_delete_colors",
            outcome="rejected",
            level=logging.WARNING,
            component_count=component_count,
        )
        raise ColorHasComponentsError([color_id for color_id, _ in owners], component_count)

    deleted = (
        session.query(Color).filter(Color.id.in_(ids)).delete(synchronize_session=False)
    )
    session.flush()
    log_operation(logger, operation="bulk_delete_colors", outcome="deleted", deleted_count=deleted)
    return deleted
