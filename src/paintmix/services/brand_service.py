"""
Brand Service - admin CRUD for brands.

This service provides:
- Create, read, update and delete of single brands
- Paged listing with text filter and sort
- All-or-nothing bulk delete

Brands that still own colors cannot be deleted.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paintmix.models import Brand, Color
from paintmix.services.database import session_scope
from paintmix.services.exceptions import (
    BrandHasColorsError,
    BrandNotFoundError,
    DatabaseError,
    DuplicateBrandError,
    ValidationError,
)
from paintmix.services.logging_utils import get_service_logger, log_operation
from paintmix.services.pagination import apply_sort, clean_ids, paginate
from paintmix.services.schema_validation_service import BrandRecord, validate_brand_row
from paintmix.utils.constants import DEFAULT_PAGE_SIZE

logger = get_service_logger(__name__)

SORT_COLUMNS = {"name": Brand.name, "slug": Brand.slug}


def _validated(data: Dict[str, Any]) -> BrandRecord:
    result = validate_brand_row(data)
    if not result.valid:
        raise ValidationError(result.errors)
    return result.record


def _get_or_raise(session: Session, brand_id: int) -> Brand:
    brand = session.get(Brand, brand_id)
    if brand is None:
        raise BrandNotFoundError(brand_id)
    return brand


# ============================================================================
# CRUD Operations
# ============================================================================


def create_brand(data: Dict[str, Any], session: Optional[Session] = None) -> Brand:
    """
    Create a new brand.

    Args:
        data: Dictionary with ``slug`` and ``name``
        session: Optional database session

    Returns:
        Created Brand instance

    Raises:
        ValidationError: If data validation fails
        DuplicateBrandError: If the slug is taken
        DatabaseError: If database operation fails
    """
    record = _validated(data)
    try:
        if session is not None:
            return _create_brand_impl(record, session)
        with session_scope() as session:
            return _create_brand_impl(record, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create brand", e) from e


def _create_brand_impl(record: BrandRecord, session: Session) -> Brand:
    if session.query(Brand).filter(Brand.slug == record.slug).first() is not None:
        raise DuplicateBrandError(record.slug)

    brand = Brand(slug=record.slug, name=record.name)
    session.add(brand)
    session.flush()
    log_operation(logger, operation="create_brand", outcome="created", brand_id=brand.id)
    return brand


def get_brand(brand_id: int, session: Optional[Session] = None) -> Brand:
    """
    Retrieve a brand by ID.

    Raises:
        BrandNotFoundError: If the brand doesn't exist
    """
    if session is not None:
        return _get_or_raise(session, brand_id)
    with session_scope() as session:
        return _get_or_raise(session, brand_id)


def get_brand_by_slug(slug: str, session: Optional[Session] = None) -> Brand:
    """Retrieve a brand by slug, raising BrandNotFoundError if absent."""
    if session is not None:
        return _get_brand_by_slug_impl(slug, session)
    with session_scope() as session:
        return _get_brand_by_slug_impl(slug, session)


def _get_brand_by_slug_impl(slug: str, session: Session) -> Brand:
    brand = session.query(Brand).filter(Brand.slug == slug).first()
    if brand is None:
        raise BrandNotFoundError(slug)
    return brand


def list_brands(
    query: Optional[str] = None,
    sort: str = "name",
    direction: str = "asc",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    List brands one page at a time.

    Args:
        query: Case-insensitive filter on slug or name
        sort: "name" (default) or "slug"
        direction: "asc" or "desc"
        page: 1-based page number; invalid values fall back to 1
        page_size: Rows per page; invalid values fall back to the default
        session: Optional database session

    Returns:
        Dict with data (Brand list), total, page and page_size
    """
    if session is not None:
        return _list_brands_impl(query, sort, direction, page, page_size, session)
    with session_scope() as session:
        return _list_brands_impl(query, sort, direction, page, page_size, session)


def _list_brands_impl(query, sort, direction, page, page_size, session: Session):
    q = session.query(Brand)
    text = (query or "").strip().lower()
    if text:
        q = q.filter(
            or_(
                func.lower(Brand.slug).contains(text, autoescape=True),
                func.lower(Brand.name).contains(text, autoescape=True),
            )
        )
    q = apply_sort(q, SORT_COLUMNS, sort, "name", direction)
    return paginate(q, page, page_size)


def update_brand(
    brand_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> Brand:
    """
    Replace a brand's slug and name.

    Raises:
        ValidationError: If data validation fails
        BrandNotFoundError: If the brand doesn't exist
        DuplicateBrandError: If the new slug belongs to another brand
        DatabaseError: If database operation fails
    """
    record = _validated(data)
    try:
        if session is not None:
            return _update_brand_impl(brand_id, record, session)
        with session_scope() as session:
            return _update_brand_impl(brand_id, record, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update brand {brand_id}", e) from e


def _update_brand_impl(brand_id: int, record: BrandRecord, session: Session) -> Brand:
    brand = _get_or_raise(session, brand_id)

    duplicate = session.query(Brand).filter(Brand.slug == record.slug).first()
    if duplicate is not None and duplicate.id != brand.id:
        raise DuplicateBrandError(record.slug)

    brand.slug = record.slug
    brand.name = record.name
    session.flush()
    log_operation(logger, operation="update_brand", outcome="updated", brand_id=brand.id)
    return brand


def delete_brand(brand_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a brand that owns no colors.

    Returns:
        True if deleted successfully

    Raises:
        BrandNotFoundError: If the brand doesn't exist
        BrandHasColorsError: If the brand still owns colors
    """
    if session is not None:
        return _delete_brand_impl(brand_id, session)
    with session_scope() as session:
        return _delete_brand_impl(brand_id, session)


def _delete_brand_impl(brand_id: int, session: Session) -> bool:
    brand = _get_or_raise(session, brand_id)

    color_count = session.query(Color).filter(Color.brand_id == brand.id).count()
    if color_count > 0:
        log_operation(
            logger,
            operation="delete_brand",
            outcome="rejected",
            level=logging.WARNING,
            brand_id=brand.id,
            color_count=color_count,
        )
        raise BrandHasColorsError([brand.id], color_count)

    session.delete(brand)
    session.flush()
    log_operation(logger, operation="delete_brand", outcome="deleted", brand_id=brand_id)
    return True


def bulk_delete_brands(ids: Iterable[int], session: Optional[Session] = None) -> int:
    """
    Delete several brands at once.

    Nothing is deleted if any of the brands still owns colors. IDs that do
    not exist are ignored.

    Returns:
        Number of brands deleted

    Raises:
        ValidationError: If ``ids`` is empty
        BrandHasColorsError: If any brand still owns colors
    """
    id_list = clean_ids(ids)
    if session is not None:
        return _bulk_delete_brands_impl(id_list, session)
    with session_scope() as session:
        return _bulk_delete_brands_impl(id_list, session)


def _bulk_delete_brands_impl(ids: List[int], session: Session) -> int:
    owners = (
        session.query(Color.brand_id, func.count(Color.id))
        .filter(Color.brand_id.in_(ids))
        .group_by(Color.brand_id)
        .all()
    )
    if owners:
        color_count = sum(count for _, count in owners)
        log_operation(
            logger,
            operation="bulk_delete_brands",
            outcome="rejected",
            level=logging.WARNING,
            color_count=color_count,
        )
        raise BrandHasColorsError([brand_id for brand_id, _ in owners], color_count)

    deleted = (
        session.query(Brand).filter(Brand.id.in_(ids)).delete(synchronize_session=False)
    )
    session.flush()
    log_operation(logger, operation="bulk_delete_brands", outcome="deleted", deleted_count=deleted)
    return deleted
