"""
Component Service - admin CRUD for formula components.

Components are addressed in input by their natural key: brandSlug and
colorCode resolve the color, then (variant, tonerCode) must be unique
within it. Nothing depends on a component, so deletes are never blocked.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paintmix.models import Brand, Color, FormulaComponent
from paintmix.services.database import session_scope
from paintmix.services.exceptions import (
    ComponentNotFoundError,
    DatabaseError,
    DuplicateComponentError,
    ValidationError,
)
from paintmix.services.logging_utils import get_service_logger, log_operation
from paintmix.services.pagination import apply_sort, clean_ids, paginate
from paintmix.services.schema_validation_service import (
    ComponentRecord,
    FieldError,
    validate_component_row,
)
from paintmix.utils.constants import DEFAULT_PAGE_SIZE, KEY_UNKNOWN_COLOR_REFERENCE

logger = get_service_logger(__name__)

SORT_COLUMNS = {
    "tonerCode": FormulaComponent.toner_code,
    "colorCode": Color.code,
    "variant": FormulaComponent.variant,
}


def _validated(data: Dict[str, Any]) -> ComponentRecord:
    result = validate_component_row(data)
    if not result.valid:
        raise ValidationError(result.errors)
    return result.record


def _get_or_raise(session: Session, component_id: int) -> FormulaComponent:
    component = session.get(FormulaComponent, component_id)
    if component is None:
        raise ComponentNotFoundError(component_id)
    return component


def _resolve_color(session: Session, record: ComponentRecord) -> Color:
    color = (
        session.query(Color)
        .join(Brand, Color.brand_id == Brand.id)
        .filter(Brand.slug == record.brand_slug, Color.code == record.color_code)
        .first()
    )
    if color is None:
        raise ValidationError(
            [
                FieldError(
                    0,
                    "colorCode",
                    f"Unknown color reference: {record.color_code}",
                    KEY_UNKNOWN_COLOR_REFERENCE,
                    {"colorCode": record.color_code, "variant": record.variant},
                )
            ]
        )
    return color


def _find_duplicate(
    session: Session, color: Color, record: ComponentRecord
) -> Optional[FormulaComponent]:
    return (
        session.query(FormulaComponent)
        .filter(
            FormulaComponent.color_id == color.id,
            FormulaComponent.variant == record.variant,
            FormulaComponent.toner_code == record.toner_code,
        )
        .first()
    )


# ============================================================================
# CRUD Operations
# ============================================================================


def create_component(
    data: Dict[str, Any], session: Optional[Session] = None
) -> FormulaComponent:
    """
    Create a new formula component.

    Args:
        data: Component row (brandSlug, colorCode, variant, tonerCode,
            tonerName, parts)
        session: Optional database session

    Returns:
        Created FormulaComponent instance

    Raises:
        ValidationError: If data validation fails or the color is unknown
        DuplicateComponentError: If the toner is already in that formula
        DatabaseError: If database operation fails
    """
    record = _validated(data)
    try:
        if session is not None:
            return _create_component_impl(record, session)
        with session_scope() as session:
            return _create_component_impl(record, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create formula component", e) from e


def _create_component_impl(record: ComponentRecord, session: Session) -> FormulaComponent:
    color = _resolve_color(session, record)
    if _find_duplicate(session, color, record) is not None:
        raise DuplicateComponentError(color.code, record.variant, record.toner_code)

    component = FormulaComponent(
        color_id=color.id,
        variant=record.variant,
        toner_code=record.toner_code,
        toner_name=record.toner_name,
        parts=record.parts,
    )
    session.add(component)
    session.flush()
    log_operation(
        logger, operation="create_component", outcome="created", component_id=component.id
    )
    return component


def get_component(component_id: int, session: Optional[Session] = None) -> FormulaComponent:
    """Retrieve a component by ID, raising ComponentNotFoundError if absent."""
    if session is not None:
        return _get_or_raise(session, component_id)
    with session_scope() as session:
        return _get_or_raise(session, component_id)


def list_components(
    query: Optional[str] = None,
    brand_slug: Optional[str] = None,
    color_code: Optional[str] = None,
    variant: Optional[str] = None,
    sort: str = "tonerCode",
    direction: str = "asc",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    List formula components one page at a time.

    Args:
        query: Case-insensitive filter on toner code, toner name or color code
        brand_slug: Only components of this brand's colors
        color_code: Only components of colors with this code
        variant: Only this variant
        sort: "tonerCode" (default), "colorCode" or "variant"
        direction: "asc" or "desc"
        page: 1-based page number
        page_size: Rows per page
        session: Optional database session

    Returns:
        Dict with data (FormulaComponent list), total, page and page_size
    """
    filters = {
        "query": query,
        "brand_slug": brand_slug,
        "color_code": color_code,
        "variant": variant,
    }
    if session is not None:
        return _list_components_impl(filters, sort, direction, page, page_size, session)
    with session_scope() as session:
        return _list_components_impl(filters, sort, direction, page, page_size, session)


def _list_components_impl(filters, sort, direction, page, page_size, session: Session):
    q = (
        session.query(FormulaComponent)
        .join(Color, FormulaComponent.color_id == Color.id)
        .join(Brand, Color.brand_id == Brand.id)
    )
    if filters["variant"]:
        q = q.filter(FormulaComponent.variant == filters["variant"].strip().upper())
    if filters["brand_slug"]:
        q = q.filter(Brand.slug == filters["brand_slug"].strip())
    if filters["color_code"]:
        q = q.filter(Color.code == filters["color_code"].strip())

    text = (filters["query"] or "").strip().lower()
    if text:
        q = q.filter(
            or_(
                func.lower(FormulaComponent.toner_code).contains(text, autoescape=True),
                func.lower(FormulaComponent.toner_name).contains(text, autoescape=True),
                func.lower(Color.code).contains(text, autoescape=True),
            )
        )
    q = apply_sort(q, SORT_COLUMNS, sort, "tonerCode", direction)
    return paginate(q, page, page_size)


def update_component(
    component_id: int, data: Dict[str, Any], session: Optional[Session] = None
) -> FormulaComponent:
    """
    Replace every field of a component, including the color it belongs to.

    Raises:
        ValidationError: If data validation fails or the color is unknown
        ComponentNotFoundError: If the component doesn't exist
        DuplicateComponentError: If another component has the same key
        DatabaseError: If database operation fails
    """
    record = _validated(data)
    try:
        if session is not None:
            return _update_component_impl(component_id, record, session)
        with session_scope() as session:
            return _update_component_impl(component_id, record, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update formula component {component_id}", e) from e


def _update_component_impl(
    component_id: int, record: ComponentRecord, session: Session
) -> FormulaComponent:
    component = _get_or_raise(session, component_id)
    color = _resolve_color(session, record)

    duplicate = _find_duplicate(session, color, record)
    if duplicate is not None and duplicate.id != component.id:
        raise DuplicateComponentError(color.code, record.variant, record.toner_code)

    component.color_id = color.id
    component.variant = record.variant
    component.toner_code = record.toner_code
    component.toner_name = record.toner_name
    component.parts = record.parts
    session.flush()
    log_operation(
        logger, operation="update_component", outcome="updated", component_id=component.id
    )
    return component


def delete_component(component_id: int, session: Optional[Session] = None) -> bool:
    """
    Delete a formula component.

    Raises:
        ComponentNotFoundError: If the component doesn't exist
    """
    if session is not None:
        return _delete_component_impl(component_id, session)
    with session_scope() as session:
        return _delete_component_impl(component_id, session)


def _delete_component_impl(component_id: int, session: Session) -> bool:
    component = _get_or_raise(session, component_id)
    session.delete(component)
    session.flush()
    log_operation(
        logger, operation="delete_component", outcome="deleted", component_id=component_id
    )
    return True


def bulk_delete_components(ids: Iterable[int], session: Optional[Session] = None) -> int:
    """
    Delete several components at once. IDs that do not exist are ignored.

    Returns:
        Number of components deleted

    Raises:
        ValidationError: If ``ids`` is empty
    """
    id_list = clean_ids(ids)
    if session is not None:
        return _bulk_delete_components_impl(id_list, session)
    with session_scope() as session:
        return _bulk_delete_components_impl(id_list, session)


def _bulk_delete_components_impl(ids: List[int], session: Session) -> int:
    deleted = (
        session.query(FormulaComponent)
        .filter(FormulaComponent.id.in_(ids))
        .delete(synchronize_session=False)
    )
    session.flush()
    log_operation(
        logger, operation="bulk_delete_components", outcome="deleted", deleted_count=deleted
    )
    return deleted
