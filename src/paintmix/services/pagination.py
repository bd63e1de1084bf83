"""Paging, sorting and bulk-selection helpers for the admin operations."""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Query

from paintmix.services.exceptions import ValidationError
from paintmix.services.schema_validation_service import FieldError
from paintmix.utils.constants import DEFAULT_PAGE_SIZE, ERROR_IDS_REQUIRED, KEY_IDS_REQUIRED


def normalize_page(value: Any, fallback: int) -> int:
    """Positive int from ``value``, or ``fallback`` when missing or invalid."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def apply_sort(
    query: Query, columns: Mapping[str, Any], sort: str, default: str, direction: str = "asc"
) -> Query:
    """
    Order ``query`` by the column registered under ``sort``.

    Unknown sort names fall back to ``default``; any direction other than
    "desc" sorts ascending.
    """
    column = columns.get(sort, columns[default])
    return query.order_by(column.desc() if direction == "desc" else column.asc())


def paginate(query: Query, page: Any = 1, page_size: Any = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
    """
    Run one page of ``query``.

    Returns:
        Dict with data (model instances), total, page and page_size
    """
    page = normalize_page(page, 1)
    page_size = normalize_page(page_size, DEFAULT_PAGE_SIZE)
    total = query.order_by(None).count()
    data = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"data": data, "total": total, "page": page, "page_size": page_size}


def clean_ids(ids: Optional[Iterable[Any]]) -> List[int]:
    """
    Distinct integer IDs of a bulk selection, in first-seen order.

    Raises:
        ValidationError: If no usable ID is given
    """
    cleaned: List[int] = []
    for value in ids or []:
        try:
            record_id = int(value)
        except (TypeError, ValueError):
            continue
        if record_id not in cleaned:
            cleaned.append(record_id)

    if not cleaned:
        raise ValidationError(
            [FieldError(0, "ids", ERROR_IDS_REQUIRED, KEY_IDS_REQUIRED)]
        )
    return cleaned
