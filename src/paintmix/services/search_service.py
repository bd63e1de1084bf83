"""
Search Service - color lookup for the public picker.

Colors of one brand are matched by code or name and ranked:

    0  code equals the query (case-insensitive)
    1  code starts with the query
    2  name contains the query
    3  anything else

Ties are broken by ascending code. The store query only pre-filters a
bounded candidate set; the ranking decides the order.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from paintmix.models import Brand, Color
from paintmix.services.database import session_scope
from paintmix.utils.constants import SEARCH_CANDIDATE_LIMIT, SEARCH_RESULT_LIMIT


def rank_color(query: str, code: str, name: str) -> int:
    """Rank one color against a query; lower is better."""
    q = query.lower()
    code_lower = code.lower()
    if code_lower == q:
        return 0
    if code_lower.startswith(q):
        return 1
    if q in name.lower():
        return 2
    return 3


def _field(candidate: Any, name: str) -> str:
    if isinstance(candidate, Mapping):
        return candidate[name]
    return getattr(candidate, name)


def rank_colors(
    query: str, candidates: Sequence[Any], limit: int = SEARCH_RESULT_LIMIT
) -> List[Any]:
    """
    Order candidates by rank, then code, and keep the first ``limit``.

    Args:
        query: Search text
        candidates: Dicts or objects with ``code`` and ``name``
        limit: Maximum number of results

    Returns:
        The best ``limit`` candidates, best first
    """
    ranked = sorted(
        candidates,
        key=lambda c: (rank_color(query, _field(c, "code"), _field(c, "name")), _field(c, "code")),
    )
    return ranked[:limit]


def search_colors(
    brand_slug: str, query: str, session: Optional[Session] = None
) -> List[Dict[str, Any]]:
    """
    Search one brand's colors by code or name.

    Candidates are pre-filtered in SQL with lower(). On SQLite that folds
    ASCII letters only, so "CRIMSON" finds "Crimson" but "écru" does not
    find a stored "Écru".

    Args:
        brand_slug: Brand to search in
        query: Search text; surrounding whitespace is ignored
        session: Optional database session

    Returns:
        Up to 20 color dicts (id, code, name, colorCar, notes), best first.
        An empty query or unknown brand gives an empty list.
    """
    query = (query or "").strip()
    if not brand_slug or not query:
        return []

    if session is not None:
        return _search_colors_impl(brand_slug, query, session)
    with session_scope() as session:
        return _search_colors_impl(brand_slug, query, session)


def _search_colors_impl(brand_slug: str, query: str, session: Session) -> List[Dict[str, Any]]:
    brand = session.query(Brand).filter(Brand.slug == brand_slug).first()
    if brand is None:
        return []

    needle = query.lower()
    candidates = (
        session.query(Color)
        .filter(Color.brand_id == brand.id)
        .filter(
            or_(
                func.lower(Color.code).contains(needle, autoescape=True),
                func.lower(Color.name).contains(needle, autoescape=True),
            )
        )
        .order_by(Color.code)
        .limit(SEARCH_CANDIDATE_LIMIT)
        .all()
    )

    return [
        {
            "id": color.id,
            "code": color.code,
            "name": color.name,
            "colorCar": color.color_car,
            "notes": color.notes,
        }
        for color in rank_colors(query, candidates)
    ]


def list_brands(session: Optional[Session] = None) -> List[Dict[str, Any]]:
    """All brands ordered by name, as dicts with id, slug and name."""
    if session is not None:
        return _list_brands_impl(session)
    with session_scope() as session:
        return _list_brands_impl(session)


def _list_brands_impl(session: Session) -> List[Dict[str, Any]]:
    brands = session.query(Brand).order_by(Brand.name).all()
    return [{"id": brand.id, "slug": brand.slug, "name": brand.name} for brand in brands]
