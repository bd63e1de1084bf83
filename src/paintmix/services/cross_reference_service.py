"""
Cross-Reference Service - referential checks between import tables.

Colors must name a known brand; components must name a known brand and a
known (brand, color code). "Known" means declared in the same upload for a
whole-batch import, or present in the store for a staged import. The checks
themselves never touch the database; the store lookups only read.
"""

from typing import Iterable, List, Sequence, Set, Tuple

from sqlalchemy.orm import Session

from paintmix.models import Brand, Color
from paintmix.services.import_preview import ImportIssue
from paintmix.services.schema_validation_service import (
    BrandRecord,
    ColorRecord,
    ComponentRecord,
)
from paintmix.utils.constants import (
    KEY_UNKNOWN_BRAND,
    KEY_UNKNOWN_COLOR_REFERENCE,
    TABLE_COLORS,
    TABLE_COMPONENTS,
)

ColorKey = Tuple[str, str]  # (brand slug, color code)


def _unknown_brand(table: str, row: int, brand_slug: str) -> ImportIssue:
    return ImportIssue(
        table=table,
        row=row,
        message=f"Unknown brandSlug: {brand_slug}",
        field="brandSlug",
        message_key=KEY_UNKNOWN_BRAND,
        message_values={"brandSlug": brand_slug},
    )


def check_color_brands(
    colors: Sequence[ColorRecord],
    row_numbers: Sequence[int],
    known_brand_slugs: Set[str],
) -> List[ImportIssue]:
    """One unknownBrand issue per color whose brand is not known."""
    issues = []
    for color, row in zip(colors, row_numbers):
        if color.brand_slug not in known_brand_slugs:
            issues.append(_unknown_brand(TABLE_COLORS, row, color.brand_slug))
    return issues


def check_component_colors(
    components: Sequence[ComponentRecord],
    row_numbers: Sequence[int],
    known_brand_slugs: Set[str],
    known_color_keys: Set[ColorKey],
) -> List[ImportIssue]:
    """
    Check that every component resolves to a known color.

    A row with an unknown brand gets only the unknownBrand issue; otherwise an
    unresolved (brand, color code) gets one unknownColorReference issue.
    """
    issues = []
    for component, row in zip(components, row_numbers):
        if component.brand_slug not in known_brand_slugs:
            issues.append(_unknown_brand(TABLE_COMPONENTS, row, component.brand_slug))
            continue
        if (component.brand_slug, component.color_code) not in known_color_keys:
            issues.append(
                ImportIssue(
                    table=TABLE_COMPONENTS,
                    row=row,
                    message=f"Unknown color reference: {component.color_code}",
                    field="colorCode",
                    message_key=KEY_UNKNOWN_COLOR_REFERENCE,
                    message_values={
                        "colorCode": component.color_code,
                        "variant": component.variant,
                    },
                )
            )
    return issues


# ============================================================================
# Known-Set Builders
# ============================================================================


def batch_reference_sets(
    brands: Iterable[BrandRecord], colors: Iterable[ColorRecord]
) -> Tuple[Set[str], Set[ColorKey]]:
    """Brand slugs and color keys declared by a whole-batch upload."""
    brand_slugs = {brand.slug for brand in brands}
    color_keys = {(color.brand_slug, color.code) for color in colors}
    return brand_slugs, color_keys


def store_brand_slugs(session: Session, slugs: Iterable[str]) -> Set[str]:
    """Subset of ``slugs`` that exist as brands in the store."""
    wanted = set(slugs)
    if not wanted:
        return set()
    rows = session.query(Brand.slug).filter(Brand.slug.in_(wanted)).all()
    return {row.slug for row in rows}


def store_color_keys(session: Session, keys: Iterable[ColorKey]) -> Set[ColorKey]:
    """Subset of (brand slug, color code) keys that exist as colors in the store."""
    wanted = set(keys)
    if not wanted:
        return set()
    rows = (
        session.query(Brand.slug, Color.code)
        .join(Color, Color.brand_id == Brand.id)
        .filter(Brand.slug.in_({slug for slug, _ in wanted}))
        .filter(Color.code.in_({code for _, code in wanted}))
        .all()
    )
    return {(row.slug, row.code) for row in rows} & wanted
