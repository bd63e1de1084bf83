"""
Formula Service - toner weights for a target amount of paint.

A formula is the set of FormulaComponent rows of one (color, variant).
Only the ratio of parts matters; scaling to a target weight gives each
toner's grams and percent share, both rounded half-up to 2 decimals.

Rounding each share separately can leave the grams a cent off the target.
That remainder is added to the component with the largest parts (the first
one when tied), so the grams always sum to the target exactly. Percent
values get no such correction and may sum to 99.99 or 100.01.

All arithmetic uses Decimal.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from paintmix.models import Color, FormulaComponent, Variant
from paintmix.services.database import session_scope
from paintmix.services.exceptions import ColorNotFoundError, ValidationError
from paintmix.services.schema_validation_service import FieldError
from paintmix.utils.constants import (
    ERROR_INVALID_VARIANT,
    ERROR_TOTAL_GRAMS_RANGE,
    KEY_TOTAL_GRAMS_RANGE,
    KEY_VARIANT_INVALID,
    MAX_TOTAL_GRAMS,
    MIN_TOTAL_GRAMS,
    VARIANTS,
)
from paintmix.utils.datetime_utils import to_iso_instant

CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ============================================================================
# Calculator
# ============================================================================


@dataclass
class FormulaItem:
    """One toner line of a computed formula."""

    toner_code: str
    toner_name: str
    parts: Decimal
    grams: Decimal
    percent: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tonerCode": self.toner_code,
            "tonerName": self.toner_name,
            "parts": float(self.parts),
            "grams": float(self.grams),
            "percent": float(self.percent),
        }


@dataclass
class FormulaResult:
    total_parts: Decimal = Decimal(0)
    items: List[FormulaItem] = field(default_factory=list)

    @property
    def total_grams(self) -> Decimal:
        return sum((item.grams for item in self.items), Decimal(0))


def compute_formula(components: Sequence[Any], total_grams) -> FormulaResult:
    """
    Scale a formula to ``total_grams``.

    Args:
        components: Objects with ``toner_code``, ``toner_name`` and ``parts``
            (FormulaComponent rows or ComponentRecords), in display order
        total_grams: Target weight in grams

    Returns:
        FormulaResult; an empty formula or one whose parts sum to zero or
        less gives total_parts 0 and no items

    Example:
        Three components with parts 1, 1, 1 and total_grams 100 give grams
        33.34, 33.33, 33.33.
    """
    target = _to_decimal(total_grams)
    parts = [_to_decimal(component.parts) for component in components]
    total_parts = sum(parts, Decimal(0))

    if not components or total_parts <= 0:
        return FormulaResult()

    items = []
    for component, component_parts in zip(components, parts):
        share = component_parts / total_parts
        items.append(
            FormulaItem(
                toner_code=component.toner_code,
                toner_name=component.toner_name,
                parts=component_parts,
                grams=round2(share * target),
                percent=round2(share * 100),
            )
        )

    grams_sum = round2(sum((item.grams for item in items), Decimal(0)))
    diff = round2(target - grams_sum)
    if diff != 0:
        largest = max(range(len(items)), key=lambda index: (parts[index], -index))
        items[largest].grams = round2(items[largest].grams + diff)

    return FormulaResult(total_parts=total_parts, items=items)


# ============================================================================
# Formula Query
# ============================================================================


def _validate_total_grams(total_grams) -> Decimal:
    try:
        value = _to_decimal(total_grams)
    except (InvalidOperation, ValueError, TypeError):
        value = None
    if value is None or not value.is_finite() or not (
        MIN_TOTAL_GRAMS <= value <= MAX_TOTAL_GRAMS
    ):
        raise ValidationError(
            [
                FieldError(
                    0,
                    "totalGrams",
                    ERROR_TOTAL_GRAMS_RANGE,
                    KEY_TOTAL_GRAMS_RANGE,
                    {"min": MIN_TOTAL_GRAMS, "max": MAX_TOTAL_GRAMS},
                )
            ]
        )
    return value


def _color_summary(color: Color) -> Dict[str, Any]:
    return {
        "id": color.id,
        "code": color.code,
        "name": color.name,
        "colorCar": color.color_car,
        "notes": color.notes,
        "productionDate": to_iso_instant(color.production_date),
        "brand": {
            "id": color.brand.id,
            "slug": color.brand.slug,
            "name": color.brand.name,
        },
    }


def get_color_formula(
    color_id: int,
    total_grams,
    variant: Optional[str] = None,
    session: Optional[Session] = None,
) -> Dict[str, Any]:
    """
    Compute the formula of one color for a target weight.

    Args:
        color_id: Color ID
        total_grams: Target weight, 1 to 50000 grams
        variant: "V1" or "V2"; defaults to the lowest variant that has
            components, or V1 when the color has none
        session: Optional database session

    Returns:
        Dict with color, variant, variants (those with components),
        totalGrams, totalParts and components

    Raises:
        ValidationError: If total_grams is out of range or the variant is unknown
        ColorNotFoundError: If the color does not exist
    """
    target = _validate_total_grams(total_grams)
    if variant is not None:
        variant = str(variant).strip().upper()
        if variant not in VARIANTS:
            raise ValidationError(
                [
                    FieldError(
                        0, "variant", ERROR_INVALID_VARIANT, KEY_VARIANT_INVALID,
                        {"value": variant},
                    )
                ]
            )

    if session is not None:
        return _get_color_formula_impl(color_id, target, variant, session)
    with session_scope() as session:
        return _get_color_formula_impl(color_id, target, variant, session)


def _get_color_formula_impl(
    color_id: int, target: Decimal, variant: Optional[str], session: Session
) -> Dict[str, Any]:
    color = session.get(Color, color_id)
    if color is None:
        raise ColorNotFoundError(color_id)

    available = sorted({component.variant for component in color.components})
    selected = variant or (available[0] if available else Variant.V1.value)

    components = (
        session.query(FormulaComponent)
        .filter(
            FormulaComponent.color_id == color.id,
            FormulaComponent.variant == selected,
        )
        .order_by(FormulaComponent.id)
        .all()
    )
    formula = compute_formula(components, target)

    return {
        "color": _color_summary(color),
        "variant": selected,
        "variants": available,
        "totalGrams": float(target),
        "totalParts": float(formula.total_parts),
        "components": [item.to_dict() for item in formula.items],
    }
