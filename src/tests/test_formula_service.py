"""
Tests for formula_service.

Tests cover:
- Gram conservation and remainder assignment
- Degenerate formulas
- Percent values (no redistribution)
- The formula query with variant selection and bounds
"""

from collections import namedtuple
from decimal import Decimal

import pytest

from paintmix.models import FormulaComponent
from paintmix.services.exceptions import ColorNotFoundError, ValidationError
from paintmix.services.formula_service import compute_formula, get_color_formula, round2

Toner = namedtuple("Toner", ["toner_code", "toner_name", "parts"])


def _toners(*parts):
    return [Toner(f"T{i}", f"Toner {i}", p) for i, p in enumerate(parts, start=1)]


class TestRound2:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("1.005"), Decimal("1.01")),
            (Decimal("2.675"), Decimal("2.68")),
            (Decimal("33.3333"), Decimal("33.33")),
            (Decimal("-0.005"), Decimal("-0.01")),
        ],
    )
    def test_half_up(self, value, expected):
        assert round2(value) == expected


class TestComputeFormula:
    def test_three_equal_parts_remainder_to_first(self):
        result = compute_formula(_toners(1, 1, 1), 100)

        assert [item.grams for item in result.items] == [
            Decimal("33.34"),
            Decimal("33.33"),
            Decimal("33.33"),
        ]
        assert result.total_grams == Decimal("100.00")
        assert result.total_parts == 3

    def test_remainder_goes_to_largest_parts(self):
        result = compute_formula(_toners(1, 2, 2, 1), 1)

        # shares 0.1666.. / 0.3333.. round to 0.17, 0.33, 0.33, 0.17 = 1.00
        assert sum(item.grams for item in result.items) == Decimal("1.00")

        # 1.43 + 4.29 + 4.29 = 10.01, first of the tied largest gives back a cent
        result = compute_formula(_toners(1, 3, 3), 10)
        assert [item.grams for item in result.items] == [
            Decimal("1.43"),
            Decimal("4.28"),
            Decimal("4.29"),
        ]

    @pytest.mark.parametrize(
        "parts, total",
        [
            ((1, 1, 1), 100),
            ((3, 7), 1),
            ((0.5, 0.25, 0.25), 333),
            ((13, 17, 19, 23), 49999),
            ((1, 1, 1, 1, 1, 1, 1), 50000),
            ((2.2, 3.3, 4.4), 7.77),
        ],
    )
    def test_grams_sum_to_target(self, parts, total):
        result = compute_formula(_toners(*parts), total)
        assert sum(item.grams for item in result.items) == round2(Decimal(str(total)))

    def test_percent_not_redistributed(self):
        result = compute_formula(_toners(1, 1, 1), 100)
        assert [item.percent for item in result.items] == [Decimal("33.33")] * 3
        assert sum(item.percent for item in result.items) == Decimal("99.99")

    def test_empty_list_is_degenerate(self):
        result = compute_formula([], 100)
        assert result.total_parts == 0
        assert result.items == []

    def test_zero_parts_is_degenerate(self):
        result = compute_formula(_toners(0, 0), 100)
        assert result.total_parts == 0
        assert result.items == []

    def test_item_wire_shape(self):
        item = compute_formula(_toners(1), 250).items[0]
        assert item.to_dict() == {
            "tonerCode": "T1",
            "tonerName": "Toner 1",
            "parts": 1.0,
            "grams": 250.0,
            "percent": 100.0,
        }


class TestGetColorFormula:
    def test_default_variant_is_lowest_with_components(self, seeded_catalog):
        formula = get_color_formula(seeded_catalog["red_id"], 100)

        assert formula["variant"] == "V1"
        assert formula["variants"] == ["V1"]
        assert formula["totalGrams"] == 100.0
        assert formula["totalParts"] == 3.0
        assert [c["grams"] for c in formula["components"]] == [33.34, 33.33, 33.33]
        assert formula["color"]["brand"]["slug"] == "acme"

    def test_only_v2_defaults_to_v2(self, test_db, seeded_catalog):
        session = test_db()
        session.add(
            FormulaComponent(
                color_id=seeded_catalog["blue_id"], variant="V2", toner_code="B1",
                toner_name="Blue", parts=Decimal("2"),
            )
        )
        session.commit()

        formula = get_color_formula(seeded_catalog["blue_id"], 50)

        assert formula["variant"] == "V2"
        assert formula["components"][0]["grams"] == 50.0

    def test_no_components_defaults_to_v1(self, seeded_catalog):
        formula = get_color_formula(seeded_catalog["blue_id"], 100)
        assert formula["variant"] == "V1"
        assert formula["variants"] == []
        assert formula["totalParts"] == 0.0
        assert formula["components"] == []

    def test_explicit_variant_without_components(self, seeded_catalog):
        formula = get_color_formula(seeded_catalog["red_id"], 100, variant="v2")
        assert formula["variant"] == "V2"
        assert formula["components"] == []

    @pytest.mark.parametrize("total", [0, 0.5, 50001, "abc", None])
    def test_total_grams_bounds(self, seeded_catalog, total):
        with pytest.raises(ValidationError) as exc_info:
            get_color_formula(seeded_catalog["red_id"], total)
        assert exc_info.value.errors[0].field == "totalGrams"

    def test_unknown_variant(self, seeded_catalog):
        with pytest.raises(ValidationError):
            get_color_formula(seeded_catalog["red_id"], 100, variant="V3")

    def test_missing_color(self, test_db):
        with pytest.raises(ColorNotFoundError):
            get_color_formula(999, 100)
