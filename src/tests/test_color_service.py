"""
Tests for color_service.

Tests cover:
- Create / update with brand resolution by slug
- Code uniqueness within a brand
- Delete guard while formula components exist
- All-or-nothing bulk delete
- Filtered, sorted listing
"""

from datetime import datetime, timedelta, timezone

import pytest

from paintmix.models import Color
from paintmix.services import color_service
from paintmix.services.exceptions import (
    ColorHasComponentsError,
    ColorNotFoundError,
    DuplicateColorError,
    ValidationError,
)


def _color(code="GRN-01", name="Green", **extra):
    data = {"brandSlug": "acme", "code": code, "name": name}
    data.update(extra)
    return data


class TestCreateColor:
    def test_create_with_optional_fields(self, seeded_catalog):
        color = color_service.create_color(
            _color(productionDate="2021-03-04", colorCar="Hatchback", notes="  Matte ")
        )

        assert color.brand_id == seeded_catalog["brand_id"]
        assert color.brand_slug == "acme"
        assert color.production_date.date().isoformat() == "2021-03-04"
        assert color.color_car == "Hatchback"
        assert color.notes == "Matte"

    def test_unknown_brand(self, seeded_catalog):
        with pytest.raises(ValidationError) as exc_info:
            color_service.create_color(_color(brandSlug="ghost"))

        error = exc_info.value.errors[0]
        assert error.field == "brandSlug"
        assert error.message_key == "import.unknownBrand"

    def test_future_production_date(self, seeded_catalog):
        tomorrow = (datetime.now(timezone.utc) + timedelta(days=2)).date().isoformat()
        with pytest.raises(ValidationError) as exc_info:
            color_service.create_color(_color(productionDate=tomorrow))
        assert exc_info.value.errors[0].message_key == "validation.productionDate.future"

    def test_color_car_too_long(self, seeded_catalog):
        with pytest.raises(ValidationError):
            color_service.create_color(_color(colorCar="x" * 101))

    def test_duplicate_code_in_brand(self, seeded_catalog):
        with pytest.raises(DuplicateColorError):
            color_service.create_color(_color(code="RED-01"))


class TestUpdateColor:
    def test_update_fields(self, test_db, seeded_catalog):
        color_service.update_color(
            seeded_catalog["blue_id"], _color(code="BLU-02", name="Navy", notes="Deep")
        )

        blue = color_service.get_color(seeded_catalog["blue_id"])
        assert blue.name == "Navy"
        assert blue.notes == "Deep"

    def test_update_to_taken_code(self, seeded_catalog):
        with pytest.raises(DuplicateColorError):
            color_service.update_color(seeded_catalog["blue_id"], _color(code="RED-01"))

    def test_update_missing(self, seeded_catalog):
        with pytest.raises(ColorNotFoundError):
            color_service.update_color(999, _color())


class TestDeleteColor:
    def test_delete_guard(self, test_db, seeded_catalog):
        with pytest.raises(ColorHasComponentsError) as exc_info:
            color_service.delete_color(seeded_catalog["red_id"])

        assert exc_info.value.component_count == 3
        assert test_db().query(Color).count() == 2

    def test_delete_color_without_components(self, test_db, seeded_catalog):
        assert color_service.delete_color(seeded_catalog["blue_id"]) is True
        assert test_db().query(Color).count() == 1

    def test_bulk_all_or_nothing(self, test_db, seeded_catalog):
        with pytest.raises(ColorHasComponentsError):
            color_service.bulk_delete_colors([seeded_catalog["blue_id"], seeded_catalog["red_id"]])
        assert test_db().query(Color).count() == 2

    def test_bulk_delete(self, test_db, seeded_catalog):
        assert color_service.bulk_delete_colors([seeded_catalog["blue_id"], 999]) == 1
        assert test_db().query(Color).count() == 1

    def test_bulk_empty(self, seeded_catalog):
        with pytest.raises(ValidationError):
            color_service.bulk_delete_colors([])


class TestListColors:
    def test_filter_by_brand_and_text(self, seeded_catalog):
        color_service.create_color(_color(code="GRN-01", name="Green", colorCar="Ocean liner"))

        page = color_service.list_colors(query="ocean", brand_slug="acme")

        assert page["total"] == 2
        assert [c.code for c in page["data"]] == ["BLU-02", "GRN-01"]

    def test_unknown_brand_filter(self, seeded_catalog):
        assert color_service.list_colors(brand_slug="ghost")["total"] == 0

    def test_sort_by_name_desc(self, seeded_catalog):
        page = color_service.list_colors(sort="name", direction="desc")
        assert [c.name for c in page["data"]] == ["Ocean Blue", "Crimson"]
