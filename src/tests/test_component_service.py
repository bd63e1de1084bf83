"""
Tests for component_service.

Tests cover:
- Create / update with color resolution by (brandSlug, colorCode)
- Uniqueness of (color, variant, tonerCode)
- Delete and bulk delete (no dependents)
- Filtered listing
"""

from decimal import Decimal

import pytest

from paintmix.models import FormulaComponent
from paintmix.services import component_service
from paintmix.services.exceptions import (
    ComponentNotFoundError,
    DuplicateComponentError,
    ValidationError,
)


def _component(**overrides):
    data = {
        "brandSlug": "acme",
        "colorCode": "RED-01",
        "variant": "V2",
        "tonerCode": "T9",
        "tonerName": "Yellow",
        "parts": "0.5",
    }
    data.update(overrides)
    return data


class TestCreateComponent:
    def test_create(self, seeded_catalog):
        component = component_service.create_component(_component(variant="v2"))

        assert component.color_id == seeded_catalog["red_id"]
        assert component.variant == "V2"
        assert Decimal(str(component.parts)) == Decimal("0.5")

    def test_same_toner_in_other_variant_is_allowed(self, test_db, seeded_catalog):
        component_service.create_component(_component(tonerCode="T1"))
        assert test_db().query(FormulaComponent).count() == 4

    def test_duplicate_key(self, seeded_catalog):
        with pytest.raises(DuplicateComponentError):
            component_service.create_component(_component(variant="V1", tonerCode="T1"))

    def test_unknown_color(self, seeded_catalog):
        with pytest.raises(ValidationError) as exc_info:
            component_service.create_component(_component(colorCode="NOPE"))

        error = exc_info.value.errors[0]
        assert error.field == "colorCode"
        assert error.message_key == "import.unknownColorReference"

    @pytest.mark.parametrize("parts", ["0", "-1", "abc", ""])
    def test_parts_must_be_positive(self, seeded_catalog, parts):
        with pytest.raises(ValidationError) as exc_info:
            component_service.create_component(_component(parts=parts))
        assert exc_info.value.errors[0].field == "parts"


class TestUpdateComponent:
    def test_move_to_other_color(self, seeded_catalog):
        component = component_service.create_component(_component())

        updated = component_service.update_component(
            component.id, _component(colorCode="BLU-02", variant="V1", parts="2")
        )

        assert updated.color_id == seeded_catalog["blue_id"]
        assert updated.variant == "V1"

    def test_update_into_existing_key(self, seeded_catalog):
        component = component_service.create_component(_component(variant="V1"))
        with pytest.raises(DuplicateComponentError):
            component_service.update_component(
                component.id, _component(variant="V1", tonerCode="T2")
            )

    def test_update_missing(self, seeded_catalog):
        with pytest.raises(ComponentNotFoundError):
            component_service.update_component(999, _component())


class TestDeleteComponent:
    def test_delete_always_succeeds(self, test_db, seeded_catalog):
        component = test_db().query(FormulaComponent).first()
        assert component_service.delete_component(component.id) is True
        assert test_db().query(FormulaComponent).count() == 2

    def test_delete_missing(self, test_db):
        with pytest.raises(ComponentNotFoundError):
            component_service.delete_component(999)

    def test_bulk_delete(self, test_db, seeded_catalog):
        ids = [c.id for c in test_db().query(FormulaComponent).all()]
        assert component_service.bulk_delete_components(ids + [999]) == 3
        assert test_db().query(FormulaComponent).count() == 0

    def test_bulk_empty(self, seeded_catalog):
        with pytest.raises(ValidationError):
            component_service.bulk_delete_components([])


class TestListComponents:
    def test_filters(self, seeded_catalog):
        component_service.create_component(_component())

        assert component_service.list_components(variant="v1")["total"] == 3
        assert component_service.list_components(color_code="RED-01")["total"] == 4
        assert component_service.list_components(brand_slug="ghost")["total"] == 0

        page = component_service.list_components(query="yell")
        assert [c.toner_code for c in page["data"]] == ["T9"]

    def test_sort_desc(self, seeded_catalog):
        page = component_service.list_components(sort="tonerCode", direction="desc")
        assert [c.toner_code for c in page["data"]] == ["T3", "T2", "T1"]
