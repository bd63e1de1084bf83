"""Tests for cross_reference_service (batch and store-backed reference checks)."""

from decimal import Decimal

from paintmix.models import Brand, Color
from paintmix.services.cross_reference_service import (
    batch_reference_sets,
    check_color_brands,
    check_component_colors,
    store_brand_slugs,
    store_color_keys,
)
from paintmix.services.schema_validation_service import (
    BrandRecord,
    ColorRecord,
    ComponentRecord,
)


def _component(brand_slug, color_code, variant="V1"):
    return ComponentRecord(
        brand_slug=brand_slug,
        color_code=color_code,
        variant=variant,
        toner_code="T1",
        toner_name="Oxide",
        parts=Decimal("1"),
    )


class TestBatchChecks:
    def test_unknown_brand_once_per_color(self):
        brands, _ = batch_reference_sets([BrandRecord("acme", "Acme")], [])
        colors = [ColorRecord("acme", "R1", "Red"), ColorRecord("ghost", "G1", "Grey")]

        issues = check_color_brands(colors, [2, 3], brands)

        assert len(issues) == 1
        assert issues[0].row == 3
        assert issues[0].field == "brandSlug"
        assert issues[0].message_key == "import.unknownBrand"
        assert issues[0].message_values == {"brandSlug": "ghost"}

    def test_component_with_unknown_brand_gets_only_brand_issue(self):
        issues = check_component_colors([_component("ghost", "R1")], [5], {"acme"}, set())
        assert [issue.message_key for issue in issues] == ["import.unknownBrand"]

    def test_component_with_unknown_color(self):
        brands, colors = batch_reference_sets(
            [BrandRecord("acme", "Acme")], [ColorRecord("acme", "R1", "Red")]
        )
        issues = check_component_colors(
            [_component("acme", "R1"), _component("acme", "R9", "V2")], [2, 3], brands, colors
        )

        assert len(issues) == 1
        assert issues[0].row == 3
        assert issues[0].field == "colorCode"
        assert issues[0].message_key == "import.unknownColorReference"
        assert issues[0].message_values == {"colorCode": "R9", "variant": "V2"}


class TestStoreLookups:
    def test_store_brand_slugs(self, test_db):
        session = test_db()
        session.add(Brand(slug="acme", name="Acme"))
        session.commit()

        assert store_brand_slugs(session, ["acme", "ghost"]) == {"acme"}
        assert store_brand_slugs(session, []) == set()

    def test_store_color_keys_exact_pairs(self, test_db):
        session = test_db()
        acme = Brand(slug="acme", name="Acme")
        nova = Brand(slug="nova", name="Nova")
        session.add_all([acme, nova])
        session.flush()
        session.add_all(
            [
                Color(brand_id=acme.id, code="R1", name="Red"),
                Color(brand_id=nova.id, code="B1", name="Blue"),
            ]
        )
        session.commit()

        found = store_color_keys(session, [("acme", "R1"), ("acme", "B1"), ("nova", "B1")])

        assert found == {("acme", "R1"), ("nova", "B1")}
