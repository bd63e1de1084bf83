"""
Tests for brand_service.

Tests cover:
- Create / read / update / delete
- Slug uniqueness
- Delete guard while colors exist
- All-or-nothing bulk delete
- Paged listing
"""

import pytest

from paintmix.models import Brand
from paintmix.services import brand_service
from paintmix.services.exceptions import (
    BrandHasColorsError,
    BrandNotFoundError,
    DuplicateBrandError,
    ValidationError,
)


class TestCreateBrand:
    def test_create(self, test_db):
        brand = brand_service.create_brand({"slug": " acme ", "name": "Acme Paints"})

        assert brand.id is not None
        assert brand.slug == "acme"
        assert brand_service.get_brand_by_slug("acme").name == "Acme Paints"

    def test_invalid_slug(self, test_db):
        with pytest.raises(ValidationError) as exc_info:
            brand_service.create_brand({"slug": "Acme Paints", "name": "Acme"})
        assert exc_info.value.errors[0].field == "slug"

    def test_duplicate_slug(self, test_db):
        brand_service.create_brand({"slug": "acme", "name": "Acme"})
        with pytest.raises(DuplicateBrandError):
            brand_service.create_brand({"slug": "acme", "name": "Other"})
        assert test_db().query(Brand).count() == 1


class TestGetAndUpdateBrand:
    def test_get_missing(self, test_db):
        with pytest.raises(BrandNotFoundError):
            brand_service.get_brand(42)
        with pytest.raises(BrandNotFoundError):
            brand_service.get_brand_by_slug("ghost")

    def test_update(self, test_db):
        brand = brand_service.create_brand({"slug": "acme", "name": "Acme"})

        updated = brand_service.update_brand(brand.id, {"slug": "acme-co", "name": "Acme Co"})

        assert updated.slug == "acme-co"
        assert brand_service.get_brand(brand.id).name == "Acme Co"

    def test_update_keeping_own_slug(self, test_db):
        brand = brand_service.create_brand({"slug": "acme", "name": "Acme"})
        assert brand_service.update_brand(brand.id, {"slug": "acme", "name": "New"}).name == "New"

    def test_update_to_taken_slug(self, test_db):
        brand_service.create_brand({"slug": "acme", "name": "Acme"})
        nova = brand_service.create_brand({"slug": "nova", "name": "Nova"})
        with pytest.raises(DuplicateBrandError):
            brand_service.update_brand(nova.id, {"slug": "acme", "name": "Nova"})


class TestDeleteBrand:
    def test_delete_empty_brand(self, test_db):
        brand = brand_service.create_brand({"slug": "acme", "name": "Acme"})
        assert brand_service.delete_brand(brand.id) is True
        assert test_db().query(Brand).count() == 0

    def test_delete_guard(self, test_db, seeded_catalog):
        with pytest.raises(BrandHasColorsError) as exc_info:
            brand_service.delete_brand(seeded_catalog["brand_id"])

        assert exc_info.value.color_count == 2
        assert test_db().query(Brand).count() == 1

    def test_delete_missing(self, test_db):
        with pytest.raises(BrandNotFoundError):
            brand_service.delete_brand(42)


class TestBulkDeleteBrands:
    def test_deletes_all(self, test_db):
        a = brand_service.create_brand({"slug": "a", "name": "A"})
        b = brand_service.create_brand({"slug": "b", "name": "B"})

        assert brand_service.bulk_delete_brands([a.id, b.id, a.id, 999]) == 2
        assert test_db().query(Brand).count() == 0

    def test_all_or_nothing(self, test_db, seeded_catalog):
        empty = brand_service.create_brand({"slug": "empty", "name": "Empty"})

        with pytest.raises(BrandHasColorsError) as exc_info:
            brand_service.bulk_delete_brands([empty.id, seeded_catalog["brand_id"]])

        assert exc_info.value.brand_ids == [seeded_catalog["brand_id"]]
        assert test_db().query(Brand).count() == 2

    @pytest.mark.parametrize("ids", [[], None, ["x"]])
    def test_empty_selection(self, test_db, ids):
        with pytest.raises(ValidationError) as exc_info:
            brand_service.bulk_delete_brands(ids)
        assert exc_info.value.errors[0].message_key == "validation.ids.required"


class TestListBrands:
    @pytest.fixture
    def many_brands(self, test_db):
        session = test_db()
        session.add_all(
            [Brand(slug=f"brand-{i:02d}", name=f"Brand {i:02d}") for i in range(12)]
            + [Brand(slug="zenith", name="Zenith")]
        )
        session.commit()

    def test_first_page(self, many_brands):
        page = brand_service.list_brands()

        assert page["total"] == 13
        assert page["page"] == 1
        assert page["page_size"] == 10
        assert [b.slug for b in page["data"]][:2] == ["brand-00", "brand-01"]

    def test_last_page_descending(self, many_brands):
        page = brand_service.list_brands(sort="slug", direction="desc", page=2)
        assert [b.slug for b in page["data"]] == ["brand-02", "brand-01", "brand-00"]

    def test_filter(self, many_brands):
        page = brand_service.list_brands(query="ZEN")
        assert page["total"] == 1
        assert page["data"][0].slug == "zenith"

    def test_invalid_paging_falls_back(self, many_brands):
        page = brand_service.list_brands(page="abc", page_size=0, sort="bogus")
        assert page["page"] == 1
        assert page["page_size"] == 10
        assert page["data"][0].slug == "brand-00"
