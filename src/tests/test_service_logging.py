"""Tests for structured service logging."""

import logging

import pytest

from paintmix.services import brand_service
from paintmix.services.exceptions import BrandHasColorsError
from paintmix.services.logging_utils import get_service_logger, log_operation
from paintmix.services.staged_import_service import import_brands


class TestLoggingUtils:
    def test_logger_prefix(self):
        assert get_service_logger("paintmix.services.formula_service").name == (
            "paintmix.services.formula_service"
        )
        assert get_service_logger("search").name == "paintmix.services.search"

    def test_context_in_extra(self, caplog):
        logger = get_service_logger("example")
        with caplog.at_level(logging.INFO, logger="paintmix.services"):
            log_operation(logger, operation="import_brands", outcome="committed", created_rows=2)

        record = caplog.records[0]
        assert record.getMessage() == "import_brands: committed"
        assert record.operation == "import_brands"
        assert record.created_rows == 2


class TestServiceLogging:
    def test_staged_import_logs_counts(self, test_db, brands_csv, caplog):
        with caplog.at_level(logging.INFO, logger="paintmix.services"):
            import_brands(brands_csv)

        records = [r for r in caplog.records if getattr(r, "operation", None) == "import_brands"]
        assert records
        assert records[-1].created_rows == 2

    def test_rejected_delete_logs_warning(self, test_db, seeded_catalog, caplog):
        with caplog.at_level(logging.INFO, logger="paintmix.services"):
            with pytest.raises(BrandHasColorsError):
                brand_service.delete_brand(seeded_catalog["brand_id"])

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings[0].operation == "delete_brand"
        assert warnings[0].outcome == "rejected"
