"""Tests for database setup against a file-backed SQLite database."""

import pytest
from sqlalchemy.exc import IntegrityError

from paintmix.models import Brand, Color
from paintmix.services import database
from paintmix.services.database import (
    close_connections,
    initialize_app_database,
    reset_database,
    session_scope,
    verify_database,
)


@pytest.fixture
def file_db(monkeypatch, tmp_path):
    monkeypatch.setenv("PAINTMIX_DATA_DIR", str(tmp_path))
    close_connections()
    initialize_app_database()
    yield tmp_path
    close_connections()


class TestDatabaseSetup:
    def test_initialize_creates_tables(self, file_db):
        assert (file_db / "paintmix.db").exists()
        assert verify_database()

    def test_session_scope_rolls_back(self, file_db):
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                session.add(Brand(slug="acme", name="Acme"))
                session.flush()
                raise RuntimeError("boom")

        with session_scope() as session:
            assert session.query(Brand).count() == 0

    def test_foreign_keys_enforced(self, file_db):
        with pytest.raises(IntegrityError):
            with session_scope() as session:
                session.add(Color(brand_id=999, code="R1", name="Red"))

    def test_reset_requires_confirm(self, file_db):
        with session_scope() as session:
            session.add(Brand(slug="acme", name="Acme"))

        with pytest.raises(ValueError):
            reset_database()
        reset_database(confirm=True)

        with session_scope() as session:
            assert session.query(Brand).count() == 0

    def test_close_connections(self, file_db):
        close_connections()
        assert database._engine is None
