"""Pytest configuration and fixtures for service layer tests."""

import csv
import io
from decimal import Decimal

import pytest
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from paintmix.models import Base, Brand, Color, FormulaComponent
from paintmix.utils.config import reset_config


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    # Importing the database module registers the SQLite pragma listener
    import paintmix.services.database as db_module

    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from PAINTMIX_* variables and the config singleton."""
    for name in (
        "PAINTMIX_ENV",
        "PAINTMIX_DATABASE_URL",
        "PAINTMIX_DATA_DIR",
        "PAINTMIX_ADMIN_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def make_csv():
    """Build UTF-8 CSV bytes from a header and rows."""

    def _make(header, rows):
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(header)
        writer.writerows(rows)
        return buffer.getvalue().encode("utf-8")

    return _make


@pytest.fixture
def make_workbook():
    """Build .xlsx bytes from {sheet name: [header, *rows]}."""

    def _make(sheets):
        workbook = Workbook()
        workbook.remove(workbook.active)
        for name, lines in sheets.items():
            sheet = workbook.create_sheet(title=name)
            for line in lines:
                sheet.append(list(line))
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def brands_csv(make_csv):
    return make_csv(["slug", "name"], [["acme", "Acme Paints"], ["nova", "Nova Coatings"]])


@pytest.fixture
def colors_csv(make_csv):
    return make_csv(
        ["brandSlug", "code", "name", "productionDate", "colorCar", "notes"],
        [
            ["acme", "RED-01", "Crimson", "2020-05-01", "Sedan", ""],
            ["acme", "BLU-02", "Ocean Blue", "", "", "Metallic"],
            ["nova", "GRN-03", "Forest", "2019-01-15", "", ""],
        ],
    )


@pytest.fixture
def components_csv(make_csv):
    return make_csv(
        ["brandSlug", "colorCode", "variant", "tonerCode", "tonerName", "parts"],
        [
            ["acme", "RED-01", "V1", "T100", "Red Oxide", "3"],
            ["acme", "RED-01", "V1", "T200", "White", "1"],
            ["acme", "RED-01", "V2", "T100", "Red Oxide", "2.5"],
            ["acme", "BLU-02", "V1", "T300", "Phthalo Blue", "1"],
        ],
    )


@pytest.fixture
def seeded_catalog(test_db):
    """One brand with two colors; RED-01 has a three-toner V1 formula."""
    session = test_db()
    brand = Brand(slug="acme", name="Acme Paints")
    session.add(brand)
    session.flush()

    red = Color(brand_id=brand.id, code="RED-01", name="Crimson")
    blue = Color(brand_id=brand.id, code="BLU-02", name="Ocean Blue")
    session.add_all([red, blue])
    session.flush()

    session.add_all(
        [
            FormulaComponent(
                color_id=red.id, variant="V1", toner_code="T1", toner_name="Oxide",
                parts=Decimal("1"),
            ),
            FormulaComponent(
                color_id=red.id, variant="V1", toner_code="T2", toner_name="White",
                parts=Decimal("1"),
            ),
            FormulaComponent(
                color_id=red.id, variant="V1", toner_code="T3", toner_name="Black",
                parts=Decimal("1"),
            ),
        ]
    )
    session.commit()

    return {"brand_id": brand.id, "red_id": red.id, "blue_id": blue.id}
