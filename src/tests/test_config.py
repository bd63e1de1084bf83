"""Tests for configuration and the admin key gate."""

from pathlib import Path

import pytest

from paintmix.services.exceptions import UnauthorizedError
from paintmix.utils.admin_auth import is_admin_authorized, require_admin
from paintmix.utils.config import Config, get_config, get_database_url, reset_config


class TestConfig:
    def test_default_is_production_sqlite_file(self):
        config = get_config()

        assert config.is_production
        assert config.database_url.startswith("sqlite:///")
        assert config.database_path.name == "paintmix.db"
        assert config.admin_import_key is None

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("PAINTMIX_DATABASE_URL", "sqlite:///:memory:")
        reset_config()

        assert get_database_url() == "sqlite:///:memory:"
        assert get_config().database_exists()

    def test_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PAINTMIX_DATA_DIR", str(tmp_path))
        config = Config("development")

        assert config.database_path == Path(tmp_path) / "paintmix.db"
        config.ensure_directories()
        assert not config.database_exists()

    def test_environment_from_variable(self, monkeypatch):
        monkeypatch.setenv("PAINTMIX_ENV", "development")
        assert get_config().is_development

    def test_singleton_keeps_first_environment(self):
        first = get_config("development")
        assert get_config("production") is first
        assert first.is_development


class TestAdminAuth:
    def test_no_key_configured(self):
        assert not is_admin_authorized("anything")

    def test_matching_key(self, monkeypatch):
        monkeypatch.setenv("PAINTMIX_ADMIN_KEY", "s3cret")
        reset_config()

        assert is_admin_authorized("s3cret")
        assert not is_admin_authorized("wrong")
        assert not is_admin_authorized(None)

    def test_require_admin(self, monkeypatch):
        monkeypatch.setenv("PAINTMIX_ADMIN_KEY", "s3cret")
        reset_config()

        require_admin("s3cret")
        with pytest.raises(UnauthorizedError) as exc_info:
            require_admin("")
        assert exc_info.value.http_status_code == 401
