"""
Configuration management for the PaintMix catalog application.

This module handles:
- Database location configuration
- The shared admin import key
- Environment-specific configuration (development vs. production)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
)

logger = logging.getLogger(__name__)

ENV_ENVIRONMENT = "PAINTMIX_ENV"
ENV_DATABASE_URL = "PAINTMIX_DATABASE_URL"
ENV_DATA_DIR = "PAINTMIX_DATA_DIR"
ENV_ADMIN_KEY = "PAINTMIX_ADMIN_KEY"


class Config:
    """
    Application configuration manager.

    Handles database paths, the admin import key and environment settings.
    Environment variables are read once, when the instance is created.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION

        data_dir = os.environ.get(ENV_DATA_DIR)
        if data_dir:
            self._base_dir = Path(data_dir)
        elif environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get(ENV_DATABASE_URL) or None
        self._admin_import_key = os.environ.get(ENV_ADMIN_KEY) or None

    def _get_project_data_dir(self) -> Path:
        """Project data/ directory used in development."""
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """Per-user application directory used in production."""
        return Path.home() / ".paintmix"

    def ensure_directories(self) -> None:
        """Create the data directory if it doesn't exist."""
        if self._database_url_override is None:
            self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            PAINTMIX_DATABASE_URL if set, otherwise the SQLite file URL
        """
        if self._database_url_override:
            return self._database_url_override
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def admin_import_key(self) -> Optional[str]:
        """Shared secret for the admin import endpoints (None disables admin access)."""
        return self._admin_import_key

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists (always True for an external URL)
        """
        if self._database_url_override:
            return True
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    PAINTMIX_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """
    Get the database URL.

    Returns:
        SQLAlchemy database URL string
    """
    return get_config().database_url
