"""Shared-secret gate for the administrative import and CRUD operations.

The host web layer passes the key it received (query string or header);
this module only decides whether it matches the configured secret.
"""

import hmac
from typing import Optional

from paintmix.services.exceptions import UnauthorizedError
from paintmix.utils.config import get_config


def is_admin_authorized(key: Optional[str]) -> bool:
    """Check a supplied admin key against PAINTMIX_ADMIN_KEY.

    Returns False when no admin key is configured.
    """
    admin_key = get_config().admin_import_key
    if not admin_key or not key:
        return False
    return hmac.compare_digest(key.encode("utf-8"), admin_key.encode("utf-8"))


def require_admin(key: Optional[str]) -> None:
    """Raise UnauthorizedError unless the key is valid."""
    if not is_admin_authorized(key):
        raise UnauthorizedError()
