"""Services package - Business logic layer for PaintMix.

This package contains all service modules that provide business logic
and database operations for the catalog.

Architecture:
- Services: Stateless functions organized by concern (import, formula, search, admin CRUD)
- Transactions: Managed via session_scope(); every public function also accepts
  an optional ``session`` for transactional composition
- Exceptions: Consistent error handling via the ServiceError hierarchy
- Validation: Rows are validated before any database write

Import Pipeline:
- tabular_parser_service: CSV / spreadsheet uploads to numbered raw rows
- schema_validation_service: Raw rows to typed records plus field errors
- cross_reference_service: Brand and color references between tables
- staged_import_service: Per-table create/update/skip reconciliation
- batch_import_service: Whole-catalog upsert with formula replacement
- import_state_service: Persistent staged-import progress flags

Catalog:
- formula_service: Formula scaling with exact gram totals
- search_service: Ranked color search and brand listing
- brand_service, color_service, component_service: Admin CRUD and bulk delete

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

from . import (
    database,
    exceptions,
    schema_validation_service,
    tabular_parser_service,
    cross_reference_service,
    import_state_service,
    staged_import_service,
    batch_import_service,
    formula_service,
    search_service,
    brand_service,
    color_service,
    component_service,
)

from .database import session_scope, init_database, get_session
from .exceptions import (
    ServiceError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ImportUploadError,
    ImportTransactionError,
)

__all__ = [
    "database",
    "exceptions",
    "schema_validation_service",
    "tabular_parser_service",
    "cross_reference_service",
    "import_state_service",
    "staged_import_service",
    "batch_import_service",
    "formula_service",
    "search_service",
    "brand_service",
    "color_service",
    "component_service",
    "session_scope",
    "init_database",
    "get_session",
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ImportUploadError",
    "ImportTransactionError",
]
