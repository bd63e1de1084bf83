"""Service layer exception classes for PaintMix.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application. Every exception carries an
``http_status_code`` so a host web layer can map it without inspecting types.

Exception Hierarchy:
    ServiceError (base)
    ├── NotFoundError
    │   ├── BrandNotFoundError
    │   ├── ColorNotFoundError
    │   └── ComponentNotFoundError
    ├── ValidationError
    ├── ConflictError
    │   ├── DuplicateBrandError
    │   ├── DuplicateColorError
    │   ├── DuplicateComponentError
    │   ├── BrandHasColorsError
    │   └── ColorHasComponentsError
    ├── UnauthorizedError
    ├── ImportUploadError
    │   ├── IncompleteUploadError
    │   └── UploadFormatError
    ├── ImportTransactionError
    │   └── ReferenceVanishedError
    └── DatabaseError
"""

from typing import Iterable, List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    http_status_code = 500
    message_key = "errors.internal"


# ============================================================================
# Not Found
# ============================================================================


class NotFoundError(ServiceError):
    """Raised when a requested record does not exist."""

    http_status_code = 404
    message_key = "admin.errors.notFound"


class BrandNotFoundError(NotFoundError):
    """Raised when a brand cannot be found by ID or slug.

    Example:
        >>> raise BrandNotFoundError("acme")
        BrandNotFoundError: Brand 'acme' not found
    """

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Brand '{identifier}' not found")


class ColorNotFoundError(NotFoundError):
    """Raised when a color cannot be found by ID or (brand, code)."""

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Color '{identifier}' not found")


class ComponentNotFoundError(NotFoundError):
    """Raised when a formula component cannot be found by ID."""

    def __init__(self, component_id: int):
        self.component_id = component_id
        super().__init__(f"Formula component with ID {component_id} not found")


# ============================================================================
# Validation
# ============================================================================


class ValidationError(ServiceError):
    """Raised when input for a single-record operation fails validation.

    Args:
        errors: List of field errors (objects with ``field`` and ``message``)
            or plain strings
    """

    http_status_code = 400
    message_key = "admin.errors.invalidPayload"

    def __init__(self, errors: List):
        self.errors = list(errors)
        parts = []
        for error in self.errors:
            field = getattr(error, "field", None)
            message = getattr(error, "message", error)
            parts.append(f"{field}: {message}" if field else str(message))
        super().__init__(f"Validation failed: {'; '.join(parts)}")


# ============================================================================
# Conflicts
# ============================================================================


class ConflictError(ServiceError):
    """Raised on duplicate natural keys or when dependents block a delete."""

    http_status_code = 409
    message_key = "admin.errors.conflict"


class DuplicateBrandError(ConflictError):
    """Raised when a brand slug is already taken."""

    message_key = "admin.errors.duplicateBrand"

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Brand with slug '{slug}' already exists")


class DuplicateColorError(ConflictError):
    """Raised when (brand, code) is already taken."""

    message_key = "admin.errors.duplicateColor"

    def __init__(self, brand_slug: str, code: str):
        self.brand_slug = brand_slug
        self.code = code
        super().__init__(f"Color '{code}' already exists for brand '{brand_slug}'")


class DuplicateComponentError(ConflictError):
    """Raised when (color, variant, toner code) is already taken."""

    message_key = "admin.errors.duplicateComponent"

    def __init__(self, color_code: str, variant: str, toner_code: str):
        self.color_code = color_code
        self.variant = variant
        self.toner_code = toner_code
        super().__init__(
            f"Toner '{toner_code}' already exists in {color_code} {variant}"
        )


class BrandHasColorsError(ConflictError):
    """Raised when deleting brands that still own colors.

    Args:
        brand_ids: IDs of the brands that have colors
        color_count: Number of colors owned by those brands
    """

    message_key = "admin.errors.brandHasColors"

    def __init__(self, brand_ids: Iterable[int], color_count: int):
        self.brand_ids = sorted(brand_ids)
        self.color_count = color_count
        super().__init__(
            f"Cannot delete brand(s) {self.brand_ids}: used by {color_count} color(s)"
        )


class ColorHasComponentsError(ConflictError):
    """Raised when deleting colors that still own formula components."""

    message_key = "admin.errors.colorHasComponents"

    def __init__(self, color_ids: Iterable[int], component_count: int):
        self.color_ids = sorted(color_ids)
        self.component_count = component_count
        super().__init__(
            f"Cannot delete color(s) {self.color_ids}: "
            f"used by {component_count} formula component(s)"
        )


# ============================================================================
# Admin Gate
# ============================================================================


class UnauthorizedError(ServiceError):
    """Raised when the admin key is missing or does not match."""

    http_status_code = 401
    message_key = "admin.errors.unauthorized"

    def __init__(self):
        super().__init__("Admin key missing or invalid")


# ============================================================================
# Import
# ============================================================================


class ImportUploadError(ServiceError):
    """Raised when an upload cannot be read at all (malformed upload)."""

    http_status_code = 400
    message_key = "admin.errors.invalidUpload"


class IncompleteUploadError(ImportUploadError):
    """Raised when neither a workbook nor all three CSV files were provided."""

    message_key = "admin.errors.incompleteUpload"

    def __init__(self, provided: Optional[List[str]] = None):
        self.provided = sorted(provided or [])
        super().__init__(
            "Provide either one spreadsheet or all three CSV files "
            "(brands, colors, components)"
        )


class UploadFormatError(ImportUploadError):
    """Raised when a file is not valid CSV or spreadsheet content."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot read {source}: {reason}")


class ImportTransactionError(ServiceError):
    """Raised when the write phase of an import fails; nothing is committed."""

    http_status_code = 500
    message_key = "admin.errors.importFailed"

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Import aborted: {message}")


class ReferenceVanishedError(ImportTransactionError):
    """Raised when a referenced record disappeared between validation and write."""

    def __init__(self, table: str, reference: str):
        self.table = table
        self.reference = reference
        super().__init__(f"Missing {reference} while writing {table}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails unexpectedly."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
