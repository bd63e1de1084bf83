"""
Constants and enumerations for the PaintMix catalog application.

This module defines all system-wide constants including:
- Application metadata
- Import tables, sheet names and column sets
- Field limits and formula bounds
- Validation message keys and user-facing messages
"""

import re
from decimal import Decimal
from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "PaintMix Catalog"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "paintmix.db"

# ============================================================================
# Import Tables
# ============================================================================

TABLE_BRANDS = "brands"
TABLE_COLORS = "colors"
TABLE_COMPONENTS = "components"

# Dependency order: brands -> colors -> components
IMPORT_TABLES: List[str] = [TABLE_BRANDS, TABLE_COLORS, TABLE_COMPONENTS]

# Spreadsheet uploads must contain one sheet per table, named exactly like it
REQUIRED_SHEETS: List[str] = list(IMPORT_TABLES)

REQUIRED_COLUMNS: Dict[str, List[str]] = {
    TABLE_BRANDS: ["slug", "name"],
    TABLE_COLORS: ["brandSlug", "code", "name"],
    TABLE_COMPONENTS: [
        "brandSlug",
        "colorCode",
        "variant",
        "tonerCode",
        "tonerName",
        "parts",
    ],
}

OPTIONAL_COLUMNS: Dict[str, List[str]] = {
    TABLE_BRANDS: [],
    TABLE_COLORS: ["productionDate", "colorCar", "notes"],
    TABLE_COMPONENTS: [],
}

# Rows returned in previews
PREVIEW_SAMPLE_SIZE = 10

# ============================================================================
# Field Limits
# ============================================================================

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

MAX_COLOR_CAR_LENGTH = 100

# parts is stored as Numeric(12, 4)
PARTS_QUANTUM = Decimal("0.0001")
PARTS_LIMIT = Decimal("100000000")

VARIANTS: List[str] = ["V1", "V2"]

# ============================================================================
# Formula and Search
# ============================================================================

MIN_TOTAL_GRAMS = 1
MAX_TOTAL_GRAMS = 50000

# Store-level candidate cap before ranking, then the ranked result size
SEARCH_CANDIDATE_LIMIT = 50
SEARCH_RESULT_LIMIT = 20

DEFAULT_PAGE_SIZE = 10

# ============================================================================
# Message Keys
# ============================================================================

KEY_REQUIRED = "validation.required"
KEY_SLUG_INVALID = "validation.slug.invalid"
KEY_VARIANT_INVALID = "validation.variant.invalid"
KEY_PRODUCTION_DATE_INVALID = "validation.productionDate.invalid"
KEY_PRODUCTION_DATE_FUTURE = "validation.productionDate.future"
KEY_COLOR_CAR_TOO_LONG = "validation.colorCar.tooLong"
KEY_PARTS_POSITIVE = "validation.parts.positive"
KEY_PARTS_PRECISION = "validation.parts.precision"
KEY_TOTAL_GRAMS_RANGE = "validation.totalGrams.range"
KEY_IDS_REQUIRED = "validation.ids.required"

KEY_MISSING_COLUMNS = "import.missingColumns"
KEY_MISSING_SHEET = "import.missingSheet"
KEY_UNKNOWN_BRAND = "import.unknownBrand"
KEY_UNKNOWN_COLOR_REFERENCE = "import.unknownColorReference"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_SLUG = "Must contain only lowercase letters, digits and hyphens"
ERROR_INVALID_VARIANT = "Must be V1 or V2"
ERROR_INVALID_DATE = "Must be a valid date"
ERROR_FUTURE_DATE = "Date cannot be in the future"
ERROR_INVALID_POSITIVE = "positive number required"
ERROR_PARTS_PRECISION = "At most 8 integer digits and 4 decimal places"
ERROR_COLOR_CAR_TOO_LONG = f"Must be {MAX_COLOR_CAR_LENGTH} characters or less"
ERROR_TOTAL_GRAMS_RANGE = f"Must be a number between {MIN_TOTAL_GRAMS} and {MAX_TOTAL_GRAMS}"
ERROR_IDS_REQUIRED = "At least one id is required"
