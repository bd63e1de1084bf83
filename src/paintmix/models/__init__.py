"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .enums import Variant
from .brand import Brand
from .color import Color
from .formula_component import FormulaComponent
from .import_state import ImportState, IMPORT_STATE_ID

__all__ = [
    "Base",
    "BaseModel",
    "Variant",
    "Brand",
    "Color",
    "FormulaComponent",
    "ImportState",
    "IMPORT_STATE_ID",
]
