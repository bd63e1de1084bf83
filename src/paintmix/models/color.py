"""
Color model for named paint colors.

A color belongs to one brand and is identified within it by its code.
Mixing formulas hang off the color as FormulaComponent rows, grouped by
variant (V1/V2), so one color can carry two independent formulas.
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class Color(BaseModel):
    """
    Color model.

    Attributes:
        brand_id: Owning brand
        code: Manufacturer color code, unique within the brand
        name: Color name
        production_date: When the color was produced (never in the future)
        color_car: Free-text vehicle/usage reference (<= 100 chars)
        notes: Optional notes

    Relationships:
        brand: Owning Brand
        components: Formula components (deletion is blocked while any exist)
    """

    __tablename__ = "colors"

    brand_id = Column(
        Integer, ForeignKey("brands.id", ondelete="RESTRICT"), nullable=False
    )
    code = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    production_date = Column(DateTime(timezone=True), nullable=True)
    color_car = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    brand = relationship("Brand", back_populates="colors", lazy="joined")
    components = relationship(
        "FormulaComponent",
        back_populates="color",
        passive_deletes="all",
        order_by="FormulaComponent.id",
    )

    __table_args__ = (
        UniqueConstraint("brand_id", "code", name="uq_color_brand_code"),
        Index("idx_color_brand", "brand_id"),
        Index("idx_color_code", "code"),
    )

    def __repr__(self) -> str:
        """String representation of color."""
        return f"Color(id={self.id}, brand_id={self.brand_id}, code='{self.code}')"

    @property
    def brand_slug(self) -> str:
        """Slug of the owning brand."""
        return self.brand.slug if self.brand else None

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert color to dictionary.

        Args:
            include_relationships: If True, include brand and components

        Returns:
            Dictionary representation with the brand slug added
        """
        result = super().to_dict(include_relationships)
        result["brand_slug"] = self.brand_slug
        return result
