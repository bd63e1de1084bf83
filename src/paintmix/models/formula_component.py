"""
FormulaComponent model - one toner ingredient of a color formula.

Components of the same (color, variant) together form one mixing recipe.
Only the ratio of ``parts`` within a recipe matters.
"""

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    Numeric,
    ForeignKey,
    Index,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class FormulaComponent(BaseModel):
    """
    Formula component model.

    Attributes:
        color_id: Owning color
        variant: Formula version, "V1" or "V2"
        toner_code: Toner identifier, unique within (color, variant)
        toner_name: Toner display name
        parts: Relative proportion (> 0)
    """

    __tablename__ = "formula_components"

    color_id = Column(
        Integer, ForeignKey("colors.id", ondelete="RESTRICT"), nullable=False
    )
    variant = Column(String(2), nullable=False)
    toner_code = Column(Text, nullable=False)
    toner_name = Column(Text, nullable=False)
    parts = Column(Numeric(12, 4), nullable=False)

    color = relationship("Color", back_populates="components")

    __table_args__ = (
        UniqueConstraint(
            "color_id", "variant", "toner_code", name="uq_component_color_variant_toner"
        ),
        CheckConstraint("variant IN ('V1', 'V2')", name="ck_component_variant"),
        CheckConstraint("parts > 0", name="ck_component_parts_positive"),
        Index("idx_component_color_variant", "color_id", "variant"),
    )

    def __repr__(self) -> str:
        """String representation of formula component."""
        return (
            f"FormulaComponent(id={self.id}, color_id={self.color_id}, "
            f"variant='{self.variant}', toner_code='{self.toner_code}')"
        )
