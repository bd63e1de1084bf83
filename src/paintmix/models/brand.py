"""
Brand model for paint manufacturers and product lines.

Example: "Acme Automotive" with slug "acme-auto" owns the colors
         imported under brandSlug "acme-auto".
"""

from sqlalchemy import Column, Text, CheckConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class Brand(BaseModel):
    """
    Brand model representing a paint manufacturer or line.

    Attributes:
        slug: Unique lookup key, lowercase letters, digits and hyphens
        name: Display name

    Relationships:
        colors: Colors owned by this brand (deletion is blocked while any exist)
    """

    __tablename__ = "brands"

    slug = Column(Text, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)

    colors = relationship("Color", back_populates="brand", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("LENGTH(slug) > 0", name="ck_brand_slug_not_empty"),
    )

    def __repr__(self) -> str:
        """String representation of brand."""
        return f"Brand(id={self.id}, slug='{self.slug}', name='{self.name}')"
