"""
ImportState model - persisted progress of the staged import workflow.

A single row keyed by ``IMPORT_STATE_ID`` records whether each import stage
has ever completed. The flags only ever move from False to True.
"""

from sqlalchemy import Boolean, Column, String

from .base import BaseModel

IMPORT_STATE_ID = "singleton"


class ImportState(BaseModel):
    """
    Singleton import progress record.

    Attributes:
        id: Always IMPORT_STATE_ID
        brands_done: A brands import has been committed (or brands exist)
        colors_done: Colors exist
        components_done: Formula components exist
    """

    __tablename__ = "import_state"

    id = Column(String(20), primary_key=True, default=IMPORT_STATE_ID)
    brands_done = Column(Boolean, nullable=False, default=False)
    colors_done = Column(Boolean, nullable=False, default=False)
    components_done = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        """String representation of import state."""
        return (
            f"ImportState(brands_done={self.brands_done}, "
            f"colors_done={self.colors_done}, "
            f"components_done={self.components_done})"
        )
