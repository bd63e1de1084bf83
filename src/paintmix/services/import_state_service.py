"""Import State Service - progress flags of the staged import workflow.

The flags live in the single ``import_state`` row so they survive restarts
and every caller sees the same values. They are monotonic: reading the
status turns a flag on once its table has rows, and nothing here ever turns
one off.

Stage gating (colors after brands, components after colors) is advisory.
``stage_ready`` tells a caller whether to offer a stage; the import services
themselves never refuse to run.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from sqlalchemy.orm import Session

from paintmix.models import Brand, Color, FormulaComponent, ImportState, IMPORT_STATE_ID
from paintmix.services.database import session_scope
from paintmix.utils.constants import TABLE_BRANDS, TABLE_COLORS, TABLE_COMPONENTS


@dataclass
class ImportStatus:
    """Snapshot of the import progress flags plus current table counts."""

    brands_done: bool = False
    colors_done: bool = False
    components_done: bool = False
    counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "brandsDone": self.brands_done,
            "colorsDone": self.colors_done,
            "componentsDone": self.components_done,
            "counts": dict(self.counts),
        }


def _get_or_create_state(session: Session) -> ImportState:
    state = session.get(ImportState, IMPORT_STATE_ID)
    if state is None:
        state = ImportState(
            id=IMPORT_STATE_ID,
            brands_done=False,
            colors_done=False,
            components_done=False,
        )
        session.add(state)
        session.flush()
    return state


def get_import_status(session: Optional[Session] = None) -> ImportStatus:
    """
    Get the import progress, inferring flags from table counts.

    A flag that is False while its table has rows is switched on and
    persisted.

    Args:
        session: Optional database session

    Returns:
        ImportStatus with flags and per-table counts
    """
    if session is not None:
        return _get_import_status_impl(session)
    with session_scope() as session:
        return _get_import_status_impl(session)


def _get_import_status_impl(session: Session) -> ImportStatus:
    counts = {
        TABLE_BRANDS: session.query(Brand).count(),
        TABLE_COLORS: session.query(Color).count(),
        TABLE_COMPONENTS: session.query(FormulaComponent).count(),
    }

    state = _get_or_create_state(session)
    if counts[TABLE_BRANDS] > 0 and not state.brands_done:
        state.brands_done = True
    if counts[TABLE_COLORS] > 0 and not state.colors_done:
        state.colors_done = True
    if counts[TABLE_COMPONENTS] > 0 and not state.components_done:
        state.components_done = True
    session.flush()

    return ImportStatus(
        brands_done=state.brands_done,
        colors_done=state.colors_done,
        components_done=state.components_done,
        counts=counts,
    )


def mark_stage_done(table: str, session: Optional[Session] = None) -> None:
    """
    Set the done flag of one stage. Flags are never cleared.

    Args:
        table: "brands", "colors" or "components"
        session: Optional database session for transactional composition
    """
    if session is not None:
        return _mark_stage_done_impl(table, session)
    with session_scope() as session:
        return _mark_stage_done_impl(table, session)


def _mark_stage_done_impl(table: str, session: Session) -> None:
    flag = {
        TABLE_BRANDS: "brands_done",
        TABLE_COLORS: "colors_done",
        TABLE_COMPONENTS: "components_done",
    }.get(table)
    if flag is None:
        raise ValueError(f"Unknown import table: {table}")

    state = _get_or_create_state(session)
    setattr(state, flag, True)
    session.flush()


def stage_ready(table: str, status: ImportStatus) -> bool:
    """Whether the predecessor stage of ``table`` is done (advisory only)."""
    if table == TABLE_BRANDS:
        return True
    if table == TABLE_COLORS:
        return status.brands_done
    if table == TABLE_COMPONENTS:
        return status.colors_done
    raise ValueError(f"Unknown import table: {table}")
