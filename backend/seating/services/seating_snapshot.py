"""
Seating snapshot provider.

The allocation engine never reads storage itself. Everything it needs is
pulled once per request through a SeatingSnapshotProvider and handed over
as plain objects. SqlSeatingSnapshotProvider is the database-backed
implementation; tests may supply any object with the same methods.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from seating.models.dining_table import DiningTable
from seating.models.lifecycle import LifecycleState
from seating.models.reservation import Reservation
from seating.models.reservation_override import ReservationOverride
from seating.models.seating_settings import SeatingSettingsDoc
from seating.models.table_combination import TableCombination
from seating.models.unit import Unit
from seating.models.zone import Zone

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SeatingError(Exception):
    """Base exception for seating errors"""

    pass


class SnapshotUnavailableError(SeatingError):
    """Reading seating inventory, settings or reservations failed"""

    pass


class UnknownUnitError(SeatingError):
    """Unit does not exist"""

    pass


def active_only(items: Iterable[T]) -> List[T]:
    """Keep entities in the active lifecycle state."""
    return [item for item in items if getattr(item, "state", LifecycleState.active) == LifecycleState.active]


class SeatingSnapshotProvider(Protocol):
    def get_unit(self, unit_id: str) -> Unit: ...

    def list_zones(self, unit_id: str) -> List[Zone]: ...

    def list_tables(self, unit_id: str) -> List[DiningTable]: ...

    def list_combinations(self, unit_id: str) -> List[TableCombination]: ...

    def get_seating_settings(self, unit_id: str) -> Dict[str, Any]: ...

    def list_reservations_covering_period(
        self, unit_id: str, period_start: datetime, period_end: datetime
    ) -> List[Reservation]: ...

    def get_reservation_override(self, unit_id: str, reservation_id: str) -> Optional[ReservationOverride]: ...


class SqlSeatingSnapshotProvider:
    """Snapshot reads backed by the SQL session."""

    def __init__(self, session: Session):
        self.session = session

    def _read(self, what: str, unit_id: str, query):
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as exc:
            logger.error(f"Failed to read {what} for unit {unit_id}: {exc}")
            raise SnapshotUnavailableError(f"Could not read {what} for unit {unit_id}") from exc

    def get_unit(self, unit_id: str) -> Unit:
        try:
            unit = self.session.get(Unit, unit_id)
        except SQLAlchemyError as exc:
            logger.error(f"Failed to read unit {unit_id}: {exc}")
            raise SnapshotUnavailableError(f"Could not read unit {unit_id}") from exc
        if unit is None:
            raise UnknownUnitError(f"Unit {unit_id} not found")
        return unit

    def list_zones(self, unit_id: str) -> List[Zone]:
        return self._read("zones", unit_id, select(Zone).where(Zone.unit_id == unit_id).order_by(Zone.priority, Zone.id))

    def list_tables(self, unit_id: str) -> List[DiningTable]:
        return self._read(
            "tables",
            unit_id,
            select(DiningTable).where(DiningTable.unit_id == unit_id).order_by(DiningTable.name, DiningTable.id),
        )

    def list_combinations(self, unit_id: str) -> List[TableCombination]:
        return self._read(
            "combinations",
            unit_id,
            select(TableCombination).where(TableCombination.unit_id == unit_id).order_by(TableCombination.id),
        )

    def get_seating_settings(self, unit_id: str) -> Dict[str, Any]:
        docs = self._read("seating settings", unit_id, select(SeatingSettingsDoc).where(SeatingSettingsDoc.unit_id == unit_id))
        return dict(docs[0].data or {}) if docs else {}

    def list_reservations_covering_period(
        self, unit_id: str, period_start: datetime, period_end: datetime
    ) -> List[Reservation]:
        # Only start_time is indexed; overlap is decided in memory by the availability filter
        return self._read(
            "reservations",
            unit_id,
            select(Reservation).where(
                Reservation.unit_id == unit_id,
                Reservation.start_time >= period_start,
                Reservation.start_time <= period_end,
            ),
        )

    def get_reservation_override(self, unit_id: str, reservation_id: str) -> Optional[ReservationOverride]:
        overrides = self._read(
            "reservation override",
            unit_id,
            select(ReservationOverride).where(
                ReservationOverride.unit_id == unit_id,
                ReservationOverride.reservation_id == reservation_id,
            ),
        )
        return overrides[0] if overrides else None
