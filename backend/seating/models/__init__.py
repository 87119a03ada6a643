from seating.models.allocation_log import AllocationLog
from seating.models.dining_table import DiningTable
from seating.models.lifecycle import LifecycleState
from seating.models.reservation import Reservation
from seating.models.reservation_override import ReservationOverride
from seating.models.seating_settings import SeatingSettingsDoc
from seating.models.table_combination import TableCombination
from seating.models.unit import Unit
from seating.models.zone import Zone

__all__ = [
    "Unit",
    "Zone",
    "DiningTable",
    "TableCombination",
    "SeatingSettingsDoc",
    "Reservation",
    "ReservationOverride",
    "AllocationLog",
    "LifecycleState",
]
