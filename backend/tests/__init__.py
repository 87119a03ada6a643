# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from seating.models.allocation_log import AllocationLog  # noqa: F401
from seating.models.dining_table import DiningTable  # noqa: F401
from seating.models.reservation import Reservation  # noqa: F401
from seating.models.reservation_override import ReservationOverride  # noqa: F401
from seating.models.seating_settings import SeatingSettingsDoc  # noqa: F401
from seating.models.table_combination import TableCombination  # noqa: F401
from seating.models.unit import Unit  # noqa: F401
from seating.models.zone import Zone  # noqa: F401
