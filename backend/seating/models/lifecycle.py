from enum import Enum


class LifecycleState(str, Enum):
    """Soft-delete state for seating master data."""

    active = "active"
    inactive = "inactive"
