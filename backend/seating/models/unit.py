from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from seating.models.dining_table import DiningTable
    from seating.models.table_combination import TableCombination
    from seating.models.zone import Zone


class Unit(SQLModel, table=True):
    id: str = Field(primary_key=True)
    name: str
    timezone: str = Field(default="UTC")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    zones: List["Zone"] = Relationship(back_populates="unit")
    tables: List["DiningTable"] = Relationship(back_populates="unit")
    combinations: List["TableCombination"] = Relationship(back_populates="unit")
