from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlalchemy import JSON, String
from sqlmodel import Column, Field, Relationship, SQLModel

from seating.models.lifecycle import LifecycleState

if TYPE_CHECKING:
    from seating.models.unit import Unit

DEFAULT_CAPACITY_MIN = 1
DEFAULT_CAPACITY_MAX = 2


class DiningTable(SQLModel, table=True):
    """A physical table. Named to stay clear of the SQL keyword."""

    __tablename__ = "dining_table"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    unit_id: str = Field(foreign_key="unit.id", index=True)
    zone_id: str = Field(foreign_key="zone.id", index=True)
    name: str
    capacity_min: int = Field(default=DEFAULT_CAPACITY_MIN)
    capacity_max: int = Field(default=DEFAULT_CAPACITY_MAX)
    state: LifecycleState = Field(default=LifecycleState.active, sa_column=Column(String, nullable=False))
    can_seat_solo: bool = Field(default=False)
    can_combine: bool = Field(default=False)
    table_group: Optional[str] = Field(default=None)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Relationship
    unit: "Unit" = Relationship(back_populates="tables")

    @property
    def is_active(self) -> bool:
        return self.state == LifecycleState.active
