from typing import TYPE_CHECKING, List
from uuid import uuid4

from sqlalchemy import JSON, String
from sqlmodel import Column, Field, Relationship, SQLModel

from seating.models.lifecycle import LifecycleState

if TYPE_CHECKING:
    from seating.models.unit import Unit


class TableCombination(SQLModel, table=True):
    __tablename__ = "table_combination"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    unit_id: str = Field(foreign_key="unit.id", index=True)
    table_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))  # ordered; first member anchors the zone
    state: LifecycleState = Field(default=LifecycleState.active, sa_column=Column(String, nullable=False))

    # Relationship
    unit: "Unit" = Relationship(back_populates="combinations")

    @property
    def is_active(self) -> bool:
        return self.state == LifecycleState.active
