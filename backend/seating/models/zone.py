from typing import TYPE_CHECKING, List, Optional
from uuid import uuid4

from sqlalchemy import JSON, String
from sqlmodel import Column, Field, Relationship, SQLModel

from seating.models.lifecycle import LifecycleState

if TYPE_CHECKING:
    from seating.models.unit import Unit

ZONE_TYPES = ("bar", "outdoor", "table", "other")


class Zone(SQLModel, table=True):
    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    unit_id: str = Field(foreign_key="unit.id", index=True)
    name: str
    priority: int = Field(default=0)  # lower value = more preferred
    state: LifecycleState = Field(default=LifecycleState.active, sa_column=Column(String, nullable=False))
    is_emergency: bool = Field(default=False)  # informational; eligibility comes from settings
    type: Optional[str] = Field(default=None)  # bar|outdoor|table|other
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # Relationship
    unit: "Unit" = Relationship(back_populates="zones")

    @property
    def is_active(self) -> bool:
        return self.state == LifecycleState.active
