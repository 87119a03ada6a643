"""Staff overrides pinning a reservation to a zone and/or tables."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class ReservationOverride(SQLModel, table=True):
    __tablename__ = "reservation_override"

    reservation_id: str = Field(primary_key=True)
    unit_id: str = Field(foreign_key="unit.id", index=True)
    forced_zone_id: Optional[str] = Field(default=None)
    forced_table_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    note: Optional[str] = Field(default=None)
    updated_by: Optional[str] = Field(default=None)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
