from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class Reservation(SQLModel, table=True):
    """Booking record. Written by the reservation flow, read-only for seating."""

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    unit_id: str = Field(foreign_key="unit.id", index=True)
    start_time: Optional[datetime] = Field(default=None, index=True)
    end_time: Optional[datetime] = Field(default=None)
    status: str = Field(default="confirmed")  # pending|confirmed|cancelled
    party_size: int = Field(default=0)
    assigned_table_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))
