"""Allocation log model for emergency audits and per-booking decisions."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import JSON
from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class AllocationLog(SQLModel, table=True):
    """Record of a seating allocation worth keeping: emergency picks and committed decisions."""

    __tablename__ = "allocation_log"
    __table_args__ = (SAUniqueConstraint("unit_id", "doc_key", name="uq_allocation_log_doc_key"),)

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True)
    unit_id: str = Field(foreign_key="unit.id", index=True)
    doc_key: str = Field(default_factory=lambda: uuid4().hex)  # booking id for decisions, random for audits
    kind: str = Field(default="emergency")  # emergency|decision
    booking_id: Optional[str] = Field(default=None, index=True)
    booking_start_time: datetime
    booking_end_time: datetime
    party_size: int
    selected_zone_id: Optional[str] = Field(default=None)
    selected_table_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    reason: Optional[str] = Field(default=None)
    allocation_mode: Optional[str] = Field(default=None)
    allocation_strategy: Optional[str] = Field(default=None)
    snapshot: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    algo_version: Optional[str] = Field(default=None)
    event_id: Optional[str] = Field(default=None, max_length=64)
    source: str = Field(default="seating_suggestion")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
