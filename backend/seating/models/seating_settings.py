"""Per-unit seating settings stored as a partial document."""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class SeatingSettingsDoc(SQLModel, table=True):
    """Raw settings document. Missing keys are defaulted on read, never on write."""

    __tablename__ = "seating_settings"

    unit_id: str = Field(foreign_key="unit.id", primary_key=True)
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
