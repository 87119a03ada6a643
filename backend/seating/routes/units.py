from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session

from seating.database import get_session
from seating.models.unit import Unit

router = APIRouter()


class UnitCreate(BaseModel):
    id: str
    name: str
    timezone: str = "UTC"

    @field_validator("id", "name")
    @classmethod
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("value is required")
        return v.strip()

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        try:
            ZoneInfo(v.strip())
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {v}")
        return v.strip()


class UnitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    timezone: str


def get_unit_or_404(session: Session, unit_id: str) -> Unit:
    unit: Optional[Unit] = session.get(Unit, unit_id)
    if not unit:
        raise HTTPException(status_code=404, detail="Unit not found")
    return unit


@router.post("/units", response_model=UnitResponse, status_code=201)
def create_unit(unit_data: UnitCreate, session: Session = Depends(get_session)):
    """Create a unit (restaurant/venue)"""
    if session.get(Unit, unit_data.id):
        raise HTTPException(status_code=409, detail="Unit already exists")

    unit = Unit(**unit_data.model_dump())
    session.add(unit)
    session.commit()
    session.refresh(unit)
    return unit


@router.get("/units/{unit_id}", response_model=UnitResponse)
def get_unit(unit_id: str, session: Session = Depends(get_session)):
    """Get a unit"""
    return get_unit_or_404(session, unit_id)
