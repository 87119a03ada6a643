import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from seating.database import get_session
from seating.models.allocation_log import AllocationLog
from seating.models.reservation_override import ReservationOverride
from seating.routes.units import get_unit_or_404
from seating.services.allocation_log import (
    ALGO_VERSION,
    build_allocation_record,
    decision_event_id,
    log_emergency_allocation,
    write_allocation_decision_log,
)
from seating.services.seating_snapshot import SnapshotUnavailableError, SqlSeatingSnapshotProvider, UnknownUnitError
from seating.services.seating_suggestion import SuggestSeatingInput, resolve_end_time, suggest_seating
from seating.utils.datetimes import as_utc_naive
from seating.utils.normalize import normalize_id_list, normalize_optional_text

logger = logging.getLogger(__name__)

router = APIRouter()


class SuggestRequest(BaseModel):
    start_time: datetime
    end_time: Optional[datetime] = None
    party_size: int
    booking_id: Optional[str] = None
    forced_zone_id: Optional[str] = None
    forced_table_ids: List[str] = []

    @model_validator(mode="after")
    def validate_window(self):
        if self.end_time is not None and as_utc_naive(self.end_time) <= as_utc_naive(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class SuggestResponse(BaseModel):
    zone_id: Optional[str]
    table_ids: List[str]
    reason: str
    confidence: float
    allocation_mode: Optional[str]
    allocation_strategy: Optional[str]


class AllocationDecisionResponse(BaseModel):
    suggestion: SuggestResponse
    allocation: Optional[Dict[str, Any]]
    event_id: Optional[str]  # None when the decision log could not be written
    algo_version: str


def _run_suggestion(session: Session, unit_id: str, request: SuggestSeatingInput):
    provider = SqlSeatingSnapshotProvider(session)
    try:
        return suggest_seating(provider, request, audit_hook=partial(log_emergency_allocation, session))
    except UnknownUnitError:
        raise HTTPException(status_code=404, detail="Unit not found")
    except SnapshotUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@router.post("/units/{unit_id}/seating/suggest", response_model=SuggestResponse)
def suggest_seating_endpoint(unit_id: str, payload: SuggestRequest, session: Session = Depends(get_session)):
    """
    Suggest a zone and table(s) for a party.

    Business outcomes (disabled allocation, bad party size, nothing fits)
    come back as 200 with an empty table list and a reason code.
    """
    request = SuggestSeatingInput(unit_id=unit_id, **payload.model_dump())
    result, _ = _run_suggestion(session, unit_id, request)
    return result.to_dict()


@router.post(
    "/units/{unit_id}/bookings/{booking_id}/allocation-decision",
    response_model=AllocationDecisionResponse,
)
def record_allocation_decision(
    unit_id: str,
    booking_id: str,
    payload: SuggestRequest,
    session: Session = Depends(get_session),
):
    """Compute the allocation for a booking and record the decision."""
    data = payload.model_dump()
    data["booking_id"] = booking_id
    request = SuggestSeatingInput(unit_id=unit_id, **data)
    result, settings = _run_suggestion(session, unit_id, request)

    end_time = resolve_end_time(payload.start_time, payload.end_time, settings)
    event_id = None
    try:
        entry = write_allocation_decision_log(
            session,
            unit_id,
            booking_id,
            payload.start_time,
            end_time,
            payload.party_size,
            result,
            settings.snapshot_counts(),
        )
        event_id = entry.event_id
    except SQLAlchemyError as exc:
        logger.warning(f"Failed to write allocation decision log for booking {booking_id}: {exc}")

    stable_id = decision_event_id(unit_id, booking_id, payload.start_time, end_time, payload.party_size, result)
    record = build_allocation_record(result, trace_id=stable_id[:16])
    return {
        "suggestion": result.to_dict(),
        "allocation": record.to_dict() if record else None,
        "event_id": event_id,
        "algo_version": ALGO_VERSION,
    }


class AllocationLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    unit_id: str
    kind: str
    booking_id: Optional[str]
    booking_start_time: datetime
    booking_end_time: datetime
    party_size: int
    selected_zone_id: Optional[str]
    selected_table_ids: List[str]
    reason: Optional[str]
    allocation_mode: Optional[str]
    allocation_strategy: Optional[str]
    snapshot: Dict[str, Any]
    algo_version: Optional[str]
    event_id: Optional[str]
    source: str
    created_at: datetime
    updated_at: datetime


@router.get("/units/{unit_id}/allocation-logs", response_model=List[AllocationLogResponse])
def list_allocation_logs(
    unit_id: str,
    kind: Optional[str] = Query(None),
    booking_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    session: Session = Depends(get_session),
):
    """List allocation logs, newest first"""
    get_unit_or_404(session, unit_id)
    query = select(AllocationLog).where(AllocationLog.unit_id == unit_id)
    if kind:
        query = query.where(AllocationLog.kind == kind)
    if booking_id:
        query = query.where(AllocationLog.booking_id == booking_id)
    return session.exec(query.order_by(AllocationLog.created_at.desc()).limit(limit)).all()


# ============================================================================
# Reservation overrides
# ============================================================================


class OverrideUpdate(BaseModel):
    forced_zone_id: Optional[str] = None
    forced_table_ids: List[str] = []
    note: Optional[str] = None
    updated_by: Optional[str] = None

    @field_validator("forced_zone_id", "note", "updated_by")
    @classmethod
    def clean_text(cls, v):
        return normalize_optional_text(v)

    @field_validator("forced_table_ids")
    @classmethod
    def clean_table_ids(cls, v):
        return normalize_id_list(v) or []


class OverrideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reservation_id: str
    unit_id: str
    forced_zone_id: Optional[str]
    forced_table_ids: List[str]
    note: Optional[str]
    updated_by: Optional[str]
    updated_at: datetime


def _get_override_or_404(session: Session, unit_id: str, reservation_id: str) -> ReservationOverride:
    override = session.get(ReservationOverride, reservation_id)
    if not override or override.unit_id != unit_id:
        raise HTTPException(status_code=404, detail="Override not found")
    return override


@router.get(
    "/units/{unit_id}/reservations/{reservation_id}/override",
    response_model=OverrideResponse,
)
def get_reservation_override(unit_id: str, reservation_id: str, session: Session = Depends(get_session)):
    """Get the staff override for a reservation"""
    get_unit_or_404(session, unit_id)
    return _get_override_or_404(session, unit_id, reservation_id)


@router.put(
    "/units/{unit_id}/reservations/{reservation_id}/override",
    response_model=OverrideResponse,
)
def set_reservation_override(
    unit_id: str,
    reservation_id: str,
    override_data: OverrideUpdate,
    session: Session = Depends(get_session),
):
    """Create or replace the staff override for a reservation"""
    get_unit_or_404(session, unit_id)
    override = session.get(ReservationOverride, reservation_id)
    if override and override.unit_id != unit_id:
        raise HTTPException(status_code=409, detail="Reservation belongs to another unit")
    if override is None:
        override = ReservationOverride(reservation_id=reservation_id, unit_id=unit_id)

    for field, value in override_data.model_dump().items():
        setattr(override, field, value)
    override.updated_at = datetime.now(timezone.utc)

    session.add(override)
    session.commit()
    session.refresh(override)
    logger.info(
        f"Override set for reservation {reservation_id}: zone={override.forced_zone_id} "
        f"tables={override.forced_table_ids}"
    )
    return override


@router.delete("/units/{unit_id}/reservations/{reservation_id}/override", status_code=204)
def delete_reservation_override(unit_id: str, reservation_id: str, session: Session = Depends(get_session)):
    """Remove the staff override for a reservation"""
    get_unit_or_404(session, unit_id)
    override = _get_override_or_404(session, unit_id, reservation_id)
    session.delete(override)
    session.commit()
