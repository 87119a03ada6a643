from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, select

from seating.database import get_session
from seating.models.dining_table import DiningTable
from seating.models.lifecycle import LifecycleState
from seating.models.seating_settings import SeatingSettingsDoc
from seating.models.table_combination import TableCombination
from seating.models.zone import ZONE_TYPES, Zone
from seating.routes.units import get_unit_or_404
from seating.services.settings_resolver import merge_settings_document, resolve_seating_settings
from seating.utils.normalize import normalize_id_list, normalize_tags

router = APIRouter()


# ============================================================================
# Zones
# ============================================================================


class ZoneCreate(BaseModel):
    id: Optional[str] = None
    name: str
    priority: int = 0
    is_emergency: bool = False
    type: Optional[str] = None
    tags: List[str] = []

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v is not None and v not in ZONE_TYPES:
            raise ValueError(f"type must be one of {list(ZONE_TYPES)}")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)


class ZoneUpdate(BaseModel):
    name: Optional[str] = None
    priority: Optional[int] = None
    state: Optional[LifecycleState] = None
    is_emergency: Optional[bool] = None
    type: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v is not None and v not in ZONE_TYPES:
            raise ValueError(f"type must be one of {list(ZONE_TYPES)}")
        return v

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v) if v is not None else v


class ZoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    unit_id: str
    name: str
    priority: int
    state: LifecycleState
    is_emergency: bool
    type: Optional[str]
    tags: List[str]


def _get_zone_or_404(session: Session, unit_id: str, zone_id: str) -> Zone:
    zone = session.get(Zone, zone_id)
    if not zone or zone.unit_id != unit_id:
        raise HTTPException(status_code=404, detail="Zone not found")
    return zone


@router.get("/units/{unit_id}/zones", response_model=List[ZoneResponse])
def list_zones(unit_id: str, include_inactive: bool = Query(False), session: Session = Depends(get_session)):
    """List zones of a unit in priority order"""
    get_unit_or_404(session, unit_id)
    query = select(Zone).where(Zone.unit_id == unit_id)
    if not include_inactive:
        query = query.where(Zone.state == LifecycleState.active.value)
    return session.exec(query.order_by(Zone.priority, Zone.id)).all()


@router.post("/units/{unit_id}/zones", response_model=ZoneResponse, status_code=201)
def create_zone(unit_id: str, zone_data: ZoneCreate, session: Session = Depends(get_session)):
    """Create a zone"""
    get_unit_or_404(session, unit_id)
    data = zone_data.model_dump(exclude_none=True)
    if data.get("id") and session.get(Zone, data["id"]):
        raise HTTPException(status_code=409, detail="Zone id already exists")

    zone = Zone(unit_id=unit_id, **data)
    session.add(zone)
    session.commit()
    session.refresh(zone)
    return zone


@router.put("/units/{unit_id}/zones/{zone_id}", response_model=ZoneResponse)
def update_zone(unit_id: str, zone_id: str, zone_data: ZoneUpdate, session: Session = Depends(get_session)):
    """Update a zone"""
    zone = _get_zone_or_404(session, unit_id, zone_id)
    for field, value in zone_data.model_dump(exclude_unset=True).items():
        setattr(zone, field, value)

    session.add(zone)
    session.commit()
    session.refresh(zone)
    return zone


@router.delete("/units/{unit_id}/zones/{zone_id}", response_model=ZoneResponse)
def deactivate_zone(unit_id: str, zone_id: str, session: Session = Depends(get_session)):
    """Soft-delete a zone"""
    zone = _get_zone_or_404(session, unit_id, zone_id)
    zone.state = LifecycleState.inactive
    session.add(zone)
    session.commit()
    session.refresh(zone)
    return zone


# ============================================================================
# Tables
# ============================================================================


class TableCreate(BaseModel):
    id: Optional[str] = None
    name: str
    zone_id: str
    capacity_min: int = 1
    capacity_max: int = 2
    can_seat_solo: bool = False
    can_combine: bool = False
    table_group: Optional[str] = None
    tags: List[str] = []

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v)

    @model_validator(mode="after")
    def validate_capacity(self):
        if self.capacity_min < 1:
            raise ValueError("capacity_min must be >= 1")
        if self.capacity_max < self.capacity_min:
            raise ValueError("capacity_max must be >= capacity_min")
        return self


class TableUpdate(BaseModel):
    name: Optional[str] = None
    zone_id: Optional[str] = None
    capacity_min: Optional[int] = None
    capacity_max: Optional[int] = None
    state: Optional[LifecycleState] = None
    can_seat_solo: Optional[bool] = None
    can_combine: Optional[bool] = None
    table_group: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v):
        return normalize_tags(v) if v is not None else v

    @model_validator(mode="after")
    def validate_capacity(self):
        if self.capacity_min is not None and self.capacity_min < 1:
            raise ValueError("capacity_min must be >= 1")
        if self.capacity_min is not None and self.capacity_max is not None:
            if self.capacity_max < self.capacity_min:
                raise ValueError("capacity_max must be >= capacity_min")
        return self


class TableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    unit_id: str
    zone_id: str
    name: str
    capacity_min: int
    capacity_max: int
    state: LifecycleState
    can_seat_solo: bool
    can_combine: bool
    table_group: Optional[str]
    tags: List[str]


def _get_table_or_404(session: Session, unit_id: str, table_id: str) -> DiningTable:
    table = session.get(DiningTable, table_id)
    if not table or table.unit_id != unit_id:
        raise HTTPException(status_code=404, detail="Table not found")
    return table


@router.get("/units/{unit_id}/tables", response_model=List[TableResponse])
def list_tables(unit_id: str, include_inactive: bool = Query(False), session: Session = Depends(get_session)):
    """List tables of a unit"""
    get_unit_or_404(session, unit_id)
    query = select(DiningTable).where(DiningTable.unit_id == unit_id)
    if not include_inactive:
        query = query.where(DiningTable.state == LifecycleState.active.value)
    return session.exec(query.order_by(DiningTable.name, DiningTable.id)).all()


@router.post("/units/{unit_id}/tables", response_model=TableResponse, status_code=201)
def create_table(unit_id: str, table_data: TableCreate, session: Session = Depends(get_session)):
    """Create a table inside one of the unit's zones"""
    get_unit_or_404(session, unit_id)
    zone = session.get(Zone, table_data.zone_id)
    if not zone or zone.unit_id != unit_id:
        raise HTTPException(status_code=400, detail=f"Zone {table_data.zone_id} does not belong to unit {unit_id}")

    data = table_data.model_dump(exclude_none=True)
    if data.get("id") and session.get(DiningTable, data["id"]):
        raise HTTPException(status_code=409, detail="Table id already exists")

    table = DiningTable(unit_id=unit_id, **data)
    session.add(table)
    session.commit()
    session.refresh(table)
    return table


@router.put("/units/{unit_id}/tables/{table_id}", response_model=TableResponse)
def update_table(unit_id: str, table_id: str, table_data: TableUpdate, session: Session = Depends(get_session)):
    """Update a table"""
    table = _get_table_or_404(session, unit_id, table_id)
    update_dict = table_data.model_dump(exclude_unset=True)

    if "zone_id" in update_dict:
        zone = session.get(Zone, update_dict["zone_id"])
        if not zone or zone.unit_id != unit_id:
            raise HTTPException(status_code=400, detail=f"Zone {update_dict['zone_id']} does not belong to unit {unit_id}")

    capacity_min = update_dict.get("capacity_min", table.capacity_min)
    capacity_max = update_dict.get("capacity_max", table.capacity_max)
    if capacity_max < capacity_min:
        raise HTTPException(status_code=422, detail="capacity_max must be >= capacity_min")

    for field, value in update_dict.items():
        setattr(table, field, value)

    session.add(table)
    session.commit()
    session.refresh(table)
    return table


@router.delete("/units/{unit_id}/tables/{table_id}", response_model=TableResponse)
def deactivate_table(unit_id: str, table_id: str, session: Session = Depends(get_session)):
    """Soft-delete a table"""
    table = _get_table_or_404(session, unit_id, table_id)
    table.state = LifecycleState.inactive
    session.add(table)
    session.commit()
    session.refresh(table)
    return table


# ============================================================================
# Combinations
# ============================================================================


class CombinationCreate(BaseModel):
    id: Optional[str] = None
    table_ids: List[str]

    @field_validator("table_ids")
    @classmethod
    def validate_members(cls, v):
        cleaned = [table_id.strip() for table_id in v if table_id and table_id.strip()]
        if len(cleaned) != len(set(cleaned)):
            raise ValueError("table_ids must be distinct")
        if len(cleaned) < 2:
            raise ValueError("a combination needs at least 2 tables")
        return cleaned


class CombinationUpdate(BaseModel):
    state: Optional[LifecycleState] = None


class CombinationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    unit_id: str
    table_ids: List[str]
    state: LifecycleState


def _get_combination_or_404(session: Session, unit_id: str, combination_id: str) -> TableCombination:
    combo = session.get(TableCombination, combination_id)
    if not combo or combo.unit_id != unit_id:
        raise HTTPException(status_code=404, detail="Combination not found")
    return combo


@router.get("/units/{unit_id}/combinations", response_model=List[CombinationResponse])
def list_combinations(unit_id: str, include_inactive: bool = Query(False), session: Session = Depends(get_session)):
    """List table combinations of a unit"""
    get_unit_or_404(session, unit_id)
    query = select(TableCombination).where(TableCombination.unit_id == unit_id)
    if not include_inactive:
        query = query.where(TableCombination.state == LifecycleState.active.value)
    return session.exec(query.order_by(TableCombination.id)).all()


@router.post("/units/{unit_id}/combinations", response_model=CombinationResponse, status_code=201)
def create_combination(unit_id: str, combo_data: CombinationCreate, session: Session = Depends(get_session)):
    """Create a combination of active tables of this unit"""
    get_unit_or_404(session, unit_id)
    settings = resolve_seating_settings(_settings_document(session, unit_id))
    if len(combo_data.table_ids) > settings.max_combine_count:
        raise HTTPException(
            status_code=400,
            detail=f"A combination may have at most {settings.max_combine_count} tables",
        )

    for table_id in combo_data.table_ids:
        table = session.get(DiningTable, table_id)
        if not table or table.unit_id != unit_id or not table.is_active:
            raise HTTPException(status_code=400, detail=f"Table {table_id} is not an active table of unit {unit_id}")

    if combo_data.id and session.get(TableCombination, combo_data.id):
        raise HTTPException(status_code=409, detail="Combination id already exists")

    combo = TableCombination(unit_id=unit_id, **combo_data.model_dump(exclude_none=True))
    session.add(combo)
    session.commit()
    session.refresh(combo)
    return combo


@router.put("/units/{unit_id}/combinations/{combination_id}", response_model=CombinationResponse)
def update_combination(
    unit_id: str, combination_id: str, combo_data: CombinationUpdate, session: Session = Depends(get_session)
):
    """Reactivate or deactivate a combination"""
    combo = _get_combination_or_404(session, unit_id, combination_id)
    if combo_data.state is not None:
        combo.state = combo_data.state
    session.add(combo)
    session.commit()
    session.refresh(combo)
    return combo


@router.delete("/units/{unit_id}/combinations/{combination_id}", response_model=CombinationResponse)
def deactivate_combination(unit_id: str, combination_id: str, session: Session = Depends(get_session)):
    """Soft-delete a combination"""
    combo = _get_combination_or_404(session, unit_id, combination_id)
    combo.state = LifecycleState.inactive
    session.add(combo)
    session.commit()
    session.refresh(combo)
    return combo


# ============================================================================
# Settings
# ============================================================================


class EmergencyZonesUpdate(BaseModel):
    enabled: Optional[bool] = None
    zone_ids: Optional[List[str]] = None
    active_rule: Optional[Literal["always", "byWeekday"]] = None
    weekdays: Optional[List[int]] = None

    @field_validator("weekdays")
    @classmethod
    def validate_weekdays(cls, v):
        if v is not None and any(day < 0 or day > 6 for day in v):
            raise ValueError("weekdays must be between 0 (Sunday) and 6 (Saturday)")
        return v


class SeatingSettingsUpdate(BaseModel):
    buffer_minutes: Optional[int] = None
    default_duration_minutes: Optional[int] = None
    max_combine_count: Optional[int] = None
    solo_allowed_table_ids: Optional[List[str]] = None
    allocation_enabled: Optional[bool] = None
    allocation_mode: Optional[Literal["capacity", "floorplan", "hybrid"]] = None
    allocation_strategy: Optional[Literal["bestFit", "minWaste", "priorityZoneFirst"]] = None
    zone_priority: Optional[List[str]] = None
    overflow_zones: Optional[List[str]] = None
    allow_cross_zone_combinations: Optional[bool] = None
    emergency_zones: Optional[EmergencyZonesUpdate] = None
    default_zone_id: Optional[str] = None

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, v):
        if v is not None and v < 0:
            raise ValueError("buffer_minutes must be >= 0")
        return v

    @field_validator("default_duration_minutes", "max_combine_count")
    @classmethod
    def validate_positive(cls, v):
        if v is not None and v < 1:
            raise ValueError("value must be >= 1")
        return v

    @field_validator("solo_allowed_table_ids", "zone_priority", "overflow_zones")
    @classmethod
    def clean_ids(cls, v):
        return normalize_id_list(v) if v is not None else v


def _settings_document(session: Session, unit_id: str) -> dict:
    doc = session.get(SeatingSettingsDoc, unit_id)
    return dict(doc.data or {}) if doc else {}


@router.get("/units/{unit_id}/seating-settings")
def get_seating_settings(unit_id: str, session: Session = Depends(get_session)):
    """Resolved seating settings (stored values over defaults)"""
    get_unit_or_404(session, unit_id)
    return resolve_seating_settings(_settings_document(session, unit_id)).to_dict()


@router.put("/units/{unit_id}/seating-settings")
def update_seating_settings(
    unit_id: str, settings_data: SeatingSettingsUpdate, session: Session = Depends(get_session)
):
    """Merge a partial settings update into the stored document"""
    get_unit_or_404(session, unit_id)
    patch = settings_data.model_dump(exclude_unset=True)
    if isinstance(patch.get("emergency_zones"), dict):
        patch["emergency_zones"] = {k: v for k, v in patch["emergency_zones"].items() if v is not None}

    doc = session.get(SeatingSettingsDoc, unit_id)
    if doc is None:
        doc = SeatingSettingsDoc(unit_id=unit_id, data={})
    # Reassign rather than mutate: JSON columns do not track in-place changes
    doc.data = merge_settings_document(doc.data, patch)
    doc.updated_at = datetime.now(timezone.utc)

    session.add(doc)
    session.commit()
    session.refresh(doc)
    return resolve_seating_settings(doc.data).to_dict()
