"""
Allocation logs.

Two kinds of records share the allocation_log table:
- emergency: appended whenever a suggestion lands in an emergency zone
- decision: one record per committed booking, rewritten in place when the
  booking is recomputed; event_id fingerprints inputs and outputs so
  repeated identical decisions are recognisable
"""
import hashlib
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from seating.models.allocation_log import AllocationLog
from seating.services.allocation_engine import ALLOCATION_DISABLED, SuggestionResult
from seating.services.settings_resolver import SeatingSettings
from seating.utils.datetimes import as_utc_naive

logger = logging.getLogger(__name__)

ALGO_VERSION = "seating_v1"


def log_emergency_allocation(
    session: Session,
    unit_id: str,
    booking_id: Optional[str],
    window: Tuple[datetime, datetime],
    party_size: int,
    result: SuggestionResult,
    settings: SeatingSettings,
) -> AllocationLog:
    """Append an audit record for an emergency-zone suggestion."""
    start_time, end_time = window
    entry = AllocationLog(
        unit_id=unit_id,
        kind="emergency",
        booking_id=booking_id,
        booking_start_time=as_utc_naive(start_time),
        booking_end_time=as_utc_naive(end_time),
        party_size=party_size,
        selected_zone_id=result.zone_id,
        selected_table_ids=list(result.table_ids),
        reason=result.reason,
        allocation_mode=settings.allocation_mode,
        allocation_strategy=settings.allocation_strategy,
        snapshot=settings.snapshot_counts(),
        source="seating_suggestion",
    )
    try:
        session.add(entry)
        session.commit()
        session.refresh(entry)
    except SQLAlchemyError:
        session.rollback()
        raise
    logger.info(f"Emergency allocation logged for unit {unit_id}: zone={result.zone_id} tables={result.table_ids}")
    return entry


def decision_event_id(
    unit_id: str,
    booking_id: str,
    start_time: datetime,
    end_time: datetime,
    party_size: int,
    result: SuggestionResult,
    algo_version: str = ALGO_VERSION,
) -> str:
    """sha256 over the pipe-joined decision inputs and outputs."""
    source = "|".join(
        [
            unit_id,
            booking_id,
            as_utc_naive(start_time).isoformat(),
            as_utc_naive(end_time).isoformat(),
            str(party_size),
            result.allocation_mode or "",
            result.allocation_strategy or "",
            result.reason or "",
            result.zone_id or "",
            ",".join(result.table_ids),
            algo_version,
        ]
    )
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


def write_allocation_decision_log(
    session: Session,
    unit_id: str,
    booking_id: str,
    start_time: datetime,
    end_time: datetime,
    party_size: int,
    result: SuggestionResult,
    snapshot: Dict[str, int],
    source: str = "allocation_decision",
    algo_version: str = ALGO_VERSION,
) -> AllocationLog:
    """Create or update the decision record for booking_id."""
    event_id = decision_event_id(unit_id, booking_id, start_time, end_time, party_size, result, algo_version)
    entry = session.exec(
        select(AllocationLog).where(AllocationLog.unit_id == unit_id, AllocationLog.doc_key == booking_id)
    ).first()
    if entry is None:
        entry = AllocationLog(unit_id=unit_id, doc_key=booking_id, kind="decision")

    entry.booking_id = booking_id
    entry.booking_start_time = as_utc_naive(start_time)
    entry.booking_end_time = as_utc_naive(end_time)
    entry.party_size = party_size
    entry.selected_zone_id = result.zone_id
    entry.selected_table_ids = list(result.table_ids)
    entry.reason = result.reason
    entry.allocation_mode = result.allocation_mode
    entry.allocation_strategy = result.allocation_strategy
    entry.snapshot = dict(snapshot)
    entry.algo_version = algo_version
    entry.event_id = event_id
    entry.source = source
    entry.updated_at = datetime.now(timezone.utc)

    try:
        session.add(entry)
        session.commit()
        session.refresh(entry)
    except SQLAlchemyError:
        session.rollback()
        raise
    logger.info(f"Allocation decision logged: unit={unit_id} booking={booking_id} event_id={event_id[:12]}")
    return entry


@dataclass
class AllocationRecord:
    """Compact allocation summary stored with a booking."""

    zone_id: Optional[str]
    table_ids: List[str]
    trace_id: str
    decided_at_ms: int
    strategy: Optional[str]
    diagnostics_summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zone_id": self.zone_id,
            "table_ids": list(self.table_ids),
            "trace_id": self.trace_id,
            "decided_at_ms": self.decided_at_ms,
            "strategy": self.strategy,
            "diagnostics_summary": self.diagnostics_summary,
        }


def build_allocation_record(
    result: SuggestionResult,
    trace_id: str,
    decided_at_ms: Optional[int] = None,
) -> Optional[AllocationRecord]:
    """None when allocation is switched off for the unit."""
    if result.reason == ALLOCATION_DISABLED:
        return None
    return AllocationRecord(
        zone_id=result.zone_id,
        table_ids=list(result.table_ids),
        trace_id=trace_id,
        decided_at_ms=decided_at_ms if decided_at_ms is not None else int(time.time() * 1000),
        strategy=result.allocation_strategy or result.allocation_mode,
        diagnostics_summary=result.reason,
    )
