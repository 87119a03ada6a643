"""
Seating suggestion pipeline.

request -> settings -> inventory snapshot -> availability filter
        -> candidate generation / zone policy / selection -> result

All reads go through the snapshot provider before the engine runs; the
engine itself is pure. Read failures propagate (SnapshotUnavailableError,
UnknownUnitError); no partial suggestion is ever returned. The optional
emergency audit hook is best effort: its failures are logged and dropped.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence, Tuple

from seating.services.allocation_engine import (
    ALLOCATION_DISABLED,
    EMERGENCY_ZONE,
    AllocationOverride,
    SuggestionResult,
    empty_result,
    suggest_allocation,
)
from seating.services.availability import collect_taken_table_ids, filter_available, reservation_lookup_period
from seating.services.seating_snapshot import SeatingSnapshotProvider
from seating.services.settings_resolver import SeatingSettings, resolve_seating_settings
from seating.utils.datetimes import as_utc_naive, local_booking_date
from seating.utils.normalize import normalize_id_list, normalize_optional_text

logger = logging.getLogger(__name__)

# (unit_id, booking_id, (start, end), party_size, result, settings)
EmergencyAuditHook = Callable[
    [str, Optional[str], Tuple[datetime, datetime], int, SuggestionResult, SeatingSettings], object
]


@dataclass
class SuggestSeatingInput:
    unit_id: str
    start_time: datetime
    party_size: int
    end_time: Optional[datetime] = None
    booking_id: Optional[str] = None  # set when editing an existing booking
    forced_zone_id: Optional[str] = None
    forced_table_ids: Sequence[str] = ()


def resolve_end_time(start_time: datetime, end_time: Optional[datetime], settings: SeatingSettings) -> datetime:
    if end_time is not None:
        return end_time
    return start_time + timedelta(minutes=settings.default_duration_minutes)


def _resolve_override(
    provider: SeatingSnapshotProvider,
    request: SuggestSeatingInput,
) -> Optional[AllocationOverride]:
    """Explicit request override wins; otherwise the stored one for the booking."""
    forced_zone_id = normalize_optional_text(request.forced_zone_id)
    forced_table_ids = normalize_id_list(list(request.forced_table_ids or [])) or []
    if forced_zone_id or forced_table_ids:
        return AllocationOverride(forced_zone_id=forced_zone_id, forced_table_ids=tuple(forced_table_ids))

    if not request.booking_id:
        return None
    stored = provider.get_reservation_override(request.unit_id, request.booking_id)
    if stored is None:
        return None
    stored_zone_id = normalize_optional_text(stored.forced_zone_id)
    stored_table_ids = normalize_id_list(stored.forced_table_ids) or []
    if not stored_zone_id and not stored_table_ids:
        return None
    return AllocationOverride(forced_zone_id=stored_zone_id, forced_table_ids=tuple(stored_table_ids))


def suggest_seating(
    provider: SeatingSnapshotProvider,
    request: SuggestSeatingInput,
    audit_hook: Optional[EmergencyAuditHook] = None,
) -> Tuple[SuggestionResult, SeatingSettings]:
    """
    Suggest tables for a booking request.

    Returns the result together with the resolved settings so callers can
    record which configuration produced it.
    """
    unit = provider.get_unit(request.unit_id)
    settings = resolve_seating_settings(provider.get_seating_settings(request.unit_id))
    if not settings.allocation_enabled:
        return empty_result(ALLOCATION_DISABLED, settings), settings

    start_time = as_utc_naive(request.start_time)
    end_time = as_utc_naive(resolve_end_time(request.start_time, request.end_time, settings))

    zones = provider.list_zones(request.unit_id)
    tables = provider.list_tables(request.unit_id)
    combinations = provider.list_combinations(request.unit_id)
    period_start, period_end = reservation_lookup_period(start_time, end_time, settings.buffer_minutes)
    reservations = provider.list_reservations_covering_period(request.unit_id, period_start, period_end)
    override = _resolve_override(provider, request)

    taken = collect_taken_table_ids(
        reservations,
        start_time,
        end_time,
        settings.buffer_minutes,
        exclude_reservation_id=request.booking_id,
    )
    available_tables, available_combinations = filter_available(tables, combinations, taken)
    logger.debug(
        f"Unit {request.unit_id}: {len(taken)} taken tables, "
        f"{len(available_tables)}/{len(tables)} tables available"
    )

    result = suggest_allocation(
        request.party_size,
        settings,
        zones,
        available_tables,
        available_combinations,
        booking_date=local_booking_date(request.start_time, unit.timezone),
        override=override,
    )

    if result.reason == EMERGENCY_ZONE and result.has_tables:
        logger.info(
            f"Emergency zone selected for unit {request.unit_id}: zone={result.zone_id} "
            f"tables={result.table_ids} start={start_time.isoformat()}"
        )
        if audit_hook is not None:
            try:
                audit_hook(
                    request.unit_id,
                    request.booking_id,
                    (start_time, end_time),
                    request.party_size,
                    result,
                    settings,
                )
            except Exception as exc:
                logger.warning(f"Failed to log emergency allocation for unit {request.unit_id}: {exc}")

    return result, settings
