"""
Availability filter.

A table is taken when any non-cancelled reservation overlapping the
buffered request window has it in assigned_table_ids. The request window
is widened by the buffer on both sides; reservation windows are used as
stored (unbuffered). Overlap is half-open: [a_start, a_end) meets
[b_start, b_end) iff a_start < b_end and b_start < a_end.

Reservations missing start_time or end_time are skipped. They cannot be
placed in time, so they block nothing on their own.
"""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Set, Tuple

from seating.models.dining_table import DiningTable
from seating.models.reservation import Reservation
from seating.models.table_combination import TableCombination
from seating.utils.datetimes import as_utc_naive

# Reservations are looked up by start_time only, so a booking that started
# this long before the window can still be found overlapping it.
RESERVATION_LOOKBACK = timedelta(hours=48)

IGNORED_STATUSES = {"cancelled"}


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and b_start < a_end


def buffered_window(start: datetime, end: datetime, buffer_minutes: int) -> Tuple[datetime, datetime]:
    """Expand [start, end) symmetrically by buffer_minutes (naive UTC)."""
    buffer = timedelta(minutes=max(0, buffer_minutes))
    return as_utc_naive(start) - buffer, as_utc_naive(end) + buffer


def reservation_lookup_period(start: datetime, end: datetime, buffer_minutes: int) -> Tuple[datetime, datetime]:
    """Period of reservation start times that can overlap the buffered window."""
    buffered_start, buffered_end = buffered_window(start, end, buffer_minutes)
    return buffered_start - RESERVATION_LOOKBACK, buffered_end


def collect_taken_table_ids(
    reservations: Iterable[Reservation],
    start: datetime,
    end: datetime,
    buffer_minutes: int,
    exclude_reservation_id: Optional[str] = None,
) -> Set[str]:
    """Union of tables assigned to reservations overlapping the buffered window."""
    window_start, window_end = buffered_window(start, end, buffer_minutes)
    taken: Set[str] = set()
    for reservation in reservations:
        if exclude_reservation_id and reservation.id == exclude_reservation_id:
            continue
        if reservation.status in IGNORED_STATUSES:
            continue
        if reservation.start_time is None or reservation.end_time is None:
            continue
        res_start = as_utc_naive(reservation.start_time)
        res_end = as_utc_naive(reservation.end_time)
        if overlaps(window_start, window_end, res_start, res_end):
            taken.update(reservation.assigned_table_ids or [])
    return taken


def filter_available(
    tables: Iterable[DiningTable],
    combinations: Iterable[TableCombination],
    taken_table_ids: Set[str],
) -> Tuple[List[DiningTable], List[TableCombination]]:
    """
    Drop taken tables, and combinations with any member not among the
    remaining tables.
    """
    available_tables = [table for table in tables if table.id not in taken_table_ids]
    available_ids = {table.id for table in available_tables}
    available_combinations = [
        combo for combo in combinations if all(table_id in available_ids for table_id in (combo.table_ids or []))
    ]
    return available_tables, available_combinations
