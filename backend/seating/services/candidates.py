"""
Candidate generation: every single table or table combination that can
seat the party.

Single table rules:
1. Table and its zone are active
2. party_size <= capacity_max
3. party_size >= capacity_min, unless the party is one guest and the table
   can seat solo (table flag or listed in solo_allowed_table_ids)

Combination rules:
1. Combination is active and has at most max_combine_count members
2. Every member resolves to an active, available table
3. Members share one zone unless cross-zone combinations are allowed;
   then every member zone must be active
4. The anchor (first member's) zone is active
5. sum(capacity_min) <= party_size <= sum(capacity_max)
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from seating.models.dining_table import DEFAULT_CAPACITY_MAX, DEFAULT_CAPACITY_MIN, DiningTable
from seating.models.table_combination import TableCombination
from seating.models.zone import Zone
from seating.services.seating_snapshot import active_only
from seating.services.settings_resolver import SeatingSettings


@dataclass(frozen=True)
class Candidate:
    zone_id: str  # anchor zone
    table_ids: Tuple[str, ...]
    total_max: int
    total_min: int
    label: str  # final tie-break key

    def slack(self, party_size: int) -> int:
        return self.total_max - party_size


def capacity_bounds(table: DiningTable) -> Tuple[int, int]:
    """(min, max) with defaults for missing values."""
    capacity_min = table.capacity_min if table.capacity_min is not None else DEFAULT_CAPACITY_MIN
    capacity_max = table.capacity_max if table.capacity_max is not None else DEFAULT_CAPACITY_MAX
    return capacity_min, capacity_max


def can_seat_solo(table: DiningTable, settings: SeatingSettings) -> bool:
    return table.can_seat_solo is True or table.id in settings.solo_allowed_table_ids


def _zone_key(table: DiningTable) -> str:
    return table.zone_id.strip() if isinstance(table.zone_id, str) else ""


def _single_table_candidates(
    party_size: int,
    tables: List[DiningTable],
    active_zone_ids: set,
    settings: SeatingSettings,
) -> List[Candidate]:
    candidates = []
    for table in tables:
        capacity_min, capacity_max = capacity_bounds(table)
        solo_ok = party_size == 1 and can_seat_solo(table, settings)
        if party_size < capacity_min and not solo_ok:
            continue
        if party_size > capacity_max:
            continue
        zone_id = _zone_key(table)
        if zone_id not in active_zone_ids:
            continue
        candidates.append(
            Candidate(
                zone_id=zone_id,
                table_ids=(table.id,),
                total_max=capacity_max,
                total_min=capacity_min,
                label=table.id,
            )
        )
    return candidates


def _combination_candidates(
    party_size: int,
    combinations: List[TableCombination],
    tables_by_id: Dict[str, DiningTable],
    active_zone_ids: set,
    settings: SeatingSettings,
) -> List[Candidate]:
    candidates = []
    for combo in combinations:
        member_ids = list(combo.table_ids or [])
        if not member_ids or len(member_ids) > settings.max_combine_count:
            continue
        if len(set(member_ids)) != len(member_ids):
            continue
        members = [tables_by_id.get(table_id) for table_id in member_ids]
        if any(member is None for member in members):
            continue

        member_zone_ids = {_zone_key(member) for member in members} - {""}
        if not member_zone_ids:
            continue
        if len(member_zone_ids) > 1:
            if not settings.allow_cross_zone_combinations:
                continue
            if not member_zone_ids <= active_zone_ids:
                continue

        anchor_zone_id = _zone_key(members[0])
        if anchor_zone_id not in active_zone_ids:
            continue

        bounds = [capacity_bounds(member) for member in members]
        total_min = sum(low for low, _ in bounds)
        total_max = sum(high for _, high in bounds)
        if party_size < total_min or party_size > total_max:
            continue

        candidates.append(
            Candidate(
                zone_id=anchor_zone_id,
                table_ids=tuple(member_ids),
                total_max=total_max,
                total_min=total_min,
                label=",".join(member_ids),
            )
        )
    return candidates


def build_candidates(
    party_size: int,
    zones: Iterable[Zone],
    tables: Iterable[DiningTable],
    combinations: Iterable[TableCombination],
    settings: SeatingSettings,
) -> List[Candidate]:
    """
    All feasible assignments for party_size.

    tables and combinations are expected to be already filtered for
    availability; inactive entities are dropped here.
    """
    active_zone_ids = {zone.id for zone in active_only(zones)}
    active_tables = active_only(tables)
    tables_by_id = {table.id: table for table in active_tables}

    candidates = _single_table_candidates(party_size, active_tables, active_zone_ids, settings)
    if settings.max_combine_count >= 2:
        candidates.extend(
            _combination_candidates(
                party_size,
                active_only(combinations),
                tables_by_id,
                active_zone_ids,
                settings,
            )
        )
    return candidates
