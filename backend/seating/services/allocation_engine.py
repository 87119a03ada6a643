"""
Seating allocation engine: pick table(s) for a party from a snapshot.

Pure and deterministic. Inputs are the resolved settings plus the zones,
available tables and available combinations of one unit; nothing is read
or written here. The result is a suggestion, not a hold on the tables.

Modes (settings.allocation_mode):
- capacity: best candidate over all zones (BEST_FIT)
- floorplan: walk zones in preference order, forced zone first, then
  normal, overflow and (when eligible) emergency zones; the best candidate
  of the first zone with any candidate wins; otherwise NO_FIT
- hybrid: floorplan walk, then a capacity-style pick (FLOORPLAN_FALLBACK).
  Every non-emergency candidate lies in a normal or overflow zone, so the
  walk already covers whatever the fallback could pick; FLOORPLAN_FALLBACK
  is kept as a reason code but real inputs do not reach it.

Strategies (settings.allocation_strategy) order candidates within a set:
- bestFit / minWaste: slack, then total_max, then label
- priorityZoneFirst: zone.priority (zone_priority list index when listed),
  then slack, then label

Emergency-zone candidates are only returned when eligible and nothing
else fits, or when a caller override names them.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from seating.models.dining_table import DiningTable
from seating.models.table_combination import TableCombination
from seating.models.zone import Zone
from seating.services.candidates import Candidate, build_candidates
from seating.services.settings_resolver import SeatingSettings
from seating.services.zone_policy import ZonePolicy, resolve_zone_policy

logger = logging.getLogger(__name__)

# Reason codes
ALLOCATION_DISABLED = "ALLOCATION_DISABLED"
INVALID_PARTY_SIZE = "INVALID_PARTY_SIZE"
NO_FIT = "NO_FIT"
OVERRIDE_ZONE = "OVERRIDE_ZONE"
OVERRIDE_TABLES = "OVERRIDE_TABLES"
ZONE_FIRST = "ZONE_FIRST"
ZONE_OVERFLOW = "ZONE_OVERFLOW"
EMERGENCY_ZONE = "EMERGENCY_ZONE"
BEST_FIT = "BEST_FIT"
FLOORPLAN_FALLBACK = "FLOORPLAN_FALLBACK"

REASON_CODES = (
    ALLOCATION_DISABLED,
    INVALID_PARTY_SIZE,
    NO_FIT,
    OVERRIDE_ZONE,
    OVERRIDE_TABLES,
    ZONE_FIRST,
    ZONE_OVERFLOW,
    EMERGENCY_ZONE,
    BEST_FIT,
    FLOORPLAN_FALLBACK,
)


@dataclass(frozen=True)
class AllocationOverride:
    forced_zone_id: Optional[str] = None
    forced_table_ids: Tuple[str, ...] = ()


@dataclass
class SuggestionResult:
    zone_id: Optional[str]
    table_ids: List[str]
    reason: str
    confidence: float = 0.0
    allocation_mode: Optional[str] = None
    allocation_strategy: Optional[str] = None

    @property
    def has_tables(self) -> bool:
        return bool(self.table_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "zone_id": self.zone_id,
            "table_ids": list(self.table_ids),
            "reason": self.reason,
            "confidence": self.confidence,
            "allocation_mode": self.allocation_mode,
            "allocation_strategy": self.allocation_strategy,
        }


def empty_result(reason: str, settings: Optional[SeatingSettings] = None) -> SuggestionResult:
    return SuggestionResult(
        zone_id=None,
        table_ids=[],
        reason=reason,
        confidence=0.0,
        allocation_mode=settings.allocation_mode if settings else None,
        allocation_strategy=settings.allocation_strategy if settings else None,
    )


def calculate_confidence(party_size: int, candidate: Candidate) -> float:
    """1 - slack/total_max clamped to [0, 1]; 0 for tables without capacity."""
    if candidate.total_max <= 0:
        return 0.0
    return max(0.0, min(1.0, 1 - candidate.slack(party_size) / candidate.total_max))


# ============================================================================
# Strategies
# ============================================================================

SortKey = Callable[[Candidate], Tuple]


def _best_fit_key(party_size: int, policy: ZonePolicy) -> SortKey:
    return lambda c: (c.slack(party_size), c.total_max, c.label)


def _priority_zone_first_key(party_size: int, policy: ZonePolicy) -> SortKey:
    return lambda c: (policy.rank(c.zone_id), c.slack(party_size), c.label)


# minWaste has always ordered exactly like bestFit
STRATEGY_SORT_KEYS: Dict[str, Callable[[int, ZonePolicy], SortKey]] = {
    "bestFit": _best_fit_key,
    "minWaste": _best_fit_key,
    "priorityZoneFirst": _priority_zone_first_key,
}


# ============================================================================
# Modes
# ============================================================================


@dataclass
class _Selection:
    party_size: int
    candidates: List[Candidate]
    policy: ZonePolicy
    sort_key: SortKey
    forced_zone_id: Optional[str] = None

    def best(self, items: Sequence[Candidate]) -> Candidate:
        return min(items, key=self.sort_key)


Picked = Optional[Tuple[Candidate, str]]


def _search_zones(sel: _Selection, zone_ids: Iterable[str], reason: str) -> Picked:
    for zone_id in zone_ids:
        in_zone = [c for c in sel.candidates if c.zone_id == zone_id]
        if in_zone:
            return sel.best(in_zone), reason
    return None


def _zone_first(sel: _Selection) -> Picked:
    tiers: List[Tuple[Tuple[str, ...], str]] = []
    if sel.forced_zone_id:
        tiers.append(((sel.forced_zone_id,), OVERRIDE_ZONE))
    tiers.append((sel.policy.normal_zone_ids, ZONE_FIRST))
    tiers.append((sel.policy.overflow_zone_ids, ZONE_OVERFLOW))
    tiers.append((sel.policy.eligible_emergency_zone_ids(), EMERGENCY_ZONE))

    for zone_ids, reason in tiers:
        picked = _search_zones(sel, zone_ids, reason)
        if picked:
            return picked
    return None


def _global_best(sel: _Selection, reason: str) -> Picked:
    regular = [c for c in sel.candidates if not sel.policy.is_emergency(c.zone_id)]
    if regular:
        return sel.best(regular), reason
    if sel.policy.emergency_allowed:
        emergency = [c for c in sel.candidates if sel.policy.is_emergency(c.zone_id)]
        if emergency:
            return sel.best(emergency), EMERGENCY_ZONE
    return None


def _select_capacity(sel: _Selection) -> Picked:
    return _global_best(sel, BEST_FIT)


def _select_floorplan(sel: _Selection) -> Picked:
    return _zone_first(sel)


def _select_hybrid(sel: _Selection) -> Picked:
    return _zone_first(sel) or _global_best(sel, FLOORPLAN_FALLBACK)


MODE_SELECTORS: Dict[str, Callable[[_Selection], Picked]] = {
    "capacity": _select_capacity,
    "floorplan": _select_floorplan,
    "hybrid": _select_hybrid,
}


# ============================================================================
# Entry point
# ============================================================================


def suggest_allocation(
    party_size: int,
    settings: SeatingSettings,
    zones: Iterable[Zone],
    tables: Iterable[DiningTable],
    combinations: Iterable[TableCombination] = (),
    booking_date: Optional[date] = None,
    override: Optional[AllocationOverride] = None,
) -> SuggestionResult:
    """
    Suggest a zone and table(s) for party_size.

    Never raises for business outcomes: invalid party sizes and parties that
    fit nowhere come back as INVALID_PARTY_SIZE / NO_FIT results. A forced
    zone together with forced tables is returned as-is without checking
    capacity or availability.
    """
    if party_size <= 0:
        return empty_result(INVALID_PARTY_SIZE, settings)

    if override and override.forced_zone_id and override.forced_table_ids:
        return SuggestionResult(
            zone_id=override.forced_zone_id,
            table_ids=list(override.forced_table_ids),
            reason=OVERRIDE_TABLES,
            confidence=1.0,
            allocation_mode=settings.allocation_mode,
            allocation_strategy=settings.allocation_strategy,
        )

    zones = list(zones)
    candidates = build_candidates(party_size, zones, tables, combinations, settings)
    logger.debug(f"{len(candidates)} seating candidates for party of {party_size}")
    if not candidates:
        return empty_result(NO_FIT, settings)

    policy = resolve_zone_policy(zones, settings, booking_date)
    make_key = STRATEGY_SORT_KEYS.get(settings.allocation_strategy, _best_fit_key)
    selection = _Selection(
        party_size=party_size,
        candidates=candidates,
        policy=policy,
        sort_key=make_key(party_size, policy),
        forced_zone_id=override.forced_zone_id if override else None,
    )

    select_mode = MODE_SELECTORS.get(settings.allocation_mode, _select_capacity)
    picked = select_mode(selection)
    if picked is None:
        return empty_result(NO_FIT, settings)

    best, reason = picked
    return SuggestionResult(
        zone_id=best.zone_id,
        table_ids=list(best.table_ids),
        reason=reason,
        confidence=calculate_confidence(party_size, best),
        allocation_mode=settings.allocation_mode,
        allocation_strategy=settings.allocation_strategy,
    )
