"""
Zone policy: preference order and the normal / overflow / emergency split.

Preference order:
- zone_priority set: listed active zones in list order, then the remaining
  active zones in their original order
- otherwise: default zone first, then ascending zone.priority (stable)

Partition of the ordered active zones (disjoint):
- emergency: listed in emergency_zones.zone_ids
- overflow: listed in overflow_zones and not emergency
- normal: everything else

Strategy rank (priorityZoneFirst): zone.priority, with zone_priority list
indexes laid over it. The default zone does not affect the rank.

Emergency zones may only be searched when emergency_zones.enabled and the
rule admits the booking date (always, or byWeekday with the date's weekday
in weekdays, 0=Sunday).
"""
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from seating.models.zone import Zone
from seating.services.seating_snapshot import active_only
from seating.services.settings_resolver import SeatingSettings
from seating.utils.datetimes import sunday_based_weekday


@dataclass(frozen=True)
class ZonePolicy:
    ordered_zone_ids: Tuple[str, ...]
    normal_zone_ids: Tuple[str, ...]
    overflow_zone_ids: Tuple[str, ...]
    emergency_zone_ids: Tuple[str, ...]
    emergency_allowed: bool
    zone_ranks: Dict[str, float] = field(default_factory=dict)

    def rank(self, zone_id: str) -> float:
        """Strategy rank of a zone; unknown zones sort last."""
        return self.zone_ranks.get(zone_id, math.inf)

    def is_emergency(self, zone_id: str) -> bool:
        return zone_id in self.emergency_zone_ids

    def eligible_emergency_zone_ids(self) -> Tuple[str, ...]:
        return self.emergency_zone_ids if self.emergency_allowed else ()


def is_emergency_zone_allowed(settings: SeatingSettings, booking_date: Optional[date]) -> bool:
    emergency = settings.emergency_zones
    if not emergency.enabled:
        return False
    if emergency.active_rule == "byWeekday":
        if booking_date is None:
            return False
        return sunday_based_weekday(booking_date) in emergency.weekdays
    return True


def order_zone_ids(active_zones: List[Zone], settings: SeatingSettings) -> List[str]:
    active_ids = [zone.id for zone in active_zones]
    if settings.zone_priority:
        listed = [zone_id for zone_id in settings.zone_priority if zone_id in active_ids]
        rest = [zone_id for zone_id in active_ids if zone_id not in settings.zone_priority]
        return listed + rest

    default_zone_id = settings.default_zone_id

    def sort_key(zone: Zone) -> Tuple[int, float]:
        priority = zone.priority if zone.priority is not None else math.inf
        return (0 if default_zone_id and zone.id == default_zone_id else 1, priority)

    return [zone.id for zone in sorted(active_zones, key=sort_key)]


def rank_zones(zones: Iterable[Zone], settings: SeatingSettings) -> Dict[str, float]:
    ranks: Dict[str, float] = {
        zone.id: zone.priority if zone.priority is not None else math.inf for zone in zones
    }
    for index, zone_id in enumerate(settings.zone_priority):
        ranks[zone_id] = index
    return ranks


def resolve_zone_policy(
    zones: Iterable[Zone],
    settings: SeatingSettings,
    booking_date: Optional[date] = None,
) -> ZonePolicy:
    zones = list(zones)
    ordered = order_zone_ids(active_only(zones), settings)
    emergency_set = set(settings.emergency_zones.zone_ids)
    overflow_set = set(settings.overflow_zones) - emergency_set

    emergency: List[str] = []
    overflow: List[str] = []
    normal: List[str] = []
    for zone_id in ordered:
        if zone_id in emergency_set:
            emergency.append(zone_id)
        elif zone_id in overflow_set:
            overflow.append(zone_id)
        else:
            normal.append(zone_id)

    return ZonePolicy(
        ordered_zone_ids=tuple(ordered),
        normal_zone_ids=tuple(normal),
        overflow_zone_ids=tuple(overflow),
        emergency_zone_ids=tuple(emergency),
        emergency_allowed=is_emergency_zone_allowed(settings, booking_date),
        zone_ranks=rank_zones(zones, settings),
    )

