"""
Seating settings resolver.

Settings are stored per unit as a partial document. Resolution overlays the
document onto DEFAULT_SETTINGS one field at a time: a missing or malformed
field falls back to its own default and never drags other fields with it.
The nested emergency_zones block is resolved the same way, so a document
carrying only {"emergency_zones": {"enabled": true}} still resolves
active_rule to "always".
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from seating.utils.normalize import normalize_id_list

ALLOCATION_MODES = ("capacity", "floorplan", "hybrid")
ALLOCATION_STRATEGIES = ("bestFit", "minWaste", "priorityZoneFirst")
EMERGENCY_RULES = ("always", "byWeekday")


@dataclass(frozen=True)
class EmergencyZoneSettings:
    enabled: bool = False
    zone_ids: Tuple[str, ...] = ()
    active_rule: str = "always"  # always|byWeekday
    weekdays: Tuple[int, ...] = ()  # 0=Sunday ... 6=Saturday


@dataclass(frozen=True)
class SeatingSettings:
    buffer_minutes: int = 15
    default_duration_minutes: int = 120
    max_combine_count: int = 2
    solo_allowed_table_ids: Tuple[str, ...] = ()
    allocation_enabled: bool = False
    allocation_mode: str = "capacity"
    allocation_strategy: str = "bestFit"
    zone_priority: Tuple[str, ...] = ()
    overflow_zones: Tuple[str, ...] = ()
    allow_cross_zone_combinations: bool = False
    emergency_zones: EmergencyZoneSettings = field(default_factory=EmergencyZoneSettings)
    default_zone_id: str = ""

    def snapshot_counts(self) -> Dict[str, int]:
        """Size of the zone lists, recorded alongside allocation logs."""
        return {
            "overflow_zones_count": len(self.overflow_zones),
            "zone_priority_count": len(self.zone_priority),
            "emergency_zones_count": len(self.emergency_zones.zone_ids),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "buffer_minutes": self.buffer_minutes,
            "default_duration_minutes": self.default_duration_minutes,
            "max_combine_count": self.max_combine_count,
            "solo_allowed_table_ids": list(self.solo_allowed_table_ids),
            "allocation_enabled": self.allocation_enabled,
            "allocation_mode": self.allocation_mode,
            "allocation_strategy": self.allocation_strategy,
            "zone_priority": list(self.zone_priority),
            "overflow_zones": list(self.overflow_zones),
            "allow_cross_zone_combinations": self.allow_cross_zone_combinations,
            "emergency_zones": {
                "enabled": self.emergency_zones.enabled,
                "zone_ids": list(self.emergency_zones.zone_ids),
                "active_rule": self.emergency_zones.active_rule,
                "weekdays": list(self.emergency_zones.weekdays),
            },
            "default_zone_id": self.default_zone_id,
        }


DEFAULT_SETTINGS = SeatingSettings()


def _bool_field(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _int_field(value: Any, default: int, minimum: int = 0) -> int:
    # bool is an int subclass; True must not read as 1 minute
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value if value >= minimum else default


def _choice_field(value: Any, choices: Tuple[str, ...], default: str) -> str:
    return value if value in choices else default


def _ids_field(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    ids = normalize_id_list(value)
    return default if ids is None else tuple(ids)


def _weekdays_field(value: Any, default: Tuple[int, ...]) -> Tuple[int, ...]:
    if not isinstance(value, (list, tuple)):
        return default
    days = []
    for day in value:
        if isinstance(day, int) and not isinstance(day, bool) and 0 <= day <= 6 and day not in days:
            days.append(day)
    return tuple(days)


def _text_field(value: Any, default: str) -> str:
    return value.strip() if isinstance(value, str) else default


def resolve_emergency_zones(doc: Any) -> EmergencyZoneSettings:
    defaults = DEFAULT_SETTINGS.emergency_zones
    data: Mapping[str, Any] = doc if isinstance(doc, Mapping) else {}
    return EmergencyZoneSettings(
        enabled=_bool_field(data.get("enabled"), defaults.enabled),
        zone_ids=_ids_field(data.get("zone_ids"), defaults.zone_ids),
        active_rule=_choice_field(data.get("active_rule"), EMERGENCY_RULES, defaults.active_rule),
        weekdays=_weekdays_field(data.get("weekdays"), defaults.weekdays),
    )


def resolve_seating_settings(doc: Optional[Mapping[str, Any]]) -> SeatingSettings:
    """Overlay a stored settings document onto the defaults, field by field."""
    data: Mapping[str, Any] = doc or {}
    d = DEFAULT_SETTINGS
    return SeatingSettings(
        buffer_minutes=_int_field(data.get("buffer_minutes"), d.buffer_minutes),
        default_duration_minutes=_int_field(data.get("default_duration_minutes"), d.default_duration_minutes, minimum=1),
        max_combine_count=_int_field(data.get("max_combine_count"), d.max_combine_count, minimum=1),
        solo_allowed_table_ids=_ids_field(data.get("solo_allowed_table_ids"), d.solo_allowed_table_ids),
        allocation_enabled=_bool_field(data.get("allocation_enabled"), d.allocation_enabled),
        allocation_mode=_choice_field(data.get("allocation_mode"), ALLOCATION_MODES, d.allocation_mode),
        allocation_strategy=_choice_field(data.get("allocation_strategy"), ALLOCATION_STRATEGIES, d.allocation_strategy),
        zone_priority=_ids_field(data.get("zone_priority"), d.zone_priority),
        overflow_zones=_ids_field(data.get("overflow_zones"), d.overflow_zones),
        allow_cross_zone_combinations=_bool_field(
            data.get("allow_cross_zone_combinations"), d.allow_cross_zone_combinations
        ),
        emergency_zones=resolve_emergency_zones(data.get("emergency_zones")),
        default_zone_id=_text_field(data.get("default_zone_id"), d.default_zone_id),
    )


def merge_settings_document(stored: Optional[Mapping[str, Any]], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge a partial update into a stored settings document.

    Top-level keys are replaced; emergency_zones is merged per key so that
    updating "enabled" keeps the stored zone list.
    """
    merged: Dict[str, Any] = dict(stored or {})
    for key, value in patch.items():
        if key == "emergency_zones" and isinstance(value, Mapping):
            current = merged.get("emergency_zones")
            nested = dict(current) if isinstance(current, Mapping) else {}
            nested.update(value)
            merged[key] = nested
        else:
            merged[key] = value
    return merged
