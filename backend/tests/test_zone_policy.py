"""
Tests for zone ordering, the normal/overflow/emergency partition and
emergency eligibility
"""

import math
from datetime import date

import pytest

from seating.models.lifecycle import LifecycleState
from seating.models.zone import Zone
from seating.services.settings_resolver import EmergencyZoneSettings, SeatingSettings
from seating.services.zone_policy import is_emergency_zone_allowed, resolve_zone_policy

TUESDAY = date(2026, 3, 10)
SATURDAY = date(2026, 3, 14)
SUNDAY = date(2026, 3, 15)


def make_zones():
    return [
        Zone(id="z3", unit_id="u1", name="Bar", priority=3),
        Zone(id="z1", unit_id="u1", name="Main", priority=1),
        Zone(id="z2", unit_id="u1", name="Terrace", priority=2),
        Zone(id="z4", unit_id="u1", name="Back room", priority=0, state=LifecycleState.inactive),
    ]


def test_orders_active_zones_by_priority():
    policy = resolve_zone_policy(make_zones(), SeatingSettings())
    assert policy.ordered_zone_ids == ("z1", "z2", "z3")
    assert policy.normal_zone_ids == ("z1", "z2", "z3")
    assert policy.rank("z2") == 2
    assert policy.rank("missing") == math.inf


def test_default_zone_goes_first():
    policy = resolve_zone_policy(make_zones(), SeatingSettings(default_zone_id="z3"))
    assert policy.ordered_zone_ids == ("z3", "z1", "z2")
    # walk order only; the strategy rank stays on zone.priority
    assert policy.rank("z3") == 3
    assert policy.rank("z1") == 1


def test_zone_priority_list_then_remaining_in_original_order():
    settings = SeatingSettings(zone_priority=("z2", "z4", "missing"), default_zone_id="z1")
    policy = resolve_zone_policy(make_zones(), settings)
    # inactive and unknown ids in the list are skipped
    assert policy.ordered_zone_ids == ("z2", "z3", "z1")
    # listed ids take their list index, the rest keep zone.priority
    assert policy.rank("z2") == 0
    assert policy.rank("z4") == 1
    assert policy.rank("z3") == 3


def test_partition_is_disjoint():
    settings = SeatingSettings(
        overflow_zones=("z2", "z3"),
        emergency_zones=EmergencyZoneSettings(enabled=True, zone_ids=("z3",)),
    )
    policy = resolve_zone_policy(make_zones(), settings)
    assert policy.normal_zone_ids == ("z1",)
    assert policy.overflow_zone_ids == ("z2",)
    assert policy.emergency_zone_ids == ("z3",)
    assert policy.eligible_emergency_zone_ids() == ("z3",)


def test_disabled_emergency_zones_are_not_eligible():
    settings = SeatingSettings(emergency_zones=EmergencyZoneSettings(enabled=False, zone_ids=("z3",)))
    policy = resolve_zone_policy(make_zones(), settings)
    assert policy.emergency_zone_ids == ("z3",)
    assert policy.eligible_emergency_zone_ids() == ()


@pytest.mark.parametrize(
    "booking_date,expected",
    [(SUNDAY, True), (SATURDAY, True), (TUESDAY, False), (None, False)],
)
def test_by_weekday_rule_uses_sunday_based_numbers(booking_date, expected):
    settings = SeatingSettings(
        emergency_zones=EmergencyZoneSettings(enabled=True, zone_ids=("z3",), active_rule="byWeekday", weekdays=(0, 6))
    )
    assert is_emergency_zone_allowed(settings, booking_date) is expected


def test_always_rule_ignores_date():
    settings = SeatingSettings(emergency_zones=EmergencyZoneSettings(enabled=True, active_rule="always"))
    assert is_emergency_zone_allowed(settings, None) is True
    assert is_emergency_zone_allowed(settings, TUESDAY) is True
