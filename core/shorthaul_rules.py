"""
Short-Haul Flight & Duty Limits (A320/B737)
===========================================

FRMS Ruleset A320/B737, Revision 4.1 (1 October 2024):
- Chapter 1A Planning limits (FD13, FD18)
- Chapter 1B Operational limits (FD23, FD28)

Static data only; lookups live in core.rule_tables.
"""

from types import MappingProxyType

from models.data_models import (
    CrewComplement, LimitType, LocalStartWindow, RestFacilityClass,
    RuleTableEntry, WindowDutyLimits,
)


# ============================================================================
# TWO PILOT DUTY PERIODS BY LOCAL START TIME (FD13.1 / FD23.1)
# ============================================================================

WINDOW_DUTY_LIMITS = MappingProxyType({
    # Operational: 1-4 / 5 / 6 sectors
    (LocalStartWindow.EARLY, LimitType.OPERATIONAL): WindowDutyLimits(14.0, 13.0, 12.0),
    (LocalStartWindow.AFTERNOON, LimitType.OPERATIONAL): WindowDutyLimits(13.0, 12.0, 11.0),
    (LocalStartWindow.NIGHT, LimitType.OPERATIONAL): WindowDutyLimits(12.0, 12.0, 11.0),
    # Planning: 1-4 / 5-6 sectors
    (LocalStartWindow.EARLY, LimitType.PLANNING): WindowDutyLimits(12.0, 11.0, 11.0),
    (LocalStartWindow.AFTERNOON, LimitType.PLANNING): WindowDutyLimits(11.0, 10.0, 10.0),
    (LocalStartWindow.NIGHT, LimitType.PLANNING): WindowDutyLimits(10.0, 10.0, 10.0),
})

MAX_SECTORS_TWO_PILOT = 6


# ============================================================================
# FLIGHT TIME LIMITS (FD13.3 / FD23.3, FD13.4 / FD23.4)
# ============================================================================

FLIGHT_TIME_DARKNESS_THRESHOLD_HOURS = 7.0
FLIGHT_TIME_DARKNESS_LIMIT = 9.5       # > 7 h of the flight time in darkness
FLIGHT_TIME_MULTI_SECTOR_LIMIT = 10.0  # > 1 sector scheduled
FLIGHT_TIME_SINGLE_SECTOR_LIMIT = 10.5
AUGMENTED_FLIGHT_TIME_LIMIT = 10.5


def two_pilot_max_flight_time(sectors: int, night_hours: float = 0.0) -> float:
    """Identical for planning and operational limits."""
    if night_hours > FLIGHT_TIME_DARKNESS_THRESHOLD_HOURS:
        return FLIGHT_TIME_DARKNESS_LIMIT
    if sectors > 1:
        return FLIGHT_TIME_MULTI_SECTOR_LIMIT
    return FLIGHT_TIME_SINGLE_SECTOR_LIMIT


# ============================================================================
# MINIMUM REST (FD18.1 / FD28.1)
# ============================================================================

MIN_REST_FLOOR_HOURS = 10.0
REST_FORMULA_KNEE_HOURS = 12.0
REST_FORMULA_MULTIPLIER = 1.5
AUGMENTED_LONG_DUTY_HOURS = 16.0
AUGMENTED_LONG_DUTY_REST_HOURS = 24.0

# FD28.2 - operational only
REDUCED_REST_MAX_PREVIOUS_DUTY = 10.0
REDUCED_REST_CONDITIONS = "9 hours if rest includes 2200-0600 local time"


# ============================================================================
# BASE ROWS PER CREW COMPLEMENT
# ============================================================================

_SEPARATE_SCREENED_SEAT = "Separate Screened Seat"
_PASSENGER_COMPARTMENT_SEAT = "Passenger Compartment Seat"

# Night window is the most restrictive two-pilot baseline
_TWO_PILOT = {
    LimitType.OPERATIONAL: RuleTableEntry(
        max_duty=12.0, max_flight_time=10.0, max_sectors=MAX_SECTORS_TWO_PILOT,
        pre_rest=MIN_REST_FLOOR_HOURS, post_rest=MIN_REST_FLOOR_HOURS,
        notes="Night window baseline; limits vary with local start time",
    ),
    LimitType.PLANNING: RuleTableEntry(
        max_duty=10.0, max_flight_time=10.0, max_sectors=MAX_SECTORS_TWO_PILOT,
        pre_rest=MIN_REST_FLOOR_HOURS, post_rest=MIN_REST_FLOOR_HOURS,
        notes="Night window baseline; limits vary with local start time",
    ),
}

_SCREENED_SEAT = RuleTableEntry(
    max_duty=16.0, max_flight_time=AUGMENTED_FLIGHT_TIME_LIMIT, max_sectors=2,
    pre_rest=MIN_REST_FLOOR_HOURS, post_rest=AUGMENTED_LONG_DUTY_REST_HOURS,
    notes="Seat separate from and screened from flight deck and passengers",
    sector_limit="Max 2 sectors if duty exceeds 14 hours",
    rest_facility_label=_SEPARATE_SCREENED_SEAT,
)

_PAX_SEAT = RuleTableEntry(
    max_duty=14.0, max_flight_time=AUGMENTED_FLIGHT_TIME_LIMIT, max_sectors=MAX_SECTORS_TWO_PILOT,
    pre_rest=MIN_REST_FLOOR_HOURS, post_rest=MIN_REST_FLOOR_HOURS,
    notes="Comfortable seat in passenger compartment",
    rest_facility_label=_PASSENGER_COMPARTMENT_SEAT,
)


def base_entry(crew: CrewComplement, facility: RestFacilityClass, limit_type: LimitType) -> RuleTableEntry:
    """Augmented limits are the same for planning and operational."""
    if crew is CrewComplement.TWO_PILOT:
        return _TWO_PILOT[limit_type]
    if crew is CrewComplement.THREE_PILOT:
        return _SCREENED_SEAT if facility is RestFacilityClass.CLASS_1 else _PAX_SEAT
    # Four pilot short-haul is rare; always the screened seat row
    return _SCREENED_SEAT
