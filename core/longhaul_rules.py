"""
Long-Haul Flight & Duty Limits (A380/A330/B787)
===============================================

FRMS Ruleset A380/A330/B787, Revision 4 (26 June 2023):
- Chapter 1A Planning limits (FD3.1), sign-on window rows
- Chapter 1B Operational limits (FD10.1), rest facility rows
- Relevant Sector disruption rest (FD3.4 / FD10.1)

Static data only; lookups live in core.rule_tables.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Tuple

from models.data_models import (
    CrewComplement, LimitType, RestFacilityClass, RuleTableEntry, SignOnTimeRange,
)


# ============================================================================
# FD10.1 OPERATIONAL DUTY LIMITS
# ============================================================================

@dataclass(frozen=True)
class LongHaulDutyLimit:
    """One FD10.1 row; discretion is the operational extension, if any"""
    crew: CrewComplement
    facility_label: Optional[str]
    planned: float
    discretion: Optional[float] = None
    flight_time: Optional[float] = None
    flight_time_note: Optional[str] = None
    requirements: Optional[str] = None


SEAT_IN_PASSENGER_COMPARTMENT = "Seat in Passenger Compartment"
CLASS_2_REST = "Class 2 Rest"
CLASS_1_REST = "Class 1 Rest"
TWO_CLASS_2_REST = "2 x Class 2 Rest"
ONE_CLASS_1_ONE_CLASS_2_REST = "1 x Class 1 & 1 x Class 2 Rest"
TWO_CLASS_1_REST = "2 x Class 1 Rest"
TWO_CLASS_1_REST_RELEVANT_SECTOR = "2 x Class 1 Rest (>18 hrs per FD3.4)"

_FLIGHT_DECK_NOTE = "Max 8 hrs continuous & 14 hrs total on flight deck"
_ACTIVE_DUTY_NOTE = "8 consecutive hrs of active duty"
_SECTORS_OVER_14 = "Max 2 sectors if Scheduled Duty > 14 hrs"

OPERATIONAL_DUTY_LIMITS: Tuple[LongHaulDutyLimit, ...] = (
    LongHaulDutyLimit(CrewComplement.TWO_PILOT, None, 11.0, 12.0, 9.5,
                      requirements="If more than 7 hours of flight time conducted in darkness"),
    LongHaulDutyLimit(CrewComplement.TWO_PILOT, None, 11.0, 12.0, 10.0,
                      requirements="If greater than 1 sector is rostered"),
    LongHaulDutyLimit(CrewComplement.TWO_PILOT, None, 11.0, 12.0, 10.5),
    LongHaulDutyLimit(CrewComplement.THREE_PILOT, SEAT_IN_PASSENGER_COMPARTMENT, 14.0,
                      flight_time_note=_ACTIVE_DUTY_NOTE),
    LongHaulDutyLimit(CrewComplement.THREE_PILOT, CLASS_2_REST, 16.0,
                      flight_time_note=_FLIGHT_DECK_NOTE, requirements=_SECTORS_OVER_14),
    LongHaulDutyLimit(CrewComplement.THREE_PILOT, CLASS_1_REST, 18.0,
                      flight_time_note=_FLIGHT_DECK_NOTE, requirements=_SECTORS_OVER_14),
    LongHaulDutyLimit(CrewComplement.FOUR_PILOT, SEAT_IN_PASSENGER_COMPARTMENT, 14.0,
                      flight_time_note=_ACTIVE_DUTY_NOTE),
    LongHaulDutyLimit(CrewComplement.FOUR_PILOT, TWO_CLASS_2_REST, 16.0,
                      flight_time_note=_FLIGHT_DECK_NOTE, requirements=_SECTORS_OVER_14),
    LongHaulDutyLimit(CrewComplement.FOUR_PILOT, ONE_CLASS_1_ONE_CLASS_2_REST, 20.0,
                      flight_time_note=_FLIGHT_DECK_NOTE, requirements=_SECTORS_OVER_14),
    LongHaulDutyLimit(CrewComplement.FOUR_PILOT, TWO_CLASS_1_REST, 20.0,
                      flight_time_note=_FLIGHT_DECK_NOTE, requirements=_SECTORS_OVER_14),
    LongHaulDutyLimit(CrewComplement.FOUR_PILOT, TWO_CLASS_1_REST_RELEVANT_SECTOR, 21.0,
                      flight_time_note=_FLIGHT_DECK_NOTE,
                      requirements="A380 & B787 only. >18 hours as per FD3.4"),
)

# Augmented rows carry no flight time limit, only the 14 h flight deck cap
AUGMENTED_FLIGHT_DECK_HOURS = 14.0

FACILITY_LABELS = MappingProxyType({
    (CrewComplement.THREE_PILOT, RestFacilityClass.NONE): SEAT_IN_PASSENGER_COMPARTMENT,
    (CrewComplement.THREE_PILOT, RestFacilityClass.CLASS_2): CLASS_2_REST,
    (CrewComplement.THREE_PILOT, RestFacilityClass.CLASS_1): CLASS_1_REST,
    (CrewComplement.THREE_PILOT, RestFacilityClass.MIXED): CLASS_1_REST,
    (CrewComplement.FOUR_PILOT, RestFacilityClass.NONE): SEAT_IN_PASSENGER_COMPARTMENT,
    (CrewComplement.FOUR_PILOT, RestFacilityClass.CLASS_2): TWO_CLASS_2_REST,
    (CrewComplement.FOUR_PILOT, RestFacilityClass.MIXED): ONE_CLASS_1_ONE_CLASS_2_REST,
    (CrewComplement.FOUR_PILOT, RestFacilityClass.CLASS_1): TWO_CLASS_1_REST,
})


# ============================================================================
# FD10.1 REST
# ============================================================================

TWO_PILOT_PRE_DUTY_REST = 10.0
AUGMENTED_PRE_DUTY_REST = 12.0

# 2 pilot post-duty: <= 11 h duty -> 10 h; extension -> formula
TWO_PILOT_PLANNED_DUTY_HOURS = 11.0
TWO_PILOT_PLANNED_FLIGHT_HOURS = 8.0
TWO_PILOT_BASE_REST_HOURS = 10.0
TWO_PILOT_PLANNING_SHORT_FLIGHT_REST_HOURS = 11.0
EXTENSION_INCREMENT_MINUTES = 15.0

# 3/4 pilot post-duty bands: (max duty hours, rest hours)
AUGMENTED_POST_DUTY_REST = ((16.0, 12.0), (None, 24.0))

# Relevant Sector (planned duty > 18 h)
RELEVANT_SECTOR_DUTY_HOURS = 18.0
RELEVANT_SECTOR_PRE_DUTY_REST = 22.0
RELEVANT_SECTOR_POST_DUTY_REST = 27.0             # Captain OR First Officer
RELEVANT_SECTOR_LONG_DUTY_HOURS = 20.0
RELEVANT_SECTOR_LONG_DUTY_POST_REST = 36.0        # and a duty period > 20 h


def augmented_post_duty_rest(duty_hours: float) -> float:
    for max_duty, rest in AUGMENTED_POST_DUTY_REST:
        if max_duty is None or duty_hours <= max_duty:
            return rest
    return AUGMENTED_POST_DUTY_REST[-1][1]


# ============================================================================
# BASE ROWS PER (CREW, FACILITY, LIMIT TYPE)
# ============================================================================

def _two_pilot_baseline() -> LongHaulDutyLimit:
    # The row with no requirement is the general case
    return next(row for row in OPERATIONAL_DUTY_LIMITS
                if row.crew is CrewComplement.TWO_PILOT and row.requirements is None)


def base_entry(crew: CrewComplement, facility: RestFacilityClass, limit_type: LimitType) -> RuleTableEntry:
    """Build the FD10.1 row for a key; planning uses the planned column."""
    if crew is CrewComplement.TWO_PILOT:
        row = _two_pilot_baseline()
        max_duty = row.planned if limit_type is LimitType.PLANNING else (row.discretion or row.planned)
        return RuleTableEntry(
            max_duty=max_duty,
            max_flight_time=row.flight_time,
            max_sectors=4,
            pre_rest=TWO_PILOT_PRE_DUTY_REST,
            post_rest=TWO_PILOT_BASE_REST_HOURS,
            notes="Max Flight Time: 10.5 hrs, 9.5 hrs if > 7 hrs darkness, 10 hrs if > 1 sector",
        )

    label = FACILITY_LABELS[(crew, facility)]
    row = next(r for r in OPERATIONAL_DUTY_LIMITS if r.crew is crew and r.facility_label == label)
    return RuleTableEntry(
        max_duty=row.planned,
        max_flight_time=row.flight_time or AUGMENTED_FLIGHT_DECK_HOURS,
        max_sectors=2,
        pre_rest=AUGMENTED_PRE_DUTY_REST,
        post_rest=augmented_post_duty_rest(row.planned),
        notes=row.flight_time_note or "",
        sector_limit=row.requirements,
        rest_facility_label=label,
    )


# ============================================================================
# SIGN-ON TIME BASED ROWS (complete tables for display)
# ============================================================================

_DAY_PATTERN = "1 DAY PATTERN ONLY, maximum 4 sectors"
_ANY_SECTOR_OVER_6 = "1 if any sector flight time > 6, otherwise 4"


def _planning_two_pilot_row(window: str, duty: float, flight: float, sector_limit: str) -> SignOnTimeRange:
    rest = 11.0 if flight < 8.5 else 22.0
    return SignOnTimeRange(
        time_range=window,
        max_duty_period=duty,
        max_flight_time=flight,
        pre_rest_required=rest,
        post_rest_required=rest,
        notes="Day Pattern Only" if sector_limit == _DAY_PATTERN else None,
        sector_limit=sector_limit,
    )


SIGN_ON_LIMITS = MappingProxyType({
    (CrewComplement.TWO_PILOT, LimitType.OPERATIONAL): (
        SignOnTimeRange(
            time_range="All sign-on times",
            max_duty_period=11.0, max_duty_period_operational=12.0,
            max_flight_time=10.5, max_flight_time_operational=10.5,
            pre_rest_required=10.0, post_rest_required=10.0,
            notes="Max Flight Time: 10.5 hrs\n9.5hrs if > 7 hrs darkness\n10 hrs if >1 sector",
        ),
    ),
    (CrewComplement.TWO_PILOT, LimitType.PLANNING): (
        _planning_two_pilot_row("0500-0759", 11.0, 8.0, _ANY_SECTOR_OVER_6),
        _planning_two_pilot_row("0800-1359", 11.0, 8.5, _ANY_SECTOR_OVER_6),
        _planning_two_pilot_row("0800-1359", 12.0, 9.5, _DAY_PATTERN),
        _planning_two_pilot_row("1400-1559", 11.0, 8.5, _ANY_SECTOR_OVER_6),
        _planning_two_pilot_row(
            "1600-0459", 10.0, 8.0,
            "1 if any sector flight time > 6; 2 if sign-on 2100-0300 LT; "
            "2 if any sector flight time > 2, otherwise 3",
        ),
    ),
    (CrewComplement.THREE_PILOT, LimitType.OPERATIONAL): (
        SignOnTimeRange(SEAT_IN_PASSENGER_COMPARTMENT, 14.0, 8.0, 12.0, 12.0,
                        notes="8 consecutive hrs of active duty in flight deck",
                        rest_facility_label=SEAT_IN_PASSENGER_COMPARTMENT),
        SignOnTimeRange(CLASS_2_REST, 16.0, 14.0, 12.0, 12.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit=_SECTORS_OVER_14, rest_facility_label=CLASS_2_REST),
        SignOnTimeRange(CLASS_1_REST, 18.0, 14.0, 12.0, 24.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit=_SECTORS_OVER_14, rest_facility_label=CLASS_1_REST),
    ),
    (CrewComplement.THREE_PILOT, LimitType.PLANNING): (
        SignOnTimeRange(CLASS_2_REST, 12.0, 8.5, 12.0, 12.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit="3 if duty period > 11, otherwise maximum 4",
                        rest_facility_label=CLASS_2_REST),
        SignOnTimeRange(CLASS_1_REST, 14.0, 12.5, 12.0, 18.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit="3 if duty period > 11, otherwise maximum 4",
                        rest_facility_label=CLASS_1_REST),
    ),
    (CrewComplement.FOUR_PILOT, LimitType.OPERATIONAL): (
        SignOnTimeRange("Seats in Passenger Compartment", 14.0, 8.0, 12.0, 12.0,
                        notes="8 consecutive hrs of active duty in flight deck",
                        rest_facility_label=SEAT_IN_PASSENGER_COMPARTMENT),
        SignOnTimeRange(TWO_CLASS_2_REST, 16.0, 14.0, 12.0, 12.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit=_SECTORS_OVER_14, rest_facility_label=TWO_CLASS_2_REST),
        SignOnTimeRange(ONE_CLASS_1_ONE_CLASS_2_REST, 20.0, 14.0, 12.0, 24.0,
                        notes=_FLIGHT_DECK_NOTE + ". Priority higher class for landing crew.",
                        sector_limit=_SECTORS_OVER_14,
                        rest_facility_label=ONE_CLASS_1_ONE_CLASS_2_REST),
        SignOnTimeRange(TWO_CLASS_1_REST, 20.0, 14.0, 12.0, 24.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit=_SECTORS_OVER_14, rest_facility_label=TWO_CLASS_1_REST),
        SignOnTimeRange(TWO_CLASS_1_REST_RELEVANT_SECTOR, 21.0, 14.0,
                        RELEVANT_SECTOR_PRE_DUTY_REST, RELEVANT_SECTOR_POST_DUTY_REST,
                        notes="A380 & B787 only. Relevant Sector disruption limits apply.",
                        rest_facility_label=TWO_CLASS_1_REST_RELEVANT_SECTOR),
    ),
    (CrewComplement.FOUR_PILOT, LimitType.PLANNING): (
        SignOnTimeRange(TWO_CLASS_2_REST, 16.0, 14.0, 12.0, 12.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit="<= 2 rostered sectors if duty period was scheduled to exceed 14 hrs",
                        rest_facility_label=TWO_CLASS_2_REST),
        SignOnTimeRange(ONE_CLASS_1_ONE_CLASS_2_REST, 17.5, 14.0, 22.0, 22.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit="<= 2 rostered sectors if duty period was scheduled to exceed 14 hrs",
                        rest_facility_label=ONE_CLASS_1_ONE_CLASS_2_REST),
        SignOnTimeRange(TWO_CLASS_1_REST, 20.0, 14.0, 22.0, 22.0, notes=_FLIGHT_DECK_NOTE,
                        sector_limit="1 rostered sector if duty period was scheduled to exceed 16 hours",
                        rest_facility_label=TWO_CLASS_1_REST),
    ),
})


# ============================================================================
# MINIMUM BASE TURNAROUND TIME
# ============================================================================

# (min days away, max days away, local nights); one day away is 12 hours instead
MBTT_ONE_DAY_HOURS = 12.0
MBTT_DAYS_AWAY_TIERS = (
    (2, 4, 1),
    (5, 8, 2),
    (9, 12, 3),
    (13, None, 4),
)

# (credited hours strictly above, local nights), most demanding first
MBTT_CREDITED_HOURS_TIERS = (
    (60.0, 4),
    (40.0, 3),
    (20.0, 2),
)

MBTT_LONG_DUTY_HOURS = 18.0
