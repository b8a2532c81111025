"""
Minimum Rest
============

Post-duty minimum rest by fleet, and the earliest next sign-on it implies.

Short-haul (FD18.1 / FD28.1):
    duty <= 12 h : MAX(duty, 10)
    duty  > 12 h : 12 + 1.5 x (duty - 12)
    3/4 pilot and duty > 16 h : at least 24

Wide-body (FD10.1):
    2 pilot      : 10 h, or 10 + ceil((duty - 11) x 60 / 15) / 4 when the
                   duty exceeded 11 h or the flight time exceeded 8 h
    3/4 pilot    : 12 h up to 16 h duty, 24 h beyond
    duty > 18 h  : Relevant Sector post-duty rest (27 h, 36 h beyond 20 h)
"""

import math
from datetime import datetime, time, timedelta, tzinfo

from models.data_models import (
    CrewComplement, DutyRecord, Fleet, LimitType, OperationTimeClass,
    RestCalculationBreakdown, localize, to_local,
)
from core import longhaul_rules, shorthaul_rules
from core.parameters import FRMSFramework
from core.time_classifier import duty_time_class


def short_haul_minimum_rest(duty_hours: float, crew: CrewComplement) -> float:
    if duty_hours <= shorthaul_rules.REST_FORMULA_KNEE_HOURS:
        rest = max(duty_hours, shorthaul_rules.MIN_REST_FLOOR_HOURS)
    else:
        excess = duty_hours - shorthaul_rules.REST_FORMULA_KNEE_HOURS
        rest = shorthaul_rules.REST_FORMULA_KNEE_HOURS + shorthaul_rules.REST_FORMULA_MULTIPLIER * excess

    if crew.is_augmented and duty_hours > shorthaul_rules.AUGMENTED_LONG_DUTY_HOURS:
        rest = max(rest, shorthaul_rules.AUGMENTED_LONG_DUTY_REST_HOURS)
    return rest


def two_pilot_extension_rest(duty_hours: float) -> float:
    """10 h plus a quarter hour per started 15 minutes of duty beyond 11 h."""
    excess_minutes = max(0.0, duty_hours - longhaul_rules.TWO_PILOT_PLANNED_DUTY_HOURS) * 60.0
    # Round away float noise before ceil, e.g. 120.00000001 minutes
    increments = math.ceil(round(excess_minutes / longhaul_rules.EXTENSION_INCREMENT_MINUTES, 6))
    return longhaul_rules.TWO_PILOT_BASE_REST_HOURS + increments / 4.0


def long_haul_minimum_rest(
    duty_hours: float,
    flight_hours: float,
    crew: CrewComplement,
    limit_type: LimitType = LimitType.OPERATIONAL,
) -> float:
    if crew is CrewComplement.TWO_PILOT:
        # Flight time over 8 h with duty inside 11 h adds no increments
        if duty_hours > longhaul_rules.TWO_PILOT_PLANNED_DUTY_HOURS:
            return two_pilot_extension_rest(duty_hours)
        if limit_type is LimitType.PLANNING and flight_hours <= longhaul_rules.TWO_PILOT_PLANNED_FLIGHT_HOURS:
            return longhaul_rules.TWO_PILOT_PLANNING_SHORT_FLIGHT_REST_HOURS
        return longhaul_rules.TWO_PILOT_BASE_REST_HOURS

    if duty_hours > longhaul_rules.RELEVANT_SECTOR_DUTY_HOURS:
        if duty_hours > longhaul_rules.RELEVANT_SECTOR_LONG_DUTY_HOURS:
            return longhaul_rules.RELEVANT_SECTOR_LONG_DUTY_POST_REST
        return longhaul_rules.RELEVANT_SECTOR_POST_DUTY_REST
    return longhaul_rules.augmented_post_duty_rest(duty_hours)


def minimum_rest_hours(
    duty: DutyRecord,
    fleet: Fleet,
    limit_type: LimitType = LimitType.OPERATIONAL,
) -> float:
    """Minimum rest after ``duty`` before the next sign-on."""
    if fleet.is_wide_body:
        return long_haul_minimum_rest(duty.duty_time, duty.flight_time, duty.crew_complement, limit_type)
    return short_haul_minimum_rest(duty.duty_time, duty.crew_complement)


def rest_minutes(hours: float) -> int:
    """Rest in whole minutes, halves rounded up (730.5 -> 731)"""
    return math.floor(hours * 60 + 0.5)


def earliest_sign_on(
    previous_duty: DutyRecord,
    minimum_rest: float,
    home_timezone: tzinfo,
    framework: FRMSFramework = None,
) -> datetime:
    """
    Previous sign-off plus the rest rounded to whole minutes. After a
    back-of-clock duty the result is never before 1000 home-base time on
    the day it falls on.
    """
    framework = framework or FRMSFramework()
    earliest = previous_duty.sign_off + timedelta(minutes=rest_minutes(minimum_rest))

    if duty_time_class(previous_duty, framework) is OperationTimeClass.BACK_OF_CLOCK:
        local_day = to_local(earliest, home_timezone).date()
        floor = localize(
            datetime.combine(local_day, time(framework.back_of_clock_next_sign_on_hour, 0)),
            home_timezone,
        )
        if earliest < floor:
            earliest = floor
    return earliest


def short_haul_rest_breakdown(
    previous_duty: DutyRecord,
    minimum_rest: float,
    limit_type: LimitType,
) -> RestCalculationBreakdown:
    duty_hours = previous_duty.duty_time
    if duty_hours <= shorthaul_rules.REST_FORMULA_KNEE_HOURS:
        reduced = (limit_type is LimitType.OPERATIONAL
                   and duty_hours <= shorthaul_rules.REDUCED_REST_MAX_PREVIOUS_DUTY)
        return RestCalculationBreakdown(
            previous_duty_hours=duty_hours,
            formula=f"MAX({duty_hours:.1f}, 10.0) hours",
            minimum_rest_hours=minimum_rest,
            reduced_rest_available=reduced,
            reduced_rest_conditions=shorthaul_rules.REDUCED_REST_CONDITIONS if reduced else None,
        )

    excess = duty_hours - shorthaul_rules.REST_FORMULA_KNEE_HOURS
    return RestCalculationBreakdown(
        previous_duty_hours=duty_hours,
        formula=f"12 + (1.5 x {excess:.1f}) = {minimum_rest:.1f} hours",
        minimum_rest_hours=minimum_rest,
    )
