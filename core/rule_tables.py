"""
FRMS Rule Tables
================

Total, immutable mappings from rule keys to limits:
- BASE_LIMITS:       (fleet, crew, rest facility, limit type) -> RuleTableEntry
- WINDOW_LIMITS:     (local start window, limit type) -> WindowDutyLimits (short-haul)
- CUMULATIVE_LIMITS: fleet -> rolling window caps

Completeness is checked once at import; a missing key raises
RuleTableIntegrityError instead of falling back at lookup time.
"""

import itertools
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union

from models.data_models import (
    CrewComplement, Fleet, Found, LimitType, LocalStartWindow, NotApplicable,
    RestFacilityClass, RuleTableEntry, SignOnTimeRange, WindowDutyLimits,
)
from models.exceptions import RuleTableIntegrityError
from core import longhaul_rules, shorthaul_rules

logger = logging.getLogger(__name__)

RuleKey = Tuple[Fleet, CrewComplement, RestFacilityClass, LimitType]
WindowKey = Tuple[LocalStartWindow, LimitType]


@dataclass(frozen=True)
class CumulativeLimits:
    """Rolling-window caps for one fleet (hours)"""
    max_flight_time_7_days: Optional[float]
    max_flight_time_period: float
    flight_time_period_days: int
    max_flight_time_365_days: float
    max_duty_time_7_days: float
    max_duty_time_14_days: float
    has_consecutive_duty_limits: bool


CUMULATIVE_LIMITS: Mapping[Fleet, CumulativeLimits] = MappingProxyType({
    Fleet.A320_B737: CumulativeLimits(
        max_flight_time_7_days=None,
        max_flight_time_period=100.0,
        flight_time_period_days=28,
        max_flight_time_365_days=1000.0,
        max_duty_time_7_days=60.0,
        max_duty_time_14_days=100.0,
        has_consecutive_duty_limits=True,
    ),
    Fleet.A380_A330_B787: CumulativeLimits(
        max_flight_time_7_days=30.0,
        max_flight_time_period=100.0,
        flight_time_period_days=30,
        max_flight_time_365_days=900.0,
        max_duty_time_7_days=60.0,
        max_duty_time_14_days=100.0,
        has_consecutive_duty_limits=False,
    ),
})

_FLEET_RULES = {
    Fleet.A320_B737: shorthaul_rules,
    Fleet.A380_A330_B787: longhaul_rules,
}


def all_rule_keys():
    return itertools.product(Fleet, CrewComplement, RestFacilityClass, LimitType)


def _build_base_limits() -> Mapping[RuleKey, RuleTableEntry]:
    table: Dict[RuleKey, RuleTableEntry] = {}
    for fleet, crew, facility, limit_type in all_rule_keys():
        table[(fleet, crew, facility, limit_type)] = _FLEET_RULES[fleet].base_entry(crew, facility, limit_type)
    return MappingProxyType(table)


BASE_LIMITS = _build_base_limits()
WINDOW_LIMITS: Mapping[WindowKey, WindowDutyLimits] = shorthaul_rules.WINDOW_DUTY_LIMITS
SIGN_ON_LIMITS = longhaul_rules.SIGN_ON_LIMITS


def validate_rule_tables(
    base_limits: Mapping[RuleKey, RuleTableEntry] = None,
    window_limits: Mapping[WindowKey, WindowDutyLimits] = None,
    cumulative_limits: Mapping[Fleet, CumulativeLimits] = None,
    sign_on_limits: Mapping = None,
) -> None:
    """
    Check every enumerated key is present and every row is sane.

    Raises:
        RuleTableIntegrityError: listing every problem found
    """
    base_limits = BASE_LIMITS if base_limits is None else base_limits
    window_limits = WINDOW_LIMITS if window_limits is None else window_limits
    cumulative_limits = CUMULATIVE_LIMITS if cumulative_limits is None else cumulative_limits
    sign_on_limits = SIGN_ON_LIMITS if sign_on_limits is None else sign_on_limits

    problems = []
    for key in all_rule_keys():
        entry = base_limits.get(key)
        if entry is None:
            problems.append(f"missing base limits for {_describe(key)}")
        elif entry.max_duty <= 0 or entry.max_flight_time <= 0 or entry.max_sectors < 1:
            problems.append(f"non-positive base limits for {_describe(key)}")
        elif entry.max_flight_time > entry.max_duty:
            problems.append(f"flight time limit exceeds duty limit for {_describe(key)}")

    for window, limit_type in itertools.product(LocalStartWindow, LimitType):
        if (window, limit_type) not in window_limits:
            problems.append(f"missing window limits for {window.value} {limit_type.value}")

    for fleet in Fleet:
        if fleet not in cumulative_limits:
            problems.append(f"missing cumulative limits for {fleet.display_name}")

    for crew, limit_type in itertools.product(CrewComplement, LimitType):
        if not sign_on_limits.get((crew, limit_type)):
            problems.append(f"missing sign-on rows for {crew.description} {limit_type.value}")

    if problems:
        for problem in problems:
            logger.error(f"[rule tables] {problem}")
        raise RuleTableIntegrityError("; ".join(problems))


def _describe(key: RuleKey) -> str:
    fleet, crew, facility, limit_type = key
    return f"{fleet.display_name} {crew.description} {facility.value} {limit_type.value}"


validate_rule_tables()


# ============================================================================
# LOOKUPS
# ============================================================================

def lookup_base_limits(
    fleet: Fleet,
    crew: CrewComplement,
    facility: RestFacilityClass,
    limit_type: LimitType,
) -> RuleTableEntry:
    key = (fleet, crew, facility, limit_type)
    try:
        return BASE_LIMITS[key]
    except KeyError:
        raise RuleTableIntegrityError(f"no base limits for {_describe(key)}") from None


def lookup_window_limits(window: LocalStartWindow, limit_type: LimitType) -> WindowDutyLimits:
    try:
        return WINDOW_LIMITS[(window, limit_type)]
    except KeyError:
        raise RuleTableIntegrityError(
            f"no window limits for {window.value} {limit_type.value}"
        ) from None


def lookup_cumulative_limits(fleet: Fleet) -> CumulativeLimits:
    try:
        return CUMULATIVE_LIMITS[fleet]
    except KeyError:
        raise RuleTableIntegrityError(f"no cumulative limits for {fleet.display_name}") from None


def lookup_sign_on_limits(
    fleet: Fleet,
    crew: CrewComplement,
    limit_type: LimitType,
) -> Union[Found[Tuple[SignOnTimeRange, ...]], NotApplicable]:
    """Complete sign-on/rest-facility table for wide-body crews."""
    if not fleet.is_wide_body:
        return NotApplicable(f"sign-on based limits are not defined for {fleet.display_name}")
    return Found(SIGN_ON_LIMITS[(crew, limit_type)])
