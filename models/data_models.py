"""
data_models.py - Core Data Structures
======================================

Value objects for flight/duty time limitation (FRMS) calculations:
duty records, flight sectors, cumulative totals, next-duty envelopes,
rule table rows and compliance verdicts.

All structures are immutable and built fresh per calculation call.
"""

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Generic, Optional, Tuple, TypeVar, Union
from enum import Enum
import pytz

from models.exceptions import InvalidDutyRecordError


T = TypeVar('T')
CalendarDate = date


def as_tzinfo(zone: Union[str, tzinfo]) -> tzinfo:
    """Accept an IANA zone name or a tzinfo and return a tzinfo."""
    if isinstance(zone, str):
        return pytz.timezone(zone)
    return zone


def to_local(instant: datetime, zone: Union[str, tzinfo]) -> datetime:
    """Convert an aware instant to wall-clock time in the given zone."""
    if instant.tzinfo is None:
        raise ValueError(f"Naive datetime {instant.isoformat()} has no timezone")
    return instant.astimezone(as_tzinfo(zone))


def localize(naive: datetime, zone: Union[str, tzinfo]) -> datetime:
    """Attach a zone to a naive wall-clock datetime (pytz aware)."""
    tz = as_tzinfo(zone)
    if hasattr(tz, 'localize'):
        return tz.localize(naive)
    return naive.replace(tzinfo=tz)


# ============================================================================
# ENUMS
# ============================================================================

class Fleet(Enum):
    """Fleet rule-set selector"""
    A320_B737 = "a320_b737"              # Short-haul narrow-body (28-day flight period)
    A380_A330_B787 = "a380_a330_b787"    # Long-haul wide-body (30-day flight period)

    @property
    def is_wide_body(self) -> bool:
        return self is Fleet.A380_A330_B787

    @property
    def display_name(self) -> str:
        return "A380/A330/B787" if self.is_wide_body else "A320/B737"


class DutyType(Enum):
    OPERATING = "operating"
    DEADHEADING = "deadheading"    # Positioning as passenger


class CrewComplement(Enum):
    """Pilots rostered for the duty period"""
    TWO_PILOT = 2
    THREE_PILOT = 3
    FOUR_PILOT = 4

    @property
    def is_augmented(self) -> bool:
        return self is not CrewComplement.TWO_PILOT

    @property
    def description(self) -> str:
        return f"{self.value} Pilot"

    @classmethod
    def from_pilot_count(cls, count: int) -> 'CrewComplement':
        """One or two named pilots (or none) is a standard two-pilot crew."""
        if count <= 2:
            return cls.TWO_PILOT
        if count == 3:
            return cls.THREE_PILOT
        return cls.FOUR_PILOT


class RestFacilityClass(Enum):
    """In-flight rest facility available to augmenting crew"""
    NONE = "none"        # Seat in passenger compartment
    CLASS_1 = "class_1"  # Bunk / flat bed separated from flight deck and cabin
    CLASS_2 = "class_2"  # Reclining seat screened from passengers
    MIXED = "mixed"      # One Class 1 and one Class 2 facility


class LimitType(Enum):
    """Planning limits apply when rostering, operational limits on the day"""
    PLANNING = "planning"
    OPERATIONAL = "operational"


class OperationTimeClass(Enum):
    """Time-of-day classification of a completed duty (home-base time)"""
    DAY = "day"
    LATE_NIGHT = "late_night"          # > 30 min inside 2300-0530
    BACK_OF_CLOCK = "back_of_clock"    # >= 2 h continuous inside 0100-0459

    @property
    def is_late_night(self) -> bool:
        """Back-of-clock duties also count towards late-night streaks."""
        return self is not OperationTimeClass.DAY


class LocalStartWindow(Enum):
    """Short-haul local start time windows (HHMM, home base)"""
    EARLY = "0500-1459"
    AFTERNOON = "1500-1959"
    NIGHT = "2000-0459"    # Wraps past midnight

    @property
    def start_hhmm(self) -> int:
        return int(self.value.split('-')[0])

    @property
    def end_hhmm(self) -> int:
        return int(self.value.split('-')[1])

    @property
    def wraps_midnight(self) -> bool:
        return self.end_hhmm < self.start_hhmm

    @property
    def display_name(self) -> str:
        return {
            LocalStartWindow.EARLY: "Early Morning",
            LocalStartWindow.AFTERNOON: "Afternoon",
            LocalStartWindow.NIGHT: "Night",
        }[self]

    def contains(self, hhmm: int) -> bool:
        if self.wraps_midnight:
            return hhmm >= self.start_hhmm or hhmm <= self.end_hhmm
        return self.start_hhmm <= hhmm <= self.end_hhmm


class ComplianceLevel(Enum):
    COMPLIANT = "compliant"
    WARNING = "warning"
    VIOLATION = "violation"


class LateNightRecoveryOption(Enum):
    NO_RESTRICTION = "no_restriction"
    CONTINUE_ON_LATE_NIGHTS = "continue_on_late_nights"
    REQUIRE_24_HOURS_OFF = "require_24_hours_off"


# ============================================================================
# LOOKUP RESULTS
# ============================================================================

@dataclass(frozen=True)
class Found(Generic[T]):
    """A lookup that applies to the current fleet/crew and produced a value"""
    value: T


@dataclass(frozen=True)
class NotApplicable:
    """A lookup that has no meaning for the current fleet/crew"""
    reason: str


# ============================================================================
# DUTY & FLIGHT RECORDS
# ============================================================================

@dataclass(frozen=True)
class DutyRecord:
    """
    One duty period, sign-on to sign-off.

    ``sign_on``/``sign_off`` must be timezone-aware. ``date`` is the
    home-base calendar day of sign-on and is derived when not supplied.
    """
    sign_on: datetime
    sign_off: datetime
    flight_time: float = 0.0      # hours
    night_time: float = 0.0       # hours of flight in darkness
    sector_count: int = 1
    duty_type: DutyType = DutyType.OPERATING
    crew_complement: CrewComplement = CrewComplement.TWO_PILOT
    rest_facility: RestFacilityClass = RestFacilityClass.NONE
    is_international: bool = False
    home_base_timezone: Union[str, tzinfo] = 'Australia/Sydney'
    date: Optional[CalendarDate] = None
    duty_id: Optional[str] = None

    def __post_init__(self):
        if self.sign_on.tzinfo is None or self.sign_off.tzinfo is None:
            raise InvalidDutyRecordError(f"[{self.duty_id}] sign-on/sign-off must be timezone-aware")
        if self.sign_off <= self.sign_on:
            raise InvalidDutyRecordError(
                f"[{self.duty_id}] sign-off {self.sign_off.isoformat()} "
                f"is not after sign-on {self.sign_on.isoformat()}"
            )
        if self.flight_time < 0 or self.night_time < 0:
            raise InvalidDutyRecordError(f"[{self.duty_id}] negative flight/night time")
        # Small tolerance for minute rounding of block times
        if self.flight_time > self.duty_time + 1e-6:
            raise InvalidDutyRecordError(
                f"[{self.duty_id}] flight time {self.flight_time:.2f}h exceeds "
                f"duty span {self.duty_time:.2f}h"
            )
        if self.date is None:
            object.__setattr__(self, 'date', self.local_sign_on.date())

    @property
    def duty_time(self) -> float:
        return (self.sign_off - self.sign_on).total_seconds() / 3600

    @property
    def local_sign_on(self) -> datetime:
        return to_local(self.sign_on, self.home_base_timezone)

    @property
    def local_sign_off(self) -> datetime:
        return to_local(self.sign_off, self.home_base_timezone)

    @property
    def is_deadheading(self) -> bool:
        return self.duty_type is DutyType.DEADHEADING


@dataclass(frozen=True)
class FlightSectorSummary:
    """
    A flown or scheduled sector as exported by the logbook.

    Dates are ``dd/MM/yyyy`` strings and times ``HHMM`` or ``HH:MM`` (UTC),
    kept as text because records arrive unvalidated.
    """
    date: str
    block_time: float = 0.0       # hours
    sim_time: float = 0.0         # hours
    night_time: float = 0.0       # hours
    captain_name: str = ""
    fo_name: str = ""
    so1_name: str = ""
    so2_name: str = ""
    is_positioning: bool = False
    out_time: str = ""
    in_time: str = ""
    scheduled_departure: str = ""
    scheduled_arrival: str = ""
    from_airport: str = ""
    to_airport: str = ""
    aircraft_type: str = ""
    flight_number: str = ""

    @property
    def flight_time(self) -> float:
        """Block time, or simulator time for sim sessions"""
        return self.block_time if self.block_time > 0 else self.sim_time


@dataclass(frozen=True)
class DailyDutySummary:
    """All duties signed on during one home-base calendar day"""
    date: date
    duties: Tuple[DutyRecord, ...]

    @property
    def first_sign_on(self) -> datetime:
        return min(d.sign_on for d in self.duties)

    @property
    def last_sign_off(self) -> datetime:
        return max(d.sign_off for d in self.duties)

    @property
    def duty_time(self) -> float:
        return (self.last_sign_off - self.first_sign_on).total_seconds() / 3600

    @property
    def flight_time(self) -> float:
        return sum(d.flight_time for d in self.duties)

    @property
    def sector_count(self) -> int:
        return sum(d.sector_count for d in self.duties)


# ============================================================================
# CUMULATIVE TOTALS
# ============================================================================

@dataclass(frozen=True)
class CumulativeTotals:
    """Rolling-window totals as of a reference instant (hours / counts)"""
    flight_time_7_days: float = 0.0
    flight_time_28_or_30_days: float = 0.0
    flight_time_365_days: float = 0.0
    duty_time_7_days: float = 0.0
    duty_time_14_days: float = 0.0
    days_off_in_period: int = 0
    consecutive_duties: int = 0
    consecutive_early_starts: int = 0
    consecutive_late_nights: int = 0
    duty_days_in_11_days: int = 0
    flight_time_period_days: int = 28


# ============================================================================
# RULE TABLE ROWS
# ============================================================================

@dataclass(frozen=True)
class RuleTableEntry:
    """Base next-duty limits for one (fleet, crew, facility, limit type) key"""
    max_duty: float
    max_flight_time: float
    max_sectors: int
    pre_rest: float
    post_rest: float
    notes: str = ""
    sector_limit: Optional[str] = None
    rest_facility_label: Optional[str] = None


@dataclass(frozen=True)
class WindowDutyLimits:
    """Short-haul two-pilot duty limits for one local start window"""
    max_duty_1_to_4_sectors: float
    max_duty_5_sectors: float
    max_duty_6_sectors: float

    def max_duty_for_sectors(self, sectors: int) -> Optional[float]:
        """None when the sector count is not permitted at all."""
        if 1 <= sectors <= 4:
            return self.max_duty_1_to_4_sectors
        if sectors == 5:
            return self.max_duty_5_sectors
        if sectors == 6:
            return self.max_duty_6_sectors
        return None


@dataclass(frozen=True)
class SignOnTimeRange:
    """One row of the wide-body sign-on / rest-facility limit table"""
    time_range: str
    max_duty_period: float
    max_flight_time: float
    pre_rest_required: float
    post_rest_required: float
    max_duty_period_operational: Optional[float] = None
    max_flight_time_operational: Optional[float] = None
    notes: Optional[str] = None
    sector_limit: Optional[str] = None
    rest_facility_label: Optional[str] = None


# ============================================================================
# NEXT DUTY ENVELOPES
# ============================================================================

@dataclass(frozen=True)
class MinimumBaseTurnaroundTime:
    """Rest required at home base after a wide-body trip"""
    days_away: int
    credited_flight_hours: float
    local_nights_required: int
    min_hours: Optional[float]
    reason: str


@dataclass(frozen=True)
class MaximumNextDuty:
    max_duty_period: float
    max_flight_time: float
    max_sectors: int
    minimum_rest: float
    earliest_sign_on: Optional[datetime]
    restrictions: Tuple[str, ...]
    limit_type: LimitType
    sign_on_based_limits: Optional[Tuple[SignOnTimeRange, ...]] = None
    mbtt: Optional[MinimumBaseTurnaroundTime] = None


@dataclass(frozen=True)
class DutyTimeWindow:
    """A short-haul start window with the limits that apply inside it"""
    local_start_window: LocalStartWindow
    limit_type: LimitType
    limits: WindowDutyLimits
    max_flight_time: float
    is_currently_available: bool

    @property
    def display_name(self) -> str:
        return self.local_start_window.display_name

    def max_duty_for_sectors(self, sectors: int) -> Optional[float]:
        return self.limits.max_duty_for_sectors(sectors)


@dataclass(frozen=True)
class RestCalculationBreakdown:
    previous_duty_hours: float
    formula: str
    minimum_rest_hours: float
    reduced_rest_available: bool = False
    reduced_rest_conditions: Optional[str] = None


@dataclass(frozen=True)
class BackOfClockRestriction:
    earliest_sign_on: datetime
    reason: str
    applies_to: str = "Australia only"


@dataclass(frozen=True)
class LateNightStatus:
    consecutive_late_nights: int
    max_consecutive_late_nights: int
    duty_hours_in_7_nights: float
    max_duty_hours_in_7_nights: float
    recovery_option: LateNightRecoveryOption


@dataclass(frozen=True)
class ConsecutiveDutyStatus:
    consecutive_duties: int
    max_consecutive_duties: int
    duty_days_in_11_days: int
    max_duty_days_in_11_days: int
    consecutive_early_starts: int
    max_consecutive_early_starts: int

    @property
    def has_active_restrictions(self) -> bool:
        return (self.consecutive_duties >= self.max_consecutive_duties - 1
                or self.duty_days_in_11_days >= self.max_duty_days_in_11_days - 1
                or self.consecutive_early_starts >= self.max_consecutive_early_starts - 1)


@dataclass(frozen=True)
class PatternEndRequirement:
    pattern_days: int
    minimum_rest_hours: float
    reason: str


# ============================================================================
# COMPLIANCE VERDICTS
# ============================================================================

@dataclass(frozen=True)
class ComplianceStatus:
    """Compliant, or a warning/violation carrying human-readable messages"""
    level: ComplianceLevel
    messages: Tuple[str, ...] = ()

    @classmethod
    def compliant(cls) -> 'ComplianceStatus':
        return cls(ComplianceLevel.COMPLIANT)

    @classmethod
    def warning(cls, *messages: str) -> 'ComplianceStatus':
        return cls(ComplianceLevel.WARNING, tuple(messages))

    @classmethod
    def violation(cls, *messages: str) -> 'ComplianceStatus':
        return cls(ComplianceLevel.VIOLATION, tuple(messages))

    @property
    def is_compliant(self) -> bool:
        return self.level is ComplianceLevel.COMPLIANT

    @property
    def message(self) -> str:
        return "; ".join(self.messages)


@dataclass(frozen=True)
class ShortHaulNextDutyLimits:
    early_window: DutyTimeWindow
    afternoon_window: DutyTimeWindow
    night_window: DutyTimeWindow
    rest_calculation: RestCalculationBreakdown
    earliest_sign_on: datetime
    consecutive_duty_status: ConsecutiveDutyStatus
    overall_status: ComplianceStatus
    back_of_clock_restriction: Optional[BackOfClockRestriction] = None
    late_night_status: Optional[LateNightStatus] = None
    pattern_end_requirement: Optional[PatternEndRequirement] = None

    @property
    def windows(self) -> Tuple[DutyTimeWindow, ...]:
        return (self.early_window, self.afternoon_window, self.night_window)

    def window_for(self, start_window: LocalStartWindow) -> DutyTimeWindow:
        return {w.local_start_window: w for w in self.windows}[start_window]


@dataclass(frozen=True)
class WhatIfScenario:
    """A hypothetical next duty"""
    proposed_sign_on: datetime
    estimated_duty_hours: float
    estimated_flight_hours: float
    estimated_sectors: int = 1
    crew_complement: CrewComplement = CrewComplement.TWO_PILOT
    rest_facility: RestFacilityClass = RestFacilityClass.NONE
    estimated_night_hours: float = 0.0


@dataclass(frozen=True)
class WhatIfResult:
    scenario: WhatIfScenario
    is_compliant: bool
    status: ComplianceStatus
    violations: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    applicable_window: Optional[DutyTimeWindow] = None
