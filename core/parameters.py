"""
Configuration & Parameters for FRMS Calculations
================================================

Configuration dataclasses for the flight/duty limitation engine:
- FRMSFramework: regulatory time bands, streak limits and thresholds
- FRMSConfiguration: per-pilot run configuration (fleet, home base, margins)

References: FRMS Ruleset A320/B737 Rev 4.1 (FD12-FD28),
            FRMS Ruleset A380/A330/B787 Rev 4 (FD3, FD10)
"""

from dataclasses import dataclass, field
from typing import Optional

from models.data_models import Fleet, LimitType


@dataclass(frozen=True)
class FRMSFramework:
    """Ruleset definitions shared by both fleets"""

    # Early start - sign-on before 0700 home-base time
    early_start_hour: int = 7

    # Late night operations - FD14.3 / FD24.3
    late_night_start: tuple = (23, 0)
    late_night_end: tuple = (5, 30)
    late_night_min_overlap_minutes: float = 30.0    # strictly more than

    # Back of clock - FD14.4, >= 2 continuous hours between 0100 and 0459
    back_of_clock_start: tuple = (1, 0)
    back_of_clock_end: tuple = (5, 0)
    back_of_clock_min_minutes: float = 120.0
    back_of_clock_next_sign_on_hour: int = 10

    # Consecutive duty limits - FD12.2 (short-haul)
    max_consecutive_duties: int = 6
    max_duty_days_in_11_days: int = 9
    max_consecutive_early_starts: int = 4
    max_consecutive_late_nights: int = 4
    max_late_night_duty_hours_7_nights: float = 40.0

    # Remaining-headroom restriction thresholds (hours)
    near_exhaustion_hours: float = 20.0
    wide_body_7_day_flight_threshold_hours: float = 10.0

    # What-if duty warning, fraction of window limit
    what_if_duty_warning_ratio: float = 0.9

    # Pattern end rest after 3+ consecutive duty days
    pattern_end_min_days: int = 3
    pattern_end_rest_hours: float = 15.0

    # Home base zone when the airport lookup has nothing
    fallback_timezone: str = 'Australia/Sydney'


@dataclass(frozen=True)
class FRMSConfiguration:
    """
    Immutable per-run configuration.

    ``sign_off_minutes_after_in`` defaults to 15 (short-haul) or
    30 (wide-body) when left as None.
    """
    fleet: Fleet = Fleet.A320_B737
    home_base: str = "SYD"
    sign_on_minutes_before_std: int = 60
    sign_off_minutes_after_in: Optional[int] = None
    show_warnings_at_percentage: float = 0.9
    default_limit_type: LimitType = LimitType.OPERATIONAL
    framework: FRMSFramework = field(default_factory=FRMSFramework)

    def __post_init__(self):
        if self.sign_off_minutes_after_in is None:
            trail = 30 if self.fleet.is_wide_body else 15
            object.__setattr__(self, 'sign_off_minutes_after_in', trail)
        if not 0 < self.show_warnings_at_percentage <= 1:
            raise ValueError(
                f"show_warnings_at_percentage must be in (0, 1], got {self.show_warnings_at_percentage}"
            )

    @classmethod
    def short_haul(cls, home_base: str = "SYD", **overrides) -> 'FRMSConfiguration':
        """A320/B737 defaults (28-day flight period, 15 min sign-off)"""
        return cls(fleet=Fleet.A320_B737, home_base=home_base, **overrides)

    @classmethod
    def long_haul(cls, home_base: str = "SYD", **overrides) -> 'FRMSConfiguration':
        """A380/A330/B787 defaults (30-day flight period, 30 min sign-off)"""
        return cls(fleet=Fleet.A380_A330_B787, home_base=home_base, **overrides)
