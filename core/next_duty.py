"""
Maximum Next Duty
=================

Permitted envelope for the next duty: base limits from the rule tables,
minimum rest and earliest sign-on after the previous duty, streak and
back-of-clock restrictions, and remaining headroom under the rolling caps.

Also builds the short-haul next-duty breakdown (start windows, rest
calculation, late-night and consecutive-duty status).
"""

import logging
from datetime import datetime, timedelta, tzinfo
from typing import List, Optional, Sequence, Tuple, Union

import pytz

from models.data_models import (
    BackOfClockRestriction, ComplianceStatus, ConsecutiveDutyStatus,
    CrewComplement, CumulativeTotals, DutyRecord, DutyTimeWindow, Fleet, Found,
    LateNightRecoveryOption, LateNightStatus, LimitType, LocalStartWindow,
    MaximumNextDuty, NotApplicable, OperationTimeClass, PatternEndRequirement,
    RestCalculationBreakdown, RestFacilityClass, ShortHaulNextDutyLimits, to_local,
)
from core import shorthaul_rules
from core.parameters import FRMSFramework
from core.rest import earliest_sign_on, minimum_rest_hours, short_haul_rest_breakdown
from core.rule_tables import (
    lookup_base_limits, lookup_cumulative_limits, lookup_sign_on_limits, lookup_window_limits,
)
from core.time_classifier import duty_time_class, local_hhmm

logger = logging.getLogger(__name__)

# Minimum rest reported when there is no previous duty
DEFAULT_MINIMUM_REST_HOURS = 12.0


class MaximumNextDutyCalculator:
    """Next-duty envelope for one fleet"""

    def __init__(self, fleet: Fleet, home_timezone: tzinfo, framework: FRMSFramework = None):
        self.fleet = fleet
        self.home_timezone = home_timezone
        self.framework = framework or FRMSFramework()
        self.limits = lookup_cumulative_limits(fleet)

    # ------------------------------------------------------------------
    # Restrictions
    # ------------------------------------------------------------------

    def streak_restrictions(self, totals: CumulativeTotals) -> List[str]:
        """Short-haul consecutive-duty limits (FD12.2, FD14.3)"""
        if not self.limits.has_consecutive_duty_limits:
            return []
        fw = self.framework
        restrictions = []
        if totals.consecutive_duties >= fw.max_consecutive_duties:
            restrictions.append(f"Maximum {fw.max_consecutive_duties} consecutive duty days reached")
        if totals.duty_days_in_11_days >= fw.max_duty_days_in_11_days:
            restrictions.append(f"Maximum {fw.max_duty_days_in_11_days} duty days in 11-day period reached")
        if totals.consecutive_early_starts >= fw.max_consecutive_early_starts:
            restrictions.append(f"Maximum {fw.max_consecutive_early_starts} consecutive early starts reached")
        if totals.consecutive_late_nights >= fw.max_consecutive_late_nights:
            restrictions.append("Late night operations limit approaching")
        return restrictions

    def headroom(self, totals: CumulativeTotals) -> Tuple[float, float, List[str]]:
        """
        Remaining flight and duty time under the rolling caps.

        Returns:
            (flight headroom, duty headroom, restriction messages)
        """
        fw = self.framework
        limits = self.limits
        restrictions = []

        flight_remaining = [
            limits.max_flight_time_period - totals.flight_time_28_or_30_days,
            limits.max_flight_time_365_days - totals.flight_time_365_days,
        ]
        if limits.max_flight_time_7_days is not None:
            remaining_7 = limits.max_flight_time_7_days - totals.flight_time_7_days
            flight_remaining.append(remaining_7)
            if remaining_7 < fw.wide_body_7_day_flight_threshold_hours:
                restrictions.append("Limited by 7-day flight time limit")

        duty_7 = limits.max_duty_time_7_days - totals.duty_time_7_days
        duty_14 = limits.max_duty_time_14_days - totals.duty_time_14_days

        if flight_remaining[0] < fw.near_exhaustion_hours:
            restrictions.append(f"Limited by {limits.flight_time_period_days}-day flight time limit")
        if duty_7 < fw.near_exhaustion_hours:
            restrictions.append("Limited by 7-day duty time limit")
        if duty_14 < fw.near_exhaustion_hours:
            restrictions.append("Limited by 14-day duty time limit")

        return min(flight_remaining), min(duty_7, duty_14), restrictions

    # ------------------------------------------------------------------
    # Envelope
    # ------------------------------------------------------------------

    def calculate(
        self,
        previous_duty: Optional[DutyRecord],
        totals: CumulativeTotals,
        limit_type: LimitType,
        crew: CrewComplement,
        facility: RestFacilityClass = RestFacilityClass.NONE,
    ) -> MaximumNextDuty:
        base = lookup_base_limits(self.fleet, crew, facility, limit_type)
        restrictions = []
        minimum_rest = DEFAULT_MINIMUM_REST_HOURS
        earliest = None

        if previous_duty is not None:
            minimum_rest = minimum_rest_hours(previous_duty, self.fleet, limit_type)
            earliest = earliest_sign_on(previous_duty, minimum_rest, self.home_timezone, self.framework)

            if previous_duty.duty_time > 12:
                restrictions.append("Previous duty exceeded 12 hours")
            if (self.fleet.is_wide_body
                    and duty_time_class(previous_duty, self.framework) is OperationTimeClass.BACK_OF_CLOCK):
                restrictions.append("Back-of-clock operation: next duty in Australia limited to after 1000LT")

        restrictions.extend(self.streak_restrictions(totals))

        flight_headroom, duty_headroom, headroom_notes = self.headroom(totals)
        restrictions.extend(headroom_notes)

        sign_on_rows = lookup_sign_on_limits(self.fleet, crew, limit_type)

        return MaximumNextDuty(
            max_duty_period=max(0.0, min(base.max_duty, duty_headroom)),
            max_flight_time=max(0.0, min(base.max_flight_time, flight_headroom)),
            max_sectors=base.max_sectors,
            minimum_rest=minimum_rest,
            earliest_sign_on=earliest,
            restrictions=tuple(restrictions),
            limit_type=limit_type,
            sign_on_based_limits=sign_on_rows.value if isinstance(sign_on_rows, Found) else None,
        )

    # ------------------------------------------------------------------
    # Short-haul breakdown
    # ------------------------------------------------------------------

    def duty_window(self, window: LocalStartWindow, limit_type: LimitType,
                    earliest: datetime) -> DutyTimeWindow:
        """Window limits; available when the earliest sign-on falls inside it"""
        return DutyTimeWindow(
            local_start_window=window,
            limit_type=limit_type,
            limits=lookup_window_limits(window, limit_type),
            max_flight_time=shorthaul_rules.two_pilot_max_flight_time(sectors=1),
            is_currently_available=window.contains(local_hhmm(earliest, self.home_timezone)),
        )

    def late_night_status(
        self,
        totals: CumulativeTotals,
        duties: Sequence[DutyRecord],
        as_of: datetime,
    ) -> Optional[LateNightStatus]:
        if totals.consecutive_late_nights <= 0:
            return None
        fw = self.framework
        today = to_local(as_of, self.home_timezone).date()
        start = today - timedelta(days=6)
        hours = sum(
            d.duty_time for d in duties
            if start <= d.date <= today and duty_time_class(d, fw).is_late_night
        )
        if totals.consecutive_late_nights >= fw.max_consecutive_late_nights:
            recovery = LateNightRecoveryOption.REQUIRE_24_HOURS_OFF
        elif totals.consecutive_late_nights >= 2:
            recovery = LateNightRecoveryOption.CONTINUE_ON_LATE_NIGHTS
        else:
            recovery = LateNightRecoveryOption.NO_RESTRICTION
        return LateNightStatus(
            consecutive_late_nights=totals.consecutive_late_nights,
            max_consecutive_late_nights=fw.max_consecutive_late_nights,
            duty_hours_in_7_nights=hours,
            max_duty_hours_in_7_nights=fw.max_late_night_duty_hours_7_nights,
            recovery_option=recovery,
        )

    def short_haul_limits(
        self,
        previous_duty: Optional[DutyRecord],
        totals: CumulativeTotals,
        limit_type: LimitType,
        duties: Sequence[DutyRecord] = (),
        as_of: Optional[datetime] = None,
    ) -> Union[Found[ShortHaulNextDutyLimits], NotApplicable]:
        if self.fleet.is_wide_body:
            return NotApplicable(f"short-haul next duty limits do not apply to {self.fleet.display_name}")

        fw = self.framework
        as_of = as_of or datetime.now(pytz.utc)
        back_of_clock = None

        if previous_duty is not None:
            rest = minimum_rest_hours(previous_duty, self.fleet, limit_type)
            earliest = earliest_sign_on(previous_duty, rest, self.home_timezone, fw)
            breakdown = short_haul_rest_breakdown(previous_duty, rest, limit_type)
            if duty_time_class(previous_duty, fw) is OperationTimeClass.BACK_OF_CLOCK:
                back_of_clock = BackOfClockRestriction(
                    earliest_sign_on=earliest,
                    reason="Previous duty included >= 2 hours between 0100-0459",
                )
        else:
            earliest = as_of
            breakdown = RestCalculationBreakdown(
                previous_duty_hours=0.0, formula="No previous duty", minimum_rest_hours=0.0,
            )

        consecutive = ConsecutiveDutyStatus(
            consecutive_duties=totals.consecutive_duties,
            max_consecutive_duties=fw.max_consecutive_duties,
            duty_days_in_11_days=totals.duty_days_in_11_days,
            max_duty_days_in_11_days=fw.max_duty_days_in_11_days,
            consecutive_early_starts=totals.consecutive_early_starts,
            max_consecutive_early_starts=fw.max_consecutive_early_starts,
        )

        pattern_end = None
        if totals.consecutive_duties >= fw.pattern_end_min_days:
            pattern_end = PatternEndRequirement(
                pattern_days=totals.consecutive_duties,
                minimum_rest_hours=fw.pattern_end_rest_hours,
                reason="3-4 day pattern",
            )

        warnings = []
        if consecutive.has_active_restrictions:
            warnings.append("Consecutive duty limits approaching")
        if back_of_clock is not None:
            warnings.append("Back-of-clock restrictions apply")
        status = ComplianceStatus.warning(*warnings) if warnings else ComplianceStatus.compliant()

        return Found(ShortHaulNextDutyLimits(
            early_window=self.duty_window(LocalStartWindow.EARLY, limit_type, earliest),
            afternoon_window=self.duty_window(LocalStartWindow.AFTERNOON, limit_type, earliest),
            night_window=self.duty_window(LocalStartWindow.NIGHT, limit_type, earliest),
            rest_calculation=breakdown,
            earliest_sign_on=earliest,
            consecutive_duty_status=consecutive,
            overall_status=status,
            back_of_clock_restriction=back_of_clock,
            late_night_status=self.late_night_status(totals, duties, as_of),
            pattern_end_requirement=pattern_end,
        ))
