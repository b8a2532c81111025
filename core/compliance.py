"""
FRMS Compliance Validation
==========================

Checks proposed and hypothetical duties against the rolling flight/duty
caps, minimum rest and (short-haul) start-window and streak limits.

References: FRMS Ruleset A320/B737 Rev 4.1 (FD12-FD28),
            FRMS Ruleset A380/A330/B787 Rev 4 (FD3, FD10)
"""

import logging
from datetime import tzinfo
from typing import Dict, List, Optional

from models.data_models import (
    ComplianceStatus, CumulativeTotals, DutyRecord, DutyTimeWindow, LimitType,
    WhatIfResult, WhatIfScenario, to_local,
)
from core import shorthaul_rules
from core.parameters import FRMSConfiguration
from core.rest import earliest_sign_on, minimum_rest_hours, rest_minutes
from core.rule_tables import lookup_base_limits, lookup_cumulative_limits, lookup_window_limits
from core.time_classifier import classify_sign_on_window

logger = logging.getLogger(__name__)

EARLIEST_SIGN_ON_FORMAT = "%d %b %H%M"


class FRMSComplianceChecker:
    """Validate duties against the fleet's FRMS limits"""

    def __init__(self, configuration: FRMSConfiguration, home_timezone: tzinfo):
        self.configuration = configuration
        self.framework = configuration.framework
        self.fleet = configuration.fleet
        self.home_timezone = home_timezone
        self.limits = lookup_cumulative_limits(configuration.fleet)

    # ------------------------------------------------------------------
    # Proposed duty
    # ------------------------------------------------------------------

    def check_compliance(
        self,
        proposed_duty: DutyRecord,
        previous_duty: Optional[DutyRecord],
        totals: CumulativeTotals,
    ) -> ComplianceStatus:
        """
        Rolling caps and minimum rest for a concrete next duty.

        Rest is always measured against operational limits.
        """
        limits = self.limits
        violations = []

        if limits.max_flight_time_7_days is not None:
            if proposed_duty.flight_time + totals.flight_time_7_days > limits.max_flight_time_7_days:
                violations.append(f"Would exceed {limits.max_flight_time_7_days:.0f} hours in 7 days")

        if proposed_duty.flight_time + totals.flight_time_28_or_30_days > limits.max_flight_time_period:
            violations.append(
                f"Would exceed {limits.max_flight_time_period:.0f} hours in {limits.flight_time_period_days} days"
            )

        if proposed_duty.duty_time + totals.duty_time_7_days > limits.max_duty_time_7_days:
            violations.append(f"Would exceed {limits.max_duty_time_7_days:.0f} duty hours in 7 days")

        if proposed_duty.duty_time + totals.duty_time_14_days > limits.max_duty_time_14_days:
            violations.append(f"Would exceed {limits.max_duty_time_14_days:.0f} duty hours in 14 days")

        if previous_duty is not None:
            required = minimum_rest_hours(previous_duty, self.fleet, LimitType.OPERATIONAL)
            actual_minutes = (proposed_duty.sign_on - previous_duty.sign_off).total_seconds() / 60
            # Same whole-minute rest as earliest_sign_on
            if actual_minutes < rest_minutes(required):
                violations.append(f"Insufficient rest: {actual_minutes / 60:.1f}h (need {required:.1f}h)")

        if violations:
            return ComplianceStatus.violation(*violations)
        return ComplianceStatus.compliant()

    # ------------------------------------------------------------------
    # What-if
    # ------------------------------------------------------------------

    def applicable_window(self, scenario: WhatIfScenario, limit_type: LimitType) -> Optional[DutyTimeWindow]:
        """Short-haul start window for the proposed sign-on; None for wide-body"""
        if self.fleet.is_wide_body:
            return None
        window = classify_sign_on_window(scenario.proposed_sign_on, self.home_timezone)
        logger.debug(f"[what-if] sign-on falls in {window.display_name} window")
        return DutyTimeWindow(
            local_start_window=window,
            limit_type=limit_type,
            limits=lookup_window_limits(window, limit_type),
            max_flight_time=shorthaul_rules.two_pilot_max_flight_time(
                scenario.estimated_sectors, scenario.estimated_night_hours
            ),
            is_currently_available=True,
        )

    def _duty_and_flight_limits(self, scenario: WhatIfScenario, limit_type: LimitType,
                                window: Optional[DutyTimeWindow]):
        """(max duty or None if the sector count is not permitted, max flight)"""
        if window is not None and not scenario.crew_complement.is_augmented:
            return window.max_duty_for_sectors(scenario.estimated_sectors), window.max_flight_time

        base = lookup_base_limits(self.fleet, scenario.crew_complement, scenario.rest_facility, limit_type)
        max_duty = base.max_duty if scenario.estimated_sectors <= base.max_sectors else None
        return max_duty, base.max_flight_time

    def check_what_if_scenario(
        self,
        scenario: WhatIfScenario,
        previous_duty: Optional[DutyRecord],
        totals: CumulativeTotals,
        limit_type: LimitType = None,
    ) -> WhatIfResult:
        limit_type = limit_type or self.configuration.default_limit_type
        fw = self.framework
        limits = self.limits
        violations: List[str] = []
        warnings: List[str] = []

        window = self.applicable_window(scenario, limit_type)

        if previous_duty is not None:
            rest = minimum_rest_hours(previous_duty, self.fleet, limit_type)
            earliest = earliest_sign_on(previous_duty, rest, self.home_timezone, fw)
            if scenario.proposed_sign_on < earliest:
                shown = to_local(earliest, self.home_timezone).strftime(EARLIEST_SIGN_ON_FORMAT)
                violations.append(f"Sign-on before earliest allowed: {shown}")

        max_duty, max_flight = self._duty_and_flight_limits(scenario, limit_type, window)
        if max_duty is None:
            violations.append(f"{scenario.estimated_sectors} sectors not permitted for this duty")
        elif scenario.estimated_duty_hours > max_duty:
            violations.append(
                f"Duty time {scenario.estimated_duty_hours:.1f}h exceeds max {max_duty:.1f}h "
                f"for {scenario.estimated_sectors} sectors"
            )
        elif scenario.estimated_duty_hours >= max_duty * fw.what_if_duty_warning_ratio - 1e-9:
            warnings.append(
                f"Duty time approaching limit ({scenario.estimated_duty_hours:.1f}h of {max_duty:.1f}h)"
            )

        if scenario.estimated_flight_hours > max_flight:
            violations.append(f"Flight time {scenario.estimated_flight_hours:.1f}h exceeds max {max_flight:.1f}h")

        # Rolling caps
        if (limits.max_flight_time_7_days is not None
                and scenario.estimated_flight_hours + totals.flight_time_7_days > limits.max_flight_time_7_days):
            violations.append("Would exceed 7-day flight time limit")
        if scenario.estimated_flight_hours + totals.flight_time_28_or_30_days > limits.max_flight_time_period:
            violations.append(f"Would exceed {limits.flight_time_period_days}-day flight time limit")
        if scenario.estimated_duty_hours + totals.duty_time_7_days > limits.max_duty_time_7_days:
            violations.append("Would exceed 7-day duty time limit")
        if scenario.estimated_duty_hours + totals.duty_time_14_days > limits.max_duty_time_14_days:
            violations.append("Would exceed 14-day duty time limit")

        if limits.has_consecutive_duty_limits:
            if totals.consecutive_duties >= fw.max_consecutive_duties:
                violations.append(f"Maximum {fw.max_consecutive_duties} consecutive duty days already reached")
            if totals.duty_days_in_11_days >= fw.max_duty_days_in_11_days:
                violations.append(
                    f"Maximum {fw.max_duty_days_in_11_days} duty days in 11-day period already reached"
                )

        if violations:
            status = ComplianceStatus.violation(*violations)
        elif warnings:
            status = ComplianceStatus.warning(*warnings)
        else:
            status = ComplianceStatus.compliant()

        return WhatIfResult(
            scenario=scenario,
            is_compliant=not violations,
            status=status,
            violations=tuple(violations),
            warnings=tuple(warnings),
            applicable_window=window,
        )

    # ------------------------------------------------------------------
    # Cumulative status
    # ------------------------------------------------------------------

    def _hours_status(self, used: float, limit: float, label: str) -> ComplianceStatus:
        summary = f"{used:.1f} of {limit:.0f} hours {label}"
        if used > limit:
            return ComplianceStatus.violation(f"Exceeded: {summary}")
        if used > limit * self.configuration.show_warnings_at_percentage:
            return ComplianceStatus.warning(f"Approaching limit: {summary}")
        return ComplianceStatus.compliant()

    def _streak_status(self, count: int, limit: int, label: str) -> ComplianceStatus:
        if not self.limits.has_consecutive_duty_limits:
            return ComplianceStatus.compliant()
        if count >= limit:
            return ComplianceStatus.violation(f"{label}: {count} of {limit}")
        if count == limit - 1:
            return ComplianceStatus.warning(f"{label}: {count} of {limit}")
        return ComplianceStatus.compliant()

    def evaluate_cumulative_totals(self, totals: CumulativeTotals) -> Dict[str, ComplianceStatus]:
        """Status per rolling window and streak, keyed by CumulativeTotals field name"""
        limits = self.limits
        fw = self.framework
        period = limits.flight_time_period_days

        statuses = {}
        if limits.max_flight_time_7_days is not None:
            statuses['flight_time_7_days'] = self._hours_status(
                totals.flight_time_7_days, limits.max_flight_time_7_days, "flight time in 7 days")
        statuses['flight_time_28_or_30_days'] = self._hours_status(
            totals.flight_time_28_or_30_days, limits.max_flight_time_period, f"flight time in {period} days")
        statuses['flight_time_365_days'] = self._hours_status(
            totals.flight_time_365_days, limits.max_flight_time_365_days, "flight time in 365 days")
        statuses['duty_time_7_days'] = self._hours_status(
            totals.duty_time_7_days, limits.max_duty_time_7_days, "duty time in 7 days")
        statuses['duty_time_14_days'] = self._hours_status(
            totals.duty_time_14_days, limits.max_duty_time_14_days, "duty time in 14 days")

        statuses['consecutive_duties'] = self._streak_status(
            totals.consecutive_duties, fw.max_consecutive_duties, "Consecutive duty days")
        statuses['duty_days_in_11_days'] = self._streak_status(
            totals.duty_days_in_11_days, fw.max_duty_days_in_11_days, "Duty days in 11 days")
        statuses['consecutive_early_starts'] = self._streak_status(
            totals.consecutive_early_starts, fw.max_consecutive_early_starts, "Consecutive early starts")
        statuses['consecutive_late_nights'] = self._streak_status(
            totals.consecutive_late_nights, fw.max_consecutive_late_nights, "Consecutive late nights")
        return statuses
