"""
Tests for compliance checks, what-if scenarios and cumulative status
====================================================================

Run: python -m pytest tests/test_compliance.py -v
"""

from datetime import datetime, timedelta

import pytest
import pytz

from core.compliance import FRMSComplianceChecker
from core.frms_service import FRMSCalculationService
from core.parameters import FRMSConfiguration
from models.data_models import (
    ComplianceLevel, CrewComplement, CumulativeTotals, DutyRecord, LimitType,
    LocalStartWindow, RestFacilityClass, WhatIfScenario,
)


SYD = pytz.timezone('Australia/Sydney')


def local(day, hour, minute=0):
    return SYD.localize(datetime(2025, 7, day, hour, minute))


def make_duty(sign_on, hours, flight_time=0.0, crew=CrewComplement.TWO_PILOT):
    return DutyRecord(
        sign_on=sign_on,
        sign_off=sign_on + timedelta(hours=hours),
        flight_time=flight_time,
        crew_complement=crew,
        home_base_timezone=SYD,
    )


def scenario(sign_on, duty, flight, sectors=1, **kwargs):
    return WhatIfScenario(
        proposed_sign_on=sign_on,
        estimated_duty_hours=duty,
        estimated_flight_hours=flight,
        estimated_sectors=sectors,
        **kwargs,
    )


# 1000-2200 on 9 Jul; 12 h rest puts the earliest sign-on at 1000 on 10 Jul
PREVIOUS = make_duty(local(9, 10), 12.0, flight_time=8.0)


# ============================================================================
# PROPOSED DUTY
# ============================================================================

class TestCheckCompliance:

    def test_compliant_at_exact_rest(self, short_haul_service):
        proposed = make_duty(local(10, 10), 8.0, flight_time=5.0)
        status = short_haul_service.check_compliance(proposed, PREVIOUS, CumulativeTotals())
        assert status.is_compliant
        assert status.messages == ()

    @pytest.mark.parametrize("extra_minutes", range(1, 240))
    def test_earliest_sign_on_passes_rest_check(self, short_haul_service, extra_minutes):
        # 12h01 to 15h59 duties: 1.5 x excess rest often lands on a half minute
        previous = make_duty(local(9, 8), 12.0 + extra_minutes / 60, flight_time=8.0)
        next_duty = short_haul_service.calculate_maximum_next_duty(
            previous, CumulativeTotals(), LimitType.OPERATIONAL, CrewComplement.TWO_PILOT,
        )
        proposed = make_duty(next_duty.earliest_sign_on, 8.0, flight_time=5.0)
        status = short_haul_service.check_compliance(proposed, previous, CumulativeTotals())
        assert status.is_compliant, status.messages

    def test_half_minute_rest_rounds_up(self, short_haul_service):
        # 12h07 duty needs 12h10.5 rest; one minute short of 12h11 is refused
        previous = make_duty(local(9, 8), 12.0 + 7 / 60, flight_time=8.0)
        next_duty = short_haul_service.calculate_maximum_next_duty(
            previous, CumulativeTotals(), LimitType.OPERATIONAL, CrewComplement.TWO_PILOT,
        )
        assert next_duty.earliest_sign_on == previous.sign_off + timedelta(minutes=731)
        early = make_duty(next_duty.earliest_sign_on - timedelta(minutes=1), 8.0, flight_time=5.0)
        status = short_haul_service.check_compliance(early, previous, CumulativeTotals())
        assert status.level is ComplianceLevel.VIOLATION

    def test_insufficient_rest(self, short_haul_service):
        proposed = make_duty(local(10, 9), 8.0, flight_time=5.0)
        status = short_haul_service.check_compliance(proposed, PREVIOUS, CumulativeTotals())
        assert status.level is ComplianceLevel.VIOLATION
        assert status.messages == ("Insufficient rest: 11.0h (need 12.0h)",)

    def test_rolling_caps_short_haul(self, short_haul_service):
        totals = CumulativeTotals(flight_time_28_or_30_days=96.0, duty_time_7_days=55.0, duty_time_14_days=95.0)
        proposed = make_duty(local(10, 10), 8.0, flight_time=5.0)
        status = short_haul_service.check_compliance(proposed, None, totals)
        assert status.messages == (
            "Would exceed 100 hours in 28 days",
            "Would exceed 60 duty hours in 7 days",
            "Would exceed 100 duty hours in 14 days",
        )

    def test_reaching_a_cap_exactly_is_compliant(self, short_haul_service):
        totals = CumulativeTotals(flight_time_28_or_30_days=95.0, duty_time_7_days=52.0)
        proposed = make_duty(local(10, 10), 8.0, flight_time=5.0)
        assert short_haul_service.check_compliance(proposed, None, totals).is_compliant

    def test_wide_body_seven_day_and_thirty_day_caps(self, wide_body_service):
        totals = CumulativeTotals(flight_time_7_days=27.0, flight_time_28_or_30_days=97.0,
                                  flight_time_period_days=30)
        proposed = make_duty(local(10, 10), 8.0, flight_time=5.0)
        status = wide_body_service.check_compliance(proposed, None, totals)
        assert status.messages == (
            "Would exceed 30 hours in 7 days",
            "Would exceed 100 hours in 30 days",
        )

    def test_rest_measured_against_operational_limits(self):
        # 2 pilot, 9 h duty, 7 h flight: 10 h operational, 11 h planning
        configuration = FRMSConfiguration.long_haul("SYD", default_limit_type=LimitType.PLANNING)
        checker = FRMSComplianceChecker(configuration, SYD)
        previous = make_duty(local(9, 8), 9.0, flight_time=7.0)
        proposed = make_duty(local(10, 3, 30), 8.0, flight_time=5.0)
        assert checker.check_compliance(proposed, previous, CumulativeTotals()).is_compliant


# ============================================================================
# WHAT-IF
# ============================================================================

class TestWhatIfShortHaul:

    def test_sign_on_before_earliest(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 8), 9.0, 6.0, sectors=2), PREVIOUS, CumulativeTotals(),
        )
        assert result.violations == ("Sign-on before earliest allowed: 10 Jul 1000",)
        assert not result.is_compliant

    def test_approaching_duty_limit_is_warning(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 10), 13.0, 8.0, sectors=4), PREVIOUS, CumulativeTotals(),
        )
        assert result.is_compliant
        assert result.status.level is ComplianceLevel.WARNING
        assert result.warnings == ("Duty time approaching limit (13.0h of 14.0h)",)
        assert result.applicable_window.local_start_window is LocalStartWindow.EARLY

    def test_exactly_ninety_percent_is_warning(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 10), 12.6, 8.0, sectors=2), PREVIOUS, CumulativeTotals(),
        )
        assert result.is_compliant
        assert result.status.level is ComplianceLevel.WARNING
        assert result.warnings == ("Duty time approaching limit (12.6h of 14.0h)",)

    def test_just_under_ninety_percent_is_compliant(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 10), 12.5, 8.0, sectors=2), PREVIOUS, CumulativeTotals(),
        )
        assert result.status.level is ComplianceLevel.COMPLIANT
        assert result.warnings == ()

    def test_duty_over_window_limit(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 8), 13.5, 8.0, sectors=5), None, CumulativeTotals(),
        )
        assert result.violations == ("Duty time 13.5h exceeds max 13.0h for 5 sectors",)

    def test_sector_count_not_permitted(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 8), 8.0, 6.0, sectors=7), None, CumulativeTotals(),
        )
        assert "7 sectors not permitted for this duty" in result.violations

    def test_multi_sector_flight_limit(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 16), 11.0, 10.2, sectors=2), None, CumulativeTotals(),
        )
        assert result.applicable_window.local_start_window is LocalStartWindow.AFTERNOON
        assert result.violations == ("Flight time 10.2h exceeds max 10.0h",)

    def test_darkness_flight_limit(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 21), 11.0, 10.0, estimated_night_hours=7.5), None, CumulativeTotals(),
        )
        assert result.applicable_window.local_start_window is LocalStartWindow.NIGHT
        assert "Flight time 10.0h exceeds max 9.5h" in result.violations

    def test_planning_limits(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 8), 12.5, 8.0, sectors=3), None, CumulativeTotals(), LimitType.PLANNING,
        )
        assert result.violations == ("Duty time 12.5h exceeds max 12.0h for 3 sectors",)

    def test_window_taken_in_home_base_time(self, short_haul_service):
        # 2230Z on 9 Jul is 0830 on 10 Jul in Sydney
        sign_on = pytz.utc.localize(datetime(2025, 7, 9, 22, 30))
        result = short_haul_service.check_what_if_scenario(
            scenario(sign_on, 8.0, 6.0), None, CumulativeTotals(),
        )
        assert result.applicable_window.local_start_window is LocalStartWindow.EARLY

    def test_rolling_caps(self, short_haul_service):
        totals = CumulativeTotals(flight_time_28_or_30_days=97.0, duty_time_7_days=55.0, duty_time_14_days=95.0)
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 10), 8.0, 5.0), None, totals,
        )
        assert result.violations == (
            "Would exceed 28-day flight time limit",
            "Would exceed 7-day duty time limit",
            "Would exceed 14-day duty time limit",
        )

    def test_streak_limits(self, short_haul_service):
        totals = CumulativeTotals(consecutive_duties=6, duty_days_in_11_days=9)
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 10), 8.0, 5.0), None, totals,
        )
        assert result.violations == (
            "Maximum 6 consecutive duty days already reached",
            "Maximum 9 duty days in 11-day period already reached",
        )

    def test_augmented_crew_uses_base_limits(self, short_haul_service):
        result = short_haul_service.check_what_if_scenario(
            scenario(local(10, 8), 15.0, 9.0, sectors=2,
                     crew_complement=CrewComplement.THREE_PILOT,
                     rest_facility=RestFacilityClass.CLASS_1),
            None, CumulativeTotals(),
        )
        assert result.is_compliant
        assert result.warnings == ("Duty time approaching limit (15.0h of 16.0h)",)


class TestWhatIfWideBody:

    def test_no_start_window(self, wide_body_service):
        result = wide_body_service.check_what_if_scenario(
            scenario(local(10, 10), 9.0, 7.0), None, CumulativeTotals(flight_time_period_days=30),
        )
        assert result.applicable_window is None
        assert result.is_compliant
        assert result.status.level is ComplianceLevel.COMPLIANT

    def test_base_duty_limit(self, wide_body_service):
        result = wide_body_service.check_what_if_scenario(
            scenario(local(10, 10), 12.5, 9.0), None, CumulativeTotals(),
        )
        assert result.violations == ("Duty time 12.5h exceeds max 12.0h for 1 sectors",)

    def test_too_many_sectors(self, wide_body_service):
        result = wide_body_service.check_what_if_scenario(
            scenario(local(10, 10), 9.0, 7.0, sectors=5), None, CumulativeTotals(),
        )
        assert result.violations == ("5 sectors not permitted for this duty",)

    def test_seven_day_flight_limit(self, wide_body_service):
        totals = CumulativeTotals(flight_time_7_days=25.0, flight_time_period_days=30)
        result = wide_body_service.check_what_if_scenario(
            scenario(local(10, 10), 9.0, 6.0), None, totals,
        )
        assert result.violations == ("Would exceed 7-day flight time limit",)

    def test_no_streak_limits(self, wide_body_service):
        totals = CumulativeTotals(consecutive_duties=9, duty_days_in_11_days=11)
        result = wide_body_service.check_what_if_scenario(
            scenario(local(10, 10), 9.0, 6.0), None, totals,
        )
        assert result.is_compliant


# ============================================================================
# CUMULATIVE STATUS
# ============================================================================

class TestEvaluateCumulativeTotals:

    def test_short_haul_keys(self, short_haul_service):
        statuses = short_haul_service.evaluate_cumulative_totals(CumulativeTotals())
        assert 'flight_time_7_days' not in statuses
        assert all(s.is_compliant for s in statuses.values())
        assert len(statuses) == 8

    def test_wide_body_keys(self, wide_body_service):
        statuses = wide_body_service.evaluate_cumulative_totals(CumulativeTotals(flight_time_period_days=30))
        assert 'flight_time_7_days' in statuses
        assert len(statuses) == 9

    def test_hours_warning_and_violation(self, short_haul_service):
        totals = CumulativeTotals(flight_time_28_or_30_days=95.0, duty_time_7_days=61.0)
        statuses = short_haul_service.evaluate_cumulative_totals(totals)
        assert statuses['flight_time_28_or_30_days'].messages == (
            "Approaching limit: 95.0 of 100 hours flight time in 28 days",
        )
        assert statuses['flight_time_28_or_30_days'].level is ComplianceLevel.WARNING
        assert statuses['duty_time_7_days'].messages == ("Exceeded: 61.0 of 60 hours duty time in 7 days",)
        assert statuses['duty_time_7_days'].level is ComplianceLevel.VIOLATION
        assert statuses['duty_time_14_days'].is_compliant

    def test_warning_percentage_from_configuration(self, airports):
        service = FRMSCalculationService(
            FRMSConfiguration.short_haul("SYD", show_warnings_at_percentage=0.5), airports,
        )
        statuses = service.evaluate_cumulative_totals(CumulativeTotals(duty_time_14_days=55.0))
        assert statuses['duty_time_14_days'].level is ComplianceLevel.WARNING

    @pytest.mark.parametrize("count, level", [
        (4, ComplianceLevel.COMPLIANT),
        (5, ComplianceLevel.WARNING),
        (6, ComplianceLevel.VIOLATION),
        (7, ComplianceLevel.VIOLATION),
    ])
    def test_consecutive_duty_streak(self, short_haul_service, count, level):
        statuses = short_haul_service.evaluate_cumulative_totals(CumulativeTotals(consecutive_duties=count))
        assert statuses['consecutive_duties'].level is level

    def test_streak_message(self, short_haul_service):
        statuses = short_haul_service.evaluate_cumulative_totals(CumulativeTotals(consecutive_early_starts=4))
        assert statuses['consecutive_early_starts'].messages == ("Consecutive early starts: 4 of 4",)

    def test_wide_body_streaks_always_compliant(self, wide_body_service):
        totals = CumulativeTotals(consecutive_duties=10, consecutive_late_nights=6, flight_time_period_days=30)
        statuses = wide_body_service.evaluate_cumulative_totals(totals)
        assert statuses['consecutive_duties'].is_compliant
        assert statuses['consecutive_late_nights'].is_compliant

    def test_invalid_warning_percentage(self):
        with pytest.raises(ValueError):
            FRMSConfiguration.short_haul("SYD", show_warnings_at_percentage=1.5)
