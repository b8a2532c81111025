"""
Tests for rule table completeness and lookups

Run: python -m pytest tests/test_rule_tables.py -v
"""

import itertools
from types import MappingProxyType

import pytest

from core import longhaul_rules, shorthaul_rules
from core.rule_tables import (
    BASE_LIMITS, CUMULATIVE_LIMITS, WINDOW_LIMITS, all_rule_keys, lookup_base_limits,
    lookup_cumulative_limits, lookup_sign_on_limits, lookup_window_limits, validate_rule_tables,
)
from models.data_models import (
    CrewComplement, Fleet, Found, LimitType, LocalStartWindow, NotApplicable, RestFacilityClass,
)
from models.exceptions import FRMSError, RuleTableIntegrityError


# ============================================================================
# COMPLETENESS
# ============================================================================

class TestCompleteness:

    @pytest.mark.parametrize("key", list(all_rule_keys()))
    def test_every_base_key_resolves(self, key):
        entry = lookup_base_limits(*key)
        assert entry.max_duty > 0
        assert 0 < entry.max_flight_time <= entry.max_duty
        assert entry.max_sectors >= 1

    @pytest.mark.parametrize("window, limit_type", list(itertools.product(LocalStartWindow, LimitType)))
    def test_every_window_key_resolves(self, window, limit_type):
        assert lookup_window_limits(window, limit_type).max_duty_for_sectors(1) > 0

    def test_shipped_tables_validate(self):
        validate_rule_tables()

    def test_missing_base_key_is_reported(self):
        partial = dict(BASE_LIMITS)
        del partial[(Fleet.A320_B737, CrewComplement.FOUR_PILOT, RestFacilityClass.MIXED, LimitType.PLANNING)]
        with pytest.raises(RuleTableIntegrityError, match="missing base limits for A320/B737 4 Pilot mixed planning"):
            validate_rule_tables(base_limits=partial)

    def test_missing_window_and_fleet_are_reported_together(self):
        windows = {k: v for k, v in WINDOW_LIMITS.items() if k[0] is not LocalStartWindow.NIGHT}
        cumulative = {Fleet.A320_B737: CUMULATIVE_LIMITS[Fleet.A320_B737]}
        with pytest.raises(RuleTableIntegrityError) as excinfo:
            validate_rule_tables(window_limits=windows, cumulative_limits=cumulative)
        message = str(excinfo.value)
        assert "missing window limits for 2000-0459 operational" in message
        assert "missing window limits for 2000-0459 planning" in message
        assert "missing cumulative limits for A380/A330/B787" in message

    def test_integrity_error_is_an_frms_error(self):
        assert issubclass(RuleTableIntegrityError, FRMSError)

    def test_tables_are_read_only(self):
        assert isinstance(BASE_LIMITS, MappingProxyType)
        with pytest.raises(TypeError):
            BASE_LIMITS[next(all_rule_keys())] = None


# ============================================================================
# SHORT-HAUL VALUES
# ============================================================================

class TestShortHaulValues:

    def test_two_pilot_baselines(self):
        operational = lookup_base_limits(Fleet.A320_B737, CrewComplement.TWO_PILOT,
                                         RestFacilityClass.NONE, LimitType.OPERATIONAL)
        planning = lookup_base_limits(Fleet.A320_B737, CrewComplement.TWO_PILOT,
                                      RestFacilityClass.NONE, LimitType.PLANNING)
        assert (operational.max_duty, operational.max_flight_time, operational.max_sectors) == (12.0, 10.0, 6)
        assert (planning.max_duty, planning.max_flight_time, planning.max_sectors) == (10.0, 10.0, 6)

    def test_three_pilot_rest_facility(self):
        screened = lookup_base_limits(Fleet.A320_B737, CrewComplement.THREE_PILOT,
                                      RestFacilityClass.CLASS_1, LimitType.OPERATIONAL)
        passenger = lookup_base_limits(Fleet.A320_B737, CrewComplement.THREE_PILOT,
                                       RestFacilityClass.CLASS_2, LimitType.OPERATIONAL)
        assert (screened.max_duty, screened.max_sectors) == (16.0, 2)
        assert (passenger.max_duty, passenger.max_sectors) == (14.0, 6)
        assert screened.rest_facility_label == "Separate Screened Seat"

    @pytest.mark.parametrize("window, limit_type, expected", [
        (LocalStartWindow.EARLY, LimitType.OPERATIONAL, (14.0, 13.0, 12.0)),
        (LocalStartWindow.AFTERNOON, LimitType.OPERATIONAL, (13.0, 12.0, 11.0)),
        (LocalStartWindow.NIGHT, LimitType.OPERATIONAL, (12.0, 12.0, 11.0)),
        (LocalStartWindow.EARLY, LimitType.PLANNING, (12.0, 11.0, 11.0)),
        (LocalStartWindow.AFTERNOON, LimitType.PLANNING, (11.0, 10.0, 10.0)),
        (LocalStartWindow.NIGHT, LimitType.PLANNING, (10.0, 10.0, 10.0)),
    ])
    def test_window_values(self, window, limit_type, expected):
        limits = lookup_window_limits(window, limit_type)
        assert tuple(limits.max_duty_for_sectors(n) for n in (4, 5, 6)) == expected
        assert limits.max_duty_for_sectors(1) == expected[0]

    @pytest.mark.parametrize("sectors", [0, 7, 12])
    def test_unknown_sector_counts_not_permitted(self, sectors):
        limits = lookup_window_limits(LocalStartWindow.EARLY, LimitType.OPERATIONAL)
        assert limits.max_duty_for_sectors(sectors) is None

    @pytest.mark.parametrize("sectors, night_hours, expected", [
        (1, 0.0, 10.5),
        (2, 0.0, 10.0),
        (1, 7.0, 10.5),
        (1, 7.5, 9.5),
        (3, 8.0, 9.5),
    ])
    def test_two_pilot_flight_time(self, sectors, night_hours, expected):
        assert shorthaul_rules.two_pilot_max_flight_time(sectors, night_hours) == expected

    def test_window_limits_never_increase_with_sectors(self):
        for limits in WINDOW_LIMITS.values():
            values = [limits.max_duty_for_sectors(n) for n in range(1, 7)]
            assert values == sorted(values, reverse=True)


# ============================================================================
# WIDE-BODY VALUES
# ============================================================================

class TestWideBodyValues:

    def test_two_pilot_planning_and_operational(self):
        operational = lookup_base_limits(Fleet.A380_A330_B787, CrewComplement.TWO_PILOT,
                                         RestFacilityClass.NONE, LimitType.OPERATIONAL)
        planning = lookup_base_limits(Fleet.A380_A330_B787, CrewComplement.TWO_PILOT,
                                      RestFacilityClass.NONE, LimitType.PLANNING)
        assert (operational.max_duty, operational.max_flight_time, operational.max_sectors) == (12.0, 10.5, 4)
        assert planning.max_duty == 11.0

    @pytest.mark.parametrize("crew, facility, duty", [
        (CrewComplement.THREE_PILOT, RestFacilityClass.NONE, 14.0),
        (CrewComplement.THREE_PILOT, RestFacilityClass.CLASS_2, 16.0),
        (CrewComplement.THREE_PILOT, RestFacilityClass.CLASS_1, 18.0),
        (CrewComplement.FOUR_PILOT, RestFacilityClass.CLASS_2, 16.0),
        (CrewComplement.FOUR_PILOT, RestFacilityClass.MIXED, 20.0),
        (CrewComplement.FOUR_PILOT, RestFacilityClass.CLASS_1, 20.0),
    ])
    def test_augmented_rows(self, crew, facility, duty):
        entry = lookup_base_limits(Fleet.A380_A330_B787, crew, facility, LimitType.OPERATIONAL)
        assert entry.max_duty == duty
        assert entry.max_flight_time == 14.0
        assert entry.max_sectors == 2

    def test_augmented_post_duty_rest(self):
        assert longhaul_rules.augmented_post_duty_rest(16.0) == 12.0
        assert longhaul_rules.augmented_post_duty_rest(16.5) == 24.0


# ============================================================================
# CUMULATIVE AND SIGN-ON TABLES
# ============================================================================

class TestCumulativeLimits:

    def test_short_haul(self):
        limits = lookup_cumulative_limits(Fleet.A320_B737)
        assert limits.max_flight_time_7_days is None
        assert (limits.max_flight_time_period, limits.flight_time_period_days) == (100.0, 28)
        assert limits.max_flight_time_365_days == 1000.0
        assert limits.has_consecutive_duty_limits

    def test_wide_body(self):
        limits = lookup_cumulative_limits(Fleet.A380_A330_B787)
        assert limits.max_flight_time_7_days == 30.0
        assert limits.flight_time_period_days == 30
        assert limits.max_flight_time_365_days == 900.0
        assert not limits.has_consecutive_duty_limits

    def test_duty_caps_shared(self):
        for fleet in Fleet:
            limits = lookup_cumulative_limits(fleet)
            assert (limits.max_duty_time_7_days, limits.max_duty_time_14_days) == (60.0, 100.0)


class TestSignOnLimits:

    def test_not_applicable_to_short_haul(self):
        result = lookup_sign_on_limits(Fleet.A320_B737, CrewComplement.TWO_PILOT, LimitType.PLANNING)
        assert isinstance(result, NotApplicable)
        assert "A320/B737" in result.reason

    def test_two_pilot_planning_rows(self):
        result = lookup_sign_on_limits(Fleet.A380_A330_B787, CrewComplement.TWO_PILOT, LimitType.PLANNING)
        assert isinstance(result, Found)
        rows = result.value
        assert [r.time_range for r in rows] == ["0500-0759", "0800-1359", "0800-1359", "1400-1559", "1600-0459"]
        # 22 h rest once planned flight time reaches 8.5 h
        assert [r.pre_rest_required for r in rows] == [11.0, 22.0, 22.0, 22.0, 11.0]

    @pytest.mark.parametrize("crew, limit_type", list(itertools.product(CrewComplement, LimitType)))
    def test_every_wide_body_key_has_rows(self, crew, limit_type):
        rows = lookup_sign_on_limits(Fleet.A380_A330_B787, crew, limit_type).value
        assert len(rows) >= 1

    def test_relevant_sector_row(self):
        rows = lookup_sign_on_limits(Fleet.A380_A330_B787, CrewComplement.FOUR_PILOT,
                                     LimitType.OPERATIONAL).value
        relevant = rows[-1]
        assert relevant.max_duty_period == 21.0
        assert (relevant.pre_rest_required, relevant.post_rest_required) == (22.0, 27.0)
