"""
Tests for minimum base turnaround time (A380/A330/B787)

Run: python -m pytest tests/test_mbtt.py -v
"""

import pytest

from core.mbtt import calculate_mbtt, mbtt_for_fleet
from models.data_models import Fleet, Found, NotApplicable


class TestDaysAway:

    def test_one_day_away_is_hours_not_nights(self):
        result = calculate_mbtt(1, 8.0)
        assert result.local_nights_required == 0
        assert result.min_hours == 12.0
        assert result.reason == "1 day away: 12 hours"

    @pytest.mark.parametrize("days_away, nights", [
        (2, 1), (4, 1), (5, 2), (8, 2), (9, 3), (12, 3), (13, 4), (30, 4),
    ])
    def test_tiers(self, days_away, nights):
        result = calculate_mbtt(days_away, 0.0)
        assert result.local_nights_required == nights
        assert result.min_hours is None

    def test_nights_never_decrease_with_days_away(self):
        nights = [calculate_mbtt(d, 0.0).local_nights_required for d in range(2, 20)]
        assert nights == sorted(nights)


class TestCreditedHours:

    def test_six_days_25_hours(self):
        result = calculate_mbtt(6, 25.0)
        assert result.local_nights_required == 2
        assert result.min_hours is None
        assert result.reason == "6 days away: 2 local nights • >20 credited flight hours: 2 local nights"

    def test_hours_override_one_day_hours(self):
        result = calculate_mbtt(1, 25.0)
        assert result.local_nights_required == 2
        assert result.min_hours is None

    @pytest.mark.parametrize("hours, nights", [
        (20.0, 1), (20.5, 2), (40.5, 3), (60.5, 4),
    ])
    def test_threshold_is_strictly_above(self, hours, nights):
        assert calculate_mbtt(3, hours).local_nights_required == nights

    def test_most_demanding_rule_wins(self):
        assert calculate_mbtt(13, 25.0).local_nights_required == 4


class TestLongDuty:

    def test_adds_one_night(self):
        plain = calculate_mbtt(6, 45.0)
        long_duty = calculate_mbtt(6, 45.0, had_planned_duty_over_18_hours=True)
        assert long_duty.local_nights_required == plain.local_nights_required + 1
        assert long_duty.reason.endswith("Planned duty >18 hours: +1 local night")

    def test_on_one_day_trip(self):
        result = calculate_mbtt(1, 0.0, had_planned_duty_over_18_hours=True)
        assert result.local_nights_required == 1
        assert result.min_hours is None


class TestInputs:

    @pytest.mark.parametrize("days_away", [0, -3])
    def test_days_away_must_be_positive(self, days_away):
        with pytest.raises(ValueError, match="days_away"):
            calculate_mbtt(days_away, 10.0)

    def test_negative_hours_rejected(self):
        with pytest.raises(ValueError, match="credited_flight_hours"):
            calculate_mbtt(3, -1.0)

    def test_short_haul_not_applicable(self):
        assert isinstance(mbtt_for_fleet(Fleet.A320_B737, 6, 25.0), NotApplicable)

    def test_wide_body_found(self):
        result = mbtt_for_fleet(Fleet.A380_A330_B787, 6, 25.0)
        assert isinstance(result, Found)
        assert result.value.local_nights_required == 2

    def test_service_routes_by_fleet(self, short_haul_service, wide_body_service):
        assert isinstance(short_haul_service.calculate_mbtt(6, 25.0), NotApplicable)
        assert wide_body_service.calculate_mbtt(6, 25.0).value.local_nights_required == 2
