"""
Minimum Base Turnaround Time (A380/A330/B787)
=============================================

Local nights (or hours) required at home base after a trip, from days
away, credited flight hours and whether the pattern held a planned duty
over 18 hours. The most demanding requirement wins; once any rule asks
for nights, an hours-only requirement no longer applies.
"""

from typing import Union

from models.data_models import Fleet, Found, MinimumBaseTurnaroundTime, NotApplicable
from core import longhaul_rules


def _nights_for_days_away(days_away: int) -> int:
    for low, high, nights in longhaul_rules.MBTT_DAYS_AWAY_TIERS:
        if days_away >= low and (high is None or days_away <= high):
            return nights
    return 0


def calculate_mbtt(
    days_away: int,
    credited_flight_hours: float,
    had_planned_duty_over_18_hours: bool = False,
) -> MinimumBaseTurnaroundTime:
    if days_away < 1:
        raise ValueError(f"days_away must be at least 1, got {days_away}")
    if credited_flight_hours < 0:
        raise ValueError(f"credited_flight_hours cannot be negative, got {credited_flight_hours}")

    reasons = []
    if days_away == 1:
        local_nights = 0
        min_hours = longhaul_rules.MBTT_ONE_DAY_HOURS
        reasons.append(f"1 day away: {min_hours:.0f} hours")
    else:
        local_nights = _nights_for_days_away(days_away)
        min_hours = None
        reasons.append(f"{days_away} days away: {local_nights} local night{'s' if local_nights > 1 else ''}")

    for threshold, nights in longhaul_rules.MBTT_CREDITED_HOURS_TIERS:
        if credited_flight_hours > threshold:
            local_nights = max(local_nights, nights)
            min_hours = None
            reasons.append(f">{threshold:.0f} credited flight hours: {nights} local nights")
            break

    if had_planned_duty_over_18_hours:
        local_nights += 1
        min_hours = None
        reasons.append(f"Planned duty >{longhaul_rules.MBTT_LONG_DUTY_HOURS:.0f} hours: +1 local night")

    return MinimumBaseTurnaroundTime(
        days_away=days_away,
        credited_flight_hours=credited_flight_hours,
        local_nights_required=local_nights,
        min_hours=min_hours,
        reason=" • ".join(reasons),
    )


def mbtt_for_fleet(
    fleet: Fleet,
    days_away: int,
    credited_flight_hours: float,
    had_planned_duty_over_18_hours: bool = False,
) -> Union[Found[MinimumBaseTurnaroundTime], NotApplicable]:
    if not fleet.is_wide_body:
        return NotApplicable(f"MBTT does not apply to the {fleet.display_name} fleet")
    return Found(calculate_mbtt(days_away, credited_flight_hours, had_planned_duty_over_18_hours))
