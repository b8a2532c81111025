"""
Time & Window Classification
============================

Classifies duties by home-base wall-clock time:
- local start window (early / afternoon / night) of a sign-on
- operation time class (day / late night / back of clock) of a duty
- early starts

Always evaluated in the home-base zone, never the machine's local zone.
"""

from datetime import datetime, time, timedelta, tzinfo
from typing import List, Tuple, Union

from models.data_models import (
    DutyRecord, LocalStartWindow, OperationTimeClass, localize, to_local,
)
from core.parameters import FRMSFramework

Zone = Union[str, tzinfo]


def local_hhmm(instant: datetime, zone: Zone) -> int:
    """Wall-clock time as an HHMM integer, e.g. 0455 -> 455"""
    local = to_local(instant, zone)
    return local.hour * 100 + local.minute


def classify_sign_on_window(sign_on: datetime, zone: Zone) -> LocalStartWindow:
    hhmm = local_hhmm(sign_on, zone)
    for window in (LocalStartWindow.EARLY, LocalStartWindow.AFTERNOON):
        if window.contains(hhmm):
            return window
    return LocalStartWindow.NIGHT


def is_early_start(sign_on: datetime, zone: Zone, framework: FRMSFramework = None) -> bool:
    framework = framework or FRMSFramework()
    return to_local(sign_on, zone).hour < framework.early_start_hour


def band_overlaps(
    start: datetime,
    end: datetime,
    zone: Zone,
    band_start: Tuple[int, int],
    band_end: Tuple[int, int],
) -> List[timedelta]:
    """
    Overlap of [start, end) with a daily wall-clock band, one entry per
    calendar day the band starts on. Bands whose end is earlier than their
    start run into the following day.
    """
    start_local = to_local(start, zone)
    end_local = to_local(end, zone)
    crosses_midnight = band_end <= band_start

    overlaps = []
    # Band starting the previous evening can still cover the first morning
    current_day = start_local.date() - timedelta(days=1)
    while current_day <= end_local.date():
        window_open = localize(datetime.combine(current_day, time(*band_start)), zone)
        close_day = current_day + timedelta(days=1) if crosses_midnight else current_day
        window_close = localize(datetime.combine(close_day, time(*band_end)), zone)

        overlap_start = max(start_local, window_open)
        overlap_end = min(end_local, window_close)
        if overlap_start < overlap_end:
            overlaps.append(overlap_end - overlap_start)

        current_day += timedelta(days=1)
    return overlaps


def classify_time_class(
    sign_on: datetime,
    sign_off: datetime,
    zone: Zone,
    framework: FRMSFramework = None,
) -> OperationTimeClass:
    """Back of clock takes precedence over late night."""
    framework = framework or FRMSFramework()

    back_of_clock = band_overlaps(
        sign_on, sign_off, zone, framework.back_of_clock_start, framework.back_of_clock_end
    )
    if any(o >= timedelta(minutes=framework.back_of_clock_min_minutes) for o in back_of_clock):
        return OperationTimeClass.BACK_OF_CLOCK

    late_night = band_overlaps(
        sign_on, sign_off, zone, framework.late_night_start, framework.late_night_end
    )
    if sum(late_night, timedelta()) > timedelta(minutes=framework.late_night_min_overlap_minutes):
        return OperationTimeClass.LATE_NIGHT

    return OperationTimeClass.DAY


def duty_time_class(duty: DutyRecord, framework: FRMSFramework = None) -> OperationTimeClass:
    return classify_time_class(duty.sign_on, duty.sign_off, duty.home_base_timezone, framework)
