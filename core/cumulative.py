"""
Cumulative Totals
=================

Rolling-window flight/duty sums and streak counters as of a reference
instant, all evaluated on home-base calendar days.

Windows are [start of today - (N - 1) days, end of today] inclusive.
Flight time is attributed by sector date when a sector list is supplied,
otherwise by duty date.
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from functools import reduce
from itertools import takewhile
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import pytz

from models.data_models import CumulativeTotals, DutyRecord, Fleet, FlightSectorSummary, to_local
from core.parameters import FRMSFramework
from core.rule_tables import lookup_cumulative_limits
from core.time_classifier import duty_time_class, is_early_start

logger = logging.getLogger(__name__)

SECTOR_DATE_FORMAT = "%d/%m/%Y"


class DutyDay(NamedTuple):
    """One home-base calendar day with at least one duty sign-on"""
    day: date
    early_start: bool
    late_night: bool


class StreakCounts(NamedTuple):
    consecutive_duties: int = 0
    consecutive_early_starts: int = 0
    consecutive_late_nights: int = 0


# ============================================================================
# STREAKS
# ============================================================================

def collect_duty_days(
    duties: Iterable[DutyRecord],
    zone: tzinfo,
    framework: FRMSFramework = None,
) -> Tuple[DutyDay, ...]:
    """Deduplicate duties to local days, most recent first."""
    framework = framework or FRMSFramework()
    flags = {}
    for duty in duties:
        day = to_local(duty.sign_on, zone).date()
        early = is_early_start(duty.sign_on, zone, framework)
        late = duty_time_class(duty, framework).is_late_night
        prev_early, prev_late = flags.get(day, (False, False))
        flags[day] = (prev_early or early, prev_late or late)
    return tuple(
        DutyDay(day, early, late)
        for day, (early, late) in sorted(flags.items(), reverse=True)
    )


def _extend_run(state, duty_day: DutyDay):
    run, closed = state
    if closed:
        return state
    if not run or (run[-1].day - duty_day.day).days <= 1:
        return run + (duty_day,), False
    return run, True


def count_streaks(days: Sequence[DutyDay], today: date) -> StreakCounts:
    """
    Streaks ending at the most recent duty day.

    ``days`` must be deduplicated and sorted most recent first. A gap of
    more than one day between the latest duty and ``today`` resets all
    counters.
    """
    if not days or (today - days[0].day).days > 1:
        return StreakCounts()

    run, _ = reduce(_extend_run, days, ((), False))
    return StreakCounts(
        consecutive_duties=len(run),
        consecutive_early_starts=sum(1 for _ in takewhile(lambda d: d.early_start, run)),
        consecutive_late_nights=sum(1 for _ in takewhile(lambda d: d.late_night, run)),
    )


# ============================================================================
# AGGREGATION
# ============================================================================

def parse_sector_date(value: str) -> Optional[date]:
    try:
        return datetime.strptime(value.strip(), SECTOR_DATE_FORMAT).date()
    except (ValueError, AttributeError):
        return None


class CumulativeTotalsCalculator:
    """Computes CumulativeTotals for one fleet in one home-base zone"""

    def __init__(self, fleet: Fleet, home_timezone: tzinfo, framework: FRMSFramework = None):
        self.fleet = fleet
        self.home_timezone = home_timezone
        self.framework = framework or FRMSFramework()
        self.limits = lookup_cumulative_limits(fleet)

    def window_start(self, today: date, days: int) -> date:
        return today - timedelta(days=days - 1)

    def _duty_day(self, duty: DutyRecord) -> date:
        # Sign-on day in this calculator's home zone, as for the streaks
        return to_local(duty.sign_on, self.home_timezone).date()

    def duty_time_in_window(self, duties: Sequence[DutyRecord], today: date, days: int) -> float:
        start = self.window_start(today, days)
        return sum(d.duty_time for d in duties if start <= self._duty_day(d) <= today)

    def duty_flight_time_in_window(self, duties: Sequence[DutyRecord], today: date, days: int) -> float:
        """Flight time attributed by duty date"""
        start = self.window_start(today, days)
        return sum(d.flight_time for d in duties if start <= self._duty_day(d) <= today)

    def sector_flight_time_in_window(self, dated_sectors: Sequence[Tuple[date, FlightSectorSummary]],
                                     today: date, days: int) -> float:
        """Flight time attributed by each sector's own date"""
        start = self.window_start(today, days)
        return sum(s.flight_time for day, s in dated_sectors if start <= day <= today)

    def _date_sectors(self, flights: Iterable[FlightSectorSummary]) -> List[Tuple[date, FlightSectorSummary]]:
        dated = []
        for sector in flights:
            day = parse_sector_date(sector.date)
            if day is None:
                logger.warning(f"[totals] Skipping sector {sector.flight_number or '?'} - invalid date '{sector.date}'")
                continue
            dated.append((day, sector))
        return dated

    def duty_days_in_window(self, duties: Sequence[DutyRecord], today: date, days: int) -> int:
        start = self.window_start(today, days)
        return len({self._duty_day(d) for d in duties if start <= self._duty_day(d) <= today})

    def calculate(
        self,
        duties: Sequence[DutyRecord],
        flights: Optional[Sequence[FlightSectorSummary]] = None,
        as_of: Optional[datetime] = None,
    ) -> CumulativeTotals:
        """
        Args:
            duties: consolidated duty periods
            flights: individual sectors; None falls back to duty flight time
            as_of: reference instant, default now
        """
        as_of = as_of or datetime.now(pytz.utc)
        today = to_local(as_of, self.home_timezone).date()
        period_days = self.limits.flight_time_period_days

        if flights is not None:
            dated = self._date_sectors(flights)
            flight_7 = self.sector_flight_time_in_window(dated, today, 7)
            flight_period = self.sector_flight_time_in_window(dated, today, period_days)
            flight_365 = self.sector_flight_time_in_window(dated, today, 365)
        else:
            flight_7 = self.duty_flight_time_in_window(duties, today, 7)
            flight_period = self.duty_flight_time_in_window(duties, today, period_days)
            flight_365 = self.duty_flight_time_in_window(duties, today, 365)

        streaks = count_streaks(
            collect_duty_days(duties, self.home_timezone, self.framework), today
        )

        return CumulativeTotals(
            flight_time_7_days=flight_7,
            flight_time_28_or_30_days=flight_period,
            flight_time_365_days=flight_365,
            duty_time_7_days=self.duty_time_in_window(duties, today, 7),
            duty_time_14_days=self.duty_time_in_window(duties, today, 14),
            days_off_in_period=period_days - self.duty_days_in_window(duties, today, period_days),
            consecutive_duties=streaks.consecutive_duties,
            consecutive_early_starts=streaks.consecutive_early_starts,
            consecutive_late_nights=streaks.consecutive_late_nights,
            duty_days_in_11_days=self.duty_days_in_window(duties, today, 11),
            flight_time_period_days=period_days,
        )
