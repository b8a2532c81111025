"""
Duty Construction from Logbook Sectors
======================================

Turns FlightSectorSummary rows into DutyRecords:
- per-sector duty with sign-on/sign-off margins (create_duty)
- consolidation of sectors into duty periods (consolidate_duties)
- grouping of duties by home-base calendar day

Unparseable sectors are logged and skipped, never raised.
"""

import logging
from datetime import datetime, time, timedelta, tzinfo
from itertools import groupby
from typing import Iterable, List, Optional, Sequence, Tuple

import pytz

from models.data_models import (
    CrewComplement, DailyDutySummary, DutyRecord, DutyType, FlightSectorSummary,
    RestFacilityClass, to_local,
)
from models.exceptions import InvalidDutyRecordError
from core.airports import TimezoneLookup
from core.parameters import FRMSConfiguration

logger = logging.getLogger(__name__)

SECTOR_DATE_FORMAT = "%d/%m/%Y"
SECTOR_TIME_FORMAT = "%H%M"

# Lead time for a first-of-day positioning sector within Australia
DOMESTIC_POSITIONING_SIGN_ON_MINUTES = 30

# Duty estimate when a sector carries no times at all
UNTIMED_DUTY_PADDING_HOURS = 1.5

# Sector consolidation
MAX_GAP_BETWEEN_SECTORS = timedelta(hours=3)
NEXT_DAY_CUTOFF = time(6, 0)

WIDE_BODY_TYPES = ("A380", "A330", "B787")


# ============================================================================
# PARSING
# ============================================================================

def parse_sector_datetime(date_str: str, time_str: str) -> Optional[datetime]:
    """``dd/MM/yyyy`` + ``HHMM`` or ``HH:MM`` as an aware UTC datetime"""
    if not date_str or not time_str:
        return None
    try:
        naive = datetime.strptime(
            f"{date_str.strip()} {time_str.strip().replace(':', '')}",
            f"{SECTOR_DATE_FORMAT} {SECTOR_TIME_FORMAT}",
        )
    except ValueError:
        return None
    return pytz.utc.localize(naive)


def parse_sector_day(date_str: str) -> Optional[datetime]:
    """UTC midnight of the sector date"""
    try:
        return pytz.utc.localize(datetime.strptime(date_str.strip(), SECTOR_DATE_FORMAT))
    except (ValueError, AttributeError):
        return None


def infer_crew_complement(*names: str) -> CrewComplement:
    return CrewComplement.from_pilot_count(sum(1 for name in names if name and name.strip()))


def _sector_label(sector: FlightSectorSummary) -> str:
    route = f"{sector.from_airport or '?'}-{sector.to_airport or '?'}"
    return f"{sector.flight_number or 'sector'} {route} on {sector.date}"


# ============================================================================
# DUTY BUILDER
# ============================================================================

class DutyBuilder:
    """
    Builds duties from sectors using the configured sign-on/sign-off margins.

    All sector times are UTC; local days are taken in ``home_timezone``.
    """

    def __init__(self, configuration: FRMSConfiguration, airports: TimezoneLookup, home_timezone: tzinfo):
        self.configuration = configuration
        self.airports = airports
        self.home_timezone = home_timezone

    # ------------------------------------------------------------------
    # Margins
    # ------------------------------------------------------------------

    def sign_on_lead_minutes(self, sector: FlightSectorSummary, is_first_flight_of_day: bool) -> int:
        if (is_first_flight_of_day and sector.is_positioning
                and sector.from_airport and sector.to_airport
                and self.airports.is_australian_airport(sector.from_airport)
                and self.airports.is_australian_airport(sector.to_airport)):
            return DOMESTIC_POSITIONING_SIGN_ON_MINUTES
        return self.configuration.sign_on_minutes_before_std

    def calculate_sign_on(self, departure: datetime, sector: FlightSectorSummary,
                          is_first_flight_of_day: bool = False) -> datetime:
        """``departure`` is STD when known, else OUT"""
        return departure - timedelta(minutes=self.sign_on_lead_minutes(sector, is_first_flight_of_day))

    def calculate_sign_off(self, arrival: datetime) -> datetime:
        return arrival + timedelta(minutes=self.configuration.sign_off_minutes_after_in)

    # ------------------------------------------------------------------
    # Single sector
    # ------------------------------------------------------------------

    def _duty_span(self, sector: FlightSectorSummary,
                   is_first_flight_of_day: bool) -> Optional[Tuple[datetime, datetime]]:
        std = parse_sector_datetime(sector.date, sector.scheduled_departure)
        sta = parse_sector_datetime(sector.date, sector.scheduled_arrival)

        if sector.out_time and sector.in_time:
            out_time = parse_sector_datetime(sector.date, sector.out_time)
            in_time = parse_sector_datetime(sector.date, sector.in_time)
            if out_time is None or in_time is None:
                logger.warning(
                    f"[duty] Skipping {_sector_label(sector)} - can't parse "
                    f"OUT({sector.out_time})/IN({sector.in_time}) times"
                )
                return None
            if in_time < out_time:
                in_time += timedelta(days=1)
            sign_on = self.calculate_sign_on(std or out_time, sector, is_first_flight_of_day)
            return sign_on, self.calculate_sign_off(in_time)

        if std is not None and sta is not None:
            if sta < std:
                sta += timedelta(days=1)
            sign_on = self.calculate_sign_on(std, sector, is_first_flight_of_day)
            return sign_on, self.calculate_sign_off(sta)

        if std is not None:
            sign_on = self.calculate_sign_on(std, sector, is_first_flight_of_day)
            minutes = int(sector.flight_time * 60) + self.configuration.sign_off_minutes_after_in
            return sign_on, sign_on + timedelta(minutes=minutes)

        # Simulator sessions and untimed roster lines
        sign_on = parse_sector_day(sector.date)
        return sign_on, sign_on + timedelta(minutes=int((sector.flight_time + UNTIMED_DUTY_PADDING_HOURS) * 60))

    def create_duty(self, sector: FlightSectorSummary, is_first_flight_of_day: bool = False) -> Optional[DutyRecord]:
        """
        One-sector duty, or None when the sector cannot describe a duty.

        Positioning sectors may carry no flight time; any other sector
        without flight time is skipped.
        """
        if parse_sector_day(sector.date) is None:
            logger.warning(f"[duty] Skipping {_sector_label(sector)} - invalid date format")
            return None

        if sector.flight_time == 0 and not sector.is_positioning:
            logger.debug(f"[duty] Skipping {_sector_label(sector)} - no flight time")
            return None

        span = self._duty_span(sector, is_first_flight_of_day)
        if span is None:
            return None
        sign_on, sign_off = span

        try:
            return DutyRecord(
                sign_on=sign_on,
                sign_off=sign_off,
                flight_time=sector.flight_time,
                night_time=sector.night_time,
                sector_count=1,
                duty_type=DutyType.DEADHEADING if sector.is_positioning else DutyType.OPERATING,
                crew_complement=infer_crew_complement(
                    sector.captain_name, sector.fo_name, sector.so1_name, sector.so2_name
                ),
                rest_facility=RestFacilityClass.NONE,
                is_international=any(t in sector.aircraft_type for t in WIDE_BODY_TYPES),
                home_base_timezone=self.home_timezone,
                duty_id=f"D_{sign_on.strftime('%Y%m%d')}_{sector.flight_number or 'SECTOR'}",
            )
        except InvalidDutyRecordError as e:
            logger.warning(f"[duty] Skipping {_sector_label(sector)} - {e}")
            return None

    # ------------------------------------------------------------------
    # Consolidation
    # ------------------------------------------------------------------

    def _belongs_to(self, current: List[DutyRecord], duty: DutyRecord) -> bool:
        """Gap of at most 3 h, signing on the same local day or before 0600 the next"""
        gap = duty.sign_on - current[-1].sign_off
        if gap > MAX_GAP_BETWEEN_SECTORS:
            return False

        first_day = to_local(current[0].sign_on, self.home_timezone).date()
        local_sign_on = to_local(duty.sign_on, self.home_timezone)
        if local_sign_on.date() == first_day:
            return True
        return (local_sign_on.date() == first_day + timedelta(days=1)
                and local_sign_on.time() < NEXT_DAY_CUTOFF)

    def _merge(self, sector_duties: Sequence[DutyRecord]) -> DutyRecord:
        if len(sector_duties) == 1:
            return sector_duties[0]
        first = sector_duties[0]
        operating = any(d.duty_type is DutyType.OPERATING for d in sector_duties)
        return DutyRecord(
            sign_on=first.sign_on,
            sign_off=max(d.sign_off for d in sector_duties),
            flight_time=sum(d.flight_time for d in sector_duties),
            night_time=sum(d.night_time for d in sector_duties),
            sector_count=sum(d.sector_count for d in sector_duties),
            duty_type=DutyType.OPERATING if operating else first.duty_type,
            crew_complement=first.crew_complement,
            rest_facility=first.rest_facility,
            is_international=any(d.is_international for d in sector_duties),
            home_base_timezone=self.home_timezone,
            duty_id=first.duty_id,
        )

    def consolidate_duties(self, sectors: Iterable[FlightSectorSummary]) -> List[DutyRecord]:
        """
        Sector-level duties merged into duty periods, most recent first.

        The first sector flown on each logbook date gets the first-of-day
        sign-on treatment.
        """
        def sort_key(sector):
            day = parse_sector_day(sector.date)
            clock = (sector.out_time or sector.scheduled_departure).replace(':', '')
            return (day is None, day or datetime.min.replace(tzinfo=pytz.utc), clock)

        seen_dates = set()
        sector_duties = []
        for sector in sorted(sectors, key=sort_key):
            first_of_day = sector.date not in seen_dates
            seen_dates.add(sector.date)
            duty = self.create_duty(sector, is_first_flight_of_day=first_of_day)
            if duty is not None:
                sector_duties.append(duty)

        sector_duties.sort(key=lambda d: d.sign_on)

        periods: List[List[DutyRecord]] = []
        for duty in sector_duties:
            if periods and self._belongs_to(periods[-1], duty):
                periods[-1].append(duty)
            else:
                periods.append([duty])

        consolidated = [self._merge(p) for p in periods]
        logger.info(f"[duty] Consolidated {len(sector_duties)} sectors into {len(consolidated)} duties")
        return sorted(consolidated, key=lambda d: d.sign_on, reverse=True)


def group_duties_by_local_date(duties: Iterable[DutyRecord]) -> List[DailyDutySummary]:
    """One summary per duty date, newest first"""
    ordered = sorted(duties, key=lambda d: d.date, reverse=True)
    return [DailyDutySummary(date=day, duties=tuple(group)) for day, group in groupby(ordered, key=lambda d: d.date)]


def match_scheduled_flight(
    candidates: Iterable[FlightSectorSummary],
    date: str,
    from_airport: str,
    to_airport: str,
    flight_number: Optional[str] = None,
    airports: Optional[TimezoneLookup] = None,
) -> Optional[FlightSectorSummary]:
    """
    The single scheduled sector matching date and route (and flight number
    when given). Zero or several matches return None.
    """
    def normalise(code: str) -> str:
        code = (code or "").strip().upper()
        return airports.convert_to_icao(code) if airports and code else code

    route = (normalise(from_airport), normalise(to_airport))
    matches = [
        c for c in candidates
        if c.date.strip() == date.strip()
        and (normalise(c.from_airport), normalise(c.to_airport)) == route
        and (flight_number is None or c.flight_number.strip().upper() == flight_number.strip().upper())
    ]
    if len(matches) != 1:
        if matches:
            logger.info(f"[import] {len(matches)} scheduled sectors match {route[0]}-{route[1]} on {date}; not guessing")
        return None
    return matches[0]
