"""
Airport Timezone Lookup
=======================

TimezoneLookup is the collaborator interface the engine consumes for
home-base and sector airport information. AirportTimezoneService is the
default implementation backed by the airportsdata package (IATA and ICAO
indexes) with pytz for DST-aware offsets.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, tzinfo
from typing import Dict, Optional

import airportsdata
import pytz

logger = logging.getLogger(__name__)

_IATA_DB = airportsdata.load('IATA')
_ICAO_DB = airportsdata.load('ICAO')

# ICAO prefixes for Brisbane, Melbourne, Perth and Sydney FIRs
AUSTRALIAN_ICAO_PREFIXES = ('YB', 'YM', 'YP', 'YS')


class TimezoneLookup(ABC):
    """Side-effect-free airport information source"""

    @abstractmethod
    def get_timezone_offset_hours(self, code: str, at: Optional[datetime] = None) -> Optional[float]:
        """Signed hours from UTC at ``at`` (default now), None when unknown"""

    @abstractmethod
    def convert_to_icao(self, code: str) -> str:
        """ICAO code for an IATA or ICAO input; unknown codes come back unchanged"""

    @abstractmethod
    def is_australian_airport(self, code: str) -> bool:
        ...

    def get_timezone_name(self, code: str) -> Optional[str]:
        """IANA zone name when the source knows it"""
        return None

    def convert_to_iata(self, code: str) -> str:
        return code.upper()

    def resolve_timezone(self, code: str, at: Optional[datetime] = None,
                         fallback: str = 'Australia/Sydney') -> tzinfo:
        """
        Zone for an airport: IANA name when known, else a fixed offset,
        else the fallback zone.
        """
        name = self.get_timezone_name(code)
        if name:
            logger.debug(f"[timezone] {code} -> {name}")
            return pytz.timezone(name)

        offset = self.get_timezone_offset_hours(code, at)
        if offset is not None:
            logger.debug(f"[timezone] {code} -> fixed offset {offset:+.2f}h")
            return pytz.FixedOffset(int(round(offset * 60)))

        logger.warning(f"[timezone] No timezone for '{code}', using {fallback}")
        return pytz.timezone(fallback)


class AirportTimezoneService(TimezoneLookup):
    """
    Airport database backed by airportsdata.

    Accepts IATA (3 letter) or ICAO (4 letter) codes. Runtime overrides
    cover private fields missing from the database.
    """

    def __init__(self, overrides: Dict[str, dict] = None):
        # code -> {'icao': ..., 'iata': ..., 'tz': ..., 'country': ...}
        self._overrides = {k.upper(): v for k, v in (overrides or {}).items()}

    def _entry(self, code: str) -> Optional[dict]:
        if not code:
            return None
        code = code.strip().upper()
        if code in self._overrides:
            return self._overrides[code]
        if len(code) == 3:
            return _IATA_DB.get(code)
        return _ICAO_DB.get(code)

    def get_timezone_name(self, code: str) -> Optional[str]:
        entry = self._entry(code)
        return entry.get('tz') if entry else None

    def get_timezone_offset_hours(self, code: str, at: Optional[datetime] = None) -> Optional[float]:
        name = self.get_timezone_name(code)
        if not name:
            return None
        at = at or datetime.now(pytz.utc)
        if at.tzinfo is None:
            at = pytz.utc.localize(at)
        return at.astimezone(pytz.timezone(name)).utcoffset().total_seconds() / 3600

    def convert_to_icao(self, code: str) -> str:
        entry = self._entry(code)
        if entry and entry.get('icao'):
            return entry['icao']
        return code.strip().upper()

    def convert_to_iata(self, code: str) -> str:
        entry = self._entry(code)
        if entry and entry.get('iata'):
            return entry['iata']
        return code.strip().upper()

    def is_australian_airport(self, code: str) -> bool:
        entry = self._entry(code)
        if entry and entry.get('country'):
            return entry['country'] == 'AU'
        return self.convert_to_icao(code).startswith(AUSTRALIAN_ICAO_PREFIXES)
