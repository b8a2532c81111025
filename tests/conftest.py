"""
Shared fixtures: a deterministic in-memory airport lookup and services
wired to it, so engine tests never depend on the airportsdata release.
"""

from datetime import datetime
from typing import Optional

import pytest
import pytz

from core.airports import TimezoneLookup
from core.frms_service import FRMSCalculationService
from core.parameters import FRMSConfiguration


class StaticTimezoneLookup(TimezoneLookup):
    """code -> (icao, iata, tz name or fixed offset hours, country)"""

    AIRPORTS = {
        'SYD': ('YSSY', 'SYD', 'Australia/Sydney', 'AU'),
        'MEL': ('YMML', 'MEL', 'Australia/Melbourne', 'AU'),
        'BNE': ('YBBN', 'BNE', 'Australia/Brisbane', 'AU'),
        'PER': ('YPPH', 'PER', 'Australia/Perth', 'AU'),
        'AKL': ('NZAA', 'AKL', 'Pacific/Auckland', 'NZ'),
        'LHR': ('EGLL', 'LHR', 'Europe/London', 'GB'),
        'XOF': ('XXOF', 'XOF', 9.5, 'AU'),    # offset only, no zone name
    }

    def _entry(self, code):
        code = (code or '').strip().upper()
        if code in self.AIRPORTS:
            return self.AIRPORTS[code]
        return next((e for e in self.AIRPORTS.values() if e[0] == code), None)

    def get_timezone_name(self, code: str) -> Optional[str]:
        entry = self._entry(code)
        return entry[2] if entry and isinstance(entry[2], str) else None

    def get_timezone_offset_hours(self, code: str, at: Optional[datetime] = None) -> Optional[float]:
        entry = self._entry(code)
        if entry is None:
            return None
        if not isinstance(entry[2], str):
            return entry[2]
        at = at or datetime.now(pytz.utc)
        return at.astimezone(pytz.timezone(entry[2])).utcoffset().total_seconds() / 3600

    def convert_to_icao(self, code: str) -> str:
        entry = self._entry(code)
        return entry[0] if entry else code.upper()

    def convert_to_iata(self, code: str) -> str:
        entry = self._entry(code)
        return entry[1] if entry else code.upper()

    def is_australian_airport(self, code: str) -> bool:
        entry = self._entry(code)
        return bool(entry) and entry[3] == 'AU'


@pytest.fixture
def airports():
    return StaticTimezoneLookup()


@pytest.fixture
def short_haul_service(airports):
    return FRMSCalculationService(FRMSConfiguration.short_haul("SYD"), airports)


@pytest.fixture
def wide_body_service(airports):
    return FRMSCalculationService(FRMSConfiguration.long_haul("SYD"), airports)
