"""
FRMS Calculation Service
========================

Facade over the engine for one pilot configuration. Holds only the
immutable configuration and the airport lookup; every call resolves the
home-base zone once and delegates to the stateless calculators.
"""

import logging
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Union

from models.data_models import (
    ComplianceStatus, CrewComplement, CumulativeTotals, DailyDutySummary, DutyRecord,
    FlightSectorSummary, Found, LimitType, MaximumNextDuty, MinimumBaseTurnaroundTime,
    NotApplicable, RestFacilityClass, ShortHaulNextDutyLimits, WhatIfResult, WhatIfScenario,
)
from core.airports import AirportTimezoneService, TimezoneLookup
from core.compliance import FRMSComplianceChecker
from core.cumulative import CumulativeTotalsCalculator
from core.duty_builder import DutyBuilder, group_duties_by_local_date
from core.mbtt import mbtt_for_fleet
from core.next_duty import MaximumNextDutyCalculator
from core.parameters import FRMSConfiguration

logger = logging.getLogger(__name__)


class FRMSCalculationService:
    """
    Flight/duty limitation calculations for one fleet and home base.

    Example:
        >>> service = FRMSCalculationService(FRMSConfiguration.short_haul("SYD"))
        >>> totals = service.calculate_cumulative_totals(duties)
        >>> service.calculate_maximum_next_duty(duties[0], totals, LimitType.OPERATIONAL,
        ...                                     CrewComplement.TWO_PILOT)
    """

    def __init__(self, configuration: FRMSConfiguration = None, airports: TimezoneLookup = None):
        self.configuration = configuration or FRMSConfiguration()
        self.airports = airports or AirportTimezoneService()

    @property
    def framework(self):
        return self.configuration.framework

    def home_timezone(self, at: Optional[datetime] = None) -> tzinfo:
        zone = self.airports.resolve_timezone(
            self.configuration.home_base, at, self.framework.fallback_timezone
        )
        logger.debug(f"[service] Home base {self.configuration.home_base} resolved to {zone}")
        return zone

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def calculate_cumulative_totals(
        self,
        duties: Sequence[DutyRecord],
        flights: Optional[Sequence[FlightSectorSummary]] = None,
        as_of: Optional[datetime] = None,
    ) -> CumulativeTotals:
        calculator = CumulativeTotalsCalculator(
            self.configuration.fleet, self.home_timezone(as_of), self.framework
        )
        return calculator.calculate(duties, flights, as_of)

    def evaluate_cumulative_totals(self, totals: CumulativeTotals) -> Dict[str, ComplianceStatus]:
        return self._checker().evaluate_cumulative_totals(totals)

    # ------------------------------------------------------------------
    # Next duty
    # ------------------------------------------------------------------

    def _next_duty_calculator(self, at: Optional[datetime] = None) -> MaximumNextDutyCalculator:
        return MaximumNextDutyCalculator(self.configuration.fleet, self.home_timezone(at), self.framework)

    def calculate_maximum_next_duty(
        self,
        previous_duty: Optional[DutyRecord],
        cumulative_totals: CumulativeTotals,
        limit_type: LimitType,
        proposed_crew_complement: CrewComplement,
        proposed_rest_facility: RestFacilityClass = RestFacilityClass.NONE,
    ) -> MaximumNextDuty:
        at = previous_duty.sign_off if previous_duty else None
        return self._next_duty_calculator(at).calculate(
            previous_duty, cumulative_totals, limit_type, proposed_crew_complement, proposed_rest_facility
        )

    def calculate_short_haul_next_duty_limits(
        self,
        previous_duty: Optional[DutyRecord],
        cumulative_totals: CumulativeTotals,
        limit_type: LimitType,
        duties: Sequence[DutyRecord] = (),
        as_of: Optional[datetime] = None,
    ) -> Union[Found[ShortHaulNextDutyLimits], NotApplicable]:
        return self._next_duty_calculator(as_of).short_haul_limits(
            previous_duty, cumulative_totals, limit_type, duties, as_of
        )

    def calculate_mbtt(
        self,
        days_away: int,
        credited_flight_hours: float,
        had_planned_duty_over_18_hours: bool = False,
    ) -> Union[Found[MinimumBaseTurnaroundTime], NotApplicable]:
        return mbtt_for_fleet(
            self.configuration.fleet, days_away, credited_flight_hours, had_planned_duty_over_18_hours
        )

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------

    def _checker(self, at: Optional[datetime] = None) -> FRMSComplianceChecker:
        return FRMSComplianceChecker(self.configuration, self.home_timezone(at))

    def check_compliance(
        self,
        proposed_duty: DutyRecord,
        previous_duty: Optional[DutyRecord],
        cumulative_totals: CumulativeTotals,
    ) -> ComplianceStatus:
        return self._checker(proposed_duty.sign_on).check_compliance(
            proposed_duty, previous_duty, cumulative_totals
        )

    def check_what_if_scenario(
        self,
        scenario: WhatIfScenario,
        previous_duty: Optional[DutyRecord],
        cumulative_totals: CumulativeTotals,
        limit_type: LimitType = None,
    ) -> WhatIfResult:
        return self._checker(scenario.proposed_sign_on).check_what_if_scenario(
            scenario, previous_duty, cumulative_totals, limit_type
        )

    # ------------------------------------------------------------------
    # Duty import
    # ------------------------------------------------------------------

    def _builder(self, at: Optional[datetime] = None) -> DutyBuilder:
        return DutyBuilder(self.configuration, self.airports, self.home_timezone(at))

    def create_duty(self, sector: FlightSectorSummary, is_first_flight_of_day: bool = False) -> Optional[DutyRecord]:
        return self._builder().create_duty(sector, is_first_flight_of_day)

    def consolidate_duties(self, sectors: Iterable[FlightSectorSummary]) -> List[DutyRecord]:
        return self._builder().consolidate_duties(sectors)

    def group_duties_by_local_date(self, duties: Iterable[DutyRecord]) -> List[DailyDutySummary]:
        return group_duties_by_local_date(duties)
