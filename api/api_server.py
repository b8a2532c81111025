"""
api_server.py - FastAPI Backend for FRMS Calculations
=====================================================

RESTful API exposing the flight/duty limitation engine to a frontend.

Endpoints:
- GET  /health                  - Health check
- POST /api/frms/totals         - Cumulative totals and their status
- POST /api/frms/next-duty      - Maximum next duty (+ short-haul windows)
- POST /api/frms/mbtt           - Minimum base turnaround time (wide-body)
- POST /api/frms/compliance     - Check a proposed duty
- POST /api/frms/what-if        - Evaluate a hypothetical duty

The pilot configuration travels with every request; nothing is stored.

Usage:
    uvicorn api.api_server:app --reload --host 0.0.0.0 --port 8000
"""

import logging
import os
from datetime import datetime, tzinfo
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from core import AirportTimezoneService, FRMSCalculationService, FRMSConfiguration, FRMSError, TimezoneLookup
from models.data_models import (
    ComplianceStatus, CrewComplement, CumulativeTotals, DutyRecord, DutyType, Fleet,
    FlightSectorSummary, Found, LimitType, RestFacilityClass, WhatIfScenario,
)

logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP INITIALIZATION
# ============================================================================

app = FastAPI(
    title="FRMS Calculation API",
    description="Flight and duty time limitations for A320/B737 and A380/A330/B787 fleets",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_airports = AirportTimezoneService()


def get_airports() -> TimezoneLookup:
    """Airport lookup dependency (overridable in tests)"""
    return _airports


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class ConfigurationModel(BaseModel):
    fleet: str = Fleet.A320_B737.value  # "a320_b737" or "a380_a330_b787"
    home_base: str = "SYD"              # IATA or ICAO
    sign_on_minutes_before_std: int = 60
    sign_off_minutes_after_in: Optional[int] = None
    show_warnings_at_percentage: float = 0.9
    default_limit_type: str = LimitType.OPERATIONAL.value

    def to_configuration(self) -> FRMSConfiguration:
        return FRMSConfiguration(
            fleet=Fleet(self.fleet),
            home_base=self.home_base,
            sign_on_minutes_before_std=self.sign_on_minutes_before_std,
            sign_off_minutes_after_in=self.sign_off_minutes_after_in,
            show_warnings_at_percentage=self.show_warnings_at_percentage,
            default_limit_type=LimitType(self.default_limit_type),
        )


class DutyModel(BaseModel):
    sign_on: datetime   # ISO 8601 with offset
    sign_off: datetime
    flight_time: float = 0.0
    night_time: float = 0.0
    sector_count: int = 1
    duty_type: str = DutyType.OPERATING.value
    crew_complement: int = 2
    rest_facility: str = RestFacilityClass.NONE.value
    is_international: bool = False
    duty_id: Optional[str] = None

    def to_record(self, home_timezone: tzinfo) -> DutyRecord:
        return DutyRecord(
            sign_on=self.sign_on,
            sign_off=self.sign_off,
            flight_time=self.flight_time,
            night_time=self.night_time,
            sector_count=self.sector_count,
            duty_type=DutyType(self.duty_type),
            crew_complement=CrewComplement(self.crew_complement),
            rest_facility=RestFacilityClass(self.rest_facility),
            is_international=self.is_international,
            home_base_timezone=home_timezone,
            duty_id=self.duty_id,
        )


class SectorModel(BaseModel):
    date: str                 # dd/MM/yyyy
    block_time: float = 0.0
    sim_time: float = 0.0
    night_time: float = 0.0
    captain_name: str = ""
    fo_name: str = ""
    so1_name: str = ""
    so2_name: str = ""
    is_positioning: bool = False
    out_time: str = ""        # HHMM UTC
    in_time: str = ""
    scheduled_departure: str = ""
    scheduled_arrival: str = ""
    from_airport: str = ""
    to_airport: str = ""
    aircraft_type: str = ""
    flight_number: str = ""

    def to_summary(self) -> FlightSectorSummary:
        return FlightSectorSummary(**vars(self))


class TotalsModel(BaseModel):
    flight_time_7_days: float = 0.0
    flight_time_28_or_30_days: float = 0.0
    flight_time_365_days: float = 0.0
    duty_time_7_days: float = 0.0
    duty_time_14_days: float = 0.0
    days_off_in_period: int = 0
    consecutive_duties: int = 0
    consecutive_early_starts: int = 0
    consecutive_late_nights: int = 0
    duty_days_in_11_days: int = 0
    flight_time_period_days: int = 28

    def to_totals(self) -> CumulativeTotals:
        return CumulativeTotals(**vars(self))


class StatusResponse(BaseModel):
    level: str
    messages: List[str] = []


class TotalsRequest(BaseModel):
    configuration: ConfigurationModel = ConfigurationModel()
    duties: List[DutyModel] = []
    flights: Optional[List[SectorModel]] = None
    as_of: Optional[datetime] = None


class TotalsResponse(BaseModel):
    totals: TotalsModel
    statuses: Dict[str, StatusResponse]


class NextDutyRequest(BaseModel):
    configuration: ConfigurationModel = ConfigurationModel()
    previous_duty: Optional[DutyModel] = None
    totals: TotalsModel = TotalsModel()
    limit_type: Optional[str] = None
    crew_complement: int = 2
    rest_facility: str = RestFacilityClass.NONE.value
    duties: List[DutyModel] = []
    as_of: Optional[datetime] = None


class MBTTRequest(BaseModel):
    configuration: ConfigurationModel = ConfigurationModel(fleet=Fleet.A380_A330_B787.value)
    days_away: int
    credited_flight_hours: float
    had_planned_duty_over_18_hours: bool = False


class ComplianceRequest(BaseModel):
    configuration: ConfigurationModel = ConfigurationModel()
    proposed_duty: DutyModel
    previous_duty: Optional[DutyModel] = None
    totals: TotalsModel = TotalsModel()


class WhatIfRequest(BaseModel):
    configuration: ConfigurationModel = ConfigurationModel()
    proposed_sign_on: datetime
    estimated_duty_hours: float
    estimated_flight_hours: float
    estimated_sectors: int = 1
    crew_complement: int = 2
    rest_facility: str = RestFacilityClass.NONE.value
    estimated_night_hours: float = 0.0
    previous_duty: Optional[DutyModel] = None
    totals: TotalsModel = TotalsModel()
    limit_type: Optional[str] = None


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _status_response(status: ComplianceStatus) -> StatusResponse:
    return StatusResponse(level=status.level.value, messages=list(status.messages))


def _lookup_response(result) -> dict:
    """Found -> {applicable, result}; NotApplicable -> {applicable, reason}"""
    if isinstance(result, Found):
        return {"applicable": True, "result": result.value}
    return {"applicable": False, "reason": result.reason}


def _service(configuration: ConfigurationModel, airports: TimezoneLookup) -> FRMSCalculationService:
    return FRMSCalculationService(configuration.to_configuration(), airports)


def _unprocessable(e: Exception) -> HTTPException:
    logger.warning(f"[api] Rejected request: {e}")
    return HTTPException(status_code=422, detail=str(e))


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }


@app.post("/api/frms/totals", response_model=TotalsResponse)
async def cumulative_totals(request: TotalsRequest, airports: TimezoneLookup = Depends(get_airports)):
    try:
        service = _service(request.configuration, airports)
        zone = service.home_timezone(request.as_of)
        duties = [d.to_record(zone) for d in request.duties]
        flights = [f.to_summary() for f in request.flights] if request.flights is not None else None
        totals = service.calculate_cumulative_totals(duties, flights, request.as_of)
        statuses = service.evaluate_cumulative_totals(totals)
    except (FRMSError, ValueError) as e:
        raise _unprocessable(e)

    logger.info(f"[api] Totals for {len(duties)} duties at {request.configuration.home_base}")
    return TotalsResponse(
        totals=TotalsModel(**vars(totals)),
        statuses={name: _status_response(s) for name, s in statuses.items()},
    )


@app.post("/api/frms/next-duty")
async def next_duty(request: NextDutyRequest, airports: TimezoneLookup = Depends(get_airports)):
    try:
        service = _service(request.configuration, airports)
        zone = service.home_timezone(request.as_of)
        previous = request.previous_duty.to_record(zone) if request.previous_duty else None
        limit_type = LimitType(request.limit_type) if request.limit_type else service.configuration.default_limit_type
        totals = request.totals.to_totals()

        maximum = service.calculate_maximum_next_duty(
            previous, totals, limit_type,
            CrewComplement(request.crew_complement), RestFacilityClass(request.rest_facility),
        )
        short_haul = service.calculate_short_haul_next_duty_limits(
            previous, totals, limit_type, [d.to_record(zone) for d in request.duties], request.as_of,
        )
    except (FRMSError, ValueError) as e:
        raise _unprocessable(e)

    return {"maximum_next_duty": maximum, "short_haul_limits": _lookup_response(short_haul)}


@app.post("/api/frms/mbtt")
async def mbtt(request: MBTTRequest, airports: TimezoneLookup = Depends(get_airports)):
    try:
        result = _service(request.configuration, airports).calculate_mbtt(
            request.days_away, request.credited_flight_hours, request.had_planned_duty_over_18_hours
        )
    except (FRMSError, ValueError) as e:
        raise _unprocessable(e)
    return _lookup_response(result)


@app.post("/api/frms/compliance", response_model=StatusResponse)
async def compliance(request: ComplianceRequest, airports: TimezoneLookup = Depends(get_airports)):
    try:
        service = _service(request.configuration, airports)
        zone = service.home_timezone(request.proposed_duty.sign_on)
        status = service.check_compliance(
            request.proposed_duty.to_record(zone),
            request.previous_duty.to_record(zone) if request.previous_duty else None,
            request.totals.to_totals(),
        )
    except (FRMSError, ValueError) as e:
        raise _unprocessable(e)
    return _status_response(status)


@app.post("/api/frms/what-if")
async def what_if(request: WhatIfRequest, airports: TimezoneLookup = Depends(get_airports)):
    try:
        service = _service(request.configuration, airports)
        zone = service.home_timezone(request.proposed_sign_on)
        scenario = WhatIfScenario(
            proposed_sign_on=request.proposed_sign_on,
            estimated_duty_hours=request.estimated_duty_hours,
            estimated_flight_hours=request.estimated_flight_hours,
            estimated_sectors=request.estimated_sectors,
            crew_complement=CrewComplement(request.crew_complement),
            rest_facility=RestFacilityClass(request.rest_facility),
            estimated_night_hours=request.estimated_night_hours,
        )
        result = service.check_what_if_scenario(
            scenario,
            request.previous_duty.to_record(zone) if request.previous_duty else None,
            request.totals.to_totals(),
            LimitType(request.limit_type) if request.limit_type else None,
        )
    except (FRMSError, ValueError) as e:
        raise _unprocessable(e)

    return {
        "is_compliant": result.is_compliant,
        "status": _status_response(result.status),
        "violations": list(result.violations),
        "warnings": list(result.warnings),
        "applicable_window": result.applicable_window,
    }


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 8000))
    logger.info(f"FRMS Calculation API at http://localhost:{port} (docs at /docs)")
    uvicorn.run(app, host="0.0.0.0", port=port)
