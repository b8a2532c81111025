"""
Core FRMS Engine Components
===========================

Main exports for the flight/duty time limitation engine.
"""

from models.exceptions import FRMSError, InvalidDutyRecordError, RuleTableIntegrityError

from core.parameters import FRMSFramework, FRMSConfiguration

from core.rule_tables import (
    CumulativeLimits,
    validate_rule_tables,
    lookup_base_limits,
    lookup_window_limits,
    lookup_cumulative_limits,
    lookup_sign_on_limits,
)
from core.time_classifier import (
    classify_sign_on_window,
    classify_time_class,
    is_early_start,
)
from core.airports import TimezoneLookup, AirportTimezoneService
from core.cumulative import CumulativeTotalsCalculator, DutyDay, count_streaks
from core.rest import minimum_rest_hours, earliest_sign_on
from core.next_duty import MaximumNextDutyCalculator
from core.mbtt import calculate_mbtt
from core.compliance import FRMSComplianceChecker
from core.duty_builder import (
    DutyBuilder,
    group_duties_by_local_date,
    match_scheduled_flight,
)
from core.frms_service import FRMSCalculationService

__all__ = [
    # Errors
    'FRMSError',
    'InvalidDutyRecordError',
    'RuleTableIntegrityError',
    # Parameters
    'FRMSFramework',
    'FRMSConfiguration',
    # Rule tables
    'CumulativeLimits',
    'validate_rule_tables',
    'lookup_base_limits',
    'lookup_window_limits',
    'lookup_cumulative_limits',
    'lookup_sign_on_limits',
    # Classification
    'classify_sign_on_window',
    'classify_time_class',
    'is_early_start',
    # Airports
    'TimezoneLookup',
    'AirportTimezoneService',
    # Totals & rest
    'CumulativeTotalsCalculator',
    'DutyDay',
    'count_streaks',
    'minimum_rest_hours',
    'earliest_sign_on',
    # Next duty, MBTT & compliance
    'MaximumNextDutyCalculator',
    'calculate_mbtt',
    'FRMSComplianceChecker',
    # Duty import
    'DutyBuilder',
    'group_duties_by_local_date',
    'match_scheduled_flight',
    # Main service
    'FRMSCalculationService',
]
