"""
exceptions.py - FRMS Error Hierarchy
====================================

- InvalidDutyRecordError: a record that cannot describe a real duty period
- RuleTableIntegrityError: a rule table is missing a key it must cover

Per-record parse problems are not raised; callers log and skip them.
"""


class FRMSError(Exception):
    """Base class for flight/duty limitation errors"""


class InvalidDutyRecordError(FRMSError, ValueError):
    """Duty record violates sign-on/sign-off or flight-time invariants"""


class RuleTableIntegrityError(FRMSError, RuntimeError):
    """A rule table lookup missed for a valid key - fix the table, not the caller"""
