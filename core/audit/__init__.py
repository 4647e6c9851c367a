"""Audit Module - compliance event sinks."""
from core.audit.sink import (
    ComplianceEvent,
    ComplianceSink,
    LoggingComplianceSink,
    SqlComplianceSink,
    RECOMMENDATION_EVENT,
)

__all__ = [
    'ComplianceEvent',
    'ComplianceSink',
    'LoggingComplianceSink',
    'SqlComplianceSink',
    'RECOMMENDATION_EVENT',
]
