"""
Compliance sinks - write-only destinations for one audit event per matching run.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

RECOMMENDATION_EVENT = 'subsidy_recommendation_generated'


@dataclass
class ComplianceEvent:
    event_type: str
    function_name: str
    profile_id: Optional[str] = None
    account_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class ComplianceSink(ABC):
    @abstractmethod
    def emit(self, event: ComplianceEvent) -> None:
        pass


class LoggingComplianceSink(ComplianceSink):
    """Writes events to the application log only."""

    def emit(self, event: ComplianceEvent) -> None:
        logger.info(
            f"Compliance event {event.event_type} for profile {event.profile_id}: "
            f"{json.dumps(event.payload, ensure_ascii=False, default=str)}"
        )


class SqlComplianceSink(ComplianceSink):
    """Appends events to the compliance_event table."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory

    def emit(self, event: ComplianceEvent) -> None:
        from database.uow import compliance_uow

        with compliance_uow(self.session_factory) as repo:
            repo.add_event(
                event_type=event.event_type,
                payload=event.payload,
                function_name=event.function_name,
                profile_id=event.profile_id,
                account_id=event.account_id,
            )
