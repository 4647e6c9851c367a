import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from database.models import ComplianceEvent
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ComplianceRepository(BaseRepository):
    def add_event(
        self,
        event_type: str,
        payload: Dict[str, Any],
        function_name: Optional[str] = None,
        profile_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> ComplianceEvent:
        event = ComplianceEvent(
            event_type=event_type,
            function_name=function_name,
            profile_id=profile_id,
            account_id=account_id,
            payload=payload,
        )
        self.db.add(event)
        self.db.flush()
        return event

    def list_for_profile(self, profile_id: str) -> List[ComplianceEvent]:
        stmt = (
            select(ComplianceEvent)
            .where(ComplianceEvent.profile_id == profile_id)
            .order_by(ComplianceEvent.created_at)
        )
        return self.db.execute(stmt).scalars().all()
