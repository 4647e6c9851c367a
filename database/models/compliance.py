import uuid

from sqlalchemy import Column, Text, TIMESTAMP, func

from .base import Base, JSONType


class ComplianceEvent(Base):
    """Audit trail entry, one per matching run. Write-only from the engine."""
    __tablename__ = 'compliance_event'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    event_type = Column(Text, nullable=False)
    function_name = Column(Text)
    profile_id = Column(Text)
    account_id = Column(Text)
    payload = Column(JSONType, nullable=False, default=dict)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
