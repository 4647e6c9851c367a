import uuid

from sqlalchemy import Column, Integer, Text, TIMESTAMP, Boolean, Numeric, Index, func

from .base import Base


class AIUsageLog(Base):
    """
    One row per billable refinement attempt. Append-only.
    """
    __tablename__ = 'ai_usage_log'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(Text, nullable=False)
    profile_id = Column(Text)

    function_name = Column(Text, nullable=False)
    model_provider = Column(Text)
    input_tokens = Column(Integer, nullable=False, default=0)
    output_tokens = Column(Integer, nullable=False, default=0)
    cached_tokens = Column(Integer, nullable=False, default=0)
    cost_cents = Column(Numeric(12, 4), nullable=False, default=0)
    success = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index('idx_ai_usage_log_account', 'account_id', 'created_at'),
    )


class AIUsageAccount(Base):
    """
    Running cost total per account for the current billing period.

    Incremented in place with UPDATE ... SET total = total + :cost; reset
    happens outside the engine at billing-period rollover.
    """
    __tablename__ = 'ai_usage_account'

    account_id = Column(Text, primary_key=True)
    total_cost_cents = Column(Numeric(14, 4), nullable=False, default=0)
    call_count = Column(Integer, nullable=False, default=0)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
