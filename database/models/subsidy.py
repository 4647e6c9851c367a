import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Date, Numeric, Index, func

from .base import Base, JSONType


class Subsidy(Base):
    """
    Subsidy catalog entry. Read-only for the matching engine.

    region holds a list of region names; ["National"] marks a nation-wide
    program and NULL/[] an unrestricted one.
    """
    __tablename__ = 'subsidies'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Plain text or {"fr": ..., "en": ...}
    title = Column(JSONType, nullable=False)
    description = Column(JSONType)
    eligibility_criteria = Column(JSONType)

    agency = Column(Text)
    region = Column(JSONType)
    funding_type = Column(Text)
    amount_min = Column(Numeric(14, 2))
    amount_max = Column(Numeric(14, 2))
    deadline = Column(Date)

    categories = Column(JSONType)
    primary_sector = Column(Text)
    keywords = Column(JSONType)
    legal_entities = Column(JSONType)

    # State Flags
    is_universal_sector = Column(Boolean, nullable=False, default=False)
    is_business_relevant = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_subsidies_active_relevant', 'is_active', 'is_business_relevant'),
        Index('idx_subsidies_amount_max', 'amount_max'),
    )
