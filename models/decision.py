from sqlalchemy import JSON, Column, DateTime, String, Text, func

from database import Base


class BusinessDecision(Base):
    __tablename__ = "business_decisions"

    id = Column(String(64), primary_key=True, index=True)
    business_name = Column(String(256), nullable=False, index=True)
    business_email = Column(String(256), nullable=True, index=True)
    status = Column(String(32), nullable=False, default="pending", index=True)

    # Legacy flat offer fields (single-approval era); mirrored from the primary offer on write
    lender = Column(String(256), nullable=True)
    advance_amount = Column(String(64), nullable=True)
    term = Column(String(64), nullable=True)
    payment_frequency = Column(String(16), nullable=True)
    factor_rate = Column(String(32), nullable=True)
    max_upsell = Column(String(64), nullable=True)
    total_payback = Column(String(64), nullable=True)
    net_after_fees = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)
    approval_date = Column(String(32), nullable=True)

    # null | legacy [{lender, amount, term, factorRate}] | canonical [{id, ..., isPrimary, createdAt}]
    additional_approvals = Column(JSON, nullable=True)

    decline_reason = Column(Text, nullable=True)
    # [{lender, reason}] recorded by bulk import
    declined_lenders = Column(JSON, nullable=True)

    approval_slug = Column(String(128), unique=True, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
