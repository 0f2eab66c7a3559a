from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from schemas.offer import OfferFields

DecisionStatus = Literal["pending", "approved", "declined", "unqualified"]


class BusinessRecord(BaseModel):
    """Read-only snapshot of a decision row; the normalizer's only input."""

    id: str
    status: str = "pending"
    business_name: Optional[str] = None
    lender: Optional[str] = None
    advance_amount: Optional[str] = None
    term: Optional[str] = None
    payment_frequency: Optional[str] = None
    factor_rate: Optional[str] = None
    max_upsell: Optional[str] = None
    total_payback: Optional[str] = None
    net_after_fees: Optional[str] = None
    notes: Optional[str] = None
    approval_date: Optional[str] = None
    additional_approvals: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DecisionCreate(BaseModel):
    business_name: str = Field(..., min_length=1, alias="businessName")
    business_email: Optional[str] = Field(None, alias="businessEmail")
    status: DecisionStatus = "pending"
    decline_reason: Optional[str] = Field(None, alias="declineReason")
    offer: Optional[OfferFields] = Field(None, description="Optional first offer; becomes primary")

    model_config = {"populate_by_name": True}


class DecisionUpdate(BaseModel):
    business_name: Optional[str] = Field(None, min_length=1, alias="businessName")
    business_email: Optional[str] = Field(None, alias="businessEmail")
    status: Optional[DecisionStatus] = None
    decline_reason: Optional[str] = Field(None, alias="declineReason")

    model_config = {"populate_by_name": True}
