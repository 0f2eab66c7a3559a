"""
Canonical lender-offer shapes.
Amounts, rates and dates are decimal-strings exactly as entered; nothing here parses
currency. The only closed value set is the payment frequency.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

PaymentFrequency = Literal["daily", "weekly", "monthly"]
PAYMENT_FREQUENCIES: tuple[str, ...] = ("daily", "weekly", "monthly")
DEFAULT_PAYMENT_FREQUENCY = "weekly"

_TEXT_FIELDS = (
    "lender",
    "advance_amount",
    "term",
    "factor_rate",
    "max_upsell",
    "total_payback",
    "net_after_fees",
    "notes",
    "approval_date",
    "commission",
)


def coerce_payment_frequency(value: Any) -> str:
    """'Weekly', ' DAILY ', None, 'biweekly' -> one of daily/weekly/monthly (weekly when unrecognized)."""
    text = str(value or "").strip().lower()
    return text if text in PAYMENT_FREQUENCIES else DEFAULT_PAYMENT_FREQUENCY


def as_text(value: Any) -> Any:
    """None -> '', numbers -> their str() form; anything else is left for pydantic to validate."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return value


class OfferFields(BaseModel):
    """Editable attributes of one lender offer (everything except identity, primary flag and timestamp)."""

    lender: str = ""
    advance_amount: str = Field("", alias="advanceAmount")
    term: str = ""
    payment_frequency: PaymentFrequency = Field(DEFAULT_PAYMENT_FREQUENCY, alias="paymentFrequency")
    factor_rate: str = Field("", alias="factorRate")
    max_upsell: str = Field("", alias="maxUpsell")
    total_payback: str = Field("", alias="totalPayback")
    net_after_fees: str = Field("", alias="netAfterFees")
    notes: str = ""
    approval_date: str = Field("", alias="approvalDate")
    commission: str = ""

    model_config = {"populate_by_name": True}

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return as_text(value)

    @field_validator("payment_frequency", mode="before")
    @classmethod
    def _frequency(cls, value: Any) -> str:
        return coerce_payment_frequency(value)

    def editable_values(self) -> dict[str, Any]:
        return self.model_dump(include=set(OfferFields.model_fields))


class OfferEntry(OfferFields):
    """One lender offer as persisted in a decision's offer collection."""

    id: str
    is_primary: bool = Field(False, alias="isPrimary")
    created_at: str = Field(..., alias="createdAt")

    @field_validator("is_primary", mode="before")
    @classmethod
    def _primary(cls, value: Any) -> Any:
        return False if value is None else value

    def to_storage(self) -> dict[str, Any]:
        """camelCase dict for the JSON column (same keys the frontend reads)."""
        return self.model_dump(by_alias=True)


class LegacyOfferEntry(BaseModel):
    """
    Pre-multi-offer array element: lender, amount, term, factorRate.
    Some rows were written with advanceAmount instead of amount; unknown keys are kept
    so best-effort mapping can pick up anything else that happens to be there.
    Expects snake_case keys.
    """

    lender: str = ""
    amount: str = ""
    advance_amount: str = ""
    term: str = ""
    factor_rate: str = ""

    model_config = {"extra": "allow"}

    @field_validator("lender", "amount", "advance_amount", "term", "factor_rate", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return as_text(value)

    def to_offer_fields(self) -> OfferFields:
        values = dict(self.model_extra or {})
        values.update(
            lender=self.lender,
            advance_amount=self.amount or self.advance_amount,
            term=self.term,
            factor_rate=self.factor_rate,
        )
        return OfferFields.model_validate(values)
