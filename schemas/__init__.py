from schemas.decision import BusinessRecord, DecisionCreate, DecisionStatus, DecisionUpdate
from schemas.imports import ImportRowResult, ImportSummary
from schemas.offer import (
    DEFAULT_PAYMENT_FREQUENCY,
    PAYMENT_FREQUENCIES,
    LegacyOfferEntry,
    OfferEntry,
    OfferFields,
    PaymentFrequency,
)

__all__ = [
    "BusinessRecord",
    "DecisionCreate",
    "DecisionStatus",
    "DecisionUpdate",
    "ImportRowResult",
    "ImportSummary",
    "DEFAULT_PAYMENT_FREQUENCY",
    "PAYMENT_FREQUENCIES",
    "LegacyOfferEntry",
    "OfferEntry",
    "OfferFields",
    "PaymentFrequency",
]
