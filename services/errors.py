"""Errors raised by the offer engine and its orchestration layer."""


class OfferNotFoundError(LookupError):
    """An edit, set-primary or delete referenced an offer id that is not in the current list."""

    def __init__(self, offer_id: str):
        super().__init__(f"Offer not found: {offer_id}")
        self.offer_id = offer_id


class DecisionNotFoundError(LookupError):
    def __init__(self, decision_id: str):
        super().__init__(f"Decision not found: {decision_id}")
        self.decision_id = decision_id


class ImportRowError(ValueError):
    """One bulk-import row could not be applied. Captured per row; never aborts the batch."""
