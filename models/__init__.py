from models.decision import BusinessDecision

__all__ = [
    "BusinessDecision",
]
