"""
Read-modify-write cycles over one decision: load, normalize, apply one ledger operation,
persist the canonical list. Concurrent edits to the same decision are last-write-wins.
"""
from __future__ import annotations

import logging
import re
import secrets
import string
import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from models import BusinessDecision
from schemas.decision import BusinessRecord, DecisionCreate, DecisionUpdate
from schemas.offer import OfferEntry
from services import offer_ledger
from services.errors import DecisionNotFoundError
from services.normalizer import normalize
from services.offer_ledger import FieldsInput
from services.ordering import (
    display_order,
    most_recent_approval_date,
    next_index,
    previous_index,
    primary_offer,
    theme_for_index,
    wrap_index,
)
from services.repository import DecisionRepository

logger = logging.getLogger(__name__)

# Legacy single-offer columns, kept in step with the primary offer for older readers
FLAT_OFFER_FIELDS = (
    "lender",
    "advance_amount",
    "term",
    "payment_frequency",
    "factor_rate",
    "max_upsell",
    "total_payback",
    "net_after_fees",
    "notes",
    "approval_date",
)

_SLUG_CODE_CHARS = string.digits + string.ascii_uppercase

DecisionOffers = tuple[BusinessDecision, list[OfferEntry]]


def new_decision_id() -> str:
    return f"dec-{uuid.uuid4().hex[:12]}"


def snapshot(decision: BusinessDecision) -> BusinessRecord:
    return BusinessRecord.model_validate(decision)


def offers_for(decision: BusinessDecision) -> list[OfferEntry]:
    return normalize(snapshot(decision))


def working_offers(decision: BusinessDecision) -> list[OfferEntry]:
    """Offers ready for a mutation: stored canonical lists may carry no primary, so repair first."""
    return offer_ledger.ensure_single_primary(offers_for(decision))


def store_offers(decision: BusinessDecision, offers: list[OfferEntry]) -> None:
    """Write the canonical list and mirror its primary into the flat columns (cleared when empty)."""
    decision.additional_approvals = [o.to_storage() for o in offers] or None
    primary = primary_offer(offers)
    for name in FLAT_OFFER_FIELDS:
        value = getattr(primary, name) if primary else None
        setattr(decision, name, value or None)


def generate_approval_slug(
    business_name: Optional[str],
    business_email: Optional[str],
    today: Optional[date] = None,
) -> str:
    """'Acme Pizza, LLC' -> 'acmepizzallc-20240501-K3X9Q2'."""
    source = business_name or (business_email or "").split("@")[0]
    indicator = re.sub(r"[^a-z0-9]", "", source.lower())[:15] or "approval"
    day = (today or datetime.now(timezone.utc).date()).strftime("%Y%m%d")
    code = "".join(secrets.choice(_SLUG_CODE_CHARS) for _ in range(6))
    return f"{indicator}-{day}-{code}"


async def apply_status(repo: DecisionRepository, decision: BusinessDecision, status: str) -> None:
    decision.status = status
    if status == "approved" and not decision.approval_slug:
        slug = generate_approval_slug(decision.business_name, decision.business_email)
        while await repo.get_by_slug(slug) is not None:
            slug = generate_approval_slug(decision.business_name, decision.business_email)
        decision.approval_slug = slug
    elif status == "declined":
        decision.approval_slug = None


async def get_decision(repo: DecisionRepository, decision_id: str) -> BusinessDecision:
    decision = await repo.get(decision_id)
    if decision is None:
        raise DecisionNotFoundError(decision_id)
    return decision


async def list_decisions(repo: DecisionRepository) -> list[DecisionOffers]:
    """All decisions with their offers, most recent approval first."""
    rows = []
    for decision in await repo.list_all():
        record = snapshot(decision)
        offers = normalize(record)
        rows.append((most_recent_approval_date(record, offers), decision, offers))
    rows.sort(key=lambda r: r[0], reverse=True)
    return [(decision, offers) for _, decision, offers in rows]


async def create_decision(
    repo: DecisionRepository, body: DecisionCreate
) -> DecisionOffers:
    decision = BusinessDecision(
        id=new_decision_id(),
        business_name=body.business_name,
        business_email=body.business_email,
        status="pending",
        decline_reason=body.decline_reason,
    )
    offers: list[OfferEntry] = []
    if body.offer is not None:
        offers = offer_ledger.add_offer(offers, body.offer)
    store_offers(decision, offers)
    await apply_status(repo, decision, body.status)
    await repo.add(decision)
    logger.info("Created decision %s (%s) with %d offer(s)", decision.id, decision.status, len(offers))
    return decision, offers


async def update_decision(
    repo: DecisionRepository, decision_id: str, body: DecisionUpdate
) -> DecisionOffers:
    decision = await get_decision(repo, decision_id)
    if body.business_name is not None:
        decision.business_name = body.business_name
    if body.business_email is not None:
        decision.business_email = body.business_email
    if body.decline_reason is not None:
        decision.decline_reason = body.decline_reason
    if body.status is not None:
        await apply_status(repo, decision, body.status)
    await repo.save(decision)
    return decision, offers_for(decision)


async def delete_decision(repo: DecisionRepository, decision_id: str) -> None:
    """Removing a decision is always explicit; emptying its offer list never does it."""
    decision = await get_decision(repo, decision_id)
    await repo.delete(decision)
    logger.info("Deleted decision %s", decision_id)


async def get_offers(
    repo: DecisionRepository, decision_id: str
) -> DecisionOffers:
    decision = await get_decision(repo, decision_id)
    return decision, offers_for(decision)


async def _mutate(
    repo: DecisionRepository,
    decision_id: str,
    operation: Callable[..., list[OfferEntry]],
    *args: Any,
) -> DecisionOffers:
    decision = await get_decision(repo, decision_id)
    offers = operation(working_offers(decision), *args)
    store_offers(decision, offers)
    await repo.save(decision)
    return decision, offers


async def add_decision_offer(repo: DecisionRepository, decision_id: str, fields: FieldsInput) -> DecisionOffers:
    return await _mutate(repo, decision_id, offer_ledger.add_offer, fields)


async def edit_decision_offer(
    repo: DecisionRepository, decision_id: str, offer_id: str, fields: FieldsInput
) -> DecisionOffers:
    return await _mutate(repo, decision_id, offer_ledger.edit_offer, offer_id, fields)


async def set_decision_primary(repo: DecisionRepository, decision_id: str, offer_id: str) -> DecisionOffers:
    return await _mutate(repo, decision_id, offer_ledger.set_primary, offer_id)


async def delete_decision_offer(repo: DecisionRepository, decision_id: str, offer_id: str) -> DecisionOffers:
    """The decision stays even when its last offer goes; callers check for an empty list."""
    decision, offers = await _mutate(repo, decision_id, offer_ledger.delete_offer, offer_id)
    if not offers:
        logger.info("Decision %s has no offers left", decision_id)
    return decision, offers


async def get_approval_letter(repo: DecisionRepository, slug: str, index: int = 0) -> dict[str, Any]:
    """Read-only, display-ordered view behind a public approval-letter slug."""
    decision = await repo.get_by_slug(slug)
    if decision is None:
        raise DecisionNotFoundError(slug)
    ordered = display_order(offers_for(decision))
    count = len(ordered)
    selected = wrap_index(index, count)
    return {
        "businessName": decision.business_name,
        "offers": [
            {**offer.to_storage(), "theme": theme_for_index(i)}
            for i, offer in enumerate(ordered)
        ],
        "offerCount": count,
        "selectedIndex": selected,
        "nextIndex": next_index(selected, count),
        "previousIndex": previous_index(selected, count),
    }
