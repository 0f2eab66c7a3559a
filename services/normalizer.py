"""
Reads a decision's offers regardless of which storage generation wrote them.

Three shapes coexist in `additional_approvals`:
  - canonical: list of OfferEntry dicts (first element carries an isPrimary key, even false)
  - legacy array: [{lender, amount, term, factorRate}, ...] with no primary marker
  - nothing (null or []), in which case the flat lender/advance_amount columns may hold the only offer
The shape is decided once by read_stored_offers(); normalize() only branches on its result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import ValidationError

from schemas.decision import BusinessRecord
from schemas.offer import LegacyOfferEntry, OfferEntry, OfferFields
from services.offer_ids import offer_id_factory
from services.offer_ledger import ensure_single_primary, iso_timestamp
from utils.case import dict_keys_to_snake

logger = logging.getLogger(__name__)

PRIMARY_MARKER = "isPrimary"


@dataclass(frozen=True)
class CanonicalOffers:
    offers: list[OfferEntry] = field(default_factory=list)


@dataclass(frozen=True)
class LegacyOfferArray:
    # (position in the stored array, parsed entry)
    entries: list[tuple[int, LegacyOfferEntry]] = field(default_factory=list)


@dataclass(frozen=True)
class NoStoredOffers:
    pass


StoredOffers = Union[CanonicalOffers, LegacyOfferArray, NoStoredOffers]


def is_canonical_payload(raw: Any) -> bool:
    return (
        isinstance(raw, list)
        and len(raw) > 0
        and isinstance(raw[0], dict)
        and PRIMARY_MARKER in raw[0]
    )


def _parse_canonical(raw: list[Any]) -> list[OfferEntry]:
    offers: list[OfferEntry] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object offer entry at index %d", i)
            continue
        data = dict(item)
        data.setdefault("id", offer_id_factory("legacy-migration")(i))
        data.setdefault("createdAt", "")
        try:
            offers.append(OfferEntry.model_validate(data))
        except ValidationError as e:
            logger.warning("Skipping unreadable offer entry at index %d: %s", i, e)
    return offers


def _parse_legacy(raw: list[Any]) -> list[tuple[int, LegacyOfferEntry]]:
    entries: list[tuple[int, LegacyOfferEntry]] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.warning("Skipping unreadable legacy approval at index %d: %r", i, item)
            continue
        try:
            entries.append((i, LegacyOfferEntry.model_validate(dict_keys_to_snake(item))))
        except ValidationError as e:
            logger.warning("Skipping unreadable legacy approval at index %d: %s", i, e)
    return entries


def read_stored_offers(raw: Any) -> StoredOffers:
    """Classify the persisted additional_approvals value. Anything without a readable isPrimary key is legacy."""
    if is_canonical_payload(raw):
        return CanonicalOffers(_parse_canonical(raw))
    if isinstance(raw, list) and raw:
        return LegacyOfferArray(_parse_legacy(raw))
    return NoStoredOffers()


def _has_flat_offer(record: BusinessRecord) -> bool:
    return bool(record.advance_amount) or bool(record.lender)


def _flat_offer(record: BusinessRecord) -> OfferEntry:
    fields = OfferFields(
        lender=record.lender,
        advance_amount=record.advance_amount,
        term=record.term,
        payment_frequency=record.payment_frequency,
        factor_rate=record.factor_rate,
        max_upsell=record.max_upsell,
        total_payback=record.total_payback,
        net_after_fees=record.net_after_fees,
        notes=record.notes,
        approval_date=record.approval_date,
    )
    return OfferEntry(
        **fields.editable_values(),
        id=offer_id_factory("primary-migration")(record.id),
        is_primary=True,
        created_at=iso_timestamp(record.created_at),
    )


def normalize(record: BusinessRecord, *, now: Optional[datetime] = None) -> list[OfferEntry]:
    """
    Canonical ordered offer list for a decision. Pure and repeatable: the same unmutated
    record always yields an equal list.

    Legacy array entries never recorded a timestamp; they get the migration moment, taken
    from `now` if given, else the record's updated_at/created_at.
    """
    stored = read_stored_offers(record.additional_approvals)
    if isinstance(stored, CanonicalOffers):
        return list(stored.offers)

    offers: list[OfferEntry] = []
    if _has_flat_offer(record):
        offers.append(_flat_offer(record))

    if isinstance(stored, LegacyOfferArray):
        migrated_at = iso_timestamp(now or record.updated_at or record.created_at)
        legacy_id = offer_id_factory("legacy-migration")
        for index, legacy in stored.entries:
            offers.append(
                OfferEntry(
                    **legacy.to_offer_fields().editable_values(),
                    id=legacy_id(index),
                    is_primary=False,
                    created_at=migrated_at,
                )
            )
    return ensure_single_primary(offers)
