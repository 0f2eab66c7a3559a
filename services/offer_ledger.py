"""
Mutations over one decision's offer list.
Every operation returns a new list and leaves its input untouched. After any of them,
a non-empty list has exactly one entry with is_primary=True.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from schemas.offer import OfferEntry, OfferFields
from services.errors import OfferNotFoundError
from services.offer_ids import OfferOrigin, offer_id_factory

FieldsInput = Union[OfferFields, Mapping[str, Any]]


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix; naive datetimes are taken as UTC."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_fields(fields: FieldsInput) -> OfferFields:
    if isinstance(fields, OfferFields):
        return fields
    return OfferFields.model_validate(dict(fields))


def _index_of(offers: list[OfferEntry], offer_id: str) -> int:
    for i, offer in enumerate(offers):
        if offer.id == offer_id:
            return i
    raise OfferNotFoundError(offer_id)


def ensure_single_primary(offers: list[OfferEntry]) -> list[OfferEntry]:
    """
    Repair a list so it has exactly one primary when non-empty.
    No primary -> the first entry is promoted; several -> the first flagged one wins.
    """
    if not offers:
        return []
    primaries = [i for i, o in enumerate(offers) if o.is_primary]
    if len(primaries) == 1:
        return list(offers)
    keep = primaries[0] if primaries else 0
    return [o.model_copy(update={"is_primary": i == keep}) for i, o in enumerate(offers)]


def add_offer(
    offers: list[OfferEntry],
    fields: FieldsInput,
    *,
    origin: OfferOrigin = "manual",
    now: Optional[datetime] = None,
) -> list[OfferEntry]:
    """Append a new offer; it is primary only when the list was empty."""
    new_id = offer_id_factory(origin)()
    existing_ids = {o.id for o in offers}
    while new_id in existing_ids:
        new_id = offer_id_factory(origin)()
    entry = OfferEntry(
        **_as_fields(fields).editable_values(),
        id=new_id,
        is_primary=not offers,
        created_at=iso_timestamp(now),
    )
    return [*offers, entry]


def edit_offer(offers: list[OfferEntry], offer_id: str, fields: FieldsInput) -> list[OfferEntry]:
    """Replace the editable attributes of one offer; id, created_at and is_primary are kept."""
    idx = _index_of(offers, offer_id)
    updated = offers[idx].model_copy(update=_as_fields(fields).editable_values())
    return [*offers[:idx], updated, *offers[idx + 1:]]


def set_primary(offers: list[OfferEntry], offer_id: str) -> list[OfferEntry]:
    _index_of(offers, offer_id)
    return [o.model_copy(update={"is_primary": o.id == offer_id}) for o in offers]


def delete_offer(offers: list[OfferEntry], offer_id: str) -> list[OfferEntry]:
    """
    Remove one offer. If it was the primary, the first remaining entry (list order) is promoted.
    An emptied list is returned as-is; what happens to the owning decision is the caller's call.
    """
    idx = _index_of(offers, offer_id)
    remaining = [*offers[:idx], *offers[idx + 1:]]
    if remaining and not any(o.is_primary for o in remaining):
        remaining[0] = remaining[0].model_copy(update={"is_primary": True})
    return remaining
