"""
Display order and index-based selection for multi-offer views.
Storage order is never re-sorted; only display copies are.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from schemas.decision import BusinessRecord
from schemas.offer import OfferEntry

# Primary offer gets the first theme; the rest cycle by display position.
COLOR_THEMES: tuple[dict[str, str], ...] = (
    {"accent": "#14B8A6", "accentLight": "#2DD4BF", "label": "Best Offer"},
    {"accent": "#8B5CF6", "accentLight": "#A78BFA", "label": "Option 2"},
    {"accent": "#F59E0B", "accentLight": "#FBBF24", "label": "Option 3"},
    {"accent": "#EC4899", "accentLight": "#F472B6", "label": "Option 4"},
    {"accent": "#3B82F6", "accentLight": "#60A5FA", "label": "Option 5"},
    {"accent": "#10B981", "accentLight": "#34D399", "label": "Option 6"},
)


def display_order(offers: list[OfferEntry]) -> list[OfferEntry]:
    """Primary first; everything else keeps its stored relative order (stable sort)."""
    return sorted(offers, key=lambda o: not o.is_primary)


def primary_offer(offers: list[OfferEntry]) -> Optional[OfferEntry]:
    for offer in offers:
        if offer.is_primary:
            return offer
    return offers[0] if offers else None


def wrap_index(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return index % count


def next_index(index: int, count: int) -> int:
    return wrap_index(index + 1, count)


def previous_index(index: int, count: int) -> int:
    return wrap_index(index - 1, count)


def select_offer(offers: list[OfferEntry], index: int) -> Optional[OfferEntry]:
    ordered = display_order(offers)
    if not ordered:
        return None
    return ordered[wrap_index(index, len(ordered))]


def theme_for_index(index: int) -> dict[str, str]:
    return COLOR_THEMES[index % len(COLOR_THEMES)]


def _parse_day(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def most_recent_approval_date(record: BusinessRecord, offers: list[OfferEntry]) -> datetime:
    """
    Latest approval date across the flat field and every offer; unreadable dates are ignored.
    Falls back to created_at, then the epoch, so decisions always sort.
    """
    candidates = [_parse_day(record.approval_date or "")]
    candidates.extend(_parse_day(o.approval_date) for o in offers)
    dates = [d for d in candidates if d is not None]
    if dates:
        return max(dates)
    created = record.created_at
    if created is not None:
        return created if created.tzinfo else created.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(0, tz=timezone.utc)
