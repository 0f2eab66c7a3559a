"""
Bulk import of lender results from a spreadsheet export (one row per business).

Columns (header match is case- and whitespace-insensitive):
  Business Name, Business Email (optional), Overall Status ("Approved" | "Declined Only")
  Best Lender, Best Amount, Best Rate, Best Term, Best Frequency, Best Commission
  Lender N, Amount N, Rate N, Term N, Frequency N, Commission N          for N = 1..4
  Declined Lender N, Decline Reason N                                   for N = 1..3

Rows merge into existing decisions (matched by exact business name) instead of replacing them.
Amounts and commissions pass through as text.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from models import BusinessDecision
from schemas.imports import ImportRowResult, ImportSummary
from schemas.offer import OfferEntry, OfferFields
from services import offer_ledger
from services.decisions import apply_status, new_decision_id, offers_for, store_offers, working_offers
from services.errors import ImportRowError
from services.repository import DecisionRepository
from utils.case import header_key

logger = logging.getLogger(__name__)

ADDITIONAL_OFFER_SLOTS = 4
DECLINED_SLOTS = 3

STATUS_APPROVED = "approved"
STATUS_DECLINED_ONLY = "declined only"


@dataclass(frozen=True)
class OfferSlot:
    lender: str
    amount: str
    rate: str
    term: str
    frequency: str
    commission: str

    @property
    def populated(self) -> bool:
        return bool(self.lender or self.amount)

    def to_fields(self) -> OfferFields:
        return OfferFields(
            lender=self.lender,
            advance_amount=self.amount,
            factor_rate=self.rate,
            term=self.term,
            payment_frequency=self.frequency,
            commission=self.commission,
        )


@dataclass(frozen=True)
class ParsedRow:
    business_name: str
    business_email: str
    overall_status: str
    offers: list[OfferSlot]
    declined: list[dict[str, str]]


def parse_csv(text: str) -> list[dict[str, str]]:
    """CSV text with a header row -> list of row dicts (blank lines skipped)."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    rows = []
    for raw in reader:
        row = {(k or "").strip(): (v or "").strip() for k, v in raw.items() if k is not None}
        if any(row.values()):
            rows.append(row)
    return rows


def _lookup(row: Mapping[str, object]) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in row.items():
        text = "" if value is None else str(value).strip()
        out[header_key(key)] = text
    return out


def _slot(cells: dict[str, str], prefix: Optional[str], number: Optional[int]) -> OfferSlot:
    def cell(name: str) -> str:
        if prefix:
            return cells.get(f"{prefix} {name}", "")
        return cells.get(f"{name} {number}", "")

    return OfferSlot(
        lender=cell("lender"),
        amount=cell("amount"),
        rate=cell("rate"),
        term=cell("term"),
        frequency=cell("frequency"),
        commission=cell("commission"),
    )


def parse_row(row: Mapping[str, object]) -> ParsedRow:
    cells = _lookup(row)
    business_name = cells.get("business name", "")
    if not business_name:
        raise ImportRowError("Missing business name")

    slots = [_slot(cells, "best", None)]
    slots.extend(_slot(cells, None, n) for n in range(1, ADDITIONAL_OFFER_SLOTS + 1))

    declined = []
    for n in range(1, DECLINED_SLOTS + 1):
        lender = cells.get(f"declined lender {n}", "")
        reason = cells.get(f"decline reason {n}", "")
        if lender or reason:
            declined.append({"lender": lender, "reason": reason})

    return ParsedRow(
        business_name=business_name,
        business_email=cells.get("business email", ""),
        overall_status=cells.get("overall status", "").lower(),
        offers=[s for s in slots if s.populated],
        declined=declined,
    )


def _row_status(overall_status: str) -> str:
    if overall_status == STATUS_APPROVED:
        return "approved"
    if overall_status == STATUS_DECLINED_ONLY:
        return "declined"
    raise ImportRowError(f"Unrecognized overall status: {overall_status or '(blank)'}")


async def _apply_approved(repo: DecisionRepository, decision: BusinessDecision, parsed: ParsedRow) -> int:
    if not parsed.offers:
        raise ImportRowError("Approved row has no lender offers")
    offers: list[OfferEntry] = working_offers(decision)
    for slot in parsed.offers:
        offers = offer_ledger.add_offer(offers, slot.to_fields(), origin="import")
    store_offers(decision, offers)
    await apply_status(repo, decision, "approved")
    return len(parsed.offers)


async def _apply_declined(repo: DecisionRepository, decision: BusinessDecision, parsed: ParsedRow) -> None:
    # Read before writing so an unreadable record is left untouched
    has_offers = bool(offers_for(decision))
    declined_lenders = [*(decision.declined_lenders or []), *parsed.declined]
    decision.declined_lenders = declined_lenders
    if not has_offers:
        await apply_status(repo, decision, "declined")


async def import_row(repo: DecisionRepository, row: Mapping[str, object]) -> tuple[str, int]:
    """Apply one row; returns (business name, offers added). Raises ImportRowError for bad rows."""
    parsed = parse_row(row)
    status = _row_status(parsed.overall_status)
    decision = await repo.get_by_business_name(parsed.business_name)
    is_new = decision is None
    if is_new:
        decision = BusinessDecision(
            id=new_decision_id(),
            business_name=parsed.business_name,
            business_email=parsed.business_email or None,
            status="pending",
        )
    added = 0
    if status == "approved":
        added = await _apply_approved(repo, decision, parsed)
    else:
        await _apply_declined(repo, decision, parsed)

    if is_new:
        await repo.add(decision)
    else:
        if parsed.business_email and not decision.business_email:
            decision.business_email = parsed.business_email
        await repo.save(decision)
    return parsed.business_name, added


async def import_rows(rows: Iterable[Mapping[str, object]], repo: DecisionRepository) -> ImportSummary:
    """Import rows one at a time; a failing row is recorded and the batch moves on."""
    summary = ImportSummary()
    for number, row in enumerate(rows, start=1):
        name = str(_lookup(row).get("business name", ""))
        try:
            async with repo.transaction():
                name, added = await import_row(repo, row)
        except Exception as e:
            logger.warning("Import row %d (%r) failed: %s", number, name, e)
            summary.errors += 1
            summary.results.append(
                ImportRowResult(row=number, business_name=name, status="error", error=str(e))
            )
            continue
        summary.imported += 1
        summary.results.append(
            ImportRowResult(row=number, business_name=name, status="imported", offers_added=added)
        )
    logger.info("Bulk import finished: %d imported, %d failed", summary.imported, summary.errors)
    return summary
