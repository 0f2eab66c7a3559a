from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models import BusinessDecision
from schemas.decision import DecisionCreate, DecisionUpdate
from schemas.offer import OfferEntry, OfferFields
from services import decisions as decision_service
from services.bulk_import import import_rows, parse_csv
from services.errors import DecisionNotFoundError, OfferNotFoundError
from services.repository import SqlDecisionRepository
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/decisions", tags=["decisions"])

MSG_DECISION_NOT_FOUND = "Decision not found"
MSG_OFFER_NOT_FOUND = "Offer not found"


def _offers_to_response(offers: list[OfferEntry]) -> list[dict[str, Any]]:
    return [o.to_storage() for o in offers]


def _decision_to_response(d: BusinessDecision, offers: list[OfferEntry]) -> dict[str, Any]:
    """Serialize decision with its normalized offers (camelCase for frontend)."""
    return {
        "id": d.id,
        "businessName": d.business_name,
        "businessEmail": d.business_email,
        "status": d.status,
        "approvalSlug": d.approval_slug,
        "declineReason": d.decline_reason,
        "declinedLenders": dict_keys_to_camel(d.declined_lenders or []),
        "offers": _offers_to_response(offers),
        "createdAt": d.created_at.isoformat() if d.created_at else None,
        "updatedAt": d.updated_at.isoformat() if d.updated_at else None,
    }


def _offers_result(d: BusinessDecision, offers: list[OfferEntry]) -> dict[str, Any]:
    return {
        "decisionId": d.id,
        "offers": _offers_to_response(offers),
    }


@router.get("")
async def list_decisions(db: AsyncSession = Depends(get_db)):
    rows = await decision_service.list_decisions(SqlDecisionRepository(db))
    return [_decision_to_response(d, offers) for d, offers in rows]


@router.post("", status_code=201)
async def create_decision(body: DecisionCreate, db: AsyncSession = Depends(get_db)):
    decision, offers = await decision_service.create_decision(SqlDecisionRepository(db), body)
    return _decision_to_response(decision, offers)


@router.post("/import", response_model=dict)
async def import_decisions(
    file: UploadFile = File(..., description="Lender results spreadsheet (CSV)"),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload a CSV of lender results; rows merge into existing decisions by business name.
    Bad rows are reported individually and never abort the batch.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Please upload a CSV file.")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="File is empty.")
    if len(content) > settings.import_max_bytes:
        raise HTTPException(status_code=400, detail="File is too large.")
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded.") from e
    summary = await import_rows(parse_csv(text), SqlDecisionRepository(db))
    return summary.to_response()


@router.get("/{decision_id}")
async def get_decision(decision_id: str, db: AsyncSession = Depends(get_db)):
    try:
        decision, offers = await decision_service.get_offers(SqlDecisionRepository(db), decision_id)
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    return _decision_to_response(decision, offers)


@router.patch("/{decision_id}")
async def update_decision(decision_id: str, body: DecisionUpdate, db: AsyncSession = Depends(get_db)):
    try:
        decision, offers = await decision_service.update_decision(SqlDecisionRepository(db), decision_id, body)
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    return _decision_to_response(decision, offers)


@router.delete("/{decision_id}", status_code=204)
async def delete_decision(decision_id: str, db: AsyncSession = Depends(get_db)):
    try:
        await decision_service.delete_decision(SqlDecisionRepository(db), decision_id)
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    return None


@router.get("/{decision_id}/offers")
async def list_offers(decision_id: str, db: AsyncSession = Depends(get_db)):
    try:
        decision, offers = await decision_service.get_offers(SqlDecisionRepository(db), decision_id)
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    return _offers_result(decision, offers)


@router.post("/{decision_id}/offers", status_code=201)
async def add_offer(decision_id: str, body: OfferFields, db: AsyncSession = Depends(get_db)):
    try:
        decision, offers = await decision_service.add_decision_offer(SqlDecisionRepository(db), decision_id, body)
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    return _offers_result(decision, offers)


@router.put("/{decision_id}/offers/{offer_id}")
async def edit_offer(decision_id: str, offer_id: str, body: OfferFields, db: AsyncSession = Depends(get_db)):
    try:
        decision, offers = await decision_service.edit_decision_offer(
            SqlDecisionRepository(db), decision_id, offer_id, body
        )
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    except OfferNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_OFFER_NOT_FOUND)
    return _offers_result(decision, offers)


@router.post("/{decision_id}/offers/{offer_id}/primary")
async def set_primary_offer(decision_id: str, offer_id: str, db: AsyncSession = Depends(get_db)):
    try:
        decision, offers = await decision_service.set_decision_primary(
            SqlDecisionRepository(db), decision_id, offer_id
        )
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    except OfferNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_OFFER_NOT_FOUND)
    return _offers_result(decision, offers)


@router.delete("/{decision_id}/offers/{offer_id}")
async def delete_offer(decision_id: str, offer_id: str, db: AsyncSession = Depends(get_db)):
    """Deleting the last offer keeps the decision; DELETE the decision itself to remove it."""
    try:
        decision, offers = await decision_service.delete_decision_offer(
            SqlDecisionRepository(db), decision_id, offer_id
        )
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_DECISION_NOT_FOUND)
    except OfferNotFoundError:
        raise HTTPException(status_code=404, detail=MSG_OFFER_NOT_FOUND)
    return {**_offers_result(decision, offers), "isEmpty": not offers}
