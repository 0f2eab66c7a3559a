from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from services.decisions import get_approval_letter
from services.errors import DecisionNotFoundError
from services.repository import SqlDecisionRepository

router = APIRouter(prefix="/api/approval-letter", tags=["approval-letter"])


@router.get("/{slug}", response_model=dict)
async def read_approval_letter(
    slug: str,
    index: int = Query(0, description="Selected offer position in display order; wraps around"),
    db: AsyncSession = Depends(get_db),
):
    """Public, read-only offer view. Primary offer first; index cycles through the rest."""
    try:
        return await get_approval_letter(SqlDecisionRepository(db), slug, index)
    except DecisionNotFoundError:
        raise HTTPException(status_code=404, detail="Approval letter not found")
