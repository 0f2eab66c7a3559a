"""
Storage boundary for business decisions. The offer engine never talks to the session directly.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import BusinessDecision


class DecisionRepository(ABC):
    @abstractmethod
    async def get(self, decision_id: str) -> Optional[BusinessDecision]: ...

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional[BusinessDecision]: ...

    @abstractmethod
    async def get_by_business_name(self, business_name: str) -> Optional[BusinessDecision]:
        """Exact, case-sensitive match; the oldest record wins when names repeat."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[BusinessDecision]: ...

    @abstractmethod
    async def list_all(self) -> list[BusinessDecision]: ...

    @abstractmethod
    async def add(self, decision: BusinessDecision) -> BusinessDecision: ...

    @abstractmethod
    async def save(self, decision: BusinessDecision) -> BusinessDecision: ...

    @abstractmethod
    async def delete(self, decision: BusinessDecision) -> None: ...

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """One unit of work. Storage that supports it undoes everything written inside when the block raises."""
        yield


class SqlDecisionRepository(DecisionRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, decision_id: str) -> Optional[BusinessDecision]:
        result = await self.session.execute(select(BusinessDecision).where(BusinessDecision.id == decision_id))
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Optional[BusinessDecision]:
        result = await self.session.execute(
            select(BusinessDecision).where(BusinessDecision.approval_slug == slug)
        )
        return result.scalar_one_or_none()

    async def get_by_business_name(self, business_name: str) -> Optional[BusinessDecision]:
        result = await self.session.execute(
            select(BusinessDecision)
            .where(BusinessDecision.business_name == business_name)
            .order_by(BusinessDecision.created_at)
        )
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[BusinessDecision]:
        result = await self.session.execute(
            select(BusinessDecision)
            .where(func.lower(BusinessDecision.business_email) == email.lower())
            .order_by(BusinessDecision.created_at)
        )
        return result.scalars().first()

    async def list_all(self) -> list[BusinessDecision]:
        result = await self.session.execute(select(BusinessDecision).order_by(BusinessDecision.updated_at.desc()))
        return list(result.scalars().all())

    async def add(self, decision: BusinessDecision) -> BusinessDecision:
        now = datetime.now(timezone.utc)
        decision.created_at = decision.created_at or now
        decision.updated_at = now
        self.session.add(decision)
        # Flush so later lookups in the same session (bulk import) can see the row
        await self.session.flush()
        return decision

    async def save(self, decision: BusinessDecision) -> BusinessDecision:
        # Set explicitly: a server-side onupdate would expire the attribute after flush
        decision.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return decision

    async def delete(self, decision: BusinessDecision) -> None:
        await self.session.delete(decision)
        await self.session.flush()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        # SAVEPOINT: a failed flush rolls back this block only and leaves the session usable
        async with self.session.begin_nested():
            yield
