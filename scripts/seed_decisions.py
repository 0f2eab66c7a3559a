"""
Seed business decisions covering every stored offer shape (flat fields, legacy array, canonical).
Run: python -m scripts.seed_decisions (from the project root, with DB reachable).
"""
import asyncio
import os
import sys
from datetime import datetime, timezone

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import AsyncSessionLocal, init_db
from models import BusinessDecision
from services.decisions import offers_for
from services.repository import SqlDecisionRepository


DECISIONS_DATA = [
    {
        # Single-approval era: only the flat columns
        "id": "dec-seed-flat",
        "business_name": "Acme Pizza LLC",
        "business_email": "owner@acmepizza.example",
        "status": "approved",
        "lender": "Acme Capital",
        "advance_amount": "50000",
        "term": "6 months",
        "payment_frequency": "weekly",
        "factor_rate": "1.35",
        "total_payback": "67500",
        "approval_date": "2024-03-14",
        "approval_slug": "acmepizzallc-20240314-SEED01",
    },
    {
        # Pre-isPrimary array next to a flat primary
        "id": "dec-seed-legacy",
        "business_name": "Harbor Auto Repair",
        "business_email": "books@harborauto.example",
        "status": "approved",
        "lender": "Bluevine",
        "advance_amount": "80000",
        "term": "9 months",
        "factor_rate": "1.29",
        "additional_approvals": [
            {"lender": "Fundbox", "amount": "60000", "term": "6 months", "factorRate": "1.32"},
            {"lender": "Rapid Finance", "advanceAmount": "45000", "term": "4 months", "factorRate": "1.38"},
        ],
        "approval_slug": "harborautorepai-20240502-SEED02",
    },
    {
        "id": "dec-seed-canonical",
        "business_name": "Green Leaf Landscaping",
        "status": "approved",
        "additional_approvals": [
            {
                "id": "appr-1717000000000-a1b2c3",
                "lender": "OnDeck",
                "advanceAmount": "120000",
                "term": "12 months",
                "paymentFrequency": "daily",
                "factorRate": "1.25",
                "maxUpsell": "150000",
                "totalPayback": "150000",
                "netAfterFees": "116400",
                "notes": "",
                "approvalDate": "2024-05-30",
                "commission": "",
                "isPrimary": False,
                "createdAt": "2024-05-30T15:04:05.000Z",
            },
            {
                "id": "appr-1717000500000-x9y8z7",
                "lender": "Kapitus",
                "advanceAmount": "100000",
                "term": "10 months",
                "paymentFrequency": "weekly",
                "factorRate": "1.22",
                "maxUpsell": "",
                "totalPayback": "122000",
                "netAfterFees": "97000",
                "notes": "Best rate",
                "approvalDate": "2024-05-31",
                "commission": "",
                "isPrimary": True,
                "createdAt": "2024-05-31T09:00:00.000Z",
            },
        ],
        "approval_slug": "greenleaflandsc-20240531-SEED03",
    },
    {
        "id": "dec-seed-declined",
        "business_name": "Sunset Bakery",
        "status": "declined",
        "decline_reason": "Too many existing positions",
        "declined_lenders": [{"lender": "Credibly", "reason": "Stacking"}],
    },
]


async def seed():
    await init_db()
    async with AsyncSessionLocal() as session:
        repo = SqlDecisionRepository(session)
        for data in DECISIONS_DATA:
            if await repo.get(data["id"]):
                print(f"Decision {data['id']} already exists, skipping.")
                continue
            decision = BusinessDecision(**data, created_at=datetime.now(timezone.utc))
            await repo.add(decision)
            print(f"Created decision: {decision.business_name} ({len(offers_for(decision))} offer(s))")
        await session.commit()
    print("Seed done.")


if __name__ == "__main__":
    asyncio.run(seed())
