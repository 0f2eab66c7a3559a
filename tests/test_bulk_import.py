"""
Bulk CSV import: row parsing, merging into existing decisions, per-row failure isolation.
Run from project root: python -m pytest tests/test_bulk_import.py -v
"""
import unittest
from unittest import mock

from database import AsyncSessionLocal, init_db
from models import BusinessDecision
from services.bulk_import import import_rows, parse_csv, parse_row
from services.decisions import offers_for
from services.errors import ImportRowError
from services.repository import SqlDecisionRepository
from tests.fakes import InMemoryDecisionRepository


def _approved_row(name: str, **cells) -> dict:
    row = {
        "Business Name": name,
        "Overall Status": "Approved",
        "Best Lender": "OnDeck",
        "Best Amount": "50000",
        "Best Rate": "1.30",
        "Best Term": "6 months",
        "Best Frequency": "Daily",
        "Best Commission": "2500",
    }
    row.update(cells)
    return row


class TestParsing(unittest.TestCase):
    def test_parse_csv(self):
        text = (
            "\ufeffBusiness Name,Overall Status,Best Lender,Best Amount\n"
            "Acme,Approved,OnDeck,50000\n"
            ",,,\n"
            " Harbor Auto ,Declined Only,,\n"
        )
        rows = parse_csv(text)
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["Business Name"], "Acme")
        self.assertEqual(rows[1]["Business Name"], "Harbor Auto")

    def test_parse_row_slots(self):
        """Best slot first, then numbered slots; a slot needs a lender or an amount."""
        parsed = parse_row(
            _approved_row(
                "Acme",
                **{
                    "Lender 1": "Fundbox",
                    "Amount 1": "",
                    "Lender 2": "",
                    "Amount 2": "",
                    "Lender 3": "",
                    "Amount 3": "30000",
                    "Declined Lender 1": "Credibly",
                    "Decline Reason 1": "Stacking",
                },
            )
        )
        self.assertEqual([s.lender for s in parsed.offers], ["OnDeck", "Fundbox", ""])
        self.assertEqual(parsed.offers[2].amount, "30000")
        self.assertEqual(parsed.declined, [{"lender": "Credibly", "reason": "Stacking"}])
        self.assertEqual(parsed.overall_status, "approved")

    def test_headers_case_and_space_insensitive(self):
        parsed = parse_row({"business  name": "Acme", "OVERALL STATUS": "approved", "best lender": "X"})
        self.assertEqual(parsed.business_name, "Acme")
        self.assertEqual(len(parsed.offers), 1)

    def test_missing_business_name(self):
        with self.assertRaises(ImportRowError):
            parse_row({"Business Name": "  ", "Overall Status": "Approved"})


class TestImportRows(unittest.IsolatedAsyncioTestCase):
    async def test_partial_failure_does_not_abort(self):
        """Row 2 has no business name: two imported, one error, rows 1 and 3 unaffected."""
        repo = InMemoryDecisionRepository()
        rows = [_approved_row("Acme"), _approved_row(""), _approved_row("Harbor Auto")]
        summary = await import_rows(rows, repo)
        self.assertEqual(summary.imported, 2)
        self.assertEqual(summary.errors, 1)
        self.assertEqual([r.status for r in summary.results], ["imported", "error", "imported"])
        self.assertEqual(summary.results[1].row, 2)
        self.assertIn("business name", summary.results[1].error.lower())
        names = sorted(d.business_name for d in repo.decisions.values())
        self.assertEqual(names, ["Acme", "Harbor Auto"])

    async def test_new_approved_record(self):
        repo = InMemoryDecisionRepository()
        row = _approved_row("Acme", **{"Lender 1": "Fundbox", "Amount 1": "$25,000", "Commission 1": "1,000.50"})
        summary = await import_rows([row], repo)
        self.assertEqual(summary.results[0].offers_added, 2)
        decision = next(iter(repo.decisions.values()))
        self.assertEqual(decision.status, "approved")
        self.assertIsNotNone(decision.approval_slug)
        offers = offers_for(decision)
        self.assertEqual([o.lender for o in offers], ["OnDeck", "Fundbox"])
        self.assertEqual([o.is_primary for o in offers], [True, False])
        self.assertEqual(offers[0].payment_frequency, "daily")
        self.assertEqual(offers[0].factor_rate, "1.30")
        self.assertEqual(offers[0].commission, "2500")
        self.assertEqual(offers[1].advance_amount, "$25,000")
        self.assertEqual(offers[1].commission, "1,000.50")
        self.assertTrue(offers[0].id.startswith("imp-"))
        # flat columns mirror the primary offer
        self.assertEqual(decision.lender, "OnDeck")

    async def test_merges_into_existing_legacy_record(self):
        """Manually entered offers survive; imported ones are appended as non-primary."""
        existing = BusinessDecision(
            id="dec-1", business_name="Acme", status="pending", lender="Old Lender", advance_amount="1000"
        )
        repo = InMemoryDecisionRepository([existing])
        summary = await import_rows([_approved_row("Acme")], repo)
        self.assertEqual(summary.imported, 1)
        self.assertEqual(len(repo.decisions), 1)
        offers = offers_for(existing)
        self.assertEqual([o.id for o in offers][0], "primary-dec-1")
        self.assertEqual([o.is_primary for o in offers], [True, False])
        self.assertEqual(offers[1].lender, "OnDeck")
        self.assertEqual(existing.status, "approved")

    async def test_name_match_is_case_sensitive(self):
        existing = BusinessDecision(id="dec-1", business_name="Acme", status="pending")
        repo = InMemoryDecisionRepository([existing])
        await import_rows([_approved_row("ACME")], repo)
        self.assertEqual(len(repo.decisions), 2)
        self.assertIsNone(existing.additional_approvals)

    async def test_same_business_twice_in_batch(self):
        repo = InMemoryDecisionRepository()
        rows = [_approved_row("Acme"), _approved_row("Acme", **{"Best Lender": "Kapitus"})]
        summary = await import_rows(rows, repo)
        self.assertEqual(summary.imported, 2)
        self.assertEqual(len(repo.decisions), 1)
        offers = offers_for(next(iter(repo.decisions.values())))
        self.assertEqual([(o.lender, o.is_primary) for o in offers], [("OnDeck", True), ("Kapitus", False)])

    async def test_declined_only_row(self):
        repo = InMemoryDecisionRepository()
        row = {
            "Business Name": "Sunset Bakery",
            "Overall Status": "DECLINED ONLY",
            "Declined Lender 1": "Credibly",
            "Decline Reason 1": "Stacking",
            "Declined Lender 2": "Fora",
            "Decline Reason 2": "",
        }
        summary = await import_rows([row], repo)
        self.assertEqual(summary.imported, 1)
        decision = next(iter(repo.decisions.values()))
        self.assertEqual(decision.status, "declined")
        self.assertIsNone(decision.approval_slug)
        self.assertEqual(offers_for(decision), [])
        self.assertEqual(
            decision.declined_lenders,
            [{"lender": "Credibly", "reason": "Stacking"}, {"lender": "Fora", "reason": ""}],
        )

    async def test_declined_row_keeps_existing_offers(self):
        repo = InMemoryDecisionRepository()
        await import_rows([_approved_row("Acme")], repo)
        decision = next(iter(repo.decisions.values()))
        slug = decision.approval_slug
        row = {"Business Name": "Acme", "Overall Status": "Declined Only", "Declined Lender 1": "Fora"}
        await import_rows([row], repo)
        self.assertEqual(decision.status, "approved")
        self.assertEqual(decision.approval_slug, slug)
        self.assertEqual(len(offers_for(decision)), 1)
        self.assertEqual(decision.declined_lenders, [{"lender": "Fora", "reason": ""}])

    async def test_row_errors(self):
        repo = InMemoryDecisionRepository()
        rows = [
            {"Business Name": "NoStatus", "Best Lender": "X"},
            {"Business Name": "NoOffers", "Overall Status": "Approved"},
        ]
        with self.assertLogs("services.bulk_import", level="WARNING"):
            summary = await import_rows(rows, repo)
        self.assertEqual(summary.imported, 0)
        self.assertEqual(summary.errors, 2)
        self.assertIn("status", summary.results[0].error.lower())
        self.assertIn("no lender offers", summary.results[1].error.lower())
        self.assertEqual(repo.decisions, {})

    async def test_merge_repairs_stored_list_without_primary(self):
        existing = BusinessDecision(
            id="dec-1",
            business_name="Acme",
            status="pending",
            additional_approvals=[
                {"id": "a", "lender": "Fora", "isPrimary": False, "createdAt": "2024-05-30T00:00:00.000Z"},
            ],
        )
        repo = InMemoryDecisionRepository([existing])
        await import_rows([_approved_row("Acme")], repo)
        offers = offers_for(existing)
        self.assertEqual([(o.lender, o.is_primary) for o in offers], [("Fora", True), ("OnDeck", False)])

    async def test_failed_declined_row_leaves_record_untouched(self):
        existing = BusinessDecision(id="dec-1", business_name="Acme", status="pending")
        repo = InMemoryDecisionRepository([existing])
        row = {"Business Name": "Acme", "Overall Status": "Declined Only", "Declined Lender 1": "OnDeck"}
        with mock.patch("services.bulk_import.offers_for", side_effect=RuntimeError("unreadable offers")):
            with self.assertLogs("services.bulk_import", level="WARNING"):
                summary = await import_rows([row], repo)
        self.assertEqual(summary.results[0].status, "error")
        self.assertIsNone(existing.declined_lenders)
        self.assertEqual(existing.status, "pending")
        self.assertEqual(repo.saves, 0)

    async def test_summary_response_shape(self):
        repo = InMemoryDecisionRepository()
        summary = await import_rows([_approved_row("Acme")], repo)
        body = summary.to_response()
        self.assertEqual(body["imported"], 1)
        self.assertEqual(body["results"][0]["businessName"], "Acme")
        self.assertEqual(body["results"][0]["offersAdded"], 1)


class TestImportRowsSql(unittest.IsolatedAsyncioTestCase):
    """Rows share one session; each runs in its own savepoint."""

    async def asyncSetUp(self):
        await init_db()
        async with AsyncSessionLocal() as session:
            await session.merge(BusinessDecision(id="dec-sql-taken", business_name="Taken Co", status="pending"))
            await session.commit()

    async def test_failed_flush_does_not_block_later_rows(self):
        ids = iter(["dec-sql-taken", "dec-sql-fresh"])
        rows = [_approved_row("Savepoint One"), _approved_row("Savepoint Two")]
        async with AsyncSessionLocal() as session:
            repo = SqlDecisionRepository(session)
            with mock.patch("services.bulk_import.new_decision_id", side_effect=lambda: next(ids)):
                with self.assertLogs("services.bulk_import", level="WARNING"):
                    summary = await import_rows(rows, repo)
            await session.commit()

        self.assertEqual((summary.imported, summary.errors), (1, 1))
        self.assertEqual([r.status for r in summary.results], ["error", "imported"])
        async with AsyncSessionLocal() as session:
            repo = SqlDecisionRepository(session)
            self.assertIsNone(await repo.get_by_business_name("Savepoint One"))
            saved = await repo.get("dec-sql-fresh")
            self.assertEqual(saved.business_name, "Savepoint Two")
            self.assertEqual(saved.lender, "OnDeck")
            taken = await repo.get("dec-sql-taken")
            self.assertEqual(taken.business_name, "Taken Co")


if __name__ == "__main__":
    unittest.main()
