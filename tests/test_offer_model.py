"""
Offer shapes and id generation.
Run from project root: python -m pytest tests/test_offer_model.py -v
"""
import re
import unittest
from decimal import Decimal

from schemas.offer import LegacyOfferEntry, OfferEntry, OfferFields
from services.offer_ids import offer_id_factory


class TestOfferIds(unittest.TestCase):
    def test_manual_id_format(self):
        """Manual ids: appr-<epoch millis>-<6 base36 chars>."""
        offer_id = offer_id_factory("manual")()
        self.assertRegex(offer_id, r"^appr-\d{13}-[0-9a-z]{6}$")

    def test_manual_ids_differ(self):
        ids = {offer_id_factory("manual")() for _ in range(50)}
        self.assertEqual(len(ids), 50)

    def test_import_id_has_own_prefix(self):
        self.assertRegex(offer_id_factory("import")(), r"^imp-\d{13}-[0-9a-z]{6}$")

    def test_migration_ids(self):
        self.assertEqual(offer_id_factory("primary-migration")("dec-42"), "primary-dec-42")
        self.assertEqual(offer_id_factory("legacy-migration")(3), "migrated-3")

    def test_unknown_origin(self):
        with self.assertRaises(ValueError):
            offer_id_factory("email")


class TestOfferFields(unittest.TestCase):
    def test_payment_frequency_defaults_to_weekly(self):
        self.assertEqual(OfferFields().payment_frequency, "weekly")
        self.assertEqual(OfferFields(paymentFrequency=None).payment_frequency, "weekly")
        self.assertEqual(OfferFields(paymentFrequency="bi-weekly").payment_frequency, "weekly")

    def test_payment_frequency_case_insensitive(self):
        self.assertEqual(OfferFields(paymentFrequency="Daily").payment_frequency, "daily")
        self.assertEqual(OfferFields(payment_frequency=" MONTHLY ").payment_frequency, "monthly")

    def test_numbers_kept_as_text(self):
        """Numeric inputs become their string form; nothing is parsed or rounded."""
        fields = OfferFields(advanceAmount=50000, factorRate=Decimal("1.35"), totalPayback="$67,500.00")
        self.assertEqual(fields.advance_amount, "50000")
        self.assertEqual(fields.factor_rate, "1.35")
        self.assertEqual(fields.total_payback, "$67,500.00")

    def test_none_becomes_empty(self):
        self.assertEqual(OfferFields(lender=None, notes=None).lender, "")

    def test_storage_shape_is_camel_case(self):
        entry = OfferEntry(id="a", is_primary=True, created_at="2024-01-01T00:00:00.000Z", lender="X")
        stored = entry.to_storage()
        self.assertEqual(stored["isPrimary"], True)
        self.assertEqual(stored["createdAt"], "2024-01-01T00:00:00.000Z")
        self.assertIn("advanceAmount", stored)
        self.assertIn("paymentFrequency", stored)
        self.assertNotIn("is_primary", stored)
        self.assertEqual(OfferEntry.model_validate(stored), entry)


class TestLegacyOfferEntry(unittest.TestCase):
    def test_amount_maps_to_advance_amount(self):
        legacy = LegacyOfferEntry.model_validate({"lender": "X", "amount": "10000", "term": "6mo", "factor_rate": "1.3"})
        fields = legacy.to_offer_fields()
        self.assertEqual(fields.advance_amount, "10000")
        self.assertEqual(fields.factor_rate, "1.3")
        self.assertEqual(fields.payment_frequency, "weekly")

    def test_advance_amount_fallback(self):
        legacy = LegacyOfferEntry.model_validate({"lender": "X", "advance_amount": 2500})
        self.assertEqual(legacy.to_offer_fields().advance_amount, "2500")

    def test_extra_known_fields_carried(self):
        legacy = LegacyOfferEntry.model_validate({"lender": "X", "amount": "1", "notes": "call back", "payment_frequency": "daily"})
        fields = legacy.to_offer_fields()
        self.assertEqual(fields.notes, "call back")
        self.assertEqual(fields.payment_frequency, "daily")


if __name__ == "__main__":
    unittest.main()
