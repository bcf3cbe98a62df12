import os
import sys
import unittest
from datetime import date
from decimal import Decimal

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from waivefee import (
    AcademicCalendar,
    ReferenceContext,
    Role,
    StatusResolver,
    WaiverConfig,
    build_family_details,
    filter_family_details,
    generate_waiver_records,
    sample_roster,
    summarize_family_details,
)
from waivefee.models import DiscountStatus


class FamilyDetailsTests(unittest.TestCase):
    def setUp(self):
        self.calendar = AcademicCalendar.consecutive(2024, 5)
        self.roster = sample_roster(25)
        raw = generate_waiver_records(self.roster, self.calendar, WaiverConfig.default())
        context = ReferenceContext.for_date(self.calendar, date(2026, 10, 19))
        self.records = StatusResolver(self.calendar, context).annotate(raw)

    def _details(self, year):
        return build_family_details(self.records, self.calendar, year, self.roster)

    def test_current_year_younger_active(self):
        first = self._details("2026-2027")[0]
        self.assertEqual(first.family_code, "FAM001")
        self.assertEqual(first.current_active_role, Role.YOUNGER)
        self.assertEqual(first.younger.discount_status, DiscountStatus.ACTIVE)
        self.assertEqual(first.younger.discount_period, "2024-2026")
        self.assertEqual(first.younger.terms_received, 9)
        self.assertEqual(first.younger.total_terms, 9)
        self.assertEqual(first.younger.amount_received, Decimal("225000"))
        self.assertEqual(first.older.discount_status, DiscountStatus.WAITING)
        self.assertEqual(first.older.discount_period, "2027-2028")
        self.assertEqual(first.older.terms_received, 0)
        self.assertEqual(first.older.total_amount, Decimal("150000"))
        self.assertEqual(first.family_total_discount, Decimal("225000"))

    def test_past_year_completed(self):
        first = self._details("2024-2025")[0]
        self.assertEqual(first.younger.discount_status, DiscountStatus.COMPLETED)
        self.assertEqual(first.younger.terms_received, 3)
        self.assertEqual(first.younger.amount_received, Decimal("75000"))

    def test_future_year_older_upcoming(self):
        first = self._details("2027-2028")[0]
        self.assertEqual(first.current_active_role, Role.OLDER)
        self.assertEqual(first.older.discount_status, DiscountStatus.UPCOMING)
        self.assertEqual(first.younger.discount_status, DiscountStatus.COMPLETED)

    def test_summary_and_filters(self):
        details = self._details("2026-2027")
        totals = summarize_family_details(details)
        self.assertEqual(totals.total_families, 25)
        self.assertEqual(totals.active_discounts, 25)
        self.assertEqual(totals.total_amount, Decimal("5625000"))
        self.assertEqual(totals.students_receiving, 25)
        self.assertEqual(len(filter_family_details(details, status="waiting")), 25)
        self.assertEqual(filter_family_details(details, status="upcoming"), [])
        by_name = filter_family_details(details, search_text="alex johnson")
        self.assertEqual([d.family_code for d in by_name], ["FAM001", "FAM016"])

    def test_roster_names_siblings_without_records(self):
        calendar = AcademicCalendar.consecutive(2024, 3)
        raw = generate_waiver_records(self.roster[:1], calendar, WaiverConfig.default())
        context = ReferenceContext.for_date(calendar, date(2026, 10, 19))
        records = StatusResolver(calendar, context).annotate(raw)
        detail = build_family_details(records, calendar, "2025-2026", self.roster[:1])[0]
        self.assertEqual(detail.older.name, self.roster[0].older.name)
        self.assertEqual(detail.older.total_terms, 0)
        self.assertEqual(detail.older.discount_period, "")

    def test_requires_resolved_records(self):
        raw = generate_waiver_records(self.roster[:1], self.calendar, WaiverConfig.default())
        with self.assertRaises(ValueError):
            build_family_details(raw, self.calendar, "2024-2025")


if __name__ == "__main__":
    unittest.main()
