import os
import sys
import unittest
from collections import Counter
from datetime import date

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from waivefee import (
    AcademicCalendar,
    ReferenceContext,
    StatusPolicy,
    StatusResolver,
    WaiverConfig,
    WaiverStatus,
    generate_waiver_records,
    resolve_status,
    sample_roster,
)


class StatusResolverTests(unittest.TestCase):
    def setUp(self):
        self.calendar = AcademicCalendar.consecutive(2024, 5)
        self.records = generate_waiver_records(sample_roster(2), self.calendar, WaiverConfig.default())

    def _record(self, year, term):
        return next(r for r in self.records if r.academic_year == year and r.term == term)

    def test_date_policy(self):
        context = ReferenceContext.for_date(self.calendar, date(2026, 10, 19))
        resolver = StatusResolver(self.calendar, context, StatusPolicy.DATE)
        self.assertEqual(resolver.resolve(self._record("2025-2026", 3)), WaiverStatus.COMPLETED)
        self.assertEqual(resolver.resolve(self._record("2026-2027", 2)), WaiverStatus.COMPLETED)
        self.assertEqual(resolver.resolve(self._record("2026-2027", 3)), WaiverStatus.ACTIVE)
        self.assertEqual(resolver.resolve(self._record("2027-2028", 1)), WaiverStatus.PENDING)

    def test_date_policy_boundaries_are_inclusive(self):
        record = self._record("2026-2027", 1)
        on_last_day = ReferenceContext(reference_date=date(2026, 4, 30), current_year_index=2)
        after = ReferenceContext(reference_date=date(2026, 5, 1), current_year_index=2)
        on_first_day = ReferenceContext(reference_date=date(2026, 1, 1), current_year_index=2)
        before = ReferenceContext(reference_date=date(2025, 12, 31), current_year_index=1)
        self.assertEqual(resolve_status(record, on_last_day, 2), WaiverStatus.ACTIVE)
        self.assertEqual(resolve_status(record, after, 2), WaiverStatus.COMPLETED)
        self.assertEqual(resolve_status(record, on_first_day, 2), WaiverStatus.ACTIVE)
        self.assertEqual(resolve_status(record, before, 2), WaiverStatus.PENDING)

    def test_index_policy(self):
        context = ReferenceContext.for_date(self.calendar, date(2026, 3, 1))
        self.assertEqual(context.current_year_index, 2)
        resolver = StatusResolver(self.calendar, context, StatusPolicy.INDEX)
        self.assertEqual(resolver.resolve(self._record("2024-2025", 1)), WaiverStatus.COMPLETED)
        self.assertEqual(resolver.resolve(self._record("2026-2027", 1)), WaiverStatus.ACTIVE)
        self.assertEqual(resolver.resolve(self._record("2026-2027", 2)), WaiverStatus.PENDING)
        self.assertEqual(resolver.resolve(self._record("2028-2029", 3)), WaiverStatus.PENDING)

    def test_index_policy_uses_configured_current_year(self):
        context = ReferenceContext.for_date(self.calendar, date(2026, 10, 19), current_year_index=0)
        resolver = StatusResolver(self.calendar, context, StatusPolicy.INDEX)
        self.assertEqual(resolver.resolve(self._record("2024-2025", 3)), WaiverStatus.ACTIVE)
        self.assertEqual(resolver.resolve(self._record("2025-2026", 1)), WaiverStatus.PENDING)

    def test_policies_diverge_before_the_year_is_over(self):
        # Index policy keeps finished terms of the current year active.
        context = ReferenceContext.for_date(self.calendar, date(2026, 10, 19))
        record = self._record("2026-2027", 1)
        self.assertEqual(resolve_status(record, context, 2, StatusPolicy.DATE), WaiverStatus.COMPLETED)
        self.assertEqual(resolve_status(record, context, 2, StatusPolicy.INDEX), WaiverStatus.ACTIVE)

    def test_reference_outside_calendar(self):
        early = ReferenceContext.for_date(self.calendar, date(2023, 6, 1))
        late = ReferenceContext.for_date(self.calendar, date(2030, 1, 1))
        self.assertEqual(early.current_year_index, -1)
        self.assertEqual(late.current_year_index, 5)
        early_statuses = StatusResolver(self.calendar, early, StatusPolicy.INDEX).annotate(self.records)
        late_statuses = StatusResolver(self.calendar, late, StatusPolicy.INDEX).annotate(self.records)
        self.assertEqual({r.status for r in early_statuses}, {WaiverStatus.PENDING})
        self.assertEqual({r.status for r in late_statuses}, {WaiverStatus.COMPLETED})

    def test_annotate_returns_new_records(self):
        context = ReferenceContext.for_date(self.calendar, date(2026, 10, 19))
        annotated = StatusResolver(self.calendar, context).annotate(self.records)
        self.assertTrue(all(r.status is None for r in self.records))
        counts = Counter(r.status for r in annotated)
        # 2 families: years 0-1 and terms 1-2 of year 2 are over, term 3 of year 2 runs.
        self.assertEqual(counts[WaiverStatus.COMPLETED], 2 * 8)
        self.assertEqual(counts[WaiverStatus.ACTIVE], 2)
        self.assertEqual(counts[WaiverStatus.PENDING], 2 * 6)


if __name__ == "__main__":
    unittest.main()
