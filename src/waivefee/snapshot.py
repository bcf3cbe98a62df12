from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from .academic_calendar import AcademicCalendar
from .aggregation import build_matrix, summarize_year
from .allocation import generate_waiver_records
from .config import ReferenceContext, WaiverConfig
from .family_details import build_family_details
from .models import Family, FamilyDetail, SummaryMatrix, WaiverRecord, YearSummary
from .query import WaiverQuery, filter_records
from .status import StatusResolver


@dataclass(frozen=True)
class WaiverSnapshot:
    """Immutable roster, calendar and generated records.

    A roster change builds a new snapshot; statuses are resolved per read.
    """

    roster: Tuple[Family, ...]
    calendar: AcademicCalendar
    config: WaiverConfig
    records: Tuple[WaiverRecord, ...]

    @staticmethod
    def build(
        roster: Iterable[Family],
        calendar: Optional[AcademicCalendar],
        config: WaiverConfig,
    ) -> "WaiverSnapshot":
        """Generate records once; a ``None`` calendar is derived from ``config``."""
        families = tuple(roster)
        if calendar is None:
            calendar = AcademicCalendar.consecutive(
                config.first_academic_year, config.year_count, config.terms_per_year
            )
        records = tuple(generate_waiver_records(families, calendar, config))
        return WaiverSnapshot(roster=families, calendar=calendar, config=config, records=records)

    def context(self, reference_date: Optional[date] = None) -> ReferenceContext:
        return ReferenceContext.for_date(
            self.calendar, reference_date or date.today(), self.config.current_year_index
        )

    def view(self, context: ReferenceContext) -> List[WaiverRecord]:
        resolver = StatusResolver(calendar=self.calendar, context=context, policy=self.config.status_policy)
        return resolver.annotate(self.records)

    def query(self, context: ReferenceContext, query: WaiverQuery) -> List[WaiverRecord]:
        if query.academic_year:
            self.calendar.year_index(query.academic_year)
        return filter_records(self.view(context), query)

    def summary(self, academic_year: str) -> YearSummary:
        self.calendar.year_index(academic_year)
        return summarize_year(self.records, academic_year, self.calendar.terms_per_year)

    def matrix(self) -> SummaryMatrix:
        return build_matrix(
            self.records, list(self.calendar.years), self.calendar.terms_per_year, self.config.rounding_mode
        )

    def family_details(self, context: ReferenceContext, academic_year: str) -> List[FamilyDetail]:
        return build_family_details(self.view(context), self.calendar, academic_year, self.roster)
