from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from .errors import InvalidTermError, UnknownAcademicYearError
from .models import AcademicYear
from .utils import month_end


_LABEL_PATTERN = re.compile(r"^\d{4}")


@dataclass(frozen=True)
class AcademicCalendar:
    """Ordered academic years split into fixed-width terms.

    Each term covers ``12 // terms_per_year`` consecutive months of the
    calendar year named by the first four digits of the year label.
    """

    years: Tuple[str, ...]
    terms_per_year: int = 3

    def __post_init__(self) -> None:
        object.__setattr__(self, "years", tuple(self.years))
        if not self.years:
            raise ValueError("at least one academic year is required")
        if self.terms_per_year < 1 or 12 % self.terms_per_year:
            raise ValueError("terms_per_year must divide 12")
        seen = set()
        for label in self.years:
            if not _LABEL_PATTERN.match(label):
                raise ValueError(f"Academic year label must start with a four-digit year: {label!r}")
            if label in seen:
                raise ValueError(f"Duplicate academic year: {label}")
            seen.add(label)

    @staticmethod
    def consecutive(first_year: int, count: int, terms_per_year: int = 3) -> "AcademicCalendar":
        labels = [f"{year}-{year + 1}" for year in range(first_year, first_year + count)]
        return AcademicCalendar(years=tuple(labels), terms_per_year=terms_per_year)

    @property
    def _index(self) -> Dict[str, int]:
        return {label: idx for idx, label in enumerate(self.years)}

    def academic_years(self) -> List[AcademicYear]:
        return [AcademicYear(label=label, index=idx) for idx, label in enumerate(self.years)]

    def year_index(self, academic_year: str) -> int:
        try:
            return self._index[academic_year]
        except KeyError:
            raise UnknownAcademicYearError(academic_year) from None

    def require_year(self, academic_year: str) -> AcademicYear:
        return AcademicYear(label=academic_year, index=self.year_index(academic_year))

    def terms(self) -> List[int]:
        return list(range(1, self.terms_per_year + 1))

    def validate_term(self, term: int) -> None:
        if isinstance(term, bool) or not isinstance(term, int) or not 1 <= term <= self.terms_per_year:
            raise InvalidTermError(term, self.terms_per_year)

    def term_date_range(self, academic_year: str, term: int) -> Tuple[date, date]:
        year = self.require_year(academic_year).calendar_year
        self.validate_term(term)
        width = 12 // self.terms_per_year
        first_month = (term - 1) * width + 1
        last_month = term * width
        return date(year, first_month, 1), month_end(year, last_month)

    def index_for_date(self, value: date) -> Optional[int]:
        for academic_year in self.academic_years():
            if academic_year.calendar_year == value.year:
                return academic_year.index
        return None

