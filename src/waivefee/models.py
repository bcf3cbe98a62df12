from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Role(str, Enum):
    OLDER = "older"
    YOUNGER = "younger"


class WaiverStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class DiscountStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    WAITING = "waiting"
    UPCOMING = "upcoming"


class StatusPolicy(str, Enum):
    DATE = "date"
    INDEX = "index"


class RemainderPolicy(str, Enum):
    STRICT = "strict"
    FIRST_TERM = "first_term"
    LAST_TERM = "last_term"


@dataclass(frozen=True)
class Sibling:
    name: str
    grade: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("sibling name is required")


@dataclass(frozen=True)
class Family:
    family_code: str
    position: int
    older: Sibling
    younger: Sibling

    def __post_init__(self) -> None:
        if not self.family_code:
            raise ValueError("family_code is required")

    def sibling(self, role: Role) -> Sibling:
        return self.older if role == Role.OLDER else self.younger


@dataclass(frozen=True)
class AcademicYear:
    label: str
    index: int

    @property
    def calendar_year(self) -> int:
        return int(self.label[:4])


@dataclass(frozen=True)
class WaiverRecord:
    family_code: str
    academic_year: str
    term: int
    beneficiary_role: Role
    student_name: str
    student_grade: str
    waiver_amount: Decimal
    start_date: date
    end_date: date
    status: Optional[WaiverStatus] = None

    @property
    def record_id(self) -> str:
        suffix = "O" if self.beneficiary_role == Role.OLDER else "Y"
        return f"{self.family_code}-{self.academic_year}-T{self.term}-{suffix}"


@dataclass(frozen=True)
class TermSummary:
    term: int
    total_students: int
    total_families: int
    total_amount: Decimal
    older_siblings: int
    younger_siblings: int
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class YearlyTotal:
    total_students: int
    total_families: int
    total_amount: Decimal


@dataclass(frozen=True)
class YearSummary:
    academic_year: str
    term_summaries: List[TermSummary]
    yearly_total: YearlyTotal
    warnings: List[str] = field(default_factory=list)

    def term(self, term: int) -> Optional[TermSummary]:
        for summary in self.term_summaries:
            if summary.term == term:
                return summary
        return None


@dataclass(frozen=True)
class MatrixCell:
    academic_year: str
    term: Optional[int]
    total_students: int
    total_families: int
    total_amount: Decimal
    older_siblings: int
    younger_siblings: int
    average_per_student: Decimal


@dataclass(frozen=True)
class SummaryMatrix:
    years: List[str]
    terms: List[int]
    cells: Dict[Tuple[int, str], MatrixCell]
    year_totals: Dict[str, MatrixCell]
    warnings: List[str] = field(default_factory=list)

    def cell(self, term: int, academic_year: str) -> MatrixCell:
        return self.cells[(term, academic_year)]


@dataclass(frozen=True)
class KeyMetrics:
    academic_year: str
    students_receiving: int
    families_benefiting: int
    total_waived: Decimal
    average_per_family: Decimal


@dataclass(frozen=True)
class SiblingDetail:
    role: Role
    name: str
    grade: str
    discount_period: str
    discount_status: DiscountStatus
    terms_received: int
    total_terms: int
    amount_received: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class FamilyDetail:
    family_code: str
    older: SiblingDetail
    younger: SiblingDetail
    family_total_discount: Decimal
    current_active_role: Optional[Role]

    def sibling(self, role: Role) -> SiblingDetail:
        return self.older if role == Role.OLDER else self.younger


@dataclass(frozen=True)
class FamilyDetailsSummary:
    total_families: int
    active_discounts: int
    total_amount: Decimal
    students_receiving: int


@dataclass(frozen=True)
class ReportTables:
    records: List[Dict[str, str]]
    summary_by_term: List[Dict[str, str]]
    summary_by_year: List[Dict[str, str]]
    matrix: List[Dict[str, str]]
