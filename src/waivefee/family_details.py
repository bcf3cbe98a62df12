from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .academic_calendar import AcademicCalendar
from .models import (
    DiscountStatus,
    Family,
    FamilyDetail,
    FamilyDetailsSummary,
    Role,
    SiblingDetail,
    WaiverRecord,
    WaiverStatus,
)


_RECEIVED = (WaiverStatus.ACTIVE, WaiverStatus.COMPLETED)


def build_family_details(
    records: Iterable[WaiverRecord],
    calendar: AcademicCalendar,
    academic_year: str,
    roster: Optional[Iterable[Family]] = None,
) -> List[FamilyDetail]:
    """Per-family view of both siblings' waiver history as of one year.

    ``records`` must already carry a status. Families keep the order in
    which they first appear in the records, or roster order when a roster is
    given. The roster also supplies names for siblings that never benefit.
    """
    selected_index = calendar.year_index(academic_year)
    by_family: Dict[str, List[WaiverRecord]] = OrderedDict()
    families: Dict[str, Family] = {}
    for family in roster or ():
        families[family.family_code] = family
        by_family[family.family_code] = []
    for record in records:
        if record.status is None:
            raise ValueError("family details require records annotated with a status")
        by_family.setdefault(record.family_code, []).append(record)

    details: List[FamilyDetail] = []
    for family_code, family_records in by_family.items():
        family = families.get(family_code)
        older = _sibling_detail(Role.OLDER, family_records, calendar, selected_index, family)
        younger = _sibling_detail(Role.YOUNGER, family_records, calendar, selected_index, family)
        current_roles = {
            r.beneficiary_role for r in family_records if calendar.year_index(r.academic_year) == selected_index
        }
        details.append(
            FamilyDetail(
                family_code=family_code,
                older=older,
                younger=younger,
                family_total_discount=older.amount_received + younger.amount_received,
                current_active_role=current_roles.pop() if len(current_roles) == 1 else None,
            )
        )
    return details


def filter_family_details(
    details: Iterable[FamilyDetail],
    search_text: Optional[str] = None,
    status: Optional[Union[DiscountStatus, str]] = None,
) -> List[FamilyDetail]:
    needle = (search_text or "").strip().lower()
    wanted = None if status in (None, "", "all") else DiscountStatus(status)
    matched: List[FamilyDetail] = []
    for detail in details:
        if needle and not (
            needle in detail.family_code.lower()
            or needle in detail.older.name.lower()
            or needle in detail.younger.name.lower()
        ):
            continue
        if wanted is not None and wanted not in (detail.older.discount_status, detail.younger.discount_status):
            continue
        matched.append(detail)
    return matched


def summarize_family_details(details: Iterable[FamilyDetail]) -> FamilyDetailsSummary:
    details = list(details)
    active = sum(
        1
        for d in details
        if DiscountStatus.ACTIVE in (d.older.discount_status, d.younger.discount_status)
    )
    receiving = sum(
        (1 if d.older.terms_received else 0) + (1 if d.younger.terms_received else 0) for d in details
    )
    return FamilyDetailsSummary(
        total_families=len(details),
        active_discounts=active,
        total_amount=sum((d.family_total_discount for d in details), Decimal("0")),
        students_receiving=receiving,
    )


def _sibling_detail(
    role: Role,
    family_records: List[WaiverRecord],
    calendar: AcademicCalendar,
    selected_index: int,
    family: Optional[Family],
) -> SiblingDetail:
    role_records = [r for r in family_records if r.beneficiary_role == role]
    indexed = [(calendar.year_index(r.academic_year), r) for r in role_records]
    received = [r for idx, r in indexed if idx <= selected_index and r.status in _RECEIVED]
    this_year = [r for idx, r in indexed if idx == selected_index]
    name, grade = _identity(role_records, family, role)
    return SiblingDetail(
        role=role,
        name=name,
        grade=grade,
        discount_period=_discount_period(indexed),
        discount_status=_discount_status(indexed, this_year, selected_index),
        terms_received=len(received),
        total_terms=len(role_records),
        amount_received=sum((r.waiver_amount for r in received), Decimal("0")),
        total_amount=sum((r.waiver_amount for r in role_records), Decimal("0")),
    )


def _discount_status(indexed, this_year: List[WaiverRecord], selected_index: int) -> DiscountStatus:
    if this_year:
        statuses = {r.status for r in this_year}
        if statuses == {WaiverStatus.COMPLETED}:
            return DiscountStatus.COMPLETED
        if statuses == {WaiverStatus.PENDING}:
            return DiscountStatus.UPCOMING
        return DiscountStatus.ACTIVE
    if any(idx > selected_index for idx, _ in indexed):
        return DiscountStatus.WAITING
    if any(idx < selected_index for idx, _ in indexed):
        return DiscountStatus.COMPLETED
    return DiscountStatus.WAITING


def _discount_period(indexed) -> str:
    if not indexed:
        return ""
    years = sorted({int(r.academic_year[:4]) for _, r in indexed})
    if years[0] == years[-1]:
        return str(years[0])
    return f"{years[0]}-{years[-1]}"


def _identity(role_records: List[WaiverRecord], family: Optional[Family], role: Role) -> Tuple[str, str]:
    if family is not None:
        sibling = family.sibling(role)
        return sibling.name, sibling.grade
    if role_records:
        return role_records[0].student_name, role_records[0].student_grade
    return "", ""
