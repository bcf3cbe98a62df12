from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, List

from .academic_calendar import AcademicCalendar
from .config import WaiverConfig
from .errors import DataIntegrityError
from .logging_config import get_logger
from .models import AcademicYear, Family, RemainderPolicy, WaiverRecord
from .rotation import beneficiary_for
from .utils import quantize_amount


logger = get_logger("allocation")


def split_annual_amount(
    annual: Decimal,
    terms: int,
    quantum: Decimal = Decimal("0.01"),
    policy: RemainderPolicy = RemainderPolicy.STRICT,
) -> List[Decimal]:
    """Split the annual waiver into per-term amounts that sum to ``annual``."""
    if terms < 1:
        raise ValueError("terms must be at least 1")
    base = quantize_amount(annual / Decimal(terms), quantum, ROUND_DOWN)
    remainder = annual - base * terms
    if remainder == 0:
        return [base] * terms
    if policy == RemainderPolicy.STRICT:
        raise DataIntegrityError(
            f"Annual waiver {annual} does not divide evenly into {terms} terms at {quantum}; "
            "configure a remainder policy"
        )
    parts = [base] * terms
    target = 0 if policy == RemainderPolicy.FIRST_TERM else terms - 1
    parts[target] = base + remainder
    return parts


@dataclass(frozen=True)
class AllocationContext:
    config: WaiverConfig
    calendar: AcademicCalendar

    @property
    def term_amounts(self) -> List[Decimal]:
        return split_annual_amount(
            self.config.annual_waiver_amount,
            self.calendar.terms_per_year,
            self.config.amount_quantum,
            self.config.remainder_policy,
        )


def generate_waiver_records(
    roster: Iterable[Family],
    calendar: AcademicCalendar,
    config: WaiverConfig,
) -> List[WaiverRecord]:
    """One record per family, academic year and term.

    Records come out ordered by year, then roster order, then term. Any
    failure aborts the whole run.
    """
    families = list(roster)
    _check_unique_codes(families)
    if calendar.terms_per_year != config.terms_per_year:
        raise ValueError(
            f"calendar has {calendar.terms_per_year} terms per year, config expects {config.terms_per_year}"
        )
    ctx = AllocationContext(config=config, calendar=calendar)
    amounts = ctx.term_amounts

    records: List[WaiverRecord] = []
    for academic_year in calendar.academic_years():
        records.extend(_year_records(families, academic_year, ctx, amounts))

    logger.info(
        "Generated %d waiver records for %d families over %d academic years",
        len(records),
        len(families),
        len(calendar.years),
    )
    return records


def _year_records(
    families: List[Family],
    academic_year: AcademicYear,
    ctx: AllocationContext,
    amounts: List[Decimal],
) -> List[WaiverRecord]:
    role = beneficiary_for(academic_year.index, ctx.config.cycle_length)
    ranges = [ctx.calendar.term_date_range(academic_year.label, term) for term in ctx.calendar.terms()]
    records: List[WaiverRecord] = []
    for family in families:
        sibling = family.sibling(role)
        for term, (start, end) in enumerate(ranges, start=1):
            records.append(
                WaiverRecord(
                    family_code=family.family_code,
                    academic_year=academic_year.label,
                    term=term,
                    beneficiary_role=role,
                    student_name=sibling.name,
                    student_grade=sibling.grade,
                    waiver_amount=amounts[term - 1],
                    start_date=start,
                    end_date=end,
                )
            )
    return records


def _check_unique_codes(families: List[Family]) -> None:
    seen = set()
    for family in families:
        if family.family_code in seen:
            raise DataIntegrityError(f"Duplicate family_code in roster: {family.family_code}")
        seen.add(family.family_code)
