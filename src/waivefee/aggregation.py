from __future__ import annotations

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Sequence, Tuple

from .logging_config import get_logger
from .models import (
    KeyMetrics,
    MatrixCell,
    Role,
    SummaryMatrix,
    TermSummary,
    WaiverRecord,
    YearlyTotal,
    YearSummary,
)
from .utils import safe_average


logger = get_logger("aggregation")

AVERAGE_QUANTUM = Decimal("0.01")


def summarize_term(records: Iterable[WaiverRecord], academic_year: str, term: int) -> TermSummary:
    term_records = [r for r in records if r.academic_year == academic_year and r.term == term]
    return _term_summary(term_records, academic_year, term)


def summarize_year(records: Iterable[WaiverRecord], academic_year: str, terms_per_year: int = 3) -> YearSummary:
    """Per-term summaries for one year plus the yearly roll-up.

    The yearly amount is the sum of the term amounts; integrity problems are
    reported in ``warnings`` rather than raised.
    """
    by_term: Dict[int, List[WaiverRecord]] = defaultdict(list)
    year_families = set()
    stray_terms = set()
    for record in records:
        if record.academic_year != academic_year:
            continue
        if 1 <= record.term <= terms_per_year:
            year_families.add(record.family_code)
            by_term[record.term].append(record)
        else:
            stray_terms.add(record.term)

    term_summaries = [_term_summary(by_term[term], academic_year, term) for term in range(1, terms_per_year + 1)]
    warnings: List[str] = []
    for summary in term_summaries:
        warnings.extend(summary.warnings)
    if stray_terms:
        message = f"{academic_year}: records with terms outside 1..{terms_per_year}: {sorted(stray_terms)}"
        logger.warning(message)
        warnings.append(message)

    yearly_total = YearlyTotal(
        total_students=sum(summary.total_students for summary in term_summaries),
        total_families=len(year_families),
        total_amount=sum((summary.total_amount for summary in term_summaries), Decimal("0")),
    )
    return YearSummary(
        academic_year=academic_year,
        term_summaries=term_summaries,
        yearly_total=yearly_total,
        warnings=warnings,
    )


def build_matrix(
    records: Iterable[WaiverRecord],
    years: Sequence[str],
    terms_per_year: int = 3,
    rounding: str = ROUND_HALF_UP,
) -> SummaryMatrix:
    record_list = list(records)
    terms = list(range(1, terms_per_year + 1))
    cells: Dict[Tuple[int, str], MatrixCell] = {}
    year_totals: Dict[str, MatrixCell] = {}
    warnings: List[str] = []

    for academic_year in years:
        summary = summarize_year(record_list, academic_year, terms_per_year)
        warnings.extend(summary.warnings)
        for term_summary in summary.term_summaries:
            cells[(term_summary.term, academic_year)] = MatrixCell(
                academic_year=academic_year,
                term=term_summary.term,
                total_students=term_summary.total_students,
                total_families=term_summary.total_families,
                total_amount=term_summary.total_amount,
                older_siblings=term_summary.older_siblings,
                younger_siblings=term_summary.younger_siblings,
                average_per_student=safe_average(
                    term_summary.total_amount, term_summary.total_students, AVERAGE_QUANTUM, rounding
                ),
            )
        total = summary.yearly_total
        year_totals[academic_year] = MatrixCell(
            academic_year=academic_year,
            term=None,
            total_students=total.total_students,
            total_families=total.total_families,
            total_amount=total.total_amount,
            older_siblings=sum(t.older_siblings for t in summary.term_summaries),
            younger_siblings=sum(t.younger_siblings for t in summary.term_summaries),
            average_per_student=safe_average(total.total_amount, total.total_students, AVERAGE_QUANTUM, rounding),
        )

    return SummaryMatrix(years=list(years), terms=terms, cells=cells, year_totals=year_totals, warnings=warnings)


def key_metrics(summary: YearSummary, rounding: str = ROUND_HALF_UP) -> KeyMetrics:
    total = summary.yearly_total
    return KeyMetrics(
        academic_year=summary.academic_year,
        students_receiving=total.total_students,
        families_benefiting=total.total_families,
        total_waived=total.total_amount,
        average_per_family=safe_average(total.total_amount, total.total_families, AVERAGE_QUANTUM, rounding),
    )


def _term_summary(term_records: List[WaiverRecord], academic_year: str, term: int) -> TermSummary:
    families = {r.family_code for r in term_records}
    older = sum(1 for r in term_records if r.beneficiary_role == Role.OLDER)
    younger = sum(1 for r in term_records if r.beneficiary_role == Role.YOUNGER)
    warnings: List[str] = []
    if len(families) != len(term_records):
        message = (
            f"{academic_year} term {term}: {len(term_records)} waivers for {len(families)} families; "
            "expected one waiver per family"
        )
        logger.warning("Data integrity issue: %s", message)
        warnings.append(message)
    return TermSummary(
        term=term,
        total_students=len(term_records),
        total_families=len(families),
        total_amount=sum((r.waiver_amount for r in term_records), Decimal("0")),
        older_siblings=older,
        younger_siblings=younger,
        warnings=warnings,
    )
