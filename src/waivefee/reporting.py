from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .aggregation import build_matrix, summarize_year
from .models import ReportTables, WaiverRecord


RECORD_HEADERS = [
    "record_id",
    "family_code",
    "academic_year",
    "term",
    "beneficiary_role",
    "student_name",
    "student_grade",
    "waiver_amount",
    "status",
    "start_date",
    "end_date",
]


def record_row(record: WaiverRecord) -> Dict[str, str]:
    return {
        "record_id": record.record_id,
        "family_code": record.family_code,
        "academic_year": record.academic_year,
        "term": str(record.term),
        "beneficiary_role": record.beneficiary_role.value,
        "student_name": record.student_name,
        "student_grade": record.student_grade,
        "waiver_amount": str(record.waiver_amount),
        "status": record.status.value if record.status else "",
        "start_date": record.start_date.isoformat(),
        "end_date": record.end_date.isoformat(),
    }


def build_report_tables(
    records: Iterable[WaiverRecord],
    years: Sequence[str],
    terms_per_year: int = 3,
) -> ReportTables:
    record_list = list(records)
    flat_records = [record_row(record) for record in record_list]

    term_rows: List[Dict[str, str]] = []
    year_rows: List[Dict[str, str]] = []
    for academic_year in years:
        summary = summarize_year(record_list, academic_year, terms_per_year)
        for term in summary.term_summaries:
            term_rows.append(
                {
                    "academic_year": academic_year,
                    "term": str(term.term),
                    "total_students": str(term.total_students),
                    "total_families": str(term.total_families),
                    "total_amount": str(term.total_amount),
                    "older_siblings": str(term.older_siblings),
                    "younger_siblings": str(term.younger_siblings),
                }
            )
        year_rows.append(
            {
                "academic_year": academic_year,
                "total_students": str(summary.yearly_total.total_students),
                "total_families": str(summary.yearly_total.total_families),
                "total_amount": str(summary.yearly_total.total_amount),
                "warnings": " | ".join(summary.warnings),
            }
        )

    matrix = build_matrix(record_list, years, terms_per_year)
    matrix_rows: List[Dict[str, str]] = []
    for term in matrix.terms:
        row = {"row": f"Term {term}"}
        for academic_year in matrix.years:
            row[academic_year] = str(matrix.cell(term, academic_year).average_per_student)
        matrix_rows.append(row)
    total_row = {"row": "Year Total"}
    for academic_year in matrix.years:
        total_row[academic_year] = str(matrix.year_totals[academic_year].average_per_student)
    matrix_rows.append(total_row)

    return ReportTables(
        records=flat_records,
        summary_by_term=term_rows,
        summary_by_year=year_rows,
        matrix=matrix_rows,
    )
