from .academic_calendar import AcademicCalendar
from .aggregation import build_matrix, key_metrics, summarize_term, summarize_year
from .allocation import generate_waiver_records, split_annual_amount
from .config import ReferenceContext, WaiverConfig
from .errors import DataIntegrityError, InvalidTermError, UnknownAcademicYearError, WaiverError
from .family_details import build_family_details, filter_family_details, summarize_family_details
from .models import (
    AcademicYear,
    Family,
    RemainderPolicy,
    Role,
    Sibling,
    StatusPolicy,
    SummaryMatrix,
    TermSummary,
    WaiverRecord,
    WaiverStatus,
    YearSummary,
)
from .query import WaiverQuery, filter_records, group_by_term
from .reporting import build_report_tables
from .rotation import beneficiary_for
from .roster import parse_roster_csv, sample_roster
from .snapshot import WaiverSnapshot
from .status import StatusResolver, resolve_status

__all__ = [
    "AcademicCalendar",
    "AcademicYear",
    "DataIntegrityError",
    "Family",
    "InvalidTermError",
    "ReferenceContext",
    "RemainderPolicy",
    "Role",
    "Sibling",
    "StatusPolicy",
    "StatusResolver",
    "SummaryMatrix",
    "TermSummary",
    "UnknownAcademicYearError",
    "WaiverConfig",
    "WaiverError",
    "WaiverQuery",
    "WaiverRecord",
    "WaiverSnapshot",
    "WaiverStatus",
    "YearSummary",
    "beneficiary_for",
    "build_family_details",
    "build_matrix",
    "build_report_tables",
    "filter_family_details",
    "filter_records",
    "generate_waiver_records",
    "group_by_term",
    "key_metrics",
    "parse_roster_csv",
    "resolve_status",
    "sample_roster",
    "split_annual_amount",
    "summarize_family_details",
    "summarize_term",
    "summarize_year",
]
