from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from .models import WaiverRecord, WaiverStatus


ALL_STATUSES = "all"


@dataclass(frozen=True)
class WaiverQuery:
    academic_year: Optional[str] = None
    status: Optional[Union[WaiverStatus, str]] = None
    search_text: Optional[str] = None

    @property
    def status_filter(self) -> Optional[WaiverStatus]:
        if self.status is None or self.status == "" or self.status == ALL_STATUSES:
            return None
        return WaiverStatus(self.status)

    @property
    def needle(self) -> str:
        return (self.search_text or "").strip().lower()


def filter_records(records: Iterable[WaiverRecord], query: Optional[WaiverQuery] = None) -> List[WaiverRecord]:
    """Records matching every predicate of ``query``, in input order."""
    query = query or WaiverQuery()
    status = query.status_filter
    needle = query.needle
    matched: List[WaiverRecord] = []
    for record in records:
        if query.academic_year and record.academic_year != query.academic_year:
            continue
        if status is not None:
            if record.status is None:
                raise ValueError("status filter requires records annotated with a status")
            if record.status != status:
                continue
        if needle and needle not in record.family_code.lower() and needle not in record.student_name.lower():
            continue
        matched.append(record)
    return matched


def group_by_term(records: Iterable[WaiverRecord]) -> Dict[int, List[WaiverRecord]]:
    grouped: Dict[int, List[WaiverRecord]] = {}
    for record in records:
        grouped.setdefault(record.term, []).append(record)
    return OrderedDict(sorted(grouped.items()))


def available_years(records: Iterable[WaiverRecord]) -> List[str]:
    return sorted({record.academic_year for record in records})
