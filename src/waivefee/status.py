from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, List

from .academic_calendar import AcademicCalendar
from .config import ReferenceContext
from .models import StatusPolicy, WaiverRecord, WaiverStatus


def resolve_status(
    record: WaiverRecord,
    context: ReferenceContext,
    year_index: int,
    policy: StatusPolicy = StatusPolicy.DATE,
) -> WaiverStatus:
    """Lifecycle status of a record relative to ``context``.

    ``DATE`` compares the reference date with the record's term dates.
    ``INDEX`` treats years before the current year index as completed and
    later ones as pending; inside the current year a term that has started
    is active.
    """
    today = context.reference_date
    if policy == StatusPolicy.DATE:
        if today > record.end_date:
            return WaiverStatus.COMPLETED
        if record.start_date <= today:
            return WaiverStatus.ACTIVE
        return WaiverStatus.PENDING
    if policy == StatusPolicy.INDEX:
        if year_index < context.current_year_index:
            return WaiverStatus.COMPLETED
        if year_index > context.current_year_index:
            return WaiverStatus.PENDING
        if record.start_date <= today:
            return WaiverStatus.ACTIVE
        return WaiverStatus.PENDING
    raise ValueError(f"Unknown status policy: {policy}")


@dataclass(frozen=True)
class StatusResolver:
    calendar: AcademicCalendar
    context: ReferenceContext
    policy: StatusPolicy = StatusPolicy.DATE

    def resolve(self, record: WaiverRecord) -> WaiverStatus:
        return resolve_status(record, self.context, self.calendar.year_index(record.academic_year), self.policy)

    def annotate(self, records: Iterable[WaiverRecord]) -> List[WaiverRecord]:
        """Copies of ``records`` with ``status`` filled in."""
        return [replace(record, status=self.resolve(record)) for record in records]
