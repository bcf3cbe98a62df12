from __future__ import annotations

from typing import Dict

from .academic_calendar import AcademicCalendar
from .config import CYCLE_LENGTH
from .models import Role


def beneficiary_for(year_index: int, cycle_length: int = CYCLE_LENGTH) -> Role:
    """Sibling role that receives the waiver in the given academic year.

    The first half of every cycle favours the younger sibling, the second
    half the older one. The rule is the same for every family.
    """
    if cycle_length < 2:
        raise ValueError("cycle_length must be at least 2")
    if year_index < 0:
        raise ValueError(f"year_index must not be negative, got {year_index}")
    if year_index % cycle_length < cycle_length / 2:
        return Role.YOUNGER
    return Role.OLDER


def rotation_schedule(calendar: AcademicCalendar, cycle_length: int = CYCLE_LENGTH) -> Dict[str, Role]:
    return {year.label: beneficiary_for(year.index, cycle_length) for year in calendar.academic_years()}
