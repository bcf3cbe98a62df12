from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Mapping, Optional

from .models import RemainderPolicy, StatusPolicy


CYCLE_LENGTH = 6
ANNUAL_WAIVER_AMOUNT = Decimal("75000")
TERMS_PER_YEAR = 3

ENV_PREFIX = "WAIVEFEE_"
ROSTER_PATH_ENV = "WAIVEFEE_ROSTER_PATH"


@dataclass(frozen=True)
class WaiverConfig:
    """Configuration for waiver rotation, allocation and status resolution."""

    cycle_length: int
    annual_waiver_amount: Decimal
    terms_per_year: int
    status_policy: StatusPolicy
    remainder_policy: RemainderPolicy
    amount_quantum: Decimal
    rounding_mode: str
    first_academic_year: int
    year_count: int
    family_count: int
    current_year_index: Optional[int] = None

    def __post_init__(self) -> None:
        if self.cycle_length < 2:
            raise ValueError("cycle_length must be at least 2")
        if self.terms_per_year < 1 or 12 % self.terms_per_year:
            raise ValueError("terms_per_year must divide 12")
        if not self.annual_waiver_amount.is_finite() or self.annual_waiver_amount < 0:
            raise ValueError("annual_waiver_amount must be a finite, non-negative amount")
        if self.year_count < 1:
            raise ValueError("year_count must be at least 1")
        if self.family_count < 0:
            raise ValueError("family_count must not be negative")

    @staticmethod
    def default() -> "WaiverConfig":
        return WaiverConfig(
            cycle_length=CYCLE_LENGTH,
            annual_waiver_amount=ANNUAL_WAIVER_AMOUNT,
            terms_per_year=TERMS_PER_YEAR,
            status_policy=StatusPolicy.DATE,
            remainder_policy=RemainderPolicy.STRICT,
            amount_quantum=Decimal("0.01"),
            rounding_mode=ROUND_HALF_UP,
            first_academic_year=2024,
            year_count=5,
            family_count=25,
        )

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "WaiverConfig":
        env = os.environ if environ is None else environ
        parsers: Dict[str, Callable[[str], Any]] = {
            "cycle_length": int,
            "annual_waiver_amount": _parse_decimal,
            "terms_per_year": int,
            "status_policy": StatusPolicy,
            "remainder_policy": RemainderPolicy,
            "first_academic_year": int,
            "year_count": int,
            "family_count": int,
            "current_year_index": int,
        }
        env_names = {
            "annual_waiver_amount": "ANNUAL_AMOUNT",
            "first_academic_year": "FIRST_YEAR",
        }
        overrides: Dict[str, Any] = {}
        for field_name, parser in parsers.items():
            key = ENV_PREFIX + env_names.get(field_name, field_name.upper())
            raw = env.get(key, "").strip()
            if not raw:
                continue
            try:
                overrides[field_name] = parser(raw)
            except (ValueError, InvalidOperation) as exc:
                raise ValueError(f"Invalid value for {key}: {raw}") from exc
        return replace(WaiverConfig.default(), **overrides)


@dataclass(frozen=True)
class ReferenceContext:
    """The "now" that statuses are resolved against."""

    reference_date: date
    current_year_index: int

    @staticmethod
    def for_date(calendar, reference_date: date, current_year_index: Optional[int] = None) -> "ReferenceContext":
        if current_year_index is None:
            current_year_index = calendar.index_for_date(reference_date)
        if current_year_index is None:
            years = calendar.academic_years()
            if reference_date.year < years[0].calendar_year:
                current_year_index = -1
            else:
                current_year_index = len(years)
        return ReferenceContext(reference_date=reference_date, current_year_index=current_year_index)


def roster_path(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    return env.get(ROSTER_PATH_ENV) or None


def _parse_decimal(value: str) -> Decimal:
    amount = Decimal(value)
    if not amount.is_finite():
        raise ValueError(f"amount must be a finite number, got {value}")
    return amount
