from __future__ import annotations


class WaiverError(ValueError):
    """Base class for waiver engine errors."""


class InvalidTermError(WaiverError):
    def __init__(self, term: object, terms_per_year: int) -> None:
        super().__init__(f"term must be between 1 and {terms_per_year}, got {term!r}")
        self.term = term
        self.terms_per_year = terms_per_year


class UnknownAcademicYearError(WaiverError):
    def __init__(self, academic_year: str) -> None:
        super().__init__(f"Unknown academic year: {academic_year}")
        self.academic_year = academic_year


class DataIntegrityError(WaiverError):
    pass
