"""
Record validation for normalized CSV rows.

Every rule is evaluated independently and every violation is reported.
The year window here is wider than the stored-entity constraint
(STORED_YEAR_MIN..STORED_YEAR_MAX); rows inside it can still be corrected
later by the cleanup sweep.
"""

from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .models import (
    EARLIEST_FILM_YEAR,
    INGEST_FUTURE_YEARS,
    SCORE_MAX,
    SCORE_MIN,
    CsvMovieRecord,
    FieldViolation,
    ValidationResult,
    utcnow,
)


class RecordValidator:
    """Checks a normalized CSV record against the ingestion field rules."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or utcnow

    def year_window(self) -> Tuple[int, int]:
        """Accepted year range, recomputed on each call from the clock."""
        return EARLIEST_FILM_YEAR, self.clock().year + INGEST_FUTURE_YEARS

    def validate(self, record: CsvMovieRecord) -> ValidationResult:
        violations: List[FieldViolation] = []

        if record.id is None:
            violations.append(FieldViolation("ID", "must be a whole number"))
        elif record.id <= 0:
            violations.append(FieldViolation("ID", "must be greater than 0"))

        if not record.film.strip():
            violations.append(FieldViolation("Film", "must not be empty"))
        if not record.genre.strip():
            violations.append(FieldViolation("Genre", "must not be empty"))
        if not record.studio.strip():
            violations.append(FieldViolation("Studio", "must not be empty"))

        if record.score is None:
            violations.append(FieldViolation("Score", "must be a whole number"))
        elif not SCORE_MIN <= record.score <= SCORE_MAX:
            violations.append(FieldViolation("Score", f"must be between {SCORE_MIN} and {SCORE_MAX}"))

        year_min, year_max = self.year_window()
        if record.year is None:
            violations.append(FieldViolation("Year", "must be a whole number"))
        elif not year_min <= record.year <= year_max:
            violations.append(FieldViolation("Year", f"must be between {year_min} and {year_max}"))

        return ValidationResult(violations=violations)
