"""
Data models for the Movies Pipeline.

Provides dataclasses for type-safe data handling throughout the pipeline:
the persisted MovieRecord, the transient CSV row types, and the result
objects returned by ingestion, file validation and the cleanup sweep.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .errors import ErrorKind, describe

# Score domain, shared by validation, storage and the sweep
SCORE_MIN = 0
SCORE_MAX = 100

# Year windows. Ingestion tolerates [EARLIEST_FILM_YEAR, current + 10], the
# stored entity declares [STORED_YEAR_MIN, STORED_YEAR_MAX] and the sweep
# clamps to [EARLIEST_FILM_YEAR, current year]. Keep all three.
EARLIEST_FILM_YEAR = 1888
INGEST_FUTURE_YEARS = 10
STORED_YEAR_MIN = 1900
STORED_YEAR_MAX = 2100

# Column lengths of the movies table
FILM_MAX_LENGTH = 255
GENRE_MAX_LENGTH = 100
STUDIO_MAX_LENGTH = 150


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class MovieSummary:
    """Film title and year, used for oldest/newest statistics."""

    film: str
    year: int

    def to_dict(self) -> dict:
        return {"film": self.film, "year": self.year}


@dataclass
class MovieRecord:
    """A durable catalog row."""

    id: int  # business key, the only reconciliation key
    film: str
    genre: str
    studio: str
    score: int
    year: int
    movie_id: str = field(default_factory=lambda: str(uuid.uuid4()))  # surrogate key
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def mark_as_updated(self, now: Optional[datetime] = None) -> None:
        """Stamp updated_at, never earlier than created_at."""
        now = now or utcnow()
        self.updated_at = max(now, self.created_at)

    def is_valid(self) -> bool:
        """Check the stored-entity constraints."""
        return (
            bool(self.film.strip())
            and bool(self.genre.strip())
            and bool(self.studio.strip())
            and SCORE_MIN <= self.score <= SCORE_MAX
            and STORED_YEAR_MIN <= self.year <= STORED_YEAR_MAX
        )

    def mutable_fields(self) -> Tuple[str, str, str, int, int]:
        return (self.film, self.genre, self.studio, self.score, self.year)

    def differs_from(self, record: "CsvMovieRecord") -> bool:
        """True if any of the five mutable fields differ from the incoming record."""
        return self.mutable_fields() != record.mutable_fields()

    def apply(self, record: "CsvMovieRecord") -> None:
        """Overwrite all mutable fields from the incoming record."""
        self.film = record.film
        self.genre = record.genre
        self.studio = record.studio
        self.score = record.score
        self.year = record.year

    def summary(self) -> MovieSummary:
        return MovieSummary(film=self.film, year=self.year)

    def to_dict(self) -> dict:
        """Convert to dictionary for database insertion."""
        return {
            "movie_id": self.movie_id,
            "id": self.id,
            "film": self.film,
            "genre": self.genre,
            "studio": self.studio,
            "score": self.score,
            "year": self.year,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_csv_record(cls, record: "CsvMovieRecord", now: Optional[datetime] = None) -> "MovieRecord":
        """Create a new MovieRecord from a validated CSV record."""
        return cls(
            id=record.id,
            film=record.film,
            genre=record.genre,
            studio=record.studio,
            score=record.score,
            year=record.year,
            created_at=now or utcnow(),
        )

    def __str__(self) -> str:
        return f"Movie: {self.film} ({self.year}) - {self.genre} - Score: {self.score}"


@dataclass(frozen=True)
class RawRow:
    """
    One parsed CSV line keyed by logical column.

    Values are the cell text as read; None means the line had no cell for
    that column (missing trailing fields).
    """

    line_number: int
    id: Optional[str] = None
    film: Optional[str] = None
    genre: Optional[str] = None
    studio: Optional[str] = None
    score: Optional[str] = None
    year: Optional[str] = None


def parse_int(value: Optional[str]) -> Optional[int]:
    """
    Parse an integer cell.

    Empty cells resolve to 0. Returns None if the text is not a whole number.
    """
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")) or not number.is_integer():
        return None
    return int(number)


@dataclass(frozen=True)
class CsvMovieRecord:
    """
    A normalized CSV row with typed fields.

    Numeric fields are None when the cell text was not a whole number.
    """

    line_number: int
    id: Optional[int]
    film: str
    genre: str
    studio: str
    score: Optional[int]
    year: Optional[int]

    @classmethod
    def from_row(cls, row: RawRow) -> "CsvMovieRecord":
        """Create a typed record from a normalized RawRow."""
        return cls(
            line_number=row.line_number,
            id=parse_int(row.id),
            film=row.film or "",
            genre=row.genre or "",
            studio=row.studio or "",
            score=parse_int(row.score),
            year=parse_int(row.year),
        )

    def mutable_fields(self) -> Tuple[str, str, str, Optional[int], Optional[int]]:
        return (self.film, self.genre, self.studio, self.score, self.year)

    def describe(self) -> str:
        """Short diagnostic context: position and business key only."""
        if self.id:
            return f"line {self.line_number}, ID {self.id}"
        return f"line {self.line_number}"


@dataclass(frozen=True)
class FieldViolation:
    """A single failed validation rule."""

    field: str
    rule: str

    def __str__(self) -> str:
        return f"{self.field}: {self.rule}"


@dataclass
class ValidationResult:
    """Verdict for one record: every failing rule, in rule order."""

    violations: List[FieldViolation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def reasons(self) -> List[str]:
        return [str(v) for v in self.violations]


@dataclass
class RowError:
    """A row that was rejected or failed to persist."""

    kind: ErrorKind
    line_number: int
    business_id: Optional[int] = None
    reasons: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return describe(
            self.kind,
            line_number=self.line_number,
            business_id=self.business_id or None,
            reasons=self.reasons,
        )


@dataclass
class ReconciliationOutcome:
    """Aggregate result of one ingestion run."""

    file_name: str = ""
    total_records: int = 0
    created_count: int = 0
    updated_count: int = 0
    unchanged_count: int = 0
    rejected_count: int = 0
    failed_count: int = 0
    malformed_lines: int = 0
    cancelled: bool = False
    row_errors: List[RowError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return self.rejected_count + self.failed_count

    @property
    def errors(self) -> List[str]:
        return [e.message for e in self.row_errors]

    @property
    def success(self) -> bool:
        """Lenient: no errors, or at least one row made forward progress."""
        return self.error_count == 0 or (self.created_count + self.updated_count) > 0

    @property
    def success_rate(self) -> float:
        return (self.created_count + self.updated_count) / max(1, self.total_records)

    def add_rejection(self, error: RowError) -> None:
        self.rejected_count += 1
        self.row_errors.append(error)

    def add_failure(self, error: RowError) -> None:
        self.failed_count += 1
        self.row_errors.append(error)

    def to_dict(self) -> dict:
        """Convert to the external outcome structure."""
        return {
            "fileName": self.file_name,
            "totalRecords": self.total_records,
            "createdCount": self.created_count,
            "updatedCount": self.updated_count,
            "unchangedCount": self.unchanged_count,
            "rejectedCount": self.rejected_count,
            "errorCount": self.error_count,
            "malformedLines": self.malformed_lines,
            "cancelled": self.cancelled,
            "success": self.success,
            "errors": self.errors,
        }

    def __str__(self) -> str:
        """Human-readable summary."""
        lines = [
            f"File: {self.file_name}",
            f"Total records: {self.total_records}",
            f"Created: {self.created_count}",
            f"Updated: {self.updated_count}",
            f"Unchanged: {self.unchanged_count}",
        ]
        if self.rejected_count:
            lines.append(f"Rejected: {self.rejected_count}")
        if self.failed_count:
            lines.append(f"Failed: {self.failed_count}")
        if self.malformed_lines:
            lines.append(f"Malformed lines skipped: {self.malformed_lines}")
        if self.cancelled:
            lines.append("Cancelled before the end of the file")
        return "\n".join(lines)


@dataclass
class FileValidationResult:
    """Result of checking a candidate CSV file without ingesting it."""

    is_valid: bool = False
    record_count: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "recordCount": self.record_count,
            "errors": list(self.errors),
        }


@dataclass
class CleanupResult:
    """Result of one data-quality sweep."""

    success: bool = False
    duplicates_removed: int = 0
    scores_corrected: int = 0
    years_corrected: int = 0
    error_message: Optional[str] = None
    failed_passes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        result = {
            "success": self.success,
            "duplicatesRemoved": self.duplicates_removed,
            "scoresCorrected": self.scores_corrected,
            "yearsCorrected": self.years_corrected,
        }
        if self.error_message:
            result["errorMessage"] = self.error_message
        return result

    def __str__(self) -> str:
        lines = [
            f"Duplicates removed: {self.duplicates_removed}",
            f"Scores corrected: {self.scores_corrected}",
            f"Years corrected: {self.years_corrected}",
        ]
        if self.failed_passes:
            lines.append(f"Failed passes: {', '.join(self.failed_passes)}")
        return "\n".join(lines)


@dataclass
class DatabaseStats:
    """Snapshot statistics of the movie catalog."""

    total_movies: int = 0
    movies_this_year: int = 0
    average_score: float = 0.0
    top_genre: Optional[str] = None
    top_studio: Optional[str] = None
    oldest_movie: Optional[MovieSummary] = None
    newest_movie: Optional[MovieSummary] = None

    def to_dict(self) -> dict:
        return {
            "totalMovies": self.total_movies,
            "moviesThisYear": self.movies_this_year,
            "averageScore": round(self.average_score, 2),
            "topGenre": self.top_genre,
            "topStudio": self.top_studio,
            "oldestMovie": self.oldest_movie.to_dict() if self.oldest_movie else None,
            "newestMovie": self.newest_movie.to_dict() if self.newest_movie else None,
        }


@dataclass
class YearRange:
    """Inclusive year span."""

    min: int = 0
    max: int = 0


@dataclass
class CsvStatistics:
    """Distribution statistics of a CSV file's contents."""

    total_records: int = 0
    genre_distribution: Dict[str, int] = field(default_factory=dict)
    studio_distribution: Dict[str, int] = field(default_factory=dict)
    year_distribution: Dict[int, int] = field(default_factory=dict)
    average_score: float = 0.0
    min_score: int = 0
    max_score: int = 0
    year_range: YearRange = field(default_factory=YearRange)

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "genre_distribution": dict(self.genre_distribution),
            "studio_distribution": dict(self.studio_distribution),
            "year_distribution": dict(self.year_distribution),
            "average_score": round(self.average_score, 2),
            "min_score": self.min_score,
            "max_score": self.max_score,
            "year_range": {"min": self.year_range.min, "max": self.year_range.max},
        }
