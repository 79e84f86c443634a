"""
CSV export of the movie catalog and CSV file statistics.
"""

import csv
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from .csv_reader import CsvMovieReader
from .models import CsvStatistics, MovieRecord, YearRange, parse_int
from .utils import format_number, setup_logger

EXPORT_COLUMNS = ["ID", "Film", "Genre", "Studio", "Score", "Year", "CreatedAt", "UpdatedAt"]


def _format_time(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def export_movies_csv(
    movies: Iterable[MovieRecord],
    path: Union[str, Path],
    log_dir: Optional[Path] = None,
) -> int:
    """
    Write movies to a UTF-8 CSV file.

    Returns:
        Number of movies written
    """
    logger = setup_logger("exports", log_dir)
    path = Path(path)
    count = 0

    try:
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(EXPORT_COLUMNS)
            for movie in movies:
                writer.writerow([
                    movie.id,
                    movie.film,
                    movie.genre,
                    movie.studio,
                    movie.score,
                    movie.year,
                    _format_time(movie.created_at),
                    _format_time(movie.updated_at),
                ])
                count += 1
    except OSError:
        logger.exception(f"Error exporting movies to {path}")
        raise

    logger.info(f"Exported {format_number(count)} movies to {path}")
    return count


def compute_csv_statistics(
    path: Union[str, Path],
    reader: Optional[CsvMovieReader] = None,
    log_dir: Optional[Path] = None,
) -> CsvStatistics:
    """
    Distribution statistics of a movie CSV file as written, without normalization.

    Cells that are not whole numbers are left out of the score and year
    figures but still count towards total_records.

    Raises:
        CsvFileError: If the file is unreadable or lacks required columns
        OSError: If the file cannot be opened
    """
    logger = setup_logger("exports", log_dir)
    reader = reader or CsvMovieReader(log_dir=log_dir)
    path = Path(path)

    with path.open("rb") as handle:
        rows = reader.read(handle, path.name).rows

    genres: Counter = Counter()
    studios: Counter = Counter()
    years: Counter = Counter()
    scores = []

    for row in rows:
        genre = (row.genre or "").strip()
        studio = (row.studio or "").strip()
        if genre:
            genres[genre] += 1
        if studio:
            studios[studio] += 1

        year = parse_int((row.year or "").strip())
        if year is not None:
            years[year] += 1
        score = parse_int((row.score or "").strip())
        if score is not None:
            scores.append(score)

    stats = CsvStatistics(
        total_records=len(rows),
        genre_distribution=dict(genres),
        studio_distribution=dict(studios),
        year_distribution=dict(sorted(years.items())),
    )
    if scores:
        stats.average_score = sum(scores) / len(scores)
        stats.min_score = min(scores)
        stats.max_score = max(scores)
    if years:
        stats.year_range = YearRange(min=min(years), max=max(years))

    logger.info(f"CSV statistics for {path.name}: {format_number(stats.total_records)} records")
    return stats
