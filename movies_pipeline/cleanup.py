"""
Data-quality sweep for the movie store.

Runs three independent passes over the stored catalog:
1. Duplicate collapse: one movie per (film, year), lowest business key kept
2. Score correction: clamp into [0, 100]
3. Year correction: clamp into [1888, current year]

Each pass commits on its own. A failing pass is recorded and the
remaining passes still run.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from .config import Config
from .database import DatabaseManager
from .errors import ErrorKind, describe
from .models import (
    EARLIEST_FILM_YEAR,
    SCORE_MAX,
    SCORE_MIN,
    CleanupResult,
    DatabaseStats,
    MovieRecord,
    utcnow,
)
from .utils import Timer, setup_logger


def clamp_score(score: int) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, score))


def clamp_year(year: int, current_year: int) -> int:
    return max(EARLIEST_FILM_YEAR, min(current_year, year))


def find_duplicate_groups(movies: List[MovieRecord]) -> List[List[MovieRecord]]:
    """
    Group movies sharing (film, year).

    Only groups with more than one member are returned. Each group is
    sorted by business key so the first entry is the one to keep.
    """
    groups: Dict[Tuple[str, int], List[MovieRecord]] = {}
    for movie in movies:
        groups.setdefault((movie.film, movie.year), []).append(movie)
    return [
        sorted(group, key=lambda m: m.id)
        for group in groups.values()
        if len(group) > 1
    ]


def compute_stats(movies: List[MovieRecord], current_year: int) -> DatabaseStats:
    """Build catalog statistics from movies ordered by business key."""
    if not movies:
        return DatabaseStats()

    genres = Counter(m.genre for m in movies)
    studios = Counter(m.studio for m in movies)
    return DatabaseStats(
        total_movies=len(movies),
        movies_this_year=sum(1 for m in movies if m.year == current_year),
        average_score=sum(m.score for m in movies) / len(movies),
        top_genre=genres.most_common(1)[0][0],
        top_studio=studios.most_common(1)[0][0],
        oldest_movie=min(movies, key=lambda m: m.year).summary(),
        newest_movie=max(movies, key=lambda m: m.year).summary(),
    )


@dataclass
class MaintenanceReport:
    """Result of one scheduled maintenance run."""

    cleanup: CleanupResult
    stats: Optional[DatabaseStats] = None
    elapsed: float = 0.0


class DataCleanupService:
    """
    Runs the data-quality sweep and catalog statistics.

    Usage:
        service = DataCleanupService(db, config)
        result = await service.run_cleanup()
    """

    def __init__(
        self,
        db: DatabaseManager,
        config: Config,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.config = config
        self.clock = clock or utcnow
        self.logger = setup_logger("cleanup", config.log_dir)

    async def run_cleanup(self, now: Optional[datetime] = None) -> CleanupResult:
        """
        Run the three sweep passes in order.

        Never raises for a pass failure; success is False when any pass
        failed and error_message names the failed passes.
        """
        now = now or self.clock()
        result = CleanupResult()
        passes: List[Tuple[str, str, Callable[[datetime], Awaitable[int]]]] = [
            ("duplicate", "duplicates_removed", self._collapse_duplicates),
            ("score correction", "scores_corrected", self._correct_scores),
            ("year correction", "years_corrected", self._correct_years),
        ]

        self.logger.info("Starting data cleanup")
        for pass_name, counter, run_pass in passes:
            try:
                setattr(result, counter, await run_pass(now))
            except Exception:
                self.logger.exception(f"Cleanup {pass_name} pass failed")
                result.failed_passes.append(pass_name)

        result.success = not result.failed_passes
        if result.failed_passes:
            result.error_message = " ".join(
                describe(ErrorKind.SWEEP_PASS_FAILED, pass_name=name) for name in result.failed_passes
            )

        self.logger.info(
            f"Cleanup complete. Duplicates removed: {result.duplicates_removed}, "
            f"Scores corrected: {result.scores_corrected}, Years corrected: {result.years_corrected}"
        )
        return result

    async def _collapse_duplicates(self, now: datetime) -> int:
        removed = 0
        async with self.db.session() as repo:
            for keeper, *duplicates in find_duplicate_groups(await repo.list_all()):
                for duplicate in duplicates:
                    await repo.delete(duplicate)
                    removed += 1
                    self.logger.info(
                        f"Removed duplicate movie ID {duplicate.id} (kept ID {keeper.id}, year {keeper.year})"
                    )
                keeper.mark_as_updated(now)
                await repo.touch(keeper)
            await repo.commit()
        return removed

    async def _correct_scores(self, now: datetime) -> int:
        corrected = 0
        async with self.db.session() as repo:
            for movie in await repo.list_all():
                score = clamp_score(movie.score)
                if score == movie.score:
                    continue
                self.logger.info(f"Corrected score for movie ID {movie.id}: {movie.score} -> {score}")
                movie.score = score
                movie.mark_as_updated(now)
                await repo.update(movie)
                corrected += 1
            await repo.commit()
        return corrected

    async def _correct_years(self, now: datetime) -> int:
        corrected = 0
        async with self.db.session() as repo:
            for movie in await repo.list_all():
                year = clamp_year(movie.year, now.year)
                if year == movie.year:
                    continue
                self.logger.info(f"Corrected year for movie ID {movie.id}: {movie.year} -> {year}")
                movie.year = year
                movie.mark_as_updated(now)
                await repo.update(movie)
                corrected += 1
            await repo.commit()
        return corrected

    async def generate_stats(self, now: Optional[datetime] = None) -> DatabaseStats:
        """Read-only catalog statistics."""
        now = now or self.clock()
        async with self.db.session() as repo:
            movies = await repo.list_all()
        stats = compute_stats(movies, now.year)
        self.logger.info(
            f"Database stats: {stats.total_movies} movies, average score {stats.average_score:.2f}"
        )
        return stats

    async def run_daily_maintenance(self, now: Optional[datetime] = None) -> MaintenanceReport:
        """
        Scheduled entry point: sweep, then statistics.

        Failures are logged, never raised, so a scheduler keeps running.
        """
        now = now or self.clock()
        self.logger.info(f"Daily maintenance started at {now.isoformat()}")

        with Timer("Daily maintenance") as timer:
            report = MaintenanceReport(cleanup=await self.run_cleanup(now))
            try:
                report.stats = await self.generate_stats(now)
            except Exception:
                self.logger.exception("Could not generate database stats")
        report.elapsed = timer.elapsed

        if report.cleanup.success:
            self.logger.info(f"Daily maintenance completed ({timer})")
        else:
            self.logger.error(f"Daily maintenance completed with errors: {report.cleanup.error_message}")
        return report
