"""
Reconciliation of CSV records against the movie store.

Each checked record is applied exactly once, in file order, and classified
as created, updated, unchanged, rejected or failed. Per-row write failures
are isolated in a savepoint and recorded; the run commits once at the end.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from .database import DatabaseManager, MovieRepository
from .errors import ErrorKind, StoreError
from .models import CsvMovieRecord, MovieRecord, ReconciliationOutcome, RowError, ValidationResult, utcnow
from .utils import progress_bar, setup_logger


class RowAction(str, Enum):
    """Effect of reconciling one valid record."""

    created = "created"
    updated = "updated"
    unchanged = "unchanged"


@dataclass(frozen=True)
class CheckedRecord:
    """A normalized record paired with its validation verdict."""

    record: CsvMovieRecord
    validation: ValidationResult


class ReconciliationEngine:
    """
    Applies checked records to the store under create/update/no-op rules.

    The business key (CSV ID) is the only join key. No locking is done here;
    concurrent runs rely on the store's transaction isolation.
    """

    def __init__(
        self,
        db: DatabaseManager,
        log_dir: Optional[Path] = None,
        show_progress: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.show_progress = show_progress
        self.clock = clock or utcnow
        self.logger = setup_logger("reconciliation", log_dir)

    async def reconcile(
        self,
        records: Sequence[CheckedRecord],
        outcome: Optional[ReconciliationOutcome] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ReconciliationOutcome:
        """
        Reconcile records in order and commit once.

        Args:
            records: Checked records in file order
            outcome: Outcome to accumulate into (a fresh one if omitted)
            cancel_event: Checked between rows; rows already applied stay committed

        Returns:
            The accumulated outcome

        Raises:
            StoreError: If the store cannot be opened or the final commit fails
            asyncio.CancelledError: If the task is cancelled mid-row, after
                committing the rows applied before it
        """
        if outcome is None:
            outcome = ReconciliationOutcome(total_records=len(records))

        async with self.db.session() as repo:
            rows = progress_bar(
                records,
                total=len(records),
                desc=outcome.file_name or "Reconciling",
                disable=not self.show_progress,
            )
            for index, item in enumerate(rows):
                if cancel_event is not None and cancel_event.is_set():
                    outcome.cancelled = True
                    self.logger.warning(
                        f"Reconciliation of {outcome.file_name or 'stream'} cancelled after "
                        f"{index} of {len(records)} rows"
                    )
                    break
                try:
                    await self._reconcile_one(repo, item, outcome)
                except asyncio.CancelledError:
                    # The interrupted row's savepoint is already rolled back
                    outcome.cancelled = True
                    self.logger.warning(
                        f"Reconciliation of {outcome.file_name or 'stream'} interrupted after "
                        f"{index} of {len(records)} rows; keeping applied rows"
                    )
                    await repo.commit()
                    raise

            await repo.commit()

        return outcome

    async def _reconcile_one(
        self,
        repo: MovieRepository,
        item: CheckedRecord,
        outcome: ReconciliationOutcome,
    ) -> None:
        record = item.record

        if not item.validation.is_valid:
            error = RowError(
                kind=ErrorKind.ROW_INVALID,
                line_number=record.line_number,
                business_id=record.id,
                reasons=item.validation.reasons,
            )
            outcome.add_rejection(error)
            self.logger.warning(error.message)
            return

        try:
            action = await self._apply(repo, record)
        except StoreError as e:
            error = RowError(kind=e.kind, line_number=record.line_number, business_id=record.id)
            outcome.add_failure(error)
            self.logger.error(f"{error.message} Cause: {e.cause!r}")
            return
        except Exception:
            error = RowError(kind=ErrorKind.ROW_STORE_FAILURE, line_number=record.line_number, business_id=record.id)
            outcome.add_failure(error)
            self.logger.exception(error.message)
            return

        if action == RowAction.created:
            outcome.created_count += 1
        elif action == RowAction.updated:
            outcome.updated_count += 1
        else:
            outcome.unchanged_count += 1
        self.logger.debug(f"Movie {action.value}: {record.describe()}")

    async def _apply(self, repo: MovieRepository, record: CsvMovieRecord) -> RowAction:
        """Create, update or leave one movie inside its own savepoint."""
        async with repo.savepoint():
            existing = await repo.get_by_business_id(record.id)

            if existing is None:
                await repo.add(MovieRecord.from_csv_record(record, now=self.clock()))
                return RowAction.created

            if not existing.differs_from(record):
                return RowAction.unchanged

            existing.apply(record)
            existing.mark_as_updated(self.clock())
            await repo.update(existing)
            return RowAction.updated
