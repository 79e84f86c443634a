"""
CSV processing service.

Entry points for ingesting a CSV file into the movie store and for
checking a candidate file before upload. Coordinates the reader,
normalizer, validator and reconciliation engine.
"""

import asyncio
import io
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Union

from .config import Config
from .csv_reader import CsvMovieReader
from .database import DatabaseManager
from .errors import CsvFileError, ErrorKind, PipelineError, describe
from .models import CsvMovieRecord, FileValidationResult, RawRow, ReconciliationOutcome
from .normalizer import RowNormalizer
from .reconciliation import CheckedRecord, ReconciliationEngine
from .utils import Timer, format_bytes, setup_logger
from .validator import RecordValidator

CSV_EXTENSION = ".csv"


class CsvProcessingService:
    """
    Ingests movie CSV files.

    File-level problems raise CsvFileError before any row is touched.
    Row-level problems never raise; they are collected in the outcome.
    """

    def __init__(
        self,
        db: DatabaseManager,
        config: Config,
        reader: Optional[CsvMovieReader] = None,
        normalizer: Optional[RowNormalizer] = None,
        validator: Optional[RecordValidator] = None,
        engine: Optional[ReconciliationEngine] = None,
    ):
        self.db = db
        self.config = config
        self.logger = setup_logger("processing", config.log_dir)
        self.reader = reader or CsvMovieReader(log_dir=config.log_dir)
        self.normalizer = normalizer or RowNormalizer(config.genre_corrections())
        self.validator = validator or RecordValidator()
        self.engine = engine or ReconciliationEngine(
            db, log_dir=config.log_dir, show_progress=config.show_progress
        )

    def check_rows(self, rows: Sequence[RawRow]) -> List[CheckedRecord]:
        """Normalize and validate raw rows, keeping file order."""
        checked = []
        for row in rows:
            record = CsvMovieRecord.from_row(self.normalizer.normalize(row))
            checked.append(CheckedRecord(record=record, validation=self.validator.validate(record)))
        return checked

    async def process_csv(
        self,
        stream: Union[BinaryIO, bytes],
        file_name: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ReconciliationOutcome:
        """
        Ingest one CSV stream into the movie store.

        Args:
            stream: UTF-8 CSV content
            file_name: Display name, used for logging and reporting only
            cancel_event: Optional cooperative cancellation signal

        Returns:
            ReconciliationOutcome with per-row results

        Raises:
            CsvFileError: If the file is unreadable or its header is unusable
            PipelineError: If the store fails outside of a single row
        """
        self.logger.info(f"Processing CSV file {file_name}")

        with Timer(f"Processing {file_name}") as timer:
            try:
                read_result = self.reader.read(stream, file_name)
            except CsvFileError as e:
                self.logger.error(f"Rejected file {file_name}: {e.message}")
                raise

            outcome = ReconciliationOutcome(
                file_name=file_name,
                total_records=len(read_result.rows),
                malformed_lines=len(read_result.malformed_lines),
            )
            checked = self.check_rows(read_result.rows)

            try:
                await self.engine.reconcile(checked, outcome=outcome, cancel_event=cancel_event)
            except PipelineError as e:
                self.logger.exception(f"Processing {file_name} failed: {e.message}")
                raise
            except Exception as e:
                self.logger.exception(f"Unexpected error processing {file_name}")
                raise PipelineError(ErrorKind.UNEXPECTED) from e

        self.logger.info(
            f"Processing complete for {file_name}. Created: {outcome.created_count}, "
            f"Updated: {outcome.updated_count}, Unchanged: {outcome.unchanged_count}, "
            f"Errors: {outcome.error_count} ({timer})"
        )
        return outcome

    async def process_upload(
        self,
        file_name: str,
        data: bytes,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ReconciliationOutcome:
        """
        Guard and ingest an uploaded file.

        Only .csv names are accepted and the payload must fit the configured
        size limit.

        Raises:
            CsvFileError: On a non-CSV name, an oversized payload, or any
                file-level failure from process_csv
        """
        size = len(data)
        self.check_upload(file_name, size)

        self.logger.info(f"Upload received: {file_name} ({format_bytes(size)})")
        outcome = await self.process_csv(io.BytesIO(data), file_name, cancel_event=cancel_event)
        self._log_result(outcome, size)
        return outcome

    def check_upload(self, file_name: str, size: Optional[int]) -> None:
        """
        Reject an upload by name and declared size before its body is read.

        A size of None (unknown) only checks the name.

        Raises:
            CsvFileError: NOT_CSV or FILE_TOO_LARGE
        """
        if not file_name or not file_name.strip().lower().endswith(CSV_EXTENSION):
            self.logger.warning(f"Ignoring upload that is not a CSV file: {file_name}")
            raise CsvFileError(ErrorKind.NOT_CSV, file_name=file_name)

        limit = self.config.max_file_size_bytes
        if size is not None and size > limit:
            self.logger.error(f"Upload too large: {file_name} ({format_bytes(size)})")
            raise CsvFileError(ErrorKind.FILE_TOO_LARGE, file_name=file_name, size=size, limit=limit)

    def _log_result(self, outcome: ReconciliationOutcome, size: int) -> None:
        summary = (
            f"{outcome.file_name} ({format_bytes(size)}): "
            f"total={outcome.total_records} created={outcome.created_count} "
            f"updated={outcome.updated_count} unchanged={outcome.unchanged_count} "
            f"errors={outcome.error_count} success_rate={outcome.success_rate:.1%}"
        )
        if outcome.success:
            self.logger.info(f"File processed: {summary}")
        else:
            self.logger.error(f"File processed with errors: {summary}\n  " + "\n  ".join(outcome.errors))

    def validate_file(
        self,
        source: Union[str, Path, BinaryIO, bytes],
        file_name: Optional[str] = None,
    ) -> FileValidationResult:
        """
        Check a candidate CSV without ingesting it.

        Verifies the file exists and is readable, has a header row and the
        six required columns. record_count is the number of data rows seen;
        row contents are not validated.
        """
        result = FileValidationResult()

        if isinstance(source, (str, Path)):
            path = Path(source)
            file_name = file_name or path.name
            if not path.is_file():
                result.errors.append(describe(ErrorKind.FILE_NOT_FOUND, file_name=file_name))
                return result
            try:
                with path.open("rb") as handle:
                    return self._validate_stream(handle, file_name)
            except OSError as e:
                self.logger.error(f"Could not open {path}: {e}")
                result.errors.append(describe(ErrorKind.FILE_UNREADABLE, file_name=file_name))
                return result

        return self._validate_stream(source, file_name or "")

    def _validate_stream(self, stream: Union[BinaryIO, bytes], file_name: str) -> FileValidationResult:
        result = FileValidationResult()
        try:
            parsed = self.reader.parse(stream, file_name)
        except CsvFileError as e:
            result.errors.append(e.message)
            return result

        if parsed.header is None:
            result.errors.append(describe(ErrorKind.MISSING_HEADER, file_name=file_name))
        elif parsed.missing_columns:
            result.errors.append(
                describe(ErrorKind.MISSING_COLUMNS, file_name=file_name, missing=parsed.missing_columns)
            )

        result.record_count = parsed.record_count
        result.is_valid = not result.errors
        self.logger.info(
            f"CSV validation for {file_name}: valid={result.is_valid}, "
            f"records={result.record_count}, errors={len(result.errors)}"
        )
        return result
