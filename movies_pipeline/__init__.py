"""
Movies Pipeline - CSV reconciliation and data-quality maintenance.

This package provides tools for:
- Reading and normalizing movie CSV files
- Validating records and reconciling them against the movie store
- Checking candidate CSV files before upload
- Sweeping the store for duplicates and out-of-range values
- Exporting the catalog and summarizing CSV files
"""

from .config import Config
from .errors import CsvFileError, ErrorKind, PipelineError, StoreError, describe
from .models import (
    CleanupResult,
    CsvMovieRecord,
    DatabaseStats,
    FileValidationResult,
    MovieRecord,
    RawRow,
    ReconciliationOutcome,
)
from .csv_reader import CsvMovieReader
from .normalizer import GenreCorrections, RowNormalizer
from .validator import RecordValidator
from .database import DatabaseManager, MovieRepository
from .reconciliation import ReconciliationEngine
from .processing import CsvProcessingService
from .cleanup import DataCleanupService

__version__ = "1.0.0"
__all__ = [
    "Config",
    "CsvFileError",
    "ErrorKind",
    "PipelineError",
    "StoreError",
    "describe",
    "CleanupResult",
    "CsvMovieRecord",
    "DatabaseStats",
    "FileValidationResult",
    "MovieRecord",
    "RawRow",
    "ReconciliationOutcome",
    "CsvMovieReader",
    "GenreCorrections",
    "RowNormalizer",
    "RecordValidator",
    "DatabaseManager",
    "MovieRepository",
    "ReconciliationEngine",
    "CsvProcessingService",
    "DataCleanupService",
]
