"""
CSV reader for movie files.

Turns a UTF-8 byte stream into RawRow objects keyed by logical column.
Headers are matched case-insensitively against declared aliases. The
reader is tolerant: blank lines are skipped, missing trailing cells become
None, extra cells are ignored, and lines with broken quoting are logged
and skipped without aborting the read.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO, Dict, List, Optional, Union

from .errors import CsvFileError, ErrorKind
from .models import RawRow
from .utils import setup_logger

# Logical field -> accepted header names (matched case-insensitively)
COLUMN_ALIASES = MappingProxyType({
    "id": ("ID",),
    "film": ("Film", "Movie", "Title"),
    "genre": ("Genre",),
    "studio": ("Studio",),
    "score": ("Score", "Rating"),
    "year": ("Year",),
})

# Display name of each logical field, in file order
REQUIRED_COLUMNS = MappingProxyType({
    "id": "ID",
    "film": "Film",
    "genre": "Genre",
    "studio": "Studio",
    "score": "Score",
    "year": "Year",
})

_ALIAS_INDEX = {
    alias.casefold(): logical
    for logical, aliases in COLUMN_ALIASES.items()
    for alias in aliases
}


def resolve_columns(header: List[str]) -> Dict[str, int]:
    """
    Map logical fields to column positions.

    The first header cell matching any alias of a field wins.
    """
    positions: Dict[str, int] = {}
    for index, name in enumerate(header):
        logical = _ALIAS_INDEX.get(name.strip().casefold())
        if logical and logical not in positions:
            positions[logical] = index
    return positions


def missing_columns(positions: Dict[str, int]) -> List[str]:
    """Display names of the required fields absent from a resolved header."""
    return [display for logical, display in REQUIRED_COLUMNS.items() if logical not in positions]


def _is_blank(cells: List[str]) -> bool:
    return all(not cell.strip() for cell in cells)


@dataclass
class CsvReadResult:
    """Rows read from one CSV file, in file order."""

    header: Optional[List[str]] = None
    positions: Dict[str, int] = field(default_factory=dict)
    rows: List[RawRow] = field(default_factory=list)
    malformed_lines: List[int] = field(default_factory=list)

    @property
    def missing_columns(self) -> List[str]:
        return missing_columns(self.positions)

    @property
    def record_count(self) -> int:
        """Data rows seen, whether or not they could be parsed."""
        return len(self.rows) + len(self.malformed_lines)


class CsvMovieReader:
    """
    Reads movie rows from CSV content.

    parse() never rejects a file for its header; read() does, raising
    CsvFileError when the header is absent or lacks required columns.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, log_dir: Optional[Path] = None):
        self.logger = logger or setup_logger("csv_reader", log_dir)

    def parse(self, stream: Union[BinaryIO, bytes], file_name: str = "") -> CsvReadResult:
        """
        Parse CSV content without enforcing the column contract.

        Raises:
            CsvFileError: If the content is not valid UTF-8 or the header
                line itself is malformed.
        """
        if isinstance(stream, (bytes, bytearray)):
            stream = io.BytesIO(stream)

        result = CsvReadResult()
        text = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
        try:
            reader = csv.reader(text, strict=True)
            while True:
                try:
                    cells = next(reader)
                except StopIteration:
                    break
                except csv.Error as e:
                    if result.header is None:
                        raise CsvFileError(ErrorKind.FILE_UNREADABLE, file_name=file_name) from e
                    result.malformed_lines.append(reader.line_num)
                    self.logger.warning(
                        f"Skipping malformed line {reader.line_num} in {file_name or 'stream'}: {e}"
                    )
                    continue

                if _is_blank(cells):
                    continue

                if result.header is None:
                    result.header = [cell.strip() for cell in cells]
                    result.positions = resolve_columns(result.header)
                    continue

                result.rows.append(self._to_raw_row(cells, result.positions, reader.line_num))
        except UnicodeDecodeError as e:
            raise CsvFileError(ErrorKind.FILE_UNREADABLE, file_name=file_name) from e
        finally:
            # Leave the caller's stream open
            text.detach()

        return result

    def read(self, stream: Union[BinaryIO, bytes], file_name: str = "") -> CsvReadResult:
        """
        Parse CSV content and enforce the header contract.

        Raises:
            CsvFileError: On unreadable content, a missing header row or
                missing required columns.
        """
        result = self.parse(stream, file_name)

        if result.header is None:
            raise CsvFileError(ErrorKind.MISSING_HEADER, file_name=file_name)
        missing = result.missing_columns
        if missing:
            raise CsvFileError(ErrorKind.MISSING_COLUMNS, file_name=file_name, missing=missing)

        self.logger.info(
            f"Read {len(result.rows)} rows from {file_name or 'stream'}"
            f" ({len(result.malformed_lines)} malformed lines skipped)"
        )
        return result

    @staticmethod
    def _to_raw_row(cells: List[str], positions: Dict[str, int], line_number: int) -> RawRow:
        values = {}
        for logical, index in positions.items():
            values[logical] = cells[index] if index < len(cells) else None
        return RawRow(line_number=line_number, **values)
