"""
Record validation tests.

Every failing rule is reported; the year window follows the clock.
"""

from datetime import datetime, timezone

import pytest

from movies_pipeline.models import CsvMovieRecord, RawRow, parse_int
from movies_pipeline.validator import RecordValidator

CLOCK = datetime(2024, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def validator():
    return RecordValidator(clock=lambda: CLOCK)


def record(**values) -> CsvMovieRecord:
    defaults = {"id": "1", "film": "Film", "genre": "Drama", "studio": "Fox", "score": "50", "year": "2000"}
    defaults.update(values)
    return CsvMovieRecord.from_row(RawRow(line_number=2, **defaults))


class TestIntegerCells:
    """Numeric cells: empty means 0, anything non-integral is unparseable."""

    @pytest.mark.parametrize(
        "text, expected",
        [("42", 42), ("", 0), (None, 0), ("-3", -3), ("7.0", 7), ("7.5", None), ("abc", None), ("nan", None)],
    )
    def test_parse_int(self, text, expected):
        assert parse_int(text) == expected


class TestRecordValidation:
    """Field rules for a normalized record."""

    def test_valid_record(self, validator):
        result = validator.validate(record())
        assert result.is_valid
        assert result.reasons == []

    def test_every_violation_is_reported(self, validator):
        result = validator.validate(record(id="0", film="", genre="", studio="", score="150", year="1700"))

        assert [v.field for v in result.violations] == ["ID", "Film", "Genre", "Studio", "Score", "Year"]

    def test_non_numeric_cells_are_reported(self, validator):
        result = validator.validate(record(id="x", score="high", year="soon"))

        assert result.reasons == [
            "ID: must be a whole number",
            "Score: must be a whole number",
            "Year: must be a whole number",
        ]

    def test_empty_id_is_rejected(self, validator):
        result = validator.validate(record(id=""))
        assert result.reasons == ["ID: must be greater than 0"]

    @pytest.mark.parametrize("score, valid", [("0", True), ("100", True), ("-1", False), ("101", False)])
    def test_score_bounds(self, validator, score, valid):
        assert validator.validate(record(score=score)).is_valid is valid

    @pytest.mark.parametrize(
        "year, valid",
        [("1887", False), ("1888", True), ("1899", True), ("2034", True), ("2035", False)],
    )
    def test_year_window(self, validator, year, valid):
        assert validator.validate(record(year=year)).is_valid is valid

    def test_year_window_is_recomputed_from_clock(self):
        now = {"value": CLOCK}
        validator = RecordValidator(clock=lambda: now["value"])
        assert validator.year_window() == (1888, 2034)

        now["value"] = datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert validator.year_window() == (1888, 2040)
        assert validator.validate(record(year="2035")).is_valid
