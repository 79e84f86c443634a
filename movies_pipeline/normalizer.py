"""
Record normalization for CSV rows.

Pure functions, no I/O: trims text, corrects known genre misspellings and
normalizes genre casing.
"""

from dataclasses import replace
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from .models import RawRow

DEFAULT_GENRE_CORRECTIONS = MappingProxyType({
    "Romence": "Romance",
    "Comdy": "Comedy",
    "romance": "Romance",
    "comedy": "Comedy",
    "action": "Action",
    "drama": "Drama",
    "animation": "Animation",
})


class GenreCorrections(Mapping):
    """
    Immutable, case-insensitive genre correction table.

    Lookups ignore case. Every corrected value is also registered as
    mapping to itself, so normalizing twice gives the same result.
    """

    def __init__(self, corrections: Optional[Mapping[str, str]] = None):
        table = {}
        for wrong, right in (corrections or {}).items():
            table[wrong.strip().casefold()] = right.strip()
        for right in list(table.values()):
            table.setdefault(right.casefold(), right)
        self._table = MappingProxyType(table)

    @classmethod
    def with_defaults(cls, extra: Optional[Mapping[str, str]] = None) -> "GenreCorrections":
        """Built-in corrections, overridden by any extra entries."""
        merged = dict(DEFAULT_GENRE_CORRECTIONS)
        merged.update(extra or {})
        return cls(merged)

    def __getitem__(self, genre: str) -> str:
        return self._table[genre.casefold()]

    def __contains__(self, genre: object) -> bool:
        return isinstance(genre, str) and genre.casefold() in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"GenreCorrections({dict(self._table)!r})"


def _clean(value: Optional[str]) -> str:
    return value.strip() if value is not None else ""


def capitalize_genre(genre: str) -> str:
    """First character upper case, the rest lower case."""
    if not genre:
        return genre
    return genre[0].upper() + genre[1:].lower()


class RowNormalizer:
    """Produces the canonical form of a raw CSV row."""

    def __init__(self, corrections: Optional[GenreCorrections] = None):
        self.corrections = corrections if corrections is not None else GenreCorrections.with_defaults()

    def normalize_genre(self, genre: Optional[str]) -> str:
        """Correct a known misspelling, otherwise apply the casing rule."""
        genre = _clean(genre)
        if genre in self.corrections:
            return self.corrections[genre]
        return capitalize_genre(genre)

    def normalize(self, row: RawRow) -> RawRow:
        """
        Normalize one row.

        Text is trimmed and absent cells become empty strings. Idempotent:
        normalizing a normalized row returns an equal row.
        """
        return replace(
            row,
            id=_clean(row.id),
            film=_clean(row.film),
            genre=self.normalize_genre(row.genre),
            studio=_clean(row.studio),
            score=_clean(row.score),
            year=_clean(row.year),
        )
