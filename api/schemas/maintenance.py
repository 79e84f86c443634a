"""
Maintenance schemas: sweep results and catalog statistics.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CleanupResponse(BaseModel):
    """Result of one data-quality sweep."""

    success: bool
    duplicates_removed: int = Field(..., alias="duplicatesRemoved", ge=0)
    scores_corrected: int = Field(..., alias="scoresCorrected", ge=0)
    years_corrected: int = Field(..., alias="yearsCorrected", ge=0)
    error_message: Optional[str] = Field(None, alias="errorMessage")

    class Config:
        populate_by_name = True


class MovieSummary(BaseModel):
    """Film title and release year."""

    film: str
    year: int


class DatabaseStatsResponse(BaseModel):
    """Snapshot statistics of the movie catalog."""

    total_movies: int = Field(..., alias="totalMovies", ge=0)
    movies_this_year: int = Field(..., alias="moviesThisYear", ge=0)
    average_score: float = Field(..., alias="averageScore")
    top_genre: Optional[str] = Field(None, alias="topGenre")
    top_studio: Optional[str] = Field(None, alias="topStudio")
    oldest_movie: Optional[MovieSummary] = Field(None, alias="oldestMovie")
    newest_movie: Optional[MovieSummary] = Field(None, alias="newestMovie")

    class Config:
        populate_by_name = True
