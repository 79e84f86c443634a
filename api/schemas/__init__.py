"""Pydantic schemas for API request and response validation."""

from api.schemas.common import ErrorResponse, HealthResponse
from api.schemas.imports import FileValidationResponse, ImportOutcomeResponse
from api.schemas.maintenance import CleanupResponse, DatabaseStatsResponse, MovieSummary

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "FileValidationResponse",
    "ImportOutcomeResponse",
    "CleanupResponse",
    "DatabaseStatsResponse",
    "MovieSummary",
]
