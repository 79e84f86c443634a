"""
CSV import schemas.

Field names follow the pipeline's external camelCase structure.
"""

from typing import List

from pydantic import BaseModel, Field


class ImportOutcomeResponse(BaseModel):
    """Result of reconciling one uploaded CSV file."""

    file_name: str = Field(..., alias="fileName")
    total_records: int = Field(..., alias="totalRecords", ge=0)
    created_count: int = Field(..., alias="createdCount", ge=0)
    updated_count: int = Field(..., alias="updatedCount", ge=0)
    unchanged_count: int = Field(0, alias="unchangedCount", ge=0)
    rejected_count: int = Field(0, alias="rejectedCount", ge=0)
    error_count: int = Field(..., alias="errorCount", ge=0)
    malformed_lines: int = Field(0, alias="malformedLines", ge=0)
    cancelled: bool = False
    success: bool
    errors: List[str] = []

    class Config:
        populate_by_name = True


class FileValidationResponse(BaseModel):
    """Result of checking a CSV file without ingesting it."""

    is_valid: bool = Field(..., alias="isValid")
    record_count: int = Field(..., alias="recordCount", ge=0)
    errors: List[str] = []

    class Config:
        populate_by_name = True
