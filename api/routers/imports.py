"""
CSV import endpoints.

Uploads are guarded (extension and size), then reconciled into the movie
store. Row-level problems are returned in the outcome; file-level problems
become 400 responses.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_processing_service
from api.schemas.common import ErrorResponse
from api.schemas.imports import FileValidationResponse, ImportOutcomeResponse
from movies_pipeline.processing import CsvProcessingService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/imports/csv",
    response_model=ImportOutcomeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def import_csv(
    file: UploadFile = File(..., description="Movie CSV file"),
    service: CsvProcessingService = Depends(get_processing_service),
):
    """
    Reconcile an uploaded movie CSV into the catalog.

    Each row is created, updated or left unchanged by its ID. Invalid rows
    are reported in `errors` without stopping the import.
    """
    # Refuse by name and declared size before buffering the body
    service.check_upload(file.filename or "", file.size)
    data = await file.read()
    outcome = await service.process_upload(file.filename or "", data)
    logger.info(f"Imported {file.filename}: success={outcome.success}")
    return ImportOutcomeResponse(**outcome.to_dict())


@router.post(
    "/imports/validate",
    response_model=FileValidationResponse,
)
async def validate_csv(
    file: UploadFile = File(..., description="Movie CSV file"),
    service: CsvProcessingService = Depends(get_processing_service),
):
    """Check an uploaded CSV's header and count its records without importing."""
    data = await file.read()
    result = service.validate_file(data, file_name=file.filename)
    return FileValidationResponse(**result.to_dict())
