"""
Maintenance endpoints: data-quality sweep and catalog statistics.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_cleanup_service
from api.schemas.common import ErrorResponse
from api.schemas.maintenance import CleanupResponse, DatabaseStatsResponse
from movies_pipeline.cleanup import DataCleanupService

router = APIRouter()


@router.post("/maintenance/cleanup", response_model=CleanupResponse)
async def run_cleanup(service: DataCleanupService = Depends(get_cleanup_service)):
    """
    Run the data-quality sweep.

    Removes (film, year) duplicates keeping the lowest ID, then clamps
    scores into 0-100 and years into 1888-current year. A failed pass is
    reported in `errorMessage`; the other passes still run.
    """
    result = await service.run_cleanup()
    return CleanupResponse(**result.to_dict())


@router.get(
    "/maintenance/stats",
    response_model=DatabaseStatsResponse,
    responses={503: {"model": ErrorResponse}},
)
async def get_stats(service: DataCleanupService = Depends(get_cleanup_service)):
    """Catalog statistics: totals, average score, top genre and studio, oldest and newest film."""
    stats = await service.generate_stats()
    return DatabaseStatsResponse(**stats.to_dict())
