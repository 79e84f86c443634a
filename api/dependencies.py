"""
Dependency injection for the API.

Provides dependencies for configuration, database access and the
pipeline services.
"""

from functools import lru_cache

from fastapi import Depends

from movies_pipeline.cleanup import DataCleanupService
from movies_pipeline.config import Config
from movies_pipeline.database import DatabaseManager
from movies_pipeline.processing import CsvProcessingService


@lru_cache()
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()


@lru_cache()
def get_db() -> DatabaseManager:
    """Get cached DatabaseManager instance."""
    config = get_config()
    return DatabaseManager(config)


def get_processing_service(
    db: DatabaseManager = Depends(get_db),
    config: Config = Depends(get_config),
) -> CsvProcessingService:
    return CsvProcessingService(db, config)


def get_cleanup_service(
    db: DatabaseManager = Depends(get_db),
    config: Config = Depends(get_config),
) -> DataCleanupService:
    return DataCleanupService(db, config)
