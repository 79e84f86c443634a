"""
Custom exceptions and error handlers for the API.

Pipeline errors are translated here: a rejected file is the client's
problem (400), an unexpected failure is ours (500), and anything else
from the pipeline means the store could not do its job (503).
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from api.logging_config import logger
from movies_pipeline.errors import CsvFileError, ErrorKind, PipelineError


class APIError(HTTPException):
    """Base API error with structured error response."""

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error = error
        self.message = message
        self.details = details
        super().__init__(status_code=status_code, detail=message)


class FileRejectedError(APIError):
    """The uploaded file was rejected before any row was processed."""

    def __init__(self, exc: CsvFileError):
        details = {"missing": exc.context["missing"]} if exc.context.get("missing") else None
        super().__init__(
            status_code=400,
            error=exc.kind.value,
            message=exc.message,
            details=details,
        )


class StoreUnavailableError(APIError):
    """The movie store failed outside of a single row."""

    def __init__(self, exc: PipelineError):
        super().__init__(
            status_code=503,
            error=exc.kind.value,
            message=exc.message,
        )


class PipelineFailedError(APIError):
    """The pipeline failed for a reason outside the store and the file."""

    def __init__(self, exc: PipelineError):
        super().__init__(
            status_code=500,
            error=exc.kind.value,
            message=exc.message,
        )


def to_api_error(exc: PipelineError) -> APIError:
    if isinstance(exc, CsvFileError):
        return FileRejectedError(exc)
    if exc.kind == ErrorKind.UNEXPECTED:
        return PipelineFailedError(exc)
    return StoreUnavailableError(exc)


def _error_response(exc: APIError) -> JSONResponse:
    content = {
        "error": exc.error,
        "message": exc.message,
    }
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions and return structured JSON response."""
    return _error_response(exc)


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Handle errors raised by the pipeline services."""
    api_error = to_api_error(exc)
    logger.warning(f"{request.method} {request.url.path} failed: {exc.kind.value}")
    return _error_response(api_error)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
        },
    )
