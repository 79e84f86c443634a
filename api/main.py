"""
FastAPI application for the Movies Pipeline API.

HTTP access to CSV import, file validation and catalog maintenance.
Setup and export are handled via CLI.
"""

import os
import time
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.exceptions import (
    APIError,
    api_error_handler,
    generic_exception_handler,
    pipeline_error_handler,
)
from api.logging_config import (
    generate_request_id,
    log_request_completed,
    logger,
    set_request_id,
)
from api.routers import imports, maintenance
from api.schemas.common import HealthResponse
from movies_pipeline.config import load_env_file, parse_origins
from movies_pipeline.errors import PipelineError

app = FastAPI(
    title="Movies Pipeline API",
    description="CSV import and data-quality maintenance for the movie catalog",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# Register exception handlers
app.add_exception_handler(APIError, api_error_handler)
app.add_exception_handler(PipelineError, pipeline_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)


def cors_origins() -> List[str]:
    """Origins from ALLOWED_ORIGINS; any origin when it is unset."""
    load_env_file()
    return parse_origins(os.getenv("ALLOWED_ORIGINS", "")) or ["*"]


# Middleware is fixed before startup, so origins are read at import time
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Log all HTTP requests with timing and response status."""
    request_id = generate_request_id()
    set_request_id(request_id)

    skip_paths = {"/health", "/", "/api/docs", "/api/redoc", "/api/openapi.json"}
    if request.url.path in skip_paths:
        return await call_next(request)

    start_time = time.time()
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"Request started: {request.method} {request.url.path} from {client_ip}")

    try:
        response = await call_next(request)
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Request failed: {request.method} {request.url.path} "
            f"duration={duration_ms:.2f}ms error={e!r}"
        )
        raise

    log_request_completed(
        request.method,
        request.url.path,
        response.status_code,
        (time.time() - start_time) * 1000,
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(imports.router, prefix="/api/v1", tags=["Import"])
app.include_router(maintenance.router, prefix="/api/v1", tags=["Maintenance"])


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint points to docs."""
    return {
        "message": "Movies Pipeline API",
        "docs": "/api/docs",
        "redoc": "/api/redoc",
    }


@app.get("/health", response_model=HealthResponse, include_in_schema=False)
async def health():
    """Simple health check endpoint."""
    return HealthResponse()


def run() -> None:
    """Serve the API with uvicorn on API_HOST:API_PORT."""
    import uvicorn

    from api.dependencies import get_config

    config = get_config()
    uvicorn.run("api.main:app", host=config.api_host, port=config.api_port, reload=config.api_debug)


if __name__ == "__main__":
    run()
