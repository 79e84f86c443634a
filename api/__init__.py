"""
Movies Pipeline REST API.

Thin HTTP layer over the pipeline: CSV upload and validation, the
data-quality sweep and catalog statistics.
"""

from api.main import app

__all__ = ["app"]
