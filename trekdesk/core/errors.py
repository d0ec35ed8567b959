"""
Domain exceptions and their HTTP translation.

Routes and services raise these; the handlers registered in main.py turn them
into JSON error bodies of the form {"error": "..."}.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class TrekDeskError(Exception):
    """Base class for errors that map to a client-visible status code."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TrekDeskError):
    status_code = 404


class InvalidInputError(TrekDeskError):
    """Request input that passed schema parsing but is still unusable."""

    status_code = 400


class MediaValidationError(InvalidInputError):
    """File rejected before any network call (wrong type, too large, empty)."""


class MediaStoreError(TrekDeskError):
    """The object store refused or failed an upload."""

    status_code = 502


class WriteRejectedError(TrekDeskError):
    """The database refused a write (e.g. duplicate slug)."""

    status_code = 409


class StaleWriteError(TrekDeskError):
    """The row changed since the client read it."""

    status_code = 409


async def trekdesk_error_handler(request: Request, exc: TrekDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
