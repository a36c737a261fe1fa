"""Error handling utilities and custom exceptions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger


class ReplyError(Exception):
    """Base class for errors raised while producing a reply."""

    pass


class InputValidationError(ReplyError):
    """Raised when the user's request is missing fields or is oversized.

    ``fields`` names the offending request fields; ``details`` carries
    extra context that is echoed back to the client.
    """

    def __init__(
        self,
        message: str,
        fields: list[str],
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.fields = fields
        self.details = details or {}


class ProviderError(ReplyError):
    """Raised when an upstream provider call does not yield usable text."""

    def __init__(self, provider: str, message: str, http_status: Optional[int] = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.http_status = http_status


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def input_validation_exception_handler(
    request: Request, exc: InputValidationError
) -> JSONResponse:
    """Convert an InputValidationError into an HTTP 400 response."""
    logger.warning("Rejected request to {}: {} {}", request.url.path, exc.message, exc.fields)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": exc.message,
            "fields": exc.fields,
            **exc.details,
            "timestamp": _timestamp(),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert any uncaught exception into an HTTP 500 response."""
    logger.opt(exception=exc).error("Unhandled error on {}", request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "timestamp": _timestamp(),
        },
    )
