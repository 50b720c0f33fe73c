"""
Global Error Handling

This module defines the domain exceptions raised by the service layer and
the application-wide exception handlers that translate them into HTTP
responses.

Every error body has the shape ``{"error": <code>, "detail": <message>}``.
Services raise the exceptions below and never touch HTTP; the handlers
decide the status code.
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("arcaide.errors")


# ---------------------------------------------------------------------
# Domain Exceptions
# ---------------------------------------------------------------------

class EntityNotFoundError(LookupError):
    """Raised when a campaign, arc, thing or thing type does not exist in scope."""

    def __init__(self, kind: str, key: Any) -> None:
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key


class SlugConflictError(ValueError):
    """Raised when a derived slug is already taken inside the same scope."""

    def __init__(self, kind: str, slug: str) -> None:
        super().__init__(f"{kind} slug already in use: {slug}")
        self.kind = kind
        self.slug = slug


class InvalidDocumentError(ValueError):
    """Raised when a rich-text value is not a valid document tree."""


class InvalidHierarchyError(ValueError):
    """Raised when an arc's new parent would create a cycle."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

async def not_found_handler(
    request: Request,
    exc: EntityNotFoundError,
) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "not_found", "detail": f"{exc.kind.capitalize()} not found"},
    )


async def conflict_handler(
    request: Request,
    exc: SlugConflictError,
) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": "slug_conflict", "detail": str(exc)},
    )


async def invalid_document_handler(
    request: Request,
    exc: InvalidDocumentError,
) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "invalid_document", "detail": str(exc)},
    )


async def invalid_hierarchy_handler(
    request: Request,
    exc: InvalidHierarchyError,
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_hierarchy", "detail": str(exc)},
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Last-resort handler, registered for ``Exception``.

    Store and query failures (missing index, broken connection) land here.
    The traceback goes to the ``arcaide.errors`` logger; the client only
    gets a fixed 500 body.
    """
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    payload: Dict[str, Any] = {
        "error": "internal_server_error",
        "detail": "Internal server error",
    }

    return JSONResponse(
        status_code=500,
        content=payload,
    )
