from typing import Any, List, Union

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from expense_tracker.services.outcomes import NotFound, StorageError, ValidationFailure

logger = logging.getLogger("expense_tracker.errors")

_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def _validation_body(errors: List[dict]) -> dict:
    return {"error": "validation_error", "detail": errors}


def not_found_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": "not_found",
                "detail": f"No route for {request.method} {request.url.path}",
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    details = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in _LOCATION_PREFIXES]
        details.append({"field": ".".join(loc) or "general", "message": err.get("msg", "")})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=_validation_body(details)
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )


def outcome_error_response(
    outcome: Union[ValidationFailure, NotFound, StorageError, Any],
) -> JSONResponse:
    """Map a non-Ok service outcome onto an HTTP error response."""
    if isinstance(outcome, ValidationFailure):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_validation_body([e.model_dump() for e in outcome.errors]),
        )
    if isinstance(outcome, NotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "not_found", "detail": outcome.message},
        )
    # StorageError (and anything unexpected) stays opaque to the client.
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_error", "detail": "An unexpected error occurred."},
    )
