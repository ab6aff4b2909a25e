"""
Error Response Handlers

Every error leaves the API as a flat JSON object:

    {"error": "Batch is full", "code": "BATCH_FULL", "message": "..."}

Routers raise HTTPException with a dict detail carrying those keys; the
handler below lifts the dict to the top level instead of nesting it under
FastAPI's "detail" envelope. Request validation failures are reported as
400 with the offending fields listed.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "Validation error"


async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Emit dict details at the top level and wrap string details as {"error": ...}."""
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = {"error": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = []
    for err in exc.errors():
        # Drop the leading "body"/"query" segment
        location = [str(part) for part in err.get("loc", ())[1:]]
        fields.append({"field": ".".join(location), "message": err.get("msg", "")})

    logger.debug(f"Request validation failed: {fields}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": VALIDATION_ERROR,
            "code": "VALIDATION_ERROR",
            "message": "Request data is invalid",
            "details": fields,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the flat error body handlers on the application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
