# fridaygt/core/errors.py
"""
Global exception handlers.

Every error leaves the API as:

    {"error": str, "errors"?: {field: message}, "details"?: str}

with the HTTP status carrying the primary signal:

  400 validation / bad request      403 forbidden       409 conflict
  401 missing or invalid session    404 not found       429 rate limited
  500 anything unexpected (message suppressed outside development)
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fridaygt.core.config import get_settings

logger = logging.getLogger(__name__)

# Postgres SQLSTATE codes
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"

_VALUE_ERROR_PREFIX = "Value error, "


def _field_name(loc: tuple | list) -> str:
    """('body', 'gamertag') -> 'gamertag'; ('query', 'limit') -> 'limit'."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    if msg.startswith(_VALUE_ERROR_PREFIX):
        return msg[len(_VALUE_ERROR_PREFIX):]
    return msg


def validation_errors_to_fields(errors: list[dict]) -> dict[str, str]:
    """
    Flatten pydantic errors into {field: message}; first message per field wins.
    """
    fields: dict[str, str] = {}
    for err in errors:
        name = _field_name(err.get("loc", ()))
        fields.setdefault(name, _clean_message(str(err.get("msg", "Invalid value"))))
    return fields


def classify_integrity_error(exc: IntegrityError) -> int:
    """Map a DB constraint violation to an HTTP status."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None)
    text = str(orig or exc)

    if code == PG_UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
        return status.HTTP_409_CONFLICT
    if code == PG_FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        body = {"error": str(detail.get("message", "Request failed"))}
        body.update({k: v for k, v in detail.items() if k != "message"})
    else:
        body = {"error": str(detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = validation_errors_to_fields(exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": ". ".join(fields.values()) or "Invalid request",
            "errors": fields,
        },
    )


async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    code = classify_integrity_error(exc)
    if code == status.HTTP_409_CONFLICT:
        message = "Resource already exists"
    elif code == status.HTTP_400_BAD_REQUEST:
        message = "Referenced resource does not exist"
    else:
        logger.error("Unhandled integrity error on %s %s", request.method, request.url.path, exc_info=exc)
        message = "Internal server error"

    body: dict[str, str] = {"error": message}
    if get_settings().is_development:
        body["details"] = str(exc.orig)
    return JSONResponse(status_code=code, content=body)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    body: dict[str, str] = {"error": "Internal server error"}
    if get_settings().is_development:
        body["details"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
