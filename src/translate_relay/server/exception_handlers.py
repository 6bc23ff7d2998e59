# src/translate_relay/server/exception_handlers.py

"""HTTP failures wrapped in the response envelope.

Anything that goes wrong before the event stream starts is answered as
``{code, message, data}``, the same shape as stream events:
  - HTTP errors: ``code`` is the status code as a string
  - Request validation: ``code`` is ``"422"``, ``data.errors`` lists fields
  - Anything else: ``500`` with ``code`` ``UNKNOWN_ERROR``
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from translate_relay.envelope import Envelope, ResponseCode

logger = logging.getLogger(__name__)


def _respond(status_code: int, envelope: Envelope, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=envelope.model_dump(), headers=headers
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    logger.warning("HTTP %s on %s: %s", exc.status_code, request.url.path, exc.detail)
    envelope = Envelope.error(str(exc.detail), code=str(exc.status_code))
    return _respond(exc.status_code, envelope, getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Only JSON-safe parts; pydantic's ctx may hold exception objects.
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    message = ", ".join(error["msg"] for error in errors) or "Invalid request"
    logger.warning("Rejected request to %s: %s", request.url.path, message)
    envelope = Envelope.error(message, code="422", data={"errors": errors})
    return _respond(422, envelope)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unhandled exceptions."""
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    envelope = Envelope.error(
        "Internal server error",
        code=ResponseCode.UNKNOWN_ERROR,
        data={"name": type(exc).__name__},
    )
    return _respond(500, envelope)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
