"""
Maps every failure onto the response envelope.

Handlers raise the exceptions from errors.py; nothing leaves the API
unformatted, including FastAPI's own validation errors, unknown routes,
database failures and anything unexpected.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import SweetShopError, ValidationError, field_errors
from .schemas import envelope

log = logging.getLogger(__name__)


async def sweetshop_error_handler(request: Request, exc: SweetShopError) -> JSONResponse:
    errors = None
    if isinstance(exc, ValidationError) and exc.errors:
        errors = exc.errors
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(success=False, message=exc.message, errors=errors),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=envelope(success=False, errors=field_errors(exc.errors())),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(success=False, message=str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def database_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    log.error(
        "Database error",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(status_code=500, content=envelope(success=False, message=str(exc)))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "Unhandled exception",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500, content=envelope(success=False, message="Internal server error")
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SweetShopError, sweetshop_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
