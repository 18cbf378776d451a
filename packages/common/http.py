"""FastAPI exception handlers translating the service error taxonomy.

Route handlers let `ConlangError` subclasses propagate; these handlers turn
them into terminal JSON responses so no request is left without an answer.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import AuthError, DuplicateNameError, NotFoundError, RemoteError, ValidationError
from .logging import get_request_id

log = logging.getLogger(__name__)


async def _validation(_: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"error": "validation", "errors": exc.errors})


async def _duplicate(_: Request, exc: DuplicateNameError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": "duplicate_name", "detail": exc.message})


async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "not_found", "detail": exc.message})


async def _auth(_: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "auth", "code": exc.code, "detail": exc.message})


async def _remote(_: Request, exc: RemoteError) -> JSONResponse:
    log.error("remote failure: %s", exc.message, extra=exc.context())
    return JSONResponse(
        status_code=502,
        content={"error": "remote", "detail": exc.message, "request_id": get_request_id()},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the taxonomy handlers on `app`."""
    app.add_exception_handler(ValidationError, _validation)
    app.add_exception_handler(DuplicateNameError, _duplicate)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(AuthError, _auth)
    app.add_exception_handler(RemoteError, _remote)
