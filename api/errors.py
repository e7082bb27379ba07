"""Translation of domain failures into ``{"error": ...}`` HTTP responses"""
import logging
from contextlib import contextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.exceptions import DomainError, NotFoundError, InvalidStateError, ValidationError

logger = logging.getLogger(__name__)


@contextmanager
def failure_message(message: str):
    """Collapse unexpected errors inside the block into a 500 carrying ``message``.

    Domain errors and HTTP errors pass through untouched. Anything else,
    model validation errors included, is logged with its traceback and never
    shown to the caller.
    """
    try:
        yield
    except (DomainError, HTTPException):
        raise
    except Exception:
        logger.exception(message)
        raise HTTPException(status_code=500, detail=message)


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, exc.message)

    @app.exception_handler(InvalidStateError)
    async def invalid_state_handler(request: Request, exc: InvalidStateError):
        return _error(400, exc.message)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return _error(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = first.get("msg", "Invalid request")
        return _error(400, f"{location}: {detail}" if location else detail)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))
