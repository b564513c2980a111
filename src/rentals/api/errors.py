"""Map rentals and Protean exceptions onto HTTP responses."""

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from rentals.exceptions import RentalsError

logger = structlog.get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register Protean's handlers, then the rentals-specific ones on top.

    Every error body carries ``error`` (message or field errors) and a
    stable ``code``.
    """
    register_exception_handlers(app)

    @app.exception_handler(RentalsError)
    async def _rentals_error_handler(request: Request, exc: RentalsError) -> Response:
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message, **exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "code": type(exc).__name__},
        )

    @app.exception_handler(ValidationError)
    async def _validation_error_handler(request: Request, exc: ValidationError) -> Response:
        return JSONResponse(
            status_code=400,
            content={"error": exc.messages, "code": "ValidationError"},
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
            errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
        return JSONResponse(
            status_code=400,
            content={"error": errors, "code": "ValidationError"},
        )

    @app.exception_handler(ObjectNotFoundError)
    async def _not_found_handler(request: Request, exc: ObjectNotFoundError) -> Response:
        return JSONResponse(
            status_code=404,
            content={"error": str(exc), "code": "NotFoundError"},
        )
