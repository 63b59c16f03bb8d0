"""
Exception handlers mapping domain errors to the API error body:

    {"status": "NOT_FOUND", "reason": "...", "message": "...", "timestamp": "yyyy-MM-dd HH:mm:ss"}
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core import clock
from app.core.exceptions import DomainError, ValidationFailedError
from app.core.logging import get_logger

logger = get_logger(__name__)


def error_body(status_name: str, reason: str, message: str) -> dict:
    return {
        "status": status_name,
        "reason": reason,
        "message": message,
        "timestamp": clock.format_datetime(clock.now()),
    }


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info(
        "domain_error",
        status=exc.status_name,
        error=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_name, exc.reason, exc.message),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _describe_validation_errors(exc)
    logger.info("request_validation_failed", error=message, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            ValidationFailedError.status_name,
            ValidationFailedError.reason,
            message,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
