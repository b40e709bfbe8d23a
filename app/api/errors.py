"""JSON error responses. Every failure reaches the client as {"error": "..."}."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.errors import GenerationError, JobValidationError, PdfShrinkError

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = err.get("loc", ["?"])[-1]
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(JobValidationError)
    async def handle_job_validation(request: Request, exc: JobValidationError):
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return _error(400, _describe_validation(exc))

    @app.exception_handler(GenerationError)
    async def handle_generation(request: Request, exc: GenerationError):
        return _error(500, str(exc))

    @app.exception_handler(PdfShrinkError)
    async def handle_shrink_error(request: Request, exc: PdfShrinkError):
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return _error(500, str(exc))

    @app.exception_handler(HTTPException)
    async def handle_http(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, "Server error")
