import logging
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from appgen.core.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error surfaced to API clients as ``{"error", "code", "details"}``."""

    def __init__(
        self,
        status_code: int,
        error: str,
        code: str,
        details: Any = None,
    ):
        self.status_code = status_code
        self.error = error
        self.code = code
        self.details = details
        super().__init__(error)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class JobNotFoundError(ApiError):
    def __init__(self):
        super().__init__(status.HTTP_404_NOT_FOUND, "Job not found", "JOB_NOT_FOUND")


class InvalidJobIdError(ApiError):
    def __init__(self):
        super().__init__(status.HTTP_400_BAD_REQUEST, "Invalid job ID format", "INVALID_JOB_ID")


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.code}: {exc.details}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _error_field(loc: tuple | list) -> str:
    # drop the "body"/"path"/"query" prefix FastAPI adds
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "path", "query"):
        parts = parts[1:]
    return ".".join(parts)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": _error_field(err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "code": "VALIDATION_ERROR", "details": details},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Route not found", "code": "NOT_FOUND"},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "code": "HTTP_ERROR"},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error: {exc}")
    message = str(exc) if settings.env == "development" else "Something went wrong!"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": "INTERNAL_ERROR", "message": message},
    )
