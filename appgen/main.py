import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from appgen.api.generate import router as generate_router
from appgen.core.config import settings
from appgen.core.exceptions import (
    ApiError,
    api_error_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from appgen.core.logging import setup_logging
from appgen.core.rate_limiting import limiter, rate_limit_exceeded_handler
from appgen.db.init_db import init_db
from appgen.db.session import get_db
from appgen.services.cache import cache
from appgen.services.storage import storage

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="AI App Generator API", version=settings.app_version)

app.state.limiter = limiter

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origin.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"{request.method} {request.url.path}")
    return await call_next(request)


# in-memory sqlite starts empty on every boot
init_db()

app.include_router(generate_router)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str
    dbOk: bool
    storage: dict
    cache: dict


@app.get("/api/health", response_model=HealthResponse)
def health() -> HealthResponse:
    db_ok = False
    db: Session | None = None
    try:
        db = next(get_db())
        db.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        logger.warning("Health check: database unreachable", exc_info=True)
        db_ok = False
    finally:
        if db is not None:
            db.close()

    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.env,
        version=app.version,
        dbOk=db_ok,
        storage=storage.get_stats(),
        cache=cache.get_stats(),
    )


@app.get("/api")
def api_info():
    return {
        "message": "AI App Generator API",
        "version": app.version,
        "description": "Generate complete application scaffolds using AI and advanced prompt engineering",
        "endpoints": {
            "health": "GET /api/health - Check API health",
            "generate": "POST /api/generate - Create generation job",
            "jobStatus": "GET /api/jobs/:jobId/status - Get job status",
            "results": "GET /api/results/:jobId - Get generation results",
            "jobs": "GET /api/jobs - List user jobs",
            "examples": "GET /api/examples - Example prompts by app type",
            "analyze": "POST /api/analyze - Classify a prompt without generating",
        },
        "features": [
            "Simple prompt engineering",
            "App type detection",
            "Mock AI responses",
            "Real-time job tracking",
            "File generation",
        ],
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=3001)
