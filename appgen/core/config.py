import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str) -> str:
    v = os.getenv(name)
    return v if v and v.strip() else default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    env: str = _env("ENV", "development")
    app_version: str = _env("APP_VERSION", "1.0.0")
    log_level: str = _env("LOG_LEVEL", "INFO")

    # shared-cache in-memory sqlite by default; point at postgres etc. for persistence
    database_url: str = _env(
        "DATABASE_URL", "sqlite+pysqlite:///file:appgen?mode=memory&cache=shared&uri=true"
    )

    cors_origin: str = _env("CORS_ORIGIN", "http://localhost:3000")

    # OpenAI
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_model: str = _env("OPENAI_MODEL", "gpt-4o")
    openai_max_tokens: int = int(_env("OPENAI_MAX_TOKENS", "4000"))
    openai_temperature: float = float(_env("OPENAI_TEMPERATURE", "0.7"))
    openai_timeout_sec: float = float(_env("OPENAI_TIMEOUT_SEC", "30"))
    openai_attempts: int = int(_env("OPENAI_ATTEMPTS", "3"))
    openai_retry_delay_sec: float = float(_env("OPENAI_RETRY_DELAY_SEC", "1.0"))

    # Mock generator
    mock_delay_min_sec: float = float(_env("MOCK_AI_DELAY_MIN_SEC", "2"))
    mock_delay_max_sec: float = float(_env("MOCK_AI_DELAY_MAX_SEC", "5"))

    # Cache: memory | redis
    cache_backend: str = _env("CACHE_BACKEND", "memory")
    cache_ttl_sec: int = int(_env("CACHE_TTL_SEC", "3600"))
    redis_url: str = _env("REDIS_URL", "redis://localhost:6379/0")

    # Storage: memory | s3
    storage_backend: str = _env("STORAGE_BACKEND", "memory")
    s3_bucket: str = _env("S3_BUCKET", "ai-app-generator")
    aws_region: str = _env("AWS_REGION", "us-east-1")

    # Job runner: background | celery
    job_runner: str = _env("JOB_RUNNER", "background")
    celery_broker_url: str = _env("CELERY_BROKER_URL", _env("REDIS_URL", "redis://localhost:6379/0"))
    celery_result_backend: str = _env("CELERY_RESULT_BACKEND", _env("CELERY_BROKER_URL", _env("REDIS_URL", "redis://localhost:6379/0")))

    # Rate limiting (slowapi)
    rate_limit_enabled: bool = _env_bool("RATE_LIMIT_ENABLED", True)
    rate_limit_storage_uri: str = _env("RATE_LIMIT_STORAGE_URI", "memory://")
    generate_rate_limit: str = _env("GENERATE_RATE_LIMIT", "10/minute")
    api_rate_limit: str = _env("API_RATE_LIMIT", "100/minute")

    # No auth yet: every request acts as the demo user
    demo_user_id: str = _env("DEMO_USER_ID", "user_demo")
    jobs_list_limit: int = int(_env("JOBS_LIST_LIMIT", "50"))


settings = Settings()


def is_test_env() -> bool:
    # read at call time, not from the frozen settings
    return os.getenv("ENV", settings.env) == "test"
