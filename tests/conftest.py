import os

# must be set before anything from appgen is imported
os.environ["ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["MOCK_AI_DELAY_MIN_SEC"] = "0"
os.environ["MOCK_AI_DELAY_MAX_SEC"] = "0"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///file:appgen_test?mode=memory&cache=shared&uri=true"
os.environ["JOB_RUNNER"] = "background"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["STORAGE_BACKEND"] = "memory"

import pytest  # noqa: E402

from appgen.core.rate_limiting import limiter  # noqa: E402
from appgen.services.cache import cache  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def rate_limited():
    limiter.enabled = True
    limiter.reset()
    try:
        yield limiter
    finally:
        limiter.reset()
        limiter.enabled = False
