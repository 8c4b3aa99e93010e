from celery import Celery

from appgen.core.config import is_test_env, settings

# IMPORTANT: the variable name MUST be `celery_app`
celery_app = Celery(
    "appgen_worker",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.autodiscover_tasks(["appgen.worker"])

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_track_started=True,
    enable_utc=True,
    timezone="UTC",
    # ENV=test runs tasks inline so the API tests need no broker
    task_always_eager=is_test_env(),
)

__all__ = ["celery_app"]
