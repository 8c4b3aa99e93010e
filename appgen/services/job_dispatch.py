from __future__ import annotations

import logging
from typing import Any

from fastapi import BackgroundTasks

from appgen.core.config import settings
from appgen.schemas import GenerationInput
from appgen.worker import tasks as worker_tasks

logger = logging.getLogger(__name__)

RUNNERS = ("background", "celery")


def dispatch_generation(
    job_id: str,
    request: GenerationInput,
    background_tasks: BackgroundTasks | None = None,
    runner: str = settings.job_runner,
) -> Any:
    """
    Schedule a generation job.
    - "background": FastAPI BackgroundTasks, runs in this process after the response is sent
    - "celery": Celery task (eager under ENV=test)
    Nothing here waits for the job; callers poll its status.
    """
    payload = request.model_dump(mode="json", exclude_none=True)

    if runner == "celery":
        logger.info(f"Dispatching job {job_id} to celery")
        # use task.apply_async (not celery_app.send_task) so eager mode works
        return worker_tasks.generate_project.apply_async(
            kwargs={"job_id": job_id, "request_payload": payload}
        )

    if runner != "background":
        raise ValueError(f"Unknown job runner: {runner}")
    if background_tasks is None:
        raise ValueError("background runner needs a BackgroundTasks instance")

    logger.info(f"Starting background generation for job {job_id}")
    background_tasks.add_task(worker_tasks.run_generation_job, job_id, payload)
    return None
