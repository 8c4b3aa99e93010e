import logging
from typing import Any

from sqlalchemy.orm import Session

from appgen.db.session import SessionLocal
from appgen.schemas import GenerationInput
from appgen.services import generation
from appgen.services.jobs import complete_job, fail_job
from appgen.services.storage import storage
from appgen.worker.celery_app import celery_app

logger = logging.getLogger(__name__)


def result_key_for(job_id: str) -> str:
    return f"projects/{job_id}/project.json"


def run_generation_job(job_id: str, request_payload: dict[str, Any]) -> dict:
    """
    Run one generation job to a terminal state.
    Failures are recorded on the job and never re-raised, even when recording
    them fails too: nothing retries a job, so raising would only lose the error.
    """
    db: Session = SessionLocal()
    try:
        request = GenerationInput.model_validate(request_payload)
        project = generation.generation_service.process_generation_request(db, job_id, request)

        key = result_key_for(job_id)
        storage.upload_file(key, project.model_dump_json(by_alias=True))
        complete_job(db, job_id, key)
        return {"ok": True, "job_id": job_id, "result_key": key}
    except Exception as e:
        logger.exception(f"Failed to process job {job_id}")
        try:
            db.rollback()
            fail_job(db, job_id, str(e) or e.__class__.__name__)
        except Exception:
            logger.exception(f"Could not record failure for job {job_id}")
        return {"ok": False, "job_id": job_id, "error": str(e)}
    finally:
        db.close()


@celery_app.task(name="generation.generate_project")
def generate_project(job_id: str, request_payload: dict) -> dict:
    return run_generation_job(job_id, request_payload)
