import logging
import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from appgen.models.job import Job
from appgen.services.storage import storage

logger = logging.getLogger(__name__)

JOB_ID_RE = re.compile(r"^job_\d+_[a-z0-9]+$", re.IGNORECASE)

TERMINAL_STATUSES = ("completed", "failed")


def new_job_id() -> str:
    # job_<epoch ms>_<9 lowercase alnum>
    return f"job_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def is_valid_job_id(job_id: str | None) -> bool:
    return bool(job_id) and JOB_ID_RE.match(job_id) is not None


def create_job(
    db: Session,
    user_id: str,
    prompt: str,
    app_type: str = "other",
    complexity: str = "moderate",
) -> Job:
    job = Job(
        id=new_job_id(),
        user_id=user_id,
        prompt=prompt,
        app_type=app_type or "other",
        complexity=complexity or "moderate",
        status="pending",
        progress=0,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info(f"Created job {job.id} for user {user_id}")
    return job


def get_job(db: Session, job_id: str) -> Job | None:
    return db.query(Job).filter(Job.id == job_id).first()


def update_job(db: Session, job_id: str, **fields: Any) -> Job | None:
    """
    Overwrite fields on a job in place.
    - Returns None for an unknown id
    - Stamps completed_at on the first transition to "completed"
    """
    job = get_job(db, job_id)
    if job is None:
        return None

    for k, v in fields.items():
        setattr(job, k, v)
    if fields.get("status") == "completed" and job.completed_at is None:
        job.completed_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(job)
    logger.info(f"Updated job {job_id}: {fields.get('status') or 'progress'}")
    return job


def update_job_progress(db: Session, job_id: str, progress: int, status: str | None = None) -> Job | None:
    fields: dict[str, Any] = {"progress": max(0, min(100, int(progress)))}
    if status:
        fields["status"] = status
    job = update_job(db, job_id, **fields)
    if job:
        logger.info(f"Job {job_id} progress: {job.progress}%")
    return job


def complete_job(db: Session, job_id: str, result_key: str) -> Job | None:
    job = update_job(db, job_id, status="completed", progress=100, result_key=result_key)
    if job:
        logger.info(f"Job {job_id} completed with result: {result_key}")
    return job


def fail_job(db: Session, job_id: str, error: str) -> Job | None:
    job = update_job(db, job_id, status="failed", error_message=error)
    if job:
        logger.warning(f"Job {job_id} failed: {error}")
    return job


def get_user_jobs(db: Session, user_id: str, limit: int | None = None) -> list[Job]:
    query = (
        db.query(Job)
        .filter(Job.user_id == user_id)
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_user_jobs(db: Session, user_id: str) -> int:
    return db.query(Job).filter(Job.user_id == user_id).count()


def get_job_result(db: Session, job_id: str) -> str | None:
    job = get_job(db, job_id)
    if job is None or not job.result_key:
        return None
    return storage.download_file(job.result_key)


def _iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        # sqlite hands back naive datetimes
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def job_status_dict(job: Job) -> dict[str, Any]:
    return {
        "jobId": job.id,
        "status": job.status,
        "progress": job.progress,
        "createdAt": _iso(job.created_at),
        "completedAt": _iso(job.completed_at),
        "error": job.error_message,
    }


def job_to_dict(job: Job) -> dict[str, Any]:
    return {
        "id": job.id,
        "userId": job.user_id,
        "prompt": job.prompt,
        "appType": job.app_type,
        "complexity": job.complexity,
        "status": job.status,
        "progress": job.progress,
        "resultKey": job.result_key,
        "errorMessage": job.error_message,
        "createdAt": _iso(job.created_at),
        "completedAt": _iso(job.completed_at),
    }
