import threading

import pytest
from fastapi import BackgroundTasks

from appgen.db.session import SessionLocal
from appgen.schemas import GenerationInput, GenerationOptions
from appgen.services.job_dispatch import dispatch_generation
from appgen.services.jobs import create_job, get_job
from appgen.services.storage import storage
from appgen.worker import tasks as worker_tasks
from appgen.worker.celery_app import celery_app
from appgen.worker.tasks import result_key_for, run_generation_job


def _pending_job(prompt: str) -> str:
    db = SessionLocal()
    try:
        return create_job(db, "user_demo", prompt).id
    finally:
        db.close()


def _job(job_id: str):
    db = SessionLocal()
    try:
        return get_job(db, job_id)
    finally:
        db.close()


def test_celery_is_eager_in_test_env():
    assert celery_app.conf.task_always_eager is True


def test_celery_runner_completes_job():
    job_id = _pending_job("Build an inventory app for a bike shop")
    request = GenerationInput(
        prompt="Build an inventory app for a bike shop",
        options=GenerationOptions(include_tests=True),
    )

    result = dispatch_generation(job_id, request, runner="celery")
    assert result.get()["ok"] is True

    job = _job(job_id)
    assert job.status == "completed"
    assert job.progress == 100
    assert job.result_key == result_key_for(job_id)
    assert job.completed_at is not None
    assert "frontend/src/App.test.tsx" in storage.download_file(job.result_key)


def test_background_runner_queues_task():
    job_id = _pending_job("Build a reading list app")
    tasks = BackgroundTasks()

    dispatch_generation(job_id, GenerationInput(prompt="Build a reading list app"), tasks, runner="background")

    assert len(tasks.tasks) == 1
    assert tasks.tasks[0].func is run_generation_job
    assert tasks.tasks[0].args == (job_id, {"prompt": "Build a reading list app"})
    assert _job(job_id).status == "pending"


def test_background_runner_needs_tasks():
    with pytest.raises(ValueError):
        dispatch_generation("job_1_a", GenerationInput(prompt="Build a todo app"), None, runner="background")


def test_unknown_runner_rejected():
    with pytest.raises(ValueError):
        dispatch_generation("job_1_a", GenerationInput(prompt="Build a todo app"), BackgroundTasks(), runner="threads")


def test_run_generation_job_records_failure(monkeypatch):
    job_id = _pending_job("Build a budget tracker app")

    def broken_upload(key, content):
        raise OSError("bucket unavailable")

    monkeypatch.setattr(storage, "upload_file", broken_upload)

    result = run_generation_job(job_id, {"prompt": "Build a budget tracker app"})
    assert result == {"ok": False, "job_id": job_id, "error": "bucket unavailable"}

    job = _job(job_id)
    assert job.status == "failed"
    assert job.error_message == "bucket unavailable"
    assert job.completed_at is None


def test_failure_recording_errors_are_swallowed(monkeypatch):
    job_id = _pending_job("Build a budget tracker app")

    def broken_upload(key, content):
        raise OSError("bucket unavailable")

    def broken_fail_job(db, job_id, error):
        raise RuntimeError("database is gone")

    monkeypatch.setattr(storage, "upload_file", broken_upload)
    monkeypatch.setattr(worker_tasks, "fail_job", broken_fail_job)

    result = run_generation_job(job_id, {"prompt": "Build a budget tracker app"})
    assert result["ok"] is False
    assert result["error"] == "bucket unavailable"


def test_concurrent_jobs_all_complete():
    job_ids = [_pending_job(f"Build a todo app for team {i}") for i in range(16)]
    results = {}
    done = threading.Event()
    read_errors = []

    def work(job_id):
        results[job_id] = run_generation_job(job_id, {"prompt": "Build me a todo app with tasks"})

    def poll():
        # status reads run alongside the writers, as the polling endpoint does
        while not done.is_set():
            try:
                for job_id in job_ids:
                    _job(job_id)
            except Exception as e:
                read_errors.append(e)
                return

    pollers = [threading.Thread(target=poll) for _ in range(2)]
    workers = [threading.Thread(target=work, args=(job_id,)) for job_id in job_ids]
    for t in pollers + workers:
        t.start()
    for t in workers:
        t.join()
    done.set()
    for t in pollers:
        t.join()

    assert read_errors == []
    assert [results[j]["ok"] for j in job_ids] == [True] * 16
    for job_id in job_ids:
        job = _job(job_id)
        assert (job.status, job.progress, job.error_message) == ("completed", 100, None)
