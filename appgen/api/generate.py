import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from appgen.core.config import settings
from appgen.core.exceptions import ApiError, InvalidJobIdError, JobNotFoundError
from appgen.core.rate_limiting import api_limit, generate_limit
from appgen.db.session import get_db
from appgen.schemas import AnalyzeRequest, GeneratedProject, GenerateRequest, GenerateResponse, GenerationInput
from appgen.services import generation
from appgen.services.job_dispatch import dispatch_generation
from appgen.services.jobs import (
    count_user_jobs,
    create_job,
    get_job,
    get_job_result,
    get_user_jobs,
    is_valid_job_id,
    job_status_dict,
    job_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])


def valid_job_id(job_id: str = Path(...)) -> str:
    if not is_valid_job_id(job_id):
        logger.info(f"Job ID validation failed for: {job_id!r}")
        raise InvalidJobIdError()
    return job_id


def current_user_id() -> str:
    # no auth yet
    return settings.demo_user_id


@router.post("/generate", status_code=status.HTTP_202_ACCEPTED)
@generate_limit
@api_limit
def create_generation_job(
    request: Request,
    body: GenerateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: str = Depends(current_user_id),
) -> JSONResponse:
    try:
        service = generation.generation_service
        validation = service.validate_and_optimize_prompt(body.prompt)
        if not validation.is_valid:
            raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid prompt", "INVALID_PROMPT", details=validation.issues)

        job_input = GenerationInput(
            prompt=validation.optimized_prompt or body.prompt,
            tech_stack=body.tech_stack,
            options=body.options,
        )

        job = create_job(db, user_id, job_input.prompt, "other", "moderate")
        dispatch_generation(job.id, job_input, background_tasks)

        resp = GenerateResponse(job_id=job.id, status="pending", message="Generation job created successfully")
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=resp.model_dump(by_alias=True))
    except ApiError:
        raise
    except Exception as e:
        logger.exception("Error creating generation job")
        raise ApiError(500, "Failed to create generation job", "GENERATION_ERROR", details=str(e))


@router.get("/jobs/{job_id}/status")
def get_job_status(job_id: str = Depends(valid_job_id), db: Session = Depends(get_db)):
    try:
        job = get_job(db, job_id)
        if job is None:
            logger.info(f"Job not found: {job_id}")
            raise JobNotFoundError()
        return job_status_dict(job)
    except ApiError:
        raise
    except Exception as e:
        logger.exception("Error getting job status")
        raise ApiError(500, "Failed to get job status", "STATUS_ERROR", details=str(e))


@router.get("/results/{job_id}", response_model=GeneratedProject, response_model_by_alias=True)
def get_results(job_id: str = Depends(valid_job_id), db: Session = Depends(get_db)):
    try:
        job = get_job(db, job_id)
        if job is None:
            raise JobNotFoundError()

        if job.status != "completed":
            raise ApiError(
                status.HTTP_409_CONFLICT,
                "Job not completed yet",
                "JOB_NOT_READY",
                details={"currentStatus": job.status, "progress": job.progress},
            )

        content = get_job_result(db, job_id)
        if content is None:
            raise ApiError(status.HTTP_404_NOT_FOUND, "Results not found", "RESULTS_NOT_FOUND")

        return GeneratedProject.model_validate(json.loads(content))
    except ApiError:
        raise
    except Exception as e:
        logger.exception("Error getting results")
        raise ApiError(500, "Failed to get results", "RESULTS_ERROR", details=str(e))


@router.get("/jobs")
def list_jobs(db: Session = Depends(get_db), user_id: str = Depends(current_user_id)):
    try:
        jobs = get_user_jobs(db, user_id, limit=settings.jobs_list_limit)
        return {
            "total": count_user_jobs(db, user_id),
            "jobs": [job_to_dict(j) for j in jobs],
        }
    except Exception as e:
        logger.exception("Error getting jobs")
        raise ApiError(500, "Failed to get jobs", "JOBS_ERROR", details=str(e))


@router.get("/examples")
def example_prompts():
    try:
        return {"examples": generation.generation_service.get_example_prompts()}
    except Exception as e:
        logger.exception("Error getting example prompts")
        raise ApiError(500, "Failed to get example prompts", "EXAMPLES_ERROR", details=str(e))


@router.post("/analyze")
def analyze(body: AnalyzeRequest):
    try:
        return generation.generation_service.get_cost_estimation(body.prompt)
    except Exception as e:
        logger.exception("Error analyzing prompt")
        raise ApiError(500, "Failed to analyze prompt", "ANALYZE_ERROR", details=str(e))
