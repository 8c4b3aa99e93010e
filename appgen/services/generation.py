from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from appgen.schemas import GeneratedProject, GenerationInput
from appgen.services import prompt_engineering
from appgen.services.ai_service import AIService
from appgen.services.jobs import update_job, update_job_progress

logger = logging.getLogger(__name__)

MIN_PROMPT_LENGTH = 10
MAX_PROMPT_LENGTH = 1000

VAGUE_PATTERNS = [
    re.compile(r"^(build|create|make) (me )?an? app$", re.IGNORECASE),
    re.compile(r"^(build|create|make) (me )?a website$", re.IGNORECASE),
    re.compile(r"^help me$", re.IGNORECASE),
]

PROBLEMATIC_PATTERNS = [
    re.compile(r"hack|crack|exploit|malware|virus", re.IGNORECASE),
    re.compile(r"illegal|piracy|copyright", re.IGNORECASE),
    re.compile(r"adult|nsfw|explicit", re.IGNORECASE),
]

ACTION_VERBS = ("build", "create", "make", "develop", "generate")
TECH_CONTEXT_RE = re.compile(r"react|vue|angular|express|node|database|api", re.IGNORECASE)


@dataclass
class PromptValidation:
    is_valid: bool
    optimized_prompt: Optional[str] = None
    issues: List[str] = field(default_factory=list)


def optimize_prompt(prompt: str) -> str:
    optimized = prompt.strip()

    lowered = optimized.lower()
    if "app" not in lowered and "application" not in lowered:
        optimized = f"Build an application that {optimized}"

    if not optimized.lower().startswith(ACTION_VERBS):
        optimized = f"Build {optimized}"

    if not TECH_CONTEXT_RE.search(optimized) and len(optimized) < 100:
        optimized += ". Use modern web technologies and best practices."

    return optimized


def validate_and_optimize_prompt(prompt: str) -> PromptValidation:
    issues: List[str] = []

    if len(prompt) < MIN_PROMPT_LENGTH:
        issues.append("Prompt is too short. Please provide more details about your desired application.")

    if len(prompt) > MAX_PROMPT_LENGTH:
        issues.append(f"Prompt is too long. Please keep it under {MAX_PROMPT_LENGTH} characters.")

    stripped = prompt.strip()
    if any(p.search(stripped) for p in VAGUE_PATTERNS):
        issues.append(
            "Prompt is too vague. Please specify what type of application you want and its main features."
        )

    if any(p.search(prompt) for p in PROBLEMATIC_PATTERNS):
        issues.append("Prompt contains potentially problematic content. Please revise your request.")

    if issues:
        return PromptValidation(is_valid=False, issues=issues)
    return PromptValidation(is_valid=True, optimized_prompt=optimize_prompt(prompt))


class GenerationService:
    def __init__(self, ai_service: AIService | None = None) -> None:
        self.ai_service = ai_service or AIService()

    def process_generation_request(self, db: Session, job_id: str, request: GenerationInput) -> GeneratedProject:
        """
        Drive one job from pending to a generated project.
        Progress checkpoints: 10 (processing) -> 25 -> 50 -> 90.
        Raises on failure; the caller records it on the job.
        """
        logger.info(f"Processing generation request for job {job_id}")
        update_job_progress(db, job_id, 10, "processing")

        enhanced = prompt_engineering.generate_enhanced_prompt(request.prompt, request.tech_stack, request.options)
        analysis = enhanced.analysis
        logger.info(
            f"Prompt analysis for job {job_id}: app_type={analysis.app_type} "
            f"complexity={analysis.complexity} features={analysis.features}"
        )
        update_job(db, job_id, app_type=analysis.app_type, complexity=analysis.complexity)

        update_job_progress(db, job_id, 25)

        logger.info(f"Generating project with AI for job {job_id}")
        update_job_progress(db, job_id, 50)

        ai_response = self.ai_service.generate_project(enhanced)
        if not ai_response.success or ai_response.project is None:
            raise RuntimeError(ai_response.error or "AI generation failed")

        update_job_progress(db, job_id, 90)
        logger.info(f"Project generation completed for job {job_id}")
        return ai_response.project

    def analyze_prompt(self, prompt: str):
        return prompt_engineering.analyze_prompt(prompt)

    def get_example_prompts(self) -> dict[str, list[str]]:
        return prompt_engineering.get_example_prompts()

    def validate_and_optimize_prompt(self, prompt: str) -> PromptValidation:
        return validate_and_optimize_prompt(prompt)

    def get_cost_estimation(self, prompt: str) -> dict[str, Any]:
        analysis = prompt_engineering.analyze_prompt(prompt)
        return {
            "complexity": analysis.complexity,
            "appType": analysis.app_type,
            "features": analysis.features,
        }


generation_service = GenerationService()
