from __future__ import annotations

import json
import logging
import random
import time
from typing import Any, Optional, Tuple

from pydantic import BaseModel

from appgen.core.config import settings
from appgen.schemas import FILE_TYPES, GeneratedFile, GeneratedProject, ProjectMetadata, ResolvedTechStack
from appgen.services.cache import cache as default_cache
from appgen.services.llm.mock_generator import BUILD_INSTRUCTIONS, build_mock_project
from appgen.services.prompt_engineering import EnhancedPrompt

logger = logging.getLogger(__name__)

DEFAULT_TOKENS_USED = 1500
COST_PER_1K_TOKENS = 0.045  # blended gpt-4 input/output price


class AIResponse(BaseModel):
    success: bool
    project: Optional[GeneratedProject] = None
    error: Optional[str] = None
    tokens_used: Optional[int] = None
    cost: Optional[float] = None


def calculate_cost(tokens: int) -> float:
    return (tokens / 1000) * COST_PER_1K_TOKENS


# ----------------------------
# OpenAI call helpers
# ----------------------------

def _build_openai_client(api_key: str, timeout_sec: float):
    if not api_key:
        raise ValueError("OPENAI_API_KEY is missing")

    from openai import OpenAI  # type: ignore

    # retries are handled by AIService so the backoff schedule stays ours
    return OpenAI(api_key=api_key, timeout=timeout_sec, max_retries=0)


def _extract_json(text: str) -> dict[str, Any]:
    """
    Best-effort JSON extraction if model returns extra text.
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("Empty response from OpenAI")

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse OpenAI response as JSON: {e}") from e

    raise ValueError(f"OpenAI returned non-JSON. First 200 chars: {text[:200]!r}")


def normalize_project(payload: Any, tech_stack: ResolvedTechStack) -> GeneratedProject:
    if not isinstance(payload, dict):
        raise ValueError("Invalid project structure")

    stack = tech_stack
    raw_stack = payload.get("techStack")
    if isinstance(raw_stack, dict):
        stack = tech_stack.model_copy(
            update={k: str(v) for k, v in raw_stack.items() if k in ResolvedTechStack.model_fields and v}
        )

    files: list[GeneratedFile] = []
    raw_files = payload.get("files")
    if isinstance(raw_files, list):
        for f in raw_files:
            if not isinstance(f, dict):
                continue
            ftype = f.get("type") if f.get("type") in FILE_TYPES else "other"
            files.append(
                GeneratedFile(
                    path=str(f.get("path") or "unknown"),
                    content=str(f.get("content") or ""),
                    type=ftype,
                )
            )

    instructions = payload.get("buildInstructions")
    if not isinstance(instructions, list) or not instructions:
        instructions = list(BUILD_INSTRUCTIONS)

    return GeneratedProject(
        project_name=str(payload.get("projectName") or "generated-app"),
        tech_stack=stack,
        files=files,
        build_instructions=[str(i) for i in instructions],
        metadata=ProjectMetadata(tokens_used=0, estimated_cost=0),
    )


class AIService:
    """
    Generates a project through the chat-completions API, or through the
    built-in mock generator when no API key is configured.

    Every API failure is retried with exponential backoff; once attempts are
    exhausted the mock generator is used, so generate_project only reports
    failure when the mock itself breaks.
    """

    def __init__(
        self,
        api_key: str = settings.openai_api_key,
        model: str = settings.openai_model,
        max_tokens: int = settings.openai_max_tokens,
        temperature: float = settings.openai_temperature,
        timeout: float = settings.openai_timeout_sec,
        attempts: int = settings.openai_attempts,
        retry_delay: float = settings.openai_retry_delay_sec,
        mock_delay: Tuple[float, float] = (settings.mock_delay_min_sec, settings.mock_delay_max_sec),
        cache: Any = None,
        cache_ttl: int = settings.cache_ttl_sec,
        client: Any = None,
        sleep=time.sleep,
    ) -> None:
        self.api_key = api_key or ""
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self.retry_delay = retry_delay
        self.mock_delay = mock_delay
        self.cache = cache if cache is not None else default_cache
        self.cache_ttl = cache_ttl
        self._client = client
        self._sleep = sleep

    @property
    def has_api_key(self) -> bool:
        return len(self.api_key) > 0

    def _get_client(self):
        if self._client is None:
            self._client = _build_openai_client(self.api_key, self.timeout)
        return self._client

    def generate_project(self, enhanced: EnhancedPrompt) -> AIResponse:
        cache_key = self.cache.generate_prompt_key(enhanced.user_prompt)
        cached = self.cache.get(cache_key)
        if cached:
            logger.info("Using cached response")
            return AIResponse.model_validate(cached)

        if self.has_api_key:
            logger.info("Using OpenAI API")
            result = self.generate_with_openai(enhanced)
        else:
            logger.info("Using mock AI")
            result = self.generate_with_mock(enhanced)

        if result.success:
            self.cache.set(cache_key, result.model_dump(mode="json"), self.cache_ttl)

        return result

    def generate_with_openai(self, enhanced: EnhancedPrompt) -> AIResponse:
        last_err: Exception | None = None

        for attempt in range(1, self.attempts + 1):
            try:
                logger.info(f"OpenAI attempt {attempt}/{self.attempts}")
                response = self.call_openai(enhanced)
                logger.info("OpenAI generation successful")
                return response
            except Exception as e:
                last_err = e
                logger.warning(f"OpenAI attempt {attempt} failed: {e}")
                if attempt < self.attempts:
                    delay = self.retry_delay * (2 ** (attempt - 1))
                    logger.info(f"Retrying in {delay:.1f}s...")
                    self._sleep(delay)

        logger.warning(f"OpenAI failed after {self.attempts} attempts ({last_err}); falling back to mock")
        return self.generate_with_mock(enhanced)

    def call_openai(self, enhanced: EnhancedPrompt) -> AIResponse:
        client = self._get_client()
        chat = client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": enhanced.system_prompt},
                {"role": "user", "content": enhanced.user_prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_format={"type": "json_object"},
        )

        choices = getattr(chat, "choices", None)
        if not choices or getattr(choices[0], "message", None) is None:
            raise ValueError("Invalid response structure from OpenAI")

        payload = _extract_json(choices[0].message.content or "")
        project = normalize_project(payload, enhanced.analysis.suggested_tech_stack)

        usage = getattr(chat, "usage", None)
        tokens_used = getattr(usage, "total_tokens", None) or DEFAULT_TOKENS_USED
        cost = calculate_cost(tokens_used)
        project.metadata.tokens_used = tokens_used
        project.metadata.estimated_cost = cost

        return AIResponse(success=True, project=project, tokens_used=tokens_used, cost=cost)

    def generate_with_mock(self, enhanced: EnhancedPrompt) -> AIResponse:
        low, high = self.mock_delay
        if high > 0:
            self._sleep(random.uniform(low, max(low, high)))

        analysis = enhanced.analysis
        try:
            project = build_mock_project(
                analysis.app_type,
                analysis.suggested_tech_stack,
                analysis.features,
                include_tests=enhanced.include_tests,
            )
        except Exception as e:
            logger.exception("Mock generation failed")
            return AIResponse(success=False, error=str(e) or "Mock generation failed")

        return AIResponse(
            success=True,
            project=project,
            tokens_used=project.metadata.tokens_used,
            cost=project.metadata.estimated_cost,
        )
