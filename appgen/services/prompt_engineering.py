from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from appgen.schemas import GenerationOptions, ResolvedTechStack, TechStack
from appgen.services.llm.prompts import EXAMPLE_PROMPTS, PROJECT_SYSTEM, PROJECT_USER_TEMPLATE

# order matters: crud wins over dashboard
APP_TYPE_PATTERNS = [
    ("crud", re.compile(r"todo|task|list|manage|create|edit|delete|crud|inventory|admin", re.IGNORECASE)),
    ("dashboard", re.compile(r"dashboard|analytics|chart|graph|metric|report|visualization|data", re.IGNORECASE)),
]

BASE_FEATURES = ["database", "api", "responsive"]


def default_tech_stack() -> ResolvedTechStack:
    return ResolvedTechStack(frontend="React", backend="Express", database="PostgreSQL", styling="Tailwind")


@dataclass
class PromptAnalysis:
    app_type: str
    complexity: str
    suggested_tech_stack: ResolvedTechStack
    features: List[str] = field(default_factory=list)


@dataclass
class EnhancedPrompt:
    system_prompt: str
    user_prompt: str
    analysis: PromptAnalysis
    include_tests: bool = False


def detect_app_type(prompt: str) -> str:
    for app_type, pattern in APP_TYPE_PATTERNS:
        if pattern.search(prompt or ""):
            return app_type
    return "other"


def analyze_prompt(prompt: str, options: Optional[GenerationOptions] = None) -> PromptAnalysis:
    normalized = (prompt or "").lower()

    complexity = "simple" if options is not None and options.complexity == "simple" else "moderate"

    features = list(BASE_FEATURES)
    if "auth" in normalized or "login" in normalized:
        features.append("authentication")

    return PromptAnalysis(
        app_type=detect_app_type(normalized),
        complexity=complexity,
        suggested_tech_stack=default_tech_stack(),
        features=features,
    )


def resolve_tech_stack(tech_stack: Optional[TechStack]) -> ResolvedTechStack:
    """Overlay whatever the caller picked on top of the default stack."""
    resolved = default_tech_stack()
    if tech_stack is None:
        return resolved
    picked = tech_stack.model_dump(exclude_none=True)
    return resolved.model_copy(update=picked)


def _stack_line(stack: ResolvedTechStack) -> str:
    parts = [stack.frontend, stack.backend, stack.database, stack.styling]
    return " + ".join(p for p in parts if p)


def generate_enhanced_prompt(
    user_prompt: str,
    tech_stack: Optional[TechStack] = None,
    options: Optional[GenerationOptions] = None,
) -> EnhancedPrompt:
    analysis = analyze_prompt(user_prompt, options)
    analysis.suggested_tech_stack = resolve_tech_stack(tech_stack)

    enhanced_user_prompt = PROJECT_USER_TEMPLATE.format(
        prompt=user_prompt,
        stack=_stack_line(analysis.suggested_tech_stack),
        app_type=analysis.app_type,
        complexity=analysis.complexity,
        scope="CRUD operations" if analysis.app_type == "crud" else "functionality",
    )
    include_tests = bool(options and options.include_tests)
    if include_tests:
        enhanced_user_prompt += "\nInclude unit tests for the main component."

    return EnhancedPrompt(
        system_prompt=PROJECT_SYSTEM,
        user_prompt=enhanced_user_prompt,
        analysis=analysis,
        include_tests=include_tests,
    )


def get_example_prompts() -> dict[str, list[str]]:
    return {k: list(v) for k, v in EXAMPLE_PROMPTS.items()}
