from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models speak camelCase; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


FileType = Literal["component", "config", "documentation", "test", "other"]
FILE_TYPES = ("component", "config", "documentation", "test", "other")


class TechStack(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    frontend: Optional[Literal["React", "Vue", "Angular", "Svelte"]] = None
    backend: Optional[Literal["Express", "FastAPI", "Spring Boot", "Django"]] = None
    database: Optional[Literal["PostgreSQL", "MongoDB", "MySQL", "SQLite"]] = None
    styling: Optional[Literal["Tailwind", "CSS Modules", "Styled Components", "SCSS"]] = None


class ResolvedTechStack(CamelModel):
    # Model output may name anything, so no enums here
    frontend: str = "React"
    backend: str = "Express"
    database: Optional[str] = "PostgreSQL"
    styling: Optional[str] = "Tailwind"


class GenerationOptions(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    include_tests: Optional[bool] = None
    include_documentation: Optional[bool] = None
    complexity: Optional[Literal["simple", "moderate", "complex"]] = None


class GenerationInput(CamelModel):
    """What a job runs on. The prompt may already be optimized, so no length window here."""

    prompt: str
    tech_stack: Optional[TechStack] = None
    options: Optional[GenerationOptions] = None


class GenerateRequest(GenerationInput):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    prompt: str = Field(min_length=10, max_length=1000)


class GenerateResponse(CamelModel):
    job_id: str
    status: Literal["pending", "processing", "completed", "failed"]
    message: Optional[str] = None


class GeneratedFile(CamelModel):
    path: str
    content: str
    type: FileType = "other"


class ProjectMetadata(CamelModel):
    tokens_used: Optional[int] = None
    generated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    estimated_cost: Optional[float] = None


class GeneratedProject(CamelModel):
    project_name: str
    tech_stack: ResolvedTechStack
    files: List[GeneratedFile] = Field(default_factory=list)
    build_instructions: List[str] = Field(default_factory=list)
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)


class AnalyzeRequest(CamelModel):
    prompt: str = Field(min_length=1, max_length=1000)
