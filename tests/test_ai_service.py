import json
from types import SimpleNamespace

import pytest

from appgen.schemas import ResolvedTechStack
from appgen.services.ai_service import AIService, _extract_json, calculate_cost, normalize_project
from appgen.services.cache import MockCacheService
from appgen.services.prompt_engineering import generate_enhanced_prompt

PROJECT_JSON = {
    "projectName": "todo-app",
    "techStack": {"frontend": "React", "backend": "Express"},
    "files": [
        {"path": "frontend/src/App.tsx", "content": "export default App;", "type": "component"},
        {"path": "scripts/seed.sh", "content": "echo seed", "type": "script"},
    ],
    "buildInstructions": ["npm install", "npm start"],
}


def _chat_response(content: str, total_tokens=2000):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


class FakeCompletions:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _service(completions, sleeps=None, **kwargs):
    return AIService(
        api_key="sk-test",
        client=SimpleNamespace(chat=SimpleNamespace(completions=completions)),
        retry_delay=1.0,
        mock_delay=(0, 0),
        cache=MockCacheService(),
        sleep=(sleeps.append if sleeps is not None else lambda s: None),
        **kwargs,
    )


def test_openai_success_is_normalized():
    completions = FakeCompletions([_chat_response(json.dumps(PROJECT_JSON))])
    result = _service(completions).generate_project(generate_enhanced_prompt("Build me a todo app"))

    assert result.success is True
    assert result.tokens_used == 2000
    assert result.cost == pytest.approx(0.09)

    project = result.project
    assert project.project_name == "todo-app"
    assert project.tech_stack.database == "PostgreSQL"
    assert [f.type for f in project.files] == ["component", "other"]
    assert project.build_instructions == ["npm install", "npm start"]
    assert project.metadata.tokens_used == 2000

    call = completions.calls[0]
    assert call["model"] == "gpt-4o"
    assert call["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in call["messages"]] == ["system", "user"]


def test_openai_retries_with_doubling_backoff():
    sleeps = []
    completions = FakeCompletions(
        [RuntimeError("timeout"), RuntimeError("rate limited"), _chat_response(json.dumps(PROJECT_JSON))]
    )
    result = _service(completions, sleeps).generate_project(generate_enhanced_prompt("Build me a todo app"))

    assert result.success is True
    assert result.project.project_name == "todo-app"
    assert len(completions.calls) == 3
    assert sleeps == [1.0, 2.0]


def test_openai_exhausted_falls_back_to_mock():
    sleeps = []
    completions = FakeCompletions([ValueError("bad json")] * 3)
    result = _service(completions, sleeps).generate_project(generate_enhanced_prompt("Build me a todo app"))

    assert result.success is True
    assert result.project.project_name == "crud-app"
    assert result.tokens_used == 1500
    assert result.cost == 0.05
    assert sleeps == [1.0, 2.0]


def test_missing_usage_defaults_token_count():
    completions = FakeCompletions([_chat_response(json.dumps(PROJECT_JSON), total_tokens=None)])
    result = _service(completions).generate_project(generate_enhanced_prompt("Build me a todo app"))
    assert result.tokens_used == 1500


def test_empty_choices_is_retried():
    completions = FakeCompletions(
        [SimpleNamespace(choices=[], usage=None), _chat_response(json.dumps(PROJECT_JSON))]
    )
    result = _service(completions).generate_project(generate_enhanced_prompt("Build me a todo app"))
    assert result.project.project_name == "todo-app"
    assert len(completions.calls) == 2


def test_cached_result_skips_model():
    completions = FakeCompletions([_chat_response(json.dumps(PROJECT_JSON))])
    service = _service(completions)
    enhanced = generate_enhanced_prompt("Build me a todo app")

    first = service.generate_project(enhanced)
    second = service.generate_project(enhanced)

    assert len(completions.calls) == 1
    assert second.project.project_name == first.project.project_name
    assert service.cache.get_stats() == {"totalKeys": 1}


def test_mock_used_without_api_key():
    service = AIService(api_key="", mock_delay=(0, 0), cache=MockCacheService())
    enhanced = generate_enhanced_prompt("A landing page for my band")

    result = service.generate_project(enhanced)
    assert result.success is True
    assert result.project.project_name == "other-app"
    assert len(result.project.files) == 4


def test_mock_delay_uses_sleep():
    sleeps = []
    service = AIService(api_key="", mock_delay=(2, 5), cache=MockCacheService(), sleep=sleeps.append)
    service.generate_project(generate_enhanced_prompt("A landing page for my band"))
    assert len(sleeps) == 1
    assert 2 <= sleeps[0] <= 5


def test_extract_json_tolerates_surrounding_text():
    assert _extract_json('Here you go:\n{"projectName": "x"}\nEnjoy') == {"projectName": "x"}
    with pytest.raises(ValueError):
        _extract_json("")
    with pytest.raises(ValueError):
        _extract_json("no braces at all")


def test_normalize_project_rejects_non_objects():
    with pytest.raises(ValueError):
        normalize_project(["not", "a", "project"], ResolvedTechStack())


def test_calculate_cost():
    assert calculate_cost(1000) == pytest.approx(0.045)
    assert calculate_cost(0) == 0
