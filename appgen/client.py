"""
HTTP client for the generator API, plus a polling session that tracks a
generation from submission to result.

    client = AppGeneratorClient("http://localhost:3001/api")
    session = GenerationSession(client)
    state = session.generate_app("Build me a todo app with tasks")
"""
from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv("APPGEN_API_URL", "http://localhost:3001/api")

POLLING_INTERVAL_SEC = 4.0
MAX_POLLING_ATTEMPTS = 45
MAX_POLLING_ERRORS = 10


class ApiClientError(Exception):
    def __init__(self, message: str, code: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class AppGeneratorClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.Client(timeout=timeout)

    def _request(self, method: str, endpoint: str, json: Any = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            r = self.http.request(method, url, json=json, headers={"Content-Type": "application/json"})
        except httpx.HTTPError as e:
            raise ApiClientError("Failed to connect to server", "CONNECTION_ERROR", str(e)) from e

        if r.is_error:
            try:
                body = r.json()
            except ValueError:
                body = None
            if not isinstance(body, dict) or "error" not in body:
                raise ApiClientError(
                    "Network error",
                    "NETWORK_ERROR",
                    f"HTTP {r.status_code}: {r.reason_phrase}",
                )
            raise ApiClientError(body["error"], body.get("code", "UNKNOWN_ERROR"), body.get("details"))

        try:
            return r.json()
        except ValueError as e:
            raise ApiClientError("Failed to connect to server", "CONNECTION_ERROR", str(e)) from e

    def generate_app(
        self,
        prompt: str,
        tech_stack: Optional[Dict[str, str]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"prompt": prompt}
        if tech_stack:
            body["techStack"] = tech_stack
        if options:
            body["options"] = options
        return self._request("POST", "/generate", json=body)

    def get_job_status(self, job_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/jobs/{job_id}/status")

    def get_results(self, job_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/results/{job_id}")

    def list_jobs(self) -> Dict[str, Any]:
        return self._request("GET", "/jobs")

    def health_check(self) -> Dict[str, Any]:
        return self._request("GET", "/health")


@dataclass
class GenerationState:
    status: str = "idle"  # idle | generating | completed | failed
    progress: int = 0
    job_id: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class GenerationSession:
    """
    Submit a prompt, then poll its job until a terminal state.

    Stopping is client-side only: the server keeps working on an abandoned job.
    """

    def __init__(
        self,
        client: AppGeneratorClient,
        interval: float = POLLING_INTERVAL_SEC,
        max_attempts: int = MAX_POLLING_ATTEMPTS,
        max_errors: int = MAX_POLLING_ERRORS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.interval = interval
        self.max_attempts = max_attempts
        self.max_errors = max_errors
        self._sleep = sleep
        self.state = GenerationState()
        self._last_request: Optional[Dict[str, Any]] = None

    def reset(self) -> None:
        self._last_request = None
        self.state = GenerationState()

    def retry(self) -> Optional[GenerationState]:
        if self._last_request is None:
            return None
        return self.generate_app(**self._last_request)

    def generate_app(
        self,
        prompt: str,
        tech_stack: Optional[Dict[str, str]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerationState:
        self.state = GenerationState(status="generating")

        merged_options = {"complexity": "moderate", "includeTests": True, "includeDocumentation": True}
        merged_options.update(options or {})
        self._last_request = {"prompt": prompt.strip(), "tech_stack": tech_stack, "options": merged_options}

        try:
            response = self.client.generate_app(prompt.strip(), tech_stack, merged_options)
        except ApiClientError as e:
            logger.error(f"Generation error: {e.message}")
            self.state.status = "failed"
            self.state.error = e.message
            return self.state

        self.state.job_id = response["jobId"]
        self.state.progress = 10
        return self.poll(self.state.job_id)

    def poll(self, job_id: str) -> GenerationState:
        attempts = 0
        while True:
            try:
                job = self.client.get_job_status(job_id)
            except ApiClientError as e:
                logger.warning(f"Polling error: {e.message}")
                attempts += 1
                if attempts >= self.max_errors:
                    return self._fail("Lost connection to server. Please try again.")
                self._sleep(self.interval)
                continue

            status = job.get("status")
            if status == "processing":
                self.state.progress = job.get("progress") or min(90, self.state.progress + 5)
            elif status == "completed":
                self.state.progress = 100
            self.state.error = job.get("error")

            if status == "completed":
                return self._fetch_results(job_id)
            if status == "failed":
                return self._fail(job.get("error") or "Generation failed")

            attempts += 1
            if attempts >= self.max_attempts:
                return self._fail("Generation timed out. Please try again.")
            self._sleep(self.interval)

    def _fetch_results(self, job_id: str) -> GenerationState:
        try:
            result = self.client.get_results(job_id)
        except ApiClientError as e:
            logger.error(f"Failed to get results: {e.message}")
            return self._fail(e.message or "Failed to get results")

        self.state.status = "completed"
        self.state.result = result
        self.state.progress = 100
        return self.state

    def _fail(self, error: str) -> GenerationState:
        self.state.status = "failed"
        self.state.error = error
        return self.state
