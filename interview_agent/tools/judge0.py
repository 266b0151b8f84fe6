"""
Judge0 code execution provider.

Judge0 runs submissions asynchronously: a POST returns a token and the result
is fetched with GET until the status leaves the queue.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from interview_agent.core.exceptions import CodeExecutionError
from interview_agent.models.state import ExecutionResult, SubmissionHandle
from interview_agent.tools.code_execution import MALFORMED_RESPONSE_ERRORS, CodeExecutionProvider
from interview_agent.utils.constants import EXECUTION_COMPLETED, EXECUTION_FAILED, EXECUTION_PENDING

logger = logging.getLogger(__name__)

RAPIDAPI_HOST = "judge0-ce.p.rapidapi.com"

# Judge0 CE language ids
LANGUAGE_IDS = {
    "javascript": 63,
    "python": 71,
    "java": 62,
    "cpp": 54,
    "c": 50,
    "csharp": 51,
    "php": 68,
    "ruby": 72,
    "swift": 83,
    "go": 60,
    "kotlin": 78,
    "scala": 81,
    "rust": 73,
    "typescript": 74,
    "r": 80,
    "perl": 85,
    "haskell": 61,
    "clojure": 86,
    "erlang": 58,
    "elixir": 57,
    "dart": 84,
}
LANGUAGE_ALIASES = {"js": "javascript", "node": "javascript", "py": "python", "c++": "cpp", "ts": "typescript"}
DEFAULT_LANGUAGE_ID = 63

STATUS_IN_QUEUE = 1
STATUS_PROCESSING = 2
STATUS_INTERNAL_ERROR = 13

CPU_TIME_LIMIT = 5
MEMORY_LIMIT_KB = 256000


class Judge0Provider(CodeExecutionProvider):
    """Client for a Judge0 CE deployment (self-hosted or via RapidAPI)."""

    name = "judge0"

    def __init__(
        self,
        base_url: str = f"https://{RAPIDAPI_HOST}",
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def normalize_language(self, language: str) -> int:
        key = (language or "").strip().lower()
        key = LANGUAGE_ALIASES.get(key, key)
        return LANGUAGE_IDS.get(key, DEFAULT_LANGUAGE_ID)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-RapidAPI-Key"] = self.api_key
            headers["X-RapidAPI-Host"] = RAPIDAPI_HOST
        return headers

    async def submit(self, source_code: str, language: str, stdin: str = "") -> SubmissionHandle:
        payload = {
            "source_code": source_code,
            "language_id": self.normalize_language(language),
            "stdin": stdin or "",
            "cpu_time_limit": CPU_TIME_LIMIT,
            "memory_limit": MEMORY_LIMIT_KB,
        }
        try:
            async with self._client(headers=self._headers()) as client:
                response = await client.post(
                    f"{self.base_url}/submissions",
                    params={"base64_encoded": "false", "wait": "false"},
                    json=payload,
                )
                response.raise_for_status()
                token = response.json().get("token")
        except httpx.HTTPError as e:
            raise CodeExecutionError(self.name, f"submission failed: {e}", e)
        except MALFORMED_RESPONSE_ERRORS as e:
            raise CodeExecutionError(self.name, f"unreadable submission response: {e}", e)

        if not token:
            raise CodeExecutionError(self.name, "no token received from submission")

        logger.info(f"Judge0 submission accepted, token {token}")
        return SubmissionHandle(execution_id=str(token))

    async def poll(self, execution_id: str, language: str = "unknown") -> ExecutionResult:
        try:
            async with self._client(headers=self._headers()) as client:
                response = await client.get(
                    f"{self.base_url}/submissions/{execution_id}",
                    params={"base64_encoded": "false"},
                )
                response.raise_for_status()
                return self._to_result(execution_id, language, response.json())
        except httpx.HTTPError as e:
            raise CodeExecutionError(self.name, f"result fetch failed: {e}", e)
        except MALFORMED_RESPONSE_ERRORS as e:
            raise CodeExecutionError(self.name, f"unreadable result for {execution_id}: {e}", e)

    def _to_result(self, token: str, language: str, data: Dict[str, Any]) -> ExecutionResult:
        status = data.get("status") or {}
        status_id = status.get("id", STATUS_IN_QUEUE)

        if status_id in (STATUS_IN_QUEUE, STATUS_PROCESSING):
            return ExecutionResult(
                status=EXECUTION_PENDING,
                provider=self.name,
                language=language,
                execution_id=token,
                description=status.get("description"),
            )

        stderr = data.get("stderr") or data.get("compile_output") or ""
        execution_time = data.get("time")
        return ExecutionResult(
            status=EXECUTION_FAILED if status_id == STATUS_INTERNAL_ERROR else EXECUTION_COMPLETED,
            provider=self.name,
            language=language,
            stdout=data.get("stdout") or "",
            stderr=stderr,
            exit_code=data.get("exit_code"),
            execution_id=token,
            description=status.get("description"),
            execution_time=float(execution_time) if execution_time else None,
            memory=data.get("memory"),
            error=data.get("message") if status_id == STATUS_INTERNAL_ERROR else None,
        )
