"""
OneCompiler code execution provider.

OneCompiler runs code synchronously, so a submission always comes back with the
finished result and there is nothing to poll.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from interview_agent.core.exceptions import CodeExecutionError
from interview_agent.models.state import ExecutionResult, SubmissionHandle
from interview_agent.tools.code_execution import MALFORMED_RESPONSE_ERRORS, CodeExecutionProvider
from interview_agent.utils.constants import EXECUTION_COMPLETED, EXECUTION_FAILED

logger = logging.getLogger(__name__)

ONECOMPILER_URL = "https://onecompiler.com/api/v1/run"
RAPIDAPI_HOST = "onecompiler-apis.p.rapidapi.com"

FILE_EXTENSIONS = {
    "python": "py",
    "javascript": "js",
    "typescript": "ts",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "go": "go",
    "rust": "rs",
    "ruby": "rb",
    "php": "php",
    "csharp": "cs",
    "kotlin": "kt",
}
LANGUAGE_ALIASES = {"js": "javascript", "node": "javascript", "py": "python", "c++": "cpp", "ts": "typescript"}


class OneCompilerProvider(CodeExecutionProvider):
    """Client for the OneCompiler run API (direct token or RapidAPI)."""

    name = "onecompiler"

    def __init__(
        self,
        access_token: Optional[str] = None,
        rapidapi_key: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.access_token = access_token
        self.rapidapi_key = rapidapi_key

    def normalize_language(self, language: str) -> str:
        key = (language or "python").strip().lower()
        return LANGUAGE_ALIASES.get(key, key)

    def _request_target(self) -> Dict[str, Any]:
        if self.access_token:
            return {
                "url": ONECOMPILER_URL,
                "params": {"access_token": self.access_token},
                "headers": {"Content-Type": "application/json"},
            }
        if self.rapidapi_key:
            return {
                "url": f"https://{RAPIDAPI_HOST}/api/v1/run",
                "params": {},
                "headers": {
                    "Content-Type": "application/json",
                    "x-rapidapi-host": RAPIDAPI_HOST,
                    "x-rapidapi-key": self.rapidapi_key,
                },
            }
        raise CodeExecutionError(self.name, "access token or RapidAPI key not configured")

    async def submit(self, source_code: str, language: str, stdin: str = "") -> SubmissionHandle:
        lang = self.normalize_language(language)
        payload: Dict[str, Any] = {
            "language": lang,
            "files": [{"name": f"main.{FILE_EXTENSIONS.get(lang, 'txt')}", "content": source_code}],
        }
        if stdin:
            payload["stdin"] = stdin

        target = self._request_target()
        try:
            async with self._client(headers=target["headers"]) as client:
                response = await client.post(target["url"], params=target["params"], json=payload)
                response.raise_for_status()
                return SubmissionHandle(result=self._to_result(lang, response.json()))
        except httpx.HTTPError as e:
            raise CodeExecutionError(self.name, f"run failed: {e}", e)
        except MALFORMED_RESPONSE_ERRORS as e:
            raise CodeExecutionError(self.name, f"unreadable run response: {e}", e)

    async def poll(self, execution_id: str, language: str = "unknown") -> ExecutionResult:
        raise CodeExecutionError(self.name, "runs synchronously; there is no submission to poll")

    def _to_result(self, language: str, data: Dict[str, Any]) -> ExecutionResult:
        failed = data.get("status") == "failed" or bool(data.get("error"))
        exception = data.get("exception")
        execution_time = data.get("executionTime")
        if failed:
            logger.warning(f"OneCompiler reported failure: {data.get('error')}")
        return ExecutionResult(
            status=EXECUTION_FAILED if failed else EXECUTION_COMPLETED,
            provider=self.name,
            language=language,
            stdout=data.get("stdout") or "",
            stderr=data.get("stderr") or exception or "",
            exit_code=1 if (exception or failed) else 0,
            description=data.get("status"),
            execution_time=float(execution_time) / 1000 if execution_time else None,
            error=data.get("error"),
        )
