"""
Code execution providers for the Interview Agent.

This module defines the interface every remote execution service implements
(submit source, poll for the outcome) and the factory that picks the configured
provider.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from interview_agent.models.state import ExecutionResult, SubmissionHandle
from interview_agent.utils.config import get_code_execution_config

# Configure logging
logger = logging.getLogger(__name__)

# Raised while decoding a 200 response whose body is not the JSON object we expect
MALFORMED_RESPONSE_ERRORS = (ValueError, TypeError, AttributeError, ValidationError)


class CodeExecutionProvider(ABC):
    """
    Remote code-execution capability.

    Subclasses open a fresh HTTP client per request inside ``async with`` so
    connections are released on every exit path.

    Args:
        timeout: HTTP timeout in seconds for each request
        transport: Optional httpx transport (used by tests)
    """

    name = "provider"

    def __init__(self, timeout: float = 15.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport, **kwargs)

    @abstractmethod
    def normalize_language(self, language: str) -> Any:
        """Map a language name to the provider's identifier scheme."""

    @abstractmethod
    async def submit(self, source_code: str, language: str, stdin: str = "") -> SubmissionHandle:
        """
        Submit source code for execution.

        Returns:
            A handle with either an execution id to poll or the finished result

        Raises:
            CodeExecutionError: If the provider rejects the submission
        """

    @abstractmethod
    async def poll(self, execution_id: str, language: str = "unknown") -> ExecutionResult:
        """
        Fetch the current state of a submission.

        The caller passes back the language it submitted with, so providers
        keep no per-submission state between ``submit`` and ``poll``.

        Raises:
            CodeExecutionError: If the provider cannot report on the submission
        """


def get_execution_provider(config: Optional[Dict[str, Any]] = None) -> Optional[CodeExecutionProvider]:
    """
    Build the execution provider named in configuration.

    Args:
        config: Code execution configuration (defaults to the environment)

    Returns:
        The provider, or None when the configured name is unknown or "none"
    """
    # Provider modules import this one
    from interview_agent.tools.judge0 import Judge0Provider
    from interview_agent.tools.onecompiler import OneCompilerProvider

    config = config or get_code_execution_config()
    name = (config.get("provider") or "").lower()

    if name == "judge0":
        logger.info(f"Using Judge0 code execution at {config['judge0_url']}")
        return Judge0Provider(
            base_url=config["judge0_url"],
            api_key=config.get("judge0_key") or None,
            timeout=config.get("timeout", 15.0),
        )
    if name == "onecompiler":
        logger.info("Using OneCompiler code execution")
        return OneCompilerProvider(
            access_token=config.get("onecompiler_access_token") or None,
            rapidapi_key=config.get("onecompiler_rapidapi_key") or None,
            timeout=config.get("timeout", 15.0),
        )

    logger.warning(f"Code execution disabled (provider '{name}')")
    return None
