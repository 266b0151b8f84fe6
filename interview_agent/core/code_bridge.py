"""
Code evaluation bridge.

Candidate code is dispatched to the configured execution provider only while the
session is in the coding stage. Code sent in any other stage is kept on the
session for audit and never leaves the process.
"""
import asyncio
import logging
from typing import Optional

from interview_agent.core.exceptions import CodeExecutionError
from interview_agent.models.state import CodeSubmission, ExecutionResult, Session, Stage
from interview_agent.tools.code_execution import CodeExecutionProvider
from interview_agent.utils.constants import EXECUTION_FAILED, EXECUTION_PENDING
from interview_agent.utils.profiling import timer

logger = logging.getLogger(__name__)


class CodeEvaluationBridge:
    """
    Gate between candidate turns and the code-execution provider.

    Args:
        provider: Execution provider; ``None`` disables dispatch
        timeout: Seconds allowed for one submit-and-poll cycle; a run still going
            at the deadline is reported as pending
        max_polls: Number of poll attempts before a result is reported as pending
        poll_interval: Seconds between polls
    """

    def __init__(
        self,
        provider: Optional[CodeExecutionProvider],
        timeout: float = 15.0,
        max_polls: int = 30,
        poll_interval: float = 1.0,
    ):
        self.provider = provider
        self.timeout = timeout
        self.max_polls = max_polls
        self.poll_interval = poll_interval

    async def maybe_evaluate(
        self,
        session: Session,
        code: Optional[str],
        stage: Stage,
        language: Optional[str] = None,
        stdin: str = "",
    ) -> Optional[ExecutionResult]:
        """
        Record ``code`` on the session and execute it when ``stage`` is coding.

        Returns:
            The execution result, or None when nothing was dispatched
        """
        if not code or not code.strip():
            return None

        language = language or session.language
        if stage != Stage.CODING or self.provider is None:
            if stage != Stage.CODING:
                logger.info(f"Session {session.session_id}: code received in stage '{stage.value}', not dispatched")
            else:
                logger.warning(f"Session {session.session_id}: no execution provider configured")
            session.code_submissions.append(
                CodeSubmission(code=code, language=language, stage=stage, dispatched=False)
            )
            return None

        result = await self._execute(code, language, stdin)
        session.code_submissions.append(
            CodeSubmission(code=code, language=language, stage=stage, dispatched=True, result=result)
        )
        return result

    async def _execute(self, code: str, language: str, stdin: str) -> ExecutionResult:
        provider_name = self.provider.name
        try:
            with timer(f"code_execution[{provider_name}]", log_level=logging.INFO):
                return await self._submit_and_poll(code, language, stdin)
        except asyncio.TimeoutError:
            logger.error(f"{provider_name} submission timed out after {self.timeout}s")
            return ExecutionResult(
                status=EXECUTION_FAILED,
                provider=provider_name,
                language=language,
                error=f"Execution timed out after {self.timeout} seconds",
            )
        except CodeExecutionError as e:
            logger.error(f"{provider_name} execution failed: {e}")
            return ExecutionResult(
                status=EXECUTION_FAILED, provider=provider_name, language=language, error=str(e)
            )

    async def _submit_and_poll(self, code: str, language: str, stdin: str) -> ExecutionResult:
        """
        Submit once, then poll until the run finishes, ``max_polls`` is spent or
        ``timeout`` would pass. A run that is still going comes back pending with
        its execution id so the caller can look it up later.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        handle = await asyncio.wait_for(self.provider.submit(code, language, stdin), timeout=self.timeout)
        if handle.result is not None:
            return handle.result

        result = ExecutionResult(
            status=EXECUTION_PENDING,
            provider=self.provider.name,
            language=language,
            execution_id=handle.execution_id,
        )
        for attempt in range(self.max_polls):
            if loop.time() + self.poll_interval >= deadline:
                logger.warning(f"Execution {handle.execution_id} still pending after {self.timeout}s")
                break
            await asyncio.sleep(self.poll_interval)
            try:
                result = await asyncio.wait_for(
                    self.provider.poll(handle.execution_id, language), timeout=deadline - loop.time()
                )
            except asyncio.TimeoutError:
                logger.warning(f"Poll for execution {handle.execution_id} outlived the {self.timeout}s deadline")
                break
            if result.status != EXECUTION_PENDING:
                return result
            logger.debug(f"Execution {handle.execution_id} still pending (poll {attempt + 1}/{self.max_polls})")

        return result
