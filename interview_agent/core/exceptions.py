"""
Exception types raised by the interview session agent.
"""
from typing import Optional


class InterviewAgentError(Exception):
    """Base class for all interview agent errors."""


class SessionNotFound(InterviewAgentError):
    """Raised when an existing-session operation names an unknown session."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidStageRequest(InterviewAgentError):
    """Raised when a requested stage is not part of the stage registry."""

    def __init__(self, stage: str):
        super().__init__(f"Unknown interview stage: {stage!r}")
        self.stage = stage


class ExternalServiceError(InterviewAgentError):
    """An external capability (generation, scoring, execution) failed."""

    def __init__(self, service: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{service} failed: {message}")
        self.service = service
        self.cause = cause


class ExternalServiceTimeout(ExternalServiceError):
    """An external capability did not answer in time."""


class CodeExecutionError(ExternalServiceError):
    """A code-execution provider rejected or failed a submission."""

    def __init__(self, provider: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"code execution ({provider})", message, cause)
        self.provider = provider


class TranscriptCapacityError(InterviewAgentError):
    """The conversation log cannot accept more entries."""


class SessionUnusable(InterviewAgentError):
    """The session was retired from use after a fatal transcript failure."""

    def __init__(self, session_id: str, reason: str):
        super().__init__(f"Session {session_id} is unusable: {reason}")
        self.session_id = session_id
        self.reason = reason
