"""
State definitions for the Interview Agent.

This module contains the stage vocabulary and the records that make up a
candidate session: transcript turns, code submissions, execution results and
the session itself.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from interview_agent.models.report import Report


class Stage(str, Enum):
    """Interview stages, in the order a session walks through them."""
    GREET = "greet"
    RESUME = "resume"
    CS = "cs"
    BEHAVE = "behave"
    WRAP_UP = "wrap_up"
    CODING = "coding"


class Turn(BaseModel):
    """One transcript entry. Entries are immutable once appended."""
    model_config = ConfigDict(frozen=True)

    role: Literal["candidate", "agent"]
    content: str
    stage: Stage
    timestamp: datetime = Field(default_factory=datetime.now)
    code: Optional[str] = None


class ExecutionResult(BaseModel):
    """Structured outcome of a code-execution request."""
    status: Literal["completed", "pending", "failed"]
    provider: str
    language: str
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    execution_id: Optional[str] = None
    description: Optional[str] = None
    execution_time: Optional[float] = None
    memory: Optional[int] = None
    error: Optional[str] = None


class SubmissionHandle(BaseModel):
    """What a provider returns on submit: a token to poll, or the result itself."""
    execution_id: Optional[str] = None
    result: Optional[ExecutionResult] = None


class CodeSubmission(BaseModel):
    """Audit record of code the candidate supplied with a turn."""
    model_config = ConfigDict(frozen=True)

    code: str
    language: str
    stage: Stage
    dispatched: bool
    result: Optional[ExecutionResult] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class Session(BaseModel):
    """
    The unit of interview state.

    Attributes:
        session_id: Caller-supplied identifier
        current_stage: Stage the session is currently in
        question_count: Turns counted per stage; only the current stage's counter moves
        transcript: Ordered, append-only transcript entries
        code_submissions: Ordered audit trail of submitted code
        scores: Metric name to value, filled in by the scoring capability
        report: Synthesized report, only set once the session is complete
        complete: Whether the interview has finished
        usable: False once the transcript failed and the session may not take more turns
    """
    session_id: str
    candidate_id: Optional[str] = None
    current_stage: Stage = Stage.GREET
    question_count: Dict[Stage, int] = Field(default_factory=lambda: {stage: 0 for stage in Stage})
    transcript: List[Turn] = Field(default_factory=list)
    code_submissions: List[CodeSubmission] = Field(default_factory=list)
    scores: Dict[str, Any] = Field(default_factory=dict)
    report: Optional[Report] = None
    complete: bool = False
    usable: bool = True
    language: str = "javascript"
    created_at: datetime = Field(default_factory=datetime.now)
    last_active: datetime = Field(default_factory=datetime.now)

    def count_for(self, stage: Stage) -> int:
        return self.question_count.get(stage, 0)


class TurnResult(BaseModel):
    """Outcome of processing one turn, as observed by the caller."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: str
    substate: Stage
    code_result: Optional[ExecutionResult] = None
    complete: bool = False


class SessionStatus(BaseModel):
    """Status snapshot consumed by status-polling clients."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    current_stage: Stage
    interview_complete: bool
    has_scoring: bool
    has_recommendation: bool
    can_generate_report: bool
