"""
Data models for interview sessions and reports.
"""
from interview_agent.models.report import Report
from interview_agent.models.state import (
    CodeSubmission,
    ExecutionResult,
    Session,
    SessionStatus,
    Stage,
    Turn,
    TurnResult,
)

__all__ = [
    "CodeSubmission",
    "ExecutionResult",
    "Report",
    "Session",
    "SessionStatus",
    "Stage",
    "Turn",
    "TurnResult",
]
