"""
Report models produced by the report synthesizer.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class StageSummary(BaseModel):
    """Per-stage aggregate of the transcript"""
    stage: str = Field(..., description="Stage name")
    candidate_turns: int = Field(0, description="Candidate entries recorded in the stage")
    agent_turns: int = Field(0, description="Agent entries recorded in the stage")
    code_submissions: int = Field(0, description="Code submissions made during the stage")
    candidate_words: int = Field(0, description="Total words the candidate wrote in the stage")
    highlights: List[str] = Field(default_factory=list, description="Opening candidate answers, truncated")


class ScoringSection(BaseModel):
    """Scores supplied by the scoring capability"""
    scores: Dict[str, Any] = Field(default_factory=dict, description="Metric name to value")
    numeric_average: Optional[float] = Field(None, description="Mean of the numeric metrics")


class CodeSummary(BaseModel):
    """Aggregate of the code the candidate submitted"""
    total: int = 0
    dispatched: int = 0
    completed: int = 0
    failed: int = 0
    pending: int = 0


class Report(BaseModel):
    """End-of-interview artifact combining transcript and scores"""
    session_id: str
    complete: bool = Field(..., description="False for a draft built before the interview finished")
    stages: List[StageSummary] = Field(default_factory=list)
    scoring: ScoringSection = Field(default_factory=ScoringSection)
    code: CodeSummary = Field(default_factory=CodeSummary)
    recommendation: str
    total_turns: int = 0
    fingerprint: str = Field(..., description="Digest of the transcript and scores the report was built from")
