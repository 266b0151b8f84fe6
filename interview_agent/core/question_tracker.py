"""
Per-stage question counting for a session.
"""
from interview_agent.core.stage_registry import StageRegistry
from interview_agent.models.state import Session, Stage


class QuestionTracker:
    """Counts the turns a session has consumed within each stage."""

    def __init__(self, registry: StageRegistry):
        self.registry = registry

    def record(self, session: Session, stage: Stage) -> int:
        """Count one turn against ``stage`` and return the new count."""
        session.question_count[stage] = session.count_for(stage) + 1
        return session.question_count[stage]

    def threshold_reached(self, session: Session, stage: Stage) -> bool:
        return session.count_for(stage) >= self.registry.threshold_for(stage)

    def reset(self, session: Session, stage: Stage) -> None:
        session.question_count[stage] = 0
