"""
Stage controller for interview sessions.

The controller is a forward-only state machine over the stage registry. The
threshold check runs at the start of each turn, before the turn is counted, so
the turn that finds a stage exhausted becomes the first turn of the next stage.
"""
import logging

from interview_agent.core.question_tracker import QuestionTracker
from interview_agent.core.stage_registry import StageRegistry
from interview_agent.models.state import Session, Stage

logger = logging.getLogger(__name__)


class StageController:
    """Owns stage advancement for a session."""

    def __init__(self, registry: StageRegistry, tracker: QuestionTracker):
        self.registry = registry
        self.tracker = tracker

    def admit(self, session: Session) -> Stage:
        """
        Admit an incoming turn and return the stage it is attributed to.

        Args:
            session: Session receiving the turn (mutated in place)

        Returns:
            The session's current stage after any advancement
        """
        current = session.current_stage
        if self.tracker.threshold_reached(session, current):
            following = self.registry.next(current)
            if following != current:
                session.current_stage = following
                self.tracker.reset(session, following)
                logger.info(
                    f"Session {session.session_id} advanced {current.value} -> {following.value} "
                    f"after {session.count_for(current)} turns"
                )
            else:
                logger.debug(f"Session {session.session_id} is at terminal stage {current.value}")

        self.tracker.record(session, session.current_stage)
        return session.current_stage
