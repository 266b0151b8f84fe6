"""
Append-only transcript for a session.
"""
import logging
from typing import List, Optional, Tuple

from interview_agent.core.exceptions import TranscriptCapacityError
from interview_agent.models.state import Session, Turn

logger = logging.getLogger(__name__)


class ConversationLog:
    """
    Ordered, append-only view over a session's transcript.

    Args:
        session: Session whose transcript is written
        max_entries: Capacity of the log; ``None`` means unbounded
    """

    def __init__(self, session: Session, max_entries: Optional[int] = None):
        self.session = session
        self.max_entries = max_entries

    def append(self, turn: Turn) -> None:
        if self.max_entries is not None and len(self.session.transcript) >= self.max_entries:
            logger.error(
                f"Transcript for session {self.session.session_id} reached capacity ({self.max_entries})"
            )
            raise TranscriptCapacityError(
                f"transcript for session {self.session.session_id} is full ({self.max_entries} entries)"
            )
        self.session.transcript.append(turn)

    def all(self) -> Tuple[Turn, ...]:
        """Snapshot of the transcript at call time."""
        return tuple(self.session.transcript)

    def __len__(self) -> int:
        return len(self.session.transcript)


def transcript_as_text(turns: List[Turn]) -> str:
    """Render transcript entries as ``role [stage]: content`` lines."""
    lines = []
    for turn in turns:
        line = f"{turn.role} [{turn.stage.value}]: {turn.content}"
        if turn.code:
            line += f"\n```\n{turn.code}\n```"
        lines.append(line)
    return "\n".join(lines)
