"""
Stage registry: the fixed, ordered catalog of interview stages and the number of
questions each stage allows before the session moves on.
"""
import logging
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from interview_agent.core.exceptions import InvalidStageRequest
from interview_agent.models.state import Stage
from interview_agent.utils.config import get_stage_config
from interview_agent.utils.constants import DEFAULT_STAGE_THRESHOLD

logger = logging.getLogger(__name__)

STAGE_ORDER: List[Stage] = [
    Stage.GREET,
    Stage.RESUME,
    Stage.CS,
    Stage.BEHAVE,
    Stage.WRAP_UP,
    Stage.CODING,
]


class StageConfig(BaseModel):
    """Question thresholds per stage."""
    default_threshold: int = Field(DEFAULT_STAGE_THRESHOLD, ge=1)
    thresholds: Dict[Stage, int] = Field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "StageConfig":
        """Build the configuration from ``STAGE_THRESHOLD_*`` environment variables."""
        raw = get_stage_config()
        thresholds = {}
        for name, value in raw["thresholds"].items():
            try:
                thresholds[Stage(name)] = value
            except ValueError:
                logger.warning(f"Ignoring threshold for unknown stage '{name}'")
        return cls(default_threshold=raw["default_threshold"], thresholds=thresholds)


def parse_stage(value: Union[str, Stage]) -> Stage:
    """
    Convert a stage name into a Stage, rejecting anything outside the registry.

    Raises:
        InvalidStageRequest: If the name is not a known stage
    """
    if isinstance(value, Stage):
        return value
    try:
        return Stage(value)
    except ValueError:
        raise InvalidStageRequest(str(value))


class StageRegistry:
    """Ordered stage catalog with threshold lookup."""

    def __init__(self, config: Optional[StageConfig] = None):
        self.config = config or StageConfig()
        self._order = list(STAGE_ORDER)
        self._index = {stage: i for i, stage in enumerate(self._order)}

    def stages_in_order(self) -> List[Stage]:
        return list(self._order)

    @property
    def first(self) -> Stage:
        return self._order[0]

    @property
    def terminal(self) -> Stage:
        return self._order[-1]

    def is_terminal(self, stage: Stage) -> bool:
        return stage == self.terminal

    def index_of(self, stage: Stage) -> int:
        return self._index[stage]

    def threshold_for(self, stage: Stage) -> int:
        return self.config.thresholds.get(stage, self.config.default_threshold)

    def next(self, stage: Stage) -> Stage:
        """Return the stage after ``stage``; the terminal stage maps to itself."""
        i = self._index[stage]
        if i + 1 >= len(self._order):
            return stage
        return self._order[i + 1]
