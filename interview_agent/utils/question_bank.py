"""
Recruiter-supplied question banks and prompt overrides.

The configuration lives in MongoDB (one document per recruiter) and is read-only
input to question generation.
"""
import logging
from typing import Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ConfigDict, Field
from pymongo.errors import PyMongoError

from interview_agent.models.state import Stage
from interview_agent.utils.constants import DEFAULT_RECRUITER_ID
from interview_agent.utils.profiling import async_timed

logger = logging.getLogger(__name__)


class CustomPrompts(BaseModel):
    model_config = ConfigDict(frozen=True)

    interview: str = ""
    coding: str = ""


class InterviewPromptConfig(BaseModel):
    """Per-stage question banks plus prompt overrides."""
    model_config = ConfigDict(frozen=True)

    questions: Dict[Stage, List[str]] = Field(default_factory=lambda: {stage: [] for stage in Stage})
    prompts: CustomPrompts = Field(default_factory=CustomPrompts)

    def questions_for(self, stage: Stage) -> List[str]:
        return list(self.questions.get(stage, []))

    def prompt_for(self, stage: Stage) -> str:
        if stage == Stage.CODING and self.prompts.coding:
            return self.prompts.coding
        return self.prompts.interview


@async_timed()
async def load_prompt_config(
    database: AsyncIOMotorDatabase,
    collection_name: str = "recruiter_configs",
    recruiter_id: Optional[str] = None,
) -> InterviewPromptConfig:
    """
    Load a recruiter's question banks, falling back to an empty configuration.

    Args:
        database: Motor database handle
        collection_name: Collection holding recruiter configurations
        recruiter_id: Recruiter whose configuration to load

    Returns:
        The recruiter's configuration, or the default one if none is stored
    """
    recruiter_id = recruiter_id or DEFAULT_RECRUITER_ID
    try:
        document = await database[collection_name].find_one({"recruiterId": recruiter_id})
    except PyMongoError as e:
        logger.error(f"Failed to load prompt configuration for {recruiter_id}, using defaults: {e}")
        return InterviewPromptConfig()

    if not document:
        logger.info(f"No prompt configuration stored for {recruiter_id}, using defaults")
        return InterviewPromptConfig()

    questions = {}
    for name, items in (document.get("questions") or {}).items():
        try:
            questions[Stage(name)] = [str(item) for item in items or []]
        except ValueError:
            logger.warning(f"Ignoring question bank for unknown stage '{name}'")

    config = InterviewPromptConfig(
        questions={stage: questions.get(stage, []) for stage in Stage},
        prompts=CustomPrompts(**(document.get("prompts") or {})),
    )
    logger.info(f"Loaded prompt configuration for {recruiter_id}")
    return config
