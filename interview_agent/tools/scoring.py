"""
Interview scoring for the {SYSTEM_NAME} platform.

Scores a finished transcript with an LLM using structured output, producing the
flat metric mapping stored on the session.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel, Field

from interview_agent.ai.prompts.interview_prompts import SCORING_PROMPT
from interview_agent.core.conversation_log import transcript_as_text
from interview_agent.models.state import Turn
from interview_agent.utils.config import get_llm_config

logger = logging.getLogger(__name__)


class InterviewScoring(BaseModel):
    """Structured scores for a completed interview"""
    technical: int = Field(..., ge=0, le=100, description="Technical depth and accuracy")
    communication: int = Field(..., ge=0, le=100, description="Clarity and structure of answers")
    problem_solving: int = Field(..., ge=0, le=100, description="Approach to unfamiliar problems")
    coding: int = Field(..., ge=0, le=100, description="Quality and correctness of submitted code")
    culture_fit: int = Field(..., ge=0, le=100, description="Collaboration and ownership signals")
    final_score: int = Field(..., ge=0, le=100, description="Overall score")
    strengths: List[str] = Field(default_factory=list, description="Concrete strengths")
    weaknesses: List[str] = Field(default_factory=list, description="Areas for improvement")


class Scorer(ABC):
    """Produces the scores for a completed transcript."""

    @abstractmethod
    async def score(self, transcript: Sequence[Turn]) -> Dict[str, Any]:
        """Return metric name to value for ``transcript``."""


class ScoringAgent(Scorer):
    """
    LLM-backed scorer.

    Args:
        llm: Chat model supporting ``with_structured_output`` (defaults to Gemini)
    """

    def __init__(self, llm=None):
        if llm is None:
            llm_config = get_llm_config()
            llm = ChatGoogleGenerativeAI(
                model=llm_config["model"],
                temperature=llm_config["scoring_temperature"],
            )
        self.llm = llm
        self.chain = ChatPromptTemplate.from_messages([("human", SCORING_PROMPT)]) | llm.with_structured_output(InterviewScoring)

    async def score(self, transcript: Sequence[Turn]) -> Dict[str, Any]:
        scoring = await self.chain.ainvoke({"transcript": transcript_as_text(list(transcript))})
        if isinstance(scoring, dict):
            scoring = InterviewScoring(**scoring)
        logger.info(f"Interview scored: final_score={scoring.final_score}")
        return scoring.model_dump()
