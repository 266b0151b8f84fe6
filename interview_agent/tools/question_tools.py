"""
Question generation for the {SYSTEM_NAME} platform.

The session agent treats generation as an opaque capability: given the current
stage, the transcript so far and the candidate's latest message, produce the
interviewer's next message.
"""
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder
from langchain_google_genai import ChatGoogleGenerativeAI

from interview_agent.ai.prompts.interview_prompts import (
    CODE_RESULT_TEMPLATE,
    INTERVIEW_SYSTEM_PROMPT,
    NO_QUESTIONS_CONFIGURED,
    STAGE_INSTRUCTIONS,
)
from interview_agent.models.state import ExecutionResult, Stage, Turn
from interview_agent.utils.config import SYSTEM_NAME, get_llm_config
from interview_agent.utils.constants import ERROR_EMPTY_RESPONSE, ROLE_CANDIDATE
from interview_agent.utils.question_bank import InterviewPromptConfig

# Configure logging
logger = logging.getLogger(__name__)


class QuestionGenerator(ABC):
    """Produces the interviewer's next message."""

    @abstractmethod
    async def generate(
        self,
        stage: Stage,
        transcript: Sequence[Turn],
        message: str,
        code_result: Optional[ExecutionResult] = None,
    ) -> str:
        """
        Generate the next interviewer message.

        Args:
            stage: Stage the turn was attributed to
            transcript: Transcript before this turn
            message: The candidate's latest message
            code_result: Execution result for code sent with this turn, if any

        Returns:
            Message text
        """


def transcript_to_messages(transcript: Sequence[Turn]) -> List[BaseMessage]:
    """Convert transcript entries into chat messages for the LLM."""
    messages: List[BaseMessage] = []
    for turn in transcript:
        if turn.role == ROLE_CANDIDATE:
            content = turn.content
            if turn.code:
                content += f"\n\nSubmitted code:\n```\n{turn.code}\n```"
            messages.append(HumanMessage(content=content))
        else:
            messages.append(AIMessage(content=turn.content))
    return messages


def extract_text(content) -> str:
    """Flatten LLM message content (string or list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content or "")


class GeminiQuestionGenerator(QuestionGenerator):
    """
    Question generation backed by Gemini through LangChain.

    Args:
        prompt_config: Recruiter question banks and prompt overrides
        llm: Chat model to use (defaults to the configured Gemini model)
    """

    def __init__(self, prompt_config: Optional[InterviewPromptConfig] = None, llm=None):
        self.prompt_config = prompt_config or InterviewPromptConfig()
        if llm is None:
            llm_config = get_llm_config()
            llm = ChatGoogleGenerativeAI(
                model=llm_config["model"],
                temperature=llm_config["temperature"],
            )
        self.llm = llm
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", INTERVIEW_SYSTEM_PROMPT),
            MessagesPlaceholder(variable_name="history"),
            ("human", "{message}"),
        ])
        self.chain = self.prompt | self.llm

    def _code_context(self, code_result: Optional[ExecutionResult]) -> str:
        if code_result is None:
            return ""
        return CODE_RESULT_TEMPLATE.format(
            provider=code_result.provider,
            language=code_result.language,
            status=code_result.status,
            stdout=code_result.stdout or "(empty)",
            stderr=code_result.stderr or code_result.error or "(empty)",
        )

    async def generate(
        self,
        stage: Stage,
        transcript: Sequence[Turn],
        message: str,
        code_result: Optional[ExecutionResult] = None,
    ) -> str:
        questions = self.prompt_config.questions_for(stage)
        question_bank = "\n".join(f"- {q}" for q in questions) if questions else NO_QUESTIONS_CONFIGURED

        logger.info(f"Generating {stage.value} response with {len(transcript)} transcript entries")
        response = await self.chain.ainvoke({
            "system_name": SYSTEM_NAME,
            "stage": stage.value,
            "stage_instructions": STAGE_INSTRUCTIONS[stage.value],
            "custom_prompt": self.prompt_config.prompt_for(stage),
            "question_bank": question_bank,
            "code_context": self._code_context(code_result),
            "history": transcript_to_messages(transcript),
            "message": message,
        })

        text = extract_text(getattr(response, "content", response)).strip()
        if not text:
            raise ValueError(ERROR_EMPTY_RESPONSE)
        return text
