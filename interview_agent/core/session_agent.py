"""
Interview session agent.

The agent owns every active session and processes candidate turns. Each turn
runs as a small LangGraph pipeline (admit -> evaluate_code -> generate -> record
-> complete?) over a private copy of the session; the copy replaces the live
session only when the whole pipeline succeeds, so a failed or cancelled turn
leaves no trace. Turns for the same session are serialized behind a per-session
lock; different sessions proceed concurrently.
"""
import asyncio
import contextlib
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, TypedDict, Union

from langgraph.graph import END, StateGraph

from interview_agent.core.code_bridge import CodeEvaluationBridge
from interview_agent.core.completion import CompletionPolicy, default_completion_policy
from interview_agent.core.conversation_log import ConversationLog
from interview_agent.core.exceptions import (
    ExternalServiceError,
    ExternalServiceTimeout,
    SessionNotFound,
    SessionUnusable,
    TranscriptCapacityError,
)
from interview_agent.core.question_tracker import QuestionTracker
from interview_agent.core.report_synthesizer import ReportSynthesizer
from interview_agent.core.stage_controller import StageController
from interview_agent.core.stage_registry import StageRegistry, parse_stage
from interview_agent.models.report import Report
from interview_agent.models.state import (
    ExecutionResult,
    Session,
    SessionStatus,
    Stage,
    Turn,
    TurnResult,
)
from interview_agent.tools.question_tools import QuestionGenerator
from interview_agent.tools.scoring import Scorer
from interview_agent.utils.config import DEFAULT_CODE_LANGUAGE
from interview_agent.utils.constants import ERROR_SESSION_UNUSABLE, ROLE_AGENT, ROLE_CANDIDATE
from interview_agent.utils.profiling import timer
from interview_agent.utils.session_manager import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


class TurnState(TypedDict, total=False):
    """State carried through the turn pipeline."""
    session: Session
    message: str
    code: Optional[str]
    language: Optional[str]
    stdin: str
    candidate_done: bool
    stage: Stage
    history: Tuple[Turn, ...]
    code_result: Optional[ExecutionResult]
    content: str


class _SessionSlot:
    """Lock plus the number of callers currently using it."""

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class SessionAgent:
    """
    Orchestrates interview sessions.

    Args:
        generator: Question/answer generation capability
        registry: Stage registry (defaults to the standard stages and thresholds)
        bridge: Code evaluation bridge (defaults to one without a provider)
        scorer: Scoring capability used when a session completes
        synthesizer: Report synthesizer
        store: Persistence collaborator used at session boundaries
        completion_policy: Decides when a terminal-stage session is finished
        generation_timeout: Seconds allowed for one generation call
        max_history: Capacity of each session's transcript
        default_language: Code language assumed when a turn does not name one
    """

    def __init__(
        self,
        generator: QuestionGenerator,
        registry: Optional[StageRegistry] = None,
        bridge: Optional[CodeEvaluationBridge] = None,
        scorer: Optional[Scorer] = None,
        synthesizer: Optional[ReportSynthesizer] = None,
        store: Optional[SessionStore] = None,
        completion_policy: CompletionPolicy = default_completion_policy,
        generation_timeout: float = 30.0,
        max_history: Optional[int] = None,
        default_language: str = DEFAULT_CODE_LANGUAGE,
    ):
        self.generator = generator
        self.registry = registry or StageRegistry()
        self.tracker = QuestionTracker(self.registry)
        self.controller = StageController(self.registry, self.tracker)
        self.bridge = bridge or CodeEvaluationBridge(provider=None)
        self.scorer = scorer
        self.synthesizer = synthesizer or ReportSynthesizer(self.registry)
        self.store = store or InMemorySessionStore()
        self.completion_policy = completion_policy
        self.generation_timeout = generation_timeout
        self.max_history = max_history
        self.default_language = default_language

        self._sessions: Dict[str, Session] = {}
        self._slots: Dict[str, _SessionSlot] = {}
        self.graph = self._build_graph()

    # ------------------------------------------------------------------
    # Turn pipeline
    # ------------------------------------------------------------------

    def _build_graph(self):
        workflow = StateGraph(TurnState)
        workflow.add_node("admit", self._admit_node)
        workflow.add_node("evaluate_code", self._evaluate_code_node)
        workflow.add_node("generate", self._generate_node)
        workflow.add_node("record", self._record_node)
        workflow.add_node("complete", self._complete_node)

        workflow.set_entry_point("admit")
        workflow.add_edge("admit", "evaluate_code")
        workflow.add_edge("evaluate_code", "generate")
        workflow.add_edge("generate", "record")
        workflow.add_conditional_edges("record", self._should_complete, {"complete": "complete", "end": END})
        workflow.add_edge("complete", END)
        return workflow.compile()

    async def _admit_node(self, state: TurnState) -> Dict[str, Any]:
        session = state["session"]
        history = ConversationLog(session).all()
        stage = self.controller.admit(session)
        return {"stage": stage, "history": history}

    async def _evaluate_code_node(self, state: TurnState) -> Dict[str, Any]:
        result = await self.bridge.maybe_evaluate(
            state["session"],
            state.get("code"),
            state["stage"],
            language=state.get("language"),
            stdin=state.get("stdin") or "",
        )
        return {"code_result": result}

    async def _generate_node(self, state: TurnState) -> Dict[str, Any]:
        stage = state["stage"]
        try:
            with timer(f"generate[{stage.value}]", log_level=logging.INFO):
                content = await asyncio.wait_for(
                    self.generator.generate(stage, state["history"], state["message"], state.get("code_result")),
                    timeout=self.generation_timeout,
                )
        except asyncio.TimeoutError as e:
            logger.error(f"Generation timed out after {self.generation_timeout}s in stage {stage.value}")
            raise ExternalServiceTimeout("generation", f"no response within {self.generation_timeout} seconds", e)
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"Generation failed in stage {stage.value}: {e}")
            raise ExternalServiceError("generation", str(e), e)
        return {"content": content}

    async def _record_node(self, state: TurnState) -> Dict[str, Any]:
        session = state["session"]
        log = ConversationLog(session, max_entries=self.max_history)
        stage = state["stage"]
        log.append(Turn(role=ROLE_CANDIDATE, content=state["message"], stage=stage, code=state.get("code") or None))
        log.append(Turn(role=ROLE_AGENT, content=state["content"], stage=stage))
        session.last_active = datetime.now()
        return {"session": session}

    def _should_complete(self, state: TurnState) -> str:
        session = state["session"]
        if session.complete:
            return "end"
        if self.completion_policy(session, self.registry, bool(state.get("candidate_done"))):
            return "complete"
        return "end"

    async def _complete_node(self, state: TurnState) -> Dict[str, Any]:
        session = state["session"]
        if self.scorer is not None:
            try:
                with timer("scoring", log_level=logging.INFO):
                    scores = await asyncio.wait_for(self.scorer.score(tuple(session.transcript)), timeout=self.generation_timeout)
            except asyncio.TimeoutError as e:
                raise ExternalServiceTimeout("scoring", f"no response within {self.generation_timeout} seconds", e)
            except Exception as e:
                logger.error(f"Scoring failed for session {session.session_id}: {e}")
                raise ExternalServiceError("scoring", str(e), e)
            session.scores = dict(scores)

        session.complete = True
        session.report = self.synthesizer.synthesize(session)
        logger.info(
            f"Session {session.session_id} complete: recommendation={session.report.recommendation}"
        )
        return {"session": session}

    # ------------------------------------------------------------------
    # Session bookkeeping
    # ------------------------------------------------------------------

    @contextlib.asynccontextmanager
    async def _serialized(self, session_id: str):
        slot = self._slots.get(session_id)
        if slot is None:
            slot = self._slots[session_id] = _SessionSlot()
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0 and session_id not in self._sessions:
                self._slots.pop(session_id, None)

    async def _locate(self, session_id: str) -> Optional[Session]:
        session = self._sessions.get(session_id)
        if session is not None:
            return session
        try:
            return await self.store.load_session(session_id)
        except Exception as e:
            logger.error(f"Failed to load session {session_id}: {e}")
            raise ExternalServiceError("session store", str(e), e)

    def _new_session(self, session_id: str, requested_stage: Optional[Union[str, Stage]], language: Optional[str]) -> Session:
        stage = parse_stage(requested_stage) if requested_stage else self.registry.first
        logger.info(f"Creating session {session_id} at stage {stage.value}")
        return Session(
            session_id=session_id,
            current_stage=stage,
            question_count={s: 0 for s in self.registry.stages_in_order()},
            language=language or self.default_language,
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def run(
        self,
        session_id: str,
        message: str,
        code: Optional[str] = None,
        requested_stage: Optional[Union[str, Stage]] = None,
        *,
        language: Optional[str] = None,
        stdin: str = "",
        candidate_done: bool = False,
    ) -> TurnResult:
        """
        Process one candidate turn.

        Args:
            session_id: Session identifier; unknown ids create a new session
            message: Candidate message
            code: Optional code submitted with the message
            requested_stage: Initial stage for a brand-new session; ignored otherwise
            language: Language of ``code`` (defaults to the session language)
            stdin: Standard input for code execution
            candidate_done: Flow-control signal that the candidate has finished

        Returns:
            The generated content, the stage the turn was attributed to and any
            code execution result

        Raises:
            InvalidStageRequest: ``requested_stage`` is unknown and the session is new
            ExternalServiceError: Generation or scoring failed; nothing was committed
            SessionUnusable: The session's transcript can take no more turns
        """
        async with self._serialized(session_id):
            live = await self._locate(session_id)
            if live is None:
                working = self._new_session(session_id, requested_stage, language)
            else:
                if not live.usable:
                    raise SessionUnusable(session_id, ERROR_SESSION_UNUSABLE)
                if requested_stage and str(getattr(requested_stage, "value", requested_stage)) != live.current_stage.value:
                    logger.debug(
                        f"Ignoring requested stage {requested_stage} for existing session {session_id} "
                        f"(at {live.current_stage.value})"
                    )
                working = live.model_copy(deep=True)

            try:
                final = await self.graph.ainvoke({
                    "session": working,
                    "message": message,
                    "code": code,
                    "language": language,
                    "stdin": stdin,
                    "candidate_done": candidate_done,
                })
            except TranscriptCapacityError as e:
                unusable = live if live is not None else self._new_session(session_id, requested_stage, language)
                unusable.usable = False
                self._sessions[session_id] = unusable
                raise SessionUnusable(session_id, str(e))

            committed = final["session"]
            self._sessions[session_id] = committed
            return TurnResult(
                content=final["content"],
                substate=final["stage"],
                code_result=final.get("code_result"),
                complete=committed.complete,
            )

    async def status(self, session_id: str) -> SessionStatus:
        """
        Status snapshot for a session.

        Raises:
            SessionNotFound: If the session is neither active nor stored
        """
        async with self._serialized(session_id):
            session = await self._locate(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return SessionStatus(
            session_id=session.session_id,
            current_stage=session.current_stage,
            interview_complete=session.complete,
            has_scoring=bool(session.scores),
            has_recommendation=session.report is not None,
            can_generate_report=session.complete,
        )

    async def report(self, session_id: str) -> Report:
        """
        Report for a session; incomplete sessions get a draft marked ``complete=False``.

        Raises:
            SessionNotFound: If the session is neither active nor stored
        """
        async with self._serialized(session_id):
            session = await self._locate(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            if session.complete and session.report is not None:
                return session.report
            return self.synthesizer.synthesize(session)

    def get_session(self, session_id: str) -> Optional[Session]:
        """Copy of an active session, for inspection."""
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session is not None else None

    def active_session_ids(self) -> List[str]:
        return list(self._sessions)

    async def retire(self, session_id: str, idle_cutoff: Optional[datetime] = None) -> bool:
        """
        Save a session to the store and drop it from active memory.

        With ``idle_cutoff`` set, a session active at or after the cutoff is
        left in place; a turn may have landed while we waited for its lock.
        """
        async with self._serialized(session_id):
            session = self._sessions.get(session_id)
            if session is None:
                return False
            if idle_cutoff is not None and session.last_active >= idle_cutoff:
                logger.debug(f"Session {session_id} became active again; not retiring")
                return False
            await self.store.save_session(session)
            del self._sessions[session_id]
            logger.info(f"Retired session {session_id} (complete={session.complete})")
            return True

    async def retire_idle(self, max_idle_minutes: int) -> int:
        """Retire every active session idle for longer than ``max_idle_minutes``."""
        cutoff = datetime.now() - timedelta(minutes=max_idle_minutes)
        idle = [sid for sid, session in list(self._sessions.items()) if session.last_active < cutoff]
        retired = 0
        for session_id in idle:
            if await self.retire(session_id, idle_cutoff=cutoff):
                retired += 1
        if retired:
            logger.info(f"Retired {retired} idle sessions")
        return retired

    async def flush(self) -> int:
        """Save every active session without evicting it."""
        saved = 0
        for session_id in list(self._sessions):
            async with self._serialized(session_id):
                session = self._sessions.get(session_id)
                if session is not None and await self.store.save_session(session):
                    saved += 1
        return saved
