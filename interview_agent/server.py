"""
FastAPI server for the Interview Agent.

This module exposes the session agent over HTTP: candidate turns, status polling,
report generation and a health check. The agent and its collaborators are wired
in the application lifespan; tests pass a ready agent to ``create_app`` instead.
"""
import contextlib
import logging
from datetime import datetime
from typing import Literal, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from interview_agent import __version__
from interview_agent.core.code_bridge import CodeEvaluationBridge
from interview_agent.core.exceptions import (
    ExternalServiceError,
    ExternalServiceTimeout,
    InvalidStageRequest,
    SessionNotFound,
    SessionUnusable,
)
from interview_agent.core.session_agent import SessionAgent
from interview_agent.core.stage_registry import StageConfig, StageRegistry
from interview_agent.models.state import SessionStatus, TurnResult
from interview_agent.tools.code_execution import get_execution_provider
from interview_agent.tools.question_tools import GeminiQuestionGenerator
from interview_agent.tools.scoring import ScoringAgent
from interview_agent.utils.config import (
    get_code_execution_config,
    get_db_config,
    get_llm_config,
    get_session_config,
    log_config,
)
from interview_agent.utils.question_bank import InterviewPromptConfig, load_prompt_config
from interview_agent.utils.session_manager import MongoSessionStore, SessionStore

logger = logging.getLogger(__name__)


class TurnRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "message": "Here is my solution.",
                "code": "console.log([1, 2, 3].reduce((a, b) => a + b));",
                "language": "javascript",
            }
        },
    )

    message: str = Field(..., description="Candidate's message")
    code: Optional[str] = Field(None, description="Code submitted with the message")
    requested_stage: Optional[str] = Field(None, description="Starting stage for a new session")
    language: Optional[str] = Field(None, description="Language of the submitted code")
    stdin: str = Field("", description="Standard input for code execution")
    candidate_done: bool = Field(False, description="Whether the candidate has finished")


class ReportRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str = Field(..., description="Session to report on")
    report_type: Literal["scoring", "recommendation", "full"] = Field("full", description="Report section to return")


def build_session_agent(
    store: SessionStore,
    prompt_config: Optional[InterviewPromptConfig] = None,
) -> SessionAgent:
    """
    Wire a session agent from environment configuration.

    Args:
        store: Persistence collaborator for the agent
        prompt_config: Recruiter question banks and prompt overrides

    Returns:
        A ready SessionAgent
    """
    execution_config = get_code_execution_config()
    bridge = CodeEvaluationBridge(
        provider=get_execution_provider(execution_config),
        timeout=execution_config["timeout"],
        max_polls=execution_config["max_polls"],
        poll_interval=execution_config["poll_interval"],
    )
    return SessionAgent(
        generator=GeminiQuestionGenerator(prompt_config=prompt_config),
        registry=StageRegistry(StageConfig.from_env()),
        bridge=bridge,
        scorer=ScoringAgent(),
        store=store,
        generation_timeout=get_llm_config()["timeout"],
        max_history=get_session_config()["max_history"],
        default_language=execution_config["default_language"],
    )


async def setup_session_agent_async() -> SessionAgent:
    """Connect to MongoDB, load the recruiter configuration and build the agent."""
    db_config = get_db_config()
    store = MongoSessionStore(
        connection_uri=db_config["uri"],
        database_name=db_config["database"],
        collection_name=db_config["sessions_collection"],
    )
    await store.setup()
    prompt_config = await load_prompt_config(
        store.db,
        collection_name=db_config["recruiter_collection"],
        recruiter_id=db_config["recruiter_id"],
    )
    return build_session_agent(store, prompt_config)


def create_app(agent: Optional[SessionAgent] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        agent: Pre-built agent; when omitted one is wired from configuration at startup
    """
    limiter = Limiter(key_func=get_remote_address)

    @contextlib.asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        log_config()
        if app_instance.state.agent is None:
            app_instance.state.agent = await setup_session_agent_async()

        timeout_minutes = get_session_config()["timeout_minutes"]
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            app_instance.state.agent.retire_idle,
            "interval",
            minutes=max(1, timeout_minutes // 4),
            args=[timeout_minutes],
        )
        scheduler.start()
        app_instance.state.scheduler = scheduler

        yield

        scheduler.shutdown()
        active_agent = app_instance.state.agent
        saved = await active_agent.flush()
        logger.info(f"Saved {saved} active sessions on shutdown")
        await active_agent.store.close()

    app = FastAPI(
        title="Interview Agent API",
        description="Stage-driven technical interview sessions with code execution and reporting.",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.agent = agent
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(SessionNotFound)
    async def session_not_found_handler(request: Request, exc: SessionNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidStageRequest)
    async def invalid_stage_handler(request: Request, exc: InvalidStageRequest):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(SessionUnusable)
    async def session_unusable_handler(request: Request, exc: SessionUnusable):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ExternalServiceError)
    async def external_service_handler(request: Request, exc: ExternalServiceError):
        status_code = 504 if isinstance(exc, ExternalServiceTimeout) else 502
        logger.error(f"External service failure: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.post("/api/interview/{session_id}/turn", response_model=TurnResult)
    @limiter.limit("30/minute")
    async def submit_turn(request: Request, session_id: str, body: TurnRequest):
        """
        Process one candidate turn.

        Unknown session ids start a new session. The response carries the
        interviewer's message, the stage the turn was attributed to and the
        code execution result, if code was run.
        """
        return await request.app.state.agent.run(
            session_id,
            body.message,
            code=body.code,
            requested_stage=body.requested_stage,
            language=body.language,
            stdin=body.stdin,
            candidate_done=body.candidate_done,
        )

    @app.get("/api/session-status", response_model=SessionStatus)
    @limiter.limit("60/minute")
    async def session_status(request: Request, session_id: str = Query(..., alias="sessionId")):
        return await request.app.state.agent.status(session_id)

    @app.post("/api/generate-report")
    @limiter.limit("10/minute")
    async def generate_report(request: Request, body: ReportRequest):
        """
        Generate the report for a session.

        A full report on a complete session also retires the session from
        active memory to the store.
        """
        active_agent = request.app.state.agent
        report = await active_agent.report(body.session_id)
        payload = {
            "sessionId": body.session_id,
            "reportType": body.report_type,
            "complete": report.complete,
        }
        if body.report_type == "scoring":
            payload["scoring"] = report.scoring.model_dump()
        elif body.report_type == "recommendation":
            payload["recommendation"] = report.recommendation
        else:
            payload["report"] = report.model_dump(mode="json")
            if report.complete:
                await active_agent.retire(body.session_id)
        return payload

    @app.get("/api/health")
    async def health_check(request: Request):
        active_agent = request.app.state.agent
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "active_sessions": len(active_agent.active_session_ids()) if active_agent else 0,
            "version": __version__,
        }

    return app
