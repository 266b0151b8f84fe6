"""
Command-line interface for the Interview Agent.

This module provides a local chat loop against the configured generator and
execution provider, and a command to run the HTTP server.
"""
import asyncio
import json
import logging
import uuid
from typing import Optional

import click

from interview_agent.core.exceptions import InterviewAgentError
from interview_agent.core.session_agent import SessionAgent
from interview_agent.utils.session_manager import InMemorySessionStore

logger = logging.getLogger(__name__)

COMMANDS_HELP = """Commands:
- Type 'exit' or 'quit' to leave the interview
- Type 'status' to see session status
- Type 'code' to paste code (finish with a line containing only END)
- Type 'done' to tell the interviewer you have finished
- Type 'report' to print the current report"""


def _read_code() -> str:
    print("Paste your code, then a line with END:")
    lines = []
    while True:
        line = input()
        if line.strip() == "END":
            break
        lines.append(line)
    return "\n".join(lines)


async def _chat_loop(agent: SessionAgent, session_id: str, stage: Optional[str], language: Optional[str]) -> None:
    print("\n" + "=" * 50)
    print("  NEW INTERVIEW SESSION")
    print("=" * 50)
    print(f"* Session ID: {session_id}")
    print("=" * 50)
    print(COMMANDS_HELP)
    print("=" * 50 + "\n")

    requested_stage = stage
    while True:
        user_input = input("\nYou: ").strip()
        command = user_input.lower()
        code = None
        candidate_done = False

        if command in ("exit", "quit", "q"):
            print("\nGoodbye!")
            break
        if command == "status":
            try:
                status = await agent.status(session_id)
            except InterviewAgentError as e:
                print(f"\n{e}")
                continue
            print(json.dumps(status.model_dump(by_alias=True, mode="json"), indent=2))
            continue
        if command == "report":
            try:
                report = await agent.report(session_id)
            except InterviewAgentError as e:
                print(f"\n{e}")
                continue
            print(json.dumps(report.model_dump(mode="json"), indent=2))
            continue
        if command == "code":
            code = _read_code()
            user_input = "Here is my code."
        elif command == "done":
            candidate_done = True
        if not user_input:
            continue

        try:
            result = await agent.run(
                session_id,
                user_input,
                code=code,
                requested_stage=requested_stage,
                language=language,
                candidate_done=candidate_done,
            )
        except InterviewAgentError as e:
            logger.error(f"Error processing input: {e}")
            print(f"\nSorry, that turn failed: {e}")
            continue

        requested_stage = None
        if result.code_result is not None:
            print(f"\n[{result.code_result.provider}] {result.code_result.status}")
            if result.code_result.stdout:
                print(result.code_result.stdout)
            if result.code_result.stderr or result.code_result.error:
                print(result.code_result.stderr or result.code_result.error)
        print(f"\nInterviewer ({result.substate.value}): {result.content}")
        if result.complete:
            print("\nInterview complete. Type 'report' for the report or 'exit' to leave.")


@click.group()
def cli():
    """Interview Agent - stage-driven technical interviews"""
    pass


@cli.command()
@click.option("--session-id", help="Session identifier (generated if omitted)")
@click.option("--stage", help="Stage to start a new session in")
@click.option("--language", help="Language of submitted code")
def chat(session_id: Optional[str] = None, stage: Optional[str] = None, language: Optional[str] = None) -> None:
    """
    Run an interview in the terminal, keeping sessions in memory.
    """
    from interview_agent.server import build_session_agent

    agent = build_session_agent(InMemorySessionStore())
    asyncio.run(_chat_loop(agent, session_id or f"cli-{uuid.uuid4().hex[:8]}", stage, language))


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("interview_agent.server:create_app", host=host, port=port, reload=reload, factory=True)


if __name__ == "__main__":
    cli()
