"""
Unit tests for the code evaluation bridge.
"""
import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from interview_agent.core.code_bridge import CodeEvaluationBridge
from interview_agent.core.exceptions import CodeExecutionError
from interview_agent.models.state import Session, Stage
from interview_agent.tools.judge0 import Judge0Provider
from tests.fakes import FakeProvider


@pytest.mark.asyncio
async def test_code_outside_coding_is_recorded_but_not_dispatched(provider):
    bridge = CodeEvaluationBridge(provider, poll_interval=0)
    session = Session(session_id="s1", current_stage=Stage.CS)

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CS, language="python")

    assert result is None
    assert provider.submissions == []
    assert len(session.code_submissions) == 1
    submission = session.code_submissions[0]
    assert submission.dispatched is False
    assert submission.stage == Stage.CS
    assert submission.result is None


@pytest.mark.asyncio
async def test_code_in_coding_is_dispatched(provider):
    bridge = CodeEvaluationBridge(provider, poll_interval=0)
    session = Session(session_id="s1", current_stage=Stage.CODING)

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python", stdin="5")

    assert result.status == "completed"
    assert result.stdout == "ok\n"
    assert provider.submissions == [{"code": "print(1)", "language": "python", "stdin": "5"}]
    assert session.code_submissions[0].dispatched is True
    assert session.code_submissions[0].result == result


@pytest.mark.asyncio
async def test_empty_code_is_ignored(provider):
    bridge = CodeEvaluationBridge(provider, poll_interval=0)
    session = Session(session_id="s1", current_stage=Stage.CODING)

    assert await bridge.maybe_evaluate(session, "   ", Stage.CODING) is None
    assert await bridge.maybe_evaluate(session, None, Stage.CODING) is None
    assert session.code_submissions == []


@pytest.mark.asyncio
async def test_session_language_is_the_default():
    provider = FakeProvider()
    bridge = CodeEvaluationBridge(provider, poll_interval=0)
    session = Session(session_id="s1", language="javascript")

    await bridge.maybe_evaluate(session, "console.log(1)", Stage.CODING)

    assert provider.submissions[0]["language"] == "javascript"


@pytest.mark.asyncio
async def test_polls_until_finished():
    provider = FakeProvider(pending_polls=2)
    bridge = CodeEvaluationBridge(provider, poll_interval=0)
    session = Session(session_id="s1")

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python")

    assert result.status == "completed"
    assert provider.polls == 3


@pytest.mark.asyncio
async def test_reports_pending_after_max_polls():
    provider = FakeProvider(pending_polls=10)
    bridge = CodeEvaluationBridge(provider, max_polls=3, poll_interval=0)
    session = Session(session_id="s1")

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python")

    assert result.status == "pending"
    assert result.execution_id == "exec-1"
    assert provider.polls == 3

@pytest.mark.asyncio
async def test_still_running_at_deadline_reports_pending():
    # Same timeout-to-polling ratio as the shipped defaults (15s, 30 polls, 1s apart)
    provider = FakeProvider(pending_polls=1000)
    bridge = CodeEvaluationBridge(provider, timeout=0.5, max_polls=30, poll_interval=1 / 30)
    session = Session(session_id="s1")

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python")

    assert result.status == "pending"
    assert result.execution_id == "exec-1"
    assert result.language == "python"
    assert 0 < provider.polls < 30


@pytest.mark.asyncio
async def test_slow_poll_reports_pending():
    provider = FakeProvider(pending_polls=1)

    async def hanging_poll(execution_id, language="unknown"):
        await asyncio.sleep(1)

    provider.poll = hanging_poll
    bridge = CodeEvaluationBridge(provider, timeout=0.05, poll_interval=0)
    session = Session(session_id="s1")

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python")

    assert result.status == "pending"
    assert result.execution_id == "exec-1"


@pytest.mark.asyncio
async def test_provider_error_becomes_failed_result():
    provider = FakeProvider()
    provider.submit = AsyncMock(side_effect=CodeExecutionError("fake", "quota exceeded"))
    bridge = CodeEvaluationBridge(provider, poll_interval=0)
    session = Session(session_id="s1")

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python")

    assert result.status == "failed"
    assert "quota exceeded" in result.error
    assert session.code_submissions[0].result.status == "failed"


@pytest.mark.asyncio
async def test_timeout_becomes_failed_result():
    provider = FakeProvider()

    async def slow_submit(*args, **kwargs):
        await asyncio.sleep(1)

    provider.submit = slow_submit
    bridge = CodeEvaluationBridge(provider, timeout=0.05, poll_interval=0)
    session = Session(session_id="s1")

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python")

    assert result.status == "failed"
    assert "timed out" in result.error


@pytest.mark.asyncio
async def test_no_provider_records_without_dispatch():
    bridge = CodeEvaluationBridge(provider=None)
    session = Session(session_id="s1")

    assert await bridge.maybe_evaluate(session, "print(1)", Stage.CODING) is None
    assert session.code_submissions[0].dispatched is False


@pytest.mark.asyncio
async def test_unreadable_provider_response_becomes_failed_result():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>bad gateway</html>"))
    bridge = CodeEvaluationBridge(Judge0Provider(transport=transport), poll_interval=0)
    session = Session(session_id="s1", current_stage=Stage.CODING)

    result = await bridge.maybe_evaluate(session, "print(1)", Stage.CODING, language="python")

    assert result.status == "failed"
    assert result.provider == "judge0"
    assert session.code_submissions[0].result.status == "failed"
