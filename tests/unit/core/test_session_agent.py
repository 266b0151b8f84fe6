"""
Unit tests for the SessionAgent orchestrator.
"""
import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from interview_agent.core.exceptions import (
    ExternalServiceError,
    ExternalServiceTimeout,
    InvalidStageRequest,
    SessionNotFound,
    SessionUnusable,
)
from interview_agent.models.state import Stage
from tests.fakes import FakeGenerator, FakeScorer

JS_CODE = 'console.log("test");'


def counted_turns(session):
    return sum(session.question_count.values())


class TestTurnProcessing:
    """Test the per-turn flow."""

    @pytest.mark.asyncio
    async def test_code_in_coding_stage_is_executed(self, make_agent, provider):
        agent = make_agent()

        result = await agent.run("s1", "Please review this code", JS_CODE, "coding")

        assert result.substate == Stage.CODING
        assert result.code_result is not None
        assert result.code_result.status == "completed"
        assert provider.submissions[0]["code"] == JS_CODE

    @pytest.mark.asyncio
    async def test_code_outside_coding_is_ignored(self, make_agent, provider):
        agent = make_agent()

        result = await agent.run("s1", "Hello", JS_CODE, "greet")

        assert result.substate == Stage.GREET
        assert result.code_result is None
        assert provider.submissions == []
        session = agent.get_session("s1")
        assert session.code_submissions[0].dispatched is False

    @pytest.mark.asyncio
    async def test_fourth_greet_turn_moves_to_resume(self, make_agent):
        agent = make_agent()

        results = [await agent.run("s1", f"message {i}", None, "greet") for i in range(4)]

        assert [r.substate for r in results] == [Stage.GREET, Stage.GREET, Stage.GREET, Stage.RESUME]
        session = agent.get_session("s1")
        assert session.count_for(Stage.RESUME) == 1
        assert session.count_for(Stage.GREET) == 3

    @pytest.mark.asyncio
    async def test_transcript_records_both_sides_with_stage(self, make_agent, generator):
        agent = make_agent()

        result = await agent.run("s1", "Hi there")

        session = agent.get_session("s1")
        assert [(t.role, t.content, t.stage) for t in session.transcript] == [
            ("candidate", "Hi there", Stage.GREET),
            ("agent", result.content, Stage.GREET),
        ]
        assert generator.calls[0]["transcript"] == ()
        assert generator.calls[0]["stage"] == Stage.GREET

    @pytest.mark.asyncio
    async def test_generator_sees_prior_transcript(self, make_agent, generator):
        agent = make_agent()
        await agent.run("s1", "first")
        await agent.run("s1", "second")

        history = generator.calls[1]["transcript"]
        assert [turn.content for turn in history][0] == "first"
        assert len(history) == 2

    @pytest.mark.asyncio
    async def test_generator_receives_code_result(self, make_agent, generator):
        agent = make_agent()
        await agent.run("s1", "solution", "print(1)", "coding", language="python")
        assert generator.calls[0]["code_result"].status == "completed"

    @pytest.mark.asyncio
    async def test_stage_order_never_decreases(self, make_agent, registry):
        agent = make_agent()
        for i in range(20):
            await agent.run("s1", f"answer {i}")

        indices = [registry.index_of(turn.stage) for turn in agent.get_session("s1").transcript]
        assert indices == sorted(indices)

    @pytest.mark.asyncio
    async def test_requested_stage_is_advisory_for_existing_session(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "hello")

        result = await agent.run("s1", "jump ahead", None, "coding")

        assert result.substate == Stage.GREET

    @pytest.mark.asyncio
    async def test_unknown_stage_rejected_for_new_session(self, make_agent):
        agent = make_agent()

        with pytest.raises(InvalidStageRequest):
            await agent.run("s1", "hello", None, "lunch")
        assert agent.get_session("s1") is None

    @pytest.mark.asyncio
    async def test_unknown_stage_ignored_for_existing_session(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "hello")

        result = await agent.run("s1", "again", None, "lunch")

        assert result.substate == Stage.GREET

    @pytest.mark.asyncio
    async def test_returned_session_is_a_copy(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "hello")

        agent.get_session("s1").transcript.clear()

        assert len(agent.get_session("s1").transcript) == 2


class TestConcurrency:
    """Test per-session serialization."""

    @pytest.mark.asyncio
    async def test_concurrent_first_turns_share_one_session(self, make_agent):
        agent = make_agent(generator=FakeGenerator(delay=0.01))

        results = await asyncio.gather(agent.run("s1", "one"), agent.run("s1", "two"))

        assert agent.active_session_ids() == ["s1"]
        session = agent.get_session("s1")
        assert counted_turns(session) == 2
        assert len(session.transcript) == 4
        assert all(r.substate == Stage.GREET for r in results)

    @pytest.mark.asyncio
    async def test_concurrent_turns_are_all_counted(self, make_agent):
        agent = make_agent(generator=FakeGenerator(delay=0.001))

        await asyncio.gather(*(agent.run("s1", f"turn {i}") for i in range(12)))

        session = agent.get_session("s1")
        assert counted_turns(session) == 12
        assert len(session.transcript) == 24
        assert session.current_stage == Stage.BEHAVE

    @pytest.mark.asyncio
    async def test_turns_for_one_session_do_not_interleave(self, make_agent):
        generator = FakeGenerator(delay=0.01)
        agent = make_agent(generator=generator)

        await asyncio.gather(*(agent.run("s1", f"turn {i}") for i in range(4)))

        transcript = agent.get_session("s1").transcript
        for candidate, reply in zip(transcript[::2], transcript[1::2]):
            assert candidate.role == "candidate"
            assert reply.content.endswith(candidate.content)

    @pytest.mark.asyncio
    async def test_sessions_run_in_parallel(self, make_agent):
        agent = make_agent(generator=FakeGenerator(delay=0.2))

        started = asyncio.get_running_loop().time()
        await asyncio.gather(*(agent.run(f"s{i}", "hello") for i in range(5)))
        elapsed = asyncio.get_running_loop().time() - started

        assert elapsed < 0.8
        assert sorted(agent.active_session_ids()) == [f"s{i}" for i in range(5)]


class TestAtomicity:
    """Test that failed turns leave no trace."""

    @pytest.mark.asyncio
    async def test_generation_failure_commits_nothing(self, make_agent):
        failing = FakeGenerator(error=RuntimeError("model unavailable"))
        agent = make_agent(generator=failing)

        with pytest.raises(ExternalServiceError):
            await agent.run("s1", "hello")

        assert agent.get_session("s1") is None

    @pytest.mark.asyncio
    async def test_failure_on_existing_session_keeps_previous_state(self, make_agent, generator):
        agent = make_agent()
        for i in range(3):
            await agent.run("s1", f"answer {i}")
        before = agent.get_session("s1")

        generator.error = RuntimeError("model unavailable")
        with pytest.raises(ExternalServiceError):
            await agent.run("s1", "next")

        after = agent.get_session("s1")
        assert after.current_stage == before.current_stage == Stage.GREET
        assert after.question_count == before.question_count
        assert after.transcript == before.transcript

        generator.error = None
        result = await agent.run("s1", "next")
        assert result.substate == Stage.RESUME

    @pytest.mark.asyncio
    async def test_generation_timeout(self, make_agent):
        agent = make_agent(generator=FakeGenerator(delay=1.0), generation_timeout=0.05)

        with pytest.raises(ExternalServiceTimeout):
            await agent.run("s1", "hello")

        assert agent.get_session("s1") is None

    @pytest.mark.asyncio
    async def test_cancelled_turn_commits_nothing(self, make_agent, generator):
        agent = make_agent()
        await agent.run("s1", "hello")

        generator.delay = 1.0
        task = asyncio.create_task(agent.run("s1", "slow"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        generator.delay = 0
        session = agent.get_session("s1")
        assert counted_turns(session) == 1
        assert len(session.transcript) == 2

        await agent.run("s1", "retry")
        assert counted_turns(agent.get_session("s1")) == 2

    @pytest.mark.asyncio
    async def test_execution_failure_still_commits_turn(self, make_agent, provider):
        provider.submit = AsyncMock(side_effect=asyncio.TimeoutError())
        agent = make_agent()

        result = await agent.run("s1", "run it", "print(1)", "coding", language="python")

        assert result.code_result.status == "failed"
        assert len(agent.get_session("s1").transcript) == 2

    @pytest.mark.asyncio
    async def test_transcript_capacity_makes_session_unusable(self, make_agent):
        agent = make_agent(max_history=4)
        await agent.run("s1", "one")
        await agent.run("s1", "two")

        with pytest.raises(SessionUnusable):
            await agent.run("s1", "three")

        session = agent.get_session("s1")
        assert session.usable is False
        assert len(session.transcript) == 4

        with pytest.raises(SessionUnusable):
            await agent.run("s1", "four")


class TestCompletion:
    """Test completion, scoring and status."""

    @pytest.mark.asyncio
    async def test_terminal_threshold_completes_session(self, make_agent, scorer):
        agent = make_agent()

        results = [await agent.run("s1", f"answer {i}", None, "coding") for i in range(3)]

        assert [r.complete for r in results] == [False, False, True]
        session = agent.get_session("s1")
        assert session.complete is True
        assert session.scores["final_score"] == 78
        assert session.report.recommendation == "hire"
        assert session.report.complete is True
        assert scorer.calls == 1

    @pytest.mark.asyncio
    async def test_candidate_done_completes_in_coding(self, make_agent):
        agent = make_agent()

        result = await agent.run("s1", "I'm done", None, "coding", candidate_done=True)

        assert result.complete is True

    @pytest.mark.asyncio
    async def test_candidate_done_ignored_before_coding(self, make_agent):
        agent = make_agent()

        result = await agent.run("s1", "I'm done", candidate_done=True)

        assert result.complete is False

    @pytest.mark.asyncio
    async def test_completed_session_is_not_rescored(self, make_agent, scorer):
        agent = make_agent()
        await agent.run("s1", "done", None, "coding", candidate_done=True)
        report = agent.get_session("s1").report

        result = await agent.run("s1", "one more thing", candidate_done=True)

        assert result.complete is True
        assert scorer.calls == 1
        assert agent.get_session("s1").report == report

    @pytest.mark.asyncio
    async def test_scoring_failure_commits_nothing(self, make_agent):
        agent = make_agent(scorer=FakeScorer(error=RuntimeError("scoring down")))
        await agent.run("s1", "answer", None, "coding")

        with pytest.raises(ExternalServiceError) as exc_info:
            await agent.run("s1", "done", candidate_done=True)

        assert exc_info.value.service == "scoring"
        session = agent.get_session("s1")
        assert session.complete is False
        assert session.count_for(Stage.CODING) == 1

    @pytest.mark.asyncio
    async def test_custom_completion_policy(self, make_agent):
        agent = make_agent(completion_policy=lambda session, registry, done: True)

        result = await agent.run("s1", "hello")

        assert result.complete is True

    @pytest.mark.asyncio
    async def test_status(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "hello")

        status = await agent.status("s1")
        assert status.current_stage == Stage.GREET
        assert status.interview_complete is False
        assert status.has_scoring is False
        assert status.can_generate_report is False

        await agent.run("s2", "done", None, "coding", candidate_done=True)
        status = await agent.status("s2")
        assert status.interview_complete is True
        assert status.has_scoring is True
        assert status.has_recommendation is True
        assert status.model_dump(by_alias=True)["canGenerateReport"] is True

    @pytest.mark.asyncio
    async def test_status_unknown_session(self, make_agent):
        with pytest.raises(SessionNotFound):
            await make_agent().status("missing")

    @pytest.mark.asyncio
    async def test_report_unknown_session(self, make_agent):
        with pytest.raises(SessionNotFound):
            await make_agent().report("missing")

    @pytest.mark.asyncio
    async def test_report_before_completion_is_a_draft(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "hello")

        report = await agent.report("s1")

        assert report.complete is False
        assert report.recommendation == "insufficient_data"

    @pytest.mark.asyncio
    async def test_report_is_stable(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "done", None, "coding", candidate_done=True)

        first = await agent.report("s1")
        second = await agent.report("s1")

        assert first.model_dump_json() == second.model_dump_json()


class TestPersistence:
    """Test store use at session boundaries."""

    @pytest.mark.asyncio
    async def test_retire_and_resume(self, make_agent, store):
        agent = make_agent()
        for i in range(3):
            await agent.run("s1", f"answer {i}")

        assert await agent.retire("s1") is True
        assert agent.active_session_ids() == []

        result = await agent.run("s1", "back again")
        assert result.substate == Stage.RESUME
        assert len(agent.get_session("s1").transcript) == 8

    @pytest.mark.asyncio
    async def test_status_reads_from_store(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "hello")
        await agent.retire("s1")

        status = await agent.status("s1")

        assert status.session_id == "s1"
        assert agent.active_session_ids() == []

    @pytest.mark.asyncio
    async def test_retire_unknown_session(self, make_agent):
        assert await make_agent().retire("missing") is False

    @pytest.mark.asyncio
    async def test_retire_idle(self, make_agent, store):
        agent = make_agent()
        await agent.run("old", "hello")
        await agent.run("fresh", "hello")
        agent._sessions["old"].last_active = datetime.now() - timedelta(hours=2)

        assert await agent.retire_idle(60) == 1

        assert agent.active_session_ids() == ["fresh"]
        assert await store.load_session("old") is not None

    @pytest.mark.asyncio
    async def test_retire_idle_spares_session_that_gets_a_turn(self, make_agent, store):
        generator = FakeGenerator(delay=0.05)
        agent = make_agent(generator=generator)
        await agent.run("s1", "hello")
        agent._sessions["s1"].last_active = datetime.now() - timedelta(hours=2)

        turn = asyncio.create_task(agent.run("s1", "still here"))
        while len(generator.calls) < 2:
            await asyncio.sleep(0.001)

        assert await agent.retire_idle(60) == 0

        await turn
        assert agent.active_session_ids() == ["s1"]
        assert len(agent.get_session("s1").transcript) == 4
        assert await store.load_session("s1") is None

    @pytest.mark.asyncio
    async def test_retire_with_cutoff_skips_recent_session(self, make_agent):
        agent = make_agent()
        await agent.run("s1", "hello")

        assert await agent.retire("s1", idle_cutoff=datetime.now() - timedelta(hours=1)) is False
        assert agent.active_session_ids() == ["s1"]

    @pytest.mark.asyncio
    async def test_flush_saves_without_evicting(self, make_agent, store):
        agent = make_agent()
        await agent.run("s1", "hello")
        await agent.run("s2", "hello")

        assert await agent.flush() == 2

        assert sorted(agent.active_session_ids()) == ["s1", "s2"]
        assert (await store.load_session("s2")).session_id == "s2"

    @pytest.mark.asyncio
    async def test_store_failure_is_an_external_error(self, make_agent, store):
        store.load_session = AsyncMock(side_effect=ConnectionError("mongo down"))
        agent = make_agent()

        with pytest.raises(ExternalServiceError):
            await agent.run("s1", "hello")
