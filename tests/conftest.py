"""
Shared fixtures for the Interview Agent unit tests.
"""
import pytest

from interview_agent.core.code_bridge import CodeEvaluationBridge
from interview_agent.core.session_agent import SessionAgent
from interview_agent.core.stage_registry import StageConfig, StageRegistry
from interview_agent.utils.session_manager import InMemorySessionStore
from tests.fakes import FakeGenerator, FakeProvider, FakeScorer


@pytest.fixture
def registry():
    return StageRegistry(StageConfig(default_threshold=3))


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def scorer():
    return FakeScorer()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def make_agent(registry, generator, scorer, provider, store):
    """Build a SessionAgent, overriding any collaborator by keyword."""

    def _make(**overrides):
        options = {
            "generator": generator,
            "registry": registry,
            "bridge": CodeEvaluationBridge(provider, timeout=2.0, poll_interval=0),
            "scorer": scorer,
            "store": store,
            "generation_timeout": 2.0,
        }
        options.update(overrides)
        return SessionAgent(**options)

    return _make

