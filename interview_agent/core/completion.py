"""
Completion policies decide when a session at the terminal stage is finished.

A policy is any callable ``policy(session, registry, candidate_done) -> bool``.
"""
from typing import Callable

from interview_agent.core.stage_registry import StageRegistry
from interview_agent.models.state import Session

CompletionPolicy = Callable[[Session, StageRegistry, bool], bool]


def terminal_threshold_policy(session: Session, registry: StageRegistry, candidate_done: bool) -> bool:
    """Complete once the terminal stage has used up its own question budget."""
    stage = session.current_stage
    return registry.is_terminal(stage) and session.count_for(stage) >= registry.threshold_for(stage)


def explicit_signal_policy(session: Session, registry: StageRegistry, candidate_done: bool) -> bool:
    """Complete when flow control reports the candidate is done, at the terminal stage only."""
    return candidate_done and registry.is_terminal(session.current_stage)


def any_policy(*policies: CompletionPolicy) -> CompletionPolicy:
    def combined(session: Session, registry: StageRegistry, candidate_done: bool) -> bool:
        return any(policy(session, registry, candidate_done) for policy in policies)
    return combined


default_completion_policy = any_policy(explicit_signal_policy, terminal_threshold_policy)
