"""
Report synthesis for interview sessions.

Reports are a pure function of a session's transcript and scores: the same pair
always yields the same report, and a report already built for a pair is reused
rather than rebuilt.
"""
import hashlib
import json
import logging
from collections import OrderedDict
from numbers import Number
from typing import Any, Callable, Dict, List, Optional, Sequence

from interview_agent.core.stage_registry import StageRegistry
from interview_agent.models.report import CodeSummary, Report, ScoringSection, StageSummary
from interview_agent.models.state import CodeSubmission, Session, Turn
from interview_agent.utils.constants import (
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
    EXECUTION_PENDING,
    RECOMMENDATION_HIRE,
    RECOMMENDATION_INSUFFICIENT_DATA,
    RECOMMENDATION_LEAN_NO_HIRE,
    RECOMMENDATION_NO_HIRE,
    RECOMMENDATION_STRONG_HIRE,
    ROLE_AGENT,
    ROLE_CANDIDATE,
)

logger = logging.getLogger(__name__)

Recommender = Callable[[Sequence[Turn], Dict[str, Any]], str]

HIGHLIGHTS_PER_STAGE = 3
HIGHLIGHT_LENGTH = 200


def numeric_scores(scores: Dict[str, Any]) -> Dict[str, float]:
    return {
        name: float(value)
        for name, value in scores.items()
        if isinstance(value, Number) and not isinstance(value, bool)
    }


def score_band_recommendation(transcript: Sequence[Turn], scores: Dict[str, Any]) -> str:
    """
    Map scores onto a hiring recommendation.

    Uses ``final_score`` when present, otherwise the mean of all numeric scores
    (0-100 scale).
    """
    numeric = numeric_scores(scores)
    if not numeric:
        return RECOMMENDATION_INSUFFICIENT_DATA

    score = numeric.get("final_score")
    if score is None:
        score = sum(numeric.values()) / len(numeric)

    if score >= 80:
        return RECOMMENDATION_STRONG_HIRE
    if score >= 65:
        return RECOMMENDATION_HIRE
    if score >= 50:
        return RECOMMENDATION_LEAN_NO_HIRE
    return RECOMMENDATION_NO_HIRE


def fingerprint(transcript: Sequence[Turn], scores: Dict[str, Any]) -> str:
    """Stable digest of a (transcript, scores) pair."""
    payload = {
        "transcript": [turn.model_dump(mode="json") for turn in transcript],
        "scores": scores,
    }
    encoded = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class ReportSynthesizer:
    """
    Builds reports from session transcripts and scores.

    Args:
        registry: Stage registry, used for stage ordering
        recommend: Pure function deriving the recommendation from transcript and scores
        cache_size: Number of reports kept for reuse
    """

    def __init__(
        self,
        registry: StageRegistry,
        recommend: Optional[Recommender] = None,
        cache_size: int = 256,
    ):
        self.registry = registry
        self.recommend = recommend or score_band_recommendation
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, Report]" = OrderedDict()

    def synthesize(self, session: Session) -> Report:
        """
        Build the report for ``session``.

        A session that is not complete gets a draft with ``complete=False``.
        """
        digest = fingerprint(session.transcript, session.scores)
        cache_key = f"{session.session_id}:{session.complete}:{digest}"

        if session.report is not None and session.report.fingerprint == digest and session.complete:
            return session.report
        cached = self._cache.get(cache_key)
        if cached is not None:
            self._cache.move_to_end(cache_key)
            return cached

        report = Report(
            session_id=session.session_id,
            complete=session.complete,
            stages=self._stage_summaries(session.transcript, session.code_submissions),
            scoring=self._scoring_section(session.scores),
            code=self._code_summary(session.code_submissions),
            recommendation=self.recommend(tuple(session.transcript), dict(session.scores)),
            total_turns=len(session.transcript),
            fingerprint=digest,
        )
        if not session.complete:
            logger.info(f"Built draft report for incomplete session {session.session_id}")

        self._cache[cache_key] = report
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return report

    def _stage_summaries(self, transcript: Sequence[Turn], submissions: List[CodeSubmission]) -> List[StageSummary]:
        summaries = []
        for stage in self.registry.stages_in_order():
            stage_turns = [turn for turn in transcript if turn.stage == stage]
            candidate = [turn for turn in stage_turns if turn.role == ROLE_CANDIDATE]
            summaries.append(StageSummary(
                stage=stage.value,
                candidate_turns=len(candidate),
                agent_turns=sum(1 for turn in stage_turns if turn.role == ROLE_AGENT),
                code_submissions=sum(1 for sub in submissions if sub.stage == stage),
                candidate_words=sum(len(turn.content.split()) for turn in candidate),
                highlights=[turn.content[:HIGHLIGHT_LENGTH] for turn in candidate[:HIGHLIGHTS_PER_STAGE]],
            ))
        return summaries

    def _scoring_section(self, scores: Dict[str, Any]) -> ScoringSection:
        numeric = numeric_scores(scores)
        average = round(sum(numeric.values()) / len(numeric), 2) if numeric else None
        return ScoringSection(scores=dict(sorted(scores.items())), numeric_average=average)

    def _code_summary(self, submissions: List[CodeSubmission]) -> CodeSummary:
        statuses = [sub.result.status for sub in submissions if sub.result is not None]
        return CodeSummary(
            total=len(submissions),
            dispatched=sum(1 for sub in submissions if sub.dispatched),
            completed=statuses.count(EXECUTION_COMPLETED),
            failed=statuses.count(EXECUTION_FAILED),
            pending=statuses.count(EXECUTION_PENDING),
        )
