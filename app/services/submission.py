"""Submitting a finished scenario session: gate, evaluate, record, recompute."""
import logging
from dataclasses import dataclass

from app.core.errors import AccessDenied, LedgerConflict, UnknownScenario
from app.models.attempt import AttemptStatus
from app.services import catalog
from app.services.evaluation import EvaluationPoller, EvaluationSnapshot
from app.services.ledger import AttemptDraft, AttemptLedger
from app.services.progression import ProgressStatus, can_access, round_half_up, scenario_progress
from app.services.score_extractor import extract, usable_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    scenario_id: str
    status: ProgressStatus
    score: int | None  # score stored on this attempt
    completed_attempts: int
    required_attempts: int
    current_attempt_number: int
    just_completed: bool


@dataclass(frozen=True)
class ResolvedEvaluation:
    score: int | None
    session_id: str | None
    evaluation: dict | None


def resolve_evaluation(
    snapshot: EvaluationSnapshot | None,
    provided_score: float | None,
) -> ResolvedEvaluation:
    """Combine the evaluator snapshot with the score reported by the client.

    The evaluator's score wins; the client's score is the fallback. The
    session reference is kept only if the evaluator confirmed the session.
    """
    score = None
    evaluation = None
    session_id = None
    if snapshot is not None and snapshot.has_data:
        extraction = extract(snapshot)
        score = extraction.score
        evaluation = extraction.evaluation
        session_id = snapshot.session_id

    if score is None and provided_score is not None:
        score = usable_score(provided_score)
        if score is None:
            logger.warning("Ignoring out-of-range client score %r", provided_score)
    return ResolvedEvaluation(
        score=round_half_up(score) if score is not None else None,
        session_id=session_id,
        evaluation=evaluation,
    )


class SubmissionService:

    def __init__(self, ledger: AttemptLedger, poller: EvaluationPoller | None = None):
        self.ledger = ledger
        self.poller = poller

    async def check_access(self, teacher_id: int, scenario_id: str):
        history = await self.ledger.list_by_teacher(teacher_id)
        return can_access(scenario_id, history)

    async def submit(
        self,
        teacher_id: int,
        scenario_id: str,
        session_id: str | None = None,
        provided_score: float | None = None,
    ) -> SubmissionResult:
        if catalog.get_scenario(scenario_id) is None:
            raise UnknownScenario(scenario_id)

        history = await self.ledger.list_by_teacher(teacher_id)
        decision = can_access(scenario_id, history)
        if not decision.allowed:
            raise AccessDenied(scenario_id, decision.reason)
        was_completed = scenario_progress(scenario_id, history).status is ProgressStatus.COMPLETED

        snapshot = None
        if session_id and self.poller is not None:
            snapshot = await self.poller.resolve(session_id)
            logger.info(
                "Session %s resolved as %s after %d fetches",
                session_id, snapshot.outcome.value if snapshot.outcome else None, snapshot.fetches,
            )
        resolved = resolve_evaluation(snapshot, provided_score)

        attempt = await self._append(teacher_id, scenario_id, resolved)

        history = await self.ledger.list_by_teacher(teacher_id)
        progress = scenario_progress(scenario_id, history)
        return SubmissionResult(
            scenario_id=scenario_id,
            status=progress.status,
            score=attempt.score,
            completed_attempts=progress.completed_attempts,
            required_attempts=progress.required_attempts,
            current_attempt_number=attempt.attempt_number,
            just_completed=not was_completed and progress.status is ProgressStatus.COMPLETED,
        )

    async def _append(self, teacher_id: int, scenario_id: str, resolved: ResolvedEvaluation):
        # a concurrent submission may take our number; recompute and retry once
        for retry in (False, True):
            number = await self.ledger.next_attempt_number(teacher_id, scenario_id)
            draft = AttemptDraft(
                teacher_id=teacher_id,
                scenario_id=scenario_id,
                attempt_number=number,
                status=AttemptStatus.COMPLETED,
                score=resolved.score,
                session_id=resolved.session_id,
                evaluation=resolved.evaluation,
            )
            try:
                return await self.ledger.append(draft)
            except LedgerConflict:
                if retry:
                    raise
                logger.info("Attempt number %d taken for scenario %s, retrying", number, scenario_id)
