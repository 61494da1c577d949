"""Scenario routes: submit a session, read progress, check access."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.container import get_evaluation_poller
from app.core.errors import AccessDenied, LedgerConflict, UnknownScenario
from app.db.session import get_db
from app.models.teacher import Teacher
from app.routers.auth import get_current_teacher
from app.schemas.scenario import (
    AccessOutSchema,
    ChainStepOutSchema,
    ScenarioProgressOutSchema,
    ScenarioSubmitSchema,
    SubmissionOutSchema,
)
from app.services import catalog
from app.services.evaluation import EvaluationPoller
from app.services.ledger import SqlAlchemyAttemptLedger
from app.services.progression import can_access, chain_steps, compute_progress
from app.services.submission import SubmissionService

router = APIRouter(prefix="/api/scenarios", tags=["scenarios"])
logger = logging.getLogger(__name__)


def get_submission_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    poller: Annotated[EvaluationPoller, Depends(get_evaluation_poller)],
) -> SubmissionService:
    return SubmissionService(ledger=SqlAlchemyAttemptLedger(db), poller=poller)


@router.post("/submit", response_model=SubmissionOutSchema)
async def submit_scenario(
    body: ScenarioSubmitSchema,
    teacher: Annotated[Teacher, Depends(get_current_teacher)],
    service: Annotated[SubmissionService, Depends(get_submission_service)],
):
    """Record a finished session as a new attempt and return the scenario's progress."""
    try:
        result = await service.submit(
            teacher_id=teacher.id,
            scenario_id=body.scenario_id,
            session_id=body.session_id,
            provided_score=body.score,
        )
    except UnknownScenario as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except AccessDenied as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.reason)
    except LedgerConflict as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{exc}. Another submission is in flight; retry.",
        )

    return SubmissionOutSchema(
        scenario_id=result.scenario_id,
        status=result.status.value,
        score=result.score,
        completed_attempts=result.completed_attempts,
        required_attempts=result.required_attempts,
        current_attempt_number=result.current_attempt_number,
        just_completed=result.just_completed,
    )


@router.get("", response_model=list[ScenarioProgressOutSchema])
async def list_scenarios(
    db: Annotated[AsyncSession, Depends(get_db)],
    teacher: Annotated[Teacher, Depends(get_current_teacher)],
):
    """Every scenario in catalog order with the teacher's progress and lock state."""
    history = await SqlAlchemyAttemptLedger(db).list_by_teacher(teacher.id)
    progress = compute_progress(history)

    out = []
    for scenario in catalog.SCENARIOS:
        p = progress[scenario.id]
        out.append(ScenarioProgressOutSchema(
            id=scenario.id,
            title=scenario.title,
            description=scenario.description,
            difficulty=scenario.difficulty,
            evaluator_scenario_id=scenario.evaluator_scenario_id,
            embed_url=scenario.embed_url,
            status=p.status.value,
            score=p.average_score,
            completed_attempts=p.completed_attempts,
            required_attempts=p.required_attempts,
            is_locked=p.is_locked,
        ))
    return out


@router.get("/steps", response_model=list[ChainStepOutSchema])
async def list_steps(
    db: Annotated[AsyncSession, Depends(get_db)],
    teacher: Annotated[Teacher, Depends(get_current_teacher)],
):
    """The chain as one step per required attempt, with completion marks."""
    history = await SqlAlchemyAttemptLedger(db).list_by_teacher(teacher.id)
    return [
        ChainStepOutSchema(
            order=step.order,
            scenario_id=step.scenario_id,
            slot_position=step.slot_position,
            attempt_index=step.attempt_index,
            done=step.done,
        )
        for step in chain_steps(history)
    ]


@router.get("/{scenario_id}/access", response_model=AccessOutSchema)
async def check_access(
    scenario_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    teacher: Annotated[Teacher, Depends(get_current_teacher)],
):
    history = await SqlAlchemyAttemptLedger(db).list_by_teacher(teacher.id)
    decision = can_access(scenario_id, history)
    return AccessOutSchema(can_access=decision.allowed, reason=decision.reason)
