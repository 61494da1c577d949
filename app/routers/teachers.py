"""Admin routes: teachers and their attempt history."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.attempt import ScenarioAttempt
from app.models.teacher import Teacher
from app.routers.auth import require_admin
from app.schemas.teacher import AttemptOutSchema, TeacherOutSchema
from app.services.teachers import (
    get_teacher,
    get_teacher_scenario_attempts,
    get_teacher_with_attempts,
    list_teachers_with_attempts,
)

router = APIRouter(prefix="/api/teachers", tags=["teachers"], dependencies=[Depends(require_admin)])


def _attempt_out(attempt: ScenarioAttempt) -> AttemptOutSchema:
    return AttemptOutSchema(
        id=attempt.id,
        scenario_id=attempt.scenario_id,
        attempt_number=attempt.attempt_number,
        status=attempt.status,
        score=attempt.score,
        session_id=attempt.session_id,
        evaluation=attempt.evaluation,
        created_at=attempt.created_at,
        updated_at=attempt.updated_at,
    )


def _teacher_out(teacher: Teacher) -> TeacherOutSchema:
    attempts = sorted(teacher.attempts, key=lambda a: (a.scenario_id, a.attempt_number))
    return TeacherOutSchema(
        id=teacher.id,
        email=teacher.email,
        full_name=teacher.full_name,
        role=teacher.role,
        status=teacher.status,
        created_at=teacher.created_at,
        scenario_attempts=[_attempt_out(a) for a in attempts],
    )


@router.get("", response_model=list[TeacherOutSchema])
async def list_teachers(db: Annotated[AsyncSession, Depends(get_db)]):
    teachers = await list_teachers_with_attempts(db)
    return [_teacher_out(t) for t in teachers]


@router.get("/{teacher_id}", response_model=TeacherOutSchema)
async def get_teacher_detail(teacher_id: int, db: Annotated[AsyncSession, Depends(get_db)]):
    teacher = await get_teacher_with_attempts(db, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=404, detail="Teacher not found")
    return _teacher_out(teacher)


@router.get("/{teacher_id}/scenarios/{scenario_id}", response_model=list[AttemptOutSchema])
async def get_teacher_scenario(
    teacher_id: int,
    scenario_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """All attempts of one scenario by one teacher, oldest first."""
    if await get_teacher(db, teacher_id) is None:
        raise HTTPException(status_code=404, detail="Teacher not found")
    attempts = await get_teacher_scenario_attempts(db, teacher_id, scenario_id)
    if not attempts:
        raise HTTPException(status_code=404, detail="Scenario attempt not found")
    return [_attempt_out(a) for a in attempts]
