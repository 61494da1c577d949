"""Teacher lookups for login and the admin views."""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.attempt import ScenarioAttempt
from app.models.teacher import STATUS_ACTIVE, Teacher


async def find_active_by_email(db: AsyncSession, email: str) -> Teacher | None:
    result = await db.execute(
        select(Teacher).where(Teacher.email == email, Teacher.status == STATUS_ACTIVE)
    )
    return result.scalar_one_or_none()


async def get_teacher(db: AsyncSession, teacher_id: int) -> Teacher | None:
    result = await db.execute(select(Teacher).where(Teacher.id == teacher_id))
    return result.scalar_one_or_none()


# IMPORTANT: with AsyncSession don't rely on lazy relationship loading
async def list_teachers_with_attempts(db: AsyncSession) -> list[Teacher]:
    result = await db.execute(
        select(Teacher).options(selectinload(Teacher.attempts)).order_by(Teacher.id.asc())
    )
    return list(result.scalars().all())


async def get_teacher_with_attempts(db: AsyncSession, teacher_id: int) -> Teacher | None:
    result = await db.execute(
        select(Teacher).options(selectinload(Teacher.attempts)).where(Teacher.id == teacher_id)
    )
    return result.scalar_one_or_none()


async def get_teacher_scenario_attempts(db: AsyncSession, teacher_id: int, scenario_id: str) -> list[ScenarioAttempt]:
    result = await db.execute(
        select(ScenarioAttempt)
        .where(ScenarioAttempt.teacher_id == teacher_id, ScenarioAttempt.scenario_id == scenario_id)
        .order_by(ScenarioAttempt.attempt_number.asc())
    )
    return list(result.scalars().all())
