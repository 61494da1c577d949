"""Attempt ledger: create-only storage of scenario attempts."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import LedgerConflict
from app.models.attempt import AttemptStatus, ScenarioAttempt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttemptDraft:
    teacher_id: int
    scenario_id: str
    attempt_number: int
    status: AttemptStatus = AttemptStatus.COMPLETED
    score: int | None = None
    session_id: str | None = None
    evaluation: dict[str, Any] | None = None


class AttemptLedger(ABC):

    @abstractmethod
    async def next_attempt_number(self, teacher_id: int, scenario_id: str) -> int:
        """One more than the highest attempt number recorded, or 1."""
        ...

    @abstractmethod
    async def append(self, draft: AttemptDraft) -> ScenarioAttempt:
        """Insert a new attempt. Raises LedgerConflict if the attempt number is taken."""
        ...

    @abstractmethod
    async def list_by_teacher(self, teacher_id: int) -> list[ScenarioAttempt]:
        """All attempts of a teacher ordered by scenario id, then attempt number."""
        ...

    @abstractmethod
    async def count_completed(self, teacher_id: int, scenario_id: str) -> int:
        ...


class SqlAlchemyAttemptLedger(AttemptLedger):

    def __init__(self, db: AsyncSession):
        self.db = db

    async def next_attempt_number(self, teacher_id: int, scenario_id: str) -> int:
        result = await self.db.execute(
            select(func.max(ScenarioAttempt.attempt_number)).where(
                ScenarioAttempt.teacher_id == teacher_id,
                ScenarioAttempt.scenario_id == scenario_id,
            )
        )
        current = result.scalar_one_or_none()
        return (current or 0) + 1

    async def append(self, draft: AttemptDraft) -> ScenarioAttempt:
        attempt = ScenarioAttempt(
            teacher_id=draft.teacher_id,
            scenario_id=draft.scenario_id,
            attempt_number=draft.attempt_number,
            status=AttemptStatus(draft.status).value,
            score=draft.score,
            session_id=draft.session_id,
            evaluation=draft.evaluation,
        )
        self.db.add(attempt)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning(
                "Attempt %d of scenario %s already exists for teacher %d",
                draft.attempt_number, draft.scenario_id, draft.teacher_id,
            )
            raise LedgerConflict(draft.teacher_id, draft.scenario_id, draft.attempt_number) from exc

        await self.db.refresh(attempt)
        return attempt

    async def list_by_teacher(self, teacher_id: int) -> list[ScenarioAttempt]:
        result = await self.db.execute(
            select(ScenarioAttempt)
            .where(ScenarioAttempt.teacher_id == teacher_id)
            .order_by(ScenarioAttempt.scenario_id.asc(), ScenarioAttempt.attempt_number.asc())
        )
        return list(result.scalars().all())

    async def count_completed(self, teacher_id: int, scenario_id: str) -> int:
        result = await self.db.execute(
            select(func.count(ScenarioAttempt.id)).where(
                ScenarioAttempt.teacher_id == teacher_id,
                ScenarioAttempt.scenario_id == scenario_id,
                ScenarioAttempt.status == AttemptStatus.COMPLETED.value,
            )
        )
        return result.scalar_one()
