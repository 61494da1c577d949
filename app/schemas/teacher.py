"""Pydantic schemas for the admin teacher views."""
from datetime import datetime
from typing import Any

from app.schemas.base import CamelSchema


class AttemptOutSchema(CamelSchema):
    id: int
    scenario_id: str
    attempt_number: int
    status: str
    score: int | None
    session_id: str | None
    evaluation: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime


class TeacherOutSchema(CamelSchema):
    id: int
    email: str
    full_name: str
    role: str
    status: str
    created_at: datetime
    scenario_attempts: list[AttemptOutSchema] = []
