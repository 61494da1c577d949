"""Pydantic schemas for submissions, progress and access checks."""
from pydantic import Field, field_validator

from app.schemas.base import CamelSchema
from app.services.score_extractor import MAX_SCORE


class ScenarioSubmitSchema(CamelSchema):
    session_id: str = Field(min_length=1)
    scenario_id: str = Field(min_length=1)
    # client-reported, used when the evaluator has none
    score: float | None = Field(default=None, ge=0, le=MAX_SCORE, allow_inf_nan=False)

    @field_validator("scenario_id", mode="before")
    @classmethod
    def _scenario_id_as_text(cls, value):
        return str(value) if isinstance(value, int) else value


class SubmissionOutSchema(CamelSchema):
    scenario_id: str
    status: str
    score: int | None
    completed_attempts: int
    required_attempts: int
    current_attempt_number: int
    just_completed: bool


class ScenarioProgressOutSchema(CamelSchema):
    id: str
    title: str
    description: str
    difficulty: str
    evaluator_scenario_id: str
    embed_url: str
    status: str
    score: int | None  # average over scored attempts
    completed_attempts: int
    required_attempts: int
    is_locked: bool


class AccessOutSchema(CamelSchema):
    can_access: bool
    reason: str = ""


class ChainStepOutSchema(CamelSchema):
    order: int
    scenario_id: str
    slot_position: int
    attempt_index: int
    done: bool
