from app.schemas.auth import LoginOutSchema, LoginSchema, UserOutSchema
from app.schemas.scenario import (
    AccessOutSchema,
    ChainStepOutSchema,
    ScenarioProgressOutSchema,
    ScenarioSubmitSchema,
    SubmissionOutSchema,
)
from app.schemas.teacher import AttemptOutSchema, TeacherOutSchema

__all__ = [
    "AccessOutSchema",
    "AttemptOutSchema",
    "ChainStepOutSchema",
    "LoginOutSchema",
    "LoginSchema",
    "ScenarioProgressOutSchema",
    "ScenarioSubmitSchema",
    "SubmissionOutSchema",
    "TeacherOutSchema",
    "UserOutSchema",
]
