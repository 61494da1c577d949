from app.models.teacher import Teacher
from app.models.attempt import AttemptStatus, ScenarioAttempt

__all__ = ["Teacher", "ScenarioAttempt", "AttemptStatus"]
