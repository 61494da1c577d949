"""SQLAlchemy declarative base with every model imported, for create_all."""
from app.db.session import Base

# Import all models so they register on Base.metadata
from app.models.attempt import ScenarioAttempt  # noqa: F401
from app.models.teacher import Teacher  # noqa: F401

__all__ = ["Base", "Teacher", "ScenarioAttempt"]
