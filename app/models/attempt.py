"""ScenarioAttempt model: one insert-only attempt of one scenario by one teacher."""
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base


class AttemptStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    COMPLETED = "COMPLETED"


class ScenarioAttempt(Base):
    __tablename__ = "teacher_scenario_attempts"
    # sole concurrency guard for racing submissions
    __table_args__ = (
        UniqueConstraint("teacher_id", "scenario_id", "attempt_number", name="uq_teacher_scenario_attempt"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    scenario_id = Column(String(50), nullable=False)
    attempt_number = Column(Integer, nullable=False, default=1)  # 1, 2, 3... per (teacher, scenario)
    status = Column(String(16), nullable=False, default=AttemptStatus.NOT_STARTED.value)

    # None = not evaluated; 0 is a real score
    score = Column(Integer, nullable=True)
    # only set when the evaluator confirmed the session exists
    session_id = Column(String(255), nullable=True)
    evaluation = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    teacher = relationship("Teacher", back_populates="attempts")
