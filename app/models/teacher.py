"""Teacher model: accounts are provisioned outside this service."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base

ROLE_TEACHER = "TEACHER"
ROLE_ADMIN = "ADMIN"
STATUS_ACTIVE = "ACTIVE"


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_TEACHER)  # TEACHER | ADMIN
    status = Column(String(32), nullable=False, default=STATUS_ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    attempts = relationship("ScenarioAttempt", back_populates="teacher", order_by="ScenarioAttempt.id")
