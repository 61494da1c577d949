from app.services.progression import can_access, compute_progress, is_locked
from app.services.score_extractor import extract
from app.services.submission import SubmissionService

__all__ = ["can_access", "compute_progress", "is_locked", "extract", "SubmissionService"]
