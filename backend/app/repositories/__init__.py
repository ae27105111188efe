"""Repository layer for database operations"""

from .base import BaseRepository
from .intake_submission import IntakeSubmissionRepository

__all__ = [
    "BaseRepository",
    "IntakeSubmissionRepository",
]
