"""Database entities stored in MongoDB"""

from .base import BaseEntity, PyObjectId
from .intake_submission import IntakeSubmission, build_identity_key

__all__ = [
    "BaseEntity",
    "PyObjectId",
    "IntakeSubmission",
    "build_identity_key",
]
