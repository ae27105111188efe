"""
Intake Submission Repository - Database operations for onboarding intake forms.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pymongo import ASCENDING
from pymongo.database import Database

from app.config import settings
from app.entities.intake_submission import IntakeSubmission

from .base import BaseRepository


class IntakeSubmissionRepository(BaseRepository[IntakeSubmission]):
    """Repository for IntakeSubmission entities."""

    def __init__(self, db: Database, collection_name: Optional[str] = None):
        super().__init__(
            db, collection_name or settings.INTAKE_FORM_COLLECTION, IntakeSubmission
        )

    def ensure_indexes(self) -> None:
        """Identity key + timestamp is the record key."""
        self.collection.create_index(
            [("identity_key", ASCENDING), ("timestamp", ASCENDING)],
            unique=True,
            name="identity_key_timestamp",
        )
        self.collection.create_index("is_complete", name="is_complete")

    def insert_submission(self, submission: IntakeSubmission) -> IntakeSubmission:
        return self.insert_one(submission)

    def set_images(self, identity_key: str, timestamp: int, image_urls: List[str]) -> bool:
        """Attach uploaded image URLs to a submission. Returns False if no record matched."""
        result = self.collection.update_one(
            {"identity_key": identity_key, "timestamp": timestamp},
            {
                "$set": {
                    "images": image_urls,
                    "updated_at": datetime.now(timezone.utc),
                }
            },
        )
        return result.matched_count > 0

    def count_incomplete(self) -> int:
        """Number of submissions still waiting to be processed."""
        return self.count({"is_complete": False})
