"""
Intake submission pipeline.

Stages run in a fixed order:

    VALIDATE -> PERSIST -> UPLOAD -> PATCH -> COUNT -> NOTIFY

A failure in the first four aborts the submission. COUNT and NOTIFY are
best-effort: their failures are logged and the submission still succeeds.
A failed upload leaves the stored record in place with ``images=[]``.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence

from pymongo.errors import PyMongoError

from app.config import settings
from app.core.tracing import TracingContext
from app.dtos.onboarding import ImageAttachment, IntakeFormResponse
from app.entities.intake_submission import IntakeSubmission, build_identity_key
from app.services.intake_notifications import NotificationDispatcher
from app.services.intake_validation import IntakeValidator, ValidatedIntake
from app.services.onboarding_exceptions import PersistenceError, UploadError
from app.utils.datetime import unix_timestamp

logger = logging.getLogger(__name__)


class IntakeStage(str, Enum):
    VALIDATE = "validate"
    PERSIST = "persist"
    UPLOAD = "upload"
    PATCH = "patch"
    COUNT = "count"
    NOTIFY = "notify"


class SubmissionStore(Protocol):
    def insert_submission(self, submission: IntakeSubmission) -> IntakeSubmission: ...

    def set_images(self, identity_key: str, timestamp: int, image_urls: List[str]) -> bool: ...

    def count_incomplete(self) -> int: ...


class AssetStore(Protocol):
    def put(
        self, bucket: str, key: str, data: bytes, content_type: Optional[str] = None
    ) -> str: ...


def build_asset_key(timestamp: int, github_handle: str, email: str, index: int) -> str:
    return f"{timestamp}-{github_handle}-{email}-{index}"


class IntakeSubmissionPipeline:
    """Validates, stores and announces one intake form submission."""

    def __init__(
        self,
        validator: IntakeValidator,
        repository: SubmissionStore,
        storage: AssetStore,
        dispatcher: NotificationDispatcher,
        bucket: Optional[str] = None,
    ):
        self.validator = validator
        self.repository = repository
        self.storage = storage
        self.dispatcher = dispatcher
        self.bucket = bucket or settings.INTAKE_ASSET_BUCKET

    def submit(
        self, fields: Dict[str, Any], images: Sequence[ImageAttachment]
    ) -> IntakeFormResponse:
        """
        Run the full pipeline for one submission.

        Raises:
            IntakeValidationError: the form, repo selection or images are invalid
            PersistenceError: the record could not be stored or patched
            UploadError: an image could not be stored
        """
        self._enter(IntakeStage.VALIDATE)
        validated = self.validator.validate(fields, images)
        TracingContext.set(github_handle=validated.form.github_handle)

        self._enter(IntakeStage.PERSIST)
        submission = self._persist(validated)

        self._enter(IntakeStage.UPLOAD)
        image_urls = self._upload_images(submission, validated.images)

        if image_urls:
            self._enter(IntakeStage.PATCH)
            self._attach_images(submission, image_urls)

        self._enter(IntakeStage.COUNT)
        queue_number = self._queue_number()

        self._enter(IntakeStage.NOTIFY)
        try:
            self.dispatcher.dispatch(submission, queue_number)
        except Exception as e:
            logger.error(f"Failed to send intake confirmation emails: {e}", exc_info=True)

        return IntakeFormResponse(
            form_data=validated.form.model_dump(by_alias=True),
            queue_number=queue_number,
            msg="Successfully submitted intake form",
        )

    @staticmethod
    def _enter(stage: IntakeStage) -> None:
        logger.debug(f"Intake stage: {stage.value}")

    def _persist(self, validated: ValidatedIntake) -> IntakeSubmission:
        form = validated.form
        submission = IntakeSubmission(
            identity_key=build_identity_key(form.email, form.github_handle),
            timestamp=unix_timestamp(),
            name=form.name or "",
            email=form.email,
            notes=form.notes or "",
            github_handle=form.github_handle,
            should_design=form.should_design,
            is_one_project_per_repo=form.is_one_project_per_repo,
            repos=validated.repos,
        )
        try:
            submission = self.repository.insert_submission(submission)
        except PyMongoError as e:
            logger.error(f"Failed to store intake form for {form.github_handle}: {e}")
            raise PersistenceError("Failed to submit intake form") from e

        logger.info(
            f"Stored intake form {submission.identity_key}@{submission.timestamp} "
            f"with {len(submission.repos)} repos"
        )
        return submission

    def _upload_images(
        self, submission: IntakeSubmission, images: Sequence[ImageAttachment]
    ) -> List[str]:
        # Sequential; the first failure stops the remaining uploads
        urls: List[str] = []
        for index, image in enumerate(images):
            key = build_asset_key(
                submission.timestamp, submission.github_handle, submission.email, index
            )
            try:
                urls.append(
                    self.storage.put(self.bucket, key, image.data, image.content_type)
                )
            except Exception as e:
                logger.error(
                    f"Failed to upload intake image {index} ({key}); "
                    f"record {submission.identity_key}@{submission.timestamp} kept without images: {e}"
                )
                raise UploadError("Failed to submit intake form assets", index, key) from e
        return urls

    def _attach_images(self, submission: IntakeSubmission, image_urls: List[str]) -> None:
        try:
            matched = self.repository.set_images(
                submission.identity_key, submission.timestamp, image_urls
            )
        except PyMongoError as e:
            logger.error(f"Failed to attach image URLs to {submission.identity_key}: {e}")
            raise PersistenceError("Failed to submit image URLs") from e

        if not matched:
            logger.error(
                f"No intake record {submission.identity_key}@{submission.timestamp} to attach images to"
            )
            raise PersistenceError("Failed to submit image URLs")

        submission.images = image_urls

    def _queue_number(self) -> Optional[int]:
        try:
            return self.repository.count_incomplete()
        except Exception as e:
            logger.error(f"Failed to count incomplete intake forms: {e}", exc_info=True)
            return None
