"""
Intake form validation.

Three checks run in order and stop at the first one that fails:

1. the text fields of the form,
2. the JSON-encoded repo selection carried in the ``repos`` field,
3. the attached images (count, content type, size).

A failing check raises ``IntakeValidationError`` with every issue it found,
each shaped ``{"code", "path", "message"}``.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from app.config import settings
from app.dtos.onboarding import (
    ImageAttachment,
    IntakeForm,
    RepoSelectionAdapter,
    SelectedRepository,
)
from app.services.onboarding_exceptions import IntakeValidationError


def _issue(code: str, path: Sequence[Any], message: str) -> Dict[str, Any]:
    return {"code": code, "path": list(path), "message": message}


def _issues_from_pydantic(
    exc: ValidationError, prefix: Sequence[Any] = ()
) -> List[Dict[str, Any]]:
    return [
        _issue(error["type"], [*prefix, *error["loc"]], error["msg"])
        for error in exc.errors()
    ]


@dataclass
class ValidatedIntake:
    form: IntakeForm
    repos: List[SelectedRepository]
    images: List[ImageAttachment] = field(default_factory=list)


class IntakeValidator:
    """Validates an intake submission before anything is persisted."""

    def __init__(
        self,
        max_images: Optional[int] = None,
        max_image_bytes: Optional[int] = None,
        allowed_image_types: Optional[Sequence[str]] = None,
    ):
        self.max_images = settings.INTAKE_MAX_IMAGES if max_images is None else max_images
        self.max_image_bytes = (
            settings.INTAKE_MAX_IMAGE_BYTES if max_image_bytes is None else max_image_bytes
        )
        self.allowed_image_types = set(
            settings.INTAKE_ALLOWED_IMAGE_TYPES
            if allowed_image_types is None
            else allowed_image_types
        )

    def validate(
        self, fields: Dict[str, Any], images: Sequence[ImageAttachment]
    ) -> ValidatedIntake:
        form, repos = self.validate_fields(fields)
        self.validate_images(images)
        return ValidatedIntake(form=form, repos=repos, images=list(images))

    def validate_fields(
        self, fields: Dict[str, Any]
    ) -> Tuple[IntakeForm, List[SelectedRepository]]:
        """Checks 1 and 2, which need no attachment bytes."""
        form = self.validate_form_fields(fields)
        return form, self.validate_repo_selection(form.repos)

    def validate_form_fields(self, fields: Dict[str, Any]) -> IntakeForm:
        try:
            return IntakeForm.model_validate(fields)
        except ValidationError as exc:
            raise IntakeValidationError(_issues_from_pydantic(exc)) from exc

    def validate_repo_selection(self, raw_repos: str) -> List[SelectedRepository]:
        try:
            parsed = json.loads(raw_repos)
        except (TypeError, ValueError) as exc:
            raise IntakeValidationError(
                [_issue("invalid_json", ["repos"], f"repos is not valid JSON: {exc}")]
            ) from exc

        try:
            return RepoSelectionAdapter.validate_python(parsed)
        except ValidationError as exc:
            raise IntakeValidationError(_issues_from_pydantic(exc, prefix=["repos"])) from exc

    def validate_image_count(self, count: int) -> None:
        if count > self.max_images:
            raise IntakeValidationError(
                [
                    _issue(
                        "too_big",
                        ["images"],
                        f"At most {self.max_images} images may be attached, got {count}",
                    )
                ]
            )

    def validate_images(self, images: Sequence[ImageAttachment]) -> None:
        self.validate_image_count(len(images))

        issues: List[Dict[str, Any]] = []
        for index, image in enumerate(images):
            if image.content_type not in self.allowed_image_types:
                issues.append(
                    _issue(
                        "invalid_type",
                        ["images", index, "contentType"],
                        f"Unsupported image type {image.content_type!r}",
                    )
                )
            if image.size == 0:
                issues.append(
                    _issue("too_small", ["images", index, "size"], "Image is empty")
                )
            elif image.size > self.max_image_bytes:
                issues.append(
                    _issue(
                        "too_big",
                        ["images", index, "size"],
                        f"Image exceeds {self.max_image_bytes} bytes",
                    )
                )
        if issues:
            raise IntakeValidationError(issues)
