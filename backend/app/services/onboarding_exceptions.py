"""Custom exceptions for the onboarding flow."""
from __future__ import annotations

from typing import Any, Dict, List


class OnboardingError(Exception):
    """Base exception for onboarding failures."""


class IntakeValidationError(OnboardingError):
    """Raised when the intake form, its repo selection or its images are invalid."""
    def __init__(self, issues: List[Dict[str, Any]]):
        super().__init__(f"{len(issues)} invalid intake form field(s)")
        self.issues = issues


class PersistenceError(OnboardingError):
    """Raised when the intake record cannot be written or updated."""


class UploadError(OnboardingError):
    """Raised when an intake image cannot be stored."""
    def __init__(self, message: str, index: int, key: str):
        super().__init__(message)
        self.index = index
        self.key = key


class UpstreamAPIError(OnboardingError):
    """Raised when a GitHub source fails while aggregating repositories."""


class NotificationError(OnboardingError):
    """Raised when a confirmation email or the queue count cannot be produced."""
